"""
Campaign Content Persistence

Shared persistence for the child collections owned by a draft or a
campaign: narrative sections, images, assets, milestones, team members
and risks. Drafts and campaigns use structurally identical child tables,
so one store parameterized by table names serves both repositories.

All write methods expect to run on a connection that already holds an open
transaction owned by the calling repository or service.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import (
    AssetInput,
    AssetType,
    CampaignAsset,
    CampaignContentInput,
    CampaignSection,
    CreatorInfo,
    Milestone,
    MilestoneInput,
    MilestoneStatus,
    ProjectDuration,
    Risk,
    RiskInput,
    SectionType,
    TeamMember,
    TeamMemberInput,
)

logger = logging.getLogger(__name__)


class ExtendedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if hasattr(obj, "isoformat"):
            return obj.isoformat()
        return super().default(obj)


def json_dumps(obj):
    """JSON dumps with Decimal and datetime support"""
    return json.dumps(obj, cls=ExtendedJSONEncoder)


def load_json_object(value: Any, context: str = "") -> Dict[str, Any]:
    """Decode a JSON object column; unparseable values decode as {}"""
    if value is None:
        return {}
    if isinstance(value, dict):
        return value
    try:
        decoded = json.loads(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Unparseable JSON in {context or 'column'}: {e}")
        return {}
    return decoded if isinstance(decoded, dict) else {}


def new_id(prefix: str) -> str:
    """Generate a prefixed unique ID"""
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


@dataclass(frozen=True)
class ContentTables:
    """Table names for one family of campaign content"""
    owner_table: str
    owner_column: str
    sections: str
    images: str
    assets: str
    milestones: str
    team_members: str
    risks: str

    @property
    def child_tables(self) -> List[str]:
        return [self.images, self.sections, self.assets, self.milestones, self.team_members, self.risks]


DRAFT_TABLES = ContentTables(
    owner_table="draft_campaigns",
    owner_column="draft_id",
    sections="draft_campaign_sections",
    images="draft_campaign_images",
    assets="draft_campaign_assets",
    milestones="draft_milestones",
    team_members="draft_team_members",
    risks="draft_risks",
)

CAMPAIGN_TABLES = ContentTables(
    owner_table="campaigns",
    owner_column="campaign_id",
    sections="campaign_sections",
    images="campaign_images",
    assets="campaign_assets",
    milestones="milestones",
    team_members="team_members",
    risks="risks",
)

DEFAULT_MEDIA_TYPES = {
    AssetType.PITCH: "image",
    AssetType.BUSINESS_PLAN: "document",
}


def base_content_fields(row: Dict[str, Any], context: str = "") -> Dict[str, Any]:
    """Top-level draft/campaign columns mapped onto CampaignContent fields"""
    duration_data = load_json_object(row.get("project_duration"), f"{context} project_duration")
    try:
        project_duration = ProjectDuration(**duration_data)
    except ValueError as e:
        logger.warning(f"Invalid project duration on {context}: {e}")
        project_duration = ProjectDuration()

    creator = None
    if row.get("creator_id"):
        creator = CreatorInfo(
            id=row["creator_id"],
            name=row.get("creator_name") or "Anonymous",
            avatar=row.get("creator_avatar"),
        )

    return {
        "id": row["id"],
        "creator_id": row["creator_id"],
        "creator": creator,
        "title": row.get("title") or "",
        "description": row.get("description") or "",
        "category": row.get("category") or "",
        "location": row.get("location") or "",
        "stage": row.get("stage") or "concept",
        "target_amount": row.get("target_amount") or Decimal("0"),
        "minimum_investment": row.get("minimum_investment") or Decimal("0"),
        "end_date": row.get("end_date"),
        "project_duration": project_duration,
        "financials": load_json_object(row.get("financials"), f"{context} financials"),
        "created_at": row.get("created_at"),
        "updated_at": row.get("updated_at"),
    }


class CampaignContentStore:
    """Child-collection persistence for one content family (drafts or campaigns)"""

    def __init__(self, db: PostgresClient, tables: ContentTables):
        self.db = db
        self.tables = tables

    @property
    def owner(self) -> str:
        return self.tables.owner_column

    # ====================
    # Insert
    # ====================

    async def insert_children(self, owner_id: str, data: CampaignContentInput, conn) -> None:
        """Insert every supplied child collection for a new owner row"""
        for section_type, section in (
            (SectionType.PROBLEM_STATEMENT, data.problem_statement),
            (SectionType.SOLUTION, data.solution),
        ):
            if section is not None:
                await self._upsert_section(owner_id, section_type, section.content, conn)
                await self._insert_images(owner_id, section_type, section.images, conn)

        if data.images:
            await self._insert_images(owner_id, SectionType.MAIN, data.images, conn)

        for asset_type, asset in (
            (AssetType.PITCH, data.pitch_asset),
            (AssetType.BUSINESS_PLAN, data.business_plan),
        ):
            if asset is not None:
                await self._upsert_asset(owner_id, asset_type, asset, conn)

        for milestone in data.milestones or []:
            await self.insert_milestone(owner_id, milestone, conn)
        for member in data.team or []:
            await self._insert_team_member(owner_id, member, conn)
        for risk in data.risks or []:
            await self._insert_risk(owner_id, risk, conn)

    async def _upsert_section(self, owner_id: str, section_type: SectionType, content: str, conn) -> None:
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.sections} (id, {self.owner}, section_type, content, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $5)
            ON CONFLICT ({self.owner}, section_type) DO UPDATE SET
                content = EXCLUDED.content,
                updated_at = EXCLUDED.updated_at
        '''
        await self.db.execute(query, [new_id("sec"), owner_id, section_type.value, content or "", now], conn=conn)

    async def _insert_images(
        self,
        owner_id: str,
        section_type: SectionType,
        urls: List[str],
        conn,
        related_id: Optional[str] = None,
    ) -> None:
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.images} (id, {self.owner}, section_type, related_id, image_url, display_order, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
        '''
        await self.db.execute_many(
            query,
            [
                [new_id("img"), owner_id, section_type.value, related_id, url, position, now]
                for position, url in enumerate(u for u in urls if u)
            ],
            conn=conn,
        )

    async def _upsert_asset(self, owner_id: str, asset_type: AssetType, asset: AssetInput, conn) -> None:
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.assets} (id, {self.owner}, asset_type, asset_url, media_type, file_name, created_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            ON CONFLICT ({self.owner}, asset_type) DO UPDATE SET
                asset_url = EXCLUDED.asset_url,
                media_type = EXCLUDED.media_type,
                file_name = EXCLUDED.file_name
        '''
        await self.db.execute(
            query,
            [
                new_id("ast"),
                owner_id,
                asset_type.value,
                asset.url,
                asset.media_type or DEFAULT_MEDIA_TYPES[asset_type],
                asset.file_name,
                now,
            ],
            conn=conn,
        )

    async def insert_milestone(self, owner_id: str, milestone: MilestoneInput, conn) -> str:
        milestone_id = new_id("mst")
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.milestones} (
                id, {self.owner}, title, deliverables, amount, target_date, status, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
        '''
        await self.db.execute(
            query,
            [
                milestone_id,
                owner_id,
                milestone.title,
                milestone.deliverables,
                milestone.amount,
                milestone.target_date,
                MilestoneStatus.PENDING.value,
                now,
            ],
            conn=conn,
        )
        if milestone.image_url:
            await self._insert_images(owner_id, SectionType.MILESTONE, [milestone.image_url], conn, related_id=milestone_id)
        return milestone_id

    async def _insert_team_member(self, owner_id: str, member: TeamMemberInput, conn) -> str:
        member_id = new_id("tm")
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.team_members} (
                id, {self.owner}, name, role, bio, email, linkedin, twitter, image_url, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $10)
        '''
        await self.db.execute(
            query,
            [
                member_id, owner_id, member.name, member.role, member.bio,
                member.email, member.linkedin, member.twitter, member.image_url, now,
            ],
            conn=conn,
        )
        return member_id

    async def _insert_risk(self, owner_id: str, risk: RiskInput, conn) -> str:
        risk_id = new_id("rsk")
        now = datetime.now(timezone.utc)
        query = f'''
            INSERT INTO {self.tables.risks} (
                id, {self.owner}, category, description, mitigation, impact, likelihood, created_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $8)
        '''
        await self.db.execute(
            query,
            [risk_id, owner_id, risk.category, risk.description, risk.mitigation, risk.impact, risk.likelihood, now],
            conn=conn,
        )
        return risk_id

    # ====================
    # Load
    # ====================

    async def load_children(self, owner_id: str, conn=None) -> Dict[str, Any]:
        """Reconstruct the nested child structure for one owner"""
        params = [owner_id]
        sections = await self.db.query(
            f"SELECT * FROM {self.tables.sections} WHERE {self.owner} = $1", params, conn=conn
        )
        images = await self.db.query(
            f"SELECT * FROM {self.tables.images} WHERE {self.owner} = $1 ORDER BY display_order, created_at",
            params,
            conn=conn,
        )
        assets = await self.db.query(
            f"SELECT * FROM {self.tables.assets} WHERE {self.owner} = $1", params, conn=conn
        )
        milestones = await self.db.query(
            f'''
                SELECT * FROM {self.tables.milestones}
                WHERE {self.owner} = $1
                ORDER BY target_date ASC NULLS LAST, created_at ASC
            ''',
            params,
            conn=conn,
        )
        team = await self.db.query(
            f"SELECT * FROM {self.tables.team_members} WHERE {self.owner} = $1 ORDER BY created_at ASC",
            params,
            conn=conn,
        )
        risks = await self.db.query(
            f"SELECT * FROM {self.tables.risks} WHERE {self.owner} = $1 ORDER BY created_at ASC",
            params,
            conn=conn,
        )

        images_by_section: Dict[str, List[str]] = {}
        milestone_images: Dict[str, str] = {}
        for image in images:
            if image["section_type"] == SectionType.MILESTONE.value:
                milestone_images.setdefault(image["related_id"], image["image_url"])
            else:
                images_by_section.setdefault(image["section_type"], []).append(image["image_url"])

        children: Dict[str, Any] = {
            "problem_statement": None,
            "solution": None,
            "images": images_by_section.get(SectionType.MAIN.value, []),
            "pitch_asset": None,
            "business_plan": None,
            "milestones": [self.row_to_milestone(row, milestone_images.get(row["id"])) for row in milestones],
            "team": [self._row_to_team_member(row) for row in team],
            "risks": [self._row_to_risk(row) for row in risks],
        }
        for row in sections:
            children[row["section_type"]] = CampaignSection(
                id=row["id"],
                section_type=SectionType(row["section_type"]),
                content=row.get("content") or "",
                images=images_by_section.get(row["section_type"], []),
            )
        for row in assets:
            key = "pitch_asset" if row["asset_type"] == AssetType.PITCH.value else "business_plan"
            children[key] = CampaignAsset(
                id=row["id"],
                asset_type=AssetType(row["asset_type"]),
                url=row["asset_url"],
                media_type=row.get("media_type"),
                file_name=row.get("file_name"),
            )
        return children

    async def get_cover_images(self, owner_ids: List[str], conn=None) -> Dict[str, str]:
        """First main image per owner"""
        if not owner_ids:
            return {}
        rows = await self.db.query(
            f'''
                SELECT DISTINCT ON ({self.owner}) {self.owner} AS owner_id, image_url
                FROM {self.tables.images}
                WHERE {self.owner} = ANY($1::text[]) AND section_type = $2
                ORDER BY {self.owner}, display_order, created_at
            ''',
            [owner_ids, SectionType.MAIN.value],
            conn=conn,
        )
        return {row["owner_id"]: row["image_url"] for row in rows}

    # ====================
    # Update (reconciliation)
    # ====================

    async def update_children(self, owner_id: str, data: CampaignContentInput, conn) -> None:
        """
        Apply supplied child collections to an existing owner.

        Sections and assets are upserted by type, section and main images are
        replaced per section, and milestones, team members and risks are
        reconciled by id.
        """
        for section_type, section in (
            (SectionType.PROBLEM_STATEMENT, data.problem_statement),
            (SectionType.SOLUTION, data.solution),
        ):
            if section is not None:
                await self._upsert_section(owner_id, section_type, section.content, conn)
                await self._replace_images(owner_id, section_type, section.images, conn)

        if data.images is not None:
            await self._replace_images(owner_id, SectionType.MAIN, data.images, conn)

        for asset_type, asset in (
            (AssetType.PITCH, data.pitch_asset),
            (AssetType.BUSINESS_PLAN, data.business_plan),
        ):
            if asset is not None:
                await self._upsert_asset(owner_id, asset_type, asset, conn)

        if data.milestones is not None:
            await self._reconcile(
                self.tables.milestones, owner_id, data.milestones,
                self.insert_milestone, self.update_milestone, conn,
                on_delete=self.delete_milestone_images,
            )
        if data.team is not None:
            await self._reconcile(
                self.tables.team_members, owner_id, data.team,
                self._insert_team_member, self._update_team_member, conn,
            )
        if data.risks is not None:
            await self._reconcile(
                self.tables.risks, owner_id, data.risks,
                self._insert_risk, self._update_risk, conn,
            )

    async def _replace_images(self, owner_id: str, section_type: SectionType, urls: List[str], conn) -> None:
        await self.db.execute(
            f"DELETE FROM {self.tables.images} WHERE {self.owner} = $1 AND section_type = $2",
            [owner_id, section_type.value],
            conn=conn,
        )
        await self._insert_images(owner_id, section_type, urls, conn)

    async def _reconcile(
        self,
        table: str,
        owner_id: str,
        items: List[Any],
        insert: Callable,
        update: Callable,
        conn,
        on_delete: Optional[Callable] = None,
    ) -> None:
        """Diff-by-id: update matched rows, insert unknown ones, delete the rest"""
        rows = await self.db.query(
            f"SELECT id FROM {table} WHERE {self.owner} = $1 FOR UPDATE", [owner_id], conn=conn
        )
        existing_ids = {row["id"] for row in rows}

        matched = set()
        to_insert = []
        for item in items:
            if item.id and item.id in existing_ids and item.id not in matched:
                matched.add(item.id)
                await update(owner_id, item, conn)
            else:
                to_insert.append(item)

        stale_ids = sorted(existing_ids - matched)
        if stale_ids:
            if on_delete:
                await on_delete(owner_id, stale_ids, conn)
            await self.db.execute(
                f"DELETE FROM {table} WHERE {self.owner} = $1 AND id = ANY($2::text[])",
                [owner_id, stale_ids],
                conn=conn,
            )

        for item in to_insert:
            await insert(owner_id, item, conn)

        logger.debug(
            f"Reconciled {table} for {owner_id}: "
            f"{len(matched)} updated, {len(to_insert)} inserted, {len(stale_ids)} deleted"
        )

    async def update_milestone(self, owner_id: str, milestone: MilestoneInput, conn) -> bool:
        """Overwrite one milestone and its image; False when it does not belong to the owner"""
        query = f'''
            UPDATE {self.tables.milestones}
            SET title = $3, deliverables = $4, amount = $5, target_date = $6, updated_at = $7
            WHERE id = $1 AND {self.owner} = $2
        '''
        updated = await self.db.execute(
            query,
            [
                milestone.id, owner_id, milestone.title, milestone.deliverables,
                milestone.amount, milestone.target_date, datetime.now(timezone.utc),
            ],
            conn=conn,
        )
        if not updated:
            return False
        await self.delete_milestone_images(owner_id, [milestone.id], conn)
        if milestone.image_url:
            await self._insert_images(owner_id, SectionType.MILESTONE, [milestone.image_url], conn, related_id=milestone.id)
        return True

    async def delete_milestone_images(self, owner_id: str, milestone_ids: List[str], conn) -> None:
        await self.db.execute(
            f'''
                DELETE FROM {self.tables.images}
                WHERE {self.owner} = $1 AND section_type = $2 AND related_id = ANY($3::text[])
            ''',
            [owner_id, SectionType.MILESTONE.value, milestone_ids],
            conn=conn,
        )

    async def _update_team_member(self, owner_id: str, member: TeamMemberInput, conn) -> None:
        query = f'''
            UPDATE {self.tables.team_members}
            SET name = $3, role = $4, bio = $5, email = $6, linkedin = $7,
                twitter = $8, image_url = $9, updated_at = $10
            WHERE id = $1 AND {self.owner} = $2
        '''
        await self.db.execute(
            query,
            [
                member.id, owner_id, member.name, member.role, member.bio, member.email,
                member.linkedin, member.twitter, member.image_url, datetime.now(timezone.utc),
            ],
            conn=conn,
        )

    async def _update_risk(self, owner_id: str, risk: RiskInput, conn) -> None:
        query = f'''
            UPDATE {self.tables.risks}
            SET category = $3, description = $4, mitigation = $5, impact = $6,
                likelihood = $7, updated_at = $8
            WHERE id = $1 AND {self.owner} = $2
        '''
        await self.db.execute(
            query,
            [
                risk.id, owner_id, risk.category, risk.description, risk.mitigation,
                risk.impact, risk.likelihood, datetime.now(timezone.utc),
            ],
            conn=conn,
        )

    # ====================
    # Delete
    # ====================

    async def delete_children(self, owner_id: str, conn) -> None:
        """Delete every child row of one owner"""
        for table in self.tables.child_tables:
            await self.db.execute(f"DELETE FROM {table} WHERE {self.owner} = $1", [owner_id], conn=conn)

    # ====================
    # Row mapping
    # ====================

    def row_to_milestone(self, row: Dict[str, Any], image_url: Optional[str] = None) -> Milestone:
        return Milestone(
            id=row["id"],
            title=row.get("title") or "",
            deliverables=row.get("deliverables") or "",
            amount=row.get("amount") or Decimal("0"),
            target_date=row.get("target_date"),
            status=MilestoneStatus(row.get("status") or MilestoneStatus.PENDING.value),
            image_url=image_url,
        )

    def _row_to_team_member(self, row: Dict[str, Any]) -> TeamMember:
        return TeamMember(
            id=row["id"],
            name=row.get("name") or "",
            role=row.get("role") or "",
            bio=row.get("bio") or "",
            email=row.get("email"),
            linkedin=row.get("linkedin"),
            twitter=row.get("twitter"),
            image_url=row.get("image_url"),
        )

    def _row_to_risk(self, row: Dict[str, Any]) -> Risk:
        return Risk(
            id=row["id"],
            category=row.get("category") or "",
            description=row.get("description") or "",
            mitigation=row.get("mitigation") or "",
            impact=row.get("impact") or "medium",
            likelihood=row.get("likelihood") or "medium",
        )
