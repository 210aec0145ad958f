"""
Campaign Service Data Repository

Data access layer - PostgreSQL (asyncpg)
"""

import logging
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from core.postgres_client import PostgresClient

from .content_repository import (
    CAMPAIGN_TABLES,
    CampaignContentStore,
    base_content_fields,
    json_dumps,
    new_id,
)
from .models import (
    Campaign,
    CampaignContentInput,
    CampaignListQuery,
    CampaignSort,
    CampaignStatus,
    CampaignSummary,
    CreatorInfo,
    Milestone,
    MilestoneInput,
    MilestoneStatus,
    SectionType,
)

logger = logging.getLogger(__name__)

SORT_CLAUSES = {
    CampaignSort.NEWEST: "c.created_at DESC",
    CampaignSort.MOST_FUNDED: "c.current_amount DESC, c.created_at DESC",
    CampaignSort.END_DATE: "c.end_date ASC NULLS LAST, c.created_at DESC",
}


class CampaignRepository:
    """Campaign repository - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClient, default_duration_days: int = 90):
        self.db = db
        self.default_duration_days = default_duration_days

        # Table names
        self.campaigns_table = CAMPAIGN_TABLES.owner_table
        self.milestones_table = CAMPAIGN_TABLES.milestones
        self.images_table = CAMPAIGN_TABLES.images
        self.users_table = "users"
        self.payments_table = "payments"
        self.content = CampaignContentStore(db, CAMPAIGN_TABLES)

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(
        self,
        data: CampaignContentInput,
        creator_id: str,
        status: CampaignStatus = CampaignStatus.DRAFT,
        conn=None,
    ) -> Campaign:
        """Insert a campaign with zero funding and all supplied children"""
        campaign_id = new_id("cmp")
        try:
            async with self.db.transaction(conn) as tx:
                now = datetime.now(timezone.utc)
                end_date = data.resolved_end_date() or (now + timedelta(days=self.default_duration_days)).date()
                query = f'''
                    INSERT INTO {self.campaigns_table} (
                        id, creator_id, title, description, category, location, stage,
                        target_amount, minimum_investment, end_date,
                        project_duration, financials,
                        status, current_amount, view_count, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, 0, 0, $14, $14)
                '''
                params = [campaign_id, creator_id, *self._scalar_params(data, end_date), status.value, now]
                await self.db.execute(query, params, conn=tx)
                await self.content.insert_children(campaign_id, data, tx)
                campaign = await self.get_campaign(campaign_id, conn=tx)

            logger.info(f"Campaign {campaign_id} created by {creator_id} with status {status.value}")
            return campaign

        except Exception as e:
            logger.error(f"Error creating campaign for {creator_id}: {e}", exc_info=True)
            raise

    async def get_campaign(self, campaign_id: str, conn=None) -> Optional[Campaign]:
        """Get the fully hydrated campaign"""
        try:
            query = f'''
                SELECT c.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
                FROM {self.campaigns_table} c
                LEFT JOIN {self.users_table} u ON u.id = c.creator_id
                WHERE c.id = $1
            '''
            row = await self.db.query_row(query, [campaign_id], conn=conn)
            if not row:
                return None

            children = await self.content.load_children(campaign_id, conn=conn)
            return Campaign(
                **base_content_fields(row, f"campaign {campaign_id}"),
                **children,
                status=CampaignStatus(row["status"]),
                current_amount=row.get("current_amount") or Decimal("0"),
                view_count=row.get("view_count") or 0,
                rejection_reason=row.get("rejection_reason"),
                approved_at=row.get("approved_at"),
            )

        except Exception as e:
            logger.error(f"Error getting campaign {campaign_id}: {e}")
            raise

    async def get_campaign_status(self, campaign_id: str, conn=None, for_update: bool = False) -> Optional[Dict[str, Any]]:
        """Lightweight campaign row, optionally locked for the transaction"""
        query = f'''
            SELECT id, creator_id, title, status, target_amount, current_amount, view_count
            FROM {self.campaigns_table}
            WHERE id = $1
            {"FOR UPDATE" if for_update else ""}
        '''
        return await self.db.query_row(query, [campaign_id], conn=conn)

    async def update_campaign(self, campaign_id: str, data: CampaignContentInput, conn=None) -> Optional[Campaign]:
        """Update content; status, funding and views are never written here"""
        try:
            async with self.db.transaction(conn) as tx:
                query = f'''
                    UPDATE {self.campaigns_table}
                    SET title = $2, description = $3, category = $4, location = $5, stage = $6,
                        target_amount = $7, minimum_investment = $8, end_date = COALESCE($9, end_date),
                        project_duration = $10, financials = $11, updated_at = $12
                    WHERE id = $1
                '''
                updated = await self.db.execute(
                    query,
                    [campaign_id, *self._scalar_params(data, data.resolved_end_date()), datetime.now(timezone.utc)],
                    conn=tx,
                )
                if not updated:
                    return None

                await self.content.update_children(campaign_id, data, tx)
                return await self.get_campaign(campaign_id, conn=tx)

        except Exception as e:
            logger.error(f"Error updating campaign {campaign_id}: {e}", exc_info=True)
            raise

    async def delete_campaign(self, campaign_id: str, conn=None) -> bool:
        """Delete a campaign; child tables cascade, payments restrict"""
        try:
            deleted = await self.db.execute(
                f"DELETE FROM {self.campaigns_table} WHERE id = $1", [campaign_id], conn=conn
            )
            return deleted > 0
        except Exception as e:
            logger.error(f"Error deleting campaign {campaign_id}: {e}")
            raise

    async def count_payments(self, campaign_id: str, conn=None) -> int:
        """Payment rows of any status that reference the campaign"""
        return await self.db.fetchval(
            f"SELECT COUNT(*) FROM {self.payments_table} WHERE campaign_id = $1", [campaign_id], conn=conn
        ) or 0

    # ====================
    # Listings
    # ====================

    def _build_filters(self, query: CampaignListQuery) -> Tuple[str, List[Any]]:
        """WHERE clause and params shared by the page and count queries"""
        conditions = []
        params: List[Any] = []
        param_count = 0

        if query.status:
            param_count += 1
            conditions.append(f"c.status = ${param_count}")
            params.append(query.status.value)
        elif not query.include_all:
            param_count += 1
            conditions.append(f"c.status = ${param_count}")
            params.append(CampaignStatus.ACTIVE.value)

        if query.category:
            param_count += 1
            conditions.append(f"c.category = ${param_count}")
            params.append(query.category)

        if query.stage:
            param_count += 1
            conditions.append(f"c.stage = ${param_count}")
            params.append(query.stage)

        if query.creator_id:
            param_count += 1
            conditions.append(f"c.creator_id = ${param_count}")
            params.append(query.creator_id)

        if query.search:
            param_count += 1
            conditions.append(
                f"(c.title ILIKE ${param_count} OR c.description ILIKE ${param_count} "
                f"OR c.category ILIKE ${param_count})"
            )
            params.append(f"%{query.search}%")

        where_clause = " AND ".join(conditions) if conditions else "TRUE"
        return where_clause, params

    async def list_campaigns(self, query: CampaignListQuery) -> Tuple[List[CampaignSummary], int]:
        """Filtered, sorted, paginated listing with a matching total count"""
        try:
            where_clause, params = self._build_filters(query)
            order_by = SORT_CLAUSES.get(query.sort, SORT_CLAUSES[CampaignSort.NEWEST])

            count_query = f'''
                SELECT COUNT(*) AS total FROM {self.campaigns_table} c
                WHERE {where_clause}
            '''
            total = await self.db.fetchval(count_query, params) or 0

            list_query = f'''
                SELECT c.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
                FROM {self.campaigns_table} c
                LEFT JOIN {self.users_table} u ON u.id = c.creator_id
                WHERE {where_clause}
                ORDER BY {order_by}
                LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
            '''
            rows = await self.db.query(list_query, [*params, query.limit, query.offset])
            return await self._rows_to_summaries(rows), total

        except Exception as e:
            logger.error(f"Error listing campaigns: {e}")
            raise

    async def list_creator_campaigns(self, creator_id: str, status: Optional[CampaignStatus] = None) -> List[CampaignSummary]:
        """All campaigns of one creator, newest first"""
        conditions = ["c.creator_id = $1"]
        params: List[Any] = [creator_id]
        if status:
            conditions.append("c.status = $2")
            params.append(status.value)

        query = f'''
            SELECT c.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
            FROM {self.campaigns_table} c
            LEFT JOIN {self.users_table} u ON u.id = c.creator_id
            WHERE {" AND ".join(conditions)}
            ORDER BY c.created_at DESC
        '''
        rows = await self.db.query(query, params)
        return await self._rows_to_summaries(rows)

    async def list_campaigns_by_ids(self, campaign_ids: List[str]) -> List[CampaignSummary]:
        """Summaries for the given ids, in the given order"""
        if not campaign_ids:
            return []
        query = f'''
            SELECT c.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
            FROM {self.campaigns_table} c
            LEFT JOIN {self.users_table} u ON u.id = c.creator_id
            WHERE c.id = ANY($1::text[])
        '''
        rows = await self.db.query(query, [campaign_ids])
        by_id = {summary.id: summary for summary in await self._rows_to_summaries(rows)}
        return [by_id[campaign_id] for campaign_id in campaign_ids if campaign_id in by_id]

    async def list_most_viewed(self, limit: int) -> List[CampaignSummary]:
        """Active campaigns ranked by view count"""
        query = f'''
            SELECT c.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
            FROM {self.campaigns_table} c
            LEFT JOIN {self.users_table} u ON u.id = c.creator_id
            WHERE c.status = $1
            ORDER BY c.view_count DESC, c.created_at DESC
            LIMIT $2
        '''
        rows = await self.db.query(query, [CampaignStatus.ACTIVE.value, limit])
        return await self._rows_to_summaries(rows)

    # ====================
    # Sanctioned mutators
    # ====================

    async def transition_status(
        self,
        campaign_id: str,
        from_status: CampaignStatus,
        to_status: CampaignStatus,
        rejection_reason: Optional[str] = None,
        conn=None,
    ) -> Optional[Dict[str, Any]]:
        """Conditional status update; None when the campaign is not in from_status"""
        query = f'''
            UPDATE {self.campaigns_table}
            SET status = $3,
                rejection_reason = $4,
                approved_at = CASE WHEN $3 = 'active' THEN $5 ELSE approved_at END,
                updated_at = $5
            WHERE id = $1 AND status = $2
            RETURNING id, creator_id, title, status
        '''
        return await self.db.query_row(
            query,
            [campaign_id, from_status.value, to_status.value, rejection_reason, datetime.now(timezone.utc)],
            conn=conn,
        )

    async def increment_view_count(self, campaign_id: str, conn=None) -> int:
        """Add one counted view; returns the new count"""
        query = f'''
            UPDATE {self.campaigns_table}
            SET view_count = view_count + 1
            WHERE id = $1
            RETURNING view_count
        '''
        return await self.db.fetchval(query, [campaign_id], conn=conn) or 0

    async def refresh_funding(self, campaign_id: str, total: Decimal, conn=None) -> Decimal:
        """Store the funding total derived from completed payments"""
        query = f'''
            UPDATE {self.campaigns_table}
            SET current_amount = $2, updated_at = $3
            WHERE id = $1
            RETURNING current_amount
        '''
        return await self.db.fetchval(query, [campaign_id, total, datetime.now(timezone.utc)], conn=conn)

    # ====================
    # Milestones
    # ====================

    async def list_milestones(self, campaign_id: str) -> List[Milestone]:
        """Campaign milestones ordered by target date"""
        children = await self.content.load_children(campaign_id)
        return children["milestones"]

    async def get_milestone(self, milestone_id: str, conn=None) -> Optional[Dict[str, Any]]:
        """Raw milestone row including its campaign id"""
        return await self.db.query_row(
            f"SELECT * FROM {self.milestones_table} WHERE id = $1", [milestone_id], conn=conn
        )

    async def load_milestone(self, milestone_id: str, conn=None) -> Optional[Milestone]:
        """Milestone with its image"""
        row = await self.get_milestone(milestone_id, conn=conn)
        return await self._hydrate_milestone(row, conn=conn) if row else None

    async def create_milestone(self, campaign_id: str, data: MilestoneInput, conn=None) -> Milestone:
        """Add a milestone (and its image) to a campaign"""
        try:
            async with self.db.transaction(conn) as tx:
                milestone_id = await self.content.insert_milestone(campaign_id, data, tx)
                milestone = await self.load_milestone(milestone_id, conn=tx)
            logger.info(f"Milestone {milestone_id} added to campaign {campaign_id}")
            return milestone

        except Exception as e:
            logger.error(f"Error creating milestone for campaign {campaign_id}: {e}")
            raise

    async def update_milestone(
        self, milestone_id: str, campaign_id: str, data: MilestoneInput, conn=None
    ) -> Optional[Milestone]:
        """Overwrite a milestone's content; delivery status is left alone"""
        try:
            async with self.db.transaction(conn) as tx:
                payload = data.model_copy(update={"id": milestone_id})
                if not await self.content.update_milestone(campaign_id, payload, tx):
                    return None
                return await self.load_milestone(milestone_id, conn=tx)

        except Exception as e:
            logger.error(f"Error updating milestone {milestone_id}: {e}")
            raise

    async def delete_milestone(self, milestone_id: str, campaign_id: str, conn=None) -> bool:
        """Delete a milestone and its image"""
        try:
            async with self.db.transaction(conn) as tx:
                await self.content.delete_milestone_images(campaign_id, [milestone_id], tx)
                deleted = await self.db.execute(
                    f"DELETE FROM {self.milestones_table} WHERE id = $1 AND campaign_id = $2",
                    [milestone_id, campaign_id],
                    conn=tx,
                )
            return deleted > 0

        except Exception as e:
            logger.error(f"Error deleting milestone {milestone_id}: {e}")
            raise

    async def update_milestone_status(self, milestone_id: str, status: MilestoneStatus) -> Optional[Milestone]:
        """Change a milestone's delivery status"""
        query = f'''
            UPDATE {self.milestones_table}
            SET status = $2, updated_at = $3
            WHERE id = $1
            RETURNING *
        '''
        row = await self.db.query_row(query, [milestone_id, status.value, datetime.now(timezone.utc)])
        return await self._hydrate_milestone(row) if row else None

    async def _hydrate_milestone(self, row: Dict[str, Any], conn=None) -> Milestone:
        image = await self.db.fetchval(
            f'''
                SELECT image_url FROM {self.images_table}
                WHERE campaign_id = $1 AND section_type = $2 AND related_id = $3
                LIMIT 1
            ''',
            [row["campaign_id"], SectionType.MILESTONE.value, row["id"]],
            conn=conn,
        )
        return self.content.row_to_milestone(row, image)

    # ====================
    # Helpers
    # ====================

    def _scalar_params(self, data: CampaignContentInput, end_date: Optional[date]) -> list:
        """Scalar column values in table order (title .. financials)"""
        return [
            data.title or "",
            data.description or "",
            data.category or "",
            data.location or "",
            data.stage or "concept",
            data.target_amount or Decimal("0"),
            data.minimum_investment or Decimal("0"),
            end_date,
            json_dumps(data.project_duration.model_dump(mode="json") if data.project_duration else {}),
            json_dumps(data.financials or {}),
        ]

    async def _rows_to_summaries(self, rows: List[Dict[str, Any]]) -> List[CampaignSummary]:
        covers = await self.content.get_cover_images([row["id"] for row in rows])
        return [
            CampaignSummary(
                id=row["id"],
                title=row.get("title") or "",
                description=row.get("description") or "",
                category=row.get("category") or "",
                location=row.get("location") or "",
                stage=row.get("stage") or "concept",
                status=CampaignStatus(row["status"]),
                target_amount=row.get("target_amount") or Decimal("0"),
                current_amount=row.get("current_amount") or Decimal("0"),
                view_count=row.get("view_count") or 0,
                end_date=row.get("end_date"),
                image_url=covers.get(row["id"]),
                creator=CreatorInfo(
                    id=row["creator_id"],
                    name=row.get("creator_name") or "Anonymous",
                    avatar=row.get("creator_avatar"),
                ),
                created_at=row.get("created_at"),
            )
            for row in rows
        ]
