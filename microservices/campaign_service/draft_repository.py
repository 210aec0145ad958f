"""
Draft Campaign Data Repository

Data access layer for founder drafts - PostgreSQL (asyncpg)
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from core.postgres_client import PostgresClient

from .content_repository import (
    DRAFT_TABLES,
    CampaignContentStore,
    base_content_fields,
    json_dumps,
    new_id,
)
from .models import CampaignContentInput, DraftCampaign, DraftSummary

logger = logging.getLogger(__name__)


class DraftRepository:
    """Draft campaign repository - PostgreSQL (Async)"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.drafts_table = DRAFT_TABLES.owner_table
        self.users_table = "users"
        self.content = CampaignContentStore(db, DRAFT_TABLES)

    # ====================
    # Draft CRUD
    # ====================

    async def create_draft(self, data: CampaignContentInput, creator_id: str, conn=None) -> DraftCampaign:
        """Persist a draft and every supplied child collection in one transaction"""
        draft_id = new_id("dft")
        try:
            async with self.db.transaction(conn) as tx:
                now = datetime.now(timezone.utc)
                query = f'''
                    INSERT INTO {self.drafts_table} (
                        id, creator_id, title, description, category, location, stage,
                        target_amount, minimum_investment, end_date,
                        project_duration, financials, created_at, updated_at
                    ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $13)
                '''
                await self.db.execute(query, [draft_id, creator_id, *self._scalar_params(data), now], conn=tx)
                await self.content.insert_children(draft_id, data, tx)
                draft = await self.get_draft(draft_id, conn=tx)

            logger.debug(f"Draft {draft_id} created for user {creator_id}")
            return draft

        except Exception as e:
            logger.error(f"Error creating draft for user {creator_id}: {e}", exc_info=True)
            raise

    async def get_draft(self, draft_id: str, conn=None, for_update: bool = False) -> Optional[DraftCampaign]:
        """Get the fully hydrated draft, optionally locking the draft row"""
        try:
            lock_clause = "FOR UPDATE OF d" if for_update else ""
            query = f'''
                SELECT d.*, u.full_name AS creator_name, u.profile_image_url AS creator_avatar
                FROM {self.drafts_table} d
                LEFT JOIN {self.users_table} u ON u.id = d.creator_id
                WHERE d.id = $1
                {lock_clause}
            '''
            row = await self.db.query_row(query, [draft_id], conn=conn)
            if not row:
                return None

            children = await self.content.load_children(draft_id, conn=conn)
            return DraftCampaign(**base_content_fields(row, f"draft {draft_id}"), **children)

        except Exception as e:
            logger.error(f"Error getting draft {draft_id}: {e}")
            raise

    async def update_draft(self, draft_id: str, data: CampaignContentInput, conn=None) -> Optional[DraftCampaign]:
        """Overwrite scalars and reconcile supplied child collections"""
        try:
            async with self.db.transaction(conn) as tx:
                query = f'''
                    UPDATE {self.drafts_table}
                    SET title = $2, description = $3, category = $4, location = $5, stage = $6,
                        target_amount = $7, minimum_investment = $8, end_date = $9,
                        project_duration = $10, financials = $11, updated_at = $12
                    WHERE id = $1
                '''
                updated = await self.db.execute(
                    query,
                    [draft_id, *self._scalar_params(data), datetime.now(timezone.utc)],
                    conn=tx,
                )
                if not updated:
                    return None

                await self.content.update_children(draft_id, data, tx)
                return await self.get_draft(draft_id, conn=tx)

        except Exception as e:
            logger.error(f"Error updating draft {draft_id}: {e}", exc_info=True)
            raise

    async def list_user_drafts(self, user_id: str) -> List[DraftSummary]:
        """Draft listing with cover image, most recently updated first"""
        try:
            query = f'''
                SELECT id, title, description, category, stage, target_amount, created_at, updated_at
                FROM {self.drafts_table}
                WHERE creator_id = $1
                ORDER BY updated_at DESC
            '''
            rows = await self.db.query(query, [user_id])
            covers = await self.content.get_cover_images([row["id"] for row in rows])

            return [
                DraftSummary(
                    id=row["id"],
                    title=row.get("title") or "Untitled Campaign",
                    description=row.get("description") or "",
                    category=row.get("category") or "",
                    stage=row.get("stage") or "concept",
                    target_amount=row.get("target_amount") or Decimal("0"),
                    image_url=covers.get(row["id"]),
                    created_at=row.get("created_at"),
                    updated_at=row.get("updated_at"),
                )
                for row in rows
            ]

        except Exception as e:
            logger.error(f"Error listing drafts for user {user_id}: {e}")
            raise

    async def delete_draft(self, draft_id: str, conn=None) -> bool:
        """Delete every child row and the draft in one transaction"""
        try:
            async with self.db.transaction(conn) as tx:
                await self.content.delete_children(draft_id, tx)
                deleted = await self.db.execute(
                    f"DELETE FROM {self.drafts_table} WHERE id = $1", [draft_id], conn=tx
                )
            return deleted > 0

        except Exception as e:
            logger.error(f"Error deleting draft {draft_id}: {e}")
            raise

    async def delete_draft_row(self, draft_id: str, conn=None) -> bool:
        """Delete only the draft row; child tables cascade on the foreign key"""
        deleted = await self.db.execute(f"DELETE FROM {self.drafts_table} WHERE id = $1", [draft_id], conn=conn)
        return deleted > 0

    # ====================
    # Helpers
    # ====================

    def _scalar_params(self, data: CampaignContentInput) -> list:
        """Scalar column values in table order (title .. financials)"""
        return [
            data.title or "",
            data.description or "",
            data.category or "",
            data.location or "",
            data.stage or "concept",
            data.target_amount or Decimal("0"),
            data.minimum_investment or Decimal("0"),
            data.resolved_end_date(),
            json_dumps(data.project_duration.model_dump(mode="json") if data.project_duration else {}),
            json_dumps(data.financials or {}),
        ]
