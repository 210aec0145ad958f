"""
Engagement Service Repository Layer

Views and favorites - PostgreSQL (asyncpg). Both tables carry unique
constraints that the write paths rely on instead of check-then-insert.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

logger = logging.getLogger(__name__)


class EngagementRepository:
    """Campaign view and favorite repository"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.views_table = "campaign_views"
        self.favorites_table = "favorites"

    # ====================
    # Views
    # ====================

    async def insert_view(
        self, campaign_id: str, viewer_key: str, user_id: Optional[str], viewed_at: datetime, conn=None
    ) -> bool:
        """Record a viewer's first view; False when they already have a row"""
        try:
            query = f'''
                INSERT INTO {self.views_table} (id, campaign_id, viewer_key, user_id, viewed_at, counted_at)
                VALUES ($1, $2, $3, $4, $5, $5)
                ON CONFLICT (campaign_id, viewer_key) DO NOTHING
                RETURNING id
            '''
            view_id = await self.db.fetchval(
                query, [f"view_{uuid.uuid4().hex[:16]}", campaign_id, viewer_key, user_id, viewed_at], conn=conn
            )
            return view_id is not None
        except Exception as e:
            logger.error(f"Failed to record view of {campaign_id} by {viewer_key}: {e}")
            raise

    async def lock_view(self, campaign_id: str, viewer_key: str, conn=None) -> Optional[Dict[str, Any]]:
        """Existing view row, locked for the surrounding transaction"""
        query = f'''
            SELECT campaign_id, viewer_key, user_id, viewed_at, counted_at
            FROM {self.views_table}
            WHERE campaign_id = $1 AND viewer_key = $2
            FOR UPDATE
        '''
        return await self.db.query_row(query, [campaign_id, viewer_key], conn=conn)

    async def update_view(
        self,
        campaign_id: str,
        viewer_key: str,
        user_id: Optional[str],
        viewed_at: datetime,
        counted: bool,
        conn=None,
    ) -> None:
        """Refresh the last-seen time; move the cool-down anchor when counted"""
        query = f'''
            UPDATE {self.views_table}
            SET viewed_at = $3,
                user_id = COALESCE($4, user_id),
                counted_at = CASE WHEN $5 THEN $3 ELSE counted_at END
            WHERE campaign_id = $1 AND viewer_key = $2
        '''
        await self.db.execute(query, [campaign_id, viewer_key, viewed_at, user_id, counted], conn=conn)

    async def list_recently_viewed_ids(self, user_id: str, limit: int) -> List[str]:
        """Campaign ids the user viewed, most recent first, one per campaign"""
        query = f'''
            SELECT campaign_id, MAX(viewed_at) AS last_viewed
            FROM {self.views_table}
            WHERE user_id = $1
            GROUP BY campaign_id
            ORDER BY last_viewed DESC
            LIMIT $2
        '''
        rows = await self.db.query(query, [user_id, limit])
        return [row["campaign_id"] for row in rows]

    # ====================
    # Favorites
    # ====================

    async def add_favorite(self, user_id: str, campaign_id: str, conn=None) -> bool:
        """Insert a favorite; False if it already existed"""
        query = f'''
            INSERT INTO {self.favorites_table} (id, user_id, campaign_id, created_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (user_id, campaign_id) DO NOTHING
            RETURNING id
        '''
        favorite_id = await self.db.fetchval(
            query,
            [f"fav_{uuid.uuid4().hex[:16]}", user_id, campaign_id, datetime.now(timezone.utc)],
            conn=conn,
        )
        return favorite_id is not None

    async def remove_favorite(self, user_id: str, campaign_id: str, conn=None) -> bool:
        """Delete a favorite; True if a row was removed"""
        query = f'''
            DELETE FROM {self.favorites_table}
            WHERE user_id = $1 AND campaign_id = $2
            RETURNING id
        '''
        return await self.db.fetchval(query, [user_id, campaign_id], conn=conn) is not None

    async def is_favorited(self, user_id: str, campaign_id: str) -> bool:
        query = f'''
            SELECT EXISTS(
                SELECT 1 FROM {self.favorites_table} WHERE user_id = $1 AND campaign_id = $2
            )
        '''
        return bool(await self.db.fetchval(query, [user_id, campaign_id]))

    async def list_favorite_ids(self, user_id: str, limit: Optional[int] = None) -> List[str]:
        """Favorited campaign ids, newest favorite first"""
        params: List[Any] = [user_id]
        limit_clause = ""
        if limit:
            params.append(limit)
            limit_clause = "LIMIT $2"

        query = f'''
            SELECT campaign_id FROM {self.favorites_table}
            WHERE user_id = $1
            ORDER BY created_at DESC
            {limit_clause}
        '''
        rows = await self.db.query(query, params)
        return [row["campaign_id"] for row in rows]

    async def count_favorites(self, campaign_id: str) -> int:
        return await self.db.fetchval(
            f"SELECT COUNT(*) FROM {self.favorites_table} WHERE campaign_id = $1", [campaign_id]
        ) or 0
