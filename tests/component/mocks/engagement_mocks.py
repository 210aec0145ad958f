"""
Engagement Service - Mock Dependencies

In-memory EngagementRepositoryProtocol implementation. Views are keyed by
(campaign_id, viewer_key) and favorites by (user_id, campaign_id), mirroring
the unique constraints of the real tables.
"""
import asyncio
import itertools
from datetime import datetime
from typing import Any, Dict, List, Optional

from .db_mock import InMemoryDatabase


class MockEngagementRepository:
    """Mock engagement repository backed by InMemoryDatabase"""

    def __init__(self, db: InMemoryDatabase):
        self.db = db
        self._sequence = itertools.count()

    @property
    def _views(self) -> Dict[tuple, Dict[str, Any]]:
        return self.db.table("campaign_views")

    @property
    def _favorites(self) -> Dict[tuple, int]:
        return self.db.table("favorites")

    async def insert_view(
        self, campaign_id: str, viewer_key: str, user_id: Optional[str], viewed_at: datetime, conn: Any = None
    ) -> bool:
        key = (campaign_id, viewer_key)
        if key in self._views:
            return False
        self._views[key] = {
            "campaign_id": campaign_id,
            "viewer_key": viewer_key,
            "user_id": user_id,
            "viewed_at": viewed_at,
            "counted_at": viewed_at,
        }
        return True

    async def lock_view(self, campaign_id: str, viewer_key: str, conn: Any = None) -> Optional[Dict[str, Any]]:
        row = self._views.get((campaign_id, viewer_key))
        return dict(row) if row else None

    async def update_view(
        self,
        campaign_id: str,
        viewer_key: str,
        user_id: Optional[str],
        viewed_at: datetime,
        counted: bool,
        conn: Any = None,
    ) -> None:
        row = self._views.get((campaign_id, viewer_key))
        if row is None:
            return
        row["viewed_at"] = viewed_at
        row["user_id"] = user_id or row["user_id"]
        if counted:
            row["counted_at"] = viewed_at

    async def list_recently_viewed_ids(self, user_id: str, limit: int) -> List[str]:
        rows = sorted(
            (row for row in self._views.values() if row["user_id"] == user_id),
            key=lambda row: row["viewed_at"],
            reverse=True,
        )
        seen: List[str] = []
        for row in rows:
            if row["campaign_id"] not in seen:
                seen.append(row["campaign_id"])
        return seen[:limit]

    async def add_favorite(self, user_id: str, campaign_id: str, conn: Any = None) -> bool:
        await asyncio.sleep(0)
        key = (user_id, campaign_id)
        if key in self._favorites:
            return False
        self._favorites[key] = next(self._sequence)
        return True

    async def remove_favorite(self, user_id: str, campaign_id: str, conn: Any = None) -> bool:
        await asyncio.sleep(0)
        return self._favorites.pop((user_id, campaign_id), None) is not None

    async def is_favorited(self, user_id: str, campaign_id: str) -> bool:
        return (user_id, campaign_id) in self._favorites

    async def list_favorite_ids(self, user_id: str, limit: Optional[int] = None) -> List[str]:
        items = sorted(
            ((seq, cid) for (uid, cid), seq in self._favorites.items() if uid == user_id),
            reverse=True,
        )
        ids = [cid for _, cid in items]
        return ids[:limit] if limit else ids

    async def count_favorites(self, campaign_id: str) -> int:
        return sum(1 for (_, cid) in self._favorites if cid == campaign_id)

    # Test helpers

    def view_row(self, campaign_id: str, viewer_key: str) -> Optional[Dict[str, Any]]:
        return self._views.get((campaign_id, viewer_key))
