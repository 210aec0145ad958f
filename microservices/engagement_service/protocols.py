"""
Engagement Service Protocols

Defines interfaces for dependency injection and testing.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol


class EngagementRepositoryProtocol(Protocol):
    """Protocol for view and favorite storage"""

    async def insert_view(
        self, campaign_id: str, viewer_key: str, user_id: Optional[str], viewed_at: datetime, conn: Any = None
    ) -> bool:
        """Insert a first view; False when the viewer already has a row"""
        ...

    async def lock_view(self, campaign_id: str, viewer_key: str, conn: Any = None) -> Optional[Dict[str, Any]]:
        ...

    async def update_view(
        self,
        campaign_id: str,
        viewer_key: str,
        user_id: Optional[str],
        viewed_at: datetime,
        counted: bool,
        conn: Any = None,
    ) -> None:
        ...

    async def list_recently_viewed_ids(self, user_id: str, limit: int) -> List[str]:
        ...

    async def add_favorite(self, user_id: str, campaign_id: str, conn: Any = None) -> bool:
        ...

    async def remove_favorite(self, user_id: str, campaign_id: str, conn: Any = None) -> bool:
        ...

    async def is_favorited(self, user_id: str, campaign_id: str) -> bool:
        ...

    async def list_favorite_ids(self, user_id: str, limit: Optional[int] = None) -> List[str]:
        ...

    async def count_favorites(self, campaign_id: str) -> int:
        ...
