"""
Engagement Service Business Logic

View counting follows a per-viewer cool-down: the first view of a campaign
always counts, later views count only once the viewer's last counted view
is older than the cool-down (24h signed in, 6h anonymous by default).
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from microservices.campaign_service.campaign_service import PUBLIC_STATUSES, is_visible_to
from microservices.campaign_service.models import CampaignStatus, CampaignSummary
from microservices.campaign_service.protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    TransactionManagerProtocol,
)

from .models import FavoriteStatus, ViewerIdentity, ViewResult
from .protocols import EngagementRepositoryProtocol

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EngagementService:
    """View and favorite tracking"""

    def __init__(
        self,
        db: TransactionManagerProtocol,
        repository: EngagementRepositoryProtocol,
        campaign_repository: CampaignRepositoryProtocol,
        authenticated_cooldown_hours: int = 24,
        anonymous_cooldown_hours: int = 6,
        most_viewed_limit: int = 3,
        recently_viewed_limit: int = 10,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.db = db
        self.repository = repository
        self.campaign_repository = campaign_repository
        self.authenticated_cooldown = timedelta(hours=authenticated_cooldown_hours)
        self.anonymous_cooldown = timedelta(hours=anonymous_cooldown_hours)
        self.most_viewed_limit = most_viewed_limit
        self.recently_viewed_limit = recently_viewed_limit
        self.clock = clock

    # ====================
    # Views
    # ====================

    async def track_view(self, campaign_id: str, viewer: ViewerIdentity, is_admin: bool = False) -> ViewResult:
        """
        Record a view and bump the campaign's view count when it counts.

        Only public campaigns collect views; a creator or admin previewing a
        campaign that is not live gets the current count back unchanged.

        Raises:
            CampaignNotFoundError: unknown campaign, or one the viewer may not see
            ValidationError: viewer carries neither user nor session
        """
        viewer_key = viewer.viewer_key
        cooldown = self.authenticated_cooldown if viewer.is_authenticated else self.anonymous_cooldown

        async with self.db.transaction() as conn:
            campaign = await self._get_visible_row(campaign_id, viewer.user_id, is_admin, conn)
            if CampaignStatus(campaign["status"]) not in PUBLIC_STATUSES:
                return ViewResult(counted=False, view_count=campaign.get("view_count") or 0)

            now = self.clock()
            if await self.repository.insert_view(campaign_id, viewer_key, viewer.user_id, now, conn=conn):
                counted = True
            else:
                existing = await self.repository.lock_view(campaign_id, viewer_key, conn=conn)
                last_counted = existing.get("counted_at") if existing else None
                counted = last_counted is None or now - last_counted >= cooldown
                await self.repository.update_view(
                    campaign_id, viewer_key, viewer.user_id, now, counted, conn=conn
                )

            if counted:
                view_count = await self.campaign_repository.increment_view_count(campaign_id, conn=conn)
            else:
                view_count = campaign.get("view_count") or 0

        return ViewResult(counted=counted, view_count=view_count)

    async def get_most_viewed(self, limit: Optional[int] = None) -> List[CampaignSummary]:
        """Active campaigns with the most counted views"""
        return await self.campaign_repository.list_most_viewed(limit or self.most_viewed_limit)

    async def get_user_recently_viewed(self, user_id: str, limit: Optional[int] = None) -> List[CampaignSummary]:
        """Campaigns the user looked at, most recent first"""
        campaign_ids = await self.repository.list_recently_viewed_ids(user_id, limit or self.recently_viewed_limit)
        return await self.campaign_repository.list_campaigns_by_ids(campaign_ids)

    # ====================
    # Favorites
    # ====================

    async def toggle_favorite(self, user_id: str, campaign_id: str, is_admin: bool = False) -> bool:
        """Flip the favorite state; returns True when the campaign is now favorited"""
        async with self.db.transaction() as conn:
            await self._get_visible_row(campaign_id, user_id, is_admin, conn)

            if await self.repository.remove_favorite(user_id, campaign_id, conn=conn):
                favorited = False
            else:
                await self.repository.add_favorite(user_id, campaign_id, conn=conn)
                favorited = True

        logger.debug(f"User {user_id} {'favorited' if favorited else 'unfavorited'} campaign {campaign_id}")
        return favorited

    async def is_favorited(self, user_id: str, campaign_id: str) -> bool:
        return await self.repository.is_favorited(user_id, campaign_id)

    async def get_favorite_status(self, user_id: str, campaign_id: str) -> FavoriteStatus:
        return FavoriteStatus(
            campaign_id=campaign_id,
            is_favorited=await self.repository.is_favorited(user_id, campaign_id),
            favorite_count=await self.repository.count_favorites(campaign_id),
        )

    async def list_user_favorites(self, user_id: str, limit: Optional[int] = None) -> List[CampaignSummary]:
        campaign_ids = await self.repository.list_favorite_ids(user_id, limit)
        return await self.campaign_repository.list_campaigns_by_ids(campaign_ids)

    async def get_favorite_count(self, campaign_id: str) -> int:
        return await self.repository.count_favorites(campaign_id)

    async def _get_visible_row(self, campaign_id: str, viewer_id: Optional[str], is_admin: bool, conn) -> dict:
        campaign = await self.campaign_repository.get_campaign_status(campaign_id, conn=conn)
        if campaign is None or not is_visible_to(campaign["status"], campaign["creator_id"], viewer_id, is_admin):
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign
