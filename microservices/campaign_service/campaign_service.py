"""
Campaign Service Business Logic

Implements direct campaign creation, public browsing, owner edits and
milestone management for published campaigns.
"""

import logging
import math
from typing import List, Optional

from .models import (
    Campaign,
    CampaignCreateRequest,
    CampaignListQuery,
    CampaignListResponse,
    CampaignStatus,
    CampaignSummary,
    CampaignUpdateRequest,
    Milestone,
    MilestoneSaveRequest,
    MilestoneStatus,
)
from .protocols import (
    CampaignNotFoundError,
    CampaignOwnershipError,
    CampaignRepositoryProtocol,
    InvalidCampaignStateError,
    MilestoneNotFoundError,
)

logger = logging.getLogger(__name__)

# Content can only change before the campaign goes live
EDITABLE_STATUSES = {
    CampaignStatus.DRAFT,
    CampaignStatus.PENDING_APPROVAL,
    CampaignStatus.REJECTED,
}
PUBLIC_STATUSES = {CampaignStatus.ACTIVE, CampaignStatus.CLOSED}


def is_visible_to(
    status: CampaignStatus, creator_id: str, viewer_id: Optional[str] = None, is_admin: bool = False
) -> bool:
    """Active and closed campaigns are public; others only to their creator and admins"""
    if CampaignStatus(status) in PUBLIC_STATUSES or is_admin:
        return True
    return viewer_id is not None and creator_id == viewer_id


class CampaignService:
    """Campaign service business logic layer"""

    EDITABLE_STATUSES = EDITABLE_STATUSES
    PUBLIC_STATUSES = PUBLIC_STATUSES

    def __init__(self, repository: CampaignRepositoryProtocol, max_page_size: int = 100):
        self.repository = repository
        self.max_page_size = max_page_size

    # ====================
    # Campaign CRUD
    # ====================

    async def create_campaign(self, request: CampaignCreateRequest, creator_id: str) -> Campaign:
        """Create a campaign directly (without the draft workflow)"""
        campaign = await self.repository.create_campaign(request, creator_id, status=request.status)
        logger.info(f"Campaign {campaign.id} created by {creator_id}")
        return campaign

    async def get_campaign(self, campaign_id: str) -> Campaign:
        """Get a campaign with all of its content"""
        campaign = await self.repository.get_campaign(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return campaign

    async def get_visible_campaign(
        self, campaign_id: str, viewer_id: Optional[str] = None, is_admin: bool = False
    ) -> Campaign:
        """Active and closed campaigns are public; others only to their creator and admins"""
        campaign = await self.get_campaign(campaign_id)
        if is_visible_to(campaign.status, campaign.creator_id, viewer_id, is_admin):
            return campaign
        raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

    async def list_campaigns(self, query: CampaignListQuery) -> CampaignListResponse:
        """Paginated campaign listing (active campaigns unless told otherwise)"""
        if query.limit > self.max_page_size:
            query = query.model_copy(update={"limit": self.max_page_size})

        campaigns, total = await self.repository.list_campaigns(query)
        return CampaignListResponse(
            campaigns=campaigns,
            total=total,
            page=query.page,
            limit=query.limit,
            total_pages=math.ceil(total / query.limit) if total else 0,
        )

    async def update_campaign(
        self, campaign_id: str, request: CampaignUpdateRequest, requester_id: str
    ) -> Campaign:
        """Update content of a campaign the requester owns"""
        await self._get_editable_campaign(campaign_id, requester_id)
        campaign = await self.repository.update_campaign(campaign_id, request)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        logger.info(f"Campaign {campaign_id} updated by {requester_id}")
        return campaign

    async def delete_campaign(self, campaign_id: str, requester_id: str) -> None:
        """
        Delete a campaign the requester owns.

        Only campaigns that never went live can be deleted, and never once a
        payment references them: payment records are kept for good.
        """
        current = await self._get_owned_campaign(campaign_id, requester_id)
        status = CampaignStatus(current["status"])
        if status not in self.EDITABLE_STATUSES:
            raise InvalidCampaignStateError(f"Campaigns cannot be deleted once {status.value}")
        if await self.repository.count_payments(campaign_id):
            raise InvalidCampaignStateError("Campaigns with payment records cannot be deleted")

        if not await self.repository.delete_campaign(campaign_id):
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        logger.info(f"Campaign {campaign_id} deleted by {requester_id}")

    async def list_my_campaigns(
        self, user_id: str, status: Optional[CampaignStatus] = None
    ) -> List[CampaignSummary]:
        """All campaigns created by the user, in any status"""
        return await self.repository.list_creator_campaigns(user_id, status)

    # ====================
    # Milestones
    # ====================

    async def list_milestones(
        self, campaign_id: str, viewer_id: Optional[str] = None, is_admin: bool = False
    ) -> List[Milestone]:
        """Milestones of a campaign the viewer may see, ordered by target date"""
        await self._get_visible_row(campaign_id, viewer_id, is_admin)
        return await self.repository.list_milestones(campaign_id)

    async def get_milestone(
        self, milestone_id: str, viewer_id: Optional[str] = None, is_admin: bool = False
    ) -> Milestone:
        row = await self.repository.get_milestone(milestone_id)
        if row is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        try:
            await self._get_visible_row(row["campaign_id"], viewer_id, is_admin)
        except CampaignNotFoundError:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")

        milestone = await self.repository.load_milestone(milestone_id)
        if milestone is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        return milestone

    async def create_milestone(
        self, campaign_id: str, request: MilestoneSaveRequest, requester_id: str
    ) -> Milestone:
        """Add a milestone to an editable campaign the requester owns"""
        await self._get_editable_campaign(campaign_id, requester_id)
        milestone = await self.repository.create_milestone(campaign_id, request.to_input())
        logger.info(f"Milestone {milestone.id} added to campaign {campaign_id} by {requester_id}")
        return milestone

    async def update_milestone(
        self, milestone_id: str, request: MilestoneSaveRequest, requester_id: str
    ) -> Milestone:
        campaign_id = await self._get_editable_milestone(milestone_id, requester_id)
        milestone = await self.repository.update_milestone(milestone_id, campaign_id, request.to_input())
        if milestone is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        logger.info(f"Milestone {milestone_id} updated by {requester_id}")
        return milestone

    async def delete_milestone(self, milestone_id: str, requester_id: str) -> None:
        campaign_id = await self._get_editable_milestone(milestone_id, requester_id)
        if not await self.repository.delete_milestone(milestone_id, campaign_id):
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        logger.info(f"Milestone {milestone_id} deleted by {requester_id}")

    async def update_milestone_status(
        self, milestone_id: str, status: MilestoneStatus, requester_id: str
    ) -> Milestone:
        """Founder marks delivery progress on one of their milestones"""
        row = await self.repository.get_milestone(milestone_id)
        if row is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        await self._get_owned_campaign(row["campaign_id"], requester_id)

        milestone = await self.repository.update_milestone_status(milestone_id, status)
        if milestone is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        logger.info(f"Milestone {milestone_id} marked {status.value} by {requester_id}")
        return milestone

    # ====================
    # Guards
    # ====================

    async def _get_owned_campaign(self, campaign_id: str, requester_id: str) -> dict:
        current = await self.repository.get_campaign_status(campaign_id)
        if current is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        if current["creator_id"] != requester_id:
            raise CampaignOwnershipError()
        return current

    async def _get_editable_campaign(self, campaign_id: str, requester_id: str) -> dict:
        current = await self._get_owned_campaign(campaign_id, requester_id)
        status = CampaignStatus(current["status"])
        if status not in self.EDITABLE_STATUSES:
            raise InvalidCampaignStateError(f"Campaigns cannot be edited once {status.value}")
        return current

    async def _get_editable_milestone(self, milestone_id: str, requester_id: str) -> str:
        row = await self.repository.get_milestone(milestone_id)
        if row is None:
            raise MilestoneNotFoundError(f"Milestone not found: {milestone_id}")
        await self._get_editable_campaign(row["campaign_id"], requester_id)
        return row["campaign_id"]

    async def _get_visible_row(self, campaign_id: str, viewer_id: Optional[str], is_admin: bool) -> dict:
        current = await self.repository.get_campaign_status(campaign_id)
        if current is None or not is_visible_to(current["status"], current["creator_id"], viewer_id, is_admin):
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        return current
