"""
Admin Service Business Logic

Campaign approval workflow: a campaign awaiting approval becomes active or
rejected. Each decision is a conditional update on ``pending_approval``
committed together with the founder's notification, so a campaign that was
already decided (or never submitted) is reported as not found.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Optional

from microservices.campaign_service.models import (
    CampaignListQuery,
    CampaignListResponse,
    CampaignStatus,
)
from microservices.campaign_service.protocols import (
    CampaignAlreadyProcessedError,
    CampaignRepositoryProtocol,
    TransactionManagerProtocol,
)

from .models import CampaignDecision

logger = logging.getLogger(__name__)

DEFAULT_REJECTION_REASON = "No reason provided"


class AdminService:
    """Admin approval workflow"""

    def __init__(
        self,
        db: TransactionManagerProtocol,
        campaign_repository: CampaignRepositoryProtocol,
        notification_service=None,
    ):
        self.db = db
        self.campaign_repository = campaign_repository
        self.notification_service = notification_service

    async def list_campaigns(
        self,
        status: Optional[CampaignStatus] = CampaignStatus.PENDING_APPROVAL,
        page: int = 1,
        limit: int = 20,
    ) -> CampaignListResponse:
        """Campaigns for review; ``status=None`` lists every status"""
        query = CampaignListQuery(status=status, include_all=status is None, page=page, limit=limit)
        campaigns, total = await self.campaign_repository.list_campaigns(query)
        return CampaignListResponse(
            campaigns=campaigns,
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
        )

    async def approve_campaign(self, campaign_id: str) -> CampaignDecision:
        """pending_approval -> active"""
        return await self._decide(campaign_id, CampaignStatus.ACTIVE, None)

    async def reject_campaign(self, campaign_id: str, reason: Optional[str] = None) -> CampaignDecision:
        """pending_approval -> rejected, keeping the reason for the founder"""
        reason = (reason or "").strip() or DEFAULT_REJECTION_REASON
        return await self._decide(campaign_id, CampaignStatus.REJECTED, reason)

    async def _decide(
        self, campaign_id: str, to_status: CampaignStatus, reason: Optional[str]
    ) -> CampaignDecision:
        approved = to_status == CampaignStatus.ACTIVE
        async with self.db.transaction() as conn:
            row = await self.campaign_repository.transition_status(
                campaign_id,
                CampaignStatus.PENDING_APPROVAL,
                to_status,
                rejection_reason=reason,
                conn=conn,
            )
            if row is None:
                raise CampaignAlreadyProcessedError()

            if self.notification_service:
                await self.notification_service.create_campaign_approval_notification(
                    row["creator_id"], campaign_id, row["title"], approved, conn=conn
                )

        logger.info(f"Campaign {campaign_id} {'approved' if approved else 'rejected'}")
        return CampaignDecision(
            id=row["id"],
            title=row["title"],
            status=CampaignStatus(row["status"]),
            creator_id=row["creator_id"],
            rejection_reason=reason,
            decided_at=datetime.now(timezone.utc),
        )
