"""
Campaign Publication Workflow

Converts a founder's draft into a campaign awaiting admin approval.

The conversion runs in one transaction holding a row lock on the draft:
the campaign and all of its children are inserted, then the draft is
removed. Removing the draft happens inside a savepoint; if it fails the
campaign is still committed and the leftover draft is only logged.
"""

import logging

from .models import CampaignStatus, DraftCampaign, PublishedCampaignSummary
from .protocols import (
    CampaignOwnershipError,
    CampaignRepositoryProtocol,
    CampaignValidationError,
    DraftNotFoundError,
    DraftRepositoryProtocol,
    TransactionManagerProtocol,
)

logger = logging.getLogger(__name__)


class PublicationService:
    """Draft -> pending_approval campaign workflow"""

    def __init__(
        self,
        db: TransactionManagerProtocol,
        draft_repository: DraftRepositoryProtocol,
        campaign_repository: CampaignRepositoryProtocol,
    ):
        self.db = db
        self.draft_repository = draft_repository
        self.campaign_repository = campaign_repository

    async def publish(self, draft_id: str, requester_id: str) -> PublishedCampaignSummary:
        """
        Publish a draft.

        Concurrent calls for the same draft serialize on the draft row lock;
        whichever runs second no longer finds the draft.

        Raises:
            DraftNotFoundError: draft missing (or already published)
            CampaignOwnershipError: requester is not the draft's creator
            CampaignValidationError: draft lacks a title
        """
        async with self.db.transaction() as conn:
            draft = await self.draft_repository.get_draft(draft_id, conn=conn, for_update=True)
            if draft is None:
                raise DraftNotFoundError(f"Draft campaign not found: {draft_id}")
            if draft.creator_id != requester_id:
                raise CampaignOwnershipError("You do not have permission to publish this draft")
            self._validate_publishable(draft)

            campaign = await self.campaign_repository.create_campaign(
                draft.to_content_input(),
                draft.creator_id,
                status=CampaignStatus.PENDING_APPROVAL,
                conn=conn,
            )
            await self._discard_draft(draft_id, conn)

        logger.info(f"Draft {draft_id} published as campaign {campaign.id} (pending approval)")
        return PublishedCampaignSummary(
            id=campaign.id,
            title=campaign.title,
            description=campaign.description,
            category=campaign.category,
            status=campaign.status,
            created_at=campaign.created_at,
            creator=campaign.creator,
        )

    def _validate_publishable(self, draft: DraftCampaign) -> None:
        if not draft.title.strip():
            raise CampaignValidationError("A campaign title is required before publishing")

    async def _discard_draft(self, draft_id: str, conn) -> None:
        """Remove the published draft without failing the publication"""
        try:
            async with self.db.transaction(conn) as savepoint:
                await self.draft_repository.delete_draft(draft_id, conn=savepoint)
            return
        except Exception as e:
            logger.error(f"Failed to delete published draft {draft_id}, retrying row delete: {e}", exc_info=True)

        try:
            async with self.db.transaction(conn) as savepoint:
                await self.draft_repository.delete_draft_row(draft_id, conn=savepoint)
        except Exception as e:
            logger.error(f"Draft {draft_id} left orphaned after publication: {e}", exc_info=True)
