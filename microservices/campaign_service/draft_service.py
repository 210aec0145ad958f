"""
Draft Campaign Business Logic

Owner-scoped CRUD over founder drafts.
"""

import logging
from typing import List

from .models import DraftCampaign, DraftSaveRequest, DraftSummary
from .protocols import CampaignOwnershipError, DraftNotFoundError, DraftRepositoryProtocol

logger = logging.getLogger(__name__)


class DraftService:
    """Draft campaign business logic layer"""

    def __init__(self, repository: DraftRepositoryProtocol):
        self.repository = repository

    async def create_draft(self, request: DraftSaveRequest, creator_id: str) -> DraftCampaign:
        """Save a new draft for the founder"""
        draft = await self.repository.create_draft(request, creator_id)
        logger.info(f"Draft {draft.id} saved by {creator_id}")
        return draft

    async def get_draft(self, draft_id: str, requester_id: str) -> DraftCampaign:
        """Get a draft owned by the requester"""
        return await self._get_owned_draft(draft_id, requester_id)

    async def list_drafts(self, user_id: str) -> List[DraftSummary]:
        """List the requester's drafts, most recently updated first"""
        return await self.repository.list_user_drafts(user_id)

    async def update_draft(self, draft_id: str, request: DraftSaveRequest, requester_id: str) -> DraftCampaign:
        """Overwrite draft scalars and reconcile supplied child collections"""
        await self._get_owned_draft(draft_id, requester_id)
        draft = await self.repository.update_draft(draft_id, request)
        if draft is None:
            raise DraftNotFoundError(f"Draft campaign not found: {draft_id}")
        logger.info(f"Draft {draft_id} updated by {requester_id}")
        return draft

    async def delete_draft(self, draft_id: str, requester_id: str) -> None:
        """Delete a draft and all of its content"""
        await self._get_owned_draft(draft_id, requester_id)
        if not await self.repository.delete_draft(draft_id):
            raise DraftNotFoundError(f"Draft campaign not found: {draft_id}")
        logger.info(f"Draft {draft_id} deleted by {requester_id}")

    async def _get_owned_draft(self, draft_id: str, requester_id: str) -> DraftCampaign:
        draft = await self.repository.get_draft(draft_id)
        if draft is None:
            raise DraftNotFoundError(f"Draft campaign not found: {draft_id}")
        if draft.creator_id != requester_id:
            raise CampaignOwnershipError("You do not have permission to access this draft")
        return draft
