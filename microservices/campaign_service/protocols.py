"""
Campaign Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from decimal import Decimal
from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol, Tuple

from core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError

from .models import (
    Campaign,
    CampaignContentInput,
    CampaignListQuery,
    CampaignStatus,
    CampaignSummary,
    DraftCampaign,
    DraftSummary,
    Milestone,
    MilestoneInput,
    MilestoneStatus,
)


# ====================
# Infrastructure Protocol
# ====================


class TransactionManagerProtocol(Protocol):
    """Opens transaction scopes shared across repositories"""

    def transaction(self, conn: Any = None) -> AsyncContextManager[Any]:
        """Open a transaction (or a savepoint when ``conn`` is given)"""
        ...


# ====================
# Repository Protocols
# ====================


class DraftRepositoryProtocol(Protocol):
    """Protocol for draft campaign data repository"""

    async def create_draft(self, data: CampaignContentInput, creator_id: str, conn: Any = None) -> DraftCampaign:
        ...

    async def get_draft(self, draft_id: str, conn: Any = None, for_update: bool = False) -> Optional[DraftCampaign]:
        ...

    async def update_draft(self, draft_id: str, data: CampaignContentInput, conn: Any = None) -> Optional[DraftCampaign]:
        ...

    async def list_user_drafts(self, user_id: str) -> List[DraftSummary]:
        ...

    async def delete_draft(self, draft_id: str, conn: Any = None) -> bool:
        ...

    async def delete_draft_row(self, draft_id: str, conn: Any = None) -> bool:
        """Delete only the draft row, relying on cascading foreign keys"""
        ...


class CampaignRepositoryProtocol(Protocol):
    """Protocol for campaign data repository"""

    async def create_campaign(
        self,
        data: CampaignContentInput,
        creator_id: str,
        status: CampaignStatus = CampaignStatus.DRAFT,
        conn: Any = None,
    ) -> Campaign:
        ...

    async def get_campaign(self, campaign_id: str, conn: Any = None) -> Optional[Campaign]:
        ...

    async def get_campaign_status(self, campaign_id: str, conn: Any = None, for_update: bool = False) -> Optional[Dict[str, Any]]:
        """Lightweight row: id, creator_id, title, status, target_amount, current_amount, view_count"""
        ...

    async def update_campaign(self, campaign_id: str, data: CampaignContentInput, conn: Any = None) -> Optional[Campaign]:
        ...

    async def delete_campaign(self, campaign_id: str, conn: Any = None) -> bool:
        ...

    async def count_payments(self, campaign_id: str, conn: Any = None) -> int:
        """Payment rows of any status referencing the campaign"""
        ...

    async def list_campaigns(self, query: CampaignListQuery) -> Tuple[List[CampaignSummary], int]:
        ...

    async def list_creator_campaigns(self, creator_id: str, status: Optional[CampaignStatus] = None) -> List[CampaignSummary]:
        ...

    async def list_campaigns_by_ids(self, campaign_ids: List[str]) -> List[CampaignSummary]:
        ...

    async def list_most_viewed(self, limit: int) -> List[CampaignSummary]:
        ...

    async def transition_status(
        self,
        campaign_id: str,
        from_status: CampaignStatus,
        to_status: CampaignStatus,
        rejection_reason: Optional[str] = None,
        conn: Any = None,
    ) -> Optional[Dict[str, Any]]:
        """Conditional status change; returns the updated row or None"""
        ...

    async def increment_view_count(self, campaign_id: str, conn: Any = None) -> int:
        ...

    async def refresh_funding(self, campaign_id: str, total: Decimal, conn: Any = None) -> Decimal:
        ...

    async def list_milestones(self, campaign_id: str) -> List[Milestone]:
        ...

    async def get_milestone(self, milestone_id: str, conn: Any = None) -> Optional[Dict[str, Any]]:
        """Milestone row including campaign_id"""
        ...

    async def load_milestone(self, milestone_id: str, conn: Any = None) -> Optional[Milestone]:
        ...

    async def create_milestone(self, campaign_id: str, data: MilestoneInput, conn: Any = None) -> Milestone:
        ...

    async def update_milestone(
        self, milestone_id: str, campaign_id: str, data: MilestoneInput, conn: Any = None
    ) -> Optional[Milestone]:
        ...

    async def delete_milestone(self, milestone_id: str, campaign_id: str, conn: Any = None) -> bool:
        ...

    async def update_milestone_status(self, milestone_id: str, status: MilestoneStatus) -> Optional[Milestone]:
        ...


# ====================
# Custom Exceptions
# ====================


class DraftNotFoundError(NotFoundError):
    """Draft not found"""
    default_message = "Draft campaign not found"


class CampaignNotFoundError(NotFoundError):
    """Campaign not found"""
    default_message = "Campaign not found"


class MilestoneNotFoundError(NotFoundError):
    """Milestone not found"""
    default_message = "Milestone not found"


class CampaignOwnershipError(AuthorizationError):
    """Requester does not own the draft or campaign"""
    default_message = "You do not have permission to modify this campaign"


class CampaignValidationError(ValidationError):
    """Campaign payload failed a business rule"""
    pass


class CampaignAlreadyProcessedError(ConflictError):
    """Approval decision attempted on a campaign no longer pending"""
    status_code = 404
    default_message = "Campaign not found or already processed"


class InvalidCampaignStateError(ConflictError):
    """Operation not allowed in the campaign's current status"""
    pass
