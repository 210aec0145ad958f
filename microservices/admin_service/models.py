"""
Admin Service Data Models
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from microservices.campaign_service.models import CampaignStatus


class CampaignRejectRequest(BaseModel):
    """Optional rejection reason sent to the founder"""
    reason: Optional[str] = Field(None, max_length=2000)


class CampaignDecision(BaseModel):
    """Result of an approval decision"""
    id: str
    title: str
    status: CampaignStatus
    creator_id: str
    rejection_reason: Optional[str] = None
    decided_at: Optional[datetime] = None
