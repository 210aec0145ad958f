"""
Campaign Service Data Models

Canonical data structures for draft campaigns, published campaigns and
their owned child collections (sections, images, assets, milestones,
team members, risks).
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, computed_field, field_validator


# ====================
# Enums
# ====================


class CampaignStatus(str, Enum):
    """Campaign lifecycle status"""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    ACTIVE = "active"
    REJECTED = "rejected"
    CLOSED = "closed"


class MilestoneStatus(str, Enum):
    """Milestone delivery status"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class SectionType(str, Enum):
    """Narrative sections and image groupings"""
    MAIN = "main"
    PROBLEM_STATEMENT = "problem_statement"
    SOLUTION = "solution"
    MILESTONE = "milestone"


class AssetType(str, Enum):
    """Single-file campaign assets"""
    PITCH = "pitch"
    BUSINESS_PLAN = "business_plan"


class CampaignSort(str, Enum):
    """Sort keys for campaign listings"""
    NEWEST = "newest"
    MOST_FUNDED = "most_funded"
    END_DATE = "end_date"


def funding_percentage(current: Decimal, target: Decimal) -> int:
    """Whole percent of the target raised, half rounded up; 0 without a target"""
    if not target or target <= 0:
        return 0
    return int((Decimal(current) * 100 / Decimal(target)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class BaseContract(BaseModel):
    """Base model for all contracts"""

    model_config = {
        "from_attributes": True,
    }


# ====================
# Input Models (request payloads)
# ====================


class ProjectDuration(BaseContract):
    """Planned project timeline"""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    months: Optional[int] = Field(None, ge=0)


class SectionInput(BaseContract):
    """Narrative section with optional images"""
    content: str = ""
    images: List[str] = Field(default_factory=list, description="Image URLs")


class AssetInput(BaseContract):
    """Pitch or business plan reference"""
    url: str = Field(..., min_length=1)
    media_type: Optional[str] = None
    file_name: Optional[str] = None


class MilestoneInput(BaseContract):
    """Milestone as submitted by the founder; ``id`` marks an existing row"""
    id: Optional[str] = None
    title: str = ""
    deliverables: str = ""
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: Optional[date] = None
    image_url: Optional[str] = None


class TeamMemberInput(BaseContract):
    """Team member as submitted by the founder"""
    id: Optional[str] = None
    name: str = ""
    role: str = ""
    bio: str = ""
    email: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    image_url: Optional[str] = None


class RiskInput(BaseContract):
    """Risk disclosure as submitted by the founder"""
    id: Optional[str] = None
    category: str = ""
    description: str = ""
    mitigation: str = ""
    impact: str = "medium"
    likelihood: str = "medium"


class CampaignContentInput(BaseContract):
    """
    Full campaign content payload shared by drafts and campaigns.

    ``None`` on a child collection means "not supplied": create skips it and
    update leaves the stored rows untouched.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    stage: Optional[str] = None
    target_amount: Optional[Decimal] = Field(None, ge=0)
    minimum_investment: Optional[Decimal] = Field(None, ge=0)
    end_date: Optional[date] = None
    project_duration: Optional[ProjectDuration] = None
    financials: Optional[Dict[str, Any]] = None

    problem_statement: Optional[SectionInput] = None
    solution: Optional[SectionInput] = None
    images: Optional[List[str]] = None
    pitch_asset: Optional[AssetInput] = None
    business_plan: Optional[AssetInput] = None
    milestones: Optional[List[MilestoneInput]] = None
    team: Optional[List[TeamMemberInput]] = None
    risks: Optional[List[RiskInput]] = None

    def resolved_end_date(self) -> Optional[date]:
        """Explicit end date, falling back to the project duration end"""
        if self.end_date:
            return self.end_date
        if self.project_duration and self.project_duration.end_date:
            return self.project_duration.end_date
        return None


class DraftSaveRequest(CampaignContentInput):
    """Create/update draft request; drafts may be saved incomplete"""
    pass


class CampaignCreateRequest(CampaignContentInput):
    """Direct campaign creation request"""
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    target_amount: Decimal = Field(..., gt=0)
    status: CampaignStatus = CampaignStatus.DRAFT

    @field_validator("status")
    @classmethod
    def validate_initial_status(cls, v):
        if v not in (CampaignStatus.DRAFT, CampaignStatus.PENDING_APPROVAL):
            raise ValueError("New campaigns start as draft or pending_approval")
        return v


class CampaignUpdateRequest(CampaignContentInput):
    """Campaign content update; status and funding are not editable"""
    pass


class CampaignListQuery(BaseContract):
    """Filters for campaign listings"""
    category: Optional[str] = None
    stage: Optional[str] = None
    creator_id: Optional[str] = None
    status: Optional[CampaignStatus] = None
    search: Optional[str] = None
    include_all: bool = False
    sort: CampaignSort = CampaignSort.NEWEST
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ====================
# Stored Entities
# ====================


class CampaignSection(BaseContract):
    """Narrative section with its images"""
    id: str
    section_type: SectionType
    content: str = ""
    images: List[str] = Field(default_factory=list)


class CampaignAsset(BaseContract):
    """Pitch or business plan asset"""
    id: str
    asset_type: AssetType
    url: str
    media_type: Optional[str] = None
    file_name: Optional[str] = None


class Milestone(BaseContract):
    """Funding sub-goal"""
    id: str
    title: str = ""
    deliverables: str = ""
    amount: Decimal = Decimal("0")
    target_date: Optional[date] = None
    status: MilestoneStatus = MilestoneStatus.PENDING
    image_url: Optional[str] = None


class TeamMember(BaseContract):
    """Team member profile"""
    id: str
    name: str = ""
    role: str = ""
    bio: str = ""
    email: Optional[str] = None
    linkedin: Optional[str] = None
    twitter: Optional[str] = None
    image_url: Optional[str] = None


class Risk(BaseContract):
    """Risk disclosure"""
    id: str
    category: str = ""
    description: str = ""
    mitigation: str = ""
    impact: str = "medium"
    likelihood: str = "medium"


class CreatorInfo(BaseContract):
    """Public creator summary"""
    id: str
    name: str = "Anonymous"
    avatar: Optional[str] = None


class CampaignContent(BaseContract):
    """Hydrated content shared by drafts and campaigns"""
    id: str
    creator_id: str
    creator: Optional[CreatorInfo] = None
    title: str = ""
    description: str = ""
    category: str = ""
    location: str = ""
    stage: str = "concept"
    target_amount: Decimal = Decimal("0")
    minimum_investment: Decimal = Decimal("0")
    end_date: Optional[date] = None
    project_duration: ProjectDuration = Field(default_factory=ProjectDuration)
    financials: Dict[str, Any] = Field(default_factory=dict)

    problem_statement: Optional[CampaignSection] = None
    solution: Optional[CampaignSection] = None
    images: List[str] = Field(default_factory=list)
    pitch_asset: Optional[CampaignAsset] = None
    business_plan: Optional[CampaignAsset] = None
    milestones: List[Milestone] = Field(default_factory=list)
    team: List[TeamMember] = Field(default_factory=list)
    risks: List[Risk] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_content_input(self) -> CampaignContentInput:
        """Copy of this content with child ids stripped, ready to re-insert"""
        def section(s: Optional[CampaignSection]) -> Optional[SectionInput]:
            return SectionInput(content=s.content, images=list(s.images)) if s else None

        def asset(a: Optional[CampaignAsset]) -> Optional[AssetInput]:
            return AssetInput(url=a.url, media_type=a.media_type, file_name=a.file_name) if a else None

        return CampaignContentInput(
            title=self.title,
            description=self.description,
            category=self.category,
            location=self.location,
            stage=self.stage,
            target_amount=self.target_amount,
            minimum_investment=self.minimum_investment,
            end_date=self.end_date,
            project_duration=self.project_duration,
            financials=dict(self.financials),
            problem_statement=section(self.problem_statement),
            solution=section(self.solution),
            images=list(self.images),
            pitch_asset=asset(self.pitch_asset),
            business_plan=asset(self.business_plan),
            milestones=[
                MilestoneInput(**m.model_dump(exclude={"id", "status"})) for m in self.milestones
            ],
            team=[TeamMemberInput(**t.model_dump(exclude={"id"})) for t in self.team],
            risks=[RiskInput(**r.model_dump(exclude={"id"})) for r in self.risks],
        )


class DraftCampaign(CampaignContent):
    """Mutable pre-publication campaign"""
    pass


class Campaign(CampaignContent):
    """Published campaign"""
    status: CampaignStatus = CampaignStatus.DRAFT
    current_amount: Decimal = Decimal("0")
    view_count: int = 0
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None

    @computed_field
    @property
    def funding_percentage(self) -> int:
        return funding_percentage(self.current_amount, self.target_amount)


# ====================
# Summaries / Responses
# ====================


class DraftSummary(BaseContract):
    """Lightweight draft listing entry"""
    id: str
    title: str = "Untitled Campaign"
    description: str = ""
    category: str = ""
    stage: str = "concept"
    target_amount: Decimal = Decimal("0")
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CampaignSummary(BaseContract):
    """Campaign listing entry"""
    id: str
    title: str
    description: str = ""
    category: str = ""
    location: str = ""
    stage: str = "concept"
    status: CampaignStatus
    target_amount: Decimal = Decimal("0")
    current_amount: Decimal = Decimal("0")
    view_count: int = 0
    end_date: Optional[date] = None
    image_url: Optional[str] = None
    creator: Optional[CreatorInfo] = None
    created_at: Optional[datetime] = None

    @computed_field
    @property
    def funding_percentage(self) -> int:
        return funding_percentage(self.current_amount, self.target_amount)


class CampaignListResponse(BaseContract):
    """Paginated campaign listing"""
    campaigns: List[CampaignSummary]
    total: int
    page: int
    limit: int
    total_pages: int


class PublishedCampaignSummary(BaseContract):
    """Result of publishing a draft"""
    id: str
    title: str
    description: str
    category: str
    status: CampaignStatus
    created_at: Optional[datetime] = None
    creator: Optional[CreatorInfo] = None


class MilestoneStatusUpdateRequest(BaseContract):
    """Milestone status change"""
    status: MilestoneStatus


class MilestoneSaveRequest(BaseContract):
    """Create or overwrite a single milestone"""
    title: str = Field(..., min_length=1, max_length=255)
    deliverables: str = ""
    amount: Decimal = Field(default=Decimal("0"), ge=0)
    target_date: Optional[date] = None
    image_url: Optional[str] = None

    def to_input(self) -> MilestoneInput:
        return MilestoneInput(**self.model_dump())
