"""
Campaign Service Data Contract

Test data factories for drafts, campaigns and their child collections.
Requests are built from the service's own request models so every test
exercises the same validation rules as the API.
"""

import random
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from microservices.campaign_service.models import (
    AssetInput,
    CampaignCreateRequest,
    CampaignListQuery,
    CampaignStatus,
    CampaignUpdateRequest,
    DraftSaveRequest,
    Milestone,
    MilestoneInput,
    MilestoneSaveRequest,
    MilestoneStatus,
    RiskInput,
    SectionInput,
    TeamMemberInput,
)


class CampaignTestDataFactory:
    """Factory for generating test data for campaign service tests

    Usage:
        draft = CampaignTestDataFactory.make_draft_request("Solar Kits")
        update = CampaignTestDataFactory.make_update_request(title="Renamed")
    """

    CATEGORIES = ["technology", "agriculture", "energy", "health", "education"]

    @staticmethod
    def make_id(prefix: str = "cmp") -> str:
        """Generate a unique ID with prefix"""
        return f"{prefix}_{uuid4().hex[:16]}"

    @staticmethod
    def make_user_id() -> str:
        return f"usr_{uuid4().hex[:16]}"

    @staticmethod
    def make_campaign_id() -> str:
        return f"cmp_{uuid4().hex[:16]}"

    @staticmethod
    def make_title() -> str:
        """Generate random campaign title"""
        adjectives = ["Solar", "Clean", "Smart", "Rural", "Open", "Mobile"]
        nouns = ["Kits", "Water", "Clinic", "Farm", "Library", "Grid"]
        return f"{random.choice(adjectives)} {random.choice(nouns)} {random.randint(1, 100)}"

    @staticmethod
    def make_milestone_input(
        title: str = "Prototype",
        amount: Decimal = Decimal("50000"),
        days_ahead: Optional[int] = 30,
        milestone_id: Optional[str] = None,
    ) -> MilestoneInput:
        return MilestoneInput(
            id=milestone_id,
            title=title,
            deliverables=f"{title} deliverables",
            amount=amount,
            target_date=date.today() + timedelta(days=days_ahead) if days_ahead is not None else None,
        )

    @classmethod
    def make_milestone_inputs(cls, count: int = 2, amount: Decimal = Decimal("50000")) -> List[MilestoneInput]:
        return [
            cls.make_milestone_input(title=f"Milestone {i + 1}", amount=amount, days_ahead=30 * (i + 1))
            for i in range(count)
        ]

    @staticmethod
    def make_team_member(name: str = "Ada Obi", role: str = "CTO") -> TeamMemberInput:
        return TeamMemberInput(name=name, role=role, bio=f"{name} builds things", email="ada@example.com")

    @staticmethod
    def make_risk(category: str = "supply") -> RiskInput:
        return RiskInput(
            category=category,
            description="Panel shipments may be delayed",
            mitigation="Two suppliers under contract",
            impact="high",
            likelihood="low",
        )

    @classmethod
    def make_draft_request(
        cls,
        title: Optional[str] = None,
        target_amount: Decimal = Decimal("100000"),
        milestones: Optional[List[MilestoneInput]] = None,
        with_content: bool = True,
    ) -> DraftSaveRequest:
        """Draft with scalars and, unless ``with_content`` is off, every child collection"""
        if not with_content:
            return DraftSaveRequest(title=title, target_amount=target_amount)
        return DraftSaveRequest(
            title=title if title is not None else cls.make_title(),
            description="Affordable solar kits for off-grid homes",
            category=random.choice(cls.CATEGORIES),
            location="Nairobi",
            stage="prototype",
            target_amount=target_amount,
            minimum_investment=Decimal("100"),
            end_date=date.today() + timedelta(days=90),
            financials={"revenue": 12000, "burn": 3000},
            problem_statement=SectionInput(content="Households lack power", images=["https://img.example.com/p1.png"]),
            solution=SectionInput(content="Pay-as-you-go kits", images=[]),
            images=["https://img.example.com/cover.png", "https://img.example.com/2.png"],
            pitch_asset=AssetInput(url="https://files.example.com/pitch.pdf", media_type="application/pdf"),
            business_plan=AssetInput(url="https://files.example.com/plan.pdf", file_name="plan.pdf"),
            milestones=milestones if milestones is not None else cls.make_milestone_inputs(),
            team=[cls.make_team_member()],
            risks=[cls.make_risk()],
        )

    @classmethod
    def make_create_request(
        cls,
        title: Optional[str] = None,
        target_amount: Decimal = Decimal("100000"),
        status: CampaignStatus = CampaignStatus.DRAFT,
        milestones: Optional[List[MilestoneInput]] = None,
    ) -> CampaignCreateRequest:
        return CampaignCreateRequest(
            title=title or cls.make_title(),
            description="Direct campaign description",
            category=random.choice(cls.CATEGORIES),
            target_amount=target_amount,
            status=status,
            milestones=milestones,
        )

    @staticmethod
    def make_update_request(**fields) -> CampaignUpdateRequest:
        return CampaignUpdateRequest(**fields)

    @staticmethod
    def make_list_query(**fields) -> CampaignListQuery:
        return CampaignListQuery(**fields)

    @staticmethod
    def make_milestone(
        title: str = "Prototype",
        amount: Decimal = Decimal("50000"),
        status: MilestoneStatus = MilestoneStatus.PENDING,
    ) -> Milestone:
        """Stored milestone, for seeding campaigns directly"""
        return Milestone(
            id=f"mst_{uuid4().hex[:16]}",
            title=title,
            deliverables=f"{title} deliverables",
            amount=amount,
            target_date=date.today() + timedelta(days=30),
            status=status,
        )

    @staticmethod
    def make_milestone_save_request(
        title: str = "Pilot",
        amount: Decimal = Decimal("25000"),
        days_ahead: Optional[int] = 60,
    ) -> MilestoneSaveRequest:
        return MilestoneSaveRequest(
            title=title,
            deliverables=f"{title} deliverables",
            amount=amount,
            target_date=date.today() + timedelta(days=days_ahead) if days_ahead is not None else None,
        )
