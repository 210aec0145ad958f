"""
Repository Integration Tests

Draft, campaign, engagement and payment repositories against a real
PostgreSQL database: content round trips, child reconciliation, the
conditional status update, payment-protecting foreign keys and the
ON CONFLICT write paths.

Usage:
    TEST_POSTGRES_DB=crowdfund_test pytest tests/integration -v
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import asyncpg
import pytest

from microservices.campaign_service.campaign_repository import CampaignRepository
from microservices.campaign_service.draft_repository import DraftRepository
from microservices.campaign_service.models import (
    CampaignContentInput,
    CampaignStatus,
    MilestoneInput,
    ProjectDuration,
)
from microservices.engagement_service.engagement_repository import EngagementRepository
from microservices.payment_service.models import PaymentMethod
from microservices.payment_service.payment_repository import PaymentRepository
from tests.contracts.campaign.data_contract import CampaignTestDataFactory

pytestmark = [pytest.mark.integration, pytest.mark.asyncio]


async def _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.DRAFT):
    repository = CampaignRepository(postgres_db)
    request = CampaignTestDataFactory.make_create_request(
        title="Solar Kits", milestones=CampaignTestDataFactory.make_milestone_inputs()
    )
    return await repository.create_campaign(request, founder_id, status=status, conn=db_conn)


class TestDraftRoundTrip:

    async def test_create_then_get_returns_submitted_content(self, postgres_db, db_conn, founder_id):
        repository = DraftRepository(postgres_db)
        request = CampaignTestDataFactory.make_draft_request(title="Solar Kits")
        request.project_duration = ProjectDuration(months=6)

        created = await repository.create_draft(request, founder_id, conn=db_conn)
        loaded = await repository.get_draft(created.id, conn=db_conn)

        assert loaded.creator_id == founder_id
        assert loaded.creator.name == "Fola Founder"
        assert loaded.title == "Solar Kits"
        assert loaded.financials == {"revenue": 12000, "burn": 3000}
        assert loaded.project_duration.months == 6
        assert loaded.problem_statement.images == ["https://img.example.com/p1.png"]
        assert loaded.images == ["https://img.example.com/cover.png", "https://img.example.com/2.png"]
        assert loaded.pitch_asset.media_type == "application/pdf"
        assert loaded.business_plan.media_type == "document"
        assert [(m.title, m.amount) for m in loaded.milestones] == [
            ("Milestone 1", Decimal("50000")),
            ("Milestone 2", Decimal("50000")),
        ]
        assert [t.name for t in loaded.team] == ["Ada Obi"]
        assert [r.category for r in loaded.risks] == ["supply"]

    async def test_unreadable_financials_decode_empty(self, postgres_db, db_conn, founder_id):
        repository = DraftRepository(postgres_db)
        draft = await repository.create_draft(CampaignContentInput(title="X"), founder_id, conn=db_conn)
        await db_conn.execute(
            "UPDATE draft_campaigns SET financials = to_jsonb('not an object'::text) WHERE id = $1", draft.id
        )

        loaded = await repository.get_draft(draft.id, conn=db_conn)

        assert loaded.financials == {}

    async def test_milestones_reconciled_by_id(self, postgres_db, db_conn, founder_id):
        """[A, B] -> [B', C]: A deleted, B updated in place, C inserted"""
        repository = DraftRepository(postgres_db)
        draft = await repository.create_draft(
            CampaignTestDataFactory.make_draft_request(with_content=False), founder_id, conn=db_conn
        )
        draft = await repository.update_draft(draft.id, CampaignContentInput(milestones=[
            MilestoneInput(title="A", amount=Decimal("10"), image_url="https://img.example.com/a.png"),
            MilestoneInput(title="B", amount=Decimal("20")),
        ]), conn=db_conn)
        milestone_a, milestone_b = draft.milestones

        updated = await repository.update_draft(draft.id, CampaignContentInput(milestones=[
            MilestoneInput(id=milestone_b.id, title="B2", amount=Decimal("25")),
            MilestoneInput(title="C", amount=Decimal("30")),
        ]), conn=db_conn)

        by_title = {m.title: m for m in updated.milestones}
        assert set(by_title) == {"B2", "C"}
        assert by_title["B2"].id == milestone_b.id
        assert by_title["B2"].amount == Decimal("25")
        assert by_title["C"].id not in (milestone_a.id, milestone_b.id)
        orphaned = await db_conn.fetchval(
            "SELECT COUNT(*) FROM draft_campaign_images WHERE related_id = $1", milestone_a.id
        )
        assert orphaned == 0

    async def test_delete_removes_children(self, postgres_db, db_conn, founder_id):
        repository = DraftRepository(postgres_db)
        draft = await repository.create_draft(CampaignTestDataFactory.make_draft_request(), founder_id, conn=db_conn)

        assert await repository.delete_draft(draft.id, conn=db_conn) is True

        assert await repository.get_draft(draft.id, conn=db_conn) is None
        assert await db_conn.fetchval("SELECT COUNT(*) FROM draft_milestones WHERE draft_id = $1", draft.id) == 0


class TestCampaignStore:

    async def test_transition_only_from_expected_status(self, postgres_db, db_conn, founder_id):
        repository = CampaignRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.PENDING_APPROVAL)

        approved = await repository.transition_status(
            campaign.id, CampaignStatus.PENDING_APPROVAL, CampaignStatus.ACTIVE, conn=db_conn
        )
        again = await repository.transition_status(
            campaign.id, CampaignStatus.PENDING_APPROVAL, CampaignStatus.REJECTED, "late", conn=db_conn
        )

        assert approved["status"] == "active"
        assert again is None
        stored = await repository.get_campaign(campaign.id, conn=db_conn)
        assert stored.status == CampaignStatus.ACTIVE
        assert stored.approved_at is not None

    async def test_edit_keeps_funding_and_views(self, postgres_db, db_conn, founder_id):
        repository = CampaignRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id)
        await repository.refresh_funding(campaign.id, Decimal("750"), conn=db_conn)
        await repository.increment_view_count(campaign.id, conn=db_conn)

        updated = await repository.update_campaign(
            campaign.id, CampaignContentInput(title="Solar Kits v2"), conn=db_conn
        )

        assert updated.title == "Solar Kits v2"
        assert updated.current_amount == Decimal("750")
        assert updated.view_count == 1
        assert updated.end_date == campaign.end_date

    async def test_milestone_crud(self, postgres_db, db_conn, founder_id):
        repository = CampaignRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id)

        created = await repository.create_milestone(campaign.id, MilestoneInput(
            title="Pilot", amount=Decimal("100"), image_url="https://img.example.com/pilot.png",
        ), conn=db_conn)
        updated = await repository.update_milestone(
            created.id, campaign.id, MilestoneInput(title="Pilot v2", amount=Decimal("150")), conn=db_conn
        )
        elsewhere = await repository.update_milestone(
            created.id, "cmp_other", MilestoneInput(title="Hijack"), conn=db_conn
        )

        assert created.image_url == "https://img.example.com/pilot.png"
        assert updated.title == "Pilot v2"
        assert updated.image_url is None
        assert elsewhere is None
        assert await repository.delete_milestone(created.id, campaign.id, conn=db_conn) is True
        assert await repository.load_milestone(created.id, conn=db_conn) is None


class TestPaymentsAreNeverDeleted:

    async def test_campaign_with_payment_cannot_be_deleted(self, postgres_db, db_conn, founder_id, investor_id):
        campaigns = CampaignRepository(postgres_db)
        payments = PaymentRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.ACTIVE)
        payment = await payments.create_payment(
            "CFP-1775030400000-1", investor_id, campaign.id, Decimal("40"), None, PaymentMethod.CARD, conn=db_conn
        )

        assert await campaigns.count_payments(campaign.id, conn=db_conn) == 1
        with pytest.raises(asyncpg.ForeignKeyViolationError):
            async with db_conn.transaction():
                await campaigns.delete_campaign(campaign.id, conn=db_conn)

        assert await campaigns.get_campaign(campaign.id, conn=db_conn) is not None
        assert await payments.get_payment(payment.id, conn=db_conn) is not None

    async def test_allocated_milestone_cannot_be_deleted(self, postgres_db, db_conn, founder_id, investor_id):
        campaigns = CampaignRepository(postgres_db)
        payments = PaymentRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.ACTIVE)
        milestone = campaign.milestones[0]
        payment = await payments.create_payment(
            "CFP-1775030400000-2", investor_id, campaign.id, Decimal("40"), None, PaymentMethod.CARD, conn=db_conn
        )
        await payments.create_allocation(payment.id, milestone.id, Decimal("40"), conn=db_conn)

        with pytest.raises(asyncpg.ForeignKeyViolationError):
            async with db_conn.transaction():
                await campaigns.delete_milestone(milestone.id, campaign.id, conn=db_conn)

        assert await payments.sum_allocations(payment.id, conn=db_conn) == Decimal("40")

    async def test_duplicate_reference_returns_none(self, postgres_db, db_conn, founder_id, investor_id):
        payments = PaymentRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.ACTIVE)
        args = ("CFP-1775030400000-3", investor_id, campaign.id, Decimal("10"), None, PaymentMethod.CARD)

        first = await payments.create_payment(*args, conn=db_conn)
        second = await payments.create_payment(*args, conn=db_conn)

        assert first is not None
        assert second is None


class TestEngagementStore:

    async def test_view_conflict_and_cooldown_anchor(self, postgres_db, db_conn, founder_id):
        repository = EngagementRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.ACTIVE)
        first_seen = datetime(2026, 4, 1, 12, 0, tzinfo=timezone.utc)
        later = first_seen + timedelta(hours=3)

        assert await repository.insert_view(campaign.id, "anon:sess-1", None, first_seen, conn=db_conn) is True
        assert await repository.insert_view(campaign.id, "anon:sess-1", None, later, conn=db_conn) is False

        await repository.update_view(campaign.id, "anon:sess-1", None, later, False, conn=db_conn)
        row = await repository.lock_view(campaign.id, "anon:sess-1", conn=db_conn)
        assert row["viewed_at"] == later
        assert row["counted_at"] == first_seen

        await repository.update_view(campaign.id, "anon:sess-1", None, later, True, conn=db_conn)
        row = await repository.lock_view(campaign.id, "anon:sess-1", conn=db_conn)
        assert row["counted_at"] == later

    async def test_favorite_unique_per_user(self, postgres_db, db_conn, founder_id, investor_id):
        repository = EngagementRepository(postgres_db)
        campaign = await _campaign(postgres_db, db_conn, founder_id, status=CampaignStatus.ACTIVE)

        assert await repository.add_favorite(investor_id, campaign.id, conn=db_conn) is True
        assert await repository.add_favorite(investor_id, campaign.id, conn=db_conn) is False
        assert await repository.remove_favorite(investor_id, campaign.id, conn=db_conn) is True
        assert await repository.remove_favorite(investor_id, campaign.id, conn=db_conn) is False
