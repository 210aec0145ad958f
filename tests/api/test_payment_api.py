"""
Funding and Notifications - API Tests

Initialize -> verify settles the payment, funds the campaign and notifies
the founder.
"""

from decimal import Decimal

import pytest

from microservices.account_service.models import UserRole
from microservices.campaign_service.models import CampaignStatus
from microservices.notification_service.models import NotificationType
from tests.contracts.campaign.data_contract import CampaignTestDataFactory
from tests.contracts.payment.data_contract import PaymentTestDataFactory

pytestmark = [pytest.mark.api, pytest.mark.asyncio]


@pytest.fixture
def campaign(campaign_repository, founder):
    return campaign_repository.set_campaign(founder.id, title="Solar Kits", target_amount=Decimal("10000"))


async def _initialize(client, headers, campaign_id, amount="2500", milestone_ids=None):
    payload = PaymentTestDataFactory.make_initialize_request(
        campaign_id, amount=Decimal(amount), milestone_ids=milestone_ids
    ).model_dump(mode="json")
    return await client.post("/api/payments/initialize", json=payload, headers=headers)


class TestContributionFlow:

    async def test_initialize_verify_and_stats(self, client, campaign, founder, investor, auth_headers):
        investor_headers = auth_headers(investor)

        initialized = await _initialize(client, investor_headers, campaign.id)

        assert initialized.status_code == 201
        payment = initialized.json()["data"]["payment"]
        assert payment["status"] == "pending"
        assert payment["reference"].startswith("CFP-")

        verified = await client.get(f"/api/payments/verify/{payment['reference']}", headers=investor_headers)
        assert verified.json()["data"]["payment"]["status"] == "completed"

        stats = await client.get(f"/api/payments/stats/campaign/{campaign.id}", headers=investor_headers)
        assert stats.json()["data"]["funding_percentage"] == 25
        assert stats.json()["data"]["contributor_count"] == 1

        history = await client.get("/api/payments/history", headers=investor_headers)
        assert [p["id"] for p in history.json()["data"]["payments"]] == [payment["id"]]

        campaign_payments = await client.get(f"/api/payments/campaign/{campaign.id}", headers=auth_headers(founder))
        assert len(campaign_payments.json()["data"]["payments"]) == 1

    async def test_verify_twice_counts_once(self, client, campaign, investor, auth_headers):
        headers = auth_headers(investor)
        reference = (await _initialize(client, headers, campaign.id)).json()["data"]["payment"]["reference"]

        await client.get(f"/api/payments/verify/{reference}", headers=headers)
        await client.get(f"/api/payments/verify/{reference}", headers=headers)

        stats = await client.get(f"/api/payments/stats/campaign/{campaign.id}", headers=headers)
        assert Decimal(str(stats.json()["data"]["current_amount"])) == Decimal("2500")

    async def test_split_across_milestones(self, client, campaign_repository, founder, investor, auth_headers):
        milestones = [
            CampaignTestDataFactory.make_milestone("Pilot", Decimal("500")),
            CampaignTestDataFactory.make_milestone("Rollout", Decimal("1500")),
        ]
        campaign = campaign_repository.set_campaign(founder.id, milestones=milestones)
        milestone_ids = [m.id for m in milestones]

        response = await _initialize(client, auth_headers(investor), campaign.id, "100.01", milestone_ids)

        allocations = response.json()["data"]["payment"]["allocations"]
        assert sorted(Decimal(str(a["amount"])) for a in allocations) == [Decimal("50.00"), Decimal("50.01")]

    async def test_founder_cannot_invest(self, client, campaign, founder, auth_headers):
        response = await _initialize(client, auth_headers(founder), campaign.id)

        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Investor role required"

    async def test_inactive_campaign(self, client, campaign_repository, founder, investor, auth_headers):
        pending = campaign_repository.set_campaign(founder.id, status=CampaignStatus.PENDING_APPROVAL)

        response = await _initialize(client, auth_headers(investor), pending.id)

        assert response.status_code == 400
        assert response.json()["success"] is False

    async def test_other_user_cannot_verify(self, client, campaign, investor, account_repository, auth_headers):
        stranger = account_repository.set_user("usr_stranger", "stranger@example.com", UserRole.INVESTOR)
        reference = (await _initialize(client, auth_headers(investor), campaign.id)).json()["data"]["payment"]["reference"]

        response = await client.get(f"/api/payments/verify/{reference}", headers=auth_headers(stranger))

        assert response.status_code == 403


class TestNotifications:

    async def test_founder_notified_of_contribution(self, client, campaign, founder, investor, auth_headers):
        investor_headers = auth_headers(investor)
        founder_headers = auth_headers(founder)
        reference = (await _initialize(client, investor_headers, campaign.id)).json()["data"]["payment"]["reference"]
        await client.get(f"/api/payments/verify/{reference}", headers=investor_headers)

        listing = await client.get("/api/notifications", headers=founder_headers)
        unread = await client.get("/api/notifications/unread-count", headers=founder_headers)

        notifications = listing.json()["data"]["notifications"]
        assert [n["type"] for n in notifications] == ["payment_received"]
        assert unread.json()["data"] == {"count": 1}

        notification_id = notifications[0]["id"]
        await client.patch(f"/api/notifications/{notification_id}/read", headers=founder_headers)
        assert (await client.get("/api/notifications/unread-count", headers=founder_headers)).json()["data"] == {"count": 0}

        # Other users cannot touch it
        foreign = await client.delete(f"/api/notifications/{notification_id}", headers=investor_headers)
        assert foreign.status_code == 404

        deleted = await client.delete(f"/api/notifications/{notification_id}", headers=founder_headers)
        assert deleted.json()["success"] is True

    async def test_mark_all_read(self, client, founder, auth_headers, factory):
        for i in range(3):
            await factory.notification_service.create_notification(founder.id, NotificationType.SYSTEM, f"T{i}", "m")

        response = await client.patch("/api/notifications/mark-all-read", headers=auth_headers(founder))

        assert response.json()["data"] == {"updated": 3}
