"""
Component Test Fixtures

Services wired to in-memory repositories that share one InMemoryDatabase,
so cross-service workflows (publish -> approve -> fund) run end to end
with real transaction rollback semantics.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.jwt_manager import JWTManager
from microservices.account_service.account_service import AccountService
from microservices.account_service.models import UserRole
from microservices.admin_service.admin_service import AdminService
from microservices.campaign_service.campaign_service import CampaignService
from microservices.campaign_service.draft_service import DraftService
from microservices.campaign_service.publication_service import PublicationService
from microservices.engagement_service.engagement_service import EngagementService
from microservices.notification_service.notification_service import NotificationService
from microservices.payment_service.payment_service import PaymentService

from tests.component.mocks import (
    InMemoryDatabase,
    MockAccountRepository,
    MockCampaignRepository,
    MockDraftRepository,
    MockEngagementRepository,
    MockNotificationRepository,
    MockPaymentRepository,
)

TEST_ADMIN_KEYCODE = "component-admin-keycode"


class FakeClock:
    """Controllable clock for cool-down tests"""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ====================
# Infrastructure
# ====================


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def jwt_manager():
    return JWTManager(secret_key="component-test-secret", access_token_expiry=3600)


# ====================
# Repositories
# ====================


@pytest.fixture
def account_repository(db):
    return MockAccountRepository(db)


@pytest.fixture
def draft_repository(db):
    return MockDraftRepository(db)


@pytest.fixture
def campaign_repository(db):
    return MockCampaignRepository(db)


@pytest.fixture
def engagement_repository(db):
    return MockEngagementRepository(db)


@pytest.fixture
def payment_repository(db):
    return MockPaymentRepository(db)


@pytest.fixture
def notification_repository(db):
    return MockNotificationRepository(db)


# ====================
# Services
# ====================


@pytest.fixture
def notification_service(notification_repository):
    return NotificationService(notification_repository)


@pytest.fixture
def draft_service(draft_repository):
    return DraftService(draft_repository)


@pytest.fixture
def publication_service(db, draft_repository, campaign_repository):
    return PublicationService(db, draft_repository, campaign_repository)


@pytest.fixture
def campaign_service(campaign_repository):
    return CampaignService(campaign_repository, max_page_size=50)


@pytest.fixture
def engagement_service(db, engagement_repository, campaign_repository, clock):
    return EngagementService(db, engagement_repository, campaign_repository, clock=clock)


@pytest.fixture
def payment_service(db, payment_repository, campaign_repository, notification_service):
    return PaymentService(db, payment_repository, campaign_repository, notification_service=notification_service)


@pytest.fixture
def account_service(db, account_repository, jwt_manager, notification_service):
    return AccountService(
        db,
        account_repository,
        jwt_manager,
        notification_service=notification_service,
        admin_keycode=TEST_ADMIN_KEYCODE,
        bcrypt_rounds=4,
    )


@pytest.fixture
def admin_service(db, campaign_repository, notification_service):
    return AdminService(db, campaign_repository, notification_service=notification_service)


# ====================
# Seeded users
# ====================


@pytest.fixture
def founder(account_repository):
    return account_repository.set_user(
        "usr_founder0000001", "founder@example.com", UserRole.FOUNDER, full_name="Fola Founder", is_verified=True
    )


@pytest.fixture
def investor(account_repository):
    return account_repository.set_user(
        "usr_investor000001", "investor@example.com", UserRole.INVESTOR, full_name="Ivy Investor"
    )


@pytest.fixture
def other_user(account_repository):
    return account_repository.set_user(
        "usr_other000000001", "other@example.com", UserRole.INVESTOR, full_name="Otto Other"
    )
