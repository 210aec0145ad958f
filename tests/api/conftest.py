"""
API Test Fixtures

The real FastAPI application driven through httpx's ASGI transport, with
the factory bound to in-memory repositories instead of PostgreSQL.
"""

import httpx
import pytest

from core.config import AuthConfig, PlatformConfig
from core.jwt_manager import TokenClaims
from microservices.account_service.models import UserRole
from microservices.platform_service.factory import PlatformServiceFactory
from microservices.platform_service.main import create_app

from tests.component.mocks import (
    InMemoryDatabase,
    MockAccountRepository,
    MockCampaignRepository,
    MockDraftRepository,
    MockEngagementRepository,
    MockNotificationRepository,
    MockPaymentRepository,
)

API_ADMIN_KEYCODE = "api-admin-keycode"


# ====================
# Application
# ====================


@pytest.fixture
def settings():
    return PlatformConfig(
        service_name="crowdfund_platform_test",
        auth=AuthConfig(jwt_secret="api-test-secret", admin_keycode=API_ADMIN_KEYCODE),
    )


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def account_repository(db):
    return MockAccountRepository(db)


@pytest.fixture
def campaign_repository(db):
    return MockCampaignRepository(db)


@pytest.fixture
def notification_repository(db):
    return MockNotificationRepository(db)


@pytest.fixture
def factory(settings, db, account_repository, campaign_repository, notification_repository):
    factory = PlatformServiceFactory(settings)
    factory.bind(
        db,
        user_repository=account_repository,
        draft_repository=MockDraftRepository(db),
        campaign_repository=campaign_repository,
        engagement_repository=MockEngagementRepository(db),
        payment_repository=MockPaymentRepository(db),
        notification_repository=notification_repository,
    )
    factory.account_service.bcrypt_rounds = 4
    return factory


@pytest.fixture
async def client(settings, factory):
    """Async HTTP client against the in-process app"""
    app = create_app(settings, factory=factory)
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
        yield client


# ====================
# Users and tokens
# ====================


@pytest.fixture
def auth_headers(factory):
    """Build bearer headers for a stored user"""
    def _headers(user) -> dict:
        token = factory.jwt_manager.create_access_token(TokenClaims(user_id=user.id, email=user.email))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def founder(account_repository):
    return account_repository.set_user(
        "usr_apifounder0001", "founder@example.com", UserRole.FOUNDER, full_name="Fola Founder", is_verified=True
    )


@pytest.fixture
def investor(account_repository):
    return account_repository.set_user(
        "usr_apiinvestor001", "investor@example.com", UserRole.INVESTOR, full_name="Ivy Investor"
    )


@pytest.fixture
def admin(account_repository):
    return account_repository.set_user(
        "usr_apiadmin000001", "admin@example.com", UserRole.ADMIN, full_name="Ada Admin", is_verified=True
    )
