"""
Component test mocks.

In-memory repositories implementing the service protocols on top of a
shared InMemoryDatabase.
"""
from .account_mocks import MockAccountRepository
from .campaign_mocks import MockCampaignRepository, MockDraftRepository
from .db_mock import InMemoryDatabase, MockAsyncPostgresClient
from .engagement_mocks import MockEngagementRepository
from .notification_mocks import MockNotificationRepository
from .payment_mocks import MockPaymentRepository

__all__ = [
    "InMemoryDatabase",
    "MockAccountRepository",
    "MockAsyncPostgresClient",
    "MockCampaignRepository",
    "MockDraftRepository",
    "MockEngagementRepository",
    "MockNotificationRepository",
    "MockPaymentRepository",
]
