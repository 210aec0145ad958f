"""
Platform Service Factory

Wires repositories and services together. This is the ONLY place that
creates I/O-dependent objects; tests call ``bind()`` with in-memory
doubles instead of ``initialize()``.

Usage:
    factory = PlatformServiceFactory(settings)
    await factory.initialize()
    factory.campaign_service
"""

import logging
from typing import Optional

from core.config import PlatformConfig, get_settings
from core.jwt_manager import JWTManager
from core.postgres_client import PostgresClient
from microservices.account_service.account_service import AccountService
from microservices.admin_service.admin_service import AdminService
from microservices.campaign_service.campaign_service import CampaignService
from microservices.campaign_service.draft_service import DraftService
from microservices.campaign_service.publication_service import PublicationService
from microservices.engagement_service.engagement_service import EngagementService
from microservices.notification_service.notification_service import NotificationService
from microservices.payment_service.payment_service import PaymentService

logger = logging.getLogger(__name__)

NOT_INITIALIZED = "Factory not initialized. Call initialize() first."


class PlatformServiceFactory:
    """Factory for creating platform service components"""

    def __init__(self, settings: Optional[PlatformConfig] = None):
        self.settings = settings or get_settings()
        auth = self.settings.auth
        self.jwt_manager = JWTManager(
            secret_key=auth.jwt_secret or None,
            algorithm=auth.jwt_algorithm,
            issuer=auth.jwt_issuer,
            access_token_expiry=auth.access_token_expiry,
        )

        self._db = None
        self._user_repository = None
        self._draft_service: Optional[DraftService] = None
        self._publication_service: Optional[PublicationService] = None
        self._campaign_service: Optional[CampaignService] = None
        self._engagement_service: Optional[EngagementService] = None
        self._notification_service: Optional[NotificationService] = None
        self._payment_service: Optional[PaymentService] = None
        self._account_service: Optional[AccountService] = None
        self._admin_service: Optional[AdminService] = None

    async def initialize(self) -> None:
        """Open the database pool and build every service"""
        # Import real repositories here (not at module level)
        from microservices.account_service.account_repository import AccountRepository
        from microservices.campaign_service.campaign_repository import CampaignRepository
        from microservices.campaign_service.draft_repository import DraftRepository
        from microservices.engagement_service.engagement_repository import EngagementRepository
        from microservices.notification_service.notification_repository import NotificationRepository
        from microservices.payment_service.payment_repository import PaymentRepository

        from .schema import apply_schema

        logger.info("Initializing platform components...")

        db = PostgresClient(self.settings.infrastructure)
        await db.initialize()
        if self.settings.auto_migrate:
            await apply_schema(db)

        self.bind(
            db,
            user_repository=AccountRepository(db),
            draft_repository=DraftRepository(db),
            campaign_repository=CampaignRepository(
                db, default_duration_days=self.settings.default_campaign_duration_days
            ),
            engagement_repository=EngagementRepository(db),
            payment_repository=PaymentRepository(db),
            notification_repository=NotificationRepository(db),
        )
        logger.info("Platform components initialized")

    def bind(
        self,
        db,
        user_repository,
        draft_repository,
        campaign_repository,
        engagement_repository,
        payment_repository,
        notification_repository,
    ) -> None:
        """Build the service graph on top of the given repositories"""
        engagement = self.settings.engagement

        self._db = db
        self._user_repository = user_repository
        self._notification_service = NotificationService(notification_repository)
        self._draft_service = DraftService(draft_repository)
        self._publication_service = PublicationService(db, draft_repository, campaign_repository)
        self._campaign_service = CampaignService(
            campaign_repository, max_page_size=self.settings.max_page_size
        )
        self._engagement_service = EngagementService(
            db,
            engagement_repository,
            campaign_repository,
            authenticated_cooldown_hours=engagement.authenticated_view_cooldown_hours,
            anonymous_cooldown_hours=engagement.anonymous_view_cooldown_hours,
            most_viewed_limit=engagement.most_viewed_limit,
            recently_viewed_limit=engagement.recently_viewed_limit,
        )
        self._payment_service = PaymentService(
            db,
            payment_repository,
            campaign_repository,
            notification_service=self._notification_service,
            reference_prefix=self.settings.payment_reference_prefix,
        )
        self._account_service = AccountService(
            db,
            user_repository,
            self.jwt_manager,
            notification_service=self._notification_service,
            admin_keycode=self.settings.auth.admin_keycode,
        )
        self._admin_service = AdminService(
            db, campaign_repository, notification_service=self._notification_service
        )

    async def close(self) -> None:
        """Close the database pool"""
        logger.info("Closing platform components...")
        if isinstance(self._db, PostgresClient):
            await self._db.close()
        self._db = None
        logger.info("Platform components closed")

    async def health_check(self) -> bool:
        """Database reachability"""
        if self._db is None:
            return False
        return await self._db.health_check()

    @property
    def is_initialized(self) -> bool:
        return self._db is not None

    @property
    def user_repository(self):
        """Account lookups used by the auth dependencies"""
        if not self._user_repository:
            raise RuntimeError(NOT_INITIALIZED)
        return self._user_repository

    @property
    def draft_service(self) -> DraftService:
        if not self._draft_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._draft_service

    @property
    def publication_service(self) -> PublicationService:
        if not self._publication_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._publication_service

    @property
    def campaign_service(self) -> CampaignService:
        if not self._campaign_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._campaign_service

    @property
    def engagement_service(self) -> EngagementService:
        if not self._engagement_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._engagement_service

    @property
    def notification_service(self) -> NotificationService:
        if not self._notification_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._notification_service

    @property
    def payment_service(self) -> PaymentService:
        if not self._payment_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._payment_service

    @property
    def account_service(self) -> AccountService:
        if not self._account_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._account_service

    @property
    def admin_service(self) -> AdminService:
        if not self._admin_service:
            raise RuntimeError(NOT_INITIALIZED)
        return self._admin_service
