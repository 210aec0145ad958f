"""
Notification Service Business Logic

Builds workflow notifications and exposes owner-scoped read-state
management. Workflow callers pass ``conn`` so the notification commits
together with the state change that produced it.
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from .models import Notification, NotificationListResponse, NotificationType, RelatedType
from .protocols import NotificationNotFoundError, NotificationRepositoryProtocol

logger = logging.getLogger(__name__)


class NotificationService:
    """Notification business logic layer"""

    def __init__(self, repository: NotificationRepositoryProtocol):
        self.repository = repository

    # ====================
    # Workflow notifications
    # ====================

    async def create_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_type: Optional[RelatedType] = None,
        conn: Any = None,
    ) -> Notification:
        notification = await self.repository.create_notification(
            user_id, notification_type, title, message,
            related_id=related_id, related_type=related_type, conn=conn,
        )
        logger.debug(f"Notification {notification.id} ({notification_type.value}) created for {user_id}")
        return notification

    async def create_campaign_approval_notification(
        self,
        user_id: str,
        campaign_id: str,
        campaign_title: str,
        approved: bool,
        conn: Any = None,
    ) -> Notification:
        """Tell a founder their campaign was approved or rejected"""
        if approved:
            title = "Campaign Approved"
            message = f'Your campaign "{campaign_title}" has been approved and is now live.'
        else:
            title = "Campaign Rejected"
            message = (
                f'Your campaign "{campaign_title}" has been rejected. '
                "Check your emails for more information."
            )
        return await self.repository.create_notification(
            user_id,
            NotificationType.CAMPAIGN_APPROVAL,
            title,
            message,
            related_id=campaign_id,
            related_type=RelatedType.CAMPAIGN,
            conn=conn,
        )

    async def create_founder_approval_notification(
        self, user_id: str, approved: bool, conn: Any = None
    ) -> Notification:
        """Tell a founder the outcome of their account verification"""
        if approved:
            title = "Founder Account Approved"
            message = "Your founder account has been verified. You can now publish campaigns."
        else:
            title = "Founder Account Rejected"
            message = "Your founder application has been rejected. Check your emails for more information."
        return await self.repository.create_notification(
            user_id,
            NotificationType.FOUNDER_APPROVAL,
            title,
            message,
            related_id=user_id,
            related_type=RelatedType.USER,
            conn=conn,
        )

    async def create_payment_received_notification(
        self,
        user_id: str,
        campaign_id: str,
        campaign_title: str,
        amount: Decimal,
        conn: Any = None,
    ) -> Notification:
        """Tell a founder a contribution to their campaign settled"""
        return await self.repository.create_notification(
            user_id,
            NotificationType.PAYMENT_RECEIVED,
            "New Contribution",
            f'Your campaign "{campaign_title}" received a contribution of {amount:,.2f}.',
            related_id=campaign_id,
            related_type=RelatedType.CAMPAIGN,
            conn=conn,
        )

    # ====================
    # User operations
    # ====================

    async def list_notifications(
        self, user_id: str, limit: int = 20, include_read: bool = True
    ) -> NotificationListResponse:
        notifications = await self.repository.list_user_notifications(user_id, limit, include_read)
        unread_count = await self.repository.get_unread_count(user_id)
        return NotificationListResponse(notifications=notifications, unread_count=unread_count)

    async def get_unread_count(self, user_id: str) -> int:
        return await self.repository.get_unread_count(user_id)

    async def mark_as_read(self, notification_id: str, user_id: str) -> None:
        if not await self.repository.mark_as_read(notification_id, user_id):
            raise NotificationNotFoundError()

    async def mark_all_as_read(self, user_id: str) -> int:
        updated = await self.repository.mark_all_as_read(user_id)
        logger.debug(f"Marked {updated} notifications read for {user_id}")
        return updated

    async def delete_notification(self, notification_id: str, user_id: str) -> None:
        if not await self.repository.delete_notification(notification_id, user_id):
            raise NotificationNotFoundError()
