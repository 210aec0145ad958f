"""
Notification Service Protocols

Defines interfaces for dependency injection and testing.
"""

from typing import Any, List, Optional, Protocol

from core.errors import NotFoundError

from .models import Notification, NotificationType, RelatedType


class NotificationRepositoryProtocol(Protocol):
    """Protocol for notification data repository"""

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
        ...

    async def list_user_notifications(self, user_id: str, limit: int = 20, include_read: bool = True) -> List[Notification]:
        ...

    async def get_unread_count(self, user_id: str) -> int:
        ...

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        ...

    async def mark_all_as_read(self, user_id: str) -> int:
        ...

    async def delete_notification(self, notification_id: str, user_id: str) -> bool:
        ...


class NotificationNotFoundError(NotFoundError):
    """Notification not found for this user"""
    default_message = "Notification not found"
