"""
Notification Service Repository Layer

数据访问层，负责与数据库交互
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.postgres_client import PostgresClient

from .models import Notification, NotificationType, RelatedType

logger = logging.getLogger(__name__)


class NotificationRepository:
    """通知数据访问层"""

    def __init__(self, db: PostgresClient):
        self.db = db
        self.notifications_table = "notifications"

    async def create_notification(
        self,
        user_id: str,
        notification_type: NotificationType,
        title: str,
        message: str,
        related_id: Optional[str] = None,
        related_type: Optional[RelatedType] = None,
        conn=None,
    ) -> Notification:
        """创建应用内通知"""
        try:
            query = f'''
                INSERT INTO {self.notifications_table} (
                    id, user_id, type, title, message, related_id, related_type, is_read, created_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, FALSE, $8)
                RETURNING *
            '''
            row = await self.db.query_row(
                query,
                [
                    f"ntf_{uuid.uuid4().hex[:16]}",
                    user_id,
                    notification_type.value,
                    title,
                    message,
                    related_id,
                    related_type.value if related_type else None,
                    datetime.now(timezone.utc),
                ],
                conn=conn,
            )
            return self._row_to_notification(row)

        except Exception as e:
            logger.error(f"Failed to create notification for user {user_id}: {str(e)}")
            raise

    async def list_user_notifications(
        self,
        user_id: str,
        limit: int = 20,
        include_read: bool = True,
    ) -> List[Notification]:
        """列出用户的应用内通知"""
        try:
            conditions = ["user_id = $1"]
            if not include_read:
                conditions.append("is_read = FALSE")

            query = f'''
                SELECT * FROM {self.notifications_table}
                WHERE {" AND ".join(conditions)}
                ORDER BY created_at DESC
                LIMIT $2
            '''
            rows = await self.db.query(query, [user_id, limit])
            return [self._row_to_notification(row) for row in rows]

        except Exception as e:
            logger.error(f"Failed to list notifications for user {user_id}: {str(e)}")
            raise

    async def get_unread_count(self, user_id: str) -> int:
        """获取未读通知数量"""
        query = f'''
            SELECT COUNT(*) FROM {self.notifications_table}
            WHERE user_id = $1 AND is_read = FALSE
        '''
        return await self.db.fetchval(query, [user_id]) or 0

    async def mark_as_read(self, notification_id: str, user_id: str) -> bool:
        """标记通知为已读"""
        query = f'''
            UPDATE {self.notifications_table}
            SET is_read = TRUE, read_at = COALESCE(read_at, $3)
            WHERE id = $1 AND user_id = $2
        '''
        count = await self.db.execute(query, [notification_id, user_id, datetime.now(timezone.utc)])
        return count > 0

    async def mark_all_as_read(self, user_id: str) -> int:
        """标记全部通知为已读"""
        query = f'''
            UPDATE {self.notifications_table}
            SET is_read = TRUE, read_at = $2
            WHERE user_id = $1 AND is_read = FALSE
        '''
        return await self.db.execute(query, [user_id, datetime.now(timezone.utc)])

    async def delete_notification(self, notification_id: str, user_id: str) -> bool:
        """删除通知"""
        count = await self.db.execute(
            f"DELETE FROM {self.notifications_table} WHERE id = $1 AND user_id = $2",
            [notification_id, user_id],
        )
        return count > 0

    def _row_to_notification(self, row: Dict[str, Any]) -> Notification:
        return Notification(
            id=row["id"],
            user_id=row["user_id"],
            type=NotificationType(row["type"]),
            title=row["title"],
            message=row["message"],
            related_id=row.get("related_id"),
            related_type=RelatedType(row["related_type"]) if row.get("related_type") else None,
            is_read=bool(row.get("is_read")),
            created_at=row.get("created_at"),
            read_at=row.get("read_at"),
        )
