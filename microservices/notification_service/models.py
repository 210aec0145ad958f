"""
Notification Service Data Models

定义应用内通知的数据模型
"""

from enum import Enum
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


# ====================
# 枚举类型定义
# ====================

class NotificationType(str, Enum):
    """通知类型"""
    CAMPAIGN_APPROVAL = "campaign_approval"
    FOUNDER_APPROVAL = "founder_approval"
    PAYMENT_RECEIVED = "payment_received"
    SYSTEM = "system"


class RelatedType(str, Enum):
    """关联实体类型"""
    CAMPAIGN = "campaign"
    USER = "user"
    PAYMENT = "payment"


# ====================
# 核心数据模型
# ====================

class Notification(BaseModel):
    """应用内通知"""
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    related_id: Optional[str] = None
    related_type: Optional[RelatedType] = None
    is_read: bool = False
    created_at: Optional[datetime] = None
    read_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    """通知列表响应"""
    notifications: List[Notification]
    unread_count: int = 0


class NotificationListQuery(BaseModel):
    """通知列表查询参数"""
    limit: int = Field(default=20, ge=1, le=100)
    include_read: bool = True
