"""
Payment Service Data Models

定义众筹出资的数据模型，包括支付记录、里程碑分配和筹款统计
"""

from enum import Enum
from typing import Optional, Dict, Any, List
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator


# ====================
# 枚举类型定义
# ====================

class PaymentStatus(str, Enum):
    """支付状态"""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class PaymentMethod(str, Enum):
    """支付方式"""
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    MOBILE_MONEY = "mobile_money"


# ====================
# 核心数据模型
# ====================

class Payment(BaseModel):
    """出资记录"""
    id: str
    reference: str
    user_id: str
    campaign_id: str
    amount: Decimal
    email: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CARD
    status: PaymentStatus = PaymentStatus.PENDING
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Joined display fields
    campaign_title: Optional[str] = None
    investor_name: Optional[str] = None


class MilestoneAllocation(BaseModel):
    """出资在里程碑上的分配"""
    id: str
    payment_id: str
    milestone_id: str
    amount: Decimal
    milestone_title: Optional[str] = None
    created_at: Optional[datetime] = None


# ====================
# 请求模型
# ====================

class PaymentInitializeRequest(BaseModel):
    """发起出资请求"""
    campaign_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    email: Optional[str] = None
    milestone_ids: List[str] = Field(default_factory=list)
    payment_method: PaymentMethod = PaymentMethod.CARD

    @field_validator("milestone_ids")
    @classmethod
    def validate_unique_milestones(cls, v):
        if len(set(v)) != len(v):
            raise ValueError("milestone_ids must not contain duplicates")
        return v


class AllocationRequest(BaseModel):
    """追加里程碑分配请求"""
    milestone_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)


# ====================
# 响应模型
# ====================

class PaymentInitializeResponse(BaseModel):
    """发起出资响应"""
    id: str
    reference: str
    amount: Decimal
    status: PaymentStatus
    allocations: List[MilestoneAllocation] = Field(default_factory=list)


class CampaignBrief(BaseModel):
    """出资详情中的众筹项目摘要"""
    id: str
    title: str
    image_url: Optional[str] = None


class PaymentDetails(BaseModel):
    """出资详情"""
    payment: Payment
    allocations: List[MilestoneAllocation] = Field(default_factory=list)
    campaign: Optional[CampaignBrief] = None


class FundingStats(BaseModel):
    """众筹项目筹款统计"""
    campaign_id: str
    target_amount: Decimal
    current_amount: Decimal
    funding_percentage: int
    contributor_count: int
