"""
Payment Service Business Logic

众筹出资业务逻辑：发起出资、模拟网关核验、里程碑分配和筹款统计。

Settlement and the campaign's funding total are written in one transaction;
``current_amount`` is always re-derived from the sum of completed payments
rather than incremented.
"""

import logging
import random
import time
import uuid
from datetime import datetime, timezone
from decimal import Decimal, ROUND_DOWN
from typing import Any, Dict, List, Optional

from core.errors import InternalError
from microservices.campaign_service.models import CampaignStatus, funding_percentage
from microservices.campaign_service.protocols import (
    CampaignNotFoundError,
    CampaignRepositoryProtocol,
    TransactionManagerProtocol,
)

from .models import (
    CampaignBrief,
    FundingStats,
    MilestoneAllocation,
    Payment,
    PaymentDetails,
    PaymentInitializeRequest,
    PaymentInitializeResponse,
    PaymentStatus,
)
from .protocols import (
    AllocationExceededError,
    InvalidPaymentStateError,
    PaymentAccessDeniedError,
    PaymentNotFoundError,
    PaymentRepositoryProtocol,
    PaymentValidationError,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def split_amount(amount: Decimal, parts: int) -> List[Decimal]:
    """
    Split an amount into equal cent-rounded shares.

    Every share but the last is rounded down; the last takes the remainder
    so the shares always sum to ``amount`` exactly.
    """
    if parts <= 0:
        return []
    share = (amount / parts).quantize(CENT, rounding=ROUND_DOWN)
    return [share] * (parts - 1) + [amount - share * (parts - 1)]


def generate_reference(prefix: str = "CFP") -> str:
    """Human readable payment reference: <prefix>-<epoch ms>-<random>"""
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 999)}"


class PaymentService:
    """出资业务逻辑层"""

    SETTLED_STATUSES = {PaymentStatus.COMPLETED, PaymentStatus.FAILED}

    def __init__(
        self,
        db: TransactionManagerProtocol,
        repository: PaymentRepositoryProtocol,
        campaign_repository: CampaignRepositoryProtocol,
        notification_service=None,
        reference_prefix: str = "CFP",
        max_reference_attempts: int = 5,
    ):
        self.db = db
        self.repository = repository
        self.campaign_repository = campaign_repository
        self.notification_service = notification_service
        self.reference_prefix = reference_prefix
        self.max_reference_attempts = max_reference_attempts

    # ====================
    # 发起出资
    # ====================

    async def initialize_payment(
        self,
        user_id: str,
        request: PaymentInitializeRequest,
        user_email: Optional[str] = None,
    ) -> PaymentInitializeResponse:
        """
        创建待支付出资记录

        When milestone ids are given the amount is split equally across them
        and the allocations are stored in the same transaction.

        Raises:
            PaymentValidationError: non-positive amount, campaign not active,
                unknown milestone
            CampaignNotFoundError: unknown campaign
        """
        if request.amount <= 0:
            raise PaymentValidationError("Amount must be greater than zero")

        async with self.db.transaction() as conn:
            campaign = await self.campaign_repository.get_campaign_status(request.campaign_id, conn=conn)
            if campaign is None:
                raise CampaignNotFoundError(f"Campaign not found: {request.campaign_id}")
            if campaign["status"] != CampaignStatus.ACTIVE.value:
                raise PaymentValidationError("Campaign is not accepting contributions")

            for milestone_id in request.milestone_ids:
                await self._ensure_campaign_milestone(request.campaign_id, milestone_id, conn)

            payment = await self._insert_payment(user_id, request, request.email or user_email, conn)

            allocations: List[MilestoneAllocation] = []
            shares = split_amount(request.amount, len(request.milestone_ids))
            for milestone_id, share in zip(request.milestone_ids, shares):
                allocations.append(
                    await self.repository.create_allocation(payment.id, milestone_id, share, conn=conn)
                )

        logger.info(f"Payment {payment.reference} initialized: {payment.amount} to {payment.campaign_id}")
        return PaymentInitializeResponse(
            id=payment.id,
            reference=payment.reference,
            amount=payment.amount,
            status=payment.status,
            allocations=allocations,
        )

    async def _insert_payment(self, user_id: str, request: PaymentInitializeRequest, email, conn) -> Payment:
        for attempt in range(1, self.max_reference_attempts + 1):
            reference = generate_reference(self.reference_prefix)
            payment = await self.repository.create_payment(
                reference,
                user_id,
                request.campaign_id,
                request.amount,
                email,
                request.payment_method,
                conn=conn,
            )
            if payment is not None:
                return payment
            logger.warning(f"Payment reference collision on {reference} (attempt {attempt})")

        raise InternalError("Could not generate a unique payment reference")

    async def _ensure_campaign_milestone(self, campaign_id: str, milestone_id: str, conn) -> None:
        milestone = await self.campaign_repository.get_milestone(milestone_id, conn=conn)
        if milestone is None or milestone["campaign_id"] != campaign_id:
            raise PaymentValidationError("One or more milestones not found")

    async def allocate_to_milestone(
        self,
        payment_id: str,
        milestone_id: str,
        amount: Decimal,
        requester_id: Optional[str] = None,
    ) -> MilestoneAllocation:
        """
        追加里程碑分配

        The payment row is locked while the existing allocations are summed so
        concurrent allocations cannot jointly exceed the payment amount.
        """
        if amount <= 0:
            raise PaymentValidationError("Allocation amount must be greater than zero")

        async with self.db.transaction() as conn:
            payment = await self.repository.get_payment(payment_id, conn=conn, for_update=True)
            if payment is None:
                raise PaymentNotFoundError(f"Payment not found: {payment_id}")
            if requester_id is not None and payment.user_id != requester_id:
                raise PaymentAccessDeniedError("You do not have permission to allocate this payment")
            await self._ensure_campaign_milestone(payment.campaign_id, milestone_id, conn)

            allocated = await self.repository.sum_allocations(payment_id, conn=conn)
            if allocated + amount > payment.amount:
                raise AllocationExceededError(
                    f"Allocating {amount} would exceed the payment amount "
                    f"({allocated} of {payment.amount} already allocated)"
                )
            return await self.repository.create_allocation(payment_id, milestone_id, amount, conn=conn)

    # ====================
    # 支付核验与状态
    # ====================

    async def verify_by_reference(self, reference: str, requester_id: Optional[str] = None) -> Payment:
        """
        模拟网关核验：将待支付记录结算为 completed

        Verifying an already completed payment returns it unchanged.
        """
        async with self.db.transaction() as conn:
            payment = await self.repository.get_payment_by_reference(reference, conn=conn, for_update=True)
            if payment is None:
                raise PaymentNotFoundError(f"Payment not found: {reference}")
            if requester_id is not None and payment.user_id != requester_id:
                raise PaymentAccessDeniedError("You do not have permission to verify this payment")

            if payment.status == PaymentStatus.COMPLETED:
                return payment
            if payment.status != PaymentStatus.PENDING:
                raise InvalidPaymentStateError(f"Payment is already {payment.status.value}")

            metadata = {
                "transaction_id": f"txn_{uuid.uuid4().hex[:16]}",
                "verified_at": datetime.now(timezone.utc).isoformat(),
            }
            return await self._settle(payment, PaymentStatus.COMPLETED, metadata, conn)

    async def update_status(
        self,
        payment_id: str,
        status: PaymentStatus,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Payment:
        """
        更新支付状态

        Only pending -> completed and pending -> failed are allowed.
        """
        if status not in self.SETTLED_STATUSES:
            raise InvalidPaymentStateError(f"Cannot move a payment to {status.value}")

        async with self.db.transaction() as conn:
            payment = await self.repository.get_payment(payment_id, conn=conn, for_update=True)
            if payment is None:
                raise PaymentNotFoundError(f"Payment not found: {payment_id}")
            if payment.status != PaymentStatus.PENDING:
                raise InvalidPaymentStateError(f"Payment is already {payment.status.value}")
            return await self._settle(payment, status, metadata or {}, conn)

    async def _settle(self, payment: Payment, status: PaymentStatus, metadata: Dict[str, Any], conn) -> Payment:
        campaign = None
        if status == PaymentStatus.COMPLETED:
            # Lock order: payment row, then campaign row
            campaign = await self.campaign_repository.get_campaign_status(
                payment.campaign_id, conn=conn, for_update=True
            )
            if campaign is None:
                raise CampaignNotFoundError(f"Campaign not found: {payment.campaign_id}")

        updated = await self.repository.update_payment_status(payment.id, status, metadata, conn=conn)

        if campaign is not None:
            total = await self.repository.sum_completed(payment.campaign_id, conn=conn)
            await self.campaign_repository.refresh_funding(payment.campaign_id, total, conn=conn)
            if self.notification_service:
                await self.notification_service.create_payment_received_notification(
                    campaign["creator_id"], payment.campaign_id, campaign["title"], payment.amount, conn=conn
                )
            logger.info(f"Payment {payment.reference} completed; campaign {payment.campaign_id} funded {total}")
        else:
            logger.info(f"Payment {payment.reference} marked {status.value}")
        return updated

    # ====================
    # 查询
    # ====================

    async def get_payment_details(self, payment_id: str, requester_id: str) -> PaymentDetails:
        """出资详情（出资人或项目发起人可见）"""
        payment = await self.repository.get_payment(payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {payment_id}")

        campaign = await self.campaign_repository.get_campaign(payment.campaign_id)
        is_owner = campaign is not None and campaign.creator_id == requester_id
        if payment.user_id != requester_id and not is_owner:
            raise PaymentAccessDeniedError()

        brief = None
        if campaign is not None:
            brief = CampaignBrief(
                id=campaign.id,
                title=campaign.title,
                image_url=campaign.images[0] if campaign.images else None,
            )
        return PaymentDetails(
            payment=payment,
            allocations=await self.repository.list_allocations(payment_id),
            campaign=brief,
        )

    async def list_user_payments(self, user_id: str) -> List[Payment]:
        return await self.repository.list_user_payments(user_id)

    async def list_campaign_payments(self, campaign_id: str, requester_id: str) -> List[Payment]:
        """Completed payments of a campaign, visible to its owner only"""
        campaign = await self.campaign_repository.get_campaign_status(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")
        if campaign["creator_id"] != requester_id:
            raise PaymentAccessDeniedError("You do not have permission to view all payments for this campaign")
        return await self.repository.list_campaign_payments(campaign_id, PaymentStatus.COMPLETED)

    async def get_campaign_total_investments(self, campaign_id: str) -> Decimal:
        return await self.repository.sum_completed(campaign_id)

    async def get_campaign_funding_stats(self, campaign_id: str) -> FundingStats:
        """筹款统计：目标、已筹、百分比、出资人数"""
        campaign = await self.campaign_repository.get_campaign_status(campaign_id)
        if campaign is None:
            raise CampaignNotFoundError(f"Campaign not found: {campaign_id}")

        target = Decimal(campaign.get("target_amount") or 0)
        total = await self.repository.sum_completed(campaign_id)
        return FundingStats(
            campaign_id=campaign_id,
            target_amount=target,
            current_amount=total,
            funding_percentage=funding_percentage(total, target),
            contributor_count=await self.repository.count_contributors(campaign_id),
        )
