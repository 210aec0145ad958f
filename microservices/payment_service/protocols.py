"""
Payment Service Protocols

Defines interfaces for dependency injection and testing.
"""

from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from core.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError

from .models import MilestoneAllocation, Payment, PaymentMethod, PaymentStatus


class PaymentRepositoryProtocol(Protocol):
    """Protocol for payment data repository"""

    async def create_payment(
        self,
        reference: str,
        user_id: str,
        campaign_id: str,
        amount: Decimal,
        email: Optional[str],
        payment_method: PaymentMethod,
        conn: Any = None,
    ) -> Optional[Payment]:
        """Insert a pending payment; None when the reference is already taken"""
        ...

    async def get_payment(self, payment_id: str, conn: Any = None, for_update: bool = False) -> Optional[Payment]:
        ...

    async def get_payment_by_reference(
        self, reference: str, conn: Any = None, for_update: bool = False
    ) -> Optional[Payment]:
        ...

    async def update_payment_status(
        self, payment_id: str, status: PaymentStatus, metadata: Dict[str, Any], conn: Any = None
    ) -> Payment:
        ...

    async def create_allocation(
        self, payment_id: str, milestone_id: str, amount: Decimal, conn: Any = None
    ) -> MilestoneAllocation:
        ...

    async def sum_allocations(self, payment_id: str, conn: Any = None) -> Decimal:
        ...

    async def list_allocations(self, payment_id: str) -> List[MilestoneAllocation]:
        ...

    async def list_user_payments(self, user_id: str) -> List[Payment]:
        ...

    async def list_campaign_payments(
        self, campaign_id: str, status: Optional[PaymentStatus] = None
    ) -> List[Payment]:
        ...

    async def sum_completed(self, campaign_id: str, conn: Any = None) -> Decimal:
        ...

    async def count_contributors(self, campaign_id: str) -> int:
        ...


# ====================
# Custom Exceptions
# ====================


class PaymentNotFoundError(NotFoundError):
    """Payment not found"""
    default_message = "Payment not found"


class PaymentValidationError(ValidationError):
    """Payment request failed a business rule"""
    pass


class AllocationExceededError(PaymentValidationError):
    """Milestone allocations would exceed the payment amount"""
    default_message = "Allocations cannot exceed the payment amount"


class PaymentAccessDeniedError(AuthorizationError):
    """Requester is neither the payer nor the campaign owner"""
    default_message = "You do not have permission to view this payment"


class InvalidPaymentStateError(ConflictError):
    """Status change not allowed from the payment's current status"""
    pass
