"""
Payment Service Routes

Contribution endpoints. Gateway integration is simulated: verifying a
reference settles the payment.
"""

from fastapi import APIRouter, Depends, Request, status

from core.auth_dependencies import CurrentUser, get_current_user, require_investor
from core.responses import ApiResponse, success_response

from .models import AllocationRequest, PaymentInitializeRequest

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(request: Request):
    """Get payment service from factory"""
    return request.app.state.factory.payment_service


@router.post("/initialize", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def initialize_payment(
    request: PaymentInitializeRequest,
    user: CurrentUser = Depends(require_investor),
    service=Depends(get_payment_service),
):
    """Start a contribution, optionally split across milestones"""
    payment = await service.initialize_payment(user.id, request, user_email=user.email)
    return success_response(
        "Payment initialized successfully", {"payment": payment}, status_code=status.HTTP_201_CREATED
    )


@router.get("/verify/{reference}", response_model=ApiResponse)
async def verify_payment(
    reference: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    payment = await service.verify_by_reference(reference, requester_id=user.id)
    return success_response("Payment verified successfully", {"payment": payment})


@router.get("/history", response_model=ApiResponse)
async def get_payment_history(
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    payments = await service.list_user_payments(user.id)
    return success_response("User payments retrieved successfully", {"payments": payments})


@router.get("/details/{payment_id}", response_model=ApiResponse)
async def get_payment_details(
    payment_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    details = await service.get_payment_details(payment_id, user.id)
    return success_response("Payment details retrieved successfully", details)


@router.post("/{payment_id}/allocations", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def allocate_to_milestone(
    payment_id: str,
    request: AllocationRequest,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    """Attribute part of a payment to one of the campaign's milestones"""
    allocation = await service.allocate_to_milestone(
        payment_id, request.milestone_id, request.amount, requester_id=user.id
    )
    return success_response(
        "Allocation recorded successfully", {"allocation": allocation}, status_code=status.HTTP_201_CREATED
    )


@router.get("/campaign/{campaign_id}", response_model=ApiResponse)
async def get_campaign_payments(
    campaign_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    """Completed contributions of a campaign (owner only)"""
    payments = await service.list_campaign_payments(campaign_id, user.id)
    return success_response("Campaign payments retrieved successfully", {"payments": payments})


@router.get("/stats/campaign/{campaign_id}", response_model=ApiResponse)
async def get_campaign_funding_stats(
    campaign_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_payment_service),
):
    stats = await service.get_campaign_funding_stats(campaign_id)
    return success_response("Campaign funding statistics retrieved successfully", stats)
