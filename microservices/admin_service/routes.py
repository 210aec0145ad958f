"""
Admin Service Routes

Every endpoint except admin registration requires the admin role.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request, status

from core.auth_dependencies import CurrentUser, require_admin
from core.responses import ApiResponse, success_response
from microservices.account_service.models import AdminRegisterRequest
from microservices.campaign_service.models import CampaignStatus

from .models import CampaignRejectRequest

router = APIRouter(prefix="/admin", tags=["Admin"])


def get_admin_service(request: Request):
    """Get admin service from factory"""
    return request.app.state.factory.admin_service


def get_account_service(request: Request):
    return request.app.state.factory.account_service


# ====================
# Admin accounts
# ====================


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(
    request: AdminRegisterRequest,
    service=Depends(get_account_service),
):
    """Create an admin account (requires the admin keycode)"""
    result = await service.register_admin(request)
    return success_response("Admin registered successfully", result, status_code=status.HTTP_201_CREATED)


# ====================
# Founder verification
# ====================


@router.get("/founders", response_model=ApiResponse)
async def list_founders(
    verified: Optional[bool] = Query(None, description="Filter by verification state"),
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_account_service),
):
    founders = await service.list_founders(verified)
    return success_response("Founders retrieved successfully", founders)


@router.post("/founders/{founder_id}/approve", response_model=ApiResponse)
async def approve_founder(
    founder_id: str,
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_account_service),
):
    founder = await service.approve_founder(founder_id)
    return success_response("Founder approved successfully", founder)


@router.post("/founders/{founder_id}/reject", response_model=ApiResponse)
async def reject_founder(
    founder_id: str,
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_account_service),
):
    founder = await service.reject_founder(founder_id)
    return success_response("Founder rejected successfully", founder)


# ====================
# Campaign approval
# ====================


@router.get("/campaigns", response_model=ApiResponse)
async def list_campaigns(
    status_filter: Optional[CampaignStatus] = Query(
        CampaignStatus.PENDING_APPROVAL, alias="status", description="Campaign status to review"
    ),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_admin_service),
):
    result = await service.list_campaigns(status_filter, page=page, limit=limit)
    return success_response("Campaigns retrieved successfully", result)


@router.post("/campaigns/{campaign_id}/approve", response_model=ApiResponse)
async def approve_campaign(
    campaign_id: str,
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_admin_service),
):
    decision = await service.approve_campaign(campaign_id)
    return success_response("Campaign approved successfully", decision)


@router.post("/campaigns/{campaign_id}/reject", response_model=ApiResponse)
async def reject_campaign(
    campaign_id: str,
    request: Optional[CampaignRejectRequest] = Body(None),
    admin: CurrentUser = Depends(require_admin),
    service=Depends(get_admin_service),
):
    decision = await service.reject_campaign(campaign_id, request.reason if request else None)
    return success_response("Campaign rejected successfully", decision)
