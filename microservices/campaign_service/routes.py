"""
Campaign Service Routes

Draft, campaign and milestone endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from core.auth_dependencies import (
    CurrentUser,
    get_current_user,
    get_optional_user,
    require_founder,
)
from core.errors import AuthorizationError
from core.responses import ApiResponse, success_response

from .campaign_service import CampaignService
from .models import (
    CampaignCreateRequest,
    CampaignListQuery,
    CampaignSort,
    CampaignStatus,
    CampaignUpdateRequest,
    DraftSaveRequest,
    MilestoneSaveRequest,
    MilestoneStatusUpdateRequest,
)

drafts_router = APIRouter(prefix="/drafts", tags=["Drafts"])
campaigns_router = APIRouter(prefix="/campaigns", tags=["Campaigns"])
milestones_router = APIRouter(prefix="/milestones", tags=["Milestones"])


# ====================
# Dependencies
# ====================


def get_draft_service(request: Request):
    """Get draft service from factory"""
    return request.app.state.factory.draft_service


def get_publication_service(request: Request):
    return request.app.state.factory.publication_service


def get_campaign_service(request: Request):
    """Get campaign service from factory"""
    return request.app.state.factory.campaign_service


def _viewer(user: Optional[CurrentUser]) -> dict:
    """Visibility arguments for an optional caller"""
    return {
        "viewer_id": user.id if user else None,
        "is_admin": user is not None and user.role == "admin",
    }


# ====================
# Draft Endpoints
# ====================


@drafts_router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_draft(
    request: DraftSaveRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_draft_service),
):
    """Save a new draft campaign"""
    draft = await service.create_draft(request, user.id)
    return success_response("Draft campaign saved successfully", draft, status_code=status.HTTP_201_CREATED)


@drafts_router.get("", response_model=ApiResponse)
async def list_drafts(
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_draft_service),
):
    drafts = await service.list_drafts(user.id)
    return success_response("Draft campaigns retrieved successfully", drafts)


@drafts_router.get("/{draft_id}", response_model=ApiResponse)
async def get_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_draft_service),
):
    draft = await service.get_draft(draft_id, user.id)
    return success_response("Draft campaign retrieved successfully", draft)


@drafts_router.put("/{draft_id}", response_model=ApiResponse)
async def update_draft(
    draft_id: str,
    request: DraftSaveRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_draft_service),
):
    draft = await service.update_draft(draft_id, request, user.id)
    return success_response("Draft campaign updated successfully", draft)


@drafts_router.delete("/{draft_id}", response_model=ApiResponse)
async def delete_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_draft_service),
):
    await service.delete_draft(draft_id, user.id)
    return success_response("Draft campaign deleted successfully")


@drafts_router.post("/{draft_id}/publish", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def publish_draft(
    draft_id: str,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_publication_service),
):
    """Submit a draft for admin approval"""
    campaign = await service.publish(draft_id, user.id)
    return success_response(
        "Campaign submitted for approval successfully", campaign, status_code=status.HTTP_201_CREATED
    )


# ====================
# Campaign Endpoints
# ====================


@campaigns_router.get("", response_model=ApiResponse)
async def list_campaigns(
    category: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Search title, description and category"),
    sort: CampaignSort = Query(CampaignSort.NEWEST),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service=Depends(get_campaign_service),
):
    """Public campaign listing (active campaigns unless a status is given)"""
    is_admin = user is not None and user.role == "admin"
    if status_filter and status_filter not in CampaignService.PUBLIC_STATUSES and not is_admin:
        raise AuthorizationError("Only admins can list campaigns in that status")

    query = CampaignListQuery(
        category=category,
        stage=stage,
        status=status_filter,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    result = await service.list_campaigns(query)
    return success_response("Campaigns retrieved successfully", result)


@campaigns_router.get("/user/my-campaigns", response_model=ApiResponse)
async def list_my_campaigns(
    status_filter: Optional[CampaignStatus] = Query(None, alias="status"),
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_campaign_service),
):
    campaigns = await service.list_my_campaigns(user.id, status_filter)
    return success_response("User campaigns retrieved successfully", campaigns)


@campaigns_router.get("/{campaign_id}", response_model=ApiResponse)
async def get_campaign(
    campaign_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service=Depends(get_campaign_service),
):
    campaign = await service.get_visible_campaign(campaign_id, **_viewer(user))
    return success_response("Campaign retrieved successfully", campaign)


@campaigns_router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(
    request: CampaignCreateRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    campaign = await service.create_campaign(request, user.id)
    return success_response("Campaign created successfully", campaign, status_code=status.HTTP_201_CREATED)


@campaigns_router.put("/{campaign_id}", response_model=ApiResponse)
async def update_campaign(
    campaign_id: str,
    request: CampaignUpdateRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    campaign = await service.update_campaign(campaign_id, request, user.id)
    return success_response("Campaign updated successfully", campaign)


@campaigns_router.delete("/{campaign_id}", response_model=ApiResponse)
async def delete_campaign(
    campaign_id: str,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    await service.delete_campaign(campaign_id, user.id)
    return success_response("Campaign deleted successfully")


@campaigns_router.get("/{campaign_id}/milestones", response_model=ApiResponse)
async def list_milestones(
    campaign_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service=Depends(get_campaign_service),
):
    milestones = await service.list_milestones(campaign_id, **_viewer(user))
    return success_response("Milestones retrieved successfully", milestones)


@campaigns_router.post("/{campaign_id}/milestones", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_milestone(
    campaign_id: str,
    request: MilestoneSaveRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    milestone = await service.create_milestone(campaign_id, request, user.id)
    return success_response("Milestone created successfully", milestone, status_code=status.HTTP_201_CREATED)


# ====================
# Milestone Endpoints
# ====================


@milestones_router.get("/{milestone_id}", response_model=ApiResponse)
async def get_milestone(
    milestone_id: str,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service=Depends(get_campaign_service),
):
    milestone = await service.get_milestone(milestone_id, **_viewer(user))
    return success_response("Milestone retrieved successfully", milestone)


@milestones_router.put("/{milestone_id}", response_model=ApiResponse)
async def update_milestone(
    milestone_id: str,
    request: MilestoneSaveRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    milestone = await service.update_milestone(milestone_id, request, user.id)
    return success_response("Milestone updated successfully", milestone)


@milestones_router.delete("/{milestone_id}", response_model=ApiResponse)
async def delete_milestone(
    milestone_id: str,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    await service.delete_milestone(milestone_id, user.id)
    return success_response("Milestone deleted successfully")


@milestones_router.patch("/{milestone_id}/status", response_model=ApiResponse)
async def update_milestone_status(
    milestone_id: str,
    request: MilestoneStatusUpdateRequest,
    user: CurrentUser = Depends(require_founder),
    service=Depends(get_campaign_service),
):
    """Founder reports delivery progress on a milestone"""
    milestone = await service.update_milestone_status(milestone_id, request.status, user.id)
    return success_response("Milestone status updated successfully", milestone)
