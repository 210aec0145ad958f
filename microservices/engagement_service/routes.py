"""
Engagement Service Routes

View tracking, favorites and browsing history. Registered before the
campaign router so ``/campaigns/most-viewed`` is not read as a campaign id.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, Request

from core.auth_dependencies import CurrentUser, get_current_user, get_optional_user
from core.responses import ApiResponse, success_response

from .models import ViewerIdentity

router = APIRouter(tags=["Engagement"])


def get_engagement_service(request: Request):
    """Get engagement service from factory"""
    return request.app.state.factory.engagement_service


def _is_admin(user: Optional[CurrentUser]) -> bool:
    return user is not None and user.role == "admin"


def get_viewer(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    x_session_id: Optional[str] = Header(None),
) -> ViewerIdentity:
    """Signed-in user, else the client session header, else the client address"""
    if user:
        return ViewerIdentity(user_id=user.id)
    session_key = x_session_id or (request.client.host if request.client else None)
    return ViewerIdentity(session_key=session_key)


# ====================
# Views
# ====================


@router.get("/campaigns/most-viewed", response_model=ApiResponse)
async def get_most_viewed(
    limit: Optional[int] = Query(None, ge=1, le=50),
    service=Depends(get_engagement_service),
):
    campaigns = await service.get_most_viewed(limit)
    return success_response("Most viewed campaigns retrieved successfully", campaigns)


@router.post("/campaigns/{campaign_id}/view", response_model=ApiResponse)
async def track_view(
    campaign_id: str,
    viewer: ViewerIdentity = Depends(get_viewer),
    user: Optional[CurrentUser] = Depends(get_optional_user),
    service=Depends(get_engagement_service),
):
    """Record a campaign view (signed in or anonymous)"""
    result = await service.track_view(campaign_id, viewer, is_admin=_is_admin(user))
    return success_response("View tracked successfully", result)


@router.get("/users/recently-viewed", response_model=ApiResponse)
async def get_recently_viewed(
    limit: Optional[int] = Query(None, ge=1, le=50),
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_engagement_service),
):
    campaigns = await service.get_user_recently_viewed(user.id, limit)
    return success_response("Recently viewed campaigns retrieved successfully", campaigns)


# ====================
# Favorites
# ====================


@router.post("/campaigns/{campaign_id}/favorite", response_model=ApiResponse)
async def toggle_favorite(
    campaign_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_engagement_service),
):
    """Add or remove the campaign from the caller's favorites"""
    favorited = await service.toggle_favorite(user.id, campaign_id, is_admin=_is_admin(user))
    message = "Campaign added to favorites" if favorited else "Campaign removed from favorites"
    return success_response(message, {"campaign_id": campaign_id, "is_favorited": favorited})


@router.get("/campaigns/{campaign_id}/favorite", response_model=ApiResponse)
async def get_favorite_status(
    campaign_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_engagement_service),
):
    status = await service.get_favorite_status(user.id, campaign_id)
    return success_response("Favorite status retrieved successfully", status)


@router.get("/users/favorites", response_model=ApiResponse)
async def list_favorites(
    limit: Optional[int] = Query(None, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_engagement_service),
):
    campaigns = await service.list_user_favorites(user.id, limit)
    return success_response("Favorite campaigns retrieved successfully", campaigns)
