"""
Notification Service Routes

Owner-scoped notification endpoints.
"""

from fastapi import APIRouter, Depends, Query, Request

from core.auth_dependencies import CurrentUser, get_current_user
from core.responses import ApiResponse, success_response

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(request: Request):
    """Get notification service from factory"""
    return request.app.state.factory.notification_service


@router.get("", response_model=ApiResponse)
async def list_notifications(
    limit: int = Query(20, ge=1, le=100),
    include_read: bool = Query(True),
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_notification_service),
):
    """List the caller's notifications, newest first"""
    result = await service.list_notifications(user.id, limit=limit, include_read=include_read)
    return success_response("Notifications retrieved successfully", result)


@router.get("/unread-count", response_model=ApiResponse)
async def get_unread_count(
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_notification_service),
):
    count = await service.get_unread_count(user.id)
    return success_response("Unread count retrieved successfully", {"count": count})


@router.patch("/mark-all-read", response_model=ApiResponse)
async def mark_all_as_read(
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_notification_service),
):
    updated = await service.mark_all_as_read(user.id)
    return success_response("All notifications marked as read", {"updated": updated})


@router.patch("/{notification_id}/read", response_model=ApiResponse)
async def mark_as_read(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_notification_service),
):
    await service.mark_as_read(notification_id, user.id)
    return success_response("Notification marked as read")


@router.delete("/{notification_id}", response_model=ApiResponse)
async def delete_notification(
    notification_id: str,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_notification_service),
):
    await service.delete_notification(notification_id, user.id)
    return success_response("Notification deleted successfully")
