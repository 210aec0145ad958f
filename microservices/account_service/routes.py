"""
Account Service Routes

Registration, login and profile endpoints.
"""

from fastapi import APIRouter, Depends, Request, status

from core.auth_dependencies import CurrentUser, get_current_user
from core.responses import ApiResponse, success_response

from .models import LoginRequest, ProfileUpdateRequest, RegisterRequest

router = APIRouter(tags=["Accounts"])


def get_account_service(request: Request):
    """Get account service from factory"""
    return request.app.state.factory.account_service


@router.post("/auth/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    service=Depends(get_account_service),
):
    """Register a founder or investor account"""
    result = await service.register(request)
    return success_response("User registered successfully", result, status_code=status.HTTP_201_CREATED)


@router.post("/auth/login", response_model=ApiResponse)
async def login(
    request: LoginRequest,
    service=Depends(get_account_service),
):
    result = await service.login(request)
    return success_response("Login successful", result)


@router.get("/auth/profile", response_model=ApiResponse)
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_account_service),
):
    profile = await service.get_profile(user.id)
    return success_response("Profile retrieved successfully", profile)


@router.put("/users/profile", response_model=ApiResponse)
async def update_profile(
    request: ProfileUpdateRequest,
    user: CurrentUser = Depends(get_current_user),
    service=Depends(get_account_service),
):
    profile = await service.update_profile(user.id, request)
    return success_response("Profile updated successfully", profile)
