"""
Account Service Models

Users, registration and profile models for the crowdfund platform.
"""

from typing import Optional
from pydantic import BaseModel, Field, EmailStr, field_validator
from datetime import datetime

from enum import Enum


class UserRole(str, Enum):
    """Platform roles"""
    FOUNDER = "founder"
    INVESTOR = "investor"
    ADMIN = "admin"
    REJECTED_FOUNDER = "rejected_founder"


SELF_SERVICE_ROLES = {UserRole.FOUNDER, UserRole.INVESTOR}


class User(BaseModel):
    """User record as stored (includes the password hash)"""
    id: str
    email: str
    password_hash: Optional[str] = Field(default=None, exclude=True)
    full_name: Optional[str] = None
    role: UserRole = UserRole.INVESTOR
    is_verified: bool = False
    is_active: bool = True
    company_name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    def to_profile(self) -> "UserProfile":
        return UserProfile(**self.model_dump())


class UserProfile(BaseModel):
    """Public view of a user"""
    id: str
    email: str
    full_name: Optional[str] = None
    role: UserRole
    is_verified: bool = False
    company_name: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    phone: Optional[str] = None
    profile_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Request Models

class RegisterRequest(BaseModel):
    """Self-service registration (founders and investors)"""
    email: EmailStr = Field(..., description="User email")
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = Field(..., description="founder or investor")
    company_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator('role')
    @classmethod
    def validate_role(cls, v):
        if v not in SELF_SERVICE_ROLES:
            raise ValueError("role must be founder or investor")
        return v

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if not v.strip():
            raise ValueError("full_name cannot be blank")
        return v.strip()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class AdminRegisterRequest(BaseModel):
    """Admin registration, gated by the configured keycode"""
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    full_name: str = Field(..., min_length=1, max_length=255)
    keycode: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    """Profile fields a user may change; omitted fields stay as they are"""
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    company_name: Optional[str] = Field(None, max_length=255)
    bio: Optional[str] = Field(None, max_length=2000)
    location: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    profile_image_url: Optional[str] = None


# Response Models

class AuthResult(BaseModel):
    """Registration / login result"""
    user: UserProfile
    token: str
