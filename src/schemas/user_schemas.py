"""
Pydantic schemas for user and auth API requests.
"""

from pydantic import BaseModel, Field
from typing import Optional

from src.models.user import UserRole


class NotificationSettingsRequest(BaseModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    in_app: Optional[bool] = None


class UserSettingsRequest(BaseModel):
    notifications: Optional[NotificationSettingsRequest] = None
    timezone: Optional[str] = Field(None, max_length=50)


class UpdateProfileRequest(BaseModel):
    """Schema for profile updates."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    avatar: Optional[str] = Field(None, max_length=500)
    role: Optional[UserRole] = None
    designation: Optional[str] = Field(None, max_length=100)
    settings: Optional[UserSettingsRequest] = None


class GoogleLoginRequest(BaseModel):
    """Schema for exchanging a Google ID token."""

    id_token: str = Field(..., min_length=1)
