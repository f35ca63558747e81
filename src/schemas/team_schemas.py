"""
Pydantic schemas for team-related API requests.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional

from src.models.team import TeamStatus, TeamVisibility
from src.models.user import UserRole


class TeamSettingsRequest(BaseModel):
    """Team settings block."""

    visibility: Optional[TeamVisibility] = None
    allow_member_invites: Optional[bool] = None
    require_approval: Optional[bool] = None


class TeamCreateRequest(BaseModel):
    """Schema for creating a new team."""

    name: str = Field(..., min_length=3, max_length=100, description="Team name")
    description: Optional[str] = Field(default="", max_length=500)
    product_name: str = Field(..., min_length=2, max_length=100, description="Product the team builds")
    product_version: Optional[str] = Field(default="v1.0", max_length=20)
    tags: List[str] = Field(default_factory=list)
    settings: Optional[TeamSettingsRequest] = None


class TeamUpdateRequest(BaseModel):
    """Schema for updating an existing team."""

    name: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    product_name: Optional[str] = Field(None, min_length=2, max_length=100)
    product_version: Optional[str] = Field(None, max_length=20)
    tags: Optional[List[str]] = None
    settings: Optional[TeamSettingsRequest] = None
    status: Optional[TeamStatus] = None


class AddMemberRequest(BaseModel):
    """Schema for adding a member by email."""

    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    department: UserRole
    designation: Optional[str] = Field(default=None, max_length=100)
