"""
Pydantic schemas for link-related API requests.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from src.models.link import (
    MeetingType, LinkPriority, LinkImpact, OutcomeType, OutcomeStatus, CreatedVia
)


class LinkCreateRequest(BaseModel):
    """Schema for creating a new link."""

    team_id: int = Field(..., description="Team the link belongs to")
    title: str = Field(..., min_length=3, max_length=200)
    purpose: str = Field(..., min_length=1, max_length=1000)
    participants: List[int] = Field(..., min_length=1, description="Participant user IDs")
    meeting_type: MeetingType
    scheduled_at: Optional[datetime] = None
    priority: LinkPriority = Field(default=LinkPriority.MEDIUM)
    impact: LinkImpact = Field(default=LinkImpact.MODERATE)
    tags: List[str] = Field(default_factory=list)
    created_via: CreatedVia = Field(default=CreatedVia.MANUAL)
    location: Optional[str] = Field(default="", max_length=200)
    meeting_url: Optional[str] = Field(default="", max_length=500)
    parent_link_id: Optional[int] = None


class LinkUpdateRequest(BaseModel):
    """Schema for updating descriptive link fields. Status moves through the lifecycle routes."""

    title: Optional[str] = Field(None, min_length=3, max_length=200)
    purpose: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    priority: Optional[LinkPriority] = None
    impact: Optional[LinkImpact] = None
    tags: Optional[List[str]] = None
    location: Optional[str] = Field(None, max_length=200)
    meeting_url: Optional[str] = Field(None, max_length=500)
    follow_up_required: Optional[bool] = None
    follow_up_scheduled_at: Optional[datetime] = None


class ScheduleLinkRequest(BaseModel):
    scheduled_at: datetime


class CompleteLinkRequest(BaseModel):
    """Schema for completing a meeting."""

    duration: float = Field(default=0, ge=0, description="Meeting length in minutes")
    notes: str = Field(default="", max_length=2000)


class AddOutcomeRequest(BaseModel):
    """Schema for recording an outcome."""

    type: OutcomeType
    description: str = Field(..., min_length=1, max_length=500)
    assigned_to: Optional[int] = None
    due_date: Optional[datetime] = None


class OutcomeStatusRequest(BaseModel):
    status: OutcomeStatus
