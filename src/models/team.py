"""
Team model, membership registry and team stats aggregation.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from typing import List, Optional

from src.database.database import Base
from src.services.reputation import calculate_team_badge


class TeamRole(str, Enum):
    """Role a member plays inside a team."""
    OWNER = "OWNER"
    PM = "PM"
    DEV = "DEV"
    DESIGN = "DESIGN"
    LEGAL = "LEGAL"
    SECURITY = "SECURITY"
    BIZ_OPS = "BIZ_OPS"
    STAKEHOLDER = "STAKEHOLDER"


class TeamStatus(str, Enum):
    """Team status."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    ARCHIVED = "ARCHIVED"


class TeamVisibility(str, Enum):
    """Who can discover the team."""
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"
    RESTRICTED = "RESTRICTED"


# Columns whose change triggers a badge recompute at save time
TEAM_STATS_FIELDS = ("total_links", "average_response_time", "response_rate", "active_members")


class TeamMember(Base):
    """Membership entry embedded in a team."""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    role = Column(String(20), nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True, nullable=False)

    team = relationship("Team", back_populates="members")
    user = relationship(
        "User",
        primaryjoin="foreign(TeamMember.user_id) == User.id",
        viewonly=True,
    )

    def __repr__(self):
        return f"<TeamMember(team_id={self.team_id}, user_id={self.user_id}, role='{self.role}')>"

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "role": self.role,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None,
            "is_active": self.is_active
        }


class Team(Base):
    """Team model with members, gamification stats and a reputation badge."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(Text, default="")
    product_name = Column(String(100), nullable=False, index=True)
    product_version = Column(String(20), default="v1.0")
    owner_id = Column(Integer, nullable=False, index=True)

    # Settings
    visibility = Column(String(20), default=TeamVisibility.PRIVATE)
    allow_member_invites = Column(Boolean, default=True)
    require_approval = Column(Boolean, default=False)

    # Stats
    total_links = Column(Integer, default=0, nullable=False)
    average_response_time = Column(Float, default=0.0, nullable=False)  # hours
    response_rate = Column(Float, default=0.0, nullable=False)  # percentage
    active_members = Column(Integer, default=0, nullable=False)

    # Reputation badge
    reputation_badge_type = Column(String(30), nullable=True)
    reputation_badge_updated_at = Column(DateTime, default=datetime.utcnow)
    reputation_badge_description = Column(String(200), nullable=True)

    status = Column(String(20), default=TeamStatus.ACTIVE, index=True)
    tags = Column(JSON, default=list)
    last_activity = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    members = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="TeamMember.id",
    )
    owner = relationship(
        "User",
        primaryjoin="foreign(Team.owner_id) == User.id",
        viewonly=True,
    )

    def __init__(self, **kwargs):
        # Column defaults only apply at INSERT; stats must be usable before that
        kwargs.setdefault("total_links", 0)
        kwargs.setdefault("average_response_time", 0.0)
        kwargs.setdefault("response_rate", 0.0)
        kwargs.setdefault("active_members", 0)
        kwargs.setdefault("status", TeamStatus.ACTIVE.value)
        kwargs.setdefault("tags", [])
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Team(id={self.id}, name='{self.name}')>"

    @property
    def member_count(self) -> int:
        """Number of active members."""
        return len([member for member in self.members if member.is_active])

    def get_member(self, user_id: int) -> Optional[TeamMember]:
        """Find the membership entry for a user, active or not."""
        for member in self.members:
            if member.user_id == user_id:
                return member
        return None

    def is_active_member(self, user_id: int) -> bool:
        member = self.get_member(user_id)
        return member is not None and member.is_active

    def get_member_ids(self, active_only: bool = True) -> List[int]:
        """Get list of member user IDs."""
        return [
            member.user_id for member in self.members
            if member.is_active or not active_only
        ]

    def _refresh_active_members(self):
        self.active_members = self.member_count

    def add_member(self, user_id: int, role: TeamRole) -> "Team":
        """Add a member, or reactivate and re-role an existing entry."""
        role = TeamRole(role).value
        existing = self.get_member(user_id)

        if existing:
            existing.role = role
            existing.is_active = True
        else:
            self.members.append(TeamMember(
                user_id=user_id,
                role=role,
                joined_at=datetime.utcnow(),
                is_active=True
            ))

        self._refresh_active_members()
        return self

    def remove_member(self, user_id: int) -> "Team":
        """Soft-remove a member. Unknown users are ignored."""
        existing = self.get_member(user_id)
        if existing:
            existing.is_active = False
            self._refresh_active_members()
        return self

    def update_stats(self, link_count: int = 0, response_time: float = 0, response_rate: float = 0) -> "Team":
        """
        Fold new activity into the team stats.

        The running average treats ``response_rate / 100`` as the number of
        prior responses. No separate response counter is stored, so the
        average only roughly tracks the true mean.
        A response_rate above 100 is clamped to 100; non-positive rates are
        ignored.
        """
        self.total_links = max(0, (self.total_links or 0) + link_count)

        if response_time > 0:
            current_avg = self.average_response_time or 0
            total_responses = (self.response_rate or 0) / 100
            self.average_response_time = (
                (current_avg * total_responses) + response_time
            ) / (total_responses + 1)

        if response_rate > 0:
            self.response_rate = min(100.0, response_rate)

        self.last_activity = datetime.utcnow()
        return self

    def calculate_reputation_badge(self) -> dict:
        """Recompute the reputation badge from the current stats."""
        badge, description = calculate_team_badge(self.response_rate, self.average_response_time)
        self.reputation_badge_type = badge.value
        self.reputation_badge_description = description
        self.reputation_badge_updated_at = datetime.utcnow()
        return self.reputation_badge

    @property
    def reputation_badge(self) -> dict:
        return {
            "type": self.reputation_badge_type,
            "updated_at": self.reputation_badge_updated_at.isoformat() if self.reputation_badge_updated_at else None,
            "description": self.reputation_badge_description
        }

    @property
    def stats(self) -> dict:
        return {
            "total_links": self.total_links,
            "average_response_time": self.average_response_time,
            "response_rate": self.response_rate,
            "active_members": self.active_members
        }

    def to_dict(self, include_members: bool = True) -> dict:
        """Convert team to dictionary."""
        data = {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "product_name": self.product_name,
            "product_version": self.product_version,
            "owner_id": self.owner_id,
            "settings": {
                "visibility": self.visibility,
                "allow_member_invites": self.allow_member_invites,
                "require_approval": self.require_approval
            },
            "stats": self.stats,
            "reputation_badge": self.reputation_badge,
            "member_count": self.member_count,
            "status": self.status,
            "tags": self.tags or [],
            "last_activity": self.last_activity.isoformat() if self.last_activity else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }
        if include_members:
            data["members"] = [member.to_dict() for member in self.members]
        return data
