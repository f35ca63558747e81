"""
User model, team associations, badges and reputation.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Boolean, Float
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from typing import Optional

from src.database.database import Base
from src.services.reputation import calculate_user_score, get_reputation_level


class UserRole(str, Enum):
    """Department a user works in."""
    PM = "PM"
    DEV = "DEV"
    DESIGN = "DESIGN"
    LEGAL = "LEGAL"
    SECURITY = "SECURITY"
    BIZ_OPS = "BIZ_OPS"
    CXO = "CXO"
    STAKEHOLDER = "STAKEHOLDER"


class TeamAccessRole(str, Enum):
    """User-side view of a team membership."""
    OWNER = "OWNER"
    MEMBER = "MEMBER"
    VIEWER = "VIEWER"


class UserBadgeType(str, Enum):
    """Badges a user can earn."""
    SUPER_RESPONDER = "SUPER_RESPONDER"
    POWER_CONNECTOR = "POWER_CONNECTOR"
    LINK_HERO = "LINK_HERO"
    TEAM_MAGNET = "TEAM_MAGNET"
    GHOST_MODE = "GHOST_MODE"
    SILENT_WITNESS = "SILENT_WITNESS"


# Columns whose change triggers a reputation recompute at save time
USER_STATS_FIELDS = ("total_links", "average_response_time", "response_rate")


class UserTeam(Base):
    """A team the user belongs to."""

    __tablename__ = "user_teams"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    team_id = Column(Integer, nullable=False, index=True)
    role = Column(String(20), default=TeamAccessRole.MEMBER, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="teams")
    team = relationship(
        "Team",
        primaryjoin="foreign(UserTeam.team_id) == Team.id",
        viewonly=True,
    )

    def to_dict(self) -> dict:
        return {
            "team_id": self.team_id,
            "team_name": self.team.name if self.team else None,
            "role": self.role,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None
        }


class UserBadge(Base):
    """An earned badge. Badges are only ever appended."""

    __tablename__ = "user_badges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(30), nullable=False)
    earned_at = Column(DateTime, default=datetime.utcnow)
    description = Column(String(200), nullable=True)

    user = relationship("User", back_populates="badges")

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "earned_at": self.earned_at.isoformat() if self.earned_at else None,
            "description": self.description
        }


class User(Base):
    """User model representing system users."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=False)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.PM, index=True)
    designation = Column(String(100), nullable=True)

    # Stats
    total_links = Column(Integer, default=0, nullable=False)
    average_response_time = Column(Float, default=0.0, nullable=False)  # hours
    response_rate = Column(Float, default=0.0, nullable=False)  # percentage
    reputation_score = Column(Float, default=100.0, nullable=False, index=True)

    # Settings
    notify_email = Column(Boolean, default=True)
    notify_push = Column(Boolean, default=True)
    notify_in_app = Column(Boolean, default=True)
    timezone = Column(String(50), default="UTC")

    onboarded = Column(Boolean, default=False)
    last_active = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    teams = relationship(
        "UserTeam",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserTeam.id",
    )
    badges = relationship(
        "UserBadge",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserBadge.id",
    )

    def __init__(self, **kwargs):
        if kwargs.get("email"):
            kwargs["email"] = kwargs["email"].strip().lower()
        kwargs.setdefault("total_links", 0)
        kwargs.setdefault("average_response_time", 0.0)
        kwargs.setdefault("response_rate", 0.0)
        kwargs.setdefault("reputation_score", 100.0)
        kwargs.setdefault("role", UserRole.PM.value)
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}', email='{self.email}')>"

    def calculate_reputation_score(self) -> float:
        """Recompute and store the reputation score from the current stats."""
        self.reputation_score = calculate_user_score(
            self.response_rate,
            self.average_response_time,
            self.total_links
        )
        return self.reputation_score

    def record_link(self, count: int = 1):
        """Count links this user initiated."""
        self.total_links = max(0, (self.total_links or 0) + count)

    def get_team_membership(self, team_id: int) -> Optional[UserTeam]:
        for membership in self.teams:
            if membership.team_id == team_id:
                return membership
        return None

    def join_team(self, team_id: int, role: TeamAccessRole = TeamAccessRole.MEMBER) -> UserTeam:
        """Record a team membership; an existing entry only has its role updated."""
        role = TeamAccessRole(role).value
        membership = self.get_team_membership(team_id)
        if membership:
            membership.role = role
            return membership

        membership = UserTeam(team_id=team_id, role=role, joined_at=datetime.utcnow())
        self.teams.append(membership)
        return membership

    def leave_team(self, team_id: int) -> bool:
        """Drop a team membership. Returns False if there was none."""
        membership = self.get_team_membership(team_id)
        if membership is None:
            return False
        self.teams.remove(membership)
        return True

    def award_badge(self, badge_type: UserBadgeType, description: str = None) -> UserBadge:
        """Record a badge. Nothing in the service awards badges; callers outside it decide when one is earned."""
        badge = UserBadge(
            type=UserBadgeType(badge_type).value,
            description=description,
            earned_at=datetime.utcnow()
        )
        self.badges.append(badge)
        return badge

    @property
    def reputation_level(self) -> dict:
        return get_reputation_level(self.reputation_score or 0)

    @property
    def stats(self) -> dict:
        return {
            "total_links": self.total_links,
            "average_response_time": self.average_response_time,
            "response_rate": self.response_rate,
            "reputation_score": self.reputation_score
        }

    def to_summary(self) -> dict:
        """Short form used when a user is embedded in another document."""
        return {
            "id": self.id,
            "name": self.name or self.email.split("@")[0],
            "email": self.email,
            "avatar": self.avatar,
            "role": self.role
        }

    def to_dict(self) -> dict:
        """Convert user to dictionary."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "avatar": self.avatar,
            "role": self.role,
            "designation": self.designation,
            "teams": [membership.to_dict() for membership in self.teams],
            "stats": self.stats,
            "reputation_level": self.reputation_level,
            "badges": [badge.to_dict() for badge in self.badges],
            "settings": {
                "notifications": {
                    "email": self.notify_email,
                    "push": self.notify_push,
                    "in_app": self.notify_in_app
                },
                "timezone": self.timezone
            },
            "onboarded": self.onboarded,
            "last_active": self.last_active.isoformat() if self.last_active else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }
