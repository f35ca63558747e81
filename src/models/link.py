"""
Link model: a tracked meeting with participants, outcomes and metrics.

Lifecycle:
    PENDING ─► SCHEDULED ─► IN_PROGRESS ─► COMPLETED
    PENDING / SCHEDULED ─► CANCELLED | NO_SHOW

Once a meeting is IN_PROGRESS it never returns to PENDING or SCHEDULED.
"""

import math

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from src.database.database import Base
from src.errors import InvalidStateTransition, NotFoundError, ValidationError


class LinkStatus(str, Enum):
    """Meeting lifecycle states."""
    PENDING = "PENDING"
    SCHEDULED = "SCHEDULED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"


class MeetingType(str, Enum):
    QUICK_SYNC = "QUICK_SYNC"
    REVIEW = "REVIEW"
    PLANNING = "PLANNING"
    DECISION = "DECISION"
    BRAINSTORM = "BRAINSTORM"
    STATUS_UPDATE = "STATUS_UPDATE"


class ParticipantRole(str, Enum):
    INITIATOR = "INITIATOR"
    PARTICIPANT = "PARTICIPANT"
    OBSERVER = "OBSERVER"


class OutcomeType(str, Enum):
    DECISION = "DECISION"
    ACTION_ITEM = "ACTION_ITEM"
    BLOCKER = "BLOCKER"
    INSIGHT = "INSIGHT"
    NEXT_STEPS = "NEXT_STEPS"


class OutcomeStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    BLOCKED = "BLOCKED"


class LinkPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class LinkImpact(str, Enum):
    MINOR = "MINOR"
    MODERATE = "MODERATE"
    MAJOR = "MAJOR"
    BLOCKING = "BLOCKING"


class CreatedVia(str, Enum):
    NUDGE = "NUDGE"
    MANUAL = "MANUAL"
    SCHEDULED = "SCHEDULED"


_OPEN_STATES = frozenset({LinkStatus.PENDING, LinkStatus.SCHEDULED})

# Target state -> states it may be entered from
LINK_TRANSITIONS: Dict[LinkStatus, FrozenSet[LinkStatus]] = {
    LinkStatus.SCHEDULED: _OPEN_STATES,
    LinkStatus.IN_PROGRESS: _OPEN_STATES,
    LinkStatus.COMPLETED: frozenset({LinkStatus.IN_PROGRESS}),
    LinkStatus.CANCELLED: _OPEN_STATES,
    LinkStatus.NO_SHOW: _OPEN_STATES,
}


def calculate_completion_rate(outcomes) -> float:
    """Percentage of outcomes marked COMPLETED; 0 when there are none."""
    if not outcomes:
        return 0.0
    completed = len([o for o in outcomes if o.status == OutcomeStatus.COMPLETED])
    return (completed / len(outcomes)) * 100


class LinkParticipant(Base):
    """Participant entry embedded in a link."""

    __tablename__ = "link_participants"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    role = Column(String(20), default=ParticipantRole.PARTICIPANT, nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)

    link = relationship("Link", back_populates="participants")
    user = relationship(
        "User",
        primaryjoin="foreign(LinkParticipant.user_id) == User.id",
        viewonly=True,
    )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "user": self.user.to_summary() if self.user else None,
            "role": self.role,
            "joined_at": self.joined_at.isoformat() if self.joined_at else None
        }


class Outcome(Base):
    """Action item, decision or blocker recorded against a link."""

    __tablename__ = "link_outcomes"

    id = Column(Integer, primary_key=True, index=True)
    link_id = Column(Integer, ForeignKey("links.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    assigned_to = Column(Integer, nullable=True)
    due_date = Column(DateTime, nullable=True)
    status = Column(String(20), default=OutcomeStatus.PENDING, nullable=False)

    link = relationship("Link", back_populates="outcomes")
    assignee = relationship(
        "User",
        primaryjoin="foreign(Outcome.assigned_to) == User.id",
        viewonly=True,
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "description": self.description,
            "assigned_to": self.assigned_to,
            "assignee": self.assignee.to_summary() if self.assignee else None,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "status": self.status
        }


class Link(Base):
    """A tracked meeting between team members."""

    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    purpose = Column(Text, nullable=False)
    team_id = Column(Integer, nullable=False, index=True)
    meeting_type = Column(String(20), nullable=False)

    status = Column(String(20), default=LinkStatus.PENDING, nullable=False, index=True)

    # Timing
    scheduled_at = Column(DateTime, nullable=True, index=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    duration = Column(Float, default=0)  # minutes

    # AI summary
    ai_summary_content = Column(Text, default="")
    ai_summary_generated_at = Column(DateTime, nullable=True)
    ai_summary_model = Column(String(50), nullable=True)
    ai_summary_confidence = Column(Float, default=0)

    notes = Column(Text, default="")
    tags = Column(JSON, default=list)
    priority = Column(String(20), default=LinkPriority.MEDIUM)
    impact = Column(String(20), default=LinkImpact.MODERATE)

    # Follow-up
    follow_up_required = Column(Boolean, default=False)
    follow_up_scheduled_at = Column(DateTime, nullable=True)
    parent_link_id = Column(Integer, nullable=True)

    # Metrics
    participant_count = Column(Integer, default=0, nullable=False)
    outcome_count = Column(Integer, default=0, nullable=False)
    completion_rate = Column(Float, default=0.0, nullable=False)

    # Metadata
    created_via = Column(String(20), default=CreatedVia.MANUAL)
    location = Column(String(200), default="")
    meeting_url = Column(String(500), default="")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    participants = relationship(
        "LinkParticipant",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="LinkParticipant.id",
    )
    outcomes = relationship(
        "Outcome",
        back_populates="link",
        cascade="all, delete-orphan",
        order_by="Outcome.id",
    )
    team = relationship(
        "Team",
        primaryjoin="foreign(Link.team_id) == Team.id",
        viewonly=True,
    )

    def __init__(self, **kwargs):
        kwargs.setdefault("status", LinkStatus.PENDING.value)
        kwargs.setdefault("participant_count", 0)
        kwargs.setdefault("outcome_count", 0)
        kwargs.setdefault("completion_rate", 0.0)
        kwargs.setdefault("duration", 0)
        kwargs.setdefault("notes", "")
        kwargs.setdefault("tags", [])
        super().__init__(**kwargs)

    def __repr__(self):
        return f"<Link(id={self.id}, title='{self.title}', status='{self.status}')>"

    @property
    def is_completed(self) -> bool:
        return self.status == LinkStatus.COMPLETED

    def is_participant(self, user_id: int) -> bool:
        return any(p.user_id == user_id for p in self.participants)

    def _transition(self, target: LinkStatus, action: str):
        allowed = LINK_TRANSITIONS[target]
        if LinkStatus(self.status) not in allowed:
            raise InvalidStateTransition(
                action,
                LinkStatus(self.status).value,
                sorted(state.value for state in allowed)
            )
        self.status = target.value

    def recalculate_metrics(self):
        """Refresh every derived metric from participants and outcomes."""
        self.participant_count = len(self.participants)
        self.outcome_count = len(self.outcomes)
        self.completion_rate = calculate_completion_rate(self.outcomes)

    def add_participant(self, user_id: int, role: ParticipantRole = ParticipantRole.PARTICIPANT) -> bool:
        """Add a participant unless already present. Returns True if added."""
        if self.is_participant(user_id):
            return False

        self.participants.append(LinkParticipant(
            user_id=user_id,
            role=ParticipantRole(role).value,
            joined_at=datetime.utcnow()
        ))
        self.participant_count = len(self.participants)
        return True

    def schedule(self, scheduled_at: datetime) -> "Link":
        self._transition(LinkStatus.SCHEDULED, "scheduled")
        self.scheduled_at = scheduled_at
        return self

    def start_meeting(self) -> "Link":
        self._transition(LinkStatus.IN_PROGRESS, "started")
        self.started_at = datetime.utcnow()
        return self

    def complete_meeting(self, duration: float = 0, notes: str = "") -> "Link":
        if duration is None or not 0 <= duration < math.inf:
            raise ValidationError("Duration must be a non-negative number of minutes")

        self._transition(LinkStatus.COMPLETED, "completed")
        self.completed_at = datetime.utcnow()
        self.duration = duration
        self.notes = notes or ""
        self.recalculate_metrics()
        return self

    def cancel(self) -> "Link":
        self._transition(LinkStatus.CANCELLED, "cancelled")
        return self

    def mark_no_show(self) -> "Link":
        self._transition(LinkStatus.NO_SHOW, "marked as no-show")
        return self

    def add_outcome(
        self,
        type: OutcomeType,
        description: str,
        assigned_to: Optional[int] = None,
        due_date: Optional[datetime] = None
    ) -> "Link":
        self.outcomes.append(Outcome(
            type=OutcomeType(type).value,
            description=description,
            assigned_to=assigned_to,
            due_date=due_date,
            status=OutcomeStatus.PENDING.value
        ))
        self.recalculate_metrics()
        return self

    def set_outcome_status(self, outcome_id: int, status: OutcomeStatus) -> Outcome:
        for outcome in self.outcomes:
            if outcome.id == outcome_id:
                outcome.status = OutcomeStatus(status).value
                self.recalculate_metrics()
                return outcome
        raise NotFoundError("Outcome")

    def set_ai_summary(self, content: str, model: str, confidence: float = 0.8):
        self.ai_summary_content = content
        self.ai_summary_generated_at = datetime.utcnow()
        self.ai_summary_model = model
        self.ai_summary_confidence = confidence

    @property
    def ai_summary(self) -> dict:
        return {
            "content": self.ai_summary_content or "",
            "generated_at": self.ai_summary_generated_at.isoformat() if self.ai_summary_generated_at else None,
            "model": self.ai_summary_model,
            "confidence": self.ai_summary_confidence or 0
        }

    @property
    def metrics(self) -> dict:
        return {
            "participant_count": self.participant_count,
            "outcome_count": self.outcome_count,
            "completion_rate": self.completion_rate
        }

    def to_dict(self) -> dict:
        """Convert link to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "purpose": self.purpose,
            "team_id": self.team_id,
            "team": {
                "id": self.team.id,
                "name": self.team.name,
                "product_name": self.team.product_name
            } if self.team else None,
            "meeting_type": self.meeting_type,
            "status": self.status,
            "participants": [p.to_dict() for p in self.participants],
            "outcomes": [o.to_dict() for o in self.outcomes],
            "scheduled_at": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration": self.duration,
            "notes": self.notes,
            "tags": self.tags or [],
            "priority": self.priority,
            "impact": self.impact,
            "follow_up": {
                "required": bool(self.follow_up_required),
                "scheduled_at": self.follow_up_scheduled_at.isoformat() if self.follow_up_scheduled_at else None,
                "parent_link_id": self.parent_link_id
            },
            "metrics": self.metrics,
            "ai_summary": self.ai_summary,
            "metadata": {
                "created_via": self.created_via,
                "location": self.location,
                "meeting_url": self.meeting_url
            },
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None
        }
