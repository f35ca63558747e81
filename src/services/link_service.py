"""
Link service: request-scoped orchestration of link creation and the
meeting lifecycle, including the team and user stats they feed.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.errors import AuthorizationError, NotFoundError
from src.logger import get_logger
from src.models.link import Link, LinkStatus, ParticipantRole, OutcomeStatus, OutcomeType
from src.models.team import Team
from src.models.user import User
from src.services.summary_service import SummaryService, summary_service as default_summary_service

logger = get_logger("links")

SECONDS_PER_HOUR = 3600


def response_time_hours(link: Link) -> float:
    """Hours between a link being raised and its meeting starting."""
    if not link.created_at or not link.started_at:
        return 0.0
    return max(0.0, (link.started_at - link.created_at).total_seconds() / SECONDS_PER_HOUR)


def team_response_rate(db: Session, team_id: int) -> float:
    """Percentage of a team's links that reached COMPLETED."""
    total = db.query(func.count(Link.id)).filter(Link.team_id == team_id).scalar() or 0
    if total == 0:
        return 0.0
    completed = db.query(func.count(Link.id)).filter(
        Link.team_id == team_id,
        Link.status == LinkStatus.COMPLETED.value
    ).scalar() or 0
    return (completed / total) * 100


class LinkService:
    """Service for creating links and driving their lifecycle."""

    def __init__(self, summarizer: Optional[SummaryService] = None):
        self.summarizer = summarizer or default_summary_service

    def get_link(self, db: Session, link_id: int) -> Link:
        link = db.query(Link).filter(Link.id == link_id).first()
        if not link:
            raise NotFoundError("Link")
        return link

    def get_link_for_participant(self, db: Session, link_id: int, user: User) -> Link:
        link = self.get_link(db, link_id)
        if not link.is_participant(user.id):
            raise AuthorizationError("You do not have access to this link")
        return link

    def create_link(self, db: Session, initiator: User, data: Dict[str, Any]) -> Link:
        """
        Create a link inside a team.

        The initiator must be an active team member. Requested participants
        who are not active members are dropped. The team's link count and
        the initiator's stats are updated in the same transaction.
        """
        team = db.query(Team).filter(Team.id == data["team_id"]).first()
        if not team:
            raise NotFoundError("Team", "The specified team does not exist")

        if not team.is_active_member(initiator.id):
            raise AuthorizationError("You must be a member of the team to create links")

        participant_ids: List[int] = [
            user_id for user_id in data.get("participants", [])
            if user_id != initiator.id and team.is_active_member(user_id)
        ]

        fields = {
            "title": data["title"],
            "purpose": data["purpose"],
            "team_id": team.id,
            "meeting_type": data["meeting_type"],
            "scheduled_at": data.get("scheduled_at"),
            "priority": data.get("priority"),
            "impact": data.get("impact"),
            "tags": data.get("tags") or [],
            "created_via": data.get("created_via"),
            "location": data.get("location") or "",
            "meeting_url": data.get("meeting_url") or "",
            "parent_link_id": data.get("parent_link_id"),
            "follow_up_required": bool(data.get("parent_link_id"))
        }
        # Unset optional fields fall back to the column defaults
        link = Link(**{key: value for key, value in fields.items() if value is not None})

        link.add_participant(initiator.id, ParticipantRole.INITIATOR)
        for user_id in participant_ids:
            link.add_participant(user_id, ParticipantRole.PARTICIPANT)

        db.add(link)

        team.update_stats(link_count=1)
        initiator.record_link()

        db.commit()
        db.refresh(link)
        logger.info(f"Link {link.id} created in team {team.id} by user {initiator.id}")
        return link

    def update_link(self, db: Session, link_id: int, user: User, changes: Dict[str, Any]) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        for field, value in changes.items():
            setattr(link, field, value)
        db.commit()
        db.refresh(link)
        return link

    def schedule_link(self, db: Session, link_id: int, user: User, scheduled_at: datetime) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.schedule(scheduled_at)
        db.commit()
        db.refresh(link)
        return link

    def start_link(self, db: Session, link_id: int, user: User) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.start_meeting()
        db.commit()
        db.refresh(link)
        logger.info(f"Meeting for link {link.id} started")
        return link

    async def complete_link(
        self,
        db: Session,
        link_id: int,
        user: User,
        duration: float = 0,
        notes: str = ""
    ) -> Link:
        """
        Complete a meeting, fold it into the team stats and request a summary.

        The completion is committed before the summary is requested; a
        failing summary leaves the completed meeting in place.
        """
        link = self.get_link_for_participant(db, link_id, user)
        link.complete_meeting(duration, notes)
        db.flush()

        team = db.query(Team).filter(Team.id == link.team_id).first()
        if team:
            team.update_stats(
                link_count=0,
                response_time=response_time_hours(link),
                response_rate=team_response_rate(db, team.id)
            )

        db.commit()
        db.refresh(link)
        logger.info(f"Meeting for link {link.id} completed after {duration} minutes")

        summary = await self.summarizer.generate_summary(link)
        if summary:
            db.commit()
            db.refresh(link)
        return link

    def cancel_link(self, db: Session, link_id: int, user: User) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.cancel()
        db.commit()
        db.refresh(link)
        return link

    def mark_no_show(self, db: Session, link_id: int, user: User) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.mark_no_show()
        db.commit()
        db.refresh(link)
        return link

    def add_outcome(
        self,
        db: Session,
        link_id: int,
        user: User,
        type: OutcomeType,
        description: str,
        assigned_to: Optional[int] = None,
        due_date: Optional[datetime] = None
    ) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.add_outcome(type, description, assigned_to, due_date)
        db.commit()
        db.refresh(link)
        return link

    def update_outcome_status(
        self,
        db: Session,
        link_id: int,
        outcome_id: int,
        user: User,
        status: OutcomeStatus
    ) -> Link:
        link = self.get_link_for_participant(db, link_id, user)
        link.set_outcome_status(outcome_id, status)
        db.commit()
        db.refresh(link)
        return link

    def delete_link(self, db: Session, link_id: int):
        """Delete a link. Team and user stats are left untouched."""
        link = self.get_link(db, link_id)
        db.delete(link)
        db.commit()
        logger.info(f"Link {link_id} deleted")


# Singleton instance
link_service = LinkService()
