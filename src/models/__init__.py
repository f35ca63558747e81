from src.models.team import Team, TeamMember, TeamRole, TeamStatus, TeamVisibility
from src.models.user import User, UserTeam, UserBadge, UserRole, TeamAccessRole, UserBadgeType
from src.models.link import (
    Link, LinkParticipant, Outcome, LinkStatus, MeetingType, ParticipantRole,
    OutcomeType, OutcomeStatus, LinkPriority, LinkImpact, CreatedVia,
)
from src.models import hooks  # noqa: F401

__all__ = [
    "Team", "TeamMember", "TeamRole", "TeamStatus", "TeamVisibility",
    "User", "UserTeam", "UserBadge", "UserRole", "TeamAccessRole", "UserBadgeType",
    "Link", "LinkParticipant", "Outcome", "LinkStatus", "MeetingType", "ParticipantRole",
    "OutcomeType", "OutcomeStatus", "LinkPriority", "LinkImpact", "CreatedVia",
]
