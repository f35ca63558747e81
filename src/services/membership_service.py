"""
Membership service keeping Team.members and User.teams in step.

Both sides are changed in the same session and committed together, so a
failure rolls back the pair instead of leaving a one-sided relation.
"""

from typing import Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from src.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from src.logger import get_logger
from src.models.team import Team, TeamRole
from src.models.user import User, UserRole, TeamAccessRole

logger = get_logger("membership")


def team_role_for(department: str) -> TeamRole:
    """Map a user's department onto a team role; unknown departments become stakeholders."""
    try:
        role = TeamRole(department)
    except ValueError:
        return TeamRole.STAKEHOLDER
    return TeamRole.STAKEHOLDER if role == TeamRole.OWNER else role


def access_role_for(team_role: TeamRole) -> TeamAccessRole:
    return TeamAccessRole.OWNER if team_role == TeamRole.OWNER else TeamAccessRole.MEMBER


class MembershipService:
    """Cross-aggregate membership operations."""

    def get_team(self, db: Session, team_id: int) -> Team:
        team = db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise NotFoundError("Team")
        return team

    def require_member(self, team: Team, user: User):
        if not team.is_active_member(user.id):
            raise AuthorizationError("You are not a member of this team")

    def create_team(self, db: Session, owner: User, **fields) -> Team:
        """Create a team with the owner as its first member."""
        existing = db.query(Team).filter(
            Team.name == fields["name"],
            Team.owner_id == owner.id
        ).first()
        if existing:
            raise ConflictError("A team with this name already exists")

        team = Team(owner_id=owner.id, **fields)
        db.add(team)
        db.flush()

        team.add_member(owner.id, TeamRole.OWNER)
        owner.join_team(team.id, TeamAccessRole.OWNER)

        db.commit()
        db.refresh(team)
        logger.info(f"Team {team.id} '{team.name}' created by user {owner.id}")
        return team

    def find_or_create_user(
        self,
        db: Session,
        email: str,
        name: str,
        department: UserRole,
        designation: Optional[str] = None
    ) -> User:
        email = email.strip().lower()
        user = db.query(User).filter(func.lower(User.email) == email).first()
        if user:
            return user

        user = User(
            email=email,
            name=name,
            role=UserRole(department).value,
            designation=designation,
            onboarded=False
        )
        db.add(user)
        db.flush()
        return user

    def add_member(
        self,
        db: Session,
        team: Team,
        user: User,
        role: TeamRole,
        actor: Optional[User] = None
    ) -> Tuple[Team, User]:
        """Add (or reactivate) a member on both sides of the relation."""
        if actor is not None:
            self.require_member(team, actor)

        if team.is_active_member(user.id):
            raise ConflictError("This user is already a member of the team")

        team.add_member(user.id, role)
        user.join_team(team.id, access_role_for(TeamRole(role)))

        db.commit()
        db.refresh(team)
        logger.info(f"User {user.id} added to team {team.id} as {TeamRole(role).value}")
        return team, user

    def remove_member(self, db: Session, team: Team, user_id: int, actor: User) -> Team:
        """Soft-remove a member from the team and drop the team from the user."""
        self.require_member(team, actor)

        if user_id == team.owner_id:
            raise ValidationError("Team owner cannot be removed from the team")

        team.remove_member(user_id)

        user = db.query(User).filter(User.id == user_id).first()
        if user:
            user.leave_team(team.id)

        db.commit()
        db.refresh(team)
        logger.info(f"User {user_id} removed from team {team.id} by user {actor.id}")
        return team


# Singleton instance
membership_service = MembershipService()
