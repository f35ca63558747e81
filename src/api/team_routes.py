"""
Team API routes: team CRUD and membership management.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, success
from src.database.database import get_db
from src.errors import AuthorizationError
from src.logger import get_logger
from src.models.team import Team
from src.models.user import User
from src.schemas.team_schemas import (
    TeamCreateRequest, TeamUpdateRequest, TeamSettingsRequest, AddMemberRequest
)
from src.services.membership_service import membership_service, team_role_for

logger = get_logger("api.teams")

team_router = APIRouter()


def _settings_fields(settings: TeamSettingsRequest) -> dict:
    fields = settings.model_dump(exclude_none=True)
    if "visibility" in fields:
        fields["visibility"] = fields["visibility"].value
    return fields


def _require_owner(team: Team, user: User):
    if team.owner_id != user.id:
        raise AuthorizationError("Only the team owner can perform this action")


@team_router.get("/")
async def list_teams(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Teams the current user belongs to."""
    roles = {membership.team_id: membership for membership in current_user.teams}
    teams = db.query(Team).filter(Team.id.in_(list(roles))).all() if roles else []

    data = []
    for team in teams:
        entry = team.to_dict()
        entry["user_role"] = roles[team.id].role
        entry["joined_at"] = roles[team.id].joined_at.isoformat() if roles[team.id].joined_at else None
        data.append(entry)

    return success(data, count=len(data))


@team_router.post("/", status_code=201)
async def create_team(
    request: TeamCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a team owned by the current user."""
    fields = request.model_dump(exclude={"settings"})
    if request.settings:
        fields.update(_settings_fields(request.settings))

    team = membership_service.create_team(db, current_user, **fields)
    return success(team.to_dict(), "Team created successfully")


@team_router.get("/{team_id}")
async def get_team(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    team = membership_service.get_team(db, team_id)
    return success(team.to_dict())


@team_router.put("/{team_id}")
async def update_team(
    team_id: int,
    request: TeamUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update team details. Owner only."""
    team = membership_service.get_team(db, team_id)
    _require_owner(team, current_user)

    changes = request.model_dump(exclude_none=True, exclude={"settings"})
    if "status" in changes:
        changes["status"] = changes["status"].value
    if request.settings:
        changes.update(_settings_fields(request.settings))

    for field, value in changes.items():
        setattr(team, field, value)

    db.commit()
    db.refresh(team)
    return success(team.to_dict(), "Team updated successfully")


@team_router.delete("/{team_id}")
async def delete_team(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a team. Owner only; links and user memberships are not touched."""
    team = membership_service.get_team(db, team_id)
    _require_owner(team, current_user)

    db.delete(team)
    db.commit()
    logger.info(f"Team {team_id} deleted by user {current_user.id}")
    return success(message="Team deleted successfully")


@team_router.post("/{team_id}/members")
async def add_member(
    team_id: int,
    request: AddMemberRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add a member by email, creating the user profile if needed."""
    team = membership_service.get_team(db, team_id)

    user = membership_service.find_or_create_user(
        db,
        email=request.email,
        name=request.name,
        department=request.department,
        designation=request.designation
    )
    team, user = membership_service.add_member(
        db, team, user, team_role_for(request.department), actor=current_user
    )
    return success(team.to_dict(), "Member added successfully")


@team_router.delete("/{team_id}/members/{user_id}")
async def remove_member(
    team_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    team = membership_service.get_team(db, team_id)
    team = membership_service.remove_member(db, team, user_id, current_user)
    return success(team.to_dict(), "Member removed successfully")


@team_router.get("/{team_id}/members")
async def list_members(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    team = membership_service.get_team(db, team_id)
    return success([member.to_dict() for member in team.members])


@team_router.get("/{team_id}/stats")
async def get_team_stats(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Team stats, badge and per-member breakdown."""
    team = membership_service.get_team(db, team_id)

    members = [
        {
            "user": member.user.to_summary() if member.user else None,
            "stats": member.user.stats if member.user else None,
            "role": member.role,
            "joined_at": member.joined_at.isoformat() if member.joined_at else None,
            "is_active": member.is_active
        }
        for member in team.members
    ]

    return success({
        "team": {
            "id": team.id,
            "name": team.name,
            "product_name": team.product_name,
            "stats": team.stats,
            "reputation_badge": team.reputation_badge,
            "member_count": team.member_count,
            "last_activity": team.last_activity.isoformat() if team.last_activity else None
        },
        "members": members,
        "summary": {
            "total_members": team.member_count,
            "active_members": team.active_members,
            "average_response_time": team.average_response_time,
            "response_rate": team.response_rate,
            "total_links": team.total_links
        }
    })
