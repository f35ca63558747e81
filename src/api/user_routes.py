"""
User API routes: profile, stats, leaderboard and onboarding.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, success
from src.database.database import get_db
from src.errors import NotFoundError
from src.models.link import Link
from src.models.team import Team
from src.models.user import User, UserRole
from src.schemas.user_schemas import UpdateProfileRequest
from src.services.analytics_service import analytics_service

user_router = APIRouter()

RECENT_ACTIVITY_LIMIT = 5


def _onboarding_view(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "onboarded": bool(user.onboarded)
    }


@user_router.get("/profile")
async def get_profile(current_user: User = Depends(get_current_user)):
    return success(current_user.to_dict())


@user_router.put("/profile")
async def update_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update profile fields and notification settings."""
    if request.name is not None:
        current_user.name = request.name
    if request.avatar is not None:
        current_user.avatar = request.avatar
    if request.role is not None:
        current_user.role = request.role.value
    if request.designation is not None:
        current_user.designation = request.designation

    if request.settings:
        if request.settings.timezone:
            current_user.timezone = request.settings.timezone
        notifications = request.settings.notifications
        if notifications:
            if notifications.email is not None:
                current_user.notify_email = notifications.email
            if notifications.push is not None:
                current_user.notify_push = notifications.push
            if notifications.in_app is not None:
                current_user.notify_in_app = notifications.in_app

    db.commit()
    db.refresh(current_user)
    return success(current_user.to_dict(), "Profile updated successfully")


@user_router.get("/stats")
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's stats with recent links and per-team performance."""
    recent_links = db.query(Link).filter(
        Link.participants.any(user_id=current_user.id)
    ).order_by(Link.created_at.desc(), Link.id.desc()).limit(RECENT_ACTIVITY_LIMIT).all()

    team_ids = [membership.team_id for membership in current_user.teams]
    teams = db.query(Team).filter(Team.id.in_(team_ids)).all() if team_ids else []

    data = dict(current_user.stats)
    data["reputation_level"] = current_user.reputation_level
    data["recent_activity"] = [
        {
            "id": link.id,
            "title": link.title,
            "status": link.status,
            "team": link.team.name if link.team else None,
            "created_at": link.created_at.isoformat() if link.created_at else None
        }
        for link in recent_links
    ]
    data["team_performance"] = [
        {
            "team_id": team.id,
            "team_name": team.name,
            "stats": team.stats,
            "reputation_badge": team.reputation_badge
        }
        for team in teams
    ]
    return success(data)


@user_router.get("/leaderboard")
async def get_leaderboard(
    team_id: Optional[int] = Query(None, description="Restrict to a team's members"),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return success(analytics_service.get_leaderboard(db, team_id=team_id, limit=limit))


@user_router.get("/search")
async def search_users(
    q: str = Query(..., min_length=2, description="Name or email fragment"),
    role: Optional[UserRole] = Query(None),
    team_id: Optional[int] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Case-insensitive search over names and emails."""
    pattern = f"%{q}%"
    query = db.query(User).filter(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    if role:
        query = query.filter(User.role == role.value)
    if team_id is not None:
        team = db.query(Team).filter(Team.id == team_id).first()
        if team:
            query = query.filter(User.id.in_(team.get_member_ids(active_only=False)))

    users = query.order_by(User.name).limit(limit).all()
    data = [user.to_summary() for user in users]
    return success(data, count=len(data))


@user_router.get("/me")
async def get_me(current_user: User = Depends(get_current_user)):
    """Minimal view used for the onboarding check."""
    return success(_onboarding_view(current_user))


@user_router.put("/onboarded")
async def mark_onboarded(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    current_user.onboarded = True
    db.commit()
    db.refresh(current_user)
    return success(_onboarding_view(current_user), "User marked as onboarded")


@user_router.get("/{user_id}")
async def get_user(
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User")
    return success(user.to_dict())
