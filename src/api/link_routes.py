"""
Link API routes: link CRUD, the meeting lifecycle and outcomes.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, success
from src.config import settings
from src.database.database import get_db
from src.models.link import Link, LinkStatus
from src.models.user import User
from src.schemas.link_schemas import (
    LinkCreateRequest, LinkUpdateRequest, ScheduleLinkRequest,
    CompleteLinkRequest, AddOutcomeRequest, OutcomeStatusRequest
)
from src.services.link_service import link_service
from src.services.membership_service import membership_service

link_router = APIRouter()


def _links_payload(links) -> dict:
    data = [link.to_dict() for link in links]
    return success(data, count=len(data))


@link_router.get("/")
async def list_links(
    status: Optional[LinkStatus] = Query(None, description="Filter by status"),
    team_id: Optional[int] = Query(None, description="Filter by team"),
    limit: int = Query(settings.DEFAULT_LINK_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Links the current user participates in, newest first."""
    query = db.query(Link).filter(Link.participants.any(user_id=current_user.id))

    if status:
        query = query.filter(Link.status == status.value)
    if team_id is not None:
        query = query.filter(Link.team_id == team_id)

    links = query.order_by(Link.created_at.desc(), Link.id.desc()).limit(limit).all()
    return _links_payload(links)


@link_router.post("/", status_code=201)
async def create_link(
    request: LinkCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.create_link(db, current_user, request.model_dump())
    return success(link.to_dict(), "Link created successfully")


@link_router.get("/team/{team_id}")
async def list_team_links(
    team_id: int,
    status: Optional[LinkStatus] = Query(None),
    limit: int = Query(settings.DEFAULT_LINK_LIMIT, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Links raised in a team, for its members."""
    team = membership_service.get_team(db, team_id)
    membership_service.require_member(team, current_user)

    query = db.query(Link).filter(Link.team_id == team_id)
    if status:
        query = query.filter(Link.status == status.value)

    links = query.order_by(Link.created_at.desc(), Link.id.desc()).limit(limit).all()
    return _links_payload(links)


@link_router.get("/{link_id}")
async def get_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.get_link_for_participant(db, link_id, current_user)
    return success(link.to_dict())


@link_router.put("/{link_id}")
async def update_link(
    link_id: int,
    request: LinkUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    changes = {
        field: value.value if hasattr(value, "value") else value
        for field, value in request.model_dump(exclude_none=True).items()
    }
    link = link_service.update_link(db, link_id, current_user, changes)
    return success(link.to_dict(), "Link updated successfully")


@link_router.delete("/{link_id}")
async def delete_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link_service.get_link_for_participant(db, link_id, current_user)
    link_service.delete_link(db, link_id)
    return success(message="Link deleted")


@link_router.post("/{link_id}/schedule")
async def schedule_link(
    link_id: int,
    request: ScheduleLinkRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.schedule_link(db, link_id, current_user, request.scheduled_at)
    return success(link.to_dict(), "Meeting scheduled")


@link_router.post("/{link_id}/start")
async def start_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.start_link(db, link_id, current_user)
    return success(link.to_dict(), "Meeting started")


@link_router.post("/{link_id}/complete")
async def complete_link(
    link_id: int,
    request: CompleteLinkRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Complete a meeting; an AI summary is attached when available."""
    link = await link_service.complete_link(
        db, link_id, current_user, duration=request.duration, notes=request.notes
    )
    return success(link.to_dict(), "Meeting completed")


@link_router.post("/{link_id}/cancel")
async def cancel_link(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.cancel_link(db, link_id, current_user)
    return success(link.to_dict(), "Meeting cancelled")


@link_router.post("/{link_id}/no-show")
async def mark_no_show(
    link_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.mark_no_show(db, link_id, current_user)
    return success(link.to_dict(), "Meeting marked as no-show")


@link_router.post("/{link_id}/outcomes", status_code=201)
async def add_outcome(
    link_id: int,
    request: AddOutcomeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.add_outcome(
        db,
        link_id,
        current_user,
        type=request.type,
        description=request.description,
        assigned_to=request.assigned_to,
        due_date=request.due_date
    )
    return success(link.to_dict(), "Outcome added")


@link_router.put("/{link_id}/outcomes/{outcome_id}")
async def update_outcome_status(
    link_id: int,
    outcome_id: int,
    request: OutcomeStatusRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    link = link_service.update_outcome_status(db, link_id, outcome_id, current_user, request.status)
    return success(link.to_dict(), "Outcome updated")
