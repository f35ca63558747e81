"""
Dashboard API routes backed by the analytics service.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.api.dependencies import get_current_user, success
from src.database.database import get_db
from src.models.user import User
from src.services.analytics_service import analytics_service, DEFAULT_PERIOD

dashboard_router = APIRouter()


@dashboard_router.get("/overview")
async def get_overview(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return success(analytics_service.get_user_overview(db, current_user))


@dashboard_router.get("/team/{team_id}")
async def get_team_dashboard(
    team_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return success(analytics_service.get_team_dashboard(db, team_id, current_user))


@dashboard_router.get("/cxo")
async def get_organization_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Organisation-wide dashboard."""
    return success(analytics_service.get_organization_dashboard(db))


@dashboard_router.get("/analytics")
async def get_analytics(
    period: str = Query(DEFAULT_PERIOD, description="7d, 30d or 90d"),
    team_id: Optional[int] = Query(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return success(analytics_service.get_link_analytics(db, period=period, team_id=team_id))
