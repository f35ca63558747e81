"""
Analytics service for dashboards, leaderboards and link activity trends.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional
from sqlalchemy.orm import Session
from sqlalchemy import func, case

from src.errors import AuthorizationError, NotFoundError
from src.models.link import Link, LinkStatus
from src.models.team import Team, TeamStatus
from src.models.user import User
from src.services.reputation import get_reputation_level

PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90}
DEFAULT_PERIOD = "30d"
ATTENTION_RESPONSE_RATE = 50


def get_period_start(period: str, now: Optional[datetime] = None) -> datetime:
    """Start of an analytics window; unknown periods fall back to 30 days."""
    now = now or datetime.utcnow()
    days = PERIOD_DAYS.get(period, PERIOD_DAYS[DEFAULT_PERIOD])
    return now - timedelta(days=days)


def average_response_rate(teams: List[Team]) -> int:
    if not teams:
        return 0
    return round(sum(team.response_rate or 0 for team in teams) / len(teams))


def average_response_time(teams: List[Team]) -> int:
    if not teams:
        return 0
    return round(sum(team.average_response_time or 0 for team in teams) / len(teams))


def _recent_links_query(db: Session):
    return db.query(Link).order_by(Link.created_at.desc(), Link.id.desc())


class AnalyticsService:
    """Service for generating dashboard data and metrics."""

    def get_user_overview(self, db: Session, user: User, limit: int = 10) -> Dict[str, Any]:
        """Overview for the signed-in user."""
        team_ids = [membership.team_id for membership in user.teams]
        teams = db.query(Team).filter(Team.id.in_(team_ids)).all() if team_ids else []

        recent_links = _recent_links_query(db).filter(
            Link.participants.any(user_id=user.id)
        ).limit(limit).all()

        return {
            "summary": {
                "total_teams": len(teams),
                "active_teams": len([t for t in teams if t.status == TeamStatus.ACTIVE]),
                "total_links": user.total_links,
                "response_rate": user.response_rate or 0,
                "average_response_time": user.average_response_time or 0,
                "reputation_score": user.reputation_score or 0,
                "reputation_level": user.reputation_level
            },
            "teams": [team.to_dict(include_members=False) for team in teams],
            "recent_links": [link.to_dict() for link in recent_links],
            "user": {
                "name": user.name,
                "role": user.role,
                "avatar": user.avatar,
                "badges": [badge.to_dict() for badge in user.badges]
            }
        }

    def get_team_dashboard(self, db: Session, team_id: int, user: User, limit: int = 10) -> Dict[str, Any]:
        """Dashboard for a single team; only its members may view it."""
        membership = user.get_team_membership(team_id)
        if membership is None:
            raise AuthorizationError("You are not a member of this team")

        team = db.query(Team).filter(Team.id == team_id).first()
        if not team:
            raise NotFoundError("Team")

        recent_links = _recent_links_query(db).filter(Link.team_id == team_id).limit(limit).all()

        member_performance = [
            {
                "user": member.user.to_summary() if member.user else None,
                "role": member.role,
                "joined_at": member.joined_at.isoformat() if member.joined_at else None,
                "stats": member.user.stats if member.user else None,
                "badges": [badge.to_dict() for badge in member.user.badges] if member.user else [],
                "is_active": member.is_active
            }
            for member in team.members
        ]

        return {
            "team": team.to_dict(),
            "metrics": {
                "total_members": team.member_count,
                "active_members": team.active_members,
                "total_links": team.total_links,
                "average_response_time": team.average_response_time,
                "response_rate": team.response_rate,
                "reputation_badge": team.reputation_badge
            },
            "recent_links": [link.to_dict() for link in recent_links],
            "member_performance": member_performance,
            "user_role": membership.role
        }

    def get_organization_dashboard(self, db: Session, top_n: int = 5) -> Dict[str, Any]:
        """Organisation-wide view across all active teams."""
        teams = db.query(Team).filter(
            Team.status == TeamStatus.ACTIVE.value
        ).order_by(Team.last_activity.desc()).all()

        users = db.query(User).order_by(User.reputation_score.desc(), User.id).all()

        teams_needing_attention = [
            team for team in teams if (team.response_rate or 0) < ATTENTION_RESPONSE_RATE
        ][:top_n]
        top_performers = [self._leaderboard_entry(i, u) for i, u in enumerate(users[:top_n])]

        recent_activity = _recent_links_query(db).limit(20).all()

        return {
            "org_metrics": {
                "total_teams": len(teams),
                "total_users": len(users),
                "active_teams": len(teams),
                "average_response_rate": average_response_rate(teams),
                "average_response_time": average_response_time(teams)
            },
            "teams": [team.to_dict(include_members=False) for team in teams],
            "recent_activity": [link.to_dict() for link in recent_activity],
            "top_performers": top_performers,
            "teams_needing_attention": [
                team.to_dict(include_members=False) for team in teams_needing_attention
            ]
        }

    def get_link_analytics(
        self,
        db: Session,
        period: str = DEFAULT_PERIOD,
        team_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """Links created and completed per day, plus team averages."""
        start = get_period_start(period)

        query = db.query(
            func.date(Link.created_at).label("date"),
            func.count(Link.id).label("count"),
            func.sum(case((Link.status == LinkStatus.COMPLETED.value, 1), else_=0)).label("completed")
        ).filter(Link.created_at >= start)

        if team_id is not None:
            query = query.filter(Link.team_id == team_id)

        daily = query.group_by(func.date(Link.created_at)).order_by("date").all()

        trends = db.query(
            func.avg(Team.response_rate),
            func.avg(Team.average_response_time),
            func.sum(Team.total_links)
        ).filter(Team.status == TeamStatus.ACTIVE.value).one()

        return {
            "period": period if period in PERIOD_DAYS else DEFAULT_PERIOD,
            "links_analytics": [
                {
                    "date": date if isinstance(date, str) else date.isoformat(),
                    "count": count,
                    "completed": int(completed or 0)
                }
                for date, count, completed in daily
            ],
            "team_trends": {
                "avg_response_rate": round(trends[0] or 0, 2),
                "avg_response_time": round(trends[1] or 0, 2),
                "total_links": int(trends[2] or 0)
            }
        }

    def get_leaderboard(self, db: Session, team_id: Optional[int] = None, limit: int = 10) -> List[Dict[str, Any]]:
        """Users ranked by reputation score."""
        query = db.query(User)

        if team_id is not None:
            team = db.query(Team).filter(Team.id == team_id).first()
            if not team:
                raise NotFoundError("Team", "The specified team does not exist")
            query = query.filter(User.id.in_(team.get_member_ids(active_only=False)))

        users = query.order_by(User.reputation_score.desc(), User.id).limit(limit).all()
        return [self._leaderboard_entry(index, user) for index, user in enumerate(users)]

    @staticmethod
    def _leaderboard_entry(index: int, user: User) -> Dict[str, Any]:
        return {
            "rank": index + 1,
            "user": user.to_summary(),
            "stats": user.stats,
            "badges": [badge.to_dict() for badge in user.badges],
            "reputation_level": get_reputation_level(user.reputation_score or 0)
        }


# Singleton instance
analytics_service = AnalyticsService()
