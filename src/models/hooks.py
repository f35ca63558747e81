"""
Save-time recompute hooks.

Before every flush, derived values are refreshed for any aggregate whose
source data changed:

- Team stats changed      -> reputation badge
- User stats changed      -> reputation score
- Link participants or outcomes changed (added, removed or edited in
  place) -> link metrics
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session

from src.models.link import Link, LinkParticipant, Outcome
from src.models.team import Team, TEAM_STATS_FIELDS
from src.models.user import User, USER_STATS_FIELDS


def _fields_changed(obj, fields) -> bool:
    state = inspect(obj)
    if state.pending or state.transient:
        return True
    return any(state.attrs[field].history.has_changes() for field in fields)


def _collection_changed(obj, name: str) -> bool:
    state = inspect(obj)
    if state.pending or state.transient:
        return True
    return state.attrs[name].history.has_changes()


@event.listens_for(Session, "before_flush")
def recompute_derived_fields(session, flush_context, instances):
    links = set()

    for obj in list(session.new) + list(session.dirty):
        if isinstance(obj, Team):
            if _fields_changed(obj, TEAM_STATS_FIELDS):
                obj.calculate_reputation_badge()
        elif isinstance(obj, User):
            if _fields_changed(obj, USER_STATS_FIELDS):
                obj.calculate_reputation_score()
        elif isinstance(obj, Link):
            if _collection_changed(obj, "participants") or _collection_changed(obj, "outcomes"):
                links.add(obj)
        elif isinstance(obj, (Outcome, LinkParticipant)) and obj.link is not None:
            links.add(obj.link)

    for obj in session.deleted:
        if isinstance(obj, (Outcome, LinkParticipant)):
            parent = obj.link
            if parent is not None and parent not in session.deleted:
                links.add(parent)

    for link in links:
        link.recalculate_metrics()
