"""
Reputation scoring rules for users and teams.

All functions here are pure: they take plain stat values and return the
derived score, badge or level. The models call into them from their
recompute methods and save hooks.
"""

import math
from enum import Enum
from typing import Dict, Tuple

MIN_REPUTATION_SCORE = 0.0
MAX_REPUTATION_SCORE = 200.0
BASE_REPUTATION_SCORE = 100.0


class TeamBadgeType(str, Enum):
    """Qualitative team reputation badges."""
    SUPER_RESPONDERS = "SUPER_RESPONDERS"
    CLEAR_COMMUNICATORS = "CLEAR_COMMUNICATORS"
    SLOW_STEADY = "SLOW_STEADY"
    GHOST_MODE = "GHOST_MODE"


class ReputationLevel(str, Enum):
    """Display classification of a user's reputation score."""
    LEGENDARY = "LEGENDARY"
    EXCELLENT = "EXCELLENT"
    GOOD = "GOOD"
    AVERAGE = "AVERAGE"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"
    POOR = "POOR"


TEAM_BADGE_DESCRIPTIONS: Dict[TeamBadgeType, str] = {
    TeamBadgeType.SUPER_RESPONDERS: "Team responds quickly and consistently",
    TeamBadgeType.CLEAR_COMMUNICATORS: "Team maintains good communication flow",
    TeamBadgeType.SLOW_STEADY: "Team responds but could be faster",
    TeamBadgeType.GHOST_MODE: "Team needs to improve responsiveness",
}

# (minimum score, level, colour), highest first
REPUTATION_LEVELS = [
    (180, ReputationLevel.LEGENDARY, "purple"),
    (150, ReputationLevel.EXCELLENT, "gold"),
    (120, ReputationLevel.GOOD, "green"),
    (90, ReputationLevel.AVERAGE, "blue"),
    (60, ReputationLevel.NEEDS_IMPROVEMENT, "orange"),
]


def clamp_score(score: float) -> float:
    """Clamp a raw score into the reputation bounds."""
    if math.isnan(score):
        return MIN_REPUTATION_SCORE
    return max(MIN_REPUTATION_SCORE, min(MAX_REPUTATION_SCORE, score))


def calculate_user_score(
    response_rate: float,
    average_response_time: float,
    total_links: int
) -> float:
    """
    Compute a user's reputation score.

    Response rate moves the score half a point per percent around 50%.
    Answering faster than 24 hours earns two points per hour saved, but
    only once a response time has actually been recorded. Every link
    created adds five points.
    """
    score = BASE_REPUTATION_SCORE
    score += ((response_rate or 0) - 50) * 0.5

    if average_response_time and average_response_time > 0:
        score += max(0, 24 - average_response_time) * 2

    score += (total_links or 0) * 5

    return clamp_score(score)


def calculate_team_badge(
    response_rate: float,
    average_response_time: float
) -> Tuple[TeamBadgeType, str]:
    """Pick a team badge; the first matching rule wins."""
    response_rate = response_rate or 0
    average_response_time = average_response_time or 0

    if response_rate >= 90 and average_response_time <= 2:
        badge = TeamBadgeType.SUPER_RESPONDERS
    elif response_rate >= 70 and average_response_time <= 24:
        badge = TeamBadgeType.CLEAR_COMMUNICATORS
    elif response_rate >= 50:
        badge = TeamBadgeType.SLOW_STEADY
    else:
        badge = TeamBadgeType.GHOST_MODE

    return badge, TEAM_BADGE_DESCRIPTIONS[badge]


def get_reputation_level(score: float) -> Dict[str, str]:
    """Classify a score for display. Not persisted."""
    for minimum, level, color in REPUTATION_LEVELS:
        if score >= minimum:
            return {"level": level.value, "color": color}
    return {"level": ReputationLevel.POOR.value, "color": "red"}
