"""
CityWatch - Scoring Module
Citizen score, badges, suspension and admin queue priority.
"""

from citywatch.scoring.badges import (
    BadgeTier,
    ScoreEvent,
    ScoreUpdate,
    SUSPENSION_THRESHOLD,
    apply_score_event,
    badge_for_score,
    is_suspended,
    is_in_warning_zone,
    standing_for_score,
)
from citywatch.scoring.priority import (
    IncidentPriority,
    QueueEntry,
    QueueTier,
    priority_from_severity,
    queue_priority_score,
    filter_queue,
    rank_queue,
    queue_summary,
)

__all__ = [
    # Badges
    "BadgeTier",
    "ScoreEvent",
    "ScoreUpdate",
    "SUSPENSION_THRESHOLD",
    "apply_score_event",
    "badge_for_score",
    "is_suspended",
    "is_in_warning_zone",
    "standing_for_score",
    # Priority
    "IncidentPriority",
    "QueueEntry",
    "QueueTier",
    "priority_from_severity",
    "queue_priority_score",
    "filter_queue",
    "rank_queue",
    "queue_summary",
]
