"""
Citizen score and badge rules for CityWatch
Rewards accepted reports and penalizes rejected ones
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Score at which a citizen loses the right to report
SUSPENSION_THRESHOLD = -80


class BadgeTier(str, Enum):
    """Badge tiers, best first."""
    ELITE = "elite"
    GOLD = "gold"
    SILVER = "silver"
    BRONZE = "bronze"
    NEW = "new"
    WARNING = "warning"
    SUSPENDED = "suspended"

    @property
    def label(self) -> str:
        return BADGE_LABELS[self]

    @property
    def is_recommended(self) -> bool:
        return self in (BadgeTier.ELITE, BadgeTier.GOLD)

    @classmethod
    def from_label(cls, label: Optional[str]) -> Optional["BadgeTier"]:
        """Resolve a stored badge label (or tier value) back to its tier."""
        if not label:
            return None
        for tier, tier_label in BADGE_LABELS.items():
            if label == tier_label or label == tier.value:
                return tier
        return None


class ScoreEvent(str, Enum):
    """Report outcomes that move a citizen's score."""
    ACCEPTED = "accepted"
    REJECTED = "rejected"


BADGE_LABELS: Dict[BadgeTier, str] = {
    BadgeTier.ELITE: "🏆 Elite Citizen",
    BadgeTier.GOLD: "⭐ Gold Citizen",
    BadgeTier.SILVER: "🥈 Silver Citizen",
    BadgeTier.BRONZE: "🥉 Bronze Citizen",
    BadgeTier.NEW: "👤 New Citizen",
    BadgeTier.WARNING: "⚠️ Warning Citizen",
    BadgeTier.SUSPENDED: "🚫 Suspended Citizen",
}

# Minimum score for each tier, checked in order
BADGE_THRESHOLDS: List[Tuple[int, BadgeTier]] = [
    (100, BadgeTier.ELITE),
    (75, BadgeTier.GOLD),
    (50, BadgeTier.SILVER),
    (25, BadgeTier.BRONZE),
    (0, BadgeTier.NEW),
    (SUSPENSION_THRESHOLD, BadgeTier.WARNING),
]

SCORE_DELTAS: Dict[ScoreEvent, int] = {
    ScoreEvent.ACCEPTED: 10,
    ScoreEvent.REJECTED: -20,
}

INITIAL_SCORE = 0
INITIAL_BADGE = BadgeTier.NEW


@dataclass
class ScoreUpdate:
    """Outcome of applying a score event."""
    event: ScoreEvent
    previous_score: int
    new_score: int
    delta: int
    previous_badge: BadgeTier
    new_badge: BadgeTier

    @property
    def badge_changed(self) -> bool:
        return self.previous_badge != self.new_badge

    @property
    def is_recommended(self) -> bool:
        return self.new_badge.is_recommended

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.event.value,
            "previous_score": self.previous_score,
            "new_score": self.new_score,
            "delta": self.delta,
            "previous_badge": self.previous_badge.label,
            "new_badge": self.new_badge.label,
            "badge_changed": self.badge_changed,
            "is_recommended": self.is_recommended,
        }


def badge_for_score(score: int) -> BadgeTier:
    """Look up the badge tier for a score."""
    for minimum, tier in BADGE_THRESHOLDS:
        if score >= minimum:
            return tier
    return BadgeTier.SUSPENDED


def is_suspended(score: int) -> bool:
    """Citizens below the suspension threshold cannot submit reports."""
    return score < SUSPENSION_THRESHOLD


def is_in_warning_zone(score: int) -> bool:
    """Negative score that has not yet reached suspension."""
    return SUSPENSION_THRESHOLD <= score < 0


def apply_score_event(score: int, event: ScoreEvent) -> ScoreUpdate:
    """
    Apply a report outcome to a citizen score.

    Args:
        score: Current score
        event: Report outcome

    Returns:
        ScoreUpdate with the new score and badge
    """
    delta = SCORE_DELTAS[event]
    new_score = score + delta

    update = ScoreUpdate(
        event=event,
        previous_score=score,
        new_score=new_score,
        delta=delta,
        previous_badge=badge_for_score(score),
        new_badge=badge_for_score(new_score),
    )

    if update.badge_changed:
        logger.info(
            f"Badge change on {event.value}: {update.previous_badge.value} -> "
            f"{update.new_badge.value} (score {score} -> {new_score})"
        )

    return update


def standing_for_score(score: int) -> Dict[str, Any]:
    """Summarize what a score means for the citizen."""
    tier = badge_for_score(score)
    return {
        "score": score,
        "badge": tier.label,
        "tier": tier.value,
        "is_recommended": tier.is_recommended,
        "suspended": is_suspended(score),
        "warning": is_in_warning_zone(score),
    }
