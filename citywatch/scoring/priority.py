"""
Incident priority and admin triage queue ordering
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from citywatch.core.constants import HIGH_SEVERITY_THRESHOLD
from citywatch.scoring.badges import BadgeTier


class IncidentPriority(str, Enum):
    """Priority level derived from severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class QueueTier(str, Enum):
    """Reporter-based filters offered on the admin queue."""
    ALL = "all"
    ELITE = "elite"
    GOLD = "gold"
    HIGH = "high"


# Queue weight of the reporter's badge
BADGE_WEIGHTS: Dict[BadgeTier, int] = {
    BadgeTier.ELITE: 1000,
    BadgeTier.GOLD: 500,
    BadgeTier.SILVER: 200,
    BadgeTier.BRONZE: 100,
    BadgeTier.NEW: 50,
    BadgeTier.WARNING: 0,
    BadgeTier.SUSPENDED: 0,
}

SEVERITY_WEIGHT = 10
RECENCY_WINDOW_DAYS = 30


@dataclass
class QueueEntry:
    """An incident as seen on the admin queue, with its reporter's badge."""
    incident: Any
    badge: Optional[BadgeTier] = None
    priority_score: float = 0.0

    @property
    def severity(self) -> Optional[int]:
        return self.incident.severity

    @property
    def status(self) -> str:
        return self.incident.status.value

    def to_dict(self) -> Dict[str, Any]:
        data = self.incident.to_dict()
        data["user_badge"] = self.badge.label if self.badge else None
        data["priority_score"] = round(self.priority_score, 2)
        return data


def priority_from_severity(severity: Optional[int]) -> IncidentPriority:
    """Map a 1-5 severity to an incident priority."""
    severity = severity or 0
    if severity >= 5:
        return IncidentPriority.CRITICAL
    if severity >= 4:
        return IncidentPriority.HIGH
    if severity >= 3:
        return IncidentPriority.MEDIUM
    return IncidentPriority.LOW


def queue_priority_score(
    badge: Optional[BadgeTier],
    severity: Optional[int],
    created_at: Optional[datetime],
    now: Optional[datetime] = None
) -> float:
    """
    Composite score used to order the admin queue.

    Reporter badge dominates, then severity, then a small bonus that
    fades over the first 30 days after submission.

    Args:
        badge: Reporter badge tier (None if unknown)
        severity: Incident severity 1-5 (None counts as 1)
        created_at: Submission time
        now: Reference time (defaults to utcnow)

    Returns:
        Priority score, higher is more urgent
    """
    now = now or datetime.utcnow()

    score = float(BADGE_WEIGHTS.get(badge, 0)) if badge else 0.0
    score += (severity or 1) * SEVERITY_WEIGHT

    days_old = 0.0
    if created_at:
        days_old = (now - created_at).total_seconds() / 86400
    score += max(0.0, RECENCY_WINDOW_DAYS - days_old)

    return score


def _matches_tier(entry: QueueEntry, tier: QueueTier) -> bool:
    if tier == QueueTier.ELITE:
        return entry.badge == BadgeTier.ELITE
    if tier == QueueTier.GOLD:
        return entry.badge in (BadgeTier.ELITE, BadgeTier.GOLD)
    if tier == QueueTier.HIGH:
        return (
            entry.badge in (BadgeTier.ELITE, BadgeTier.GOLD)
            or (entry.severity or 0) >= HIGH_SEVERITY_THRESHOLD
        )
    return True


def filter_queue(
    entries: Iterable[QueueEntry],
    search: Optional[str] = None,
    severity: Optional[int] = None,
    status: Optional[str] = None,
    tier: QueueTier = QueueTier.ALL
) -> List[QueueEntry]:
    """
    Apply the admin queue filters.

    Args:
        entries: Queue entries
        search: Case-insensitive term matched against description,
            address and reporter name
        severity: Exact severity
        status: Exact status value
        tier: Reporter tier filter

    Returns:
        Entries matching every filter
    """
    term = search.strip().lower() if search else ""
    matched = []

    for entry in entries:
        incident = entry.incident

        if term:
            haystacks = [incident.description, incident.address, incident.user_name]
            if not any(term in (h or "").lower() for h in haystacks):
                continue

        if severity is not None and entry.severity != severity:
            continue

        if status and entry.status != status:
            continue

        if not _matches_tier(entry, tier):
            continue

        matched.append(entry)

    return matched


def rank_queue(
    entries: Iterable[QueueEntry],
    now: Optional[datetime] = None
) -> List[QueueEntry]:
    """Score entries and sort them most urgent first, newest first on ties."""
    now = now or datetime.utcnow()
    ranked = list(entries)

    for entry in ranked:
        entry.priority_score = queue_priority_score(
            entry.badge, entry.severity, entry.incident.created_at, now
        )

    ranked.sort(
        key=lambda e: (e.priority_score, e.incident.created_at or datetime.min),
        reverse=True,
    )
    return ranked


def queue_summary(entries: Iterable[QueueEntry]) -> Dict[str, int]:
    """Headline counters shown above the admin queue."""
    entries = list(entries)
    return {
        "total": len(entries),
        "pending": sum(1 for e in entries if e.status == "pending"),
        "high_severity": sum(
            1 for e in entries if (e.severity or 0) >= HIGH_SEVERITY_THRESHOLD
        ),
        "resolved": sum(1 for e in entries if e.status == "resolved"),
        "elite_reports": sum(1 for e in entries if e.badge == BadgeTier.ELITE),
    }
