"""
Record types for citizen incident reports, profiles and notifications
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from citywatch.ai.classifier import AIAnalysis
from citywatch.scoring.badges import (
    BadgeTier,
    INITIAL_BADGE,
    INITIAL_SCORE,
    ScoreEvent,
    ScoreUpdate,
    apply_score_event,
    badge_for_score,
    is_in_warning_zone,
    is_suspended,
)
from citywatch.scoring.priority import IncidentPriority

SYSTEM_ACTOR = "system"


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


class IncidentStatus(str, Enum):
    """Lifecycle status of an incident."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class UserRole(str, Enum):
    """Account role."""
    USER = "user"
    ADMIN = "admin"


class NotificationType(str, Enum):
    """Kinds of in-app notification."""
    INCIDENT_CREATED = "incident_created"
    INCIDENT_ACCEPTED = "incident_accepted"
    INCIDENT_REJECTED = "incident_rejected"
    INCIDENT_IN_PROGRESS = "incident_in_progress"
    INCIDENT_PENDING = "incident_pending"
    BADGE_EARNED = "badge_earned"


@dataclass
class Incident:
    """
    Incident reported by a citizen.

    Carries the pinned location, the citizen's description and the AI
    analysis used for triage.
    """
    id: str
    user_id: str
    latitude: float
    longitude: float
    description: str
    analysis: AIAnalysis

    # Reporter
    user_email: Optional[str] = None
    user_name: Optional[str] = None

    address: Optional[str] = None

    # Triage
    status: IncidentStatus = IncidentStatus.PENDING
    priority: IncidentPriority = IncidentPriority.MEDIUM
    analysis_pending: bool = False
    admin_notes: Optional[str] = None
    status_changed_by: Optional[str] = None

    # Timestamps
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None
    status_changed_at: Optional[datetime] = None

    @property
    def severity(self) -> int:
        return self.analysis.severity

    @property
    def category(self) -> str:
        return self.analysis.category

    def set_status(
        self,
        status: IncidentStatus,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> IncidentStatus:
        """Move to a new status and return the previous one."""
        now = now or datetime.utcnow()
        previous = self.status

        self.status = status
        self.updated_at = now
        self.status_changed_at = now
        self.status_changed_by = changed_by or SYSTEM_ACTOR
        if notes is not None:
            self.admin_notes = notes
        return previous

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "user_email": self.user_email,
            "user_name": self.user_name,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
            "description": self.description,
            "analysis": self.analysis.to_dict(),
            "severity": self.severity,
            "category": self.category,
            "status": self.status.value,
            "priority": self.priority.value,
            "analysis_pending": self.analysis_pending,
            "admin_notes": self.admin_notes,
            "status_changed_by": self.status_changed_by,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
            "status_changed_at": _iso(self.status_changed_at),
        }


@dataclass
class UserProfile:
    """Citizen or administrator profile with reporting score."""
    uid: str
    email: str
    display_name: str
    role: UserRole = UserRole.USER

    # Reputation
    score: int = INITIAL_SCORE
    badge: str = INITIAL_BADGE.label
    is_recommended: bool = False

    # Counters
    total_reports: int = 0
    accepted_reports: int = 0
    rejected_reports: int = 0

    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = None

    @property
    def tier(self) -> BadgeTier:
        return BadgeTier.from_label(self.badge) or badge_for_score(self.score)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def suspended(self) -> bool:
        return is_suspended(self.score)

    @property
    def in_warning_zone(self) -> bool:
        return is_in_warning_zone(self.score)

    def apply_score_event(self, event: ScoreEvent) -> ScoreUpdate:
        """Apply a report outcome to score, badge and counters."""
        update = apply_score_event(self.score, event)

        self.score = update.new_score
        self.badge = update.new_badge.label
        self.is_recommended = update.is_recommended
        if event == ScoreEvent.ACCEPTED:
            self.accepted_reports += 1
        else:
            self.rejected_reports += 1
        self.updated_at = datetime.utcnow()
        return update

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "uid": self.uid,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role.value,
            "score": self.score,
            "badge": self.badge,
            "is_recommended": self.is_recommended,
            "total_reports": self.total_reports,
            "accepted_reports": self.accepted_reports,
            "rejected_reports": self.rejected_reports,
            "suspended": self.suspended,
            "warning": self.in_warning_zone,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class Notification:
    """In-app notification for a user."""
    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    incident_id: Optional[str] = None
    points: Optional[int] = None
    badge: Optional[str] = None
    is_read: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type.value,
            "title": self.title,
            "message": self.message,
            "incident_id": self.incident_id,
            "points": self.points,
            "badge": self.badge,
            "is_read": self.is_read,
            "created_at": _iso(self.created_at),
        }


@dataclass
class StatusTransition:
    """Result of moving an incident to a new status."""
    incident: Incident
    previous_status: IncidentStatus
    score_event: Optional[ScoreEvent] = None
    score_update: Optional[ScoreUpdate] = None

    @property
    def changed(self) -> bool:
        return self.previous_status != self.incident.status
