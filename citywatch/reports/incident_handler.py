"""
Incident report handler
Receives citizen reports, tracks their review status and applies the
outcome to the reporter's score.
"""

import logging
import threading
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from citywatch.ai.classifier import AIAnalysis, IncidentClassifier
from citywatch.core.constants import (
    HIGH_SEVERITY_THRESHOLD,
    INCIDENT_CATEGORIES,
    MAX_DESCRIPTION_LENGTH,
    MAX_SEVERITY,
    MIN_SEVERITY,
)
from citywatch.core.geo_utils import is_valid_coordinate
from citywatch.reports.notifications import NotificationCenter
from citywatch.reports.profiles import ProfileManager
from citywatch.reports.records import (
    SYSTEM_ACTOR,
    Incident,
    IncidentStatus,
    StatusTransition,
    UserProfile,
)
from citywatch.reports.store import MemoryStore
from citywatch.scoring.badges import ScoreEvent
from citywatch.scoring.priority import (
    QueueEntry,
    QueueTier,
    filter_queue,
    priority_from_severity,
    queue_summary,
    rank_queue,
)

logger = logging.getLogger(__name__)

STATUS_SCORE_EVENTS = {
    IncidentStatus.RESOLVED: ScoreEvent.ACCEPTED,
    IncidentStatus.REJECTED: ScoreEvent.REJECTED,
}


class ReportingSuspendedError(Exception):
    """The citizen's score is below the suspension threshold."""

    def __init__(self, uid: str, score: int):
        self.uid = uid
        self.score = score
        super().__init__(
            f"Reporting suspended for {uid} (score {score}). "
            "Your account is suspended from submitting reports."
        )


def parse_status(status: Union[IncidentStatus, str]) -> IncidentStatus:
    """
    Parse a status value.

    Raises:
        ValueError: If the value is not a known status
    """
    if isinstance(status, IncidentStatus):
        return status
    try:
        return IncidentStatus(status)
    except ValueError:
        valid = ", ".join(s.value for s in IncidentStatus)
        raise ValueError(f"Invalid status '{status}'. Must be one of: {valid}")


def parse_category(category: str) -> str:
    """
    Match a category name case-insensitively.

    Raises:
        ValueError: If the category is unknown
    """
    wanted = (category or "").strip().lower()
    for known in INCIDENT_CATEGORIES:
        if known.lower() == wanted:
            return known
    raise ValueError(
        f"Invalid category '{category}'. Must be one of: {', '.join(INCIDENT_CATEGORIES)}"
    )


class IncidentHandler:
    """
    Handles incident reports from citizens.

    Owns the report lifecycle: submission, AI analysis write-back,
    admin review and the score changes that review triggers.
    """

    def __init__(
        self,
        store: Optional[Any] = None,
        profiles: Optional[ProfileManager] = None,
        notifications: Optional[NotificationCenter] = None
    ):
        """
        Initialize incident handler.

        Args:
            store: Record store (default: in-memory)
            profiles: Profile manager sharing the same store
            notifications: Notification center sharing the same store
        """
        self.store = store or MemoryStore()
        self.notifications = notifications or NotificationCenter(self.store)
        self.profiles = profiles or ProfileManager(self.store, self.notifications)
        self._lock = threading.RLock()

        logger.info("IncidentHandler initialized")

    def submit_incident(
        self,
        user: UserProfile,
        description: str,
        latitude: float,
        longitude: float,
        address: Optional[str] = None,
        analysis: Optional[AIAnalysis] = None
    ) -> Incident:
        """
        Submit a new incident report.

        Without an analysis the incident is stored with the fallback
        analysis and flagged for classification.

        Args:
            user: Reporter profile
            description: What the citizen saw
            latitude: Pinned latitude
            longitude: Pinned longitude
            address: Optional address text
            analysis: Analysis already obtained from the preview

        Returns:
            Created Incident

        Raises:
            ReportingSuspendedError: If the reporter is suspended
            ValueError: If the description or location is invalid
        """
        current = self.store.get_user(user.uid) or user
        if current.suspended:
            logger.warning(f"Rejected report from suspended user {user.uid}")
            raise ReportingSuspendedError(user.uid, current.score)

        description = (description or "").strip()
        if not description:
            raise ValueError("Description is required")
        if len(description) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
            )
        if not is_valid_coordinate(latitude, longitude):
            raise ValueError(f"Invalid coordinates: ({latitude}, {longitude})")

        pending = analysis is None
        if pending:
            analysis = AIAnalysis.fallback("Analysis pending")

        incident = Incident(
            id=str(uuid.uuid4())[:12].upper(),
            user_id=current.uid,
            user_email=current.email,
            user_name=current.display_name,
            latitude=latitude,
            longitude=longitude,
            address=address.strip() if address else None,
            description=description,
            analysis=analysis,
            priority=priority_from_severity(analysis.severity),
            analysis_pending=pending,
        )

        with self._lock:
            self.store.save_incident(incident)
            self.profiles.record_submission(current.uid)

        self.notifications.incident_created(current.uid, incident.id, description)

        logger.info(
            f"New incident {incident.id} from {current.uid} at ({latitude}, {longitude}), "
            f"category {analysis.category}"
        )
        return incident

    def analyze_incident(
        self,
        incident_id: str,
        classifier: IncidentClassifier,
        only_if_pending: bool = False
    ) -> Optional[Incident]:
        """
        Classify a stored incident and write the analysis back.

        Args:
            incident_id: Incident ID
            classifier: Classifier to use
            only_if_pending: Drop the result if the incident was analyzed
                (e.g. by an admin) while the classifier was running

        Returns:
            Updated incident or None
        """
        incident = self.store.get_incident(incident_id)
        if not incident:
            return None

        analysis = classifier.analyze(incident.description)
        return self.update_analysis(incident_id, analysis, only_if_pending=only_if_pending)

    def update_analysis(
        self,
        incident_id: str,
        analysis: AIAnalysis,
        only_if_pending: bool = False
    ) -> Optional[Incident]:
        """Replace an incident's analysis and re-derive its priority."""
        with self._lock:
            incident = self.store.get_incident(incident_id)
            if not incident:
                return None

            if only_if_pending and not incident.analysis_pending:
                logger.info(f"Incident {incident_id} already analyzed, keeping current analysis")
                return incident

            incident.analysis = analysis
            incident.priority = priority_from_severity(analysis.severity)
            incident.analysis_pending = False
            incident.updated_at = datetime.utcnow()
            self.store.save_incident(incident)

        logger.info(
            f"Incident {incident_id} analysis: {analysis.category}, severity {analysis.severity}"
        )
        return incident

    def update_status(
        self,
        incident_id: str,
        status: Union[IncidentStatus, str],
        notes: Optional[str] = None,
        admin_id: Optional[str] = None
    ) -> Optional[Incident]:
        """
        Update incident status.

        Moving into resolved or rejected changes the reporter's score. The
        status change and the score change are applied by the store as one
        atomic step.

        Args:
            incident_id: Incident ID
            status: New status
            notes: Admin notes
            admin_id: Admin making the change (default: "system")

        Returns:
            Updated incident or None

        Raises:
            ValueError: If the status is unknown
        """
        new_status = parse_status(status)

        transition = self.store.transition_incident(
            incident_id,
            new_status,
            changed_by=admin_id or SYSTEM_ACTOR,
            notes=notes,
            score_event=STATUS_SCORE_EVENTS.get(new_status),
        )
        if not transition:
            return None

        logger.info(
            f"Incident {incident_id} status: "
            f"{transition.previous_status.value} -> {new_status.value}"
        )

        if transition.changed:
            self._on_status_change(transition)

        return transition.incident

    def _on_status_change(self, transition: StatusTransition) -> None:
        incident = transition.incident
        uid = incident.user_id

        if transition.score_update:
            self.profiles.announce_score_update(
                uid, transition.score_event, transition.score_update
            )

        if incident.status == IncidentStatus.RESOLVED:
            self.notifications.incident_accepted(uid, incident.id, incident.description)
        elif incident.status == IncidentStatus.REJECTED:
            self.notifications.incident_rejected(uid, incident.id, incident.description)
        elif incident.status == IncidentStatus.IN_PROGRESS:
            self.notifications.incident_in_progress(uid, incident.id, incident.description)
        else:
            self.notifications.incident_pending(uid, incident.id, incident.description)

    def get_incident(self, incident_id: str) -> Optional[Incident]:
        """Get incident by ID."""
        return self.store.get_incident(incident_id)

    def list_incidents(self) -> List[Incident]:
        """All incidents, newest first."""
        return self.store.list_incidents()

    def list_user_incidents(self, user_id: str) -> List[Incident]:
        """A citizen's incidents, newest first."""
        return self.store.list_incidents(user_id=user_id)

    def search_incidents(
        self,
        term: Optional[str] = None,
        status: Optional[str] = None,
        category: Optional[str] = None,
        severity: Optional[int] = None
    ) -> List[Incident]:
        """
        Search incidents.

        Args:
            term: Case-insensitive text matched against description,
                address, reporter name, AI summary and category
            status: Exact status
            category: Exact category
            severity: Exact severity

        Returns:
            Matching incidents, newest first

        Raises:
            ValueError: On an unknown status, category or severity
        """
        wanted_status = parse_status(status) if status else None
        wanted_category = parse_category(category) if category else None
        if severity is not None and not MIN_SEVERITY <= severity <= MAX_SEVERITY:
            raise ValueError(f"Severity must be between {MIN_SEVERITY} and {MAX_SEVERITY}")

        needle = term.strip().lower() if term else ""
        results = []

        for incident in self.store.list_incidents():
            if wanted_status and incident.status != wanted_status:
                continue
            if wanted_category and incident.category != wanted_category:
                continue
            if severity is not None and incident.severity != severity:
                continue
            if needle:
                fields = [
                    incident.description,
                    incident.address,
                    incident.user_name,
                    incident.analysis.summary,
                    incident.category,
                ]
                if not any(needle in (f or "").lower() for f in fields):
                    continue
            results.append(incident)

        return results

    def get_statistics(self) -> Dict[str, Any]:
        """Get incident statistics."""
        incidents = self.store.list_incidents()
        total = len(incidents)

        by_status = {s.value: 0 for s in IncidentStatus}
        by_category: Dict[str, int] = {}
        by_severity: Dict[int, int] = {}
        high_severity = 0

        for incident in incidents:
            by_status[incident.status.value] += 1

            category = incident.category
            by_category[category] = by_category.get(category, 0) + 1

            severity = incident.severity
            by_severity[severity] = by_severity.get(severity, 0) + 1

            if severity >= HIGH_SEVERITY_THRESHOLD:
                high_severity += 1

        closed = by_status[IncidentStatus.RESOLVED.value] + by_status[IncidentStatus.REJECTED.value]

        return {
            "total_incidents": total,
            "by_status": by_status,
            "by_category": by_category,
            "by_severity": by_severity,
            "high_severity": high_severity,
            "acceptance_rate": (
                by_status[IncidentStatus.RESOLVED.value] / closed if closed > 0 else 0
            ),
        }

    def admin_queue(
        self,
        search: Optional[str] = None,
        severity: Optional[int] = None,
        status: Optional[str] = None,
        tier: Union[QueueTier, str] = QueueTier.ALL,
        now: Optional[datetime] = None
    ) -> List[QueueEntry]:
        """
        Build the admin review queue.

        Each incident is paired with its reporter's current badge, then
        filtered and ranked most urgent first.

        Raises:
            ValueError: On an unknown status or tier
        """
        if status:
            parse_status(status)
        tier = QueueTier(tier)

        badges = {p.uid: p.tier for p in self.store.list_users()}
        entries = [
            QueueEntry(incident=incident, badge=badges.get(incident.user_id))
            for incident in self.store.list_incidents()
        ]

        matched = filter_queue(entries, search=search, severity=severity, status=status, tier=tier)
        return rank_queue(matched, now=now)

    def queue_statistics(self) -> Dict[str, int]:
        """Headline counters for the admin queue."""
        return queue_summary(self.admin_queue())
