"""
In-memory record store

Default storage backend when no database is configured; also used by
the test suite.
"""

import threading
from copy import deepcopy
from datetime import datetime
from typing import Dict, List, Optional

from citywatch.reports.records import (
    Incident,
    IncidentStatus,
    Notification,
    StatusTransition,
    UserProfile,
)
from citywatch.scoring.badges import ScoreEvent


class MemoryStore:
    """
    Dictionary-backed store for profiles, incidents and notifications.

    Records are copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self):
        self._users: Dict[str, UserProfile] = {}
        self._incidents: Dict[str, Incident] = {}
        self._notifications: Dict[str, Notification] = {}
        self._lock = threading.RLock()

    # Users

    def save_user(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            self._users[profile.uid] = deepcopy(profile)
        return profile

    def get_user(self, uid: str) -> Optional[UserProfile]:
        with self._lock:
            profile = self._users.get(uid)
            return deepcopy(profile) if profile else None

    def list_users(self) -> List[UserProfile]:
        with self._lock:
            return [deepcopy(p) for p in self._users.values()]

    # Incidents

    def save_incident(self, incident: Incident) -> Incident:
        with self._lock:
            self._incidents[incident.id] = deepcopy(incident)
        return incident

    def get_incident(self, incident_id: str) -> Optional[Incident]:
        with self._lock:
            incident = self._incidents.get(incident_id)
            return deepcopy(incident) if incident else None

    def list_incidents(self, user_id: Optional[str] = None) -> List[Incident]:
        """Incidents newest first, optionally for one reporter."""
        with self._lock:
            incidents = [
                deepcopy(i) for i in reversed(list(self._incidents.values()))
                if user_id is None or i.user_id == user_id
            ]
        incidents.sort(key=lambda i: i.created_at, reverse=True)
        return incidents

    def transition_incident(
        self,
        incident_id: str,
        status: IncidentStatus,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
        score_event: Optional[ScoreEvent] = None
    ) -> Optional[StatusTransition]:
        """
        Set an incident's status and, when it actually changed, apply
        score_event to the reporter in the same step.
        """
        with self._lock:
            incident = self._incidents.get(incident_id)
            if not incident:
                return None

            incident = deepcopy(incident)
            previous = incident.set_status(status, changed_by, notes, datetime.utcnow())
            self._incidents[incident_id] = deepcopy(incident)
            transition = StatusTransition(incident=incident, previous_status=previous)

            profile = self._users.get(incident.user_id)
            if transition.changed and score_event and profile:
                transition.score_event = score_event
                transition.score_update = profile.apply_score_event(score_event)

        return transition

    # Notifications

    def save_notification(self, notification: Notification) -> Notification:
        with self._lock:
            self._notifications[notification.id] = deepcopy(notification)
        return notification

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        with self._lock:
            notification = self._notifications.get(notification_id)
            return deepcopy(notification) if notification else None

    def list_notifications(self, user_id: str) -> List[Notification]:
        """Notifications for a user, newest first."""
        with self._lock:
            notifications = [
                deepcopy(n) for n in reversed(list(self._notifications.values()))
                if n.user_id == user_id
            ]
        notifications.sort(key=lambda n: n.created_at, reverse=True)
        return notifications

    def check_connection(self) -> bool:
        return True
