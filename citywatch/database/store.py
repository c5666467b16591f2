"""
SQL-backed record store

Same operations as the in-memory store, persisted through SQLAlchemy
sessions.
"""

import logging
from datetime import datetime
from typing import List, Optional

from citywatch.reports.records import (
    Incident,
    IncidentStatus,
    Notification,
    StatusTransition,
    UserProfile,
)
from citywatch.scoring.badges import ScoreEvent
from .connection import DatabaseConnection
from .models import IncidentRecord, NotificationRecord, ProfileRecord

logger = logging.getLogger(__name__)


class SqlStore:
    """Record store on top of a DatabaseConnection."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    # Users

    def save_user(self, profile: UserProfile) -> UserProfile:
        with self.db.get_session() as session:
            session.merge(ProfileRecord.from_record(profile))
        return profile

    def get_user(self, uid: str) -> Optional[UserProfile]:
        with self.db.get_session() as session:
            row = session.get(ProfileRecord, uid)
            return row.to_record() if row else None

    def list_users(self) -> List[UserProfile]:
        with self.db.get_session() as session:
            return [row.to_record() for row in session.query(ProfileRecord).all()]

    # Incidents

    def save_incident(self, incident: Incident) -> Incident:
        with self.db.get_session() as session:
            session.merge(IncidentRecord.from_record(incident))
        return incident

    def get_incident(self, incident_id: str) -> Optional[Incident]:
        with self.db.get_session() as session:
            row = session.get(IncidentRecord, incident_id)
            return row.to_record() if row else None

    def list_incidents(self, user_id: Optional[str] = None) -> List[Incident]:
        """Incidents newest first, optionally for one reporter."""
        with self.db.get_session() as session:
            query = session.query(IncidentRecord)
            if user_id is not None:
                query = query.filter(IncidentRecord.user_id == user_id)
            rows = query.order_by(IncidentRecord.created_at.desc()).all()
            return [row.to_record() for row in rows]

    def transition_incident(
        self,
        incident_id: str,
        status: IncidentStatus,
        changed_by: Optional[str] = None,
        notes: Optional[str] = None,
        score_event: Optional[ScoreEvent] = None
    ) -> Optional[StatusTransition]:
        """
        Set an incident's status and score the reporter in one transaction.

        The incident and profile rows are locked (SELECT ... FOR UPDATE) so
        concurrent workers see each transition exactly once.
        """
        with self.db.get_session() as session:
            row = (
                session.query(IncidentRecord)
                .filter(IncidentRecord.id == incident_id)
                .with_for_update()
                .one_or_none()
            )
            if row is None:
                return None

            incident = row.to_record()
            previous = incident.set_status(status, changed_by, notes, datetime.utcnow())
            session.merge(IncidentRecord.from_record(incident))
            transition = StatusTransition(incident=incident, previous_status=previous)

            if transition.changed and score_event:
                profile_row = (
                    session.query(ProfileRecord)
                    .filter(ProfileRecord.uid == incident.user_id)
                    .with_for_update()
                    .one_or_none()
                )
                if profile_row is not None:
                    profile = profile_row.to_record()
                    transition.score_event = score_event
                    transition.score_update = profile.apply_score_event(score_event)
                    session.merge(ProfileRecord.from_record(profile))

            return transition

    # Notifications

    def save_notification(self, notification: Notification) -> Notification:
        with self.db.get_session() as session:
            session.merge(NotificationRecord.from_record(notification))
        return notification

    def get_notification(self, notification_id: str) -> Optional[Notification]:
        with self.db.get_session() as session:
            row = session.get(NotificationRecord, notification_id)
            return row.to_record() if row else None

    def list_notifications(self, user_id: str) -> List[Notification]:
        """Notifications for a user, newest first."""
        with self.db.get_session() as session:
            rows = (
                session.query(NotificationRecord)
                .filter(NotificationRecord.user_id == user_id)
                .order_by(NotificationRecord.created_at.desc())
                .all()
            )
            return [row.to_record() for row in rows]

    def check_connection(self) -> bool:
        return self.db.check_connection()
