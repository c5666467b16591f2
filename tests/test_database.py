"""
Tests for database models and the SQL store
"""
import pytest
from contextlib import contextmanager
from datetime import datetime
from unittest.mock import MagicMock

import sys
sys.path.insert(0, '.')

from geoalchemy2.shape import to_shape
from sqlalchemy.exc import SQLAlchemyError

from citywatch.ai.classifier import AIAnalysis
from citywatch.database.connection import DatabaseConnection, mask_url
from citywatch.database.models import IncidentRecord, NotificationRecord, ProfileRecord
from citywatch.database.store import SqlStore
from citywatch.reports.records import (
    Incident,
    IncidentStatus,
    Notification,
    NotificationType,
    UserProfile,
    UserRole,
)
from citywatch.scoring.badges import ScoreEvent


def make_incident():
    return Incident(
        id="ABC123",
        user_id="u1",
        latitude=28.6139,
        longitude=77.2090,
        description="Transformer sparking",
        analysis=AIAnalysis("Sparking transformer", "Power Outage", 4),
        user_name="Asha",
        status=IncidentStatus.IN_PROGRESS,
        created_at=datetime(2026, 10, 1, 8, 30),
    )


class TestModels:
    """Test suite for ORM conversions."""

    def test_incident_round_trip(self):
        """Incident rows carry a PostGIS point and convert back."""
        row = IncidentRecord.from_record(make_incident())

        point = to_shape(row.location)
        assert point.x == pytest.approx(77.2090)
        assert point.y == pytest.approx(28.6139)
        assert row.category == "Power Outage"
        assert row.severity == 4

        record = row.to_record()
        assert record.analysis == AIAnalysis("Sparking transformer", "Power Outage", 4)
        assert record.status == IncidentStatus.IN_PROGRESS
        assert record.to_dict()["status"] == "in-progress"

    def test_profile_round_trip(self):
        profile = UserProfile(uid="u1", email="a@example.com", display_name="A",
                              role=UserRole.ADMIN, score=55)
        record = ProfileRecord.from_record(profile).to_record()
        assert record.role == UserRole.ADMIN
        assert record.score == 55

    def test_notification_to_dict(self):
        notification = Notification(
            id="NTF-1", user_id="u1", type=NotificationType.BADGE_EARNED,
            title="New Badge Earned! 🏅", message="...", badge="⭐ Gold Citizen",
        )
        data = NotificationRecord.from_record(notification).to_dict()
        assert data["type"] == "badge_earned"
        assert data["is_read"] is False

    def test_enum_columns_store_values(self):
        """Enum columns persist the lowercase values used by the migration."""
        status_type = IncidentRecord.__table__.c.status.type
        assert "in-progress" in status_type.enums


class TestSqlStore:
    """Test suite for the SQL store with a mocked session."""

    def setup_method(self):
        """Setup test fixtures."""
        self.session = MagicMock()
        self.db = MagicMock(spec=DatabaseConnection)

        @contextmanager
        def get_session():
            yield self.session

        self.db.get_session.side_effect = get_session
        self.store = SqlStore(self.db)

    def test_save_incident_merges_row(self):
        self.store.save_incident(make_incident())
        row = self.session.merge.call_args[0][0]
        assert isinstance(row, IncidentRecord)
        assert row.id == "ABC123"

    def test_get_missing_incident(self):
        self.session.get.return_value = None
        assert self.store.get_incident("NOPE") is None

    def test_get_incident(self):
        self.session.get.return_value = IncidentRecord.from_record(make_incident())
        incident = self.store.get_incident("ABC123")
        assert incident.user_name == "Asha"
        self.session.get.assert_called_once_with(IncidentRecord, "ABC123")

    def test_list_user_incidents_filters(self):
        query = self.session.query.return_value
        query.filter.return_value.order_by.return_value.all.return_value = [
            IncidentRecord.from_record(make_incident())
        ]

        incidents = self.store.list_incidents(user_id="u1")
        assert [i.id for i in incidents] == ["ABC123"]
        query.filter.assert_called_once()

    def locked_rows(self, *rows):
        query = self.session.query.return_value
        query.filter.return_value.with_for_update.return_value.one_or_none.side_effect = list(rows)
        return query

    def test_transition_scores_in_same_session(self):
        """Status and score are written under row locks in one session."""
        profile = UserProfile(uid="u1", email="a@example.com", display_name="A")
        query = self.locked_rows(
            IncidentRecord.from_record(make_incident()),
            ProfileRecord.from_record(profile),
        )

        transition = self.store.transition_incident(
            "ABC123", IncidentStatus.RESOLVED, "admin-1", score_event=ScoreEvent.ACCEPTED
        )

        assert transition.previous_status == IncidentStatus.IN_PROGRESS
        assert transition.score_update.new_score == 10
        assert query.filter.return_value.with_for_update.call_count == 2
        self.db.get_session.assert_called_once()

        incident_row, profile_row = [c[0][0] for c in self.session.merge.call_args_list]
        assert incident_row.status == IncidentStatus.RESOLVED
        assert incident_row.status_changed_by == "admin-1"
        assert profile_row.score == 10
        assert profile_row.accepted_reports == 1

    def test_transition_to_same_status_skips_score(self):
        self.locked_rows(IncidentRecord.from_record(make_incident()))

        transition = self.store.transition_incident(
            "ABC123", IncidentStatus.IN_PROGRESS, score_event=ScoreEvent.ACCEPTED
        )

        assert not transition.changed
        assert transition.score_update is None
        assert transition.incident.status_changed_by == "system"
        assert self.session.merge.call_count == 1

    def test_transition_missing_incident(self):
        self.locked_rows(None)
        assert self.store.transition_incident("NOPE", IncidentStatus.RESOLVED) is None
        self.session.merge.assert_not_called()

    def test_session_errors_propagate(self):
        self.session.merge.side_effect = SQLAlchemyError("connection lost")
        with pytest.raises(SQLAlchemyError):
            self.store.save_user(UserProfile(uid="u1", email="a@example.com", display_name="A"))


class TestConnection:
    """Test suite for connection helpers."""

    def test_mask_url(self):
        url = "postgresql://citywatch:secret@db:5432/citywatch_db"
        assert mask_url(url) == "postgresql://citywatch:****@db:5432/citywatch_db"
        assert mask_url("sqlite://") == "sqlite://"
