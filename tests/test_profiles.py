"""
Tests for user profiles and notifications
"""
import pytest

import sys
sys.path.insert(0, '.')

from citywatch.ai.classifier import AIAnalysis
from citywatch.reports.notifications import NotificationCenter, excerpt
from citywatch.reports.profiles import ProfileManager
from citywatch.reports.records import NotificationType, UserRole
from citywatch.reports.store import MemoryStore
from citywatch.scoring.badges import ScoreEvent


class TestProfileManager:
    """Test suite for profile bookkeeping."""

    def setup_method(self):
        """Setup test fixtures."""
        self.store = MemoryStore()
        self.notifications = NotificationCenter(self.store)
        self.profiles = ProfileManager(self.store, self.notifications)

    def test_ensure_profile_creates_once(self):
        """First sign-in creates a New citizen; later calls return it."""
        profile = self.profiles.ensure_profile("u1", "meera@example.com", "Meera")
        assert profile.role == UserRole.USER
        assert profile.score == 0
        assert profile.badge == "👤 New Citizen"

        again = self.profiles.ensure_profile("u1", "other@example.com", "Other")
        assert again.email == "meera@example.com"
        assert len(self.store.list_users()) == 1

    def test_display_name_defaults_to_email_user(self):
        profile = self.profiles.ensure_profile("u2", "kiran@example.com")
        assert profile.display_name == "kiran"

    def test_get_profile_repairs_negative_counter(self, handler, citizen, connaught_place, pothole_analysis):
        """A corrupted report counter is recomputed from incidents."""
        handler.submit_incident(citizen, "Pothole", *connaught_place, analysis=pothole_analysis)
        profile = handler.store.get_user(citizen.uid)
        profile.total_reports = -3
        handler.store.save_user(profile)

        assert handler.profiles.get_profile(citizen.uid).total_reports == 1

    def test_promote_to_admin(self):
        self.profiles.ensure_profile("u1", "meera@example.com", "Meera")
        assert self.profiles.promote_to_admin("u1").is_admin
        assert self.profiles.promote_to_admin("ghost") is None

    def test_standing(self):
        self.profiles.ensure_profile("u1", "meera@example.com", "Meera")
        standing = self.profiles.get_standing("u1")
        assert standing["uid"] == "u1"
        assert standing["can_report"] is True
        assert standing["warning"] is False
        assert self.profiles.get_standing("ghost") is None

    def test_apply_outcome_updates_counters(self):
        self.profiles.ensure_profile("u1", "meera@example.com", "Meera")
        update = self.profiles.apply_outcome("u1", ScoreEvent.REJECTED)

        assert update.new_score == -20
        profile = self.profiles.get_profile("u1")
        assert profile.rejected_reports == 1
        assert profile.in_warning_zone
        assert self.profiles.apply_outcome("ghost", ScoreEvent.ACCEPTED) is None

    def test_downgrade_notification(self):
        """Losing a badge is announced differently from earning one."""
        self.profiles.ensure_profile("u1", "meera@example.com", "Meera")
        self.profiles.apply_outcome("u1", ScoreEvent.REJECTED)

        note = self.notifications.list_for_user("u1")[0]
        assert note.type == NotificationType.BADGE_EARNED
        assert note.title == "Badge Updated 🏅"
        assert note.badge == "⚠️ Warning Citizen"

    def test_recommended_users(self):
        """Recommended citizens sorted by score, admins excluded."""
        for uid, score in [("a", 80), ("b", 130), ("c", 10), ("d", 200)]:
            profile = self.profiles.ensure_profile(uid, f"{uid}@example.com", uid)
            profile.score = score
            profile.is_recommended = score >= 75
            self.store.save_user(profile)
        self.profiles.promote_to_admin("d")

        assert [p.uid for p in self.profiles.recommended_users()] == ["b", "a"]

    def test_sync_total_reports(self, handler, citizen, admin, connaught_place, pothole_analysis):
        """Counters are rebuilt from the incidents table."""
        handler.submit_incident(citizen, "One", *connaught_place, analysis=pothole_analysis)
        handler.submit_incident(citizen, "Two", *connaught_place, analysis=pothole_analysis)

        for uid, count in [(citizen.uid, 7), (admin.uid, 0)]:
            profile = handler.store.get_user(uid)
            profile.total_reports = count
            handler.store.save_user(profile)

        assert handler.profiles.sync_total_reports() == 1
        assert handler.profiles.get_profile(citizen.uid).total_reports == 2
        assert handler.profiles.sync_total_reports() == 0


class TestNotificationCenter:
    """Test suite for in-app notifications."""

    def setup_method(self):
        """Setup test fixtures."""
        self.store = MemoryStore()
        self.center = NotificationCenter(self.store)

    def test_excerpt(self):
        """Descriptions are cut at 50 characters and always end with dots."""
        assert excerpt("short") == "short..."
        assert excerpt("x" * 80) == "x" * 50 + "..."

    def test_templates(self):
        accepted = self.center.incident_accepted("u1", "INC1", "Broken streetlight")
        assert accepted.title == "Issue Accepted! 🎉"
        assert "+10 points" in accepted.message

        rejected = self.center.incident_rejected("u1", "INC1", "Broken streetlight")
        assert rejected.title == "Issue Rejected ❌"
        assert rejected.points == -20

        progress = self.center.incident_in_progress("u1", "INC1", "Broken streetlight")
        assert progress.title == "Issue Being Worked On 🔧"

        pending = self.center.incident_pending("u1", "INC1", "Broken streetlight")
        assert pending.title == "Issue Status Changed ⏳"

        earned = self.center.badge_changed("u1", "⭐ Gold Citizen", upgraded=True)
        assert earned.message == 'Congratulations! You\'ve earned the "⭐ Gold Citizen" badge!'

    def test_list_and_unread(self):
        """Notifications are per user and newest first."""
        first = self.center.incident_created("u1", "INC1", "Water leak")
        second = self.center.incident_created("u1", "INC2", "Another leak")
        self.center.incident_created("u2", "INC3", "Someone else")

        listed = self.center.list_for_user("u1")
        assert [n.id for n in listed] == [second.id, first.id]
        assert self.center.unread_count("u1") == 2

    def test_mark_read(self):
        note = self.center.incident_created("u1", "INC1", "Water leak")

        assert self.center.mark_read(note.id, user_id="u2") is None
        assert self.center.mark_read(note.id).is_read
        assert self.center.unread_count("u1") == 0
        assert self.center.mark_read("NTF-MISSING") is None
