"""
Citizen profiles, reporting score and badge bookkeeping
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from citywatch.reports.notifications import NotificationCenter
from citywatch.reports.records import Incident, UserProfile, UserRole
from citywatch.scoring.badges import (
    INITIAL_BADGE,
    INITIAL_SCORE,
    ScoreEvent,
    ScoreUpdate,
    standing_for_score,
)

logger = logging.getLogger(__name__)


class ProfileManager:
    """
    Keeps user profiles and their reputation.

    Scores only change through report outcomes; badges and the
    recommended flag always follow the score.
    """

    def __init__(self, store, notifications: Optional[NotificationCenter] = None):
        """
        Initialize the profile manager.

        Args:
            store: Record store
            notifications: Notification center for badge changes
        """
        self.store = store
        self.notifications = notifications or NotificationCenter(store)

    def ensure_profile(
        self,
        uid: str,
        email: str,
        display_name: Optional[str] = None
    ) -> UserProfile:
        """
        Get a profile, creating it on first sign-in.

        New profiles start as role user with score 0 and the New badge.
        """
        profile = self.get_profile(uid)
        if profile:
            return profile

        profile = UserProfile(
            uid=uid,
            email=email,
            display_name=display_name or (email.split("@")[0] if email else uid),
            role=UserRole.USER,
            score=INITIAL_SCORE,
            badge=INITIAL_BADGE.label,
            is_recommended=False,
        )
        self.store.save_user(profile)
        logger.info(f"Created profile for {uid}")
        return profile

    def get_profile(self, uid: str) -> Optional[UserProfile]:
        """Get a profile, repairing an invalid report counter on the way."""
        profile = self.store.get_user(uid)
        if not profile:
            return None

        if profile.total_reports is None or profile.total_reports < 0:
            profile.total_reports = len(self.store.list_incidents(user_id=uid))
            profile.updated_at = datetime.utcnow()
            self.store.save_user(profile)
            logger.warning(f"Repaired total_reports for {uid}: {profile.total_reports}")

        return profile

    def promote_to_admin(self, uid: str) -> Optional[UserProfile]:
        profile = self.store.get_user(uid)
        if not profile:
            return None

        profile.role = UserRole.ADMIN
        profile.updated_at = datetime.utcnow()
        self.store.save_user(profile)
        logger.info(f"Promoted {uid} to admin")
        return profile

    def get_standing(self, uid: str) -> Optional[Dict[str, Any]]:
        """Badge, score and suspension state for a user."""
        profile = self.get_profile(uid)
        if not profile:
            return None

        standing = standing_for_score(profile.score)
        standing["uid"] = uid
        standing["can_report"] = not standing["suspended"]
        return standing

    def record_submission(self, uid: str) -> Optional[UserProfile]:
        """Count a newly submitted report."""
        profile = self.store.get_user(uid)
        if not profile:
            return None

        profile.total_reports = max(profile.total_reports or 0, 0) + 1
        profile.updated_at = datetime.utcnow()
        self.store.save_user(profile)
        return profile

    def apply_outcome(self, uid: str, event: ScoreEvent) -> Optional[ScoreUpdate]:
        """
        Apply an accepted or rejected report to the reporter's score.

        Args:
            uid: Reporter ID
            event: Report outcome

        Returns:
            ScoreUpdate, or None if the profile does not exist
        """
        profile = self.store.get_user(uid)
        if not profile:
            logger.warning(f"Score event {event.value} for unknown user {uid}")
            return None

        update = profile.apply_score_event(event)
        self.store.save_user(profile)
        self.announce_score_update(uid, event, update)
        return update

    def announce_score_update(self, uid: str, event: ScoreEvent, update: ScoreUpdate) -> None:
        """Log a score change and notify the user when their badge moved."""
        logger.info(
            f"Score for {uid}: {update.previous_score} -> {update.new_score} ({event.value})"
        )

        if update.badge_changed:
            self.notifications.badge_changed(
                uid,
                update.new_badge.label,
                upgraded=update.new_score > update.previous_score,
            )

    def recommended_users(self) -> List[UserProfile]:
        """Elite and Gold citizens, highest score first."""
        users = [
            p for p in self.store.list_users()
            if p.is_recommended and p.role == UserRole.USER
        ]
        users.sort(key=lambda p: p.score, reverse=True)
        return users

    def sync_total_reports(self, incidents: Optional[Iterable[Incident]] = None) -> int:
        """
        Recompute every profile's total_reports from its incidents.

        Args:
            incidents: Incidents to count (default: all stored incidents)

        Returns:
            Number of profiles whose counter changed
        """
        if incidents is None:
            incidents = self.store.list_incidents()

        counts: Dict[str, int] = {}
        for incident in incidents:
            counts[incident.user_id] = counts.get(incident.user_id, 0) + 1

        changed = 0
        for profile in self.store.list_users():
            actual = counts.get(profile.uid, 0)
            if profile.total_reports != actual:
                profile.total_reports = actual
                profile.updated_at = datetime.utcnow()
                self.store.save_user(profile)
                changed += 1

        logger.info(f"Synced report counts, {changed} profiles updated")
        return changed
