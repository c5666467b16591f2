"""
In-app notifications for report outcomes and badge changes
"""

import logging
import uuid
from typing import List, Optional

from citywatch.core.constants import NOTIFICATION_EXCERPT_LENGTH
from citywatch.reports.records import Notification, NotificationType
from citywatch.scoring.badges import SCORE_DELTAS, ScoreEvent

logger = logging.getLogger(__name__)


def excerpt(description: str, length: int = NOTIFICATION_EXCERPT_LENGTH) -> str:
    """Short quote of a report used in notification messages."""
    return f"{(description or '')[:length]}..."


class NotificationCenter:
    """Creates and reads user notifications."""

    def __init__(self, store):
        """
        Initialize the notification center.

        Args:
            store: Record store
        """
        self.store = store

    def notify(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        incident_id: Optional[str] = None,
        points: Optional[int] = None,
        badge: Optional[str] = None
    ) -> Notification:
        """Create a notification for a user."""
        notification = Notification(
            id=f"NTF-{uuid.uuid4().hex[:10].upper()}",
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            incident_id=incident_id,
            points=points,
            badge=badge,
        )
        self.store.save_notification(notification)
        logger.debug(f"Notification {notification.id} ({type.value}) for {user_id}")
        return notification

    def incident_created(self, user_id: str, incident_id: str, description: str) -> Notification:
        return self.notify(
            user_id,
            NotificationType.INCIDENT_CREATED,
            "Issue Reported Successfully! 📝",
            f'Your report "{excerpt(description)}" has been submitted and is under review.',
            incident_id=incident_id,
        )

    def incident_accepted(self, user_id: str, incident_id: str, description: str) -> Notification:
        points = SCORE_DELTAS[ScoreEvent.ACCEPTED]
        return self.notify(
            user_id,
            NotificationType.INCIDENT_ACCEPTED,
            "Issue Accepted! 🎉",
            f'Your report "{excerpt(description)}" has been accepted and resolved. '
            f"You earned +{points} points!",
            incident_id=incident_id,
            points=points,
        )

    def incident_rejected(self, user_id: str, incident_id: str, description: str) -> Notification:
        points = SCORE_DELTAS[ScoreEvent.REJECTED]
        return self.notify(
            user_id,
            NotificationType.INCIDENT_REJECTED,
            "Issue Rejected ❌",
            f'Your report "{excerpt(description)}" was rejected. You lost {abs(points)} points.',
            incident_id=incident_id,
            points=points,
        )

    def incident_in_progress(self, user_id: str, incident_id: str, description: str) -> Notification:
        return self.notify(
            user_id,
            NotificationType.INCIDENT_IN_PROGRESS,
            "Issue Being Worked On 🔧",
            f'Your report "{excerpt(description)}" is now being processed by our team.',
            incident_id=incident_id,
        )

    def incident_pending(self, user_id: str, incident_id: str, description: str) -> Notification:
        return self.notify(
            user_id,
            NotificationType.INCIDENT_PENDING,
            "Issue Status Changed ⏳",
            f'Your report "{excerpt(description)}" status has been changed to pending for review.',
            incident_id=incident_id,
        )

    def badge_changed(self, user_id: str, badge: str, upgraded: bool) -> Notification:
        if upgraded:
            title = "New Badge Earned! 🏅"
            message = f'Congratulations! You\'ve earned the "{badge}" badge!'
        else:
            title = "Badge Updated 🏅"
            message = f'Your badge is now "{badge}". Accurate reports raise your score.'
        return self.notify(
            user_id,
            NotificationType.BADGE_EARNED,
            title,
            message,
            badge=badge,
        )

    def list_for_user(self, user_id: str) -> List[Notification]:
        """Notifications for a user, newest first."""
        return self.store.list_notifications(user_id)

    def unread_count(self, user_id: str) -> int:
        return sum(1 for n in self.store.list_notifications(user_id) if not n.is_read)

    def mark_read(self, notification_id: str, user_id: Optional[str] = None) -> Optional[Notification]:
        """
        Mark a notification as read.

        Args:
            notification_id: Notification ID
            user_id: When given, only the owner's notification is updated

        Returns:
            Updated notification, or None if not found
        """
        notification = self.store.get_notification(notification_id)
        if not notification:
            return None
        if user_id is not None and notification.user_id != user_id:
            return None

        notification.is_read = True
        self.store.save_notification(notification)
        return notification
