"""
CityWatch - Reports Module
Citizen incident reports, profiles and notifications.
"""

from citywatch.reports.records import (
    Incident,
    IncidentStatus,
    Notification,
    NotificationType,
    StatusTransition,
    UserProfile,
    UserRole,
)
from citywatch.reports.store import MemoryStore
from citywatch.reports.notifications import NotificationCenter, excerpt
from citywatch.reports.profiles import ProfileManager
from citywatch.reports.incident_handler import (
    IncidentHandler,
    ReportingSuspendedError,
    parse_category,
    parse_status,
)

__all__ = [
    "Incident",
    "IncidentStatus",
    "Notification",
    "NotificationType",
    "StatusTransition",
    "UserProfile",
    "UserRole",
    "MemoryStore",
    "NotificationCenter",
    "excerpt",
    "ProfileManager",
    "IncidentHandler",
    "ReportingSuspendedError",
    "parse_category",
    "parse_status",
]
