"""
Database module for CityWatch
PostgreSQL + PostGIS persistence for profiles, incidents and notifications
"""

from .connection import DatabaseConnection, get_db, init_db
from .models import (
    Base,
    IncidentRecord,
    NotificationRecord,
    ProfileRecord,
)
from .store import SqlStore

__all__ = [
    "DatabaseConnection",
    "get_db",
    "init_db",
    "Base",
    "IncidentRecord",
    "NotificationRecord",
    "ProfileRecord",
    "SqlStore",
]
