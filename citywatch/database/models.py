"""
SQLAlchemy models for CityWatch
Uses GeoAlchemy2 for PostGIS spatial types
"""

from datetime import datetime

from sqlalchemy import (
    Column, Integer, Float, String, Text, Boolean,
    DateTime, ForeignKey, Index, Enum as SQLEnum
)
from sqlalchemy.orm import declarative_base
from geoalchemy2 import Geometry
from geoalchemy2.shape import from_shape
from shapely.geometry import Point

from citywatch.ai.classifier import AIAnalysis
from citywatch.reports.records import (
    Incident,
    IncidentStatus,
    Notification,
    NotificationType,
    UserProfile,
    UserRole,
)
from citywatch.scoring.priority import IncidentPriority

Base = declarative_base()


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class ProfileRecord(Base):
    """
    Citizen or administrator profile.

    Holds the reporting score, badge and report counters.
    """
    __tablename__ = "user_profiles"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=UserRole.USER,
    )

    # Reputation
    score = Column(Integer, nullable=False, default=0)
    badge = Column(String(50), nullable=False)
    is_recommended = Column(Boolean, nullable=False, default=False)

    # Counters
    total_reports = Column(Integer, nullable=False, default=0)
    accepted_reports = Column(Integer, nullable=False, default=0)
    rejected_reports = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime)

    __table_args__ = (
        Index("idx_profile_recommended", is_recommended, score),
    )

    def __repr__(self):
        return f"<ProfileRecord({self.uid}, score={self.score})>"

    @classmethod
    def from_record(cls, profile: UserProfile) -> "ProfileRecord":
        return cls(
            uid=profile.uid,
            email=profile.email,
            display_name=profile.display_name,
            role=profile.role,
            score=profile.score,
            badge=profile.badge,
            is_recommended=profile.is_recommended,
            total_reports=profile.total_reports,
            accepted_reports=profile.accepted_reports,
            rejected_reports=profile.rejected_reports,
            created_at=profile.created_at,
            updated_at=profile.updated_at,
        )

    def to_record(self) -> UserProfile:
        return UserProfile(
            uid=self.uid,
            email=self.email,
            display_name=self.display_name,
            role=self.role,
            score=self.score,
            badge=self.badge,
            is_recommended=self.is_recommended,
            total_reports=self.total_reports,
            accepted_reports=self.accepted_reports,
            rejected_reports=self.rejected_reports,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.to_record().to_dict()


class IncidentRecord(Base):
    """
    Incident reported by a citizen.

    The pinned location is stored both as a PostGIS point and as plain
    coordinates.
    """
    __tablename__ = "incidents"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(128), ForeignKey("user_profiles.uid"), nullable=False)
    user_email = Column(String(255))
    user_name = Column(String(255))

    # Location (PostGIS point)
    location = Column(Geometry("POINT", srid=4326), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    address = Column(Text)

    description = Column(Text, nullable=False)

    # AI analysis
    summary = Column(Text, nullable=False)
    category = Column(String(50), nullable=False)
    severity = Column(Integer, nullable=False)
    analysis_error = Column(Text)
    analysis_pending = Column(Boolean, nullable=False, default=False)

    # Review
    status = Column(
        SQLEnum(IncidentStatus, name="incident_status", values_callable=_enum_values),
        nullable=False,
        default=IncidentStatus.PENDING,
    )
    priority = Column(
        SQLEnum(IncidentPriority, name="incident_priority", values_callable=_enum_values),
        nullable=False,
        default=IncidentPriority.MEDIUM,
    )
    admin_notes = Column(Text)
    status_changed_at = Column(DateTime)
    status_changed_by = Column(String(128))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime)

    __table_args__ = (
        Index("idx_incident_location", location, postgresql_using="gist"),
        Index("idx_incident_user", user_id),
        Index("idx_incident_status", status),
        Index("idx_incident_category_severity", category, severity),
    )

    def __repr__(self):
        return f"<IncidentRecord({self.id}, status={self.status.value}, lat={self.latitude})>"

    @classmethod
    def from_record(cls, incident: Incident) -> "IncidentRecord":
        point = Point(incident.longitude, incident.latitude)
        return cls(
            id=incident.id,
            user_id=incident.user_id,
            user_email=incident.user_email,
            user_name=incident.user_name,
            location=from_shape(point, srid=4326),
            latitude=incident.latitude,
            longitude=incident.longitude,
            address=incident.address,
            description=incident.description,
            summary=incident.analysis.summary,
            category=incident.analysis.category,
            severity=incident.analysis.severity,
            analysis_error=incident.analysis.error,
            analysis_pending=incident.analysis_pending,
            status=incident.status,
            priority=incident.priority,
            admin_notes=incident.admin_notes,
            status_changed_at=incident.status_changed_at,
            status_changed_by=incident.status_changed_by,
            created_at=incident.created_at,
            updated_at=incident.updated_at,
        )

    def to_record(self) -> Incident:
        return Incident(
            id=self.id,
            user_id=self.user_id,
            user_email=self.user_email,
            user_name=self.user_name,
            latitude=self.latitude,
            longitude=self.longitude,
            address=self.address,
            description=self.description,
            analysis=AIAnalysis(
                summary=self.summary,
                category=self.category,
                severity=self.severity,
                error=self.analysis_error,
            ),
            analysis_pending=bool(self.analysis_pending),
            status=self.status,
            priority=self.priority,
            admin_notes=self.admin_notes,
            status_changed_at=self.status_changed_at,
            status_changed_by=self.status_changed_by,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.to_record().to_dict()


class NotificationRecord(Base):
    """In-app notification."""
    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True)
    user_id = Column(String(128), ForeignKey("user_profiles.uid"), nullable=False)
    type = Column(
        SQLEnum(NotificationType, name="notification_type", values_callable=_enum_values),
        nullable=False,
    )
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    incident_id = Column(String(32), ForeignKey("incidents.id"), nullable=True)
    points = Column(Integer)
    badge = Column(String(50))
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index("idx_notification_user_created", user_id, created_at),
    )

    def __repr__(self):
        return f"<NotificationRecord({self.id}, type={self.type.value}, user={self.user_id})>"

    @classmethod
    def from_record(cls, notification: Notification) -> "NotificationRecord":
        return cls(
            id=notification.id,
            user_id=notification.user_id,
            type=notification.type,
            title=notification.title,
            message=notification.message,
            incident_id=notification.incident_id,
            points=notification.points,
            badge=notification.badge,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )

    def to_record(self) -> Notification:
        return Notification(
            id=self.id,
            user_id=self.user_id,
            type=self.type,
            title=self.title,
            message=self.message,
            incident_id=self.incident_id,
            points=self.points,
            badge=self.badge,
            is_read=bool(self.is_read),
            created_at=self.created_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.to_record().to_dict()
