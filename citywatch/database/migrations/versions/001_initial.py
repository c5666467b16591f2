"""
Initial migration - Create profile, incident and notification tables

Revision ID: 001_initial
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

USER_ROLES = ('user', 'admin')
INCIDENT_STATUSES = ('pending', 'in-progress', 'resolved', 'rejected')
INCIDENT_PRIORITIES = ('low', 'medium', 'high', 'critical')
NOTIFICATION_TYPES = (
    'incident_created',
    'incident_accepted',
    'incident_rejected',
    'incident_in_progress',
    'incident_pending',
    'badge_earned',
)


def upgrade() -> None:
    """Create all tables."""

    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # Create user_profiles table
    op.create_table(
        'user_profiles',
        sa.Column('uid', sa.String(128), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum(*USER_ROLES, name='user_role'), nullable=False, server_default='user'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('badge', sa.String(50), nullable=False),
        sa.Column('is_recommended', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('total_reports', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('accepted_reports', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('rejected_reports', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
    )

    op.create_index('idx_profile_recommended', 'user_profiles', ['is_recommended', 'score'])

    # Create incidents table
    op.create_table(
        'incidents',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(128), sa.ForeignKey('user_profiles.uid'), nullable=False),
        sa.Column('user_email', sa.String(255)),
        sa.Column('user_name', sa.String(255)),
        sa.Column('location', Geometry('POINT', srid=4326), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('address', sa.Text()),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('summary', sa.Text(), nullable=False),
        sa.Column('category', sa.String(50), nullable=False),
        sa.Column('severity', sa.Integer(), nullable=False),
        sa.Column('analysis_error', sa.Text()),
        sa.Column('analysis_pending', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.Enum(*INCIDENT_STATUSES, name='incident_status'),
                  nullable=False, server_default='pending'),
        sa.Column('priority', sa.Enum(*INCIDENT_PRIORITIES, name='incident_priority'),
                  nullable=False, server_default='medium'),
        sa.Column('admin_notes', sa.Text()),
        sa.Column('status_changed_at', sa.DateTime()),
        sa.Column('status_changed_by', sa.String(128)),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime()),
    )

    op.create_index('idx_incident_location', 'incidents', ['location'], postgresql_using='gist')
    op.create_index('idx_incident_user', 'incidents', ['user_id'])
    op.create_index('idx_incident_status', 'incidents', ['status'])
    op.create_index('idx_incident_category_severity', 'incidents', ['category', 'severity'])
    op.create_index('ix_incidents_created_at', 'incidents', ['created_at'])

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('id', sa.String(32), primary_key=True),
        sa.Column('user_id', sa.String(128), sa.ForeignKey('user_profiles.uid'), nullable=False),
        sa.Column('type', sa.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('incident_id', sa.String(32), sa.ForeignKey('incidents.id')),
        sa.Column('points', sa.Integer()),
        sa.Column('badge', sa.String(50)),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_index('idx_notification_user_created', 'notifications', ['user_id', 'created_at'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('notifications')
    op.drop_table('incidents')
    op.drop_table('user_profiles')

    op.execute("DROP TYPE IF EXISTS notification_type")
    op.execute("DROP TYPE IF EXISTS incident_priority")
    op.execute("DROP TYPE IF EXISTS incident_status")
    op.execute("DROP TYPE IF EXISTS user_role")
