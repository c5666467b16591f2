"""
CityWatch - Core Utilities
Central configuration, logging, and utility functions.
"""

from citywatch.core.config import settings, get_settings
from citywatch.core.constants import (
    CLASSIFIER_CATEGORIES,
    INCIDENT_CATEGORIES,
    SEVERITY_LABELS,
    EMERGENCY_CONTACTS,
)
from citywatch.core.geo_utils import (
    haversine_distance,
    distance_km_rounded,
    is_valid_coordinate,
)

__all__ = [
    "settings",
    "get_settings",
    "CLASSIFIER_CATEGORIES",
    "INCIDENT_CATEGORIES",
    "SEVERITY_LABELS",
    "EMERGENCY_CONTACTS",
    "haversine_distance",
    "distance_km_rounded",
    "is_valid_coordinate",
]
