"""
CityWatch - Geospatial Utilities
Distance calculations for incident locations and service directories.
"""

import math
from typing import Tuple
from dataclasses import dataclass

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


@dataclass
class Point:
    """Geographic point with latitude and longitude."""
    latitude: float
    longitude: float

    def to_tuple(self) -> Tuple[float, float]:
        return (self.latitude, self.longitude)

    def to_tuple_lonlat(self) -> Tuple[float, float]:
        """Return as (longitude, latitude) for GeoJSON compatibility."""
        return (self.longitude, self.latitude)


def is_valid_coordinate(latitude: float, longitude: float) -> bool:
    """Check that a latitude/longitude pair lies on the globe."""
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates in decimal degrees
        lat2, lon2: Second point coordinates in decimal degrees

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2 +
        math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km_rounded(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
    digits: int = 2
) -> float:
    """Haversine distance rounded for display and ranking."""
    return round(haversine_distance(lat1, lon1, lat2, lon2), digits)


def location_key(latitude: float, longitude: float, precision: int = 4) -> Tuple[str, str]:
    """Fixed-precision key used to spot the same place listed twice."""
    return (f"{latitude:.{precision}f}", f"{longitude:.{precision}f}")
