"""
Authority matching for CityWatch incidents

Finds the emergency services nearest to an incident that handle its
category, ranked for dispatch.
"""

import logging
import math
from datetime import datetime
from typing import Dict, List, Optional

from citywatch.authorities.directory import (
    EmergencyService,
    ServiceDirectory,
    ServiceType,
    AuthorityRule,
    load_directory,
    rule_for_category,
)
from citywatch.core.config import settings
from citywatch.core.constants import (
    DEFAULT_REGION,
    EMERGENCY_CONTACTS,
    HIGH_SEVERITY_THRESHOLD,
)
from citywatch.core.geo_utils import distance_km_rounded, location_key

logger = logging.getLogger(__name__)

# Municipal offices answer between these hours (inclusive)
MUNICIPAL_OPEN_HOUR = 9
MUNICIPAL_CLOSE_HOUR = 18


def _handles(service: EmergencyService, rule: AuthorityRule) -> bool:
    """Whether a service is one of the authority types for a rule."""
    if service.type in rule.types:
        return True
    category = service.category.lower()
    return any(t.value in category for t in rule.types)


def remove_duplicate_services(services: List[EmergencyService]) -> List[EmergencyService]:
    """Drop services listed twice under the same name at the same place."""
    seen = set()
    unique = []
    for service in services:
        key = (service.name,) + location_key(service.latitude, service.longitude)
        if key in seen:
            continue
        seen.add(key)
        unique.append(service)
    return unique


class AuthorityMatcher:
    """
    Matches incidents to nearby authorities.

    Filters the directory by the incident category's authority types and
    search radius, then ranks by authority type, distance, availability
    and response time.
    """

    def __init__(
        self,
        directory: Optional[ServiceDirectory] = None,
        max_results: Optional[int] = None,
        region: Optional[str] = None
    ):
        """
        Initialize the matcher.

        Args:
            directory: Service directory (default: configured or built-in)
            max_results: Number of services returned per match
            region: Region for helpline fallbacks
        """
        self.directory = directory or load_directory(settings.authority_directory_path)
        self.max_results = max_results or settings.max_authorities
        self.region = region or settings.emergency_region

    def find_authorities(
        self,
        latitude: float,
        longitude: float,
        category: Optional[str],
        severity: Optional[int] = None,
        limit: Optional[int] = None
    ) -> List[EmergencyService]:
        """
        Find authorities for an incident.

        Args:
            latitude: Incident latitude
            longitude: Incident longitude
            category: Incident category (unknown categories use Other)
            severity: Incident severity, used for logging only
            limit: Maximum number of services (default: max_results)

        Returns:
            Ranked copies of matching services with distance_km set
        """
        rule = rule_for_category(category)
        if limit is None:
            limit = self.max_results

        candidates = []
        for service in self.directory:
            if not _handles(service, rule):
                continue

            distance = distance_km_rounded(
                latitude, longitude, service.latitude, service.longitude
            )
            if distance > rule.search_radius_km:
                continue

            candidates.append(service.with_distance(distance))

        unique = remove_duplicate_services(candidates)
        unique.sort(key=lambda s: (
            rule.type_rank(s.type),
            s.distance_km,
            not s.is_available,
            s.response_time_minutes,
        ))

        logger.info(
            f"Matched {len(unique)} authorities for {category or 'Other'} "
            f"(severity {severity}) at ({latitude}, {longitude})"
        )

        return unique[:limit]

    def route_incident(
        self,
        latitude: float,
        longitude: float,
        category: Optional[str],
        severity: Optional[int] = None
    ) -> Dict[str, object]:
        """
        Match authorities for an incident, falling back to helplines.

        Returns:
            Dictionary with the services, whether the helpline fallback
            was used, and the primary contact
        """
        services = self.find_authorities(latitude, longitude, category, severity)
        fallback = not services
        if fallback:
            logger.warning(
                f"No authorities within range for {category or 'Other'}; using helplines"
            )
            services = fallback_authorities(self.region)

        primary = services[0] if services else None
        return {
            "category": category or "Other",
            "severity": severity,
            "fallback": fallback,
            "urgent": (severity or 0) >= HIGH_SEVERITY_THRESHOLD,
            "primary": primary,
            "backup": services[1] if len(services) > 1 else None,
            "services": services,
        }

    def check_service_availability(
        self,
        service_id: str,
        at: Optional[datetime] = None
    ) -> bool:
        """
        Check whether a service is answering.

        Municipal offices keep office hours; emergency services are
        always available.
        """
        service = self.directory.get(service_id)
        if not service:
            return False

        if service.type == ServiceType.MUNICIPAL:
            hour = (at or datetime.now()).hour
            return MUNICIPAL_OPEN_HOUR <= hour <= MUNICIPAL_CLOSE_HOUR

        return True


def estimate_response_time(distance_km: float, severity: int) -> int:
    """
    Estimate response time in minutes.

    Five minutes base plus two per started kilometer; high severity
    incidents are dispatched faster. Never below three minutes.
    """
    minutes = 5 + math.ceil(distance_km * 2)
    if severity >= HIGH_SEVERITY_THRESHOLD:
        minutes = max(3, minutes - 3)
    return max(3, minutes)


def emergency_contacts(region: str = DEFAULT_REGION) -> Dict[str, str]:
    """National helpline numbers for a region."""
    return dict(EMERGENCY_CONTACTS.get(region.lower(), EMERGENCY_CONTACTS[DEFAULT_REGION]))


def fallback_authorities(region: str = DEFAULT_REGION) -> List[EmergencyService]:
    """Helpline numbers presented as services when nothing is in range."""
    return [
        EmergencyService(
            id=f"emergency_{index}",
            name=name,
            type=ServiceType.OTHER,
            category="Emergency Contact",
            phone=number,
            emergency_phone=number,
            address="National Emergency Number",
            latitude=0.0,
            longitude=0.0,
            distance_km=0.0,
            response_time_minutes=5,
            is_available=True,
            rating=5.0,
            open_now=True,
        )
        for index, (name, number) in enumerate(emergency_contacts(region).items())
    ]


def find_authorities(
    latitude: float,
    longitude: float,
    category: Optional[str],
    severity: Optional[int] = None,
    limit: int = 10
) -> List[EmergencyService]:
    """
    Convenience function to match authorities against the built-in directory.
    """
    matcher = AuthorityMatcher(directory=ServiceDirectory.builtin(), max_results=limit)
    return matcher.find_authorities(latitude, longitude, category, severity)
