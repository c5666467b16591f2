"""
Emergency service directory for CityWatch
Static list of authorities incidents can be routed to, and the
category -> authority mapping used to pick them.
"""

import json
import logging
from dataclasses import dataclass, field, asdict, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from citywatch.core.constants import DEFAULT_CATEGORY

logger = logging.getLogger(__name__)


class ServiceType(str, Enum):
    """Kind of authority."""
    POLICE = "police"
    FIRE = "fire"
    HOSPITAL = "hospital"
    AMBULANCE = "ambulance"
    MUNICIPAL = "municipal"
    TRAFFIC = "traffic"
    ENVIRONMENTAL = "environmental"
    OTHER = "other"


@dataclass
class EmergencyService:
    """An authority that can respond to incidents."""
    id: str
    name: str
    type: ServiceType
    category: str
    phone: str
    address: str
    latitude: float
    longitude: float

    emergency_phone: Optional[str] = None
    distance_km: float = 0.0
    response_time_minutes: int = 10
    is_available: bool = True
    rating: Optional[float] = None
    open_now: Optional[bool] = None
    website: Optional[str] = None
    operating_hours: Optional[str] = None

    def with_distance(self, distance_km: float) -> "EmergencyService":
        """Copy of this service with a computed distance."""
        return replace(self, distance_km=distance_km)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmergencyService":
        """Build a service from a directory record."""
        location = data.get("location") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            type=ServiceType(data.get("type", "other")),
            category=data.get("category", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            latitude=float(data.get("latitude", location.get("lat", 0.0))),
            longitude=float(data.get("longitude", location.get("lng", 0.0))),
            emergency_phone=data.get("emergency_phone") or data.get("emergencyPhone"),
            response_time_minutes=int(
                data.get("response_time_minutes", data.get("responseTime", 10))
            ),
            is_available=bool(data.get("is_available", data.get("isAvailable", True))),
            rating=data.get("rating"),
            open_now=data.get("open_now", data.get("openNow")),
            website=data.get("website"),
            operating_hours=data.get("operating_hours", data.get("operatingHours")),
        )


@dataclass
class AuthorityRule:
    """Which authorities handle a category, and how far to look for them."""
    types: List[ServiceType]
    priority: int
    search_radius_m: int

    @property
    def search_radius_km(self) -> float:
        return self.search_radius_m / 1000

    def type_rank(self, service_type: ServiceType) -> int:
        """Position of a type in this rule; primary authority first."""
        try:
            return self.types.index(service_type)
        except ValueError:
            return len(self.types)


AUTHORITY_MAPPING: Dict[str, AuthorityRule] = {
    "Public Unrest": AuthorityRule([ServiceType.POLICE], priority=1, search_radius_m=5000),
    "Infrastructure": AuthorityRule([ServiceType.MUNICIPAL], priority=2, search_radius_m=3000),
    "Environmental": AuthorityRule(
        [ServiceType.ENVIRONMENTAL, ServiceType.MUNICIPAL], priority=2, search_radius_m=4000
    ),
    "Traffic": AuthorityRule(
        [ServiceType.TRAFFIC, ServiceType.POLICE], priority=1, search_radius_m=3000
    ),
    "Health": AuthorityRule(
        [ServiceType.HOSPITAL, ServiceType.AMBULANCE], priority=1, search_radius_m=5000
    ),
    "Safety": AuthorityRule(
        [ServiceType.FIRE, ServiceType.AMBULANCE], priority=1, search_radius_m=5000
    ),
    "Power Outage": AuthorityRule([ServiceType.MUNICIPAL], priority=2, search_radius_m=3000),
    "Water Issue": AuthorityRule(
        [ServiceType.MUNICIPAL, ServiceType.ENVIRONMENTAL], priority=2, search_radius_m=3000
    ),
    DEFAULT_CATEGORY: AuthorityRule([ServiceType.MUNICIPAL], priority=3, search_radius_m=3000),
}


def rule_for_category(category: Optional[str]) -> AuthorityRule:
    """Authority rule for a category, falling back to Other."""
    return AUTHORITY_MAPPING.get(category or DEFAULT_CATEGORY, AUTHORITY_MAPPING[DEFAULT_CATEGORY])


# Built-in directory (New Delhi)
_BUILTIN_SERVICES: List[Dict[str, Any]] = [
    # Police Stations
    {
        "id": "police_001", "name": "Central Police Station", "type": "police",
        "category": "Law Enforcement", "phone": "+91-11-23469400", "emergency_phone": "100",
        "address": "Connaught Place, New Delhi, Delhi 110001",
        "latitude": 28.6139, "longitude": 77.2090, "response_time_minutes": 5,
        "rating": 4.2, "open_now": True, "website": "https://delhipolice.gov.in",
    },
    {
        "id": "police_002", "name": "Traffic Police Control Room", "type": "traffic",
        "category": "Traffic Control", "phone": "+91-11-23469400", "emergency_phone": "100",
        "address": "ITO, New Delhi, Delhi 110002",
        "latitude": 28.6329, "longitude": 77.2197, "response_time_minutes": 8,
        "rating": 4.0, "open_now": True,
    },
    {
        "id": "police_003", "name": "Cyber Crime Police Station", "type": "police",
        "category": "Cyber Security", "phone": "+91-11-23469400", "emergency_phone": "100",
        "address": "Cyber Crime Unit, New Delhi, Delhi 110001",
        "latitude": 28.6139, "longitude": 77.2090, "response_time_minutes": 12,
        "rating": 4.1, "open_now": True,
    },
    # Fire Departments
    {
        "id": "fire_001", "name": "Delhi Fire Service Headquarters", "type": "fire",
        "category": "Emergency Services", "phone": "+91-11-23469400", "emergency_phone": "101",
        "address": "Connaught Place, New Delhi, Delhi 110001",
        "latitude": 28.6139, "longitude": 77.2090, "response_time_minutes": 6,
        "rating": 4.5, "open_now": True,
    },
    {
        "id": "fire_002", "name": "Delhi Fire Station - Dwarka", "type": "fire",
        "category": "Emergency Services", "phone": "+91-11-23469400", "emergency_phone": "101",
        "address": "Sector 12, Dwarka, New Delhi, Delhi 110075",
        "latitude": 28.5684, "longitude": 77.0585, "response_time_minutes": 8,
        "rating": 4.3, "open_now": True,
    },
    # Hospitals
    {
        "id": "hospital_001", "name": "All India Institute of Medical Sciences (AIIMS)",
        "type": "hospital", "category": "Emergency Medical Services",
        "phone": "+91-11-26588500", "emergency_phone": "102",
        "address": "Sri Aurobindo Marg, Ansari Nagar, New Delhi, Delhi 110029",
        "latitude": 28.5676, "longitude": 77.2090, "response_time_minutes": 10,
        "rating": 4.8, "open_now": True, "website": "https://www.aiims.edu",
    },
    {
        "id": "hospital_002", "name": "Safdarjung Hospital", "type": "hospital",
        "category": "Emergency Medical Services", "phone": "+91-11-26707444",
        "emergency_phone": "102", "address": "Ansari Nagar West, New Delhi, Delhi 110029",
        "latitude": 28.5676, "longitude": 77.2090, "response_time_minutes": 12,
        "rating": 4.5, "open_now": True,
    },
    # Municipal Services
    {
        "id": "municipal_001", "name": "New Delhi Municipal Council", "type": "municipal",
        "category": "Municipal Corporation", "phone": "+91-11-23469400",
        "address": "Palika Kendra, Sansad Marg, New Delhi, Delhi 110001",
        "latitude": 28.6139, "longitude": 77.2090, "response_time_minutes": 15,
        "rating": 3.8, "open_now": True, "website": "https://www.ndmc.gov.in",
        "operating_hours": "09:00-18:00",
    },
    {
        "id": "municipal_002", "name": "Delhi Development Authority", "type": "municipal",
        "category": "Urban Development", "phone": "+91-11-23469400",
        "address": "Vikas Sadan, INA, New Delhi, Delhi 110023",
        "latitude": 28.5676, "longitude": 77.2090, "response_time_minutes": 20,
        "rating": 3.5, "open_now": True, "website": "https://dda.org.in",
        "operating_hours": "09:00-18:00",
    },
    # Environmental Services
    {
        "id": "environmental_001", "name": "Delhi Pollution Control Committee",
        "type": "environmental", "category": "Environmental Protection",
        "phone": "+91-11-23469400",
        "address": "ISBT Building, Kashmere Gate, New Delhi, Delhi 110006",
        "latitude": 28.6682, "longitude": 77.2285, "response_time_minutes": 25,
        "rating": 3.9, "open_now": True,
    },
    # Traffic Services
    {
        "id": "traffic_001", "name": "Delhi Traffic Police Headquarters", "type": "traffic",
        "category": "Traffic Management", "phone": "+91-11-23469400", "emergency_phone": "100",
        "address": "ITO, New Delhi, Delhi 110002",
        "latitude": 28.6329, "longitude": 77.2197, "response_time_minutes": 8,
        "rating": 4.0, "open_now": True,
    },
]


@dataclass
class ServiceDirectory:
    """Read-only collection of emergency services."""
    services: List[EmergencyService] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.services)

    def __iter__(self):
        return iter(self.services)

    def get(self, service_id: str) -> Optional[EmergencyService]:
        """Get a service by ID."""
        for service in self.services:
            if service.id == service_id:
                return service
        return None

    @classmethod
    def builtin(cls) -> "ServiceDirectory":
        """Directory shipped with the application."""
        return cls([EmergencyService.from_dict(s) for s in _BUILTIN_SERVICES])

    @classmethod
    def from_json_file(cls, path: str) -> "ServiceDirectory":
        """
        Load a directory from a JSON file.

        The file holds either a list of service records or an object
        with a "services" list.

        Args:
            path: Path to the JSON file

        Returns:
            ServiceDirectory
        """
        with open(Path(path), encoding="utf-8") as f:
            payload = json.load(f)

        records = payload.get("services", []) if isinstance(payload, dict) else payload
        directory = cls([EmergencyService.from_dict(r) for r in records])
        logger.info(f"Loaded {len(directory)} emergency services from {path}")
        return directory


def load_directory(path: Optional[str] = None) -> ServiceDirectory:
    """Load the configured directory, or the built-in one."""
    if path:
        return ServiceDirectory.from_json_file(path)
    return ServiceDirectory.builtin()
