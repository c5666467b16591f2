"""
Tests for authority directory and matching
"""
import json
import pytest
from datetime import datetime

import sys
sys.path.insert(0, '.')

from citywatch.authorities.directory import (
    EmergencyService,
    ServiceDirectory,
    ServiceType,
    rule_for_category,
)
from citywatch.authorities.matcher import (
    AuthorityMatcher,
    emergency_contacts,
    estimate_response_time,
    fallback_authorities,
    find_authorities,
    remove_duplicate_services,
)


class TestServiceDirectory:
    """Test suite for the service directory."""

    def test_builtin_directory(self):
        """Built-in directory ships the New Delhi services."""
        directory = ServiceDirectory.builtin()
        assert len(directory) == 11
        assert directory.get("fire_001").type == ServiceType.FIRE
        assert directory.get("missing") is None

    def test_from_dict_accepts_camel_case(self):
        """Directory records may use camelCase and a location object."""
        service = EmergencyService.from_dict({
            "id": "x1",
            "name": "Ward Office",
            "type": "municipal",
            "phone": "123",
            "location": {"lat": 12.97, "lng": 77.59},
            "responseTime": 7,
            "isAvailable": False,
            "emergencyPhone": "100",
        })
        assert service.latitude == 12.97
        assert service.longitude == 77.59
        assert service.response_time_minutes == 7
        assert service.is_available is False
        assert service.emergency_phone == "100"

    def test_from_json_file(self, tmp_path):
        """Directories load from JSON files."""
        path = tmp_path / "services.json"
        path.write_text(json.dumps({"services": [{
            "id": "h1", "name": "City Hospital", "type": "hospital",
            "latitude": 1.0, "longitude": 2.0,
        }]}), encoding="utf-8")

        directory = ServiceDirectory.from_json_file(str(path))
        assert len(directory) == 1
        assert directory.get("h1").name == "City Hospital"

    def test_unknown_category_uses_other_rule(self):
        """Unknown categories are routed like Other."""
        assert rule_for_category("Alien Invasion") is rule_for_category("Other")
        assert rule_for_category(None).types == [ServiceType.MUNICIPAL]


class TestAuthorityMatcher:
    """Test suite for authority matching."""

    def setup_method(self):
        """Setup test fixtures."""
        self.matcher = AuthorityMatcher(directory=ServiceDirectory.builtin(), max_results=10)

    def test_public_unrest_finds_police(self, connaught_place):
        """Police stations at the incident come first, quickest first."""
        services = self.matcher.find_authorities(*connaught_place, "Public Unrest")
        assert [s.id for s in services] == ["police_001", "police_003"]
        assert services[0].distance_km == 0.0

    def test_traffic_prefers_traffic_units(self, connaught_place):
        """Traffic units outrank closer police stations."""
        services = self.matcher.find_authorities(*connaught_place, "Traffic")
        ids = [s.id for s in services]
        assert ids[:2] == ["police_002", "traffic_001"]
        assert ids[2:] == ["police_001", "police_003"]
        assert services[0].distance_km > 2.0

    def test_search_radius_excludes_far_services(self, connaught_place):
        """Hospitals just over 5 km away are out of range."""
        assert self.matcher.find_authorities(*connaught_place, "Health") == []

    def test_limit(self, connaught_place):
        """Results are capped by the limit."""
        services = self.matcher.find_authorities(*connaught_place, "Traffic", limit=1)
        assert len(services) == 1

    def test_zero_limit_returns_nothing(self, connaught_place):
        """An explicit zero limit is respected, not replaced by the default."""
        assert self.matcher.find_authorities(*connaught_place, "Traffic", limit=0) == []

    def test_results_are_copies(self, connaught_place):
        """Matching never mutates the directory."""
        self.matcher.find_authorities(*connaught_place, "Traffic")
        assert self.matcher.directory.get("police_002").distance_km == 0.0

    def test_route_falls_back_to_helplines(self, connaught_place):
        """No service in range means national helplines."""
        routing = self.matcher.route_incident(*connaught_place, "Health", severity=5)
        assert routing["fallback"] is True
        assert routing["urgent"] is True
        assert routing["primary"].name == "Police"
        assert len(routing["services"]) == 8

    def test_route_with_matches(self, connaught_place):
        """Primary and backup come from the ranked matches."""
        routing = self.matcher.route_incident(*connaught_place, "Safety", severity=2)
        assert routing["fallback"] is False
        assert routing["urgent"] is False
        assert routing["primary"].id == "fire_001"
        assert routing["backup"] is None

    def test_municipal_office_hours(self):
        """Municipal offices answer 9:00 to 18:59."""
        morning = datetime(2026, 10, 1, 9, 0)
        night = datetime(2026, 10, 1, 22, 0)
        assert self.matcher.check_service_availability("municipal_001", at=morning)
        assert not self.matcher.check_service_availability("municipal_001", at=night)
        assert self.matcher.check_service_availability("police_001", at=night)
        assert not self.matcher.check_service_availability("nope")

    def test_convenience_function(self, connaught_place):
        """Module-level helper uses the built-in directory."""
        services = find_authorities(*connaught_place, "Infrastructure")
        assert [s.id for s in services] == ["municipal_001"]


class TestHelpers:
    """Test suite for matcher helpers."""

    def test_remove_duplicates(self):
        """Same name at the same place is listed once."""
        directory = ServiceDirectory.builtin()
        police = directory.get("police_001")
        services = remove_duplicate_services([police, police, directory.get("police_003")])
        assert [s.id for s in services] == ["police_001", "police_003"]

    @pytest.mark.parametrize("distance,severity,expected", [
        (0.0, 1, 5),
        (1.2, 2, 8),
        (1.2, 4, 5),
        (0.0, 5, 3),
    ])
    def test_estimate_response_time(self, distance, severity, expected):
        assert estimate_response_time(distance, severity) == expected

    def test_emergency_contacts(self):
        """India helplines, also used for unknown regions."""
        contacts = emergency_contacts("india")
        assert contacts["Police"] == "100"
        assert contacts["Ambulance"] == "102"
        assert emergency_contacts("atlantis") == contacts

    def test_fallback_authorities(self):
        """Helplines are presented as services."""
        services = fallback_authorities()
        assert services[0].id == "emergency_0"
        assert all(s.type == ServiceType.OTHER for s in services)
        assert all(s.category == "Emergency Contact" for s in services)
