"""
CityWatch - Authorities Module
Emergency service directory and incident routing.
"""

from citywatch.authorities.directory import (
    AuthorityRule,
    EmergencyService,
    ServiceDirectory,
    ServiceType,
    AUTHORITY_MAPPING,
    load_directory,
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

__all__ = [
    # Directory
    "AuthorityRule",
    "EmergencyService",
    "ServiceDirectory",
    "ServiceType",
    "AUTHORITY_MAPPING",
    "load_directory",
    "rule_for_category",
    # Matcher
    "AuthorityMatcher",
    "emergency_contacts",
    "estimate_response_time",
    "fallback_authorities",
    "find_authorities",
    "remove_duplicate_services",
]
