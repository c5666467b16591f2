"""
CityWatch - Constants and Reference Data
Static values used throughout the application.
"""

from typing import Dict, List

# =============================================================================
# INCIDENT CATEGORIES
# =============================================================================

# Categories the AI classifier is allowed to return
CLASSIFIER_CATEGORIES: List[str] = [
    "Traffic",
    "Power Outage",
    "Water Issue",
    "Public Unrest",
    "Infrastructure",
    "Other",
]

# Every category an incident can carry (admins may re-categorise)
INCIDENT_CATEGORIES: List[str] = CLASSIFIER_CATEGORIES[:-1] + [
    "Environmental",
    "Health",
    "Safety",
    "Other",
]

DEFAULT_CATEGORY: str = "Other"

# Guidance sent to the classifier for each category
CATEGORY_GUIDELINES: Dict[str, str] = {
    "Traffic": "Road accidents, traffic jams, broken traffic lights, road closures, parking issues",
    "Power Outage": "Electricity issues, street light problems, power failures, electrical hazards",
    "Water Issue": "Water leaks, flooding, water quality problems, drainage issues, pipe bursts",
    "Public Unrest": "Protests, disturbances, safety concerns, criminal activities, emergencies",
    "Infrastructure": (
        "Building damage, road damage, public facility issues, construction problems, "
        "tree/vegetation issues"
    ),
    "Other": "Any issue not fitting the above categories",
}

# =============================================================================
# SEVERITY
# =============================================================================

MIN_SEVERITY: int = 1
MAX_SEVERITY: int = 5
DEFAULT_SEVERITY: int = 3

SEVERITY_LABELS: Dict[int, str] = {
    1: "Low",
    2: "Medium",
    3: "High",
    4: "Critical",
    5: "Emergency",
}

# Severity at or above which an incident counts as high severity
HIGH_SEVERITY_THRESHOLD: int = 4

# =============================================================================
# EMERGENCY CONTACTS
# =============================================================================

EMERGENCY_CONTACTS: Dict[str, Dict[str, str]] = {
    "india": {
        "Police": "100",
        "Fire": "101",
        "Ambulance": "102",
        "Women Helpline": "1091",
        "Child Helpline": "1098",
        "Senior Citizen Helpline": "14567",
        "Railway Helpline": "139",
        "Tourist Helpline": "1363",
    },
}

DEFAULT_REGION: str = "india"

# =============================================================================
# TEXT LIMITS
# =============================================================================

# Length of the description excerpt quoted in notifications
NOTIFICATION_EXCERPT_LENGTH: int = 50

MAX_DESCRIPTION_LENGTH: int = 2000
