"""
Pytest configuration and fixtures
"""
import json

import httpx
import pytest
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from citywatch.ai.classifier import AIAnalysis, IncidentClassifier
from citywatch.reports.incident_handler import IncidentHandler
from citywatch.reports.store import MemoryStore


# Connaught Place, New Delhi
CONNAUGHT_PLACE = (28.6139, 77.2090)


def gemini_payload(text: str) -> dict:
    """Gemini generateContent response wrapping the given model text."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_classifier(text: str = None, status_code: int = 200, requests: list = None) -> IncidentClassifier:
    """Classifier whose HTTP calls are answered by a mock transport."""
    if text is None:
        text = json.dumps({
            "summary": "Streetlight out near the metro entrance",
            "category": "Power Outage",
            "severity": 2,
        })

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        if status_code != 200:
            return httpx.Response(status_code, json={"error": {"message": "boom"}})
        return httpx.Response(200, json=gemini_payload(text))

    client = httpx.Client(transport=httpx.MockTransport(handler))
    return IncidentClassifier(api_key="test_api_key", client=client)


@pytest.fixture
def connaught_place():
    """Coordinates of Connaught Place, New Delhi."""
    return CONNAUGHT_PLACE


@pytest.fixture
def store():
    """Fresh in-memory store."""
    return MemoryStore()


@pytest.fixture
def handler(store):
    """Incident handler on a fresh store."""
    return IncidentHandler(store=store)


@pytest.fixture
def citizen(handler):
    """A regular citizen profile."""
    return handler.profiles.ensure_profile("citizen-1", "asha@example.com", "Asha")


@pytest.fixture
def admin(handler):
    """An administrator profile."""
    handler.profiles.ensure_profile("admin-1", "ops@example.com", "Ops")
    return handler.profiles.promote_to_admin("admin-1")


@pytest.fixture
def pothole_analysis():
    """Analysis of a pothole report."""
    return AIAnalysis(
        summary="Large pothole on main road causing traffic slowdown",
        category="Infrastructure",
        severity=3,
    )


@pytest.fixture
def gemini_text():
    """Model output wrapped in markdown fences."""
    return (
        "```json\n"
        '{"summary": "Water main burst flooding the street", '
        '"category": "Water Issue", "severity": 4}\n'
        "```"
    )


@pytest.fixture
def classifier_factory():
    """Build classifiers backed by a mock transport."""
    return make_classifier
