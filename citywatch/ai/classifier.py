"""
Gemini incident classifier for CityWatch

Sends a citizen's description to the Gemini generateContent endpoint and
parses the JSON analysis (summary, category, severity) it returns.

API Documentation: https://ai.google.dev/api/generate-content
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from citywatch.core.config import settings
from citywatch.core.constants import (
    CATEGORY_GUIDELINES,
    CLASSIFIER_CATEGORIES,
    DEFAULT_CATEGORY,
    DEFAULT_SEVERITY,
    INCIDENT_CATEGORIES,
    MAX_SEVERITY,
    MIN_SEVERITY,
)

logger = logging.getLogger(__name__)

FALLBACK_SUMMARY = "Analysis failed - manual review required"
MANUAL_SUMMARY = "Manual analysis"

_FENCE_PATTERN = re.compile(r"```(?:json)?", re.IGNORECASE)


class ClassifierError(Exception):
    """The classifier could not produce an analysis."""


@dataclass
class AIAnalysis:
    """
    Classification of a citizen report.

    Attributes:
        summary: One or two sentence summary
        category: Incident category
        severity: 1 (low) to 5 (emergency)
        error: Set when the analysis is a fallback
    """
    summary: str
    category: str
    severity: int
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "summary": self.summary,
            "category": self.category,
            "severity": self.severity,
        }
        if self.error:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIAnalysis":
        """Normalize a raw analysis payload."""
        return cls(
            summary=str(data.get("summary") or MANUAL_SUMMARY).strip(),
            category=normalize_category(data.get("category")),
            severity=normalize_severity(data.get("severity")),
            error=data.get("error"),
        )

    @classmethod
    def fallback(cls, reason: str) -> "AIAnalysis":
        """Analysis used when the classifier is unavailable."""
        return cls(
            summary=FALLBACK_SUMMARY,
            category=DEFAULT_CATEGORY,
            severity=DEFAULT_SEVERITY,
            error=reason,
        )


def normalize_category(category: Any) -> str:
    """Map a returned category onto a known one, case-insensitively."""
    if isinstance(category, str):
        wanted = category.strip().lower()
        for known in INCIDENT_CATEGORIES:
            if known.lower() == wanted:
                return known
    return DEFAULT_CATEGORY


def normalize_severity(severity: Any) -> int:
    """Coerce a returned severity to an integer between 1 and 5."""
    try:
        value = float(severity)
    except (TypeError, ValueError):
        logger.warning(f"Invalid severity value {severity!r}, defaulting to {DEFAULT_SEVERITY}")
        return DEFAULT_SEVERITY

    if math.isnan(value) or math.isinf(value):
        return DEFAULT_SEVERITY

    return max(MIN_SEVERITY, min(MAX_SEVERITY, int(round(value))))


def build_prompt(description: str) -> str:
    """Build the classification prompt for a citizen report."""
    categories = ", ".join(f"'{c}'" for c in CLASSIFIER_CATEGORIES)
    guidelines = "\n".join(
        f"- '{name}': {text}" for name, text in CATEGORY_GUIDELINES.items()
    )

    return (
        "You are PulseAI, a city management assistant. "
        f'Analyze the following citizen report: "{description}".\n\n'
        "Please provide a brief analysis in strict JSON format with no extra text, "
        "comments, or markdown ticks before or after the JSON object.\n\n"
        "The JSON must have:\n"
        '- "summary": A brief, 1-2 sentence summary of the issue (keep it short and clear)\n'
        f'- "category": One of these exact values: {categories}\n'
        '- "severity": A number from 1-5 where 1=Low, 2=Medium, 3=High, 4=Critical, 5=Emergency\n\n'
        f"Category mapping guidelines:\n{guidelines}\n\n"
        "Example response format:\n"
        '{ "summary": "Vehicle collision with tree requiring immediate cleanup and safety '
        'assessment", "category": "Infrastructure", "severity": 3 }\n\n'
        "Keep the summary brief and to the point. "
        "Choose the most appropriate category based on the issue description."
    )


def parse_analysis(text: str) -> AIAnalysis:
    """
    Parse the model's text output into an analysis.

    Args:
        text: Raw model output, possibly wrapped in markdown fences

    Returns:
        Normalized AIAnalysis

    Raises:
        ClassifierError: If the output is not a JSON object
    """
    cleaned = _FENCE_PATTERN.sub("", text or "").strip()

    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassifierError(f"Failed to parse AI response as JSON: {e}") from e

    if not isinstance(payload, dict):
        raise ClassifierError("AI response is not a JSON object")

    payload.pop("error", None)
    return AIAnalysis.from_dict(payload)


class IncidentClassifier:
    """
    Client for classifying incidents with Gemini.

    Usage:
        with IncidentClassifier(api_key="your_key") as classifier:
            analysis = classifier.analyze("Streetlight out on MG Road")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None
    ):
        """
        Initialize the classifier.

        Args:
            api_key: Gemini API key (default: from settings)
            model: Model name (default: from settings)
            base_url: API base URL (default: from settings)
            timeout: HTTP request timeout in seconds
            client: Preconfigured httpx client
        """
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.model = model or settings.gemini_model
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.ai_timeout_seconds
        self._client = client or httpx.Client(timeout=self.timeout)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        self._client.close()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def classify(self, description: str) -> AIAnalysis:
        """
        Classify a description.

        Args:
            description: Citizen's report text

        Returns:
            AIAnalysis

        Raises:
            ValueError: If the description is empty
            ClassifierError: If the API call or parsing fails
        """
        if not description or not description.strip():
            raise ValueError("Description is required for analysis")

        if not self.is_configured:
            raise ClassifierError("GEMINI_API_KEY not configured")

        body = {"contents": [{"parts": [{"text": build_prompt(description.strip())}]}]}

        logger.info(f"Requesting classification from {self.model}")
        try:
            response = self._client.post(
                self.endpoint,
                params={"key": self.api_key},
                json=body,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ClassifierError(
                f"Gemini API error {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ClassifierError(f"Gemini API request failed: {e}") from e

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise ClassifierError("Unexpected Gemini response shape") from e

        analysis = parse_analysis(text)
        logger.info(
            f"Classified report: {analysis.category}, severity {analysis.severity}"
        )
        return analysis

    def analyze(self, description: str) -> AIAnalysis:
        """
        Classify a description, falling back instead of failing.

        Raises:
            ValueError: If the description is empty
        """
        try:
            return self.classify(description)
        except ClassifierError as e:
            logger.warning(f"Incident classification failed: {e}")
            return AIAnalysis.fallback(str(e))


def analyze_incident_text(description: str, api_key: Optional[str] = None) -> AIAnalysis:
    """Convenience function to classify a single description."""
    with IncidentClassifier(api_key=api_key) as classifier:
        return classifier.analyze(description)
