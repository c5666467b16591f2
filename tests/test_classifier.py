"""
Tests for the Gemini incident classifier
"""
import json
import pytest
from unittest.mock import patch

import sys
sys.path.insert(0, '.')

from citywatch.ai.classifier import (
    AIAnalysis,
    ClassifierError,
    FALLBACK_SUMMARY,
    IncidentClassifier,
    analyze_incident_text,
    build_prompt,
    normalize_category,
    normalize_severity,
    parse_analysis,
)


class TestParsing:
    """Test suite for model output parsing."""

    def test_parse_fenced_json(self, gemini_text):
        """Markdown fences around the JSON are stripped."""
        analysis = parse_analysis(gemini_text)
        assert analysis.category == "Water Issue"
        assert analysis.severity == 4
        assert analysis.summary == "Water main burst flooding the street"
        assert not analysis.is_fallback

    def test_parse_invalid_json(self):
        """Non-JSON output raises ClassifierError."""
        with pytest.raises(ClassifierError):
            parse_analysis("I think this is a traffic problem")

    def test_parse_non_object(self):
        """A JSON array is not an analysis."""
        with pytest.raises(ClassifierError):
            parse_analysis("[1, 2, 3]")

    @pytest.mark.parametrize("value,expected", [
        (4, 4),
        ("2", 2),
        (7, 5),
        (0, 1),
        (-3, 1),
        (4.6, 5),
        ("high", 3),
        (None, 3),
        (float("nan"), 3),
    ])
    def test_normalize_severity(self, value, expected):
        assert normalize_severity(value) == expected

    def test_normalize_category(self):
        """Categories match case-insensitively, unknown ones become Other."""
        assert normalize_category("power outage") == "Power Outage"
        assert normalize_category("Health") == "Health"
        assert normalize_category("Zombies") == "Other"
        assert normalize_category(42) == "Other"

    def test_missing_summary(self):
        """A missing summary is replaced."""
        analysis = AIAnalysis.from_dict({"category": "Traffic", "severity": 2})
        assert analysis.summary == "Manual analysis"

    def test_prompt_lists_categories(self):
        """The prompt names the allowed categories and the report."""
        prompt = build_prompt("Tree fell on the road")
        assert "PulseAI" in prompt
        assert "'Power Outage'" in prompt
        assert "Tree fell on the road" in prompt


class TestIncidentClassifier:
    """Test suite for the Gemini client."""

    def test_classify(self, classifier_factory):
        """Successful classification posts the prompt with the API key."""
        requests = []
        with classifier_factory(requests=requests) as classifier:
            analysis = classifier.classify("Streetlight is out near the metro")

        assert analysis.category == "Power Outage"
        assert analysis.severity == 2

        request = requests[0]
        assert request.url.params["key"] == "test_api_key"
        assert request.url.path.endswith(":generateContent")
        body = json.loads(request.content)
        assert "Streetlight is out" in body["contents"][0]["parts"][0]["text"]

    def test_classify_empty_description(self, classifier_factory):
        """Empty descriptions are rejected before any request."""
        with classifier_factory() as classifier:
            with pytest.raises(ValueError):
                classifier.classify("   ")

    def test_http_error_falls_back(self, classifier_factory):
        """API errors produce the fallback analysis."""
        with classifier_factory(status_code=500) as classifier:
            analysis = classifier.analyze("Water pipe burst")

        assert analysis.is_fallback
        assert analysis.summary == FALLBACK_SUMMARY
        assert analysis.category == "Other"
        assert analysis.severity == 3

    def test_garbage_output_falls_back(self, classifier_factory):
        """Unparseable model output produces the fallback analysis."""
        with classifier_factory(text="not json at all") as classifier:
            analysis = classifier.analyze("Water pipe burst")
        assert analysis.is_fallback

    def test_unconfigured_falls_back(self):
        """Without an API key no request is made."""
        with IncidentClassifier(api_key="") as classifier:
            assert not classifier.is_configured
            with pytest.raises(ClassifierError):
                classifier.classify("Water pipe burst")
            assert classifier.analyze("Water pipe burst").is_fallback

    @patch('citywatch.ai.classifier.IncidentClassifier.classify')
    def test_analyze_incident_text(self, mock_classify):
        """Convenience function delegates to the classifier."""
        mock_classify.return_value = AIAnalysis("Jam", "Traffic", 2)
        analysis = analyze_incident_text("Traffic jam", api_key="k")
        assert analysis.category == "Traffic"
        mock_classify.assert_called_once_with("Traffic jam")
