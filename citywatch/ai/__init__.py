"""
CityWatch - AI Module
Incident classification with a hosted language model.
"""

from citywatch.ai.classifier import (
    AIAnalysis,
    ClassifierError,
    IncidentClassifier,
    analyze_incident_text,
    build_prompt,
    parse_analysis,
)

__all__ = [
    "AIAnalysis",
    "ClassifierError",
    "IncidentClassifier",
    "analyze_incident_text",
    "build_prompt",
    "parse_analysis",
]
