"""
CityWatch / PulseAI
Citizen incident reporting with AI triage, scoring and authority routing.
"""

__version__ = "0.4.0"
