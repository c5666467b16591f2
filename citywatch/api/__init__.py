"""
CityWatch REST API
"""

from citywatch.api.main import app, build_services, get_services

__all__ = ["app", "build_services", "get_services"]
