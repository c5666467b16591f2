"""
CityWatch - Configuration Management
Centralized configuration using pydantic-settings.
"""

from functools import lru_cache
from typing import List, Optional, Set

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_env: str = "development"
    debug: bool = True
    log_level: str = "INFO"

    # Gemini (incident classification)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ai_timeout_seconds: float = 30.0

    # Database (in-memory store when unset)
    database_url: Optional[str] = None

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "*"

    # Comma separated user IDs promoted to admin on first request
    admin_uids: str = ""

    # Authority routing
    authority_directory_path: Optional[str] = None
    emergency_region: str = "india"
    max_authorities: int = 10

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"

    @property
    def admin_uid_set(self) -> Set[str]:
        return {uid.strip() for uid in self.admin_uids.split(",") if uid.strip()}

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
