"""
Application Settings for the Match Engine

Centralized configuration using Pydantic Settings with .env support.
All environment variables are validated at startup.
"""

from functools import lru_cache
from typing import Literal, Optional
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    INTERNAL_API_KEY gates the precompute trigger endpoint. When it is not
    set the endpoint answers 503; background precompute scheduled from
    inside the process does not depend on it.
    """

    # Application Settings
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # CORS Configuration
    allowed_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Internal / admin authentication
    internal_api_key: Optional[str] = None
    admin_api_key: Optional[str] = None

    # Match cache
    match_cache_ttl_seconds: int = 1800  # 30 minutes
    programs_cache_ttl_seconds: int = 3600  # 1 hour

    # Background precompute
    precompute_enabled: bool = True
    precompute_timeout_seconds: float = 10.0

    # Scoring
    default_matching_mode: Literal[
        "BALANCED", "ACADEMIC_FOCUSED", "LOCATION_FOCUSED"
    ] = "BALANCED"
    max_matches_returned: int = 10

    # Preference validation (anti-gaming review thresholds)
    max_field_preferences: int = 10
    max_country_preferences: int = 15
    require_explicit_preferences: bool = False

    # Database Configuration (SQLModel/SQLAlchemy)
    database_url: Optional[str] = None
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_echo: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_cache_and_precompute(self) -> "Settings":
        """Reject TTLs and timeouts that would disable expiry silently."""
        if self.match_cache_ttl_seconds <= 0:
            raise ValueError("MATCH_CACHE_TTL_SECONDS must be positive")
        if self.programs_cache_ttl_seconds <= 0:
            raise ValueError("PROGRAMS_CACHE_TTL_SECONDS must be positive")
        if self.precompute_timeout_seconds <= 0:
            raise ValueError("PRECOMPUTE_TIMEOUT_SECONDS must be positive")
        if self.max_matches_returned < 1:
            raise ValueError("MAX_MATCHES_RETURNED must be at least 1")
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export for direct import
settings = get_settings()
