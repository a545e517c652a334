"""
Centralized settings management using pydantic-settings.

All environment variables and configuration values are defined here.
Use get_settings() to access the singleton settings instance.
"""

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from config.constants import (
    DEFAULT_SEARCH_RADIUS_KM,
    MAX_RESULTS_PER_TYPE,
    MIN_SUGGESTION_SCORE,
    OWN_CONTENT_SCORE,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Optional environment variables:
        - ENVIRONMENT: Environment name (development, staging, production)
        - LOG_LEVEL: Minimum log level (default: INFO)
        - JSON_LOGS: Emit JSON logs instead of console output
        - FEED_DEFAULT_SEARCH_RADIUS_KM: Radius used when a profile has none
        - FEED_MIN_SCORE: Suggestions must score strictly above this
        - FEED_MAX_RESULTS_PER_TYPE: Cap on suggestions per item type
        - FEED_OWN_CONTENT_SCORE: Fixed score of the viewer's own items
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def is_development(self) -> bool:
        return self.environment.lower() in ("development", "dev", "local")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() in ("production", "prod")

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(default="INFO", description="Minimum log level")
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON (defaults on in production)"
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def use_json_logs(self) -> bool:
        return self.json_logs or self.is_production

    # ==========================================================================
    # Feed Configuration
    # ==========================================================================
    feed_default_search_radius_km: float = Field(
        default=DEFAULT_SEARCH_RADIUS_KM,
        gt=0,
        description="Search radius (km) used when the profile does not set one"
    )
    feed_min_score: float = Field(
        default=MIN_SUGGESTION_SCORE,
        ge=0,
        description="Suggestions must score strictly above this value"
    )
    feed_max_results_per_type: int = Field(
        default=MAX_RESULTS_PER_TYPE,
        gt=0,
        description="Maximum suggested activities / events kept per type"
    )
    feed_own_content_score: float = Field(
        default=OWN_CONTENT_SCORE,
        description="Fixed score assigned to the viewer's own items"
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Uses lru_cache to ensure only one instance is created.
    Settings are loaded from environment variables and .env file.

    Returns:
        Settings: The application settings instance

    Raises:
        ValidationError: If an environment variable holds an invalid value
    """
    # Try to find .env file in project root
    env_file = Path(__file__).parent.parent.parent / ".env"
    if env_file.exists():
        os.environ.setdefault("ENV_FILE", str(env_file))

    return Settings(_env_file=env_file if env_file.exists() else None)


def get_settings_for_testing(**overrides) -> Settings:
    """
    Create a settings instance for testing with optional overrides.

    This bypasses the cache to allow different settings in tests.

    Args:
        **overrides: Setting values to override

    Returns:
        Settings: A new settings instance with overrides applied
    """
    test_defaults = {
        "environment": "testing",
        "debug": True,
    }
    test_defaults.update(overrides)

    return Settings(_env_file=None, **test_defaults)
