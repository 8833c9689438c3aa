"""
Centralized settings configuration using Pydantic BaseSettings.

All environment variables are defined here with types, defaults, and validation.
Use get_settings() so every component shares one cached instance.

Usage:
    from planner.settings import get_settings, Settings

    settings = get_settings()
    print(settings.plan_api_url)

    # Override in tests
    settings = Settings(autosave_base_delay_seconds=0.01)
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core Environment
    # -------------------------------------------------------------------------
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # -------------------------------------------------------------------------
    # Plan API (persistence collaborator)
    # -------------------------------------------------------------------------
    plan_api_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the plan persistence API",
    )
    plan_api_timeout: float = Field(
        default=10.0,
        gt=0,
        description="HTTP timeout in seconds for plan API calls",
    )
    plan_api_token: Optional[str] = Field(
        default=None,
        description="Bearer token sent to the plan API",
    )

    # -------------------------------------------------------------------------
    # Auto-save
    # -------------------------------------------------------------------------
    autosave_base_delay_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Debounce delay before a background save (doubled while editing)",
    )
    editing_grace_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Wait after an edit ends before re-checking the save queue",
    )
    reload_on_conflict: bool = Field(
        default=True,
        description="Reload server state immediately when a save conflicts",
    )

    # -------------------------------------------------------------------------
    # Local backup
    # -------------------------------------------------------------------------
    backup_dir: Path = Field(
        default=Path(".plan-backups"),
        description="Directory for crash-recovery plan backups",
    )
    backup_schema_version: str = Field(
        default="1.0",
        description="Version written into backup records; others are ignored",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("plan_api_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    For testing, you can clear the cache with get_settings.cache_clear().

    Returns:
        Settings: Application settings instance
    """
    return Settings()
