"""
Configuration Settings

This module defines application configuration using Pydantic Settings.
All configuration is loaded from environment variables or .env file.

Design Decisions:
- Uses pydantic-settings for type-safe configuration
- DATABASE_URL has no default: a service without a store must not start
- Defaults to the SQLite adapter when the URL is a sqlite URL
- Redirect target and CORS origins are deployment settings, not code
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = ["Settings", "get_settings"]


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables or .env file.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Project Configuration
    PORT: int = Field(
        default=8080,
        description="Port the HTTP server listens on"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Root logging level used by the run() entry point"
    )

    # Database Configuration
    # For SQLite: sqlite+aiosqlite:///./redirector.db
    # For PostgreSQL: postgresql+asyncpg://user@host:port/dbname
    DATABASE_URL: str = Field(
        ...,
        min_length=1,
        description="Database connection string (required)"
    )
    DATABASE_AUTH_TOKEN: Optional[str] = Field(
        default=None,
        description="Credential for the store, used as the URL password when the URL carries none"
    )

    # Redirect Configuration
    REDIRECT_TARGET_URL: str = Field(
        default="https://www.svtplay.se/julkalendern-snodrommar",
        description="External URL every redirect points to"
    )
    REDIRECT_COUNT_PARAM: str = Field(
        default="cnt",
        description="Query parameter carrying the visit counter"
    )
    BACKGROUND_TASK_TIMEOUT: float = Field(
        default=5.0,
        gt=0,
        description="Seconds a detached store write may take before it is abandoned"
    )

    # Info / Stats Configuration
    STATS_WINDOW_HOURS: int = Field(
        default=24,
        gt=0,
        description="Width of the rolling window reported as last_24_hours"
    )
    SERVICE_STARTED_AT: Optional[str] = Field(
        default=None,
        description="Fixed service start marker; process start time is used when unset"
    )
    INFO_RATE_LIMIT: str = Field(
        default="60/minute",
        description="slowapi rate limit applied to the info endpoint"
    )
    RATE_LIMIT_ENABLED: bool = Field(
        default=True,
        description="Disable to turn the info endpoint rate limit off"
    )

    # CORS Configuration
    CORS_ALLOW_ORIGINS: list[str] = Field(
        default=["https://gavmofjäll.se", "https://gavmofjall_se.fly.dev"],
        description="Origins advertised in Access-Control-Allow-Origin"
    )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Return the process-wide settings, loading them on first use.

    Loading is deferred so importing the package never requires a
    configured environment; a missing DATABASE_URL surfaces as a
    ValidationError the first time the settings are needed.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
