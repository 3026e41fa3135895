"""Centralized settings for spruce.

``SpruceSettings`` is the single validated source of truth for the
database URL, driver timeouts and logging options. Values come from
``SPRUCE_*`` environment variables or a ``.env`` file.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The embedding application builds one ``Database`` at startup; the
    settings object is what it builds it from.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** A file-backed SQLite database out of the box

Examples:
    >>> from spruce.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.database_url
    'sqlite:///spruce.db'

    Override per environment::

        SPRUCE_DATABASE_URL=postgresql://app:secret@db:5432/app
        SPRUCE_LOG_LEVEL=DEBUG

Tags:
    settings, configuration, pydantic, environment, spruce

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SpruceSettings(BaseSettings):
    """Spruce configuration.

    Fields
    ──────
    database_url     : URL, file path or ``memory`` keyword for the data source
    sqlite_timeout   : Seconds SQLite waits on a locked database
    connect_timeout  : Seconds network backends wait for a connection
    service_name     : Service name stamped on every log line
    log_level        : Structlog log level
    log_json         : JSON output (True), console (False), auto by TTY (None)
    log_sql_max_length: Cap on SQL text in log events (0 = no cap)
    """

    model_config = SettingsConfigDict(
        env_prefix="SPRUCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///spruce.db")
    sqlite_timeout: float = Field(default=5.0, gt=0)
    connect_timeout: int = Field(default=10, gt=0)

    # ── Logging ──────────────────────────────────────────────────
    service_name: str = Field(default="spruce")
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None)
    log_sql_max_length: int = Field(default=200, ge=0)

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value!r}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> SpruceSettings:
    """Return the cached process-wide settings."""
    return SpruceSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


__all__ = [
    "SpruceSettings",
    "get_settings",
    "clear_settings_cache",
]
