"""Centralized configuration management using Pydantic Settings.

Credentials and client options are loaded from environment variables or a
``.env`` file instead of being hardcoded in application code.

Example:
    >>> from meteomatics_connector.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.api.meteomatics_user)
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from meteomatics_connector.api.constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

LOGGER = logging.getLogger(__name__)


class APISettings(BaseSettings):
    """Meteomatics API account and endpoint configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    meteomatics_user: str = Field(
        ...,
        description="Meteomatics API username (REQUIRED)",
    )
    meteomatics_password: str = Field(
        ...,
        description="Meteomatics API password (REQUIRED)",
        repr=False,
    )
    meteomatics_api_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Meteomatics API base URL",
    )
    meteomatics_timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Per-request timeout in seconds",
    )

    @field_validator("meteomatics_api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Ensure the API URL starts with http:// or https://."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Meteomatics API URL must start with http:// or https://")
        return v


class Settings(BaseSettings):
    """Root settings container.

    Required fields raise ValidationError if not provided.

    Example .env file:
        METEOMATICS_USER=your_user
        METEOMATICS_PASSWORD=your_password
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    api: APISettings = Field(default_factory=APISettings)


# Lazy initialization - only create settings when accessed
_settings: Optional[Settings] = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Get or create the Settings singleton (thread-safe).

    Returns:
        Settings instance loaded from environment variables/.env file.

    Raises:
        ValidationError: If required configuration is missing.
    """
    global _settings

    # First check without lock (fast path)
    if _settings is not None:
        return _settings

    with _settings_lock:
        # Double-check after acquiring lock
        if _settings is None:
            LOGGER.debug("Initializing Settings from environment variables and .env file")
            try:
                _settings = Settings()
            except ValidationError as e:
                LOGGER.debug("Configuration validation failed: %s", e)
                raise
            LOGGER.debug("Settings initialized successfully")

    return _settings


def reset_settings() -> None:
    """Drop the cached Settings so the next get_settings() reloads them."""
    global _settings
    with _settings_lock:
        _settings = None


__all__ = ["APISettings", "Settings", "get_settings", "reset_settings"]
