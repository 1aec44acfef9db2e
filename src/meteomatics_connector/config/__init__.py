"""Configuration management for the Meteomatics connector."""

from __future__ import annotations

from .settings import APISettings, Settings, get_settings, reset_settings

__all__ = ["APISettings", "Settings", "get_settings", "reset_settings"]
