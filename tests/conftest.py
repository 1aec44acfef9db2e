"""Shared pytest fixtures for Meteomatics connector tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Generator, Union

import pytest
import requests

ENV_VARS = [
    "METEOMATICS_USER",
    "METEOMATICS_PASSWORD",
    "METEOMATICS_API_URL",
    "METEOMATICS_TIMEOUT_SECONDS",
    "NO_COLOR",
    "FORCE_COLOR",
]


@pytest.fixture(scope="session")
def test_env_file(tmp_path_factory: Any) -> str:
    """Create a .env file with TEST-ONLY credentials.

    Returns:
        Path to temporary .env file for testing.
    """
    env_file = tmp_path_factory.mktemp("config") / ".env"
    env_file.write_text(
        "METEOMATICS_USER=test_user\n"
        "METEOMATICS_PASSWORD=test_password_TESTONLY\n"
        "METEOMATICS_TIMEOUT_SECONDS=30\n",
        encoding="utf-8",
    )
    return str(env_file)


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path) -> None:
    """Remove connector env vars and run from an empty directory (no stray .env)."""
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def mock_env_minimal(monkeypatch, clean_env) -> None:
    """Set minimal required environment variables for testing."""
    monkeypatch.setenv("METEOMATICS_USER", "testuser")
    monkeypatch.setenv("METEOMATICS_PASSWORD", "test_pass")


@pytest.fixture
def make_response() -> Callable[..., requests.Response]:
    """Factory for fully read ``requests.Response`` objects."""

    def _make(status_code: int = 200, body: Union[str, bytes] = b"") -> requests.Response:
        response = requests.Response()
        response.status_code = status_code
        response._content = body.encode("utf-8") if isinstance(body, str) else body
        response._content_consumed = True
        response.encoding = "utf-8"
        return response

    return _make


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset settings cache between tests to ensure isolation."""
    from meteomatics_connector.config import reset_settings

    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def user_stats_json() -> str:
    """Representative user_stats_json body."""
    return """{
        "message": "ok",
        "user statistics": {
            "username": "ferris",
            "requests total": {"used": 1234, "soft limit": 10000, "hard limit": 12000},
            "requests since last UTC midnight": {"used": 12, "soft limit": 500, "hard limit": 600},
            "requests since HH:00:00": {"used": 3, "soft limit": 100, "hard limit": 120},
            "requests in the last 60 seconds": {"used": 1, "soft limit": 20, "hard limit": 30},
            "requests in parallel": {"used": 0, "soft limit": 2, "hard limit": 4},
            "historic request option": "1900-01-01T00:00:00Z--2100-01-01T00:00:00Z",
            "area request option": true,
            "model select option": ["mix", "ecmwf-ifs"],
            "error message": "",
            "contact emails": ["ops@example.com"]
        }
    }"""
