"""Meteomatics API Client Package.

This package provides a clean, testable interface to the Meteomatics API
with support for:
- Typed locations and time ranges rendered to the API query grammar
- Dependency injection for the HTTP client (testability)
- CSV responses decoded into pandas DataFrames

Example usage:
    >>> from meteomatics_connector.api import APIClient, FixedStep, Point
    >>> client = APIClient("username", "password", timeout_seconds=10)
    >>> df = client.query_time_series(time_range, ["t_2m:C"], [Point(lat=47.42, lon=9.37)])
"""

from __future__ import annotations

# Re-export main client class
from .client import (
    APIClient,
    HTTPClient,
    RequestsHTTPClient,
)

# Re-export constants
from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    LIGHTNING_COLUMNS,
    PIVOTED_GRID_PREAMBLE_ROWS,
)

# Re-export models and exceptions
from .models import (
    BBox,
    CalendarStep,
    CalendarUnit,
    ClientConfig,
    DecodeError,
    FileIOError,
    FixedStep,
    HttpError,
    Instant,
    Limit,
    MeteomaticsError,
    Point,
    TimeRange,
    TimeSpec,
    TransportError,
    UrlParseError,
    UserStats,
    UserStatsResponse,
)

# Re-export query builders (for advanced usage)
from .query import (
    OutputFormat,
    build_lightning_query,
    build_query,
    build_route_query,
    build_url,
    points_to_str,
    postals_to_str,
)


__all__ = [
    # Main client
    "APIClient",
    "HTTPClient",
    "RequestsHTTPClient",
    # Locations and time
    "Point",
    "BBox",
    "Instant",
    "FixedStep",
    "CalendarStep",
    "CalendarUnit",
    "TimeRange",
    "TimeSpec",
    # Responses
    "Limit",
    "UserStats",
    "UserStatsResponse",
    "ClientConfig",
    # Exceptions
    "MeteomaticsError",
    "TransportError",
    "HttpError",
    "DecodeError",
    "UrlParseError",
    "FileIOError",
    # Query builders
    "OutputFormat",
    "build_query",
    "build_lightning_query",
    "build_route_query",
    "build_url",
    "points_to_str",
    "postals_to_str",
    # Constants
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT_SECONDS",
    "LIGHTNING_COLUMNS",
    "PIVOTED_GRID_PREAMBLE_ROWS",
]
