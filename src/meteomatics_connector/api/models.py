"""Data models and custom exceptions for the Meteomatics API client."""
from __future__ import annotations
import datetime as dt
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, List, Optional, Union
import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

TimestampLike = Union[dt.datetime, pd.Timestamp, str]
StepLike = Union[dt.timedelta, pd.Timedelta, str]


# ─────────────────────────────────────────────────────────────────────────────
# Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class MeteomaticsError(Exception):
    """Base exception for all Meteomatics client errors."""
    pass


class TransportError(MeteomaticsError):
    """Network, DNS, TLS or timeout failure before any HTTP status was received."""
    pass


class HttpError(MeteomaticsError):
    """The API answered with a non-200 status code."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"HTTP {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(MeteomaticsError):
    """A 200 response body could not be decoded into the expected shape."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage} decoding failed: {message}")
        self.stage = stage


class UrlParseError(MeteomaticsError):
    """A query fragment could not be joined against the base URL."""
    pass


class FileIOError(MeteomaticsError):
    """Directory creation or file write failed while saving a download."""
    pass


# ─────────────────────────────────────────────────────────────────────────────
# Rendering helpers
# ─────────────────────────────────────────────────────────────────────────────

def format_float(value: float) -> str:
    """Shortest positional representation without a trailing '.0'."""
    return np.format_float_positional(float(value), trim="-")


def to_utc_timestamp(value: TimestampLike) -> pd.Timestamp:
    """Normalize a timestamp to UTC; naive values are taken as UTC."""
    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def format_rfc3339(value: TimestampLike) -> str:
    """Render a timestamp as RFC3339 keeping its sub-second precision.

    Whole milliseconds render with 3 digits, whole microseconds with 6 and
    anything finer with 9. Zero fractions are omitted.
    """
    ts = to_utc_timestamp(value)
    nanos = ts.microsecond * 1_000 + ts.nanosecond
    if nanos == 0:
        fraction = ""
    elif nanos % 1_000_000 == 0:
        fraction = f".{nanos // 1_000_000:03d}"
    elif nanos % 1_000 == 0:
        fraction = f".{nanos // 1_000:06d}"
    else:
        fraction = f".{nanos:09d}"
    return f"{ts.strftime('%Y-%m-%dT%H:%M:%S')}{fraction}+00:00"


def format_duration(value: StepLike) -> str:
    """Render a fixed step as an ISO8601 duration in total seconds (PT3600S)."""
    nanos = pd.Timedelta(value).value
    seconds, remainder = divmod(nanos, 1_000_000_000)
    if remainder:
        return f"PT{seconds}.{remainder:09d}".rstrip("0") + "S"
    return f"PT{seconds}S"


# ─────────────────────────────────────────────────────────────────────────────
# Locations
# ─────────────────────────────────────────────────────────────────────────────

class Point(BaseModel):
    """Geographic point.

    Attributes:
        lat: Latitude in decimal degrees.
        lon: Longitude in decimal degrees.
    """

    model_config = ConfigDict(frozen=True)

    lat: float
    lon: float

    def __str__(self) -> str:
        return f"{format_float(self.lat)},{format_float(self.lon)}"


class BBox(BaseModel):
    """Bounding box with grid resolution.

    The API expects the upper left (lat_max, lon_min) and lower right
    (lat_min, lon_max) corners followed by the resolution.

    Attributes:
        lat_min: Southern edge.
        lat_max: Northern edge.
        lon_min: Western edge.
        lon_max: Eastern edge.
        lat_res: Latitude resolution in degrees.
        lon_res: Longitude resolution in degrees.
    """

    model_config = ConfigDict(frozen=True)

    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float
    lat_res: float = 0.0
    lon_res: float = 0.0

    def corners(self) -> str:
        """Return the box corners without resolution."""
        return (
            f"{format_float(self.lat_max)},{format_float(self.lon_min)}_"
            f"{format_float(self.lat_min)},{format_float(self.lon_max)}"
        )

    def __str__(self) -> str:
        return f"{self.corners()}:{format_float(self.lat_res)},{format_float(self.lon_res)}"


# ─────────────────────────────────────────────────────────────────────────────
# Time specifications
# ─────────────────────────────────────────────────────────────────────────────

class CalendarUnit(str, Enum):
    """Calendar-aware period units and their ISO8601 designators."""

    YEARS = "Y"
    MONTHS = "M"
    WEEKS = "W"
    DAYS = "D"

    @property
    def offset_name(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Instant:
    """Single point in time."""

    at: pd.Timestamp

    def __post_init__(self) -> None:
        object.__setattr__(self, "at", to_utc_timestamp(self.at))

    def __str__(self) -> str:
        return format_rfc3339(self.at)


def _validate_range(start: TimestampLike, end: TimestampLike) -> tuple:
    start_ts = to_utc_timestamp(start)
    end_ts = to_utc_timestamp(end)
    if end_ts < start_ts:
        raise ValueError("end must not be before start")
    return start_ts, end_ts


@dataclass(frozen=True)
class FixedStep:
    """Interval sampled with a fixed step.

    Without a step only the range is rendered (``start--end``), which is
    what the lightning endpoint expects.
    """

    start: pd.Timestamp
    end: pd.Timestamp
    step: Optional[pd.Timedelta] = None

    def __post_init__(self) -> None:
        start, end = _validate_range(self.start, self.end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        if self.step is not None:
            step = pd.Timedelta(self.step)
            if step <= pd.Timedelta(0):
                raise ValueError("step must be positive")
            object.__setattr__(self, "step", step)

    def range_str(self) -> str:
        return f"{format_rfc3339(self.start)}--{format_rfc3339(self.end)}"

    def iter_steps(self) -> Iterator[pd.Timestamp]:
        """Yield every timestamp from start to end inclusive."""
        if self.step is None:
            raise ValueError("Iterating a time range requires a step")
        current = self.start
        while current <= self.end:
            yield current
            current = current + self.step

    def __str__(self) -> str:
        if self.step is None:
            return self.range_str()
        return f"{self.range_str()}:{format_duration(self.step)}"


@dataclass(frozen=True)
class CalendarStep:
    """Interval sampled with a calendar period such as one month."""

    start: pd.Timestamp
    end: pd.Timestamp
    count: int = 1
    unit: CalendarUnit = CalendarUnit.DAYS

    def __post_init__(self) -> None:
        start, end = _validate_range(self.start, self.end)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)
        if self.count <= 0:
            raise ValueError("count must be positive")
        object.__setattr__(self, "unit", CalendarUnit(self.unit))

    def range_str(self) -> str:
        return f"{format_rfc3339(self.start)}--{format_rfc3339(self.end)}"

    def iter_steps(self) -> Iterator[pd.Timestamp]:
        """Yield every timestamp from start to end inclusive."""
        index = 0
        current = self.start
        while current <= self.end:
            yield current
            index += 1
            # offsets are applied from start to avoid month-end drift
            offset = pd.DateOffset(**{self.unit.offset_name: self.count * index})
            current = self.start + offset

    def __str__(self) -> str:
        return f"{self.range_str()}:P{self.count}{self.unit.value}"


TimeRange = Union[FixedStep, CalendarStep]
TimeSpec = Union[Instant, FixedStep, CalendarStep]


# ─────────────────────────────────────────────────────────────────────────────
# User statistics (user_stats_json)
# ─────────────────────────────────────────────────────────────────────────────

class Limit(BaseModel):
    """Usage counter with its soft and hard limit."""

    model_config = ConfigDict(populate_by_name=True)

    used: int
    soft_limit: int = Field(alias="soft limit")
    hard_limit: int = Field(alias="hard limit")


class UserStats(BaseModel):
    """Account usage counters and feature entitlements."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    username: str
    total: Limit = Field(alias="requests total")
    since_midnight: Limit = Field(alias="requests since last UTC midnight")
    since_hour: Limit = Field(alias="requests since HH:00:00")
    last_60s: Limit = Field(alias="requests in the last 60 seconds")
    parallel: Limit = Field(alias="requests in parallel")
    historic_request_option: str = Field(alias="historic request option")
    area_request_option: bool = Field(alias="area request option")
    model_select_option: List[str] = Field(default_factory=list, alias="model select option")
    error_message: str = Field(default="", alias="error message")
    contact_emails: List[str] = Field(default_factory=list, alias="contact emails")


class UserStatsResponse(BaseModel):
    """Top-level user_stats_json response."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    stats: UserStats = Field(alias="user statistics")


# ─────────────────────────────────────────────────────────────────────────────
# Client configuration
# ─────────────────────────────────────────────────────────────────────────────

class ClientConfig(BaseModel):
    """Configuration settings for the Meteomatics client.

    Attributes:
        base_url: API base URL the query fragments are joined against.
        timeout_seconds: Per-request timeout in seconds.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @field_validator("base_url")
    @classmethod
    def ensure_trailing_slash(cls, v: str) -> str:
        """Ensure the URL is absolute and ends with a slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v if v.endswith("/") else f"{v}/"

    @field_validator("timeout_seconds")
    @classmethod
    def positive_timeout(cls, v: Any) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


__all__ = [
    # Exceptions
    "MeteomaticsError",
    "TransportError",
    "HttpError",
    "DecodeError",
    "UrlParseError",
    "FileIOError",
    # Rendering helpers
    "format_float",
    "format_rfc3339",
    "format_duration",
    "to_utc_timestamp",
    # Locations
    "Point",
    "BBox",
    # Time specifications
    "CalendarUnit",
    "Instant",
    "FixedStep",
    "CalendarStep",
    "TimeRange",
    "TimeSpec",
    # User statistics
    "Limit",
    "UserStats",
    "UserStatsResponse",
    # Config
    "ClientConfig",
]
