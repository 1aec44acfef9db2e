"""Query fragment builders for the Meteomatics API.

Every request is a URL fragment of the form
``{time}/{parameters}/{location}/{format}[?{optionals}]`` joined against the
base URL. The separators ``, + _ :`` belong to the API grammar and are never
percent-encoded here.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence
from urllib.parse import urlsplit

from .constants import LIGHTNING_FRAGMENT
from .models import (
    BBox,
    FixedStep,
    Point,
    TimeSpec,
    TimestampLike,
    UrlParseError,
    format_rfc3339,
)


class OutputFormat(str, Enum):
    """Response formats served by the generic endpoint."""

    CSV = "csv"
    NETCDF = "netcdf"
    PNG = "png"


# ─────────────────────────────────────────────────────────────────────────────
# Location strings
# ─────────────────────────────────────────────────────────────────────────────

def points_to_str(points: Sequence[Point]) -> str:
    """Join points with '+' (52.52,13.46+-52.52,13.46)."""
    return "+".join(str(point) for point in points)


def postals_to_str(postal_codes: Sequence[str]) -> str:
    """Join postal codes such as 'postal_CH9000' with '+'."""
    return "+".join(postal_codes)


def parameters_to_str(parameters: Sequence[str]) -> str:
    """Join parameter names in request order; duplicates are kept."""
    return ",".join(parameters)


def optionals_to_str(optionals: Optional[Sequence[str]]) -> str:
    """Return '?a=b&c=d' or an empty string when there are no optionals."""
    if not optionals:
        return ""
    return "?" + "&".join(optionals)


# ─────────────────────────────────────────────────────────────────────────────
# Fragment builders
# ─────────────────────────────────────────────────────────────────────────────

def build_query(
    time: TimeSpec,
    parameters: Sequence[str],
    location: str,
    fmt: OutputFormat = OutputFormat.CSV,
    optionals: Optional[Sequence[str]] = None,
) -> str:
    """Build the generic time/parameters/location/format fragment.

    Args:
        time: Instant, FixedStep or CalendarStep.
        parameters: Parameter names (e.g. "t_2m:C").
        location: Rendered location string (points, postal codes or bbox).
        fmt: Output format.
        optionals: Raw "key=value" strings forwarded verbatim.

    Returns:
        The URL fragment.
    """
    fmt = OutputFormat(fmt)
    return (
        f"{time}/{parameters_to_str(parameters)}/{location}/{fmt.value}"
        f"{optionals_to_str(optionals)}"
    )


def build_lightning_query(time_range: FixedStep, bbox: BBox) -> str:
    """Build the lightning report fragment; the bbox resolution is not sent."""
    return (
        f"{LIGHTNING_FRAGMENT}?time_range={time_range.range_str()}"
        f"&bounding_box={bbox.corners()}&format={OutputFormat.CSV.value}"
    )


def build_route_query(
    dates: Sequence[TimestampLike],
    parameters: Sequence[str],
    location: str,
) -> str:
    """Build a route fragment; the server pairs dates and locations by position."""
    dates_str = ",".join(format_rfc3339(date) for date in dates)
    return (
        f"{dates_str}/{parameters_to_str(parameters)}/{location}/"
        f"{OutputFormat.CSV.value}?route=true"
    )


def build_url(base_url: str, fragment: str) -> str:
    """Append a query fragment to the base URL.

    The fragment is appended verbatim so that its leading timestamp is never
    mistaken for a URL scheme.

    Raises:
        UrlParseError: If the fragment holds whitespace or control characters
            or the joined URL cannot be parsed.
    """
    if any(ch.isspace() or not ch.isprintable() for ch in fragment):
        raise UrlParseError(f"Invalid characters in query fragment: {fragment!r}")
    full_url = f"{base_url.rstrip('/')}/{fragment.lstrip('/')}"
    try:
        parts = urlsplit(full_url)
    except ValueError as exc:
        raise UrlParseError(f"Cannot join {fragment!r} to {base_url!r}: {exc}") from exc
    if not parts.scheme or not parts.netloc:
        raise UrlParseError(f"Cannot join {fragment!r} to {base_url!r}")
    return full_url


__all__ = [
    "OutputFormat",
    "points_to_str",
    "postals_to_str",
    "parameters_to_str",
    "optionals_to_str",
    "build_query",
    "build_lightning_query",
    "build_route_query",
    "build_url",
]
