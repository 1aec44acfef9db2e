from __future__ import annotations
import logging
import threading
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence, Union
import pandas as pd
import requests
from requests.auth import HTTPBasicAuth

from .constants import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    PNG_TIMESTAMP_FORMAT,
    USER_STATS_FRAGMENT,
)
from .files import PathLike, write_file
from .models import (
    BBox,
    ClientConfig,
    HttpError,
    Instant,
    Point,
    TimeRange,
    TimeSpec,
    TimestampLike,
    TransportError,
    UserStatsResponse,
)
from .parsers import (
    add_latlon,
    add_station_id,
    parse_csv,
    parse_pivoted_grid,
    parse_user_stats,
    rename_lightning_columns,
)
from .query import (
    OutputFormat,
    build_lightning_query,
    build_query,
    build_route_query,
    build_url,
    points_to_str,
    postals_to_str,
)

LOGGER = logging.getLogger(__name__)

# HTTP Client Protocol
class HTTPClient(Protocol):
    def get(
        self,
        url: str,
        auth: HTTPBasicAuth,
        timeout: float,
        stream: bool = False,
    ) -> requests.Response:
        ...

class RequestsHTTPClient:
    """Transport backed by a shared ``requests.Session``.

    Non-200 responses are returned untouched; only failures without an HTTP
    status (DNS, connect, TLS, timeout) raise ``TransportError``.
    """

    def __init__(self) -> None:
        self._session: Optional[requests.Session] = None
        self._lock = threading.Lock()

    def _get_session(self) -> requests.Session:
        with self._lock:
            if self._session is None:
                self._session = requests.Session()
            return self._session

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None

    def __enter__(self) -> "RequestsHTTPClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def get(
        self,
        url: str,
        auth: HTTPBasicAuth,
        timeout: float,
        stream: bool = False,
    ) -> requests.Response:
        session = self._get_session()
        try:
            return session.get(url, auth=auth, timeout=timeout, stream=stream)
        except requests.exceptions.Timeout as exc:
            raise TransportError(
                f"Request timed out after {timeout} seconds while connecting to {url}"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise TransportError(f"Failed to establish connection to {url}: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(f"Request to {url} failed: {exc}") from exc


def _as_instant(value: Union[Instant, TimestampLike]) -> Instant:
    return value if isinstance(value, Instant) else Instant(value)


def _require(values: Sequence[Any], name: str) -> None:
    if not values:
        raise ValueError(f"{name} must not be empty")


def _response_text(response: requests.Response) -> str:
    try:
        return response.text
    except requests.RequestException as exc:
        raise TransportError(f"Failed to read response body: {exc}") from exc
    finally:
        response.close()


# Main client class for interacting with the Meteomatics API
class APIClient:
    """Entry point for all Meteomatics queries.

    Username and password are sent with HTTP basic auth. They are protected
    by TLS in transit only and are kept in memory as plain text.

    The client holds no per-request state and may be shared between threads.

    Example:
        >>> client = APIClient("user", "password", timeout_seconds=10)
        >>> df = client.query_time_series(
        ...     FixedStep(start, start + pd.Timedelta(days=1), pd.Timedelta(hours=1)),
        ...     ["t_2m:C"],
        ...     [Point(lat=47.423, lon=9.370)],
        ... )
    """

    def __init__(
        self,
        username: str,
        password: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        *,
        base_url: str = DEFAULT_BASE_URL,
        http_client: Optional[HTTPClient] = None,
    ):
        self._username = username
        self._auth = HTTPBasicAuth(username, password)
        self._config = ClientConfig(base_url=base_url, timeout_seconds=timeout_seconds)
        # HTTP client - track if we own it for cleanup
        self._owns_http_client = http_client is None
        self._http_client = http_client or RequestsHTTPClient()

    @classmethod
    def from_settings(cls, settings: Any = None, **kwargs: Any) -> "APIClient":
        """Create a client from ``METEOMATICS_*`` environment settings."""
        if settings is None:
            from meteomatics_connector.config import get_settings

            settings = get_settings()
        api = settings.api
        return cls(
            api.meteomatics_user,
            api.meteomatics_password,
            api.meteomatics_timeout_seconds,
            base_url=api.meteomatics_api_url,
            **kwargs,
        )

    def close(self) -> None:
        if self._owns_http_client and hasattr(self._http_client, "close"):
            self._http_client.close()

    def __enter__(self) -> "APIClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"APIClient(username={self._username!r}, base_url={self._config.base_url!r})"

    @property
    def username(self) -> str:
        return self._username

    @property
    def config(self) -> ClientConfig:
        return self._config

    # ── transport ──────────────────────────────────────────────────────────

    def _get(self, fragment: str, *, stream: bool = False) -> requests.Response:
        """Issue the GET for a fragment; non-200 responses raise HttpError."""
        url = build_url(self._config.base_url, fragment)
        LOGGER.debug("GET %s", url)
        response = self._http_client.get(
            url,
            auth=self._auth,
            timeout=self._config.timeout_seconds,
            stream=stream,
        )
        if response.status_code != 200:
            body = _response_text(response)
            LOGGER.debug("GET %s returned HTTP %s", url, response.status_code)
            raise HttpError(response.status_code, body)
        return response

    def _get_text(self, fragment: str) -> str:
        return _response_text(self._get(fragment))

    def _download(self, fragment: str, file_name: PathLike) -> Path:
        response = self._get(fragment, stream=True)
        try:
            return write_file(response, file_name)
        except requests.RequestException as exc:
            raise TransportError(f"Download interrupted: {exc}") from exc
        finally:
            response.close()

    # ── time series ────────────────────────────────────────────────────────

    def query_time_series(
        self,
        time: TimeSpec,
        parameters: Sequence[str],
        points: Sequence[Point],
        optionals: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Time series for one or more points.

        The API leaves out lat/lon for a single point; they are added back as
        the first two columns.
        """
        _require(points, "points")
        fragment = build_query(time, parameters, points_to_str(points), OutputFormat.CSV, optionals)
        frame = parse_csv(self._get_text(fragment))
        if len(points) == 1:
            frame = add_latlon(frame, points[0])
        return frame

    def query_time_series_postal(
        self,
        time: TimeSpec,
        parameters: Sequence[str],
        postal_codes: Sequence[str],
        optionals: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Time series for postal codes such as "postal_CH9000".

        A single postal code response has no station_id column; it is added
        back as the first column.
        """
        _require(postal_codes, "postal_codes")
        fragment = build_query(
            time, parameters, postals_to_str(postal_codes), OutputFormat.CSV, optionals
        )
        frame = parse_csv(self._get_text(fragment))
        if len(postal_codes) == 1:
            frame = add_station_id(frame, postal_codes[0])
        return frame

    # ── grids ──────────────────────────────────────────────────────────────

    def query_grid_pivoted(
        self,
        instant: Union[Instant, TimestampLike],
        parameter: str,
        bbox: BBox,
        optionals: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Single parameter grid as a lat x lon matrix."""
        fragment = build_query(
            _as_instant(instant), [parameter], str(bbox), OutputFormat.CSV, optionals
        )
        return parse_pivoted_grid(self._get_text(fragment))

    def query_grid_unpivoted(
        self,
        instant: Union[Instant, TimestampLike],
        parameters: Sequence[str],
        bbox: BBox,
        optionals: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Grid for one instant in long format (lat;lon;validdate;params...)."""
        _require(parameters, "parameters")
        fragment = build_query(
            _as_instant(instant), parameters, str(bbox), OutputFormat.CSV, optionals
        )
        return parse_csv(self._get_text(fragment))

    def query_grid_unpivoted_time_series(
        self,
        time_range: TimeRange,
        parameters: Sequence[str],
        bbox: BBox,
        optionals: Optional[Sequence[str]] = None,
    ) -> pd.DataFrame:
        """Grid over a time range in long format."""
        _require(parameters, "parameters")
        fragment = build_query(time_range, parameters, str(bbox), OutputFormat.CSV, optionals)
        return parse_csv(self._get_text(fragment))

    # ── file downloads ─────────────────────────────────────────────────────

    def query_netcdf(
        self,
        time_range: TimeRange,
        parameter: str,
        bbox: BBox,
        file_name: PathLike,
        optionals: Optional[Sequence[str]] = None,
    ) -> None:
        """Download a NetCDF file; intermediate directories are created."""
        fragment = build_query(time_range, [parameter], str(bbox), OutputFormat.NETCDF, optionals)
        self._download(fragment, file_name)

    def query_grid_png(
        self,
        instant: Union[Instant, TimestampLike],
        parameter: str,
        bbox: BBox,
        file_name: PathLike,
        optionals: Optional[Sequence[str]] = None,
    ) -> None:
        """Download a PNG of a single parameter grid at one instant."""
        fragment = build_query(
            _as_instant(instant), [parameter], str(bbox), OutputFormat.PNG, optionals
        )
        self._download(fragment, file_name)

    def query_grid_png_timeseries(
        self,
        time_range: TimeRange,
        parameter: str,
        bbox: BBox,
        prefix_path: PathLike,
        optionals: Optional[Sequence[str]] = None,
    ) -> List[Path]:
        """Download one PNG per step of the time range.

        Files are named ``{prefix_path}_{YYYYmmdd_HHMMSS}.png``. The first
        failing request stops the series.

        Returns:
            Paths of the written files in time order.
        """
        steps = list(time_range.iter_steps())
        written: List[Path] = []
        for timestamp in steps:
            file_name = Path(f"{prefix_path}_{timestamp.strftime(PNG_TIMESTAMP_FORMAT)}.png")
            self.query_grid_png(Instant(timestamp), parameter, bbox, file_name, optionals)
            written.append(file_name)
        return written

    # ── lightning / account ────────────────────────────────────────────────

    def query_lightning(self, time_range: TimeRange, bbox: BBox) -> pd.DataFrame:
        """Lightning strokes inside the bounding box.

        The stroke_* columns are renamed to validdate, lat and lon.
        """
        fragment = build_lightning_query(time_range, bbox)
        return rename_lightning_columns(parse_csv(self._get_text(fragment)))

    def query_user_features(self) -> UserStatsResponse:
        """Usage counters, limits and entitlements of the account."""
        return parse_user_stats(self._get_text(USER_STATS_FRAGMENT))

    # ── routes ─────────────────────────────────────────────────────────────

    def route_query_points(
        self,
        dates: Sequence[TimestampLike],
        points: Sequence[Point],
        parameters: Sequence[str],
    ) -> pd.DataFrame:
        """Route query; the n-th date belongs to the n-th point."""
        _require(dates, "dates")
        _require(points, "points")
        fragment = build_route_query(dates, parameters, points_to_str(points))
        return parse_csv(self._get_text(fragment))

    def route_query_postal(
        self,
        dates: Sequence[TimestampLike],
        postal_codes: Sequence[str],
        parameters: Sequence[str],
    ) -> pd.DataFrame:
        """Route query over postal codes; the n-th date belongs to the n-th code."""
        _require(dates, "dates")
        _require(postal_codes, "postal_codes")
        fragment = build_route_query(dates, parameters, postals_to_str(postal_codes))
        return parse_csv(self._get_text(fragment))


__all__ = [
    "APIClient",
    "HTTPClient",
    "RequestsHTTPClient",
]
