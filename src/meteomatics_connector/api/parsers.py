"""Decoders that turn Meteomatics API responses into DataFrames and models.

CSV responses are ``;`` delimited with a header row. A few response shapes
need fixing up after parsing:

- single point time series come without ``lat``/``lon`` columns,
- single postal code time series come without a ``station_id`` column,
- pivoted grids carry a two line preamble before the header,
- lightning reports use their own column names.
"""

from __future__ import annotations

import csv
import io
from typing import Dict

import pandas as pd
from pydantic import ValidationError

from .constants import (
    CSV_DELIMITER,
    INFER_SCHEMA_ROWS,
    LAT_COLUMN,
    LIGHTNING_COLUMNS,
    LON_COLUMN,
    PIVOTED_GRID_PREAMBLE_ROWS,
    STATION_ID_COLUMN,
    STRING_COLUMNS,
)
from .models import DecodeError, Point, UserStatsResponse


# ─────────────────────────────────────────────────────────────────────────────
# CSV
# ─────────────────────────────────────────────────────────────────────────────

def _check_row_widths(body: str, skip_rows: int) -> None:
    """Every data row must have exactly as many fields as the header row."""
    rows = csv.reader(io.StringIO(body), delimiter=CSV_DELIMITER)
    header_width = None
    for line_no, row in enumerate(rows, start=1):
        if line_no <= skip_rows or not row:
            continue
        if header_width is None:
            header_width = len(row)
        elif len(row) != header_width:
            raise DecodeError(
                "csv",
                f"line {line_no}: expected {header_width} fields, saw {len(row)}",
            )
    if header_width is None:
        raise DecodeError("csv", "missing header row")


def _coerce_column(series: pd.Series, column: str) -> pd.Series:
    """Return the column as float64 if its leading values are numeric."""
    if column in STRING_COLUMNS:
        return series
    sample = series.head(INFER_SCHEMA_ROWS).dropna()
    if pd.to_numeric(sample, errors="coerce").isna().any():
        return series
    try:
        return pd.to_numeric(series, errors="raise").astype("float64")
    except (TypeError, ValueError) as exc:
        raise DecodeError("csv", f"column '{column}': {exc}") from exc


def parse_csv(body: str, *, skip_rows: int = 0) -> pd.DataFrame:
    """Parse a CSV response body into a DataFrame.

    Column types are inferred from the first ``INFER_SCHEMA_ROWS`` rows.
    Numeric columns (and columns without values) become float64, anything
    else stays a string. ``validdate``, ``station_id`` and
    ``stroke_time:sql`` always stay strings.

    Args:
        body: Response text.
        skip_rows: Number of preamble lines before the header row.

    Returns:
        Parsed DataFrame.

    Raises:
        DecodeError: If the body is empty, a row does not match the header
            width, or a numeric column holds an unparseable value.
    """
    if not body or not body.strip():
        raise DecodeError("csv", "empty response body")
    _check_row_widths(body, skip_rows)
    try:
        frame = pd.read_csv(
            io.StringIO(body),
            sep=CSV_DELIMITER,
            skiprows=skip_rows,
            header=0,
            index_col=False,
            dtype=str,
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, ValueError) as exc:
        raise DecodeError("csv", str(exc)) from exc

    frame.columns = [str(column).strip() for column in frame.columns]
    for column in frame.columns:
        frame[column] = _coerce_column(frame[column], column)
    return frame


def parse_pivoted_grid(body: str) -> pd.DataFrame:
    """Parse a single parameter grid; the two metadata lines are skipped."""
    return parse_csv(body, skip_rows=PIVOTED_GRID_PREAMBLE_ROWS)


# ─────────────────────────────────────────────────────────────────────────────
# Column synthesis
# ─────────────────────────────────────────────────────────────────────────────

def add_latlon(frame: pd.DataFrame, point: Point) -> pd.DataFrame:
    """Prepend constant lat/lon columns taken from the requested point."""
    if LAT_COLUMN in frame.columns or LON_COLUMN in frame.columns:
        raise DecodeError("synthesis", "response already contains lat/lon columns")
    frame = frame.copy()
    frame.insert(0, LAT_COLUMN, pd.Series(point.lat, index=frame.index, dtype="float64"))
    frame.insert(1, LON_COLUMN, pd.Series(point.lon, index=frame.index, dtype="float64"))
    return frame


def add_station_id(frame: pd.DataFrame, postal_code: str) -> pd.DataFrame:
    """Prepend a constant station_id column taken from the requested postal code."""
    if STATION_ID_COLUMN in frame.columns:
        raise DecodeError("synthesis", "response already contains a station_id column")
    frame = frame.copy()
    frame.insert(0, STATION_ID_COLUMN, pd.Series(postal_code, index=frame.index, dtype=object))
    return frame


def rename_columns(frame: pd.DataFrame, mapping: Dict[str, str]) -> pd.DataFrame:
    """Rename columns by exact name; every source column must be present."""
    try:
        return frame.rename(columns=mapping, errors="raise")
    except KeyError as exc:
        raise DecodeError("rename", f"missing column {exc}") from exc


def rename_lightning_columns(frame: pd.DataFrame) -> pd.DataFrame:
    """Map stroke_time:sql/stroke_lat:d/stroke_lon:d to validdate/lat/lon."""
    return rename_columns(frame, LIGHTNING_COLUMNS)


# ─────────────────────────────────────────────────────────────────────────────
# JSON
# ─────────────────────────────────────────────────────────────────────────────

def parse_user_stats(body: str) -> UserStatsResponse:
    """Deserialize a user_stats_json response."""
    try:
        return UserStatsResponse.model_validate_json(body)
    except ValidationError as exc:
        raise DecodeError("json", str(exc)) from exc


__all__ = [
    "parse_csv",
    "parse_pivoted_grid",
    "add_latlon",
    "add_station_id",
    "rename_columns",
    "rename_lightning_columns",
    "parse_user_stats",
]
