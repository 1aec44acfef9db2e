from __future__ import annotations
# API endpoint
DEFAULT_BASE_URL = "https://api.meteomatics.com/"
USER_STATS_FRAGMENT = "user_stats_json"
LIGHTNING_FRAGMENT = "get_lightning_list"

# Request configuration
DEFAULT_TIMEOUT_SECONDS = 10
DOWNLOAD_CHUNK_SIZE = 64 * 1024
PARTIAL_SUFFIX = ".part"

# CSV layout of API responses
CSV_DELIMITER = ";"
PIVOTED_GRID_PREAMBLE_ROWS = 2

# Synthesized columns for single-location time series
LAT_COLUMN = "lat"
LON_COLUMN = "lon"
STATION_ID_COLUMN = "station_id"
VALIDDATE_COLUMN = "validdate"

# Lightning report columns mapped onto the generic names
LIGHTNING_COLUMNS = {
    "stroke_time:sql": VALIDDATE_COLUMN,
    "stroke_lat:d": LAT_COLUMN,
    "stroke_lon:d": LON_COLUMN,
}

# Rows sampled to decide whether a CSV column is numeric
INFER_SCHEMA_ROWS = 100

# Columns always kept as strings when decoding CSV
STRING_COLUMNS = frozenset({VALIDDATE_COLUMN, STATION_ID_COLUMN, "stroke_time:sql"})

# File name pattern for PNG time series downloads
PNG_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

__all__ = [
    "DEFAULT_BASE_URL",
    "USER_STATS_FRAGMENT",
    "LIGHTNING_FRAGMENT",
    "DEFAULT_TIMEOUT_SECONDS",
    "DOWNLOAD_CHUNK_SIZE",
    "PARTIAL_SUFFIX",
    "CSV_DELIMITER",
    "PIVOTED_GRID_PREAMBLE_ROWS",
    "LAT_COLUMN",
    "LON_COLUMN",
    "STATION_ID_COLUMN",
    "VALIDDATE_COLUMN",
    "LIGHTNING_COLUMNS",
    "INFER_SCHEMA_ROWS",
    "STRING_COLUMNS",
    "PNG_TIMESTAMP_FORMAT",
]
