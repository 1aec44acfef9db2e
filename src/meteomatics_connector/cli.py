#!/usr/bin/env python3
from __future__ import annotations
import argparse
import datetime as dt
import logging
import sys
from typing import List, Optional
import pandas as pd
from pydantic import ValidationError
from meteomatics_connector.api import APIClient, FixedStep, MeteomaticsError, Point
from meteomatics_connector.config import get_settings
from meteomatics_connector.utils.logging_config import configure_logging

LOGGER = logging.getLogger(__name__)


def _parse_point(value: str) -> Point:
    """Parse a 'lat,lon' pair."""
    try:
        lat, lon = (float(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid point '{value}'. Expected format: LAT,LON"
        ) from exc
    return Point(lat=lat, lon=lon)


def _parse_datetime(value: str) -> dt.datetime:
    """Parse datetime string in ISO 8601 format."""
    try:
        return dt.datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid datetime '{value}'. Expected ISO 8601 format."
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    """Build argument parser for the connector CLI."""
    parser = argparse.ArgumentParser(
        description="Query the Meteomatics API. Credentials come from METEOMATICS_USER "
        "and METEOMATICS_PASSWORD (environment or .env)."
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    timeseries = subparsers.add_parser("timeseries", help="Point time series as CSV")
    timeseries.add_argument(
        "--point",
        dest="points",
        type=_parse_point,
        action="append",
        required=True,
        help="Location as LAT,LON (repeatable)",
    )
    timeseries.add_argument(
        "--param",
        dest="parameters",
        action="append",
        required=True,
        help="Parameter such as t_2m:C (repeatable)",
    )
    timeseries.add_argument(
        "--start",
        type=_parse_datetime,
        required=True,
        help="Start datetime ISO 8601 (naive values are UTC)",
    )
    timeseries.add_argument(
        "--end",
        type=_parse_datetime,
        required=True,
        help="End datetime ISO 8601 (naive values are UTC)",
    )
    timeseries.add_argument(
        "--step-hours",
        type=float,
        default=1.0,
        help="Time step in hours (default: 1)",
    )
    timeseries.add_argument(
        "--optional",
        dest="optionals",
        action="append",
        help="Extra key=value query option such as source=mix (repeatable)",
    )
    timeseries.add_argument(
        "--output",
        help="Write CSV to this path instead of stdout",
    )

    subparsers.add_parser("user-stats", help="Show account usage and limits")
    return parser


def _run_timeseries(client: APIClient, args: argparse.Namespace) -> None:
    time_range = FixedStep(args.start, args.end, pd.Timedelta(hours=args.step_hours))
    frame = client.query_time_series(time_range, args.parameters, args.points, args.optionals)
    LOGGER.info("Received %d rows for %d location(s)", len(frame), len(args.points))
    if args.output:
        frame.to_csv(args.output, sep=";", index=False)
        LOGGER.info("Wrote %s", args.output)
    else:
        frame.to_csv(sys.stdout, sep=";", index=False)


def _run_user_stats(client: APIClient) -> None:
    stats = client.query_user_features().stats
    LOGGER.info("User %s", stats.username)
    for label, limit in (
        ("total", stats.total),
        ("since midnight", stats.since_midnight),
        ("since hour", stats.since_hour),
        ("last 60s", stats.last_60s),
        ("parallel", stats.parallel),
    ):
        LOGGER.info(
            "  %-15s used=%d soft=%d hard=%d",
            label,
            limit.used,
            limit.soft_limit,
            limit.hard_limit,
        )


def run_cli(argv: Optional[List[str]] = None) -> int:
    """Execute CLI with given arguments.

    Args:
        argv: Command-line arguments (uses sys.argv if None).

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = get_settings()
    except ValidationError as e:
        LOGGER.error("Missing or invalid configuration: %s", e)
        return 2

    with APIClient.from_settings(settings) as client:
        try:
            if args.command == "timeseries":
                _run_timeseries(client, args)
            else:
                _run_user_stats(client)
        except MeteomaticsError as e:
            LOGGER.error("Query '%s' failed: %s", args.command, e)
            return 1
        except ValueError as e:
            LOGGER.error("Invalid request for '%s': %s", args.command, e)
            return 1
    return 0


def main() -> None:  # pragma: no cover - CLI entrypoint
    """CLI entry point."""
    sys.exit(run_cli())


if __name__ == "__main__":  # pragma: no cover - CLI execution path
    main()
