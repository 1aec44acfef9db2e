#!/usr/bin/env python3
"""Unit tests for the connector CLI module."""

from __future__ import annotations

import argparse
import datetime as dt
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from meteomatics_connector.api import HttpError, Point
from meteomatics_connector.api.models import UserStatsResponse
from meteomatics_connector.cli import (
    _parse_datetime,
    _parse_point,
    build_parser,
    run_cli,
)

TIMESERIES_ARGS = [
    "timeseries",
    "--point", "47.423,9.37",
    "--param", "t_2m:C",
    "--start", "2022-05-17T12:00:00",
    "--end", "2022-05-17T14:00:00",
]


@pytest.fixture
def mock_client():
    """Patch APIClient.from_settings with a context-managed mock client."""
    client = MagicMock()
    client.__enter__.return_value = client
    with patch("meteomatics_connector.cli.APIClient.from_settings", return_value=client), \
            patch("meteomatics_connector.cli.configure_logging"):
        yield client


class TestArgumentParsing:
    """Test point/datetime parsing functions."""

    def test_parse_point_valid(self):
        assert _parse_point("47.423,9.37") == Point(lat=47.423, lon=9.37)

    def test_parse_point_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_point("47.423")

    def test_parse_datetime_valid_iso(self):
        assert _parse_datetime("2025-01-15T14:30:00") == dt.datetime(2025, 1, 15, 14, 30, 0)

    def test_parse_datetime_invalid_format(self):
        with pytest.raises(argparse.ArgumentTypeError):
            _parse_datetime("15/01/2025 14:30")


class TestArgumentParser:
    """Test CLI argument parser."""

    def test_timeseries_defaults(self):
        args = build_parser().parse_args(TIMESERIES_ARGS)
        assert args.command == "timeseries"
        assert args.points == [Point(lat=47.423, lon=9.37)]
        assert args.parameters == ["t_2m:C"]
        assert args.step_hours == 1.0
        assert args.optionals is None
        assert args.output is None
        assert args.verbose is False

    def test_repeatable_options(self):
        args = build_parser().parse_args(
            TIMESERIES_ARGS
            + ["--point", "47.5,9.4", "--param", "precip_1h:mm", "--optional", "source=mix"]
        )
        assert len(args.points) == 2
        assert args.parameters == ["t_2m:C", "precip_1h:mm"]
        assert args.optionals == ["source=mix"]

    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_user_stats(self):
        args = build_parser().parse_args(["--verbose", "user-stats"])
        assert args.command == "user-stats"
        assert args.verbose is True


class TestRunCli:
    """Test CLI execution against a mocked client."""

    def test_timeseries_to_stdout(self, mock_env_minimal, mock_client, capsys):
        mock_client.query_time_series.return_value = pd.DataFrame(
            {"lat": [47.423], "lon": [9.37], "validdate": ["2022-05-17T12:00:00Z"], "t_2m:C": [18.4]}
        )

        assert run_cli(TIMESERIES_ARGS) == 0

        out = capsys.readouterr().out
        assert out.splitlines()[0] == "lat;lon;validdate;t_2m:C"
        time_range, parameters, points, optionals = mock_client.query_time_series.call_args[0]
        assert str(time_range) == (
            "2022-05-17T12:00:00+00:00--2022-05-17T14:00:00+00:00:PT3600S"
        )
        assert parameters == ["t_2m:C"]
        assert points == [Point(lat=47.423, lon=9.37)]
        assert optionals is None
        mock_client.__exit__.assert_called_once()

    def test_timeseries_to_file(self, mock_env_minimal, mock_client, tmp_path):
        mock_client.query_time_series.return_value = pd.DataFrame({"t_2m:C": [18.4, 19.1]})
        output = tmp_path / "out.csv"

        assert run_cli(TIMESERIES_ARGS + ["--output", str(output)]) == 0

        assert output.read_text().splitlines() == ["t_2m:C", "18.4", "19.1"]

    def test_user_stats(self, mock_env_minimal, mock_client, user_stats_json):
        mock_client.query_user_features.return_value = UserStatsResponse.model_validate_json(
            user_stats_json
        )
        assert run_cli(["user-stats"]) == 0
        mock_client.query_user_features.assert_called_once_with()

    def test_api_error_returns_1(self, mock_env_minimal, mock_client):
        mock_client.query_user_features.side_effect = HttpError(401, "unauthorized")
        assert run_cli(["user-stats"]) == 1

    def test_invalid_range_returns_1(self, mock_env_minimal, mock_client):
        args = TIMESERIES_ARGS[:-4] + [
            "--start", "2022-05-17T14:00:00",
            "--end", "2022-05-17T12:00:00",
        ]
        assert run_cli(args) == 1
        mock_client.query_time_series.assert_not_called()

    def test_missing_credentials_returns_2(self, clean_env, mock_client):
        assert run_cli(["user-stats"]) == 2
