from __future__ import annotations
import datetime as dt
import pandas as pd
import pytest
from meteomatics_connector.api.models import (
    BBox,
    CalendarStep,
    CalendarUnit,
    FixedStep,
    Instant,
    Point,
    UrlParseError,
)
from meteomatics_connector.api.query import (
    OutputFormat,
    build_lightning_query,
    build_query,
    build_route_query,
    build_url,
    optionals_to_str,
    parameters_to_str,
    points_to_str,
    postals_to_str,
)

START = pd.Timestamp("2022-05-17T12:00:00.453829123", tz="UTC")
BERLIN = Point(lat=52.520551, lon=13.461804)
WORLD = BBox(lat_min=-90, lat_max=90, lon_min=-180, lon_max=180, lat_res=5, lon_res=5)


@pytest.fixture
def hourly_day():
    return FixedStep(START, START + pd.Timedelta(days=1), pd.Timedelta(hours=1))


class TestLocationStrings:
    def test_points_are_joined_with_plus(self):
        points = [BERLIN, Point(lat=-52.520551, lon=13.461804)]
        assert points_to_str(points) == "52.520551,13.461804+-52.520551,13.461804"

    def test_single_point(self):
        assert points_to_str([BERLIN]) == "52.520551,13.461804"

    def test_postal_codes_are_joined_with_plus(self):
        assert postals_to_str(["postal_CH9000", "postal_CH8000"]) == "postal_CH9000+postal_CH8000"

    def test_parameters_keep_order_and_duplicates(self):
        assert parameters_to_str(["t_2m:C", "precip_1h:mm", "t_2m:C"]) == (
            "t_2m:C,precip_1h:mm,t_2m:C"
        )


class TestOptionals:
    def test_none_and_empty_render_nothing(self):
        assert optionals_to_str(None) == ""
        assert optionals_to_str([]) == ""

    def test_optionals_are_forwarded_verbatim(self):
        assert optionals_to_str(["a=b", "c=d"]) == "?a=b&c=d"


class TestBuildQuery:
    def test_time_series_fragment(self, hourly_day):
        fragment = build_query(hourly_day, ["t_2m:C"], points_to_str([BERLIN]))
        assert fragment == (
            "2022-05-17T12:00:00.453829123+00:00--2022-05-18T12:00:00.453829123+00:00"
            ":PT3600S/t_2m:C/52.520551,13.461804/csv"
        )

    def test_optionals_are_appended(self, hourly_day):
        fragment = build_query(hourly_day, ["t_2m:C"], str(BERLIN), optionals=["a=b", "c=d"])
        assert fragment.endswith("/52.520551,13.461804/csv?a=b&c=d")

    def test_empty_optionals_leave_no_question_mark(self, hourly_day):
        fragment = build_query(hourly_day, ["t_2m:C"], str(BERLIN), optionals=[])
        assert "?" not in fragment

    def test_grid_instant_fragment(self):
        fragment = build_query(
            Instant(dt.datetime(2022, 5, 20, 10)), ["t_2m:C"], str(WORLD), OutputFormat.PNG
        )
        assert fragment == "2022-05-20T10:00:00+00:00/t_2m:C/90,-180_-90,180:5,5/png"

    def test_netcdf_format_accepts_string(self, hourly_day):
        fragment = build_query(hourly_day, ["t_2m:C"], str(WORLD), "netcdf")
        assert fragment.endswith("/90,-180_-90,180:5,5/netcdf")

    def test_calendar_period(self):
        time_range = CalendarStep(
            "2022-01-01T00:00:00Z", "2022-06-01T00:00:00Z", 1, CalendarUnit.MONTHS
        )
        fragment = build_query(time_range, ["t_2m:C"], "postal_CH9000")
        assert fragment == (
            "2022-01-01T00:00:00+00:00--2022-06-01T00:00:00+00:00:P1M"
            "/t_2m:C/postal_CH9000/csv"
        )

    def test_unknown_format_raises(self, hourly_day):
        with pytest.raises(ValueError):
            build_query(hourly_day, ["t_2m:C"], str(BERLIN), "json")


class TestBuildLightningQuery:
    def test_lightning_fragment_uses_corners_only(self):
        time_range = FixedStep("2022-05-17T12:00:00Z", "2022-05-17T14:00:00Z")
        bbox = BBox(lat_min=45.8, lat_max=47.8, lon_min=5.9, lon_max=10.5, lat_res=0.1, lon_res=0.1)
        assert build_lightning_query(time_range, bbox) == (
            "get_lightning_list?time_range=2022-05-17T12:00:00+00:00--2022-05-17T14:00:00+00:00"
            "&bounding_box=47.8,5.9_45.8,10.5&format=csv"
        )

    def test_step_is_not_sent(self):
        time_range = FixedStep(
            "2022-05-17T12:00:00Z", "2022-05-17T14:00:00Z", pd.Timedelta(hours=1)
        )
        assert "PT3600S" not in build_lightning_query(time_range, WORLD)


class TestBuildRouteQuery:
    def test_route_fragment(self):
        dates = [
            dt.datetime(2021, 5, 25, 12, tzinfo=dt.timezone.utc),
            dt.datetime(2021, 5, 25, 13, tzinfo=dt.timezone.utc),
        ]
        points = [Point(lat=47.423, lon=9.37), Point(lat=47.5, lon=9.4)]
        fragment = build_route_query(dates, ["t_2m:C", "precip_1h:mm"], points_to_str(points))
        assert fragment == (
            "2021-05-25T12:00:00+00:00,2021-05-25T13:00:00+00:00"
            "/t_2m:C,precip_1h:mm/47.423,9.37+47.5,9.4/csv?route=true"
        )


class TestBuildUrl:
    def test_fragment_is_appended_to_base(self, hourly_day):
        fragment = build_query(hourly_day, ["t_2m:C"], str(BERLIN))
        url = build_url("https://api.meteomatics.com/", fragment)
        assert url == f"https://api.meteomatics.com/{fragment}"

    def test_base_path_is_kept(self):
        assert build_url("http://stub.local/v1/", "user_stats_json") == (
            "http://stub.local/v1/user_stats_json"
        )

    def test_grammar_separators_are_not_encoded(self):
        url = build_url("https://api.meteomatics.com/", "x/t_2m:C/1,2+3,4/csv?a=b&c=d")
        assert url.endswith("x/t_2m:C/1,2+3,4/csv?a=b&c=d")

    def test_whitespace_raises(self):
        with pytest.raises(UrlParseError):
            build_url("https://api.meteomatics.com/", "now/t 2m/1,2/csv")

    def test_control_characters_raise(self):
        with pytest.raises(UrlParseError):
            build_url("https://api.meteomatics.com/", "now/t_2m:C/1,2/csv\x00")

    def test_base_without_scheme_raises(self):
        with pytest.raises(UrlParseError):
            build_url("api.meteomatics.com", "user_stats_json")

    def test_unparseable_base_raises(self):
        with pytest.raises(UrlParseError):
            build_url("https://[broken/", "user_stats_json")
