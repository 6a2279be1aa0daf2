"""Tests for popularity filters and their argument parsers."""

import argparse
from datetime import datetime, timezone

import pytest

from popularity import PopularPackage
from popularity.filters import filter_packages, parse_int_arg, parse_recency


NOW = datetime(2024, 3, 31, 12, 0, tzinfo=timezone.utc)


class TestParseRecency:
    """Tests for relative period parsing."""

    def test_days_and_weeks(self):
        assert parse_recency("10d", now=NOW) == datetime(2024, 3, 21, 12, 0, tzinfo=timezone.utc)
        assert parse_recency("2w", now=NOW) == datetime(2024, 3, 17, 12, 0, tzinfo=timezone.utc)

    def test_months_clamp_to_month_end(self):
        assert parse_recency("1m", now=NOW) == datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)
        assert parse_recency("13M", now=NOW) == datetime(2023, 2, 28, 12, 0, tzinfo=timezone.utc)

    def test_years(self):
        assert parse_recency("2y", now=NOW) == datetime(2022, 3, 31, 12, 0, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["", "soon", "5", "m"])
    def test_invalid(self, value):
        with pytest.raises(argparse.ArgumentTypeError, match="Failed to parse relative time"):
            parse_recency(value, now=NOW)

    @pytest.mark.parametrize("value", ["1000000d", "99999999w", "100000y"])
    def test_out_of_range_is_a_usage_error(self, value):
        with pytest.raises(argparse.ArgumentTypeError, match="out of range"):
            parse_recency(value, now=NOW)

    def test_default_now_is_utc(self):
        assert parse_recency("1d").tzinfo is not None


class TestParseIntArg:
    def test_valid(self):
        assert parse_int_arg("42") == 42

    def test_invalid(self):
        with pytest.raises(argparse.ArgumentTypeError, match="abc is not a number"):
            parse_int_arg("abc")


class TestFilterPackages:
    """Tests for download and recency filtering."""

    PACKAGES = [
        PopularPackage(name="big-new", downloads=1000, latest_release_published_at="2024-03-01T00:00:00Z"),
        PopularPackage(name="big-old", downloads=1000, latest_release_published_at="2020-01-01T00:00:00Z"),
        PopularPackage(name="small-new", downloads=10, latest_release_published_at="2024-03-01T00:00:00Z"),
        PopularPackage(name="unknown"),
    ]

    def test_no_filters_keeps_everything(self):
        assert filter_packages(self.PACKAGES) == self.PACKAGES

    def test_min_downloads(self):
        names = [p.name for p in filter_packages(self.PACKAGES, min_downloads=100)]
        assert names == ["big-new", "big-old", "unknown"]

    def test_updated_since(self):
        cutoff = datetime(2023, 1, 1, tzinfo=timezone.utc)
        names = [p.name for p in filter_packages(self.PACKAGES, updated_since=cutoff)]
        assert names == ["big-new", "small-new", "unknown"]

    def test_combined(self):
        cutoff = datetime(2023, 1, 1, tzinfo=timezone.utc)
        names = [p.name for p in filter_packages(self.PACKAGES, 100, cutoff)]
        assert names == ["big-new", "unknown"]
