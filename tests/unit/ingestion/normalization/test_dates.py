"""
Unit tests for the dates module.

Tests for allow-list checks, strict parsing and date/time splitting.
"""

from datetime import date

import pytest

from family_activities.ingestion.normalization.dates import (
    format_date,
    is_clock_time,
    is_parseable_date,
    is_parseable_time,
    normalize_time,
    parse_date,
    split_datetime,
)


class TestIsParseableDate:
    """Tests for the literal date allow-list."""

    @pytest.mark.parametrize(
        "text",
        [
            "2024-12-15",
            "12/15/2024",
            "12-15-2024",
            "December 15, 2024",
            "October 1-31, 2024",
            "Dec 15",
            "Saturday, October 5",
        ],
    )
    def test_accepted(self, text):
        assert is_parseable_date(text)

    @pytest.mark.parametrize("text", ["", "next weekend", "soon-ish", "15th of never"])
    def test_rejected(self, text):
        assert not is_parseable_date(text)


class TestIsParseableTime:
    """Tests for the literal time allow-list."""

    @pytest.mark.parametrize("text", ["10:30 AM", "10:30am", "7 pm", "14:30", "10-11:30am", "9:00 AM - 12:00 PM"])
    def test_accepted(self, text):
        assert is_parseable_time(text)

    @pytest.mark.parametrize("text", ["", "morning", "after lunch"])
    def test_rejected(self, text):
        assert not is_parseable_time(text)


class TestParseDate:
    """Tests for parse_date and format_date."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("2024-12-15", date(2024, 12, 15)),
            ("12/15/2024", date(2024, 12, 15)),
            ("12/15/24", date(2024, 12, 15)),
            ("December 15, 2024", date(2024, 12, 15)),
            ("Dec 15, 2024", date(2024, 12, 15)),
            ("2024-12-15T10:00:00Z", date(2024, 12, 15)),
            ("2024-12-15T10:00:00", date(2024, 12, 15)),
            ("2024-12-15 10:00:00", date(2024, 12, 15)),
        ],
    )
    def test_formats(self, text, expected):
        assert parse_date(text) == expected

    def test_day_range_collapses_to_first_day(self):
        assert parse_date("October 1-31, 2024") == date(2024, 10, 1)

    def test_unparseable(self):
        assert parse_date("next weekend") is None

    def test_empty(self):
        assert parse_date("") is None

    def test_format_canonical(self):
        assert format_date("Dec 15, 2024") == "2024-12-15"

    def test_format_unparseable(self):
        assert format_date("sometime in spring") is None


class TestClockTime:
    """Tests for is_clock_time and normalize_time."""

    @pytest.mark.parametrize("text", ["14:30", "2:30 PM", "2:30PM", "2:30 p.m.", "7 pm", "10:00 AM - 12:00 PM"])
    def test_valid(self, text):
        assert is_clock_time(text)

    @pytest.mark.parametrize("text", ["", "morning", "25:99"])
    def test_invalid(self, text):
        assert not is_clock_time(text)

    def test_normalize(self):
        assert normalize_time("  10:30am ") == "10:30AM"


class TestSplitDatetime:
    """Tests for split_datetime."""

    def test_iso_with_time(self):
        assert split_datetime("2024-12-15 10:00 AM") == ("2024-12-15", "10:00 AM")

    def test_long_date_with_at(self):
        assert split_datetime("December 15, 2024 at 2:30 PM") == ("December 15, 2024", "2:30 PM")

    def test_date_only(self):
        assert split_datetime("December 15, 2024") == ("December 15, 2024", "")

    def test_parseable_timestamp_kept_whole(self):
        assert split_datetime("2024-12-15T10:00:00") == ("2024-12-15T10:00:00", "")

    def test_no_marker(self):
        assert split_datetime("Saturdays in June") == ("Saturdays in June", "")

    def test_empty(self):
        assert split_datetime("") == ("", "")
