"""Tests for shared utility functions."""

from datetime import date, datetime

import pytest

from booking_engine.errors import ValidationError
from booking_engine.utils import (
    combine,
    day_key,
    format_time,
    normalize_phone,
    parse_date,
    parse_time,
    week_bounds,
)


class TestNormalizePhone:
    def test_strips_spaces(self):
        assert normalize_phone("050 123 4567") == "0501234567"

    def test_strips_dashes(self):
        assert normalize_phone("050-123-4567") == "0501234567"

    def test_strips_parentheses(self):
        assert normalize_phone("(050) 123 4567") == "0501234567"

    def test_preserves_leading_plus(self):
        assert normalize_phone("+972 50 123 4567") == "+972501234567"

    def test_strips_whitespace(self):
        assert normalize_phone("  0501234567  ") == "0501234567"


class TestParseTime:
    def test_hours_and_minutes(self):
        assert parse_time("09:30") == 570

    def test_single_digit_hour(self):
        assert parse_time("9:05") == 545

    def test_seconds_suffix_ignored(self):
        assert parse_time("10:00:00") == 600

    def test_minutes_pass_through(self):
        assert parse_time(600) == 600

    def test_midnight(self):
        assert parse_time("00:00") == 0

    @pytest.mark.parametrize("value", ["24:00", "10:60", "noon", "", -1, 1440, True])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValidationError):
            parse_time(value)


class TestFormatTime:
    def test_pads_hours_and_minutes(self):
        assert format_time(545) == "09:05"

    def test_last_minute_of_day(self):
        assert format_time(1439) == "23:59"


class TestParseDate:
    def test_iso_string(self):
        assert parse_date("2024-06-10") == date(2024, 6, 10)

    def test_iso_with_time_suffix(self):
        assert parse_date("2024-06-10T00:00:00Z") == date(2024, 6, 10)

    def test_legacy_day_month_year(self):
        assert parse_date("10/06/2024") == date(2024, 6, 10)

    def test_date_object_unchanged(self):
        assert parse_date(date(2024, 6, 10)) == date(2024, 6, 10)

    def test_datetime_truncated(self):
        assert parse_date(datetime(2024, 6, 10, 15, 30)) == date(2024, 6, 10)

    def test_empty_returns_none(self):
        assert parse_date("") is None
        assert parse_date(None) is None

    @pytest.mark.parametrize("value", ["2024-13-01", "31/02/2024", "tomorrow"])
    def test_invalid_values_raise(self, value):
        with pytest.raises(ValidationError):
            parse_date(value)


class TestCalendarHelpers:
    def test_day_key_sunday_first(self):
        assert day_key(date(2024, 6, 9)) == "sunday"
        assert day_key(date(2024, 6, 15)) == "saturday"

    def test_week_bounds_sunday_to_saturday(self):
        assert week_bounds(date(2024, 6, 12)) == (date(2024, 6, 9), date(2024, 6, 15))

    def test_week_bounds_on_sunday(self):
        assert week_bounds(date(2024, 6, 9)) == (date(2024, 6, 9), date(2024, 6, 15))

    def test_combine(self):
        assert combine(date(2024, 6, 10), 570) == datetime(2024, 6, 10, 9, 30)
