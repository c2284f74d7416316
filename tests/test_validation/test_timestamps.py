"""Tests for zone-naive timestamp helpers."""

from datetime import datetime, timezone

import pytest

from syllabus_sync.validation.timestamps import (
    format_timestamp,
    is_valid_timestamp,
    normalize_timestamp,
    parse_timestamp,
    strip_timezone,
)


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_millisecond_precision(self):
        assert format_timestamp(datetime(2025, 9, 15, 14, 5, 9, 123456)) == "2025-09-15T14:05:09.123"

    def test_ignores_tzinfo(self):
        value = datetime(2025, 9, 15, 23, 59, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-09-15T23:59:00.000"


class TestParseTimestamp:
    """Tests for parse_timestamp and normalize_timestamp."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2025-09-15", "2025-09-15T00:00:00.000"),
            ("2025-09-15T14:30", "2025-09-15T14:30:00.000"),
            ("2025-09-15T14:30:15", "2025-09-15T14:30:15.000"),
            ("2025-09-15T14:30:15.5", "2025-09-15T14:30:15.500"),
            ("2025-09-15T23:59:00.000Z", "2025-09-15T23:59:00.000"),
            ("2025-09-15T23:59:00.000-04:00", "2025-09-15T23:59:00.000"),
            ("2025-09-15T23:59:00+0530", "2025-09-15T23:59:00.000"),
        ],
    )
    def test_accepted_forms(self, value, expected):
        assert normalize_timestamp(value) == expected

    def test_offset_is_dropped_not_converted(self):
        assert parse_timestamp("2025-09-15T08:00:00-07:00") == datetime(2025, 9, 15, 8, 0)

    @pytest.mark.parametrize(
        "value",
        ["", "September 15", "2025/09/15", "2025-02-30", "2025-09-15T25:00", "15-09-2025"],
    )
    def test_rejected_forms(self, value):
        with pytest.raises(ValueError):
            parse_timestamp(value)

    def test_non_string(self):
        with pytest.raises(ValueError):
            parse_timestamp(20250915)


class TestHelpers:
    """Tests for strip_timezone and is_valid_timestamp."""

    def test_strip_timezone(self):
        assert strip_timezone("2025-09-15T10:00:00Z") == "2025-09-15T10:00:00"
        assert strip_timezone("2025-09-15T10:00:00") == "2025-09-15T10:00:00"

    def test_is_valid_timestamp(self):
        assert is_valid_timestamp("2025-09-15") is True
        assert is_valid_timestamp("2025-13-01") is False
        assert is_valid_timestamp(None) is False
