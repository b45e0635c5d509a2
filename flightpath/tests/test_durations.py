#!/usr/bin/env python3
"""
Unit tests for duration parsing/formatting and display unit conversions.
"""

import pytest
import sys
import os
import math
from datetime import datetime

# Add repository root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from flightpath.utils.durations import (
    AirportTimezone,
    Duration,
    as_duration,
    calculate_duration,
    convert_to_utc,
    format_duration,
    parse_duration,
)
from flightpath.utils.conversions import kmh_to_knots, meters_to_feet, mps_to_kmh


class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize("text,hours,minutes", [
        ("2h 30m", 2, 30),
        ("0h 45m", 0, 45),
        ("11h 0m", 11, 0),
        ("1h 5", 1, 5),
    ])
    def test_canonical(self, text, hours, minutes):
        duration = parse_duration(text)
        assert duration == Duration(hours, minutes)
        assert not duration.is_poisoned

    @pytest.mark.parametrize("text", ["", "abc", "2h30m", "5h", "h 30m", "2 hours"])
    def test_malformed_is_poisoned(self, text):
        duration = parse_duration(text)
        assert duration.is_poisoned
        assert math.isnan(duration.total_ms)

    @pytest.mark.parametrize("text,hours,minutes", [
        (" 7h 05m", 7, 5),
        ("+3h  20m", 3, 20),
        ("12h 30mins", 12, 30),
    ])
    def test_leading_integer_only(self, text, hours, minutes):
        """Each part is read up to its first non digit."""
        assert parse_duration(text) == Duration(hours, minutes)

    def test_non_string(self):
        assert parse_duration(None).is_poisoned

    def test_total_ms(self):
        assert parse_duration("1h 30m").total_ms == 5_400_000

    def test_round_trip_format(self):
        assert str(parse_duration("3h 7m")) == "3h 7m"

    def test_as_duration_passthrough(self):
        duration = Duration(1, 0)
        assert as_duration(duration) is duration
        assert as_duration("1h 0m") == duration


class TestFormatDuration:

    def test_format(self):
        assert format_duration(2, 5) == "2h 5m"


class TestCalculateDuration:
    """Tests for calculate_duration and convert_to_utc."""

    def test_across_timezones(self):
        london = AirportTimezone("Europe/London", gmt_offset_h=0, dst_offset_h=1)
        new_york = AirportTimezone("America/New_York", gmt_offset_h=-5, dst_offset_h=-4)
        duration = calculate_duration(datetime(2024, 6, 1, 10, 0), datetime(2024, 6, 1, 13, 30),
                                      london, new_york)
        assert duration == "8h 30m"

    def test_same_timezone(self):
        tz = AirportTimezone("Europe/Paris", gmt_offset_h=1, dst_offset_h=2)
        duration = calculate_duration(datetime(2024, 6, 1, 6, 15), datetime(2024, 6, 1, 8, 0), tz, tz)
        assert duration == "1h 45m"

    def test_unknown_timezone(self):
        tz = AirportTimezone("Europe/Paris", 1, 2)
        assert calculate_duration(datetime(2024, 6, 1), datetime(2024, 6, 2), None, tz) == "Unknown duration"
        assert calculate_duration(datetime(2024, 6, 1), datetime(2024, 6, 2), tz, None) == "Unknown duration"

    def test_result_parses_back(self):
        tz = AirportTimezone("UTC", 0, 0)
        text = calculate_duration(datetime(2024, 6, 1, 0, 0), datetime(2024, 6, 1, 2, 10), tz, tz)
        assert parse_duration(text) == Duration(2, 10)

    def test_convert_to_utc(self):
        tz = AirportTimezone("Europe/Paris", gmt_offset_h=1, dst_offset_h=1)
        assert convert_to_utc(datetime(2024, 6, 1, 12, 0), tz) == datetime(2024, 6, 1, 10, 0)


class TestConversions:
    """Tests for display unit conversions."""

    def test_meters_to_feet(self):
        assert meters_to_feet(1000) == 3281
        assert meters_to_feet(0) == 0

    def test_kmh_to_knots(self):
        assert kmh_to_knots(100) == 54
        assert kmh_to_knots(926) == 500

    def test_mps_to_kmh(self):
        assert mps_to_kmh(10) == pytest.approx(36.0)
