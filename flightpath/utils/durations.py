#!/usr/bin/env python3
"""
Flight duration strings and airport timezone helpers.

Durations travel between the flight plan provider and the route code in
the canonical "<H>h <M>m" form (e.g. "2h 30m"). Parsing never raises: a
malformed string gives a Duration whose fields are NaN so the problem
propagates into every derived value and can be detected downstream with
math.isnan instead of silently becoming 0%.
"""

import re
import math
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from flightpath.utils.constants import MS_PER_HOUR, MS_PER_MINUTE, UNKNOWN_DURATION

log = logging.getLogger(__name__)

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")


@dataclass(frozen=True)
class Duration:
    """
    Hours and minutes of a flight.

    Attributes:
        hours: Whole hours (NaN when parsed from a malformed string)
        minutes: Whole minutes 0-59 (NaN when parsed from a malformed string)
    """
    hours: float
    minutes: float

    @property
    def total_ms(self) -> float:
        return self.hours * MS_PER_HOUR + self.minutes * MS_PER_MINUTE

    @property
    def is_poisoned(self) -> bool:
        return math.isnan(self.hours) or math.isnan(self.minutes)

    def __str__(self) -> str:
        return format_duration(self.hours, self.minutes)


@dataclass(frozen=True)
class AirportTimezone:
    """
    Timezone information for an airport.

    Attributes:
        timezone: IANA name, informational only (e.g. "Europe/London")
        gmt_offset_h: Standard offset from GMT in hours
        dst_offset_h: Offset currently in effect in hours
    """
    timezone: str
    gmt_offset_h: float
    dst_offset_h: float


def _parse_int_prefix(text: str) -> float:
    # Leading integer like parseInt: "30m" -> 30, "x" -> NaN
    match = _INT_PREFIX.match(text)
    if not match:
        return math.nan
    return int(match.group(1))


def parse_duration(duration: str) -> Duration:
    """
    Parse a duration string such as '2h 30m'.

    Returns:
        Duration with integer fields, or NaN fields if the string does
        not have the "<H>h <M>m" shape.
    """
    if not isinstance(duration, str):
        log.warning(f"Cannot parse duration {duration!r}")
        return Duration(math.nan, math.nan)

    parts = duration.split("h ")
    hours = _parse_int_prefix(parts[0])
    minutes = _parse_int_prefix(parts[1].replace("m", "")) if len(parts) > 1 else math.nan

    result = Duration(hours, minutes)
    if result.is_poisoned:
        log.warning(f"Malformed duration string {duration!r}")
    return result


def as_duration(duration: Union[str, Duration]) -> Duration:
    if isinstance(duration, Duration):
        return duration
    return parse_duration(duration)


def format_duration(hours, minutes) -> str:
    """Format hours and minutes as '<H>h <M>m'."""
    return f"{hours}h {minutes}m"


def calculate_duration(dep_time: datetime, arr_time: datetime,
                       dep_tz: Optional[AirportTimezone],
                       arr_tz: Optional[AirportTimezone]) -> str:
    """
    Calculate the flight duration between two local airport times.

    Each local time is shifted by its airport's offset in effect before
    taking the difference.

    Args:
        dep_time: Departure time in departure airport local time
        arr_time: Arrival time in arrival airport local time
        dep_tz: Departure airport timezone, or None if unknown
        arr_tz: Arrival airport timezone, or None if unknown

    Returns:
        Duration string, or 'Unknown duration' if either timezone is missing
    """
    if dep_tz is None or arr_tz is None:
        return UNKNOWN_DURATION

    dep_utc = dep_time - timedelta(hours=dep_tz.dst_offset_h)
    arr_utc = arr_time - timedelta(hours=arr_tz.dst_offset_h)

    duration_ms = (arr_utc - dep_utc) / timedelta(milliseconds=1)
    hours = math.floor(duration_ms / MS_PER_HOUR)
    minutes = round(math.fmod(duration_ms, MS_PER_HOUR) / MS_PER_MINUTE)

    return format_duration(hours, minutes)


def convert_to_utc(date: datetime, tz: AirportTimezone) -> datetime:
    """Convert an airport local time to UTC using both of its offsets."""
    return date - timedelta(hours=tz.gmt_offset_h + tz.dst_offset_h)
