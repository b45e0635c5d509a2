#!/usr/bin/env python3
"""
Route progress model.

Maps an elapsed-time percentage over a whole journey to a position on the
flight plan polyline and a wall-clock time.

The journey is taxi out + flight + taxi in. A fixed taxi allowance is
reserved at each end of the journey; while the clock is inside either taxi
band the aircraft is pinned to the first or last waypoint, and the band in
between is stretched back to 0-100% for placement along the route:

    percentage    0 .. taxi        taxi .. 100-taxi        100-taxi .. 100
    adjusted      0                0 .. 100 (linear)       100

Placement along the route is a planar blend of latitude and longitude
between consecutive waypoints, with the adjusted percentage spread evenly
over the segments (each segment gets the same share of time regardless of
its length). Time is always taken from the raw percentage because the taxi
phases consume real time even though the aircraft does not move on the
map.

Duration convention:
    The duration handed to calculate_route_position is treated as the
    whole journey, taxi included. PositionSampleCache adds the taxi
    allowance on top of the same duration for its own sampling grid; the
    two readings differ.

Poisoned values:
    A malformed duration string or a zero duration produces NaN in the
    taxi percentage, which flows into the position (and, for malformed
    strings, the time). A time past the datetime range is also None.
    RouteProgress.is_poisoned reports all of these.
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Sequence, Union

from flightpath.utils.constants import TAXI_TIME_MS
from flightpath.utils.durations import Duration, as_duration
from flightpath.utils.geodesy import GeoPoint, initial_bearing_deg, interpolate_linear

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteProgress:
    """
    Where the aircraft is at a given point of the journey.

    Attributes:
        position: Position on the route
        wall_clock_time: Departure plus elapsed time, None if not computable
        percentage: The queried percentage (not the adjusted one)
        elapsed_ms: Milliseconds since departure, may be NaN
    """
    position: GeoPoint
    wall_clock_time: Optional[datetime]
    percentage: float
    elapsed_ms: float = 0.0

    @property
    def is_poisoned(self) -> bool:
        return (not self.position.is_finite or
                self.wall_clock_time is None or
                math.isnan(self.percentage))


def taxi_percentage(total_ms: float, taxi_time_ms: float = TAXI_TIME_MS) -> float:
    """
    Share of the journey (in percent) spent taxiing at one end.

    NaN when the total duration is zero or itself NaN.
    """
    if total_ms == 0 or math.isnan(total_ms):
        return math.nan
    return taxi_time_ms / total_ms * 100


def adjusted_percentage(percentage: float, taxi_pct: float) -> float:
    """
    Convert a journey percentage into a placement percentage along the route.

    Returns 0 while taxiing out, 100 while taxiing in and a linear rescale
    of the flight band otherwise. NaN taxi_pct gives NaN.
    """
    if percentage <= taxi_pct:
        return 0.0
    if percentage >= 100 - taxi_pct:
        return 100.0
    flight_range = 100 - 2 * taxi_pct
    return (percentage - taxi_pct) / flight_range * 100


def position_along_route(waypoints: Sequence, adjusted: float) -> GeoPoint:
    """
    Position at an adjusted percentage of a route of two or more waypoints.

    Every segment covers an equal share of the percentage range. The ends
    are returned exactly.
    """
    total_segments = len(waypoints) - 1
    first = waypoints[0]
    last = waypoints[total_segments]

    if adjusted >= 100:
        return GeoPoint(last.lat, last.lon)
    if adjusted <= 0:
        return GeoPoint(first.lat, first.lon)
    if math.isnan(adjusted):
        return GeoPoint(math.nan, math.nan)

    segment_float = adjusted * total_segments / 100
    segment_index = min(math.floor(segment_float), total_segments - 1)
    segment_fraction = segment_float - segment_index

    start = waypoints[segment_index]
    end = waypoints[segment_index + 1]
    return interpolate_linear(GeoPoint(start.lat, start.lon),
                              GeoPoint(end.lat, end.lon),
                              segment_fraction)


def _offset(departure: datetime, elapsed_ms: float) -> Optional[datetime]:
    if not math.isfinite(elapsed_ms):
        return None
    try:
        return departure + timedelta(milliseconds=elapsed_ms)
    except OverflowError:
        log.warning(f"Route time {elapsed_ms}ms after {departure} is out of range")
        return None


def calculate_route_position(waypoints: Sequence, percentage: float,
                             departure: datetime,
                             duration: Union[str, Duration],
                             taxi_time_ms: float = TAXI_TIME_MS) -> RouteProgress:
    """
    Calculate position and time at a percentage of the journey.

    Args:
        waypoints: Ordered route points, anything with .lat and .lon
        percentage: Elapsed share of the whole journey, 0-100. Values
                    outside the range are not validated.
        departure: Departure instant (gate, not takeoff)
        duration: Journey duration as Duration or "<H>h <M>m", taxi included
        taxi_time_ms: Taxi allowance at each end in milliseconds

    Returns:
        RouteProgress for the query. With fewer than two waypoints the
        first waypoint (or 0,0) at departure time with percentage 0.
    """
    if len(waypoints) < 2:
        if waypoints:
            position = GeoPoint(waypoints[0].lat, waypoints[0].lon)
        else:
            position = GeoPoint(0.0, 0.0)
        return RouteProgress(position=position, wall_clock_time=departure,
                             percentage=0, elapsed_ms=0.0)

    total_ms = as_duration(duration).total_ms
    taxi_pct = taxi_percentage(total_ms, taxi_time_ms)
    adjusted = adjusted_percentage(percentage, taxi_pct)
    position = position_along_route(waypoints, adjusted)

    elapsed_ms = total_ms * percentage / 100
    progress = RouteProgress(position=position,
                             wall_clock_time=_offset(departure, elapsed_ms),
                             percentage=percentage,
                             elapsed_ms=elapsed_ms)
    if progress.is_poisoned:
        log.debug(f"Poisoned route progress at {percentage}% for duration {duration!r}")
    return progress


def heading_at(waypoints: Sequence, percentage: float) -> float:
    """
    Marker heading for the segment the percentage falls in.

    Picks the segment from the raw percentage and returns the initial
    bearing from its start to the next waypoint. At the final waypoint
    start and end coincide and the bearing is 0.

    Returns:
        Heading in degrees (0-360), 0.0 with fewer than two waypoints
    """
    if len(waypoints) < 2 or not math.isfinite(percentage):
        return 0.0

    last_index = len(waypoints) - 1
    current = math.floor(percentage * last_index / 100)
    current = max(0, min(last_index, current))
    following = min(current + 1, last_index)

    start = waypoints[current]
    end = waypoints[following]
    return initial_bearing_deg(GeoPoint(start.lat, start.lon),
                               GeoPoint(end.lat, end.lon))
