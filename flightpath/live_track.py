#!/usr/bin/env python3
"""
Dead reckoning for a live-tracked aircraft.

Tracking APIs report an aircraft fix every minute or so. Between polls
the marker is kept moving by advancing the last fix along its heading at
its reported speed, using the great-circle destination point.

Gating:
    Fixes reported on the ground, or slower than
    MIN_EXTRAPOLATION_SPEED_KMH, are not moved. Low reported speeds are
    mostly API/GPS jitter and would make a parked aircraft drift across
    the apron. Gating is applied by LiveTrackExtrapolator.tick(), never by
    extrapolate() itself.

Scheduling:
    Nothing here runs on a timer. The caller decides when to tick and
    when a fresh poll arrives.

Usage:
    tracker = LiveTrackExtrapolator()
    tracker.update(LiveFix.from_dict(api_payload['live'], timestamp_ms=now_ms))
    ...
    fix = tracker.tick(now_ms)
    if fix:
        marker.move_to(fix.position)
"""

import math
import time
import logging
from dataclasses import dataclass, replace
from typing import Optional

from flightpath.utils.constants import MIN_EXTRAPOLATION_SPEED_KMH
from flightpath.utils.conversions import kmh_to_knots, meters_to_feet
from flightpath.utils.geodesy import GeoPoint, destination_point, haversine_distance_m, interpolate_linear

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiveFix:
    """
    A confirmed or extrapolated aircraft position.

    Attributes:
        position: Aircraft position
        speed_kmh: Horizontal ground speed in km/h
        heading_deg: Track in degrees (0-360)
        timestamp_ms: Epoch milliseconds the position is valid for
        on_ground: True if the aircraft reported being on the ground
        name: Display name for the marker (e.g. "Airline 123")
        altitude_m: Reported altitude in meters, if known
    """
    position: GeoPoint
    speed_kmh: float
    heading_deg: float
    timestamp_ms: float
    on_ground: bool = False
    name: Optional[str] = None
    altitude_m: Optional[float] = None

    @property
    def is_poisoned(self) -> bool:
        return not self.position.is_finite or math.isnan(self.timestamp_ms)

    @property
    def speed_knots(self) -> int:
        return kmh_to_knots(self.speed_kmh)

    @property
    def altitude_ft(self) -> Optional[int]:
        if self.altitude_m is None:
            return None
        return meters_to_feet(self.altitude_m)

    @classmethod
    def from_dict(cls, live: dict, timestamp_ms: float,
                  name: Optional[str] = None) -> "LiveFix":
        """
        Create a LiveFix from a tracking API 'live' block.

        Args:
            live: Dictionary with 'latitude', 'longitude', 'speed_horizontal',
                  'direction' and optionally 'is_ground' and 'altitude'
            timestamp_ms: When the poll returned, epoch milliseconds
            name: Display name for the marker

        Raises:
            KeyError: If a required key is missing
            ValueError: If a value cannot be converted to float
        """
        altitude = live.get("altitude")
        return cls(
            position=GeoPoint(float(live["latitude"]), float(live["longitude"])),
            speed_kmh=float(live["speed_horizontal"]),
            heading_deg=float(live["direction"]),
            timestamp_ms=float(timestamp_ms),
            on_ground=bool(live.get("is_ground", False)),
            name=name,
            altitude_m=float(altitude) if altitude is not None else None,
        )


def extrapolate(last_fix: LiveFix, now_ms: float) -> LiveFix:
    """
    Advance a fix to now_ms along its heading at its speed.

    No gating is applied. A zero speed returns the same position.

    Returns:
        New LiveFix with the moved position and timestamp now_ms
    """
    elapsed_sec = (now_ms - last_fix.timestamp_ms) / 1000
    distance_km = last_fix.speed_kmh * elapsed_sec / 3600
    position = destination_point(last_fix.position, distance_km, last_fix.heading_deg)
    return replace(last_fix, position=position, timestamp_ms=now_ms)


def should_extrapolate(fix: LiveFix,
                       min_speed_kmh: float = MIN_EXTRAPOLATION_SPEED_KMH) -> bool:
    """False when the aircraft is on the ground or reports less than min_speed_kmh."""
    return not fix.on_ground and fix.speed_kmh >= min_speed_kmh


def blend_fixes(start: LiveFix, end: LiveFix, progress: float) -> LiveFix:
    """
    Linearly interpolate position and timestamp between two fixes.

    Speed, heading and ground state are taken from end.

    Args:
        start: Earlier fix
        end: Later fix
        progress: 0 returns start's position, 1 returns end's
    """
    position = interpolate_linear(start.position, end.position, progress)
    timestamp_ms = start.timestamp_ms + (end.timestamp_ms - start.timestamp_ms) * progress
    return replace(end, position=position, timestamp_ms=timestamp_ms)


def _now_ms() -> float:
    return time.time() * 1000


class LiveTrackExtrapolator:
    """
    Keeps one tracked aircraft's fix moving between API polls.

    Each instance owns the fix of a single aircraft. update() installs an
    authoritative fix from a poll; tick() replaces the current fix with an
    extrapolated one, or only refreshes its timestamp when gated.

    Thread Safety:
        This class is NOT thread-safe. One tracker per aircraft, driven
        from one scheduler.
    """

    def __init__(self, min_speed_kmh: float = MIN_EXTRAPOLATION_SPEED_KMH,
                 clock=_now_ms):
        self.min_speed_kmh = min_speed_kmh
        self._clock = clock
        self._fix: Optional[LiveFix] = None

    @classmethod
    def from_config(cls, cfg=None, clock=_now_ms) -> "LiveTrackExtrapolator":
        """Create using the [livetrack] settings of an FPConfig (default: CFG)."""
        if cfg is None:
            from flightpath.config import CFG as cfg
        return cls(min_speed_kmh=cfg.min_extrapolation_speed_kmh, clock=clock)

    @property
    def fix(self) -> Optional[LiveFix]:
        return self._fix

    @property
    def has_position(self) -> bool:
        return self._fix is not None

    def update(self, fix: LiveFix) -> None:
        """Install a fresh fix from an API poll."""
        log.debug(f"Live fix update: {fix.position.lat}, {fix.position.lon} "
                  f"{fix.speed_kmh}km/h hdg {fix.heading_deg}")
        self._fix = fix

    def clear(self) -> None:
        """Forget the tracked aircraft."""
        self._fix = None

    def tick(self, now_ms: Optional[float] = None) -> Optional[LiveFix]:
        """
        Advance the current fix to now_ms.

        Args:
            now_ms: Epoch milliseconds, defaults to the tracker's clock

        Returns:
            The new current fix, or None if there is nothing to extrapolate
        """
        if self._fix is None:
            return None
        if now_ms is None:
            now_ms = self._clock()

        if should_extrapolate(self._fix, self.min_speed_kmh):
            self._fix = extrapolate(self._fix, now_ms)
        else:
            log.debug("Not extrapolating - aircraft on ground or speed too low")
            self._fix = replace(self._fix, timestamp_ms=now_ms)
        return self._fix

    def distance_to(self, observer: GeoPoint) -> Optional[int]:
        """Distance in meters from observer to the current fix, None without a fix."""
        if self._fix is None:
            return None
        return haversine_distance_m(observer, self._fix.position)
