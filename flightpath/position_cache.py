#!/usr/bin/env python3
"""
Precomputed route positions for scrubbing.

A flight plan's timeline is sampled once, every SAMPLE_INTERVAL_MS of
journey time, so that a UI slider can look up "where is the aircraft at
X%" with a binary search instead of re-running the route model on every
frame.

Duration accounting:
    The cache grid spans the flight duration plus the taxi allowance at
    both ends (20 minutes by default). Each sample is still computed by
    calculate_route_position with the flight's own duration, unchanged.
    The route model treats that duration as already including taxi, so
    the two never agree exactly.

Lifecycle:
    A cache is immutable once built. When the plan's duration or departure
    time changes, build a new one.

Thread Safety:
    Instances are read-only after construction and can be shared freely.

Usage:
    cache = PositionSampleCache.build(waypoints, departure, "2h 30m")
    sample = cache.nearest(42.5)
    if sample:
        marker.move_to(sample.position)
"""

import math
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from flightpath.route_progress import RouteProgress, calculate_route_position
from flightpath.utils.constants import SAMPLE_INTERVAL_MS, TAXI_TIME_MS
from flightpath.utils.durations import Duration, as_duration
from flightpath.utils.geodesy import GeoPoint

log = logging.getLogger(__name__)

DEFAULT_TIME_LABEL_FORMAT = "%X"


@dataclass(frozen=True)
class CachedSample:
    """
    A RouteProgress with its display label.

    Attributes:
        progress: Route model output for this sample
        time_label: Locale clock string of the wall-clock time
    """
    progress: RouteProgress
    time_label: str

    @property
    def position(self) -> GeoPoint:
        return self.progress.position

    @property
    def wall_clock_time(self) -> Optional[datetime]:
        return self.progress.wall_clock_time

    @property
    def percentage(self) -> float:
        return self.progress.percentage

    @property
    def is_poisoned(self) -> bool:
        return self.progress.is_poisoned


def _label(progress: RouteProgress, time_format: str) -> str:
    if progress.wall_clock_time is None:
        return ""
    return progress.wall_clock_time.strftime(time_format)


class PositionSampleCache:
    """
    Ordered, evenly time-spaced route samples for one flight plan.

    Samples are stored ascending by percentage. Build with
    PositionSampleCache.build(); the constructor takes ready-made samples.
    """

    def __init__(self, samples: Sequence[CachedSample] = ()):
        self._samples: Tuple[CachedSample, ...] = tuple(samples)

    @classmethod
    def build(cls, waypoints: Sequence, departure: datetime,
              duration: Union[str, Duration, None],
              interval_ms: float = SAMPLE_INTERVAL_MS,
              taxi_time_ms: float = TAXI_TIME_MS,
              time_format: str = DEFAULT_TIME_LABEL_FORMAT) -> "PositionSampleCache":
        """
        Sample a flight plan's timeline.

        Args:
            waypoints: Ordered route points, anything with .lat and .lon
            departure: Departure instant
            duration: The flight's duration as Duration or "<H>h <M>m",
                      passed unchanged to the route model
            interval_ms: Journey time between samples
            taxi_time_ms: Taxi allowance at each end
            time_format: strftime format for the sample labels

        Returns:
            New cache; empty when there is no duration, no waypoints, or
            the duration cannot be parsed.
        """
        if not duration or not waypoints:
            log.debug("No duration or waypoints, empty position cache")
            return cls()

        flight_duration = as_duration(duration)
        total_ms = flight_duration.total_ms + 2 * taxi_time_ms
        if not math.isfinite(total_ms) or total_ms <= 0:
            log.warning(f"Cannot sample route with duration {duration!r}")
            return cls()

        if len(waypoints) < 2:
            log.warning("Building position cache for a route with fewer than 2 waypoints")

        steps = math.ceil(total_ms / interval_ms)
        samples: List[CachedSample] = []
        for i in range(steps + 1):
            percentage = (i * interval_ms * 100) / total_ms
            if percentage > 100:
                break

            progress = calculate_route_position(waypoints, percentage, departure,
                                                flight_duration, taxi_time_ms)
            samples.append(CachedSample(progress=progress,
                                        time_label=_label(progress, time_format)))

        log.info(f"Built position cache with {len(samples)} samples for {flight_duration}")
        return cls(samples)

    @classmethod
    def from_config(cls, waypoints: Sequence, departure: datetime,
                    duration: Union[str, Duration, None], cfg=None) -> "PositionSampleCache":
        """Build using the [routesim] settings of an FPConfig (default: CFG)."""
        if cfg is None:
            from flightpath.config import CFG as cfg
        return cls.build(waypoints, departure, duration,
                         interval_ms=cfg.sample_interval_ms,
                         taxi_time_ms=cfg.taxi_time_ms,
                         time_format=cfg.time_label_format)

    @property
    def samples(self) -> Tuple[CachedSample, ...]:
        return self._samples

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[CachedSample]:
        return iter(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

    def ticks(self, every: int = 3) -> List[CachedSample]:
        """Every Nth sample, for slider tick marks."""
        return list(self._samples[::every])

    def nearest(self, target: float) -> Optional[CachedSample]:
        """
        Find the sample whose percentage is closest to target.

        Targets before the first or after the last sample return that
        sample. When target falls exactly between two samples the later
        one wins. Older web clients picked the earlier one, so a scrubber
        ported from them can land one sample later on exact midpoints.

        Returns:
            The closest CachedSample, or None if the cache is empty
        """
        samples = self._samples
        if not samples:
            return None

        low = 0
        high = len(samples) - 1

        if target <= samples[0].percentage:
            return samples[0]
        if target >= samples[high].percentage:
            return samples[high]

        while low <= high:
            mid = (low + high) // 2
            value = samples[mid].percentage
            if value == target:
                return samples[mid]
            if value < target:
                low = mid + 1
            else:
                high = mid - 1

        # Search ended with samples[high] < target < samples[low]
        before = samples[high]
        after = samples[low]
        if abs(before.percentage - target) < abs(after.percentage - target):
            return before
        return after
