#!/usr/bin/env python3
"""
Tests for the position sample cache.

Tests the sampling grid built for scrubbing and the binary search
lookup used by the slider.
"""

import pytest
import math
import sys
import os
from datetime import datetime, timedelta, timezone

# Add repository root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from flightpath.config import FPConfig
from flightpath.position_cache import CachedSample, PositionSampleCache
from flightpath.route_progress import RouteProgress
from flightpath.utils.geodesy import GeoPoint, Waypoint


T0 = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def make_sample(percentage):
    progress = RouteProgress(position=GeoPoint(0.0, percentage), wall_clock_time=T0,
                             percentage=percentage)
    return CachedSample(progress=progress, time_label="")


@pytest.fixture
def route():
    return [Waypoint(0.0, 0.0), Waypoint(0.0, 10.0), Waypoint(10.0, 10.0)]


@pytest.fixture
def one_hour_cache(route):
    return PositionSampleCache.build(route, T0, "1h 0m")


class TestCachedSample:
    """Test the CachedSample dataclass."""

    def test_proxies_progress(self):
        sample = make_sample(42.0)
        assert sample.percentage == 42.0
        assert sample.position == GeoPoint(0.0, 42.0)
        assert sample.wall_clock_time == T0
        assert not sample.is_poisoned

    def test_immutable(self):
        sample = make_sample(1.0)
        with pytest.raises(AttributeError):
            sample.time_label = "x"


class TestCacheBuild:
    """Test sampling of a flight plan timeline."""

    def test_sample_count_exact_division(self, one_hour_cache):
        """1h flight + 20 min taxi = 80 min -> 16 intervals, 17 samples."""
        assert len(one_hour_cache) == 17

    def test_last_sample_at_100_when_division_is_exact(self, one_hour_cache):
        assert one_hour_cache.samples[-1].percentage == 100

    def test_sample_count_drops_overshoot(self, route):
        """82 min -> ceil(16.4) = 17 intervals; the 18th sample would pass 100%."""
        cache = PositionSampleCache.build(route, T0, "1h 2m")
        assert len(cache) == 17
        assert cache.samples[-1].percentage < 100

    def test_percentages_ascending_and_even(self, one_hour_cache):
        percentages = [s.percentage for s in one_hour_cache]
        assert percentages == sorted(percentages)
        assert percentages[0] == 0
        assert percentages[1] == pytest.approx(6.25)
        assert percentages[4] == pytest.approx(25.0)

    def test_samples_come_from_route_model(self, one_hour_cache, route):
        first = one_hour_cache.samples[0]
        last = one_hour_cache.samples[-1]
        assert first.position == GeoPoint(0.0, 0.0)
        assert last.position == GeoPoint(10.0, 10.0)

    def test_route_model_gets_flight_duration(self, one_hour_cache):
        """Sample times use the flight's own duration, not the padded grid."""
        last = one_hour_cache.samples[-1]
        assert last.wall_clock_time == T0 + timedelta(hours=1)

    def test_time_labels(self, one_hour_cache):
        first = one_hour_cache.samples[0]
        assert first.time_label == T0.strftime("%X")
        second = one_hour_cache.samples[1]
        assert second.time_label == second.wall_clock_time.strftime("%X")

    def test_custom_label_format(self, route):
        cache = PositionSampleCache.build(route, T0, "1h 0m", time_format="%H:%M")
        assert cache.samples[0].time_label == "08:00"

    def test_no_duration(self, route):
        assert len(PositionSampleCache.build(route, T0, "")) == 0
        assert len(PositionSampleCache.build(route, T0, None)) == 0

    def test_no_waypoints(self):
        assert len(PositionSampleCache.build([], T0, "1h 0m")) == 0

    def test_malformed_duration(self, route):
        cache = PositionSampleCache.build(route, T0, "soon")
        assert len(cache) == 0
        assert not cache

    def test_zero_flight_duration_samples_are_poisoned(self, route):
        """0h 0m still spans the taxi allowance but the route model cannot place it."""
        cache = PositionSampleCache.build(route, T0, "0h 0m")
        assert len(cache) == 5
        assert all(s.is_poisoned for s in cache)

    def test_single_waypoint(self):
        cache = PositionSampleCache.build([Waypoint(1.0, 2.0)], T0, "1h 0m")
        assert len(cache) == 17
        assert all(s.position == GeoPoint(1.0, 2.0) for s in cache)

    def test_ticks(self, one_hour_cache):
        ticks = one_hour_cache.ticks()
        assert len(ticks) == 6
        assert ticks[1] is one_hour_cache.samples[3]

    def test_from_config(self, route, tmp_path):
        conf = tmp_path / "flightpath.ini"
        conf.write_text("[routesim]\nsample_interval_min = 10\ntime_label_format = %H.%M\n")
        cfg = FPConfig(conf_file=str(conf))
        cache = PositionSampleCache.from_config(route, T0, "1h 0m", cfg=cfg)
        assert len(cache) == 9
        assert cache.samples[0].time_label == "08.00"


class TestNearest:
    """Test the binary search lookup."""

    def test_empty(self):
        assert PositionSampleCache().nearest(50) is None

    def test_exact_match(self, one_hour_cache):
        for sample in one_hour_cache:
            assert one_hour_cache.nearest(sample.percentage) is sample

    def test_before_first(self, one_hour_cache):
        assert one_hour_cache.nearest(-5) is one_hour_cache.samples[0]

    def test_after_last(self, one_hour_cache):
        assert one_hour_cache.nearest(150) is one_hour_cache.samples[-1]

    def test_closer_lower(self):
        cache = PositionSampleCache([make_sample(0), make_sample(10), make_sample(20)])
        assert cache.nearest(14).percentage == 10

    def test_closer_higher(self):
        cache = PositionSampleCache([make_sample(0), make_sample(10), make_sample(20)])
        assert cache.nearest(16).percentage == 20

    def test_tie_goes_to_higher_index(self):
        """Equidistant target returns the later sample."""
        samples = [make_sample(0), make_sample(10), make_sample(20), make_sample(30)]
        cache = PositionSampleCache(samples)
        assert cache.nearest(15) is samples[2]
        assert cache.nearest(5) is samples[1]
        assert cache.nearest(25) is samples[3]

    def test_tie_in_built_cache(self, one_hour_cache):
        samples = one_hour_cache.samples
        target = (samples[3].percentage + samples[4].percentage) / 2
        assert one_hour_cache.nearest(target) is samples[4]

    def test_single_sample(self):
        sample = make_sample(0)
        cache = PositionSampleCache([sample])
        assert cache.nearest(0) is sample
        assert cache.nearest(50) is sample

    def test_nearest_within_half_interval(self, one_hour_cache):
        for target in [0.5, 3.0, 33.3, 61.0, 99.0]:
            sample = one_hour_cache.nearest(target)
            assert abs(sample.percentage - target) <= 6.25 / 2 + 1e-9

    def test_nan_percentage_target_does_not_raise(self, one_hour_cache):
        assert one_hour_cache.nearest(math.nan) is not None
