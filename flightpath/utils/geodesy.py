#!/usr/bin/env python3
"""
Great-circle geodesy on a spherical Earth.

Provides the small set of primitives the route and live-track code
build on:
- Haversine distance between two points (meters, rounded)
- Initial bearing (forward azimuth) from one point to another
- Destination point given a start, distance and bearing

Units:
    Distances are reported in meters using EARTH_RADIUS_M while the
    destination point works in kilometers using EARTH_RADIUS_KM. Both
    describe the same 6371 km sphere.

Validation:
    None. Latitudes outside [-90, 90] are accepted and simply produce
    whatever the trigonometry yields. Callers that care must check.

Usage:
    from flightpath.utils.geodesy import GeoPoint, haversine_distance_m

    london = GeoPoint(51.5074, -0.1278)
    new_york = GeoPoint(40.7128, -74.0060)
    meters = haversine_distance_m(london, new_york)
"""

import math
from dataclasses import dataclass
from typing import Optional

from flightpath.utils.constants import EARTH_RADIUS_M, EARTH_RADIUS_KM


@dataclass(frozen=True)
class GeoPoint:
    """
    A position in decimal degrees.

    Attributes:
        lat: Latitude in degrees (nominally -90 to 90)
        lon: Longitude in degrees (nominally -180 to 180)
    """
    lat: float
    lon: float

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)

    def as_tuple(self):
        return (self.lat, self.lon)


@dataclass(frozen=True)
class Waypoint:
    """
    A point on a flight plan route.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        ident: Fix identifier (e.g., "EGLL", "BOPTA")
        name: Full name of the fix
        kind: 'airport' or 'waypoint' when the route source says so
    """
    lat: float
    lon: float
    ident: Optional[str] = None
    name: Optional[str] = None
    kind: Optional[str] = None

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.lat, self.lon)

    @classmethod
    def from_dict(cls, data: dict) -> "Waypoint":
        """
        Create a Waypoint from a route node dictionary.

        Accepts either 'lon' or 'lng' for longitude, as route providers
        disagree on the key.

        Raises:
            KeyError: If 'lat' or a longitude key is missing
            ValueError: If coordinates cannot be converted to float
        """
        lon = data["lon"] if "lon" in data else data["lng"]
        return cls(
            lat=float(data["lat"]),
            lon=float(lon),
            ident=data.get("ident"),
            name=data.get("name"),
            kind=data.get("type"),
        )


def haversine_distance_m(a: GeoPoint, b: GeoPoint) -> int:
    """
    Calculate great-circle distance between two points in meters.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in meters, rounded to the nearest meter (NaN if either
        point is NaN)
    """
    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    delta_lat = math.radians(b.lat - a.lat)
    delta_lon = math.radians(b.lon - a.lon)

    h = (math.sin(delta_lat / 2) ** 2 +
         math.cos(lat1_rad) * math.cos(lat2_rad) *
         math.sin(delta_lon / 2) ** 2)
    # Rounding can push h just outside [0, 1] near antipodal points
    if h > 1:
        h = 1.0
    elif h < 0:
        h = 0.0
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    distance = EARTH_RADIUS_M * c
    if math.isnan(distance):
        return distance
    return round(distance)


def initial_bearing_deg(a: GeoPoint, b: GeoPoint) -> float:
    """
    Calculate initial bearing from point a to point b.

    Uses the forward azimuth formula for great circle navigation.
    The result is meaningless when a == b.

    Returns:
        Bearing in degrees (0-360, where 0=North, 90=East, etc.)
    """
    lat1_rad = math.radians(a.lat)
    lat2_rad = math.radians(b.lat)
    delta_lon_rad = math.radians(b.lon - a.lon)

    y = math.sin(delta_lon_rad) * math.cos(lat2_rad)
    x = (math.cos(lat1_rad) * math.sin(lat2_rad) -
         math.sin(lat1_rad) * math.cos(lat2_rad) * math.cos(delta_lon_rad))

    bearing = math.degrees(math.atan2(y, x))
    if bearing < 0:
        bearing += 360
    # -0.0 and values that round up to 360 after the shift
    return bearing % 360


def destination_point(origin: GeoPoint, distance_km: float,
                      bearing_deg: float) -> GeoPoint:
    """
    Solve the direct geodetic problem on a sphere.

    Args:
        origin: Start position
        distance_km: Distance to travel in kilometers
        bearing_deg: Initial bearing in degrees

    Returns:
        The point reached after travelling distance_km along bearing_deg
    """
    lat1 = math.radians(origin.lat)
    lon1 = math.radians(origin.lon)
    bearing = math.radians(bearing_deg)
    angular = distance_km / EARTH_RADIUS_KM

    sin_lat2 = (math.sin(lat1) * math.cos(angular) +
                math.cos(lat1) * math.sin(angular) * math.cos(bearing))
    # Paths ending on a pole can round just past +-1
    if sin_lat2 > 1:
        sin_lat2 = 1.0
    elif sin_lat2 < -1:
        sin_lat2 = -1.0
    lat2 = math.asin(sin_lat2)
    lon2 = lon1 + math.atan2(math.sin(bearing) * math.sin(angular) * math.cos(lat1),
                             math.cos(angular) - math.sin(lat1) * math.sin(lat2))

    return GeoPoint(math.degrees(lat2), math.degrees(lon2))


def interpolate_linear(a: GeoPoint, b: GeoPoint, fraction: float) -> GeoPoint:
    """
    Blend two positions on latitude and longitude independently.

    Planar, not great-circle. Acceptable for the short spacing between
    route fixes. The fraction is not clamped.
    """
    return GeoPoint(a.lat + (b.lat - a.lat) * fraction,
                    a.lon + (b.lon - a.lon) * fraction)
