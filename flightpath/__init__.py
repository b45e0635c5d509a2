from flightpath.version import __version__
from flightpath.utils.geodesy import (
    GeoPoint,
    Waypoint,
    haversine_distance_m,
    initial_bearing_deg,
    destination_point,
)
from flightpath.utils.durations import Duration, parse_duration, format_duration
from flightpath.utils.conversions import meters_to_feet, kmh_to_knots, mps_to_kmh
from flightpath.route_progress import RouteProgress, calculate_route_position, heading_at
from flightpath.position_cache import CachedSample, PositionSampleCache
from flightpath.live_track import (
    LiveFix,
    LiveTrackExtrapolator,
    extrapolate,
    should_extrapolate,
    blend_fixes,
)
