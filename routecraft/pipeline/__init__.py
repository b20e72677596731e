"""Route creation pipeline: waypoints, resampling, elevation, timing and saving."""

from .waypoints import WaypointStore
from .resampler import resample
from .elevation import ElevationSampler, elevation_stats
from .timing import estimate_time, convert_speed, toggle_unit
from .assembler import assemble
from .route_creator import RouteCreator, RouteState, ProfileStatus

__all__ = [
    "WaypointStore",
    "resample",
    "ElevationSampler",
    "elevation_stats",
    "estimate_time",
    "convert_speed",
    "toggle_unit",
    "assemble",
    "RouteCreator",
    "RouteState",
    "ProfileStatus",
]
