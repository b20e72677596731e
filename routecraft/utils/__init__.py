"""Utility functions for route creation."""

from .gpx import create_gpx_track, create_gpx_from_route, save_gpx_file
from .geo import haversine_distance, path_length_km

__all__ = [
    "create_gpx_track",
    "create_gpx_from_route",
    "save_gpx_file",
    "haversine_distance",
    "path_length_km",
]
