"""Geospatial utility functions."""

from math import radians, sin, cos, sqrt, atan2, degrees
from typing import Sequence

from routecraft.models import LonLat

EARTH_RADIUS_KM = 6371


def haversine_distance(
    lat1: float, lon1: float,
    lat2: float, lon2: float,
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        lat1, lon1: First point coordinates in degrees
        lat2, lon2: Second point coordinates in degrees

    Returns:
        Distance in kilometers
    """
    lat1_rad, lon1_rad = radians(lat1), radians(lon1)
    lat2_rad, lon2_rad = radians(lat2), radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = sin(dlat/2)**2 + cos(lat1_rad) * cos(lat2_rad) * sin(dlon/2)**2
    c = 2 * atan2(sqrt(a), sqrt(1-a))

    return EARTH_RADIUS_KM * c


def segment_length_km(start: LonLat, end: LonLat) -> float:
    """Great-circle distance in km between two (lon, lat) points."""
    return haversine_distance(start[1], start[0], end[1], end[0])


def path_length_km(geometry: Sequence[LonLat]) -> float:
    """Total great-circle length of a polyline in km."""
    return sum(
        segment_length_km(geometry[i - 1], geometry[i])
        for i in range(1, len(geometry))
    )


def point_along_route(
    start: LonLat,
    end: LonLat,
    fraction: float,
) -> LonLat:
    """
    Calculate a point along the great circle between two points.

    Args:
        start: Starting point as (lon, lat) in degrees
        end: End point as (lon, lat) in degrees
        fraction: Fraction of the distance (0.0 to 1.0)

    Returns:
        (lon, lat) of the intermediate point
    """
    lon1, lat1 = start
    lon2, lat2 = end

    d = segment_length_km(start, end) / EARTH_RADIUS_KM  # Angular distance
    if d == 0:
        return (lon1, lat1)

    lat1_rad, lon1_rad = radians(lat1), radians(lon1)
    lat2_rad, lon2_rad = radians(lat2), radians(lon2)

    a = sin((1-fraction) * d) / sin(d)
    b = sin(fraction * d) / sin(d)

    x = a * cos(lat1_rad) * cos(lon1_rad) + b * cos(lat2_rad) * cos(lon2_rad)
    y = a * cos(lat1_rad) * sin(lon1_rad) + b * cos(lat2_rad) * sin(lon2_rad)
    z = a * sin(lat1_rad) + b * sin(lat2_rad)

    lat = atan2(z, sqrt(x**2 + y**2))
    lon = atan2(y, x)

    return (degrees(lon), degrees(lat))
