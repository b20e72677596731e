"""GPX file generation utilities."""

from typing import Sequence

import gpxpy
import gpxpy.gpx

from routecraft.models import LonLat, SaveableRoute


def create_gpx_track(
    name: str,
    coordinates: Sequence[LonLat],
    description: str | None = None,
    track_type: str | None = None,
) -> gpxpy.gpx.GPXTrack:
    """
    Create a GPX track from a list of coordinates.

    Args:
        name: Name of the track
        coordinates: List of (lon, lat) tuples
        description: Optional track description
        track_type: Optional activity type (e.g. "cycling")

    Returns:
        GPX track with a single segment
    """
    gpx_track = gpxpy.gpx.GPXTrack()
    gpx_track.name = name
    gpx_track.description = description
    gpx_track.type = track_type

    gpx_segment = gpxpy.gpx.GPXTrackSegment()
    gpx_track.segments.append(gpx_segment)

    for lon, lat in coordinates:
        gpx_segment.points.append(gpxpy.gpx.GPXTrackPoint(
            latitude=lat,
            longitude=lon,
        ))

    return gpx_track


def create_gpx_from_route(
    route: SaveableRoute,
    include_waypoints: bool = True,
) -> str:
    """
    Create a complete GPX file from a saved route.

    Args:
        route: The saved route
        include_waypoints: Whether to include the user's waypoints

    Returns:
        GPX XML string
    """
    gpx = gpxpy.gpx.GPX()
    gpx.name = route.name
    gpx.description = route.description
    gpx.creator = "routecraft"
    gpx.time = route.created_at

    if include_waypoints:
        for index, point in enumerate(route.metadata.waypoints, start=1):
            waypoint = gpxpy.gpx.GPXWaypoint(
                latitude=point.coordinates[1],
                longitude=point.coordinates[0],
            )
            waypoint.name = f"Point {index}"
            gpx.waypoints.append(waypoint)

    description = f"{route.distance_meters / 1000:.1f} km {route.mode.value} route"

    gpx.tracks.append(create_gpx_track(
        route.name,
        route.geometry,
        description=description,
        track_type=route.mode.value,
    ))

    return gpx.to_xml()


def save_gpx_file(gpx_content: str, filepath: str) -> None:
    """Save GPX content to a file."""
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(gpx_content)
