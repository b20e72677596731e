"""Split a routed path into fixed-length chunks for elevation sampling."""

from typing import Sequence

from routecraft.models import LonLat
from routecraft.utils.geo import path_length_km, point_along_route, segment_length_km

DEFAULT_CHUNK_KM = 0.1

# Boundaries closer than this to the end of the path collapse onto the final point
_END_TOLERANCE_KM = 1e-9


def resample(
    geometry: Sequence[LonLat],
    chunk_length_km: float = DEFAULT_CHUNK_KM,
) -> list[LonLat]:
    """
    Resample a polyline at roughly uniform spacing.

    Emits the start of every ``chunk_length_km`` chunk along the path, then
    the final coordinate of the path even when it does not land on a chunk
    boundary.

    Args:
        geometry: Ordered (lon, lat) pairs
        chunk_length_km: Spacing between samples in kilometers

    Returns:
        Sample coordinates; empty when the geometry has fewer than 2 points
    """
    if chunk_length_km <= 0:
        raise ValueError("chunk_length_km must be positive")

    if len(geometry) < 2:
        return []

    points = [(float(c[0]), float(c[1])) for c in geometry]
    total_km = path_length_km(points)

    samples: list[LonLat] = []
    segment_index = 1
    segment_start_km = 0.0
    segment_km = segment_length_km(points[0], points[1])
    k = 0

    while True:
        # k * chunk rather than a running sum keeps boundaries deterministic
        target_km = k * chunk_length_km
        if k > 0 and target_km >= total_km - _END_TOLERANCE_KM:
            break

        # Advance to the segment containing target_km
        while (
            segment_start_km + segment_km < target_km
            and segment_index < len(points) - 1
        ):
            segment_start_km += segment_km
            segment_index += 1
            segment_km = segment_length_km(points[segment_index - 1], points[segment_index])

        if segment_km == 0 or target_km <= segment_start_km:
            samples.append(points[segment_index - 1])
        else:
            fraction = min(1.0, (target_km - segment_start_km) / segment_km)
            samples.append(
                point_along_route(points[segment_index - 1], points[segment_index], fraction)
            )
        k += 1

    samples.append(points[-1])
    return samples
