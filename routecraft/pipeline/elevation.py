"""Elevation profile derivation from terrain data."""

import asyncio
import logging
from typing import Sequence

from routecraft.errors import TerrainUnavailable
from routecraft.models import ElevationProfile, ElevationSample, ElevationStats, LonLat
from routecraft.tools.terrain import TerrainSource
from routecraft.utils.geo import segment_length_km

from .resampler import DEFAULT_CHUNK_KM, resample

logger = logging.getLogger(__name__)

# Elevation reported for points the terrain source cannot answer
DEFAULT_ELEVATION_M = 0.0


def elevation_stats(samples: Sequence[ElevationSample]) -> ElevationStats | None:
    """
    Compute min, max and total gain over an elevation profile.

    Descents never subtract from the gain. Returns None for an empty
    profile so "no data" stays distinct from a flat route.
    """
    if not samples:
        return None

    elevations = [s.elevation_meters for s in samples]
    gain = sum(
        max(0.0, elevations[i] - elevations[i - 1])
        for i in range(1, len(elevations))
    )
    return ElevationStats(
        min_elevation=min(elevations),
        max_elevation=max(elevations),
        total_gain=gain,
    )


class ElevationSampler:
    """Queries a terrain source along a path and builds elevation profiles."""

    def __init__(self, terrain: TerrainSource, max_concurrency: int = 8):
        self.terrain = terrain
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def _elevation_at(self, point: LonLat) -> float | None:
        async with self._semaphore:
            try:
                return await self.terrain.query_elevation(point[0], point[1])
            except TerrainUnavailable as e:
                logger.debug("Terrain unavailable: %s", e)
                return None

    async def sample(self, points: Sequence[LonLat]) -> list[ElevationSample]:
        """
        Sample terrain elevation at each point.

        Waits for the terrain source to report readiness first. A point the
        terrain source cannot answer gets DEFAULT_ELEVATION_M instead of
        failing the whole profile.

        Args:
            points: Ordered (lon, lat) sample points

        Returns:
            One ElevationSample per point, with cumulative great-circle
            distance from the first point
        """
        if not points:
            return []

        await self.terrain.wait_until_ready()

        elevations = await asyncio.gather(*(self._elevation_at(p) for p in points))

        missing = sum(1 for e in elevations if e is None)
        if missing:
            logger.warning(
                "No terrain data for %d of %d sample points, defaulting to %.0f m",
                missing, len(points), DEFAULT_ELEVATION_M,
            )

        samples = []
        cumulative_km = 0.0
        for i, (point, elevation) in enumerate(zip(points, elevations)):
            if i > 0:
                cumulative_km += segment_length_km(points[i - 1], point)
            samples.append(ElevationSample(
                distance_from_start_km=cumulative_km,
                elevation_meters=DEFAULT_ELEVATION_M if elevation is None else elevation,
            ))
        return samples

    async def build_profile(
        self,
        geometry: Sequence[LonLat],
        chunk_length_km: float = DEFAULT_CHUNK_KM,
    ) -> ElevationProfile:
        """Resample a path and sample its elevation profile."""
        samples = await self.sample(resample(geometry, chunk_length_km))
        return ElevationProfile(samples=samples, stats=elevation_stats(samples))
