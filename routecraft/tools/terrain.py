"""Terrain elevation sources."""

import asyncio
import logging

import httpx

from routecraft.errors import ProviderError, TerrainUnavailable

logger = logging.getLogger(__name__)

TERRAIN_TILESET = "mapbox.mapbox-terrain-v2"


class TerrainSource:
    """
    Base class for terrain elevation sources.

    A source signals readiness once (e.g. after its tiles or credentials are
    loaded); consumers wait on that signal before their first query.
    """

    def __init__(self):
        self._ready = asyncio.Event()

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def mark_ready(self) -> None:
        self._ready.set()

    async def wait_until_ready(self) -> None:
        await self._ready.wait()

    async def query_elevation(self, lon: float, lat: float) -> float | None:
        """Return ground elevation in meters, or None when there is no data."""
        raise NotImplementedError


class MapboxTerrainSource(TerrainSource):
    """Terrain elevation from the Mapbox Tilequery API (contour layer)."""

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api.mapbox.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__()
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def load(self) -> None:
        """Check the terrain tileset is reachable, then signal readiness."""
        if not self.token:
            raise ProviderError("MAPBOX_TOKEN is not configured")

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/v4/{TERRAIN_TILESET}.json",
                    params={"access_token": self.token},
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise ProviderError(f"Terrain tileset unreachable: {e}") from e

        if response.status_code != 200:
            raise ProviderError(
                f"Terrain tileset error: {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )

        self.mark_ready()

    async def query_elevation(self, lon: float, lat: float) -> float | None:
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/v4/{TERRAIN_TILESET}/tilequery/{lon},{lat}.json",
                    params={
                        "layers": "contour",
                        "limit": 50,
                        "access_token": self.token,
                    },
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise TerrainUnavailable(f"Terrain query failed at {lon},{lat}: {e}") from e

        if response.status_code != 200:
            raise TerrainUnavailable(
                f"Terrain query failed at {lon},{lat}: {response.status_code}"
            )

        try:
            features = response.json().get("features") or []
            # Overlapping contour polygons: the highest one is the local elevation
            elevations = [
                float(feature["properties"]["ele"])
                for feature in features
                if (feature.get("properties") or {}).get("ele") is not None
            ]
        except (AttributeError, TypeError, ValueError) as e:
            raise TerrainUnavailable(f"Invalid terrain response at {lon},{lat}") from e

        if not elevations:
            return None
        return max(elevations)
