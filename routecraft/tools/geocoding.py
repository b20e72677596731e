"""Place search using the Mapbox Geocoding API."""

import logging
from urllib.parse import quote

import httpx

from routecraft.errors import ProviderError
from routecraft.models import SearchResult

logger = logging.getLogger(__name__)


class MapboxGeocoder:
    """Converts a place name or address into candidate coordinates."""

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api.mapbox.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def search(self, query: str, limit: int = 5) -> list[SearchResult]:
        """
        Search for places matching a query.

        Returns candidates as (lon, lat) centers with their display names.
        Raises ProviderError on transport failures or non-success status.
        """
        if not query.strip():
            return []

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/geocoding/v5/mapbox.places/{quote(query, safe='')}.json",
                    params={"limit": limit, "access_token": self.token or ""},
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise ProviderError(f"Geocoding request failed: {e}") from e

        if response.status_code != 200:
            raise ProviderError(
                f"Geocoding error: {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )

        results = []
        for feature in response.json().get("features", []):
            center = feature.get("center")
            if not center or len(center) < 2:
                continue
            results.append(SearchResult(
                text=feature.get("place_name", query),
                center=(float(center[0]), float(center[1])),
            ))
        return results
