"""Routing through waypoints using the Mapbox Directions API."""

import logging
from typing import Sequence

import httpx

from routecraft.errors import NoRouteFound, ProviderError, RequestSuperseded
from routecraft.models import LonLat, RoutedPath, TravelMode

logger = logging.getLogger(__name__)


class DirectionsClient:
    """
    Fetches routed paths and keeps only the newest request's outcome.

    Every request takes a token from a monotonically increasing counter.
    When a request completes, its token is compared with the newest issued
    token; outcomes of older requests are discarded by raising
    RequestSuperseded, whether they succeeded or failed.
    """

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
        self._latest_token = 0

    @property
    def latest_token(self) -> int:
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def invalidate(self) -> int:
        """Supersede any in-flight request without issuing a new one."""
        self._latest_token += 1
        return self._latest_token

    async def request_route(
        self,
        coordinates: Sequence[LonLat],
        mode: TravelMode | str = TravelMode.CYCLING,
    ) -> RoutedPath:
        """
        Request a routed path through the coordinates, in order.

        Args:
            coordinates: Two or more (lon, lat) waypoints
            mode: "cycling" or "walking"

        Returns:
            The provider's first route

        Raises:
            ProviderError: Transport failure or non-success status
            NoRouteFound: The provider returned no routes
            RequestSuperseded: A newer request was issued meanwhile
        """
        if len(coordinates) < 2:
            raise ValueError("At least 2 waypoints are required")

        mode = TravelMode(mode)
        token = self.invalidate()

        try:
            path = await self._fetch(coordinates, mode)
        except (ProviderError, NoRouteFound) as e:
            if not self.is_current(token):
                logger.debug("Dropping failure of superseded request %d: %s", token, e)
                raise RequestSuperseded(token, self._latest_token) from e
            raise

        if not self.is_current(token):
            logger.debug("Dropping superseded route response %d", token)
            raise RequestSuperseded(token, self._latest_token)

        return path

    async def _fetch(self, coordinates: Sequence[LonLat], mode: TravelMode) -> RoutedPath:
        # Mapbox takes lon,lat pairs separated by semicolons
        lonlats = ";".join(f"{lon},{lat}" for lon, lat in coordinates)

        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.get(
                    f"{self.base_url}/directions/v5/mapbox/{mode.value}/{lonlats}",
                    params={
                        "geometries": "geojson",
                        "overview": "full",
                        "access_token": self.token or "",
                    },
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                logger.warning("Directions request failed: %s", e)
                raise ProviderError(f"Directions request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "Directions error: status=%s body=%s",
                response.status_code, response.text[:200],
            )
            raise ProviderError(
                f"Directions error: {response.status_code}",
                status_code=response.status_code,
                details=response.text[:500],
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError("Directions response is not valid JSON") from e

        if not isinstance(data, dict):
            raise ProviderError("Malformed directions response")

        routes = data.get("routes") or []
        if not routes:
            raise NoRouteFound("No route found between the specified points")

        try:
            route = routes[0]
            coords = (route.get("geometry") or {}).get("coordinates") or []
            if len(coords) < 2:
                raise NoRouteFound("Route has no usable geometry")

            return RoutedPath(
                distance_meters=float(route.get("distance", 0)),
                duration_seconds=float(route.get("duration", 0)),
                geometry=[(float(c[0]), float(c[1])) for c in coords],
            )
        except (AttributeError, TypeError, ValueError, IndexError, KeyError) as e:
            # pydantic's ValidationError is a ValueError
            logger.warning("Malformed directions response: %s", e)
            raise ProviderError("Malformed directions response") from e
