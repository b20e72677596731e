"""Best-effort lookup of the user's current position."""

import asyncio
import logging

import httpx

from routecraft.models import LonLat

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_S = 5.0


class GeolocationSource:
    """Base class for one-shot position lookups."""

    async def current_position(self) -> LonLat | None:
        raise NotImplementedError


class IpGeolocationSource(GeolocationSource):
    """Approximate position from an IP geolocation service (ipapi-style JSON)."""

    def __init__(
        self,
        url: str = "https://ipapi.co/json/",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self._transport = transport

    async def current_position(self) -> LonLat | None:
        async with httpx.AsyncClient(transport=self._transport) as client:
            response = await client.get(
                self.url,
                headers={"User-Agent": "routecraft/0.1"},
            )
            response.raise_for_status()
            data = response.json()

        if not isinstance(data, dict):
            raise ValueError("Unexpected geolocation response")

        lat, lon = data.get("latitude"), data.get("longitude")
        if lat is None or lon is None:
            return None
        return (float(lon), float(lat))


async def locate_user(
    source: GeolocationSource,
    timeout: float = DEFAULT_TIMEOUT_S,
) -> LonLat | None:
    """
    Look up the user's position, giving up after ``timeout`` seconds.

    An unknown position is a normal outcome: timeouts and lookup failures
    return None.
    """
    try:
        return await asyncio.wait_for(source.current_position(), timeout=timeout)
    except asyncio.TimeoutError:
        logger.info("Geolocation timed out after %.1fs", timeout)
    except (httpx.HTTPError, TypeError, ValueError) as e:
        logger.info("Geolocation unavailable: %s", e)
    return None
