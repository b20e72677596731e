"""Shared fakes for route creator tests."""

import httpx
import pytest

from routecraft.errors import TerrainUnavailable
from routecraft.models import SaveableRoute
from routecraft.tools.directions import DirectionsClient
from routecraft.tools.storage import RouteSink
from routecraft.tools.terrain import TerrainSource


def directions_payload(distance=1000.0, duration=300.0, coordinates=None):
    """A Mapbox Directions response body with one route."""
    if coordinates is None:
        coordinates = [[0, 0], [0, 0.5], [0, 1]]
    return {
        "code": "Ok",
        "routes": [{
            "distance": distance,
            "duration": duration,
            "geometry": {"type": "LineString", "coordinates": coordinates},
        }],
    }


class FakeTerrain(TerrainSource):
    """Terrain whose elevation is a function of the coordinate."""

    def __init__(self, elevation=lambda lon, lat: lat * 1000, failing=(), ready=True):
        super().__init__()
        self.elevation = elevation
        self.failing = set(failing)
        self.queries = []
        if ready:
            self.mark_ready()

    async def query_elevation(self, lon, lat):
        self.queries.append((lon, lat))
        if (lon, lat) in self.failing:
            raise TerrainUnavailable(f"no tile at {lon},{lat}")
        return self.elevation(lon, lat)


class MemorySink(RouteSink):
    def __init__(self, error=None):
        self.saved: list[SaveableRoute] = []
        self.error = error

    async def save(self, route):
        if self.error is not None:
            raise self.error
        self.saved.append(route)


class ScriptedDirections:
    """
    MockTransport handler answering directions calls in order.

    Each scripted answer is either a payload dict (200), an int status code,
    or a (payload, asyncio.Event) pair that is held until the event is set.
    """

    def __init__(self, *answers):
        self.answers = list(answers)
        self.requests: list[httpx.Request] = []

    async def __call__(self, request):
        self.requests.append(request)
        answer = self.answers[len(self.requests) - 1] if len(self.requests) <= len(self.answers) else self.answers[-1]
        if isinstance(answer, tuple):
            answer, release = answer
            await release.wait()
        if isinstance(answer, int):
            return httpx.Response(answer, text="provider failure")
        return httpx.Response(200, json=answer)


@pytest.fixture
def make_directions():
    def factory(*answers):
        script = ScriptedDirections(*answers)
        client = DirectionsClient("test-token", transport=httpx.MockTransport(script))
        return client, script
    return factory

