"""Storage sinks for finished routes."""

import json
import logging
import re
from pathlib import Path

import httpx

from routecraft.errors import PersistenceError
from routecraft.models import SaveableRoute
from routecraft.utils.gpx import create_gpx_from_route, save_gpx_file

logger = logging.getLogger(__name__)


class RouteSink:
    """Base class for route storage. Accepts one record per save."""

    async def save(self, route: SaveableRoute) -> None:
        raise NotImplementedError


class SupabaseRouteSink(RouteSink):
    """Inserts routes into a Supabase ``routes`` table via its REST API."""

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "routes",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self.key = key
        self.table = table
        self.timeout = timeout
        self._transport = transport

    async def save(self, route: SaveableRoute) -> None:
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.url}/rest/v1/{self.table}",
                    headers={
                        "apikey": self.key,
                        "Authorization": f"Bearer {self.key}",
                        "Content-Type": "application/json",
                        "Prefer": "return=minimal",
                    },
                    json=[route.to_row()],
                    timeout=self.timeout,
                )
            except httpx.HTTPError as e:
                raise PersistenceError(f"Failed to save route: {e}") from e

        if response.status_code >= 300:
            # PostgREST errors carry a human-readable "message"
            try:
                message = response.json().get("message") or response.text
            except ValueError:
                message = response.text
            raise PersistenceError(message[:500] or f"Failed to save route: {response.status_code}")


def _slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "route"


class JsonFileRouteSink(RouteSink):
    """Writes each route as JSON plus a GPX track into a directory."""

    def __init__(self, output_dir: Path, export_gpx: bool = True):
        self.output_dir = Path(output_dir)
        self.export_gpx = export_gpx

    def path_for(self, route: SaveableRoute) -> Path:
        stamp = route.created_at.strftime("%Y%m%dT%H%M%S")
        return self.output_dir / f"{_slugify(route.name)}-{stamp}.json"

    async def save(self, route: SaveableRoute) -> None:
        path = self.path_for(route)
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(route.to_row(), f, indent=2)
            if self.export_gpx:
                save_gpx_file(create_gpx_from_route(route), str(path.with_suffix(".gpx")))
        except OSError as e:
            raise PersistenceError(f"Failed to save route: {e}") from e

        logger.info("Saved route to %s", path)
