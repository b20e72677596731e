"""Route creation state and orchestration.

RouteCreator is the only writer of the current route state. Waypoint edits
and mode changes each trigger one directions request; a settled route then
gets its elevation profile built in the background. Readers get immutable
RouteState snapshots.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from enum import Enum

from routecraft.errors import NoRouteFound, PersistenceError, ProviderError, RequestSuperseded
from routecraft.models import (
    ElevationProfile,
    LonLat,
    OwnerReference,
    RoutedPath,
    SaveableRoute,
    SaveRouteForm,
    SearchResult,
    SpeedSetting,
    SpeedUnit,
    TimeEstimate,
    TravelMode,
    Waypoint,
)
from routecraft.tools.directions import DirectionsClient
from routecraft.tools.geocoding import MapboxGeocoder
from routecraft.tools.geolocation import DEFAULT_TIMEOUT_S, GeolocationSource, locate_user
from routecraft.tools.storage import RouteSink

from .assembler import assemble
from .elevation import ElevationSampler
from .resampler import DEFAULT_CHUNK_KM
from .timing import estimate_time, format_distance, format_estimate, toggle_unit
from .waypoints import WaypointStore

logger = logging.getLogger(__name__)


class ProfileStatus(str, Enum):
    """Availability of the elevation profile."""
    NONE = "none"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def _default_speed() -> SpeedSetting:
    return SpeedSetting(speed=15, unit=SpeedUnit.MPH)


@dataclass(frozen=True)
class RouteState:
    """Snapshot of the route being created."""
    waypoints: tuple[Waypoint, ...] = ()
    mode: TravelMode = TravelMode.CYCLING
    route: RoutedPath | None = None
    profile: ElevationProfile | None = None
    profile_status: ProfileStatus = ProfileStatus.NONE
    speed: SpeedSetting = field(default_factory=_default_speed)
    error: str | None = None

    @property
    def can_save(self) -> bool:
        return self.route is not None and len(self.waypoints) >= 2

    @property
    def time_estimate(self) -> TimeEstimate | None:
        if self.route is None:
            return None
        return estimate_time(self.route.distance_meters, self.speed.speed, self.speed.unit)

    def format_summary(self) -> str:
        """Format a human-readable summary of the route."""
        speed = f"{self.speed.speed:g} {self.speed.unit.value}"
        lines = [
            f"Points: {len(self.waypoints)}",
            f"Distance: {format_distance(self.route.distance_meters if self.route else None)}",
            f"Time @ {speed}: {format_estimate(self.time_estimate)}",
        ]

        if self.profile_status is ProfileStatus.LOADING:
            lines.append("Elevation: loading...")
        elif self.profile_status is ProfileStatus.FAILED:
            lines.append("Elevation: failed to load elevation data")
        elif self.profile is not None and self.profile.stats is not None:
            stats = self.profile.stats
            lines.append(
                f"Elevation: gain {stats.total_gain:.0f}m, "
                f"max {stats.max_elevation:.0f}m, min {stats.min_elevation:.0f}m"
            )

        if self.error:
            lines.append(f"Error: {self.error}")

        return "\n".join(lines)


class RouteCreator:
    """
    Orchestrates waypoint edits, directions, elevation and saving.

    All collaborators except the directions client are optional: without a
    terrain sampler no profile is built, without a sink routes cannot be
    saved, and without a geocoder or geolocation source those lookups come
    back empty.
    """

    def __init__(
        self,
        directions: DirectionsClient,
        elevation: ElevationSampler | None = None,
        sink: RouteSink | None = None,
        geocoder: MapboxGeocoder | None = None,
        geolocation: GeolocationSource | None = None,
        speed: SpeedSetting | None = None,
        mode: TravelMode = TravelMode.CYCLING,
        chunk_length_km: float = DEFAULT_CHUNK_KM,
        geolocation_timeout: float = DEFAULT_TIMEOUT_S,
    ):
        self.directions = directions
        self.elevation = elevation
        self.sink = sink
        self.geocoder = geocoder
        self.geolocation = geolocation
        self.chunk_length_km = chunk_length_km
        self.geolocation_timeout = geolocation_timeout

        self._state = RouteState(mode=TravelMode(mode), speed=speed or _default_speed())
        self._profile_tasks: set[asyncio.Task] = set()

        self.store = WaypointStore()
        self.store.subscribe(self._sync_waypoints)

    @property
    def state(self) -> RouteState:
        return self._state

    def _update(self, **changes) -> None:
        self._state = replace(self._state, **changes)

    def _sync_waypoints(self) -> None:
        self._update(waypoints=self.store.snapshot())

    # Waypoint edits

    async def add_point(self, coordinates: LonLat) -> Waypoint:
        waypoint = self.store.add(coordinates)
        await self.refresh_route()
        return waypoint

    async def add_search_result(self, result: SearchResult) -> Waypoint:
        waypoint = self.store.insert_from_search(result)
        await self.refresh_route()
        return waypoint

    async def move_point(self, waypoint_id: str, coordinates: LonLat) -> Waypoint:
        waypoint = self.store.update_position(waypoint_id, coordinates)
        await self.refresh_route()
        return waypoint

    async def remove_point(self, waypoint_id: str) -> Waypoint:
        waypoint = self.store.remove(waypoint_id)
        await self.refresh_route()
        return waypoint

    async def clear(self) -> None:
        self.store.clear()
        await self.refresh_route()

    async def set_mode(self, mode: TravelMode | str) -> None:
        """Change travel mode and re-route the current waypoints."""
        self._update(mode=TravelMode(mode))
        await self.refresh_route()

    # Speed

    def set_speed(self, speed: float) -> SpeedSetting:
        setting = SpeedSetting(speed=speed, unit=self._state.speed.unit)
        self._update(speed=setting)
        return setting

    def toggle_unit(self) -> SpeedSetting:
        setting = toggle_unit(self._state.speed)
        self._update(speed=setting)
        return setting

    # Directions and elevation

    async def refresh_route(self) -> None:
        """
        Request a route for the current waypoints.

        Provider failures become visible state (no route plus an error
        message) and are not retried. Responses to superseded requests are
        dropped.
        """
        if not self.store.can_route:
            self.directions.invalidate()
            self._update(route=None, profile=None, profile_status=ProfileStatus.NONE, error=None)
            return

        try:
            path = await self.directions.request_route(self.store.coordinates(), self._state.mode)
        except RequestSuperseded as e:
            logger.debug("Ignoring stale directions outcome: %s", e)
            return
        except (ProviderError, NoRouteFound) as e:
            logger.warning("Could not calculate route: %s", e)
            self._update(route=None, profile=None, profile_status=ProfileStatus.NONE, error=str(e))
            return

        if self.elevation is None:
            self._update(route=path, profile=None, profile_status=ProfileStatus.NONE, error=None)
            return

        self._update(route=path, profile=None, profile_status=ProfileStatus.LOADING, error=None)
        task = asyncio.create_task(self._build_profile(path))
        self._profile_tasks.add(task)
        task.add_done_callback(self._profile_tasks.discard)

    async def _build_profile(self, path: RoutedPath) -> None:
        try:
            profile = await self.elevation.build_profile(path.geometry, self.chunk_length_km)
        except Exception:
            logger.exception("Failed to build elevation profile")
            if self._state.route is path:
                self._update(profile=None, profile_status=ProfileStatus.FAILED)
            return

        # The terrain wait can outlive the route it was started for
        if self._state.route is not path:
            logger.debug("Discarding elevation profile for a replaced route")
            return

        self._update(profile=profile, profile_status=ProfileStatus.READY)

    async def wait_for_profile(self) -> None:
        """Wait for pending elevation profiles to finish."""
        if self._profile_tasks:
            await asyncio.gather(*list(self._profile_tasks))

    # External lookups

    async def search(self, query: str) -> list[SearchResult]:
        if self.geocoder is None:
            return []
        try:
            return await self.geocoder.search(query)
        except ProviderError as e:
            logger.warning("Geocoding error: %s", e)
            return []

    async def locate_user(self) -> LonLat | None:
        if self.geolocation is None:
            return None
        return await locate_user(self.geolocation, self.geolocation_timeout)

    # Saving

    async def save(self, form: SaveRouteForm, user_id: str | None = None) -> SaveableRoute:
        """
        Assemble the current route and write it to the storage sink.

        Raises:
            ValidationError: Missing name or no route; nothing is written
            PersistenceError: No sink configured or the sink rejected the write
        """
        route = assemble(
            self.store.snapshot(),
            self._state.route,
            self._state.speed,
            form,
            OwnerReference.resolve(user_id),
            self._state.mode,
        )

        if self.sink is None:
            raise PersistenceError("No route storage configured")

        await self.sink.save(route)
        return route
