"""Tests for the route creation pipeline."""

import asyncio
from datetime import datetime, timezone

import pydantic
import pytest

from conftest import FakeTerrain, MemorySink, directions_payload
from routecraft.errors import PersistenceError, ValidationError
from routecraft.models import (
    ElevationSample,
    OwnerReference,
    RouteCategory,
    RoutedPath,
    SaveRouteForm,
    SearchResult,
    SpeedSetting,
    SpeedUnit,
    TimeEstimate,
    TravelMode,
)
from routecraft.pipeline import (
    ElevationSampler,
    ProfileStatus,
    RouteCreator,
    WaypointStore,
    assemble,
    convert_speed,
    elevation_stats,
    estimate_time,
    resample,
    toggle_unit,
)
from routecraft.pipeline.assembler import NAME_REQUIRED, NO_ROUTE
from routecraft.pipeline.timing import format_distance, format_estimate
from routecraft.utils.geo import segment_length_km


def routed_path():
    return RoutedPath(
        distance_meters=1000,
        duration_seconds=300,
        geometry=[(0, 0), (0, 0.5), (0, 1)],
    )


class TestWaypointStore:
    """Test ordered waypoint storage."""

    def test_add_appends(self):
        store = WaypointStore()
        first = store.add((0, 0))
        second = store.add((1, 1))

        assert [wp.id for wp in store] == [first.id, second.id]
        assert store.coordinates() == [(0, 0), (1, 1)]

    def test_insert_from_search_appends(self):
        store = WaypointStore()
        store.add((0, 0))
        added = store.insert_from_search(SearchResult(text="Somewhere", center=(5, 6)))

        assert store.snapshot()[-1] == added
        assert added.coordinates == (5, 6)

    def test_update_position_changes_only_target(self):
        store = WaypointStore()
        a = store.add((0, 0))
        b = store.add((1, 1))
        c = store.add((2, 2))

        store.update_position(b.id, (9, 9))

        assert [wp.id for wp in store] == [a.id, b.id, c.id]
        assert store.coordinates() == [(0, 0), (9, 9), (2, 2)]

    def test_update_unknown_id(self):
        store = WaypointStore()
        with pytest.raises(KeyError):
            store.update_position("missing", (0, 0))

    def test_remove_and_clear(self):
        store = WaypointStore()
        a = store.add((0, 0))
        b = store.add((1, 1))

        store.remove(a.id)
        assert [wp.id for wp in store] == [b.id]

        store.clear()
        assert store.count == 0

    def test_ids_are_unique(self):
        store = WaypointStore()
        ids = {store.add((0, 0)).id for _ in range(50)}
        assert len(ids) == 50

    def test_can_route_needs_two_points(self):
        store = WaypointStore()
        store.add((0, 0))
        assert not store.can_route
        store.add((0, 1))
        assert store.can_route

    def test_each_mutation_notifies_once(self):
        store = WaypointStore()
        calls = []
        store.subscribe(lambda: calls.append(1))

        a = store.add((0, 0))
        store.update_position(a.id, (1, 1))
        store.remove(a.id)
        store.clear()

        assert len(calls) == 4

    def test_snapshot_is_read_only(self):
        store = WaypointStore()
        store.add((0, 0))
        snapshot = store.snapshot()

        store.add((1, 1))

        assert len(snapshot) == 1
        with pytest.raises(pydantic.ValidationError):
            snapshot[0].coordinates = (5, 5)

    def test_rejects_invalid_coordinates(self):
        store = WaypointStore()
        with pytest.raises(ValueError):
            store.add((200, 0))


class TestResampler:
    """Test fixed-length path resampling."""

    def test_short_geometry_is_empty(self):
        assert resample([]) == []
        assert resample([(0, 0)]) == []

    def test_ends_with_final_coordinate(self):
        geometry = [(0, 0), (0, 0.004), (0.003, 0.01)]
        samples = resample(geometry, 0.1)

        assert samples[0] == (0, 0)
        assert samples[-1] == (0.003, 0.01)

    def test_uniform_spacing(self):
        # ~1.112 km along a meridian: 12 chunk starts plus the end point
        samples = resample([(0, 0), (0, 0.01)], 0.1)

        assert len(samples) == 13
        for i in range(1, len(samples) - 1):
            assert segment_length_km(samples[i - 1], samples[i]) == pytest.approx(0.1, abs=1e-6)
        assert samples[-1] == (0, 0.01)

    def test_spacing_carries_across_vertices(self):
        samples = resample([(0, 0), (0, 0.0005), (0, 0.001), (0, 0.01)], 0.1)

        assert samples[1][1] == pytest.approx(0.1 / 111.19493, rel=1e-4)

    def test_zero_length_path(self):
        assert resample([(1, 1), (1, 1)]) == [(1, 1), (1, 1)]

    def test_deterministic(self):
        geometry = [(0, 0), (0.01, 0.02), (0.03, 0.02)]
        assert resample(geometry, 0.25) == resample(geometry, 0.25)

    def test_invalid_chunk_length(self):
        with pytest.raises(ValueError):
            resample([(0, 0), (0, 1)], 0)


class TestElevationStats:
    """Test elevation statistics."""

    def samples(self, elevations):
        return [
            ElevationSample(distance_from_start_km=i * 0.1, elevation_meters=e)
            for i, e in enumerate(elevations)
        ]

    def test_descents_do_not_reduce_gain(self):
        stats = elevation_stats(self.samples([100, 90, 120, 80]))

        assert stats.total_gain == 30
        assert stats.min_elevation == 80
        assert stats.max_elevation == 120

    def test_flat_route(self):
        stats = elevation_stats(self.samples([50, 50, 50]))
        assert stats.total_gain == 0
        assert stats.min_elevation == stats.max_elevation == 50

    def test_no_data(self):
        assert elevation_stats([]) is None


@pytest.mark.asyncio
class TestElevationSampler:
    """Test terrain sampling."""

    async def test_one_sample_per_point(self):
        sampler = ElevationSampler(FakeTerrain())
        points = [(0, 0), (0, 0.001), (0, 0.002)]

        samples = await sampler.sample(points)

        assert [s.elevation_meters for s in samples] == pytest.approx([0, 1, 2])
        assert samples[0].distance_from_start_km == 0
        assert samples[1].distance_from_start_km == pytest.approx(0.1112, abs=1e-3)
        assert samples[2].distance_from_start_km == pytest.approx(0.2224, abs=1e-3)

    async def test_distance_is_non_decreasing(self):
        sampler = ElevationSampler(FakeTerrain())
        points = resample([(0, 0), (0.002, 0.001), (0, 0.003)], 0.05)

        samples = await sampler.sample(points)
        distances = [s.distance_from_start_km for s in samples]

        assert distances == sorted(distances)

    async def test_failed_point_defaults_to_zero(self):
        terrain = FakeTerrain(elevation=lambda lon, lat: 250.0, failing={(0, 0.001)})
        sampler = ElevationSampler(terrain)

        samples = await sampler.sample([(0, 0), (0, 0.001), (0, 0.002)])

        assert [s.elevation_meters for s in samples] == [250.0, 0.0, 250.0]

    async def test_missing_value_defaults_to_zero(self):
        sampler = ElevationSampler(FakeTerrain(elevation=lambda lon, lat: None))

        samples = await sampler.sample([(0, 0), (0, 0.001)])

        assert [s.elevation_meters for s in samples] == [0.0, 0.0]

    async def test_waits_for_terrain(self):
        terrain = FakeTerrain(ready=False)
        sampler = ElevationSampler(terrain)

        task = asyncio.create_task(sampler.sample([(0, 0), (0, 0.001)]))
        await asyncio.sleep(0.01)
        assert not task.done()
        assert terrain.queries == []

        terrain.mark_ready()
        samples = await task

        assert len(samples) == 2

    async def test_build_profile(self):
        sampler = ElevationSampler(FakeTerrain())

        profile = await sampler.build_profile([(0, 0), (0, 0.01)], 0.1)

        assert len(profile.samples) == 13
        assert profile.stats.min_elevation == 0
        assert profile.stats.max_elevation == pytest.approx(10)

    async def test_build_profile_degenerate_geometry(self):
        sampler = ElevationSampler(FakeTerrain())

        profile = await sampler.build_profile([(0, 0)])

        assert profile.is_empty
        assert profile.stats is None


class TestTiming:
    """Test travel time estimates and speed conversion."""

    def test_ten_miles_at_ten_mph(self):
        assert estimate_time(16093.4, 10, "mph") == TimeEstimate(hours=1, minutes=0)

    def test_minutes_round_over_into_hour(self):
        # 1.999999 hours at 10 km/h
        assert estimate_time(19999.99, 10, "kph") == TimeEstimate(hours=2, minutes=0)

    def test_short_ride(self):
        assert estimate_time(1000, 15, SpeedUnit.MPH) == TimeEstimate(hours=0, minutes=2)

    def test_kph(self):
        assert estimate_time(45000, 30, "kph") == TimeEstimate(hours=1, minutes=30)

    def test_invalid_speed(self):
        with pytest.raises(ValueError):
            estimate_time(1000, 0, "mph")

    def test_convert_speed(self):
        assert convert_speed(15, "mph", "kph") == 24
        assert convert_speed(24, "kph", "mph") == 15
        assert convert_speed(15, "mph", "mph") == 15

    def test_unit_round_trip(self):
        for speed in range(1, 60):
            kph = convert_speed(speed, "mph", "kph")
            assert abs(convert_speed(kph, "kph", "mph") - speed) <= 1

    def test_toggle_unit(self):
        kph = toggle_unit(SpeedSetting(speed=15, unit="mph"))
        assert kph == SpeedSetting(speed=24, unit="kph")
        assert toggle_unit(kph) == SpeedSetting(speed=15, unit="mph")

    def test_format(self):
        assert format_estimate(TimeEstimate(hours=1, minutes=5)) == "1h 5m"
        assert format_estimate(TimeEstimate(hours=0, minutes=45)) == "45m"
        assert format_estimate(None) == "0m"
        assert format_distance(12345) == "12.3 km"
        assert format_distance(None) == "0.0 km"


class TestAssembler:
    """Test route record assembly."""

    def waypoints(self):
        store = WaypointStore()
        store.add((0, 0))
        store.add((0, 1))
        return store.snapshot()

    def test_assemble(self):
        created = datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc)
        route = assemble(
            self.waypoints(),
            routed_path(),
            SpeedSetting(speed=15, unit="mph"),
            SaveRouteForm(name="  Morning Ride ", description="  ", category=RouteCategory.COMMUTE),
            OwnerReference.resolve("user-1"),
            TravelMode.WALKING,
            now=created,
        )

        assert route.name == "Morning Ride"
        assert route.description is None
        assert route.category is RouteCategory.COMMUTE
        assert route.mode is TravelMode.WALKING
        assert route.distance_meters == 1000
        assert route.created_at == created
        assert len(route.metadata.waypoints) == 2

        row = route.to_row()
        assert row["user_id"] == "user-1"
        assert row["anonymous_id"] is None
        assert row["activity_type"] == "walking"
        assert row["metadata"]["speed_settings"] == {"speed": 15, "unit": "mph"}
        assert row["metadata"]["created_at"] == "2024-05-01T08:30:00+00:00"

    def test_blank_name(self):
        with pytest.raises(ValidationError) as exc_info:
            assemble(
                self.waypoints(), routed_path(), SpeedSetting(speed=15),
                SaveRouteForm(name="   "), OwnerReference.resolve(),
            )
        assert exc_info.value.reason == NAME_REQUIRED

    def test_no_route(self):
        with pytest.raises(ValidationError) as exc_info:
            assemble(
                self.waypoints(), None, SpeedSetting(speed=15),
                SaveRouteForm(name="Ride"), OwnerReference.resolve(),
            )
        assert exc_info.value.reason == NO_ROUTE

    def test_anonymous_owner(self):
        owner = OwnerReference.resolve(None)
        assert owner.is_anonymous
        assert owner.user_id is None
        assert owner.anonymous_id != OwnerReference.resolve(None).anonymous_id

    def test_owner_needs_exactly_one_identity(self):
        with pytest.raises(ValueError):
            OwnerReference(user_id="u", anonymous_id="a")
        with pytest.raises(ValueError):
            OwnerReference()


class BrokenTerrain(FakeTerrain):
    """Terrain that fails with an unexpected error north of the equator."""

    def __init__(self):
        super().__init__()
        self.broken = True

    async def query_elevation(self, lon, lat):
        if self.broken and lat > 0.5:
            raise RuntimeError("tile decode failed")
        return await super().query_elevation(lon, lat)


@pytest.mark.asyncio
class TestRouteCreator:
    """Test the route creation orchestrator."""

    async def test_end_to_end(self, make_directions):
        client, script = make_directions(directions_payload())
        creator = RouteCreator(client, speed=SpeedSetting(speed=15, unit="mph"))

        await creator.add_point((0, 0))
        assert creator.state.route is None
        assert script.requests == []

        await creator.add_point((0, 1))

        state = creator.state
        assert state.route.distance_meters == 1000
        assert state.route.geometry == [(0, 0), (0, 0.5), (0, 1)]
        assert state.time_estimate == TimeEstimate(hours=0, minutes=2)
        assert state.can_save
        assert len(script.requests) == 1

    async def test_stale_response_never_wins(self, make_directions):
        release = asyncio.Event()
        first = directions_payload(distance=1111, coordinates=[[0, 0], [0, 1]])
        second = directions_payload(distance=2222, coordinates=[[0, 0], [0, 2]])
        client, _ = make_directions((first, release), second)
        creator = RouteCreator(client)
        await creator.add_point((0, 0))

        task_a = asyncio.create_task(creator.add_point((0, 1)))
        await asyncio.sleep(0)
        await creator.move_point(creator.state.waypoints[1].id, (0, 2))
        release.set()
        await task_a

        assert creator.state.route.distance_meters == 2222
        assert creator.state.waypoints[1].coordinates == (0, 2)

    async def test_provider_error_clears_route(self, make_directions):
        client, _ = make_directions(directions_payload(), 500)
        creator = RouteCreator(client)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))
        assert creator.state.route is not None

        await creator.add_point((0, 2))

        assert creator.state.route is None
        assert "500" in creator.state.error
        assert not creator.state.can_save

    async def test_no_route_found(self, make_directions):
        client, _ = make_directions({"routes": []})
        creator = RouteCreator(client)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        assert creator.state.route is None
        assert creator.state.error

    async def test_malformed_directions_become_error_state(self, make_directions):
        payload = directions_payload()
        payload["routes"][0]["distance"] = None
        client, _ = make_directions(payload)
        creator = RouteCreator(client)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        assert creator.state.route is None
        assert creator.state.error == "Malformed directions response"

    async def test_clear(self, make_directions):
        client, _ = make_directions(directions_payload())
        creator = RouteCreator(client)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        await creator.clear()

        assert creator.state.waypoints == ()
        assert creator.state.route is None
        assert creator.state.profile is None

    async def test_clear_drops_in_flight_response(self, make_directions):
        release = asyncio.Event()
        client, _ = make_directions((directions_payload(), release))
        creator = RouteCreator(client)
        await creator.add_point((0, 0))

        task = asyncio.create_task(creator.add_point((0, 1)))
        await asyncio.sleep(0)
        await creator.clear()
        release.set()
        await task

        assert creator.state.route is None

    async def test_mode_change_reroutes(self, make_directions):
        client, script = make_directions(directions_payload())
        creator = RouteCreator(client)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        await creator.set_mode("walking")

        assert creator.state.mode is TravelMode.WALKING
        assert len(script.requests) == 2
        assert "/mapbox/walking/" in script.requests[1].url.path
        assert len(creator.state.waypoints) == 2

    async def test_remove_below_two_points(self, make_directions):
        client, script = make_directions(directions_payload())
        creator = RouteCreator(client)
        a = await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        await creator.remove_point(a.id)

        assert creator.state.route is None
        assert len(script.requests) == 1

    async def test_speed_changes(self, make_directions):
        client, _ = make_directions(directions_payload())
        creator = RouteCreator(client)

        creator.set_speed(20)
        assert creator.state.speed == SpeedSetting(speed=20, unit="mph")

        creator.toggle_unit()
        assert creator.state.speed == SpeedSetting(speed=32, unit="kph")

    async def test_profile_loads_after_terrain_ready(self, make_directions):
        client, _ = make_directions(directions_payload())
        terrain = FakeTerrain(ready=False)
        creator = RouteCreator(client, elevation=ElevationSampler(terrain), chunk_length_km=10)

        await creator.add_point((0, 0))
        await creator.add_point((0, 1))
        assert creator.state.profile_status is ProfileStatus.LOADING
        assert creator.state.profile is None

        terrain.mark_ready()
        await creator.wait_for_profile()

        state = creator.state
        assert state.profile_status is ProfileStatus.READY
        assert state.profile.stats.min_elevation == 0
        assert state.profile.stats.max_elevation == pytest.approx(1000)
        assert state.profile.stats.total_gain == pytest.approx(1000)

    async def test_profile_for_replaced_route_is_dropped(self, make_directions):
        client, _ = make_directions(directions_payload())
        terrain = FakeTerrain(ready=False)
        creator = RouteCreator(client, elevation=ElevationSampler(terrain), chunk_length_km=10)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        await creator.clear()
        terrain.mark_ready()
        await creator.wait_for_profile()

        assert creator.state.profile is None
        assert creator.state.profile_status is ProfileStatus.NONE

    async def test_terrain_crash_marks_profile_failed(self, make_directions):
        """A broken terrain source leaves the route in place without a profile."""
        client, _ = make_directions(directions_payload())
        terrain = BrokenTerrain()
        creator = RouteCreator(client, elevation=ElevationSampler(terrain), chunk_length_km=10)

        await creator.add_point((0, 0))
        await creator.add_point((0, 1))
        await creator.wait_for_profile()

        state = creator.state
        assert state.profile_status is ProfileStatus.FAILED
        assert state.profile is None
        assert state.route is not None
        assert state.error is None
        assert "failed to load elevation data" in state.format_summary()

    async def test_profile_recovers_after_failure(self, make_directions):
        client, _ = make_directions(directions_payload())
        terrain = BrokenTerrain()
        creator = RouteCreator(client, elevation=ElevationSampler(terrain), chunk_length_km=10)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))
        await creator.wait_for_profile()

        terrain.broken = False
        await creator.add_point((0, 2))
        await creator.wait_for_profile()

        assert creator.state.profile_status is ProfileStatus.READY

    async def test_save(self, make_directions):
        client, _ = make_directions(directions_payload())
        sink = MemorySink()
        creator = RouteCreator(client, sink=sink)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        route = await creator.save(SaveRouteForm(name="Evening Walk"), user_id=None)

        assert sink.saved == [route]
        assert route.owner.is_anonymous
        assert route.geometry == [(0, 0), (0, 0.5), (0, 1)]
        assert [wp.coordinates for wp in route.metadata.waypoints] == [(0, 0), (0, 1)]

    async def test_save_validates_before_writing(self, make_directions):
        client, _ = make_directions(directions_payload())
        sink = MemorySink()
        creator = RouteCreator(client, sink=sink)
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        with pytest.raises(ValidationError):
            await creator.save(SaveRouteForm(name=""))

        assert sink.saved == []

    async def test_save_without_route(self, make_directions):
        client, _ = make_directions(directions_payload())
        creator = RouteCreator(client, sink=MemorySink())

        with pytest.raises(ValidationError) as exc_info:
            await creator.save(SaveRouteForm(name="Ride"))

        assert exc_info.value.reason == NO_ROUTE

    async def test_sink_error_is_surfaced(self, make_directions):
        client, _ = make_directions(directions_payload())
        creator = RouteCreator(client, sink=MemorySink(error=PersistenceError("permission denied")))
        await creator.add_point((0, 0))
        await creator.add_point((0, 1))

        with pytest.raises(PersistenceError, match="permission denied"):
            await creator.save(SaveRouteForm(name="Ride"), user_id="user-1")

    async def test_lookups_without_collaborators(self, make_directions):
        client, _ = make_directions(directions_payload())
        creator = RouteCreator(client)

        assert await creator.search("Hyde Park") == []
        assert await creator.locate_user() is None
