"""Ordered waypoint collection."""

import uuid
from typing import Callable, Iterator

from routecraft.models import LonLat, SearchResult, Waypoint

Listener = Callable[[], None]


class WaypointStore:
    """
    Ordered set of route waypoints.

    Order is the sequence order; there is no separate rank field. Every
    mutation notifies subscribed listeners exactly once.
    """

    def __init__(self):
        self._waypoints: list[Waypoint] = []
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self._waypoints)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self.snapshot())

    @property
    def count(self) -> int:
        return len(self._waypoints)

    @property
    def can_route(self) -> bool:
        """A route needs at least two waypoints."""
        return len(self._waypoints) >= 2

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _changed(self) -> None:
        for listener in self._listeners:
            listener()

    def _new_id(self) -> str:
        taken = {wp.id for wp in self._waypoints}
        while True:
            waypoint_id = uuid.uuid4().hex
            if waypoint_id not in taken:
                return waypoint_id

    def _index_of(self, waypoint_id: str) -> int:
        for i, wp in enumerate(self._waypoints):
            if wp.id == waypoint_id:
                return i
        raise KeyError(waypoint_id)

    def get(self, waypoint_id: str) -> Waypoint:
        return self._waypoints[self._index_of(waypoint_id)]

    def snapshot(self) -> tuple[Waypoint, ...]:
        """Read-only view of the current waypoints, in order."""
        return tuple(self._waypoints)

    def coordinates(self) -> list[LonLat]:
        return [wp.coordinates for wp in self._waypoints]

    def add(self, coordinates: LonLat) -> Waypoint:
        """Append a new waypoint at the end of the route."""
        waypoint = Waypoint(id=self._new_id(), coordinates=coordinates)
        self._waypoints.append(waypoint)
        self._changed()
        return waypoint

    def insert_from_search(self, result: SearchResult | LonLat) -> Waypoint:
        """Append a search result as a new trailing waypoint."""
        if isinstance(result, SearchResult):
            return self.add(result.center)
        return self.add(result)

    def update_position(self, waypoint_id: str, coordinates: LonLat) -> Waypoint:
        """Move an existing waypoint; its position in the order is unchanged."""
        index = self._index_of(waypoint_id)
        moved = Waypoint(id=waypoint_id, coordinates=coordinates)
        self._waypoints[index] = moved
        self._changed()
        return moved

    def remove(self, waypoint_id: str) -> Waypoint:
        index = self._index_of(waypoint_id)
        removed = self._waypoints.pop(index)
        self._changed()
        return removed

    def clear(self) -> None:
        self._waypoints = []
        self._changed()
