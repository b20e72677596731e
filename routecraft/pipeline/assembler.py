"""Package the current route into a record for storage."""

from datetime import datetime, timezone
from typing import Sequence

from routecraft.errors import ValidationError
from routecraft.models import (
    OwnerReference,
    RouteMetadata,
    RoutedPath,
    SaveableRoute,
    SaveRouteForm,
    SpeedSetting,
    TravelMode,
    Waypoint,
)

NAME_REQUIRED = "name required"
NO_ROUTE = "no route"


def assemble(
    waypoints: Sequence[Waypoint],
    routed_path: RoutedPath | None,
    speed_setting: SpeedSetting,
    form: SaveRouteForm,
    owner: OwnerReference,
    mode: TravelMode | str = TravelMode.CYCLING,
    now: datetime | None = None,
) -> SaveableRoute:
    """
    Build a SaveableRoute from the current editing state.

    Args:
        waypoints: Current waypoints, in order
        routed_path: The current routed path, if any
        speed_setting: Current speed setting
        form: Name, description, category and privacy entered by the user
        owner: Authenticated or anonymous owner
        mode: Travel mode the route was planned for
        now: Creation time, defaults to the current UTC time

    Raises:
        ValidationError: Blank name ("name required") or no routed path
            ("no route"). The name is checked first.
    """
    name = form.name.strip()
    if not name:
        raise ValidationError(NAME_REQUIRED)

    if routed_path is None or not routed_path.geometry:
        raise ValidationError(NO_ROUTE)

    description = (form.description or "").strip() or None

    return SaveableRoute(
        name=name,
        description=description,
        category=form.category,
        is_private=form.is_private,
        mode=TravelMode(mode),
        geometry=list(routed_path.geometry),
        distance_meters=routed_path.distance_meters,
        duration_seconds=routed_path.duration_seconds,
        owner=owner,
        metadata=RouteMetadata(
            waypoints=list(waypoints),
            speed_setting=speed_setting,
            created_at=now or datetime.now(timezone.utc),
        ),
    )
