"""Models for saving a finished route."""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .route import LonLat, SpeedSetting, TravelMode, Waypoint


class RouteCategory(str, Enum):
    """What the route is used for."""
    LEISURE = "leisure"
    TRAINING = "training"
    COMMUTE = "commute"


class SearchResult(BaseModel):
    """A geocoding candidate."""
    text: str
    center: LonLat


class SaveRouteForm(BaseModel):
    """User input collected when saving a route."""

    name: str = ""
    description: str | None = None
    category: RouteCategory = RouteCategory.LEISURE
    is_private: bool = False

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Morning Ride",
                "description": "Loop along the river",
                "category": "leisure",
                "is_private": False,
            }
        }


class OwnerReference(BaseModel):
    """Owner of a saved route: an authenticated user or an anonymous id, never both."""

    user_id: str | None = None
    anonymous_id: str | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> "OwnerReference":
        if bool(self.user_id) == bool(self.anonymous_id):
            raise ValueError("exactly one of user_id or anonymous_id must be set")
        return self

    @property
    def is_anonymous(self) -> bool:
        return self.anonymous_id is not None

    @classmethod
    def resolve(cls, user_id: str | None = None) -> "OwnerReference":
        """Reference the authenticated user, or generate a fresh anonymous id."""
        if user_id:
            return cls(user_id=user_id)
        return cls(anonymous_id=str(uuid.uuid4()))

    class Config:
        frozen = True


class RouteMetadata(BaseModel):
    """Snapshot of the editing state stored alongside a route."""

    waypoints: list[Waypoint]
    speed_setting: SpeedSetting
    created_at: datetime

    class Config:
        frozen = True


class SaveableRoute(BaseModel):
    """A finished route, ready for the storage sink."""

    name: str = Field(..., min_length=1)
    description: str | None = None
    category: RouteCategory
    is_private: bool = False
    mode: TravelMode
    geometry: list[LonLat] = Field(..., min_length=2)
    distance_meters: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    owner: OwnerReference
    metadata: RouteMetadata

    @property
    def created_at(self) -> datetime:
        return self.metadata.created_at

    def to_row(self) -> dict[str, Any]:
        """Flatten into the shape of a ``routes`` table row."""
        return {
            "user_id": self.owner.user_id,
            "anonymous_id": self.owner.anonymous_id,
            "name": self.name,
            "description": self.description,
            "route_type": self.category.value,
            "activity_type": self.mode.value,
            "route_geometry": {
                "type": "LineString",
                "coordinates": [list(c) for c in self.geometry],
            },
            "distance": self.distance_meters,
            "estimated_duration": self.duration_seconds,
            "is_private": self.is_private,
            "metadata": {
                "points": [
                    {"id": wp.id, "coordinates": list(wp.coordinates)}
                    for wp in self.metadata.waypoints
                ],
                "speed_settings": {
                    "speed": self.metadata.speed_setting.speed,
                    "unit": self.metadata.speed_setting.unit.value,
                },
                "created_at": self.metadata.created_at.isoformat(),
            },
        }

    class Config:
        frozen = True
