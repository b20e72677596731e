"""Route state models: waypoints, routed paths, speed and elevation."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator


# Coordinates are always (longitude, latitude), matching GeoJSON
LonLat = tuple[float, float]


def _check_lon_lat(coords: LonLat) -> LonLat:
    lon, lat = coords
    if not -180 <= lon <= 180:
        raise ValueError(f"longitude out of range: {lon}")
    if not -90 <= lat <= 90:
        raise ValueError(f"latitude out of range: {lat}")
    return (float(lon), float(lat))


class TravelMode(str, Enum):
    """Travel modes supported by the directions provider."""
    CYCLING = "cycling"
    WALKING = "walking"


class SpeedUnit(str, Enum):
    """Units for the average speed setting."""
    MPH = "mph"
    KPH = "kph"


class Waypoint(BaseModel):
    """A user-placed point the route passes through, in sequence order."""

    id: str = Field(..., min_length=1)
    coordinates: LonLat = Field(
        ...,
        description="Point as (longitude, latitude)"
    )

    @field_validator("coordinates")
    @classmethod
    def _valid_coordinates(cls, value: LonLat) -> LonLat:
        return _check_lon_lat(value)

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "5f0c7a8e2b6d4e1f9a3c0b7d6e5f4a3b",
                "coordinates": (-0.1276, 51.5072),
            }
        }


class RoutedPath(BaseModel):
    """Provider-returned geometry with aggregate distance and duration."""

    distance_meters: float = Field(..., ge=0)
    duration_seconds: float = Field(..., ge=0)
    geometry: list[LonLat] = Field(..., min_length=2)

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "distance_meters": 1000.0,
                "duration_seconds": 300.0,
                "geometry": [(0.0, 0.0), (0.0, 0.5), (0.0, 1.0)],
            }
        }


class SpeedSetting(BaseModel):
    """User-adjustable average speed."""

    speed: float = Field(..., gt=0)
    unit: SpeedUnit = SpeedUnit.MPH

    class Config:
        frozen = True


class TimeEstimate(BaseModel):
    """Travel time split into whole hours and minutes."""

    hours: int = Field(..., ge=0)
    minutes: int = Field(..., ge=0, le=59)

    @property
    def total_minutes(self) -> int:
        return self.hours * 60 + self.minutes

    class Config:
        frozen = True


class ElevationSample(BaseModel):
    """Elevation at a distance along the route."""

    distance_from_start_km: float = Field(..., ge=0)
    elevation_meters: float

    class Config:
        frozen = True


class ElevationStats(BaseModel):
    """Summary statistics over an elevation profile."""

    min_elevation: float
    max_elevation: float
    total_gain: float = Field(..., ge=0)

    class Config:
        frozen = True


class ElevationProfile(BaseModel):
    """Sampled elevation profile of a routed path.

    ``stats`` is None when there are no samples, so an empty profile is
    never mistaken for a flat route.
    """

    samples: list[ElevationSample] = Field(default_factory=list)
    stats: ElevationStats | None = None

    @property
    def is_empty(self) -> bool:
        return not self.samples

    class Config:
        frozen = True
