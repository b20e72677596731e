"""Data models for route creation."""

from .route import (
    LonLat,
    TravelMode,
    SpeedUnit,
    Waypoint,
    RoutedPath,
    SpeedSetting,
    TimeEstimate,
    ElevationSample,
    ElevationStats,
    ElevationProfile,
)
from .record import (
    RouteCategory,
    SearchResult,
    SaveRouteForm,
    OwnerReference,
    RouteMetadata,
    SaveableRoute,
)

__all__ = [
    "LonLat",
    "TravelMode",
    "SpeedUnit",
    "Waypoint",
    "RoutedPath",
    "SpeedSetting",
    "TimeEstimate",
    "ElevationSample",
    "ElevationStats",
    "ElevationProfile",
    "RouteCategory",
    "SearchResult",
    "SaveRouteForm",
    "OwnerReference",
    "RouteMetadata",
    "SaveableRoute",
]
