"""Clients for the external services used while creating a route."""

from .directions import DirectionsClient
from .geocoding import MapboxGeocoder
from .geolocation import GeolocationSource, IpGeolocationSource, locate_user
from .storage import RouteSink, SupabaseRouteSink, JsonFileRouteSink
from .terrain import TerrainSource, MapboxTerrainSource

__all__ = [
    "DirectionsClient",
    "MapboxGeocoder",
    "GeolocationSource",
    "IpGeolocationSource",
    "locate_user",
    "RouteSink",
    "SupabaseRouteSink",
    "JsonFileRouteSink",
    "TerrainSource",
    "MapboxTerrainSource",
]
