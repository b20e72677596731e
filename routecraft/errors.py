"""Error types raised by the route creator."""


class RouteCreatorError(Exception):
    """Base class for route creator errors."""


class ProviderError(RouteCreatorError):
    """A directions or geocoding provider failed or returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, details: str | None = None):
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class NoRouteFound(RouteCreatorError):
    """The provider answered but returned no usable route."""


class RequestSuperseded(RouteCreatorError):
    """A newer directions request was issued before this one completed."""

    def __init__(self, token: int, latest_token: int):
        self.token = token
        self.latest_token = latest_token
        super().__init__(f"Request {token} superseded by {latest_token}")


class TerrainUnavailable(RouteCreatorError):
    """Elevation could not be read for a coordinate."""


class ValidationError(RouteCreatorError):
    """Save-time input is missing or invalid."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class PersistenceError(RouteCreatorError):
    """The storage sink rejected a route."""
