"""
Error taxonomy.

Only ``InvalidCoordinateError`` and ``MissingCredentialError`` are meant to
reach the user.  Everything else is recovered where it happens and degrades
to a usable fallback value (straight-line route, zero clicks, default
location).
"""


class ShelterGuideError(Exception):
    """Base class for all domain errors."""


class InvalidCoordinateError(ShelterGuideError, ValueError):
    """A coordinate lies outside the valid latitude / longitude range."""

    def __init__(self, role: str, latitude: float, longitude: float):
        self.role = role
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(
            f"Invalid {role} coordinate: ({latitude}, {longitude})"
        )


class MissingCredentialError(ShelterGuideError):
    """The directions provider API key is not configured."""


class RouteProviderError(ShelterGuideError):
    """Network failure or non-success response from the directions provider."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class StorageUnavailableError(ShelterGuideError):
    """The key-value backend could not be read or written."""


class LocationUnavailableError(ShelterGuideError):
    """Device location was denied, timed out, or is unsupported."""
