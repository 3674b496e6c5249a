from __future__ import annotations


class NearbySearchError(Exception):
    """Base class for failures while scanning for nearby restaurants."""

    message = "Nearby scan failed."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class LocationServicesDisabled(NearbySearchError):
    message = (
        "Location Services are disabled. Enable them to scan nearby restaurants."
    )


class PermissionDenied(NearbySearchError):
    message = (
        "Location permission is denied or restricted. "
        "Allow location access to scan nearby restaurants."
    )


class LocationUnavailable(NearbySearchError):
    message = "Current location is unavailable. Try again in a moment."


class TimedOut(NearbySearchError):
    message = "Nearby scan timed out. Check location permission and try again."


class PlacesBackendError(NearbySearchError):
    message = "The places provider could not be reached."
