from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Protocol

from .cache import Coordinate
from .config import DEFAULT_NEARBY_CONFIG, NearbyConfig
from .errors import LocationServicesDisabled, PermissionDenied, TimedOut

logger = logging.getLogger(__name__)


class AuthorizationStatus(str, Enum):
    not_determined = "not_determined"
    authorized = "authorized"
    denied = "denied"
    restricted = "restricted"


class LocationSource(Protocol):
    """Platform hook that reports permission state and produces fixes."""

    def services_enabled(self) -> bool: ...

    def authorization_status(self) -> AuthorizationStatus: ...

    async def request_authorization(self) -> AuthorizationStatus:
        """Prompt for access and resolve once the user has decided."""
        ...

    def last_known(self) -> Coordinate | None: ...

    async def request_fix(self) -> Coordinate:
        """Resolve with a fresh fix or raise a ``NearbySearchError``."""
        ...


class StaticLocationSource:
    """A location the caller already knows, e.g. sent up by a client."""

    def __init__(self, coordinate: Coordinate) -> None:
        self._coordinate = coordinate

    def services_enabled(self) -> bool:
        return True

    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.authorized

    async def request_authorization(self) -> AuthorizationStatus:
        return AuthorizationStatus.authorized

    def last_known(self) -> Coordinate | None:
        return self._coordinate

    async def request_fix(self) -> Coordinate:
        return self._coordinate


async def _ensure_authorized(source: LocationSource, timeout: float) -> None:
    status = source.authorization_status()
    if status == AuthorizationStatus.not_determined:
        try:
            status = await asyncio.wait_for(source.request_authorization(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Location authorization timed out after %.1fs", timeout)
            raise TimedOut() from None

    if status != AuthorizationStatus.authorized:
        raise PermissionDenied()


async def request_current_location(
    source: LocationSource,
    config: NearbyConfig = DEFAULT_NEARBY_CONFIG,
) -> Coordinate:
    """Resolve the current location or raise one of the typed nearby errors.

    The authorization prompt and the location fix each get their own
    timeout; the pending wait is cancelled when it expires.
    """
    if not source.services_enabled():
        raise LocationServicesDisabled()

    await _ensure_authorized(source, config.authorization_timeout)

    cached = source.last_known()
    if cached is not None:
        return cached

    try:
        return await asyncio.wait_for(source.request_fix(), config.location_timeout)
    except asyncio.TimeoutError:
        logger.warning("Location fix timed out after %.1fs", config.location_timeout)
        raise TimedOut() from None
