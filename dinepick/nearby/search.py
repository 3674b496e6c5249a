from __future__ import annotations

import asyncio
import logging
import math

import numpy as np

from ..recommendations.candidates import Candidate
from ..recommendations.pool import dedupe_candidates
from .cache import Coordinate, NearbyScanCache, get_scan_cache
from .config import DEFAULT_NEARBY_CONFIG, NearbyConfig
from .location import LocationSource, request_current_location
from .places import PlaceHit, PlacesBackend, get_places_backend

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1_609.344
_EARTH_RADIUS_MILES = 3_958.7613


def haversine_miles(
    origin: Coordinate, latitudes: np.ndarray, longitudes: np.ndarray,
) -> np.ndarray:
    """Great-circle distance in miles from *origin* to each point."""
    lat1 = np.radians(origin.latitude)
    lon1 = np.radians(origin.longitude)
    lat2 = np.radians(latitudes)
    lon2 = np.radians(longitudes)

    a = (
        np.sin((lat2 - lat1) / 2.0) ** 2
        + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2.0) ** 2
    )
    return 2.0 * _EARTH_RADIUS_MILES * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def _is_valid(hit: PlaceHit) -> bool:
    if not hit.name or not hit.name.strip():
        return False
    if hit.latitude is None or hit.longitude is None:
        return False
    if not (math.isfinite(hit.latitude) and math.isfinite(hit.longitude)):
        return False
    return -90.0 <= hit.latitude <= 90.0 and -180.0 <= hit.longitude <= 180.0


def hits_to_candidates(origin: Coordinate, hits: list[PlaceHit]) -> list[Candidate]:
    """Turn raw provider hits into de-duplicated nearby candidates."""
    valid = [h for h in hits if _is_valid(h)]
    if not valid:
        return []

    distances = haversine_miles(
        origin,
        np.array([h.latitude for h in valid], dtype=float),
        np.array([h.longitude for h in valid], dtype=float),
    )
    candidates = [
        Candidate.from_nearby(h.name, h.latitude, h.longitude, float(d))
        for h, d in zip(valid, distances)
    ]
    return dedupe_candidates(candidates)


class NearbySearchService:
    """Finds restaurants around the user, going through the scan cache first."""

    def __init__(
        self,
        cache: NearbyScanCache | None = None,
        backend: PlacesBackend | None = None,
        config: NearbyConfig = DEFAULT_NEARBY_CONFIG,
    ) -> None:
        self._cache = cache if cache is not None else get_scan_cache()
        self._backend = backend if backend is not None else get_places_backend(config)
        self._config = config
        self.last_scan_cached = False

    def cached(
        self, center: Coordinate, radius_miles: float, now: float | None = None,
    ) -> list[Candidate] | None:
        return self._cache.lookup(center, radius_miles, now)

    async def scan(
        self,
        source: LocationSource,
        radius_miles: float,
        now: float | None = None,
    ) -> list[Candidate]:
        """Scan around the current location.

        Raises the typed errors from ``nearby.errors``; nothing is cached
        when the scan fails.
        """
        center = await request_current_location(source, self._config)

        cached = self._cache.lookup(center, radius_miles, now)
        if cached is not None:
            self.last_scan_cached = True
            return cached
        self.last_scan_cached = False

        radius_meters = max(radius_miles, self._config.min_radius_miles) * METERS_PER_MILE
        hits = await asyncio.to_thread(self._backend.search, center, radius_meters)
        candidates = hits_to_candidates(center, hits)
        logger.info(
            "Nearby scan found %d places (%d raw hits) within %.2f miles",
            len(candidates), len(hits), radius_miles,
        )

        self._cache.store(center, radius_miles, candidates, now)
        return candidates
