"""
Geo-bucketed cache for nearby scans.

Scan requests are keyed by a coarsened center and radius so that small GPS
jitter between two scans lands in the same entry. Entries expire purely on
age; nothing is evicted for memory pressure.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import NamedTuple

from ..recommendations.candidates import Candidate
from .config import DEFAULT_NEARBY_CONFIG

logger = logging.getLogger(__name__)


class Coordinate(NamedTuple):
    latitude: float
    longitude: float


def _bucket(value: float) -> int:
    # halves round away from zero, so 0.25 miles lands in bucket 3
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


class ScanKey(NamedTuple):
    lat_bucket: int
    lon_bucket: int
    radius_bucket: int

    @classmethod
    def from_request(cls, center: Coordinate, radius_miles: float) -> ScanKey:
        return cls(
            _bucket(center.latitude * 1_000),
            _bucket(center.longitude * 1_000),
            _bucket(radius_miles * 10),
        )


@dataclass(frozen=True)
class ScanCacheEntry:
    fetched_at: float
    results: list[Candidate]


class NearbyScanCache:
    """TTL cache of scan results; every access goes through one lock.

    Racing stores for the same bucket are last-write-wins, which is fine
    because both writers ran the same external query.
    """

    def __init__(self, ttl: float = DEFAULT_NEARBY_CONFIG.cache_ttl) -> None:
        self._ttl = ttl
        self._entries: dict[ScanKey, ScanCacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def _is_live(self, entry: ScanCacheEntry, now: float) -> bool:
        return now - entry.fetched_at < self._ttl

    def lookup(
        self,
        center: Coordinate,
        radius_miles: float,
        now: float | None = None,
    ) -> list[Candidate] | None:
        now = time.time() if now is None else now
        key = ScanKey.from_request(center, radius_miles)
        with self._lock:
            entry = self._entries.get(key)
            if entry and self._is_live(entry, now):
                self._hits += 1
                logger.debug("Scan cache hit for %s", key)
                return entry.results
            if entry:
                del self._entries[key]
            self._misses += 1
            return None

    def store(
        self,
        center: Coordinate,
        radius_miles: float,
        results: list[Candidate],
        now: float | None = None,
    ) -> None:
        now = time.time() if now is None else now
        key = ScanKey.from_request(center, radius_miles)
        with self._lock:
            self._entries[key] = ScanCacheEntry(fetched_at=now, results=list(results))

    def clear_expired(self, now: float | None = None) -> int:
        """Drop every stale entry; returns how many were removed."""
        now = time.time() if now is None else now
        with self._lock:
            stale = [k for k, e in self._entries.items() if not self._is_live(e, now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._entries),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0


_scan_cache = NearbyScanCache()


def get_scan_cache() -> NearbyScanCache:
    return _scan_cache


def get_cache_stats() -> dict:
    return _scan_cache.stats()


def clear_cache() -> None:
    _scan_cache.clear()
