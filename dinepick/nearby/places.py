from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from pydantic import BaseModel

from .cache import Coordinate
from .config import DEFAULT_NEARBY_CONFIG, NearbyConfig
from .errors import PlacesBackendError

logger = logging.getLogger(__name__)

_FIELD_MASK = "places.id,places.displayName,places.location"


class PlaceHit(BaseModel):
    name: str | None = None
    latitude: float | None = None
    longitude: float | None = None


class PlacesBackend(Protocol):
    def search(self, center: Coordinate, radius_meters: float) -> list[PlaceHit]: ...


class NullPlacesBackend:
    """Used when no provider is configured; every scan comes back empty."""

    def search(self, center: Coordinate, radius_meters: float) -> list[PlaceHit]:
        return []


def _parse_place(place: dict[str, Any]) -> PlaceHit:
    display_name = place.get("displayName") or {}
    location = place.get("location") or {}
    return PlaceHit(
        name=display_name.get("text"),
        latitude=location.get("latitude"),
        longitude=location.get("longitude"),
    )


class GooglePlacesBackend:
    """Restaurant search through the Google Places ``searchNearby`` API."""

    def __init__(self, config: NearbyConfig = DEFAULT_NEARBY_CONFIG) -> None:
        self._config = config

    def search(self, center: Coordinate, radius_meters: float) -> list[PlaceHit]:
        payload = {
            "includedTypes": ["restaurant"],
            "maxResultCount": self._config.max_results,
            "locationRestriction": {
                "circle": {
                    "center": {
                        "latitude": center.latitude,
                        "longitude": center.longitude,
                    },
                    # the API caps the radius at 50km
                    "radius": min(radius_meters, 50_000.0),
                }
            },
        }
        headers = {
            "X-Goog-Api-Key": self._config.places_api_key,
            "X-Goog-FieldMask": _FIELD_MASK,
        }
        try:
            response = requests.post(
                self._config.places_url,
                json=payload,
                headers=headers,
                timeout=self._config.request_timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Places search failed", exc_info=True)
            raise PlacesBackendError() from exc

        return [_parse_place(p) for p in data.get("places", [])]


def get_places_backend(config: NearbyConfig = DEFAULT_NEARBY_CONFIG) -> PlacesBackend:
    if not config.enabled or not config.places_api_key:
        return NullPlacesBackend()
    return GooglePlacesBackend(config)
