from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")


@dataclass(frozen=True)
class NearbyConfig:
    cache_ttl: float = 10 * 60
    authorization_timeout: float = 12.0
    location_timeout: float = 12.0
    min_radius_miles: float = 0.25
    default_radius_miles: float = 2.0
    max_results: int = 20
    places_api_key: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    places_url: str = "https://places.googleapis.com/v1/places:searchNearby"
    request_timeout: float = 10.0
    enabled: bool = True


DEFAULT_NEARBY_CONFIG = NearbyConfig()
