from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from .models import RestaurantRecord


class CandidateSource(str, Enum):
    saved = "saved"
    nearby = "nearby"


def normalized_name(name: str) -> str:
    """Trimmed, lowercased name used to match nearby places against saved ones."""
    return name.strip().lower()


def _identity_name(name: str) -> str:
    return " ".join(name.lower().split())


def _coordinate_key(value: float) -> str:
    # 5dp is roughly a metre, so repeat scans of one place share an id
    return f"{value:.5f}"


class Candidate(BaseModel):
    """A restaurant under consideration, saved or freshly discovered."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    cuisines: list[str] = Field(default_factory=list)
    price_level: int | None = None
    distance_miles: float | None = None
    latitude: float | None = None
    longitude: float | None = None
    source: CandidateSource
    saved_restaurant_id: str | None = None
    last_visited: datetime | None = None
    visit_count: int = Field(default=0, ge=0)
    is_favorite: bool = False
    is_new: bool = False
    user_rating: int | None = None

    @classmethod
    def from_saved(cls, record: RestaurantRecord) -> Candidate:
        return cls(
            id=f"saved|{record.id.lower()}",
            name=record.name,
            cuisines=list(record.cuisines),
            price_level=record.price_level,
            distance_miles=record.distance_miles,
            source=CandidateSource.saved,
            saved_restaurant_id=record.id,
            last_visited=record.last_visited,
            visit_count=record.visit_count,
            is_favorite=record.is_favorite,
            is_new=record.is_new,
            user_rating=record.user_rating,
        )

    @classmethod
    def from_nearby(
        cls,
        name: str,
        latitude: float,
        longitude: float,
        distance_miles: float | None = None,
    ) -> Candidate:
        identity = "|".join(
            [_identity_name(name), _coordinate_key(latitude), _coordinate_key(longitude)]
        )
        return cls(
            id=identity,
            name=name.strip(),
            distance_miles=distance_miles,
            latitude=latitude,
            longitude=longitude,
            source=CandidateSource.nearby,
            is_new=True,
        )
