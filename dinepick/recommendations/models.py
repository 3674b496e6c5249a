from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from .candidates import Candidate, CandidateSource
from .scoring import NoveltyMode


def _normalize_rating(value: int | None) -> int | None:
    if value is None:
        return None
    return value if value in (-1, 0, 1) else None


def _new_id() -> str:
    return str(uuid.uuid4())


# ── Persisted records ────────────────────────────────────────────────────


class RestaurantRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str = ""
    cuisines: list[str] = Field(default_factory=list)
    price_level: int = 1
    distance_miles: float | None = None
    is_favorite: bool = False
    is_new: bool = True
    last_visited: datetime | None = None
    visit_count: int = 0
    user_rating: int | None = None

    @field_validator("price_level")
    @classmethod
    def _clamp_price(cls, v: int) -> int:
        return min(max(v, 1), 4)

    @field_validator("visit_count")
    @classmethod
    def _clamp_visits(cls, v: int) -> int:
        return max(v, 0)

    @field_validator("user_rating")
    @classmethod
    def _check_rating(cls, v: int | None) -> int | None:
        return _normalize_rating(v)


class VisitRecord(BaseModel):
    id: str = Field(default_factory=_new_id)
    restaurant_id: str
    date: datetime
    rating: int | None = None

    @field_validator("rating")
    @classmethod
    def _check_rating(cls, v: int | None) -> int | None:
        return _normalize_rating(v)


# ── API payloads ─────────────────────────────────────────────────────────


class RestaurantCreate(BaseModel):
    name: str = Field(..., min_length=1)
    cuisines: list[str] = Field(default_factory=list)
    price_level: int = Field(default=2, ge=1, le=4)
    distance_miles: float | None = Field(default=None, ge=0.0)
    is_favorite: bool = False
    is_new: bool = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v

    @field_validator("cuisines")
    @classmethod
    def _clean_cuisines(cls, v: list[str]) -> list[str]:
        return [c.strip() for c in v if c.strip()]


class RestaurantUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    cuisines: list[str] | None = None
    price_level: int | None = Field(default=None, ge=1, le=4)
    distance_miles: float | None = Field(default=None, ge=0.0)
    is_favorite: bool | None = None
    is_new: bool | None = None

    @field_validator("name", "cuisines", "price_level", "is_favorite", "is_new")
    @classmethod
    def _reject_null(cls, v):
        # only distance_miles can be cleared; leave a field out to keep it
        if v is None:
            raise ValueError("field cannot be null")
        return v


class VisitRatingRequest(BaseModel):
    rating: int = Field(..., ge=-1, le=1)


class PickRequest(BaseModel):
    cuisines: list[str] = Field(default_factory=list)
    max_distance_miles: float | None = Field(default=None, gt=0.0)
    novelty_mode: NoveltyMode = NoveltyMode.balanced
    include_nearby: bool = False
    only_nearby: bool = False
    vetoed_ids: list[str] = Field(
        default_factory=list, description="Saved restaurant ids to leave out"
    )
    seed: int | None = Field(
        default=None, description="Fixed seed for a reproducible draw"
    )


class CandidateOut(BaseModel):
    id: str
    name: str
    cuisines: list[str]
    price_level: int | None
    distance_miles: float | None
    source: CandidateSource
    saved_restaurant_id: str | None
    is_favorite: bool
    is_new: bool
    user_rating: int | None

    @classmethod
    def from_candidate(cls, candidate: Candidate) -> CandidateOut:
        return cls(
            id=candidate.id,
            name=candidate.name,
            cuisines=list(candidate.cuisines),
            price_level=candidate.price_level,
            distance_miles=(
                round(candidate.distance_miles, 2)
                if candidate.distance_miles is not None
                else None
            ),
            source=candidate.source,
            saved_restaurant_id=candidate.saved_restaurant_id,
            is_favorite=candidate.is_favorite,
            is_new=candidate.is_new,
            user_rating=candidate.user_rating,
        )


class PickItem(BaseModel):
    candidate: CandidateOut
    weight: float


class PickResponse(BaseModel):
    picks: list[PickItem]
    pool_size: int
    novelty_mode: NoveltyMode


class VetoRequest(BaseModel):
    candidate_id: str = Field(..., min_length=1)


class ChooseRequest(BaseModel):
    candidate_id: str = Field(..., min_length=1)


class ChooseResponse(BaseModel):
    status: str
    restaurant: RestaurantRecord
    visit: VisitRecord | None = None


class NearbyScanRequest(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    radius_miles: float = Field(default=2.0, gt=0.0, le=25.0)


class NearbyResponse(BaseModel):
    candidates: list[CandidateOut]
    last_updated: datetime | None = None
    is_fresh: bool = False
