from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from .candidates import normalized_name
from .config import DEFAULT_PICKER_CONFIG
from .models import RestaurantRecord, VisitRecord

logger = logging.getLogger(__name__)

_restaurants: dict[str, RestaurantRecord] | None = None
_visits: list[VisitRecord] = []


def _parse_cuisines(value: Any) -> list[str]:
    if pd.isna(value):
        return []
    return [c.strip() for c in str(value).split(",") if c.strip()]


def _optional(value: Any) -> Any | None:
    return None if pd.isna(value) else value


def load_seed(path: Path, now: datetime | None = None) -> list[RestaurantRecord]:
    """Read the seed CSV into restaurant records.

    ``last_visited_days_ago`` is relative so the seed stays meaningful
    whenever it is loaded.
    """
    now = now or datetime.now(timezone.utc)
    df = pd.read_csv(path)

    records: list[RestaurantRecord] = []
    for _, row in df.iterrows():
        days_ago = _optional(row.get("last_visited_days_ago"))
        rating = _optional(row.get("user_rating"))
        distance = _optional(row.get("distance_miles"))
        records.append(RestaurantRecord(
            name=str(row["name"]).strip(),
            cuisines=_parse_cuisines(row.get("cuisines")),
            price_level=int(row.get("price_level", 1)),
            distance_miles=float(distance) if distance is not None else None,
            is_favorite=bool(row.get("is_favorite", False)),
            is_new=bool(row.get("is_new", True)),
            last_visited=(
                now - timedelta(days=float(days_ago)) if days_ago is not None else None
            ),
            visit_count=int(row.get("visit_count", 0)),
            user_rating=int(rating) if rating is not None else None,
        ))
    return records


def _store() -> dict[str, RestaurantRecord]:
    global _restaurants
    if _restaurants is None:
        records = load_seed(DEFAULT_PICKER_CONFIG.seed_path)
        _restaurants = {r.id: r for r in records}
        logger.info("Seeded %d restaurants", len(records))
    return _restaurants


def reset_store(seed: bool = True) -> None:
    """Drop all restaurants and visits; reseed lazily unless *seed* is False."""
    global _restaurants
    _restaurants = None if seed else {}
    _visits.clear()


# ── Restaurants ──────────────────────────────────────────────────────────


def get_restaurants() -> list[RestaurantRecord]:
    return list(_store().values())


def get_restaurant(restaurant_id: str) -> RestaurantRecord | None:
    return _store().get(restaurant_id)


def find_restaurant_by_name(name: str) -> RestaurantRecord | None:
    target = normalized_name(name)
    for record in _store().values():
        if normalized_name(record.name) == target:
            return record
    return None


def add_restaurant(record: RestaurantRecord) -> RestaurantRecord:
    _store()[record.id] = record
    return record


def update_restaurant(restaurant_id: str, changes: dict[str, Any]) -> RestaurantRecord | None:
    """Apply *changes* through validation; returns ``None`` for unknown ids."""
    store = _store()
    current = store.get(restaurant_id)
    if current is None:
        return None
    updated = RestaurantRecord.model_validate({**current.model_dump(), **changes})
    store[restaurant_id] = updated
    return updated


def delete_restaurant(restaurant_id: str) -> bool:
    return _store().pop(restaurant_id, None) is not None


# ── Visits ───────────────────────────────────────────────────────────────


def get_visits() -> list[VisitRecord]:
    """Visits, most recent first."""
    return sorted(_visits, key=lambda v: v.date, reverse=True)


def record_visit(
    restaurant_id: str,
    when: datetime | None = None,
    rating: int | None = None,
) -> VisitRecord | None:
    """Log a visit and bump the restaurant's history. ``None`` if unknown."""
    store = _store()
    record = store.get(restaurant_id)
    if record is None:
        return None

    when = when or datetime.now(timezone.utc)
    visit = VisitRecord(restaurant_id=restaurant_id, date=when, rating=rating)
    _visits.append(visit)

    store[restaurant_id] = record.model_copy(update={
        "last_visited": when,
        "visit_count": record.visit_count + 1,
        "is_new": False,
    })
    return visit


def rate_visit(visit_id: str, rating: int) -> VisitRecord | None:
    """Set a visit's rating and sync the restaurant to its latest rated visit."""
    for index, visit in enumerate(_visits):
        if visit.id == visit_id:
            break
    else:
        return None

    rated = VisitRecord.model_validate({**visit.model_dump(), "rating": rating})
    _visits[index] = rated

    store = _store()
    record = store.get(rated.restaurant_id)
    if record is not None:
        latest = next(
            (
                v for v in get_visits()
                if v.restaurant_id == rated.restaurant_id and v.rating is not None
            ),
            None,
        )
        store[record.id] = record.model_copy(
            update={"user_rating": latest.rating if latest else None}
        )
    return rated
