from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

from .candidates import Candidate
from .config import DEFAULT_PICKER_CONFIG, PickerConfig

if TYPE_CHECKING:
    from .models import VisitRecord

_SECONDS_PER_DAY = 86_400.0


class NoveltyMode(str, Enum):
    safe = "safe"
    balanced = "balanced"
    adventure = "adventure"

    @property
    def multiplier(self) -> float:
        return _NOVELTY_MULTIPLIERS[self]


_NOVELTY_MULTIPLIERS: dict[NoveltyMode, float] = {
    NoveltyMode.safe: 0.5,
    NoveltyMode.balanced: 1.0,
    NoveltyMode.adventure: 1.9,
}


def recent_cuisines(
    visits: Iterable[VisitRecord],
    pool: Iterable[Candidate],
    now: datetime,
    days: int = DEFAULT_PICKER_CONFIG.cuisine_fatigue_days,
) -> set[str]:
    """Lowercased cuisines of pool restaurants visited within the last *days*."""
    cutoff = now - timedelta(days=days)
    by_saved_id = {c.saved_restaurant_id: c for c in pool if c.saved_restaurant_id}
    eaten: set[str] = set()
    for visit in visits:
        if visit.date < cutoff:
            continue
        candidate = by_saved_id.get(visit.restaurant_id)
        if candidate is not None:
            eaten.update(c.lower() for c in candidate.cuisines)
    return eaten


def _novelty_days(candidate: Candidate, now: datetime, config: PickerConfig) -> float:
    if candidate.last_visited is None:
        return config.never_visited_days
    return max(0.0, (now - candidate.last_visited).total_seconds() / _SECONDS_PER_DAY)


def score_candidate(
    candidate: Candidate,
    recent: set[str],
    novelty_mode: NoveltyMode,
    now: datetime,
    config: PickerConfig = DEFAULT_PICKER_CONFIG,
) -> float:
    """Compute the raw preference score for one candidate.

    The result is not floored; callers clamp it to ``config.min_weight``
    before sampling.
    """
    score = 1.0

    if candidate.is_favorite:
        score += config.favorite_bonus

    if candidate.user_rating == 1:
        score += config.like_bonus
    elif candidate.user_rating == 0:
        score += config.neutral_bonus
    elif candidate.user_rating == -1:
        score -= config.dislike_penalty

    if any(c.lower() in recent for c in candidate.cuisines):
        score -= config.cuisine_fatigue_penalty

    novelty = min(_novelty_days(candidate, now, config) / 30.0, config.novelty_cap)
    if candidate.is_new:
        novelty += config.is_new_bonus
    score += novelty * novelty_mode.multiplier

    if candidate.visit_count > 0:
        score -= min(candidate.visit_count * config.visit_decay_rate, config.visit_decay_cap)

    return score
