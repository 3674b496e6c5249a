from __future__ import annotations

import logging
import random
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from .candidates import Candidate
from .config import DEFAULT_PICKER_CONFIG, PickerConfig
from .sampler import weighted_sample
from .scoring import NoveltyMode, recent_cuisines, score_candidate

if TYPE_CHECKING:
    from .models import VisitRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Candidate
    weight: float


def _recently_visited_ids(
    visits: Iterable[VisitRecord], now: datetime, days: int,
) -> set[str]:
    cutoff = now - timedelta(days=days)
    return {v.restaurant_id for v in visits if v.date >= cutoff}


def _passes_filters(
    candidate: Candidate,
    cuisines_lower: set[str],
    max_distance_miles: float | None,
    vetoed_ids: Collection[str],
    recently_visited: set[str],
) -> bool:
    saved_id = candidate.saved_restaurant_id
    if saved_id is not None:
        if saved_id in vetoed_ids or saved_id in recently_visited:
            return False

    # Untagged candidates (typically nearby hits) skip the cuisine filter.
    if cuisines_lower and candidate.cuisines:
        if not cuisines_lower & {c.lower() for c in candidate.cuisines}:
            return False

    if (
        max_distance_miles is not None
        and candidate.distance_miles is not None
        and candidate.distance_miles > max_distance_miles
    ):
        return False

    return True


def score_pool(
    selected_cuisines: Iterable[str],
    max_distance_miles: float | None,
    novelty_mode: NoveltyMode,
    vetoed_ids: Collection[str],
    visits: Sequence[VisitRecord],
    pool: Sequence[Candidate],
    now: datetime,
    config: PickerConfig = DEFAULT_PICKER_CONFIG,
) -> list[ScoredCandidate]:
    """Apply the hard filters and weight every surviving candidate."""
    cuisines_lower = {c.strip().lower() for c in selected_cuisines if c.strip()}
    recently_visited = _recently_visited_ids(visits, now, config.anti_repeat_days)
    recent = recent_cuisines(visits, pool, now, config.cuisine_fatigue_days)

    scored: list[ScoredCandidate] = []
    for candidate in pool:
        if not _passes_filters(
            candidate, cuisines_lower, max_distance_miles, vetoed_ids, recently_visited,
        ):
            continue
        raw = score_candidate(candidate, recent, novelty_mode, now, config)
        scored.append(ScoredCandidate(candidate, max(config.min_weight, raw)))

    logger.debug("Scored %d of %d candidates", len(scored), len(pool))
    return scored


def rank(
    selected_cuisines: Iterable[str],
    max_distance_miles: float | None,
    novelty_mode: NoveltyMode,
    vetoed_ids: Collection[str],
    visits: Sequence[VisitRecord],
    pool: Sequence[Candidate],
    now: datetime,
    rng: random.Random,
    k: int = DEFAULT_PICKER_CONFIG.top_k,
    config: PickerConfig = DEFAULT_PICKER_CONFIG,
) -> list[ScoredCandidate]:
    """Filter, score and sample; picks keep the weight they were drawn with."""
    scored = score_pool(
        selected_cuisines, max_distance_miles, novelty_mode, vetoed_ids,
        visits, pool, now, config,
    )
    return weighted_sample([(s, s.weight) for s in scored], k, rng)


def top_k(
    selected_cuisines: Iterable[str],
    max_distance_miles: float | None,
    novelty_mode: NoveltyMode,
    vetoed_ids: Collection[str],
    visits: Sequence[VisitRecord],
    pool: Sequence[Candidate],
    now: datetime,
    rng: random.Random,
    k: int = DEFAULT_PICKER_CONFIG.top_k,
    config: PickerConfig = DEFAULT_PICKER_CONFIG,
) -> list[Candidate]:
    """Return up to *k* distinct picks from *pool*, in selection order."""
    picks = rank(
        selected_cuisines, max_distance_miles, novelty_mode, vetoed_ids,
        visits, pool, now, rng, k, config,
    )
    return [p.candidate for p in picks]


def pick(
    selected_cuisines: Iterable[str],
    max_distance_miles: float | None,
    novelty_mode: NoveltyMode,
    vetoed_ids: Collection[str],
    visits: Sequence[VisitRecord],
    pool: Sequence[Candidate],
    now: datetime | None = None,
    rng: random.Random | None = None,
    k: int = DEFAULT_PICKER_CONFIG.top_k,
    config: PickerConfig = DEFAULT_PICKER_CONFIG,
) -> list[ScoredCandidate]:
    """Entry point for outer callers: fills in the clock and a fresh RNG."""
    if now is None:
        now = datetime.now(timezone.utc)
    if rng is None:
        rng = random.Random()
    return rank(
        selected_cuisines, max_distance_miles, novelty_mode, vetoed_ids,
        visits, pool, now, rng, k, config,
    )
