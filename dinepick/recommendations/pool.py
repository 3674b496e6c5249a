from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from .candidates import Candidate, normalized_name

if TYPE_CHECKING:
    from .models import RestaurantRecord


def build_candidate_pool(
    saved: Sequence[RestaurantRecord],
    nearby: Sequence[Candidate],
    include_nearby: bool,
    only_nearby: bool,
) -> list[Candidate]:
    """Merge saved restaurants and nearby discoveries into one pool.

    Nearby places whose name matches a saved restaurant are dropped so a
    tracked place never shows up under two identities.
    """
    saved_candidates = [Candidate.from_saved(r) for r in saved]
    if not include_nearby:
        return saved_candidates
    if only_nearby:
        return list(nearby)

    saved_names = {normalized_name(c.name) for c in saved_candidates}
    extra = [c for c in nearby if normalized_name(c.name) not in saved_names]
    return saved_candidates + extra


def dedupe_candidates(candidates: Iterable[Candidate]) -> list[Candidate]:
    """Keep the first candidate for each identity, preserving order."""
    seen: set[str] = set()
    output: list[Candidate] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        output.append(candidate)
    return output
