from __future__ import annotations

import random
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def weighted_sample(
    weighted_items: Sequence[tuple[T, float]],
    k: int,
    rng: random.Random,
) -> list[T]:
    """Draw up to *k* distinct items, weighted, without replacement.

    Items come back in selection order. Heavier items tend to be drawn
    earlier, nothing stronger than that is promised. When every remaining
    weight is zero the rest of the pool is taken in its current order.

    *rng* is required so that callers control reproducibility; pass a seeded
    ``random.Random`` for deterministic draws.
    """
    remaining = list(weighted_items)
    picks: list[T] = []

    while len(picks) < k and remaining:
        total = sum(weight for _, weight in remaining)
        if total <= 0:
            needed = k - len(picks)
            picks.extend(item for item, _ in remaining[:needed])
            break

        threshold = rng.random() * total
        cumulative = 0.0
        selected = len(remaining) - 1
        for index, (_, weight) in enumerate(remaining):
            cumulative += weight
            if threshold < cumulative:
                selected = index
                break

        item, _ = remaining.pop(selected)
        picks.append(item)

    return picks
