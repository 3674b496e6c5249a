from __future__ import annotations

import random

from dinepick.recommendations.sampler import weighted_sample


class _ScriptedRandom(random.Random):
    """Returns a fixed sequence from ``random()``."""

    def __init__(self, values):
        super().__init__(0)
        self._values = iter(values)

    def random(self):
        return next(self._values)


def test_returns_k_distinct_items():
    items = [(f"r{i}", 1.0 + i) for i in range(8)]
    picks = weighted_sample(items, 3, random.Random(7))
    assert len(picks) == 3
    assert len(set(picks)) == 3


def test_pool_smaller_than_k_returns_everything():
    items = [("a", 1.0), ("b", 2.0)]
    picks = weighted_sample(items, 3, random.Random(1))
    assert sorted(picks) == ["a", "b"]


def test_empty_pool_and_zero_k():
    assert weighted_sample([], 3, random.Random(1)) == []
    assert weighted_sample([("a", 1.0)], 0, random.Random(1)) == []


def test_all_zero_weights_fill_in_order():
    items = [("a", 0.0), ("b", 0.0), ("c", 0.0)]
    assert weighted_sample(items, 2, random.Random(1)) == ["a", "b"]


def test_zero_weight_item_is_only_taken_by_fill():
    items = [("a", 0.0), ("b", 1.0)]
    assert weighted_sample(items, 2, random.Random(3)) == ["b", "a"]


def test_threshold_walks_cumulative_weights():
    items = [("a", 1.0), ("b", 1.0), ("c", 1.0)]
    # 0.5 * 3 = 1.5 lands in b; then 0.0 * 2 lands in a
    picks = weighted_sample(items, 2, _ScriptedRandom([0.5, 0.0]))
    assert picks == ["b", "a"]


def test_same_seed_same_sequence():
    items = [(f"r{i}", float(i % 3 + 1)) for i in range(10)]
    first = weighted_sample(items, 3, random.Random(99))
    second = weighted_sample(items, 3, random.Random(99))
    assert first == second


def test_heavier_items_are_drawn_first_more_often():
    items = [("light", 1.0), ("heavy", 1000.0)]
    heavy_first = sum(
        1 for seed in range(200)
        if weighted_sample(items, 1, random.Random(seed)) == ["heavy"]
    )
    assert heavy_first > 180


def test_input_is_not_mutated():
    items = [("a", 1.0), ("b", 2.0), ("c", 3.0)]
    snapshot = list(items)
    weighted_sample(items, 3, random.Random(5))
    assert items == snapshot
