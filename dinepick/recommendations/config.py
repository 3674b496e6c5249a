from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class PickerConfig:
    """
    Tuning constants for candidate scoring and filtering.
    """

    favorite_bonus: float = 1.2
    like_bonus: float = 1.5
    neutral_bonus: float = 0.2
    dislike_penalty: float = 1.6
    cuisine_fatigue_penalty: float = 1.0

    never_visited_days: float = 30.0
    novelty_cap: float = 1.5
    is_new_bonus: float = 1.4

    visit_decay_rate: float = 0.03
    visit_decay_cap: float = 0.5

    min_weight: float = 0.05

    anti_repeat_days: int = 7
    cuisine_fatigue_days: int = 3
    top_k: int = 3

    seed_path: Path = Path(__file__).resolve().parent.parent / "data" / "seed_restaurants.csv"


DEFAULT_PICKER_CONFIG = PickerConfig()
