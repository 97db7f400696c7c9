from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class MealSlot(str, Enum):
    BREAKFAST = "BREAKFAST"
    LUNCH = "LUNCH"
    DINNER = "DINNER"
    SNACK = "SNACK"


@dataclass(frozen=True)
class ConsumptionEntry:
    """One logged instance of a user eating `portion_multiplier` servings of a food."""

    user_id: int
    food_id: int
    portion_multiplier: float
    consumed_at: datetime
    meal_slot: MealSlot | None = None

    def __post_init__(self) -> None:
        if not self.portion_multiplier > 0:
            raise ValueError(
                f"portion_multiplier must be > 0, got {self.portion_multiplier!r}"
            )
