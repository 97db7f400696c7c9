"""
core/recommendation.py
────────────────────────────────────────────────────────────────────────
Deficient nutrients → prioritised, restriction-aware food suggestions.

    percentage < 50         HIGH
    50 ≤ percentage < 80    MEDIUM
    percentage ≥ 80         nothing

Only nutrients with an entry in `TEMPLATES` produce recommendations.
Candidate foods go through an `is_safe(food_name)` predicate; when every
candidate is filtered out the recommendation is still emitted, message only.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from core.nutrients import Nutrient

_LOG = logging.getLogger(__name__)

HIGH_BELOW = 50.0
MEDIUM_BELOW = 80.0


class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


# nutrient → candidate foods, in output order
TEMPLATES: dict[Nutrient, tuple[str, ...]] = {
    Nutrient.PROTEIN: ("Chicken Breast", "Egg", "Salmon", "Almonds"),
    Nutrient.FIBER: ("Broccoli", "Brown Rice", "Apple", "Spinach"),
    Nutrient.VITAMIN_C: ("Broccoli", "Spinach", "Banana"),
    Nutrient.VITAMIN_D: ("Salmon", "Egg", "Milk"),
    Nutrient.CALCIUM: ("Milk", "Broccoli", "Almonds"),
    Nutrient.IRON: ("Spinach", "Chicken Breast", "Brown Rice"),
    Nutrient.POTASSIUM: ("Banana", "Spinach", "Milk"),
    Nutrient.VITAMIN_B12: ("Salmon", "Egg", "Milk"),
}

_HIGH_MSG = (
    "Your {name} intake is very low ({pct:.0f}% of daily goal). "
    "Consider adding more {lower}-rich foods."
)
_MEDIUM_MSG = (
    "Your {name} intake is below target ({pct:.0f}%). "
    "Try adding a serving of recommended foods."
)


@dataclass(frozen=True)
class Recommendation:
    nutrient: str
    message: str
    priority: Priority
    foods: list[str] = field(default_factory=list)


def priority_for(pct: float) -> Priority | None:
    if pct < HIGH_BELOW:
        return Priority.HIGH
    if pct < MEDIUM_BELOW:
        return Priority.MEDIUM
    return None


class RecommendationEngine:
    def __init__(
        self,
        templates: Mapping[Nutrient, tuple[str, ...]] | None = None,
    ) -> None:
        self._templates = dict(TEMPLATES if templates is None else templates)

    def recommend(
        self,
        percentages: Mapping[Nutrient, float],
        is_safe: Callable[[str], bool] = lambda _food: True,
    ) -> list[Recommendation]:
        out: list[Recommendation] = []
        for nutrient, candidates in self._templates.items():
            pct = percentages.get(nutrient)
            if pct is None:
                continue
            priority = priority_for(pct)
            if priority is None:
                continue

            foods = [f for f in candidates if is_safe(f)]
            if len(foods) < len(candidates):
                _LOG.debug(
                    "%s: %d of %d candidate foods filtered by restrictions",
                    nutrient.value, len(candidates) - len(foods), len(candidates),
                )

            template = _HIGH_MSG if priority is Priority.HIGH else _MEDIUM_MSG
            name = nutrient.label
            out.append(
                Recommendation(
                    nutrient=name,
                    message=template.format(name=name, pct=pct, lower=name.lower()),
                    priority=priority,
                    foods=foods,
                )
            )
        return out
