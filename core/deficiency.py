"""
core/deficiency.py
────────────────────────────────────────────────────────────────────────
(actual, recommended) → percentage → severity.

    ≥ 90 %        NONE
    [70, 90) %    MILD
    [50, 70) %    MODERATE
    < 50 %        SEVERE
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from core.nutrients import Nutrient


class Severity(str, Enum):
    SEVERE = "SEVERE"
    MODERATE = "MODERATE"
    MILD = "MILD"
    NONE = "NONE"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @property
    def is_deficient(self) -> bool:
        """Below the 70 % line, i.e. what the intervention tracker escalates on."""
        return self.rank < _RANK[Severity.MILD]

    # str would compare alphabetically; order by rank instead
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_RANK = {Severity.SEVERE: 0, Severity.MODERATE: 1, Severity.MILD: 2, Severity.NONE: 3}

# (inclusive lower bound, severity), highest first
SEVERITY_BANDS: tuple[tuple[float, Severity], ...] = (
    (90.0, Severity.NONE),
    (70.0, Severity.MILD),
    (50.0, Severity.MODERATE),
)


def percentage(consumed: float, recommended: float) -> float:
    if not recommended > 0:
        return 0.0
    pct = consumed / recommended * 100
    return pct if math.isfinite(pct) else 0.0


def classify(pct: float) -> Severity:
    for lower, severity in SEVERITY_BANDS:
        if pct >= lower:
            return severity
    return Severity.SEVERE


@dataclass(frozen=True)
class NutrientStatus:
    nutrient: Nutrient
    consumed_per_day: float
    recommended_per_day: float
    percentage: float
    severity: Severity


def evaluate(nutrient: Nutrient, consumed: float, recommended: float) -> NutrientStatus:
    pct = percentage(consumed, recommended)
    return NutrientStatus(nutrient, consumed, recommended, pct, classify(pct))


def evaluate_all(
    per_day: Mapping[Nutrient, float],
    rda: Mapping[Nutrient, float],
    nutrients: tuple[Nutrient, ...],
) -> dict[Nutrient, NutrientStatus]:
    return {
        n: evaluate(n, per_day.get(n, 0.0), rda.get(n, 0.0))
        for n in nutrients
    }
