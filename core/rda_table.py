"""
core/rda_table.py
────────────────────────────────────────────────────────────────────────
Static recommended-daily-amount constants.

* `BASE_RDA`      – adult-average baseline, one value per tracked nutrient
* `BMI_BRACKETS`  – BMI-range → multiplier table used for personalisation
* `RADAR_RDA`     – fixed display-only table for the chart radar view
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from core.nutrients import Nutrient

N = Nutrient

BASE_RDA: Mapping[Nutrient, float] = MappingProxyType({
    N.CALORIES: 2000,
    N.PROTEIN: 50,
    N.CARBOHYDRATES: 275,
    N.FAT: 78,
    N.FIBER: 28,
    N.VITAMIN_A: 900,
    N.VITAMIN_C: 90,
    N.VITAMIN_D: 20,
    N.VITAMIN_E: 15,
    N.VITAMIN_K: 120,
    N.VITAMIN_B12: 2.4,
    N.CALCIUM: 1000,
    N.IRON: 18,
    N.MAGNESIUM: 400,
    N.ZINC: 11,
    N.POTASSIUM: 2600,
})


class BmiCategory(str, Enum):
    UNDERWEIGHT = "underweight"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESE = "obese"


@dataclass(frozen=True)
class BmiBracket:
    category: BmiCategory
    lower: float            # inclusive
    upper: float            # exclusive
    multipliers: Mapping[Nutrient, float] = field(default_factory=dict)

    def contains(self, bmi: float) -> bool:
        return self.lower <= bmi < self.upper


BMI_BRACKETS: tuple[BmiBracket, ...] = (
    BmiBracket(
        BmiCategory.UNDERWEIGHT, float("-inf"), 18.5,
        {N.PROTEIN: 1.3, N.CARBOHYDRATES: 1.2, N.FAT: 1.1, N.CALCIUM: 1.15, N.IRON: 1.1},
    ),
    BmiBracket(BmiCategory.NORMAL, 18.5, 25.0),
    BmiBracket(
        BmiCategory.OVERWEIGHT, 25.0, 30.0,
        {N.CARBOHYDRATES: 0.85, N.FAT: 0.85, N.PROTEIN: 1.1, N.FIBER: 1.15},
    ),
    BmiBracket(
        BmiCategory.OBESE, 30.0, float("inf"),
        {N.CARBOHYDRATES: 0.75, N.FAT: 0.75, N.PROTEIN: 1.2, N.FIBER: 1.25, N.VITAMIN_D: 1.3},
    ),
)


def bracket_for(bmi: float) -> BmiBracket:
    for bracket in BMI_BRACKETS:
        if bracket.contains(bmi):
            return bracket
    # NaN never matches a range
    return BMI_BRACKETS[1]


# Display-only table for the radar chart, independent of BASE_RDA and of the
# BMI personalisation (carbs, fat, fiber and magnesium differ).
RADAR_RDA: Mapping[Nutrient, float] = MappingProxyType({
    N.PROTEIN: 50,
    N.CARBOHYDRATES: 300,
    N.FAT: 65,
    N.FIBER: 25,
    N.VITAMIN_A: 900,
    N.VITAMIN_C: 90,
    N.VITAMIN_D: 20,
    N.CALCIUM: 1000,
    N.IRON: 18,
    N.POTASSIUM: 2600,
    N.ZINC: 11,
    N.MAGNESIUM: 420,
})

RADAR_LABELS: Mapping[Nutrient, str] = MappingProxyType({
    N.CARBOHYDRATES: "Carbs",
})

RADAR_CAP = 150.0
