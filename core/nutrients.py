"""
core/nutrients.py
────────────────────────────────────────────────────────────────────────
The fixed, ordered set of tracked nutrients.

Every per-nutrient mapping in the code base (food profiles, totals, RDA
tables, report rows) is keyed by `Nutrient` and iterated through
`TRACKED`, so serialization order is always the declaration order below.
"""

from __future__ import annotations

from enum import Enum


class Nutrient(str, Enum):
    # macros
    CALORIES = "calories"
    PROTEIN = "protein"
    CARBOHYDRATES = "carbohydrates"
    FAT = "fat"
    FIBER = "fiber"
    # vitamins
    VITAMIN_A = "vitamin_a"
    VITAMIN_C = "vitamin_c"
    VITAMIN_D = "vitamin_d"
    VITAMIN_E = "vitamin_e"
    VITAMIN_K = "vitamin_k"
    VITAMIN_B12 = "vitamin_b12"
    # minerals
    CALCIUM = "calcium"
    IRON = "iron"
    MAGNESIUM = "magnesium"
    ZINC = "zinc"
    POTASSIUM = "potassium"

    @property
    def label(self) -> str:
        return _META[self][0]

    @property
    def unit(self) -> str:
        return _META[self][1]


_META: dict[Nutrient, tuple[str, str]] = {
    Nutrient.CALORIES: ("Calories", "kcal"),
    Nutrient.PROTEIN: ("Protein", "g"),
    Nutrient.CARBOHYDRATES: ("Carbohydrates", "g"),
    Nutrient.FAT: ("Fat", "g"),
    Nutrient.FIBER: ("Fiber", "g"),
    Nutrient.VITAMIN_A: ("Vitamin A", "mcg"),
    Nutrient.VITAMIN_C: ("Vitamin C", "mg"),
    Nutrient.VITAMIN_D: ("Vitamin D", "mcg"),
    Nutrient.VITAMIN_E: ("Vitamin E", "mg"),
    Nutrient.VITAMIN_K: ("Vitamin K", "mcg"),
    Nutrient.VITAMIN_B12: ("Vitamin B12", "mcg"),
    Nutrient.CALCIUM: ("Calcium", "mg"),
    Nutrient.IRON: ("Iron", "mg"),
    Nutrient.MAGNESIUM: ("Magnesium", "mg"),
    Nutrient.ZINC: ("Zinc", "mg"),
    Nutrient.POTASSIUM: ("Potassium", "mg"),
}

# ──────────────── ordered groupings ──────────────────
TRACKED: tuple[Nutrient, ...] = tuple(Nutrient)

MACROS: tuple[Nutrient, ...] = (
    Nutrient.PROTEIN,
    Nutrient.CARBOHYDRATES,
    Nutrient.FAT,
    Nutrient.FIBER,
)
MICROS: tuple[Nutrient, ...] = (
    Nutrient.VITAMIN_A,
    Nutrient.VITAMIN_C,
    Nutrient.VITAMIN_D,
    Nutrient.VITAMIN_E,
    Nutrient.VITAMIN_K,
    Nutrient.VITAMIN_B12,
    Nutrient.CALCIUM,
    Nutrient.IRON,
    Nutrient.MAGNESIUM,
    Nutrient.ZINC,
    Nutrient.POTASSIUM,
)

# nutrients that take part in scoring and escalation (calories are reported
# as a raw total only)
SCORED: tuple[Nutrient, ...] = MACROS + MICROS


def zeroed() -> dict[Nutrient, float]:
    """Fresh mapping with every tracked nutrient set to 0.0, in order."""
    return {n: 0.0 for n in TRACKED}


def coerce_amounts(raw: dict | None) -> dict[Nutrient, float]:
    """
    Normalise a loosely-typed nutrient dict (e.g. a JSON column keyed by
    strings) into an ordered `Nutrient` mapping.  Unknown keys are ignored,
    missing or null values count as 0.
    """
    out = zeroed()
    for key, value in (raw or {}).items():
        try:
            nutrient = Nutrient(key)
        except ValueError:
            continue
        out[nutrient] = float(value or 0.0)
    return out
