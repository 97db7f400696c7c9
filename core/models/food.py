from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

from core.nutrients import Nutrient, coerce_amounts


class FoodCategory(str, Enum):
    FRUIT = "FRUIT"
    VEGETABLE = "VEGETABLE"
    GRAIN = "GRAIN"
    PROTEIN = "PROTEIN"
    DAIRY = "DAIRY"
    LEGUME = "LEGUME"
    NUT_SEED = "NUT_SEED"
    BEVERAGE = "BEVERAGE"
    SNACK = "SNACK"
    DESSERT = "DESSERT"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: str | None) -> "FoodCategory | None":
        """Case-insensitive lookup; None for blank or unknown input."""
        if not raw or not raw.strip():
            return None
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class FoodNutrientProfile:
    amounts: Mapping[Nutrient, float]
    serving_size: float = 100.0

    @classmethod
    def from_raw(cls, raw: dict | None, serving_size: float = 100.0) -> "FoodNutrientProfile":
        return cls(amounts=coerce_amounts(raw), serving_size=serving_size)

    def __getitem__(self, nutrient: Nutrient) -> float:
        return self.amounts.get(nutrient, 0.0)


@dataclass(frozen=True)
class FoodItem:
    id: int
    name: str
    category: FoodCategory = FoodCategory.OTHER
    profile: FoodNutrientProfile | None = None
    tags: frozenset[str] = field(default_factory=frozenset)
    active: bool = True
