from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ActivityLevel(str, Enum):
    SEDENTARY = "SEDENTARY"
    LIGHT = "LIGHT"
    MODERATE = "MODERATE"
    ACTIVE = "ACTIVE"
    VERY_ACTIVE = "VERY_ACTIVE"


class DietaryRestriction(str, Enum):
    VEGETARIAN = "VEGETARIAN"
    VEGAN = "VEGAN"
    GLUTEN_FREE = "GLUTEN_FREE"
    LACTOSE_FREE = "LACTOSE_FREE"
    NUT_ALLERGY = "NUT_ALLERGY"
    HALAL = "HALAL"
    KOSHER = "KOSHER"
    LOW_SODIUM = "LOW_SODIUM"
    DIABETIC_FRIENDLY = "DIABETIC_FRIENDLY"


@dataclass(frozen=True)
class BodyProfile:
    weight_kg: float | None = None
    height_cm: float | None = None
    age: int | None = None
    activity_level: ActivityLevel | None = None
    restrictions: frozenset[DietaryRestriction] = field(default_factory=frozenset)
    allergies: frozenset[str] = field(default_factory=frozenset)

    @property
    def bmi(self) -> float | None:
        """weight / height(m)²; None when either metric is missing or not positive."""
        if not self.weight_kg or not self.height_cm:
            return None
        if self.weight_kg <= 0 or self.height_cm <= 0:
            return None
        height_m = self.height_cm / 100
        return self.weight_kg / (height_m * height_m)
