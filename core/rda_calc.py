"""
core/rda_calc.py
────────────────────────────────────────────────────────────────────────
Personalised recommended daily amounts:

1. start from `BASE_RDA`
2. BMI = weight_kg / height_m²
3. apply the multipliers of the matching `BMI_BRACKETS` row

An absent or incomplete body profile yields the unmodified base table.
"""

from __future__ import annotations

import logging

from core.models.profile import BodyProfile
from core.nutrients import TRACKED, Nutrient
from core.rda_table import BASE_RDA, BmiCategory, bracket_for

Logger = logging.getLogger(__name__)


class RdaCalculator:
    """Source-of-truth for the per-user RDA profile."""

    def bmi(self, profile: BodyProfile | None) -> float | None:
        return profile.bmi if profile is not None else None

    def category(self, profile: BodyProfile | None) -> BmiCategory | None:
        value = self.bmi(profile)
        return bracket_for(value).category if value is not None else None

    def targets(self, profile: BodyProfile | None = None) -> dict[Nutrient, float]:
        rda = {n: float(BASE_RDA[n]) for n in TRACKED}

        value = self.bmi(profile)
        if value is None:
            Logger.debug("no usable body metrics – base RDA table")
            return rda

        bracket = bracket_for(value)
        for nutrient, factor in bracket.multipliers.items():
            rda[nutrient] *= factor
        Logger.debug("BMI %.1f → %s adjustments", value, bracket.category.value)
        return rda
