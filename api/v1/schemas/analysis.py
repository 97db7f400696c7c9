"""
Report / chart payloads.  Field names go out in camelCase
(`totalCalories`, `dailyTrend`, …); snake_case is accepted on input.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.models.intervention import InterventionLevel
from core.nutrients import Nutrient
from core.recommendation import Priority


class _Camel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ─── analysis report ─────────────────────────────────────────────────
class NutrientDetailOut(_Camel):
    name: str
    consumed: float
    recommended: float
    percentage: float
    unit: str


class RecommendationOut(_Camel):
    nutrient: str
    message: str
    priority: Priority
    foods: List[str] = []


class AnalysisOut(_Camel):
    total_calories: float
    meal_count: int
    overall_score: float
    active_days: int = 0
    macronutrients: List[NutrientDetailOut]
    micronutrients: List[NutrientDetailOut]
    recommendations: List[RecommendationOut]


# ─── charts ──────────────────────────────────────────────────────────
class DayDataOut(_Camel):
    date: str
    label: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_count: int


class MacroSplitOut(_Camel):
    protein_grams: float
    carbs_grams: float
    fat_grams: float
    protein_pct: float
    carbs_pct: float
    fat_pct: float


class MealTypeOut(_Camel):
    meal_type: str
    calories: float
    count: int


class TopFoodOut(_Camel):
    name: str
    total_calories: float
    times_logged: int


class RadarPointOut(_Camel):
    nutrient: str
    percentage: float


class ChartDataOut(_Camel):
    daily_trend: List[DayDataOut]
    macro_split: MacroSplitOut | None = None
    meal_type_breakdown: List[MealTypeOut]
    top_foods: List[TopFoodOut]
    nutrient_radar: List[RadarPointOut]


# ─── interventions ──────────────────────────────────────────────────
class InterventionOut(_Camel):
    id: int
    user_id: int
    nutrient: Nutrient
    level: InterventionLevel | None = None
    consecutive_days: int
    message: str
    last_evaluated_date: date
    acknowledged: bool
    acknowledged_at: datetime | None = None
    notified: bool
    created_at: datetime
    updated_at: datetime
