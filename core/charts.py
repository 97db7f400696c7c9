"""
core/charts.py
────────────────────────────────────────────────────────────────────────
Summary views for the charts page, all computed from one slice of
consumption entries:

1. daily trend          – kcal / macros / entry count per day, zero-filled
2. macro split          – grams + share of protein / carbs / fat
3. meal-type breakdown  – kcal + entry count per meal slot
4. top foods            – most-logged foods (by count, stable ties), max 10
5. nutrient radar       – per-day average vs `RADAR_RDA`, capped at 150 %

The radar uses the fixed display table, not the personalised RDA.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Callable, Iterable

import numpy as np
import pandas as pd

from core.aggregator import local_date
from core.models.consumption import ConsumptionEntry
from core.models.food import FoodItem
from core.nutrients import Nutrient
from core.rda_table import RADAR_CAP, RADAR_LABELS, RADAR_RDA

_LOG = logging.getLogger(__name__)

TOP_FOODS_LIMIT = 10
OTHER_SLOT = "OTHER"
UNKNOWN_FOOD = "Unknown"

_TREND = {
    "calories": Nutrient.CALORIES,
    "protein": Nutrient.PROTEIN,
    "carbs": Nutrient.CARBOHYDRATES,
    "fat": Nutrient.FAT,
}
_RADAR_COLS = [n.value for n in RADAR_RDA]
_VALUE_COLS = list(dict.fromkeys([n.value for n in _TREND.values()] + _RADAR_COLS))


@dataclass(frozen=True)
class DayData:
    date: str
    label: str
    calories: float
    protein: float
    carbs: float
    fat: float
    meal_count: int


@dataclass(frozen=True)
class MacroSplit:
    protein_grams: float
    carbs_grams: float
    fat_grams: float
    protein_pct: float
    carbs_pct: float
    fat_pct: float


@dataclass(frozen=True)
class MealTypeBreakdown:
    meal_type: str
    calories: float
    count: int


@dataclass(frozen=True)
class TopFood:
    name: str
    total_calories: float
    times_logged: int


@dataclass(frozen=True)
class RadarPoint:
    nutrient: str
    percentage: float


@dataclass(frozen=True)
class ChartData:
    daily_trend: list[DayData] = field(default_factory=list)
    macro_split: MacroSplit | None = None
    meal_type_breakdown: list[MealTypeBreakdown] = field(default_factory=list)
    top_foods: list[TopFood] = field(default_factory=list)
    nutrient_radar: list[RadarPoint] = field(default_factory=list)


def round1(value):
    """Half-up rounding to one decimal (scalars or arrays)."""
    return np.floor(np.asarray(value, dtype=float) * 10 + 0.5) / 10


# ──────────────────────────────────────────────────────────────────────
#  Aggregator
# ──────────────────────────────────────────────────────────────────────
class ChartAggregator:
    def __init__(
        self,
        food_of: Callable[[int], "FoodItem | None"],
        tz: tzinfo | None = None,
    ) -> None:
        self._food_of = food_of
        self._tz = tz

    def build(self, entries: Iterable[ConsumptionEntry], end_day: date, days: int) -> ChartData:
        """Chart views for the `days` calendar days ending with `end_day`."""
        days = max(days, 1)
        df = self._frame(entries)
        return ChartData(
            daily_trend=self.daily_trend(df, end_day, days),
            macro_split=self.macro_split(df),
            meal_type_breakdown=self.meal_type_breakdown(df),
            top_foods=self.top_foods(df),
            nutrient_radar=self.nutrient_radar(df, days),
        )

    # ---------------------------------------------------------------- frame
    def _frame(self, entries: Iterable[ConsumptionEntry]) -> pd.DataFrame:
        cols = ["day", "meal_slot", "name"] + _VALUE_COLS
        rows: list[dict] = []
        for e in entries:
            food = self._food_of(e.food_id)
            profile = food.profile if food is not None else None
            row = {
                "day": local_date(e.consumed_at, self._tz),
                "meal_slot": e.meal_slot.value if e.meal_slot is not None else OTHER_SLOT,
                "name": food.name if food is not None else UNKNOWN_FOOD,
            }
            for col in _VALUE_COLS:
                amount = profile[Nutrient(col)] if profile is not None else 0.0
                row[col] = amount * e.portion_multiplier
            rows.append(row)
        return pd.DataFrame(rows, columns=cols)

    # ----------------------------------------------------------- 1. trend
    def daily_trend(self, df: pd.DataFrame, end_day: date, days: int) -> list[DayData]:
        calendar = [end_day - timedelta(days=i) for i in range(days - 1, -1, -1)]
        value_cols = [n.value for n in _TREND.values()]

        grouped = df.groupby("day")[value_cols].sum()
        counts = df.groupby("day").size()
        grouped = grouped.reindex(calendar, fill_value=0.0)
        counts = counts.reindex(calendar, fill_value=0)

        out = []
        for day in calendar:
            sums = grouped.loc[day]
            out.append(
                DayData(
                    date=day.isoformat(),
                    label=day.strftime("%a"),
                    calories=float(round1(sums[Nutrient.CALORIES.value])),
                    protein=float(round1(sums[Nutrient.PROTEIN.value])),
                    carbs=float(round1(sums[Nutrient.CARBOHYDRATES.value])),
                    fat=float(round1(sums[Nutrient.FAT.value])),
                    meal_count=int(counts.loc[day]),
                )
            )
        return out

    # ------------------------------------------------------ 2. macro split
    def macro_split(self, df: pd.DataFrame) -> MacroSplit:
        pro = float(df[Nutrient.PROTEIN.value].sum())
        carb = float(df[Nutrient.CARBOHYDRATES.value].sum())
        fat = float(df[Nutrient.FAT.value].sum())
        total = max(pro + carb + fat, 1.0)
        return MacroSplit(
            protein_grams=float(round1(pro)),
            carbs_grams=float(round1(carb)),
            fat_grams=float(round1(fat)),
            protein_pct=float(round1(pro / total * 100)),
            carbs_pct=float(round1(carb / total * 100)),
            fat_pct=float(round1(fat / total * 100)),
        )

    # ---------------------------------------------------- 3. by meal slot
    def meal_type_breakdown(self, df: pd.DataFrame) -> list[MealTypeBreakdown]:
        if df.empty:
            return []
        g = df.groupby("meal_slot", sort=False)[Nutrient.CALORIES.value].agg(["sum", "size"])
        return [
            MealTypeBreakdown(meal_type=str(slot), calories=float(round1(row["sum"])), count=int(row["size"]))
            for slot, row in g.iterrows()
        ]

    # ------------------------------------------------------- 4. top foods
    def top_foods(self, df: pd.DataFrame) -> list[TopFood]:
        if df.empty:
            return []
        g = df.groupby("name", sort=False)[Nutrient.CALORIES.value].agg(["sum", "size"])
        # ranked by how often a food is logged, not by calories
        g = g.sort_values("size", ascending=False, kind="stable").head(TOP_FOODS_LIMIT)
        return [
            TopFood(name=str(name), total_calories=float(round1(row["sum"])), times_logged=int(row["size"]))
            for name, row in g.iterrows()
        ]

    # ----------------------------------------------------------- 5. radar
    def nutrient_radar(self, df: pd.DataFrame, days: int) -> list[RadarPoint]:
        sums = df[_RADAR_COLS].sum()
        out = []
        for nutrient, rda in RADAR_RDA.items():
            avg = float(sums[nutrient.value]) / max(days, 1)
            pct = float(round1(avg / rda * 100)) if rda > 0 else 0.0
            out.append(
                RadarPoint(
                    nutrient=RADAR_LABELS.get(nutrient, nutrient.label),
                    percentage=min(pct, RADAR_CAP),
                )
            )
        return out
