"""
core/analysis.py
────────────────────────────────────────────────────────────────────────
Glue for a single analysis request:

    totals (ConsumptionAggregator) ─┐
                                    ├─► per-nutrient status ─► report
    body profile (RdaCalculator) ───┘                       └► recommendations

Pure: the caller fetches entries / profile / catalogue and passes them in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from core.aggregator import NutrientTotals, Window
from core.deficiency import NutrientStatus, evaluate_all
from core.models.profile import BodyProfile
from core.nutrients import MACROS, MICROS, SCORED, Nutrient
from core.rda_calc import RdaCalculator
from core.recommendation import Recommendation, RecommendationEngine

SCORE_CAP = 100.0


@dataclass(frozen=True)
class NutrientDetail:
    name: str
    consumed: float
    recommended: float
    percentage: float
    unit: str


@dataclass(frozen=True)
class AnalysisReport:
    total_calories: float
    meal_count: int
    overall_score: float
    macronutrients: list[NutrientDetail]
    micronutrients: list[NutrientDetail]
    recommendations: list[Recommendation]
    active_days: int = 0
    statuses: dict[Nutrient, NutrientStatus] = field(default_factory=dict)


def _detail(status: NutrientStatus) -> NutrientDetail:
    n = status.nutrient
    return NutrientDetail(
        name=n.label,
        consumed=status.consumed_per_day,
        recommended=status.recommended_per_day,
        percentage=status.percentage,
        unit=n.unit,
    )


class NutrientAnalyzer:
    def __init__(
        self,
        rda_calc: RdaCalculator | None = None,
        recommender: RecommendationEngine | None = None,
    ) -> None:
        self._rda = rda_calc or RdaCalculator()
        self._recommender = recommender or RecommendationEngine()

    def statuses(
        self,
        totals: NutrientTotals,
        window: Window | None = None,
        profile: BodyProfile | None = None,
    ) -> dict[Nutrient, NutrientStatus]:
        return evaluate_all(totals.per_day(window), self._rda.targets(profile), SCORED)

    def analyze(
        self,
        totals: NutrientTotals,
        window: Window | None = None,
        profile: BodyProfile | None = None,
        is_safe: Callable[[str], bool] = lambda _food: True,
    ) -> AnalysisReport:
        per_day = totals.per_day(window)
        statuses = self.statuses(totals, window, profile)

        pcts = [s.percentage for s in statuses.values()]
        score = min(sum(pcts) / len(pcts), SCORE_CAP) if pcts else 0.0

        recs = self._recommender.recommend(
            {n: s.percentage for n, s in statuses.items()}, is_safe
        )
        return AnalysisReport(
            total_calories=per_day[Nutrient.CALORIES],
            meal_count=totals.entry_count,
            overall_score=score,
            macronutrients=[_detail(statuses[n]) for n in MACROS],
            micronutrients=[_detail(statuses[n]) for n in MICROS],
            recommendations=recs,
            active_days=totals.distinct_active_days,
            statuses=statuses,
        )
