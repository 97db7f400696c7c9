"""
services/analysis.py
────────────────────────────────────────────────────────────────────────
Fetch → compute glue between the database and the pure `core` engine.
Used by the API routers and the daily intervention worker.
"""
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from core.aggregator import ConsumptionAggregator, Window
from core.analysis import AnalysisReport, NutrientAnalyzer
from core.charts import ChartAggregator, ChartData
from core.intervention import InterventionTracker, Step
from core.nutrients import Nutrient
from services.catalog import FoodCatalog
from services.db import get_body_profile, query_entries

_LOG = logging.getLogger(__name__)

_analyzer = NutrientAnalyzer()


async def _analyze(db: AsyncSession, user_id: int, window: Window) -> AnalysisReport:
    entries = await query_entries(db, user_id, window.start, window.end)
    catalog = await FoodCatalog.load(db)
    profile = await get_body_profile(db, user_id)

    totals = ConsumptionAggregator(catalog.profile_of).totals(entries)
    _LOG.debug(
        "user %s: %d entries over %d active days",
        user_id, totals.entry_count, totals.distinct_active_days,
    )
    return _analyzer.analyze(
        totals, window, profile,
        is_safe=lambda name: catalog.is_safe_for(profile, name),
    )


async def analyze_today(db: AsyncSession, user_id: int, today: date | None = None) -> AnalysisReport:
    return await _analyze(db, user_id, Window.for_day(today or date.today()))


async def analyze_week(db: AsyncSession, user_id: int, today: date | None = None) -> AnalysisReport:
    window = Window.last_days(today or date.today(), settings.analysis_week_days)
    return await _analyze(db, user_id, window)


def clamp_days(days: int | None) -> int:
    if days is None:
        return settings.chart_default_days
    return min(max(days, 1), settings.chart_max_days)


async def chart_data(
    db: AsyncSession, user_id: int, days: int | None = None, today: date | None = None
) -> ChartData:
    today = today or date.today()
    days = clamp_days(days)
    window = Window.last_days(today, days)

    entries = await query_entries(db, user_id, window.start, window.end)
    catalog = await FoodCatalog.load(db)
    return ChartAggregator(catalog.lookup).build(entries, today, days)


async def run_daily_for_user(
    db: AsyncSession,
    user_id: int,
    day: date,
    tracker: InterventionTracker,
    catalog: FoodCatalog | None = None,
) -> dict[Nutrient, Step]:
    """Classify one user's intake for `day` and feed every nutrient to the tracker."""
    window = Window.for_day(day)
    entries = await query_entries(db, user_id, window.start, window.end)
    catalog = catalog or await FoodCatalog.load(db)
    profile = await get_body_profile(db, user_id)

    totals = ConsumptionAggregator(catalog.profile_of).totals(entries)
    statuses = _analyzer.statuses(totals, window, profile)
    return await tracker.run_day(user_id, statuses, day)
