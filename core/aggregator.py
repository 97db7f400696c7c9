"""
core/aggregator.py
────────────────────────────────────────────────────────────────────────
Windowed aggregation of logged consumption into nutrient totals.

Averaging rule: a multi-day window is divided by the number of *distinct
active days* (calendar dates with at least one entry), never by the
calendar length of the window.  A single-day window always divides by 1.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Callable, Iterable, Mapping

from core.models.consumption import ConsumptionEntry
from core.models.food import FoodNutrientProfile
from core.nutrients import TRACKED, Nutrient, zeroed

_LOG = logging.getLogger(__name__)

ProfileLookup = Callable[[int], "FoodNutrientProfile | None"]


def local_date(moment: datetime, tz: tzinfo | None = None) -> date:
    """Calendar date of `moment` in the caller's local sense."""
    if tz is not None and moment.tzinfo is not None:
        return moment.astimezone(tz).date()
    return moment.date()


# ──────────────────────────────────────────────────────────────────────
#  Windows
# ──────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Window:
    start: datetime        # inclusive
    end: datetime          # exclusive
    single_day: bool = False

    @classmethod
    def for_day(cls, day: date, tz: tzinfo | None = None) -> "Window":
        start = datetime.combine(day, time.min, tzinfo=tz)
        return cls(start, start + timedelta(days=1), single_day=True)

    @classmethod
    def last_days(cls, today: date, days: int = 7, tz: tzinfo | None = None) -> "Window":
        days = max(days, 1)
        start = datetime.combine(today - timedelta(days=days - 1), time.min, tzinfo=tz)
        end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz)
        return cls(start, end, single_day=days == 1)


# ──────────────────────────────────────────────────────────────────────
#  Totals
# ──────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class NutrientTotals:
    amounts: Mapping[Nutrient, float]
    distinct_active_days: int
    entry_count: int

    def __getitem__(self, nutrient: Nutrient) -> float:
        return self.amounts.get(nutrient, 0.0)

    def divisor(self, window: Window | None = None) -> int:
        if window is not None and window.single_day:
            return 1
        return max(self.distinct_active_days, 1)

    def per_day(self, window: Window | None = None) -> dict[Nutrient, float]:
        d = self.divisor(window)
        return {n: self.amounts.get(n, 0.0) / d for n in TRACKED}


class ConsumptionAggregator:
    """Sums `profile[n] * portion` over entries whose food has a profile."""

    def __init__(self, profile_of: ProfileLookup, tz: tzinfo | None = None) -> None:
        self._profile_of = profile_of
        self._tz = tz

    def totals(self, entries: Iterable[ConsumptionEntry]) -> NutrientTotals:
        amounts = zeroed()
        days: set[date] = set()
        count = 0

        for entry in entries:
            count += 1
            days.add(local_date(entry.consumed_at, self._tz))

            profile = self._profile_of(entry.food_id)
            if profile is None:
                _LOG.debug("no nutrient profile for food %s – entry skipped", entry.food_id)
                continue

            p = entry.portion_multiplier
            for n in TRACKED:
                amounts[n] += profile[n] * p

        return NutrientTotals(amounts=amounts, distinct_active_days=len(days), entry_count=count)
