# tests/test_aggregator.py
from __future__ import annotations

import math
from datetime import date, datetime

import pytest

from core.aggregator import ConsumptionAggregator, Window
from core.models.consumption import ConsumptionEntry
from core.models.food import FoodNutrientProfile
from core.nutrients import TRACKED, Nutrient

APPLE = FoodNutrientProfile.from_raw({"calories": 95, "vitamin_c": 8.4, "fiber": 4.4})
RICE = FoodNutrientProfile.from_raw({"calories": 216, "carbohydrates": 45})
PROFILES = {1: APPLE, 2: RICE}

agg = ConsumptionAggregator(PROFILES.get)


def _entry(food_id: int, portion: float, when: datetime) -> ConsumptionEntry:
    return ConsumptionEntry(user_id=7, food_id=food_id, portion_multiplier=portion, consumed_at=when)


def test_portion_is_linear():
    at = datetime(2024, 3, 1, 12)
    one = agg.totals([_entry(1, 1.0, at)])
    two_and_half = agg.totals([_entry(1, 2.5, at)])
    for n in (Nutrient.CALORIES, Nutrient.VITAMIN_C, Nutrient.FIBER):
        assert math.isclose(two_and_half[n], 2.5 * one[n])


def test_doubling_one_entry_leaves_others_untouched():
    at = datetime(2024, 3, 1, 12)
    rice = _entry(2, 1.5, at)
    base = agg.totals([_entry(1, 1.0, at), rice])
    doubled = agg.totals([_entry(1, 2.0, at), rice])
    apple_alone = agg.totals([_entry(1, 1.0, at)])
    for n in TRACKED:
        assert math.isclose(doubled[n], base[n] + apple_alone[n], abs_tol=1e-9)


def test_week_average_divides_by_distinct_active_days():
    entries = [
        _entry(1, 1.0, datetime(2024, 3, 1, 8)),
        _entry(1, 1.0, datetime(2024, 3, 1, 19)),
        _entry(2, 1.0, datetime(2024, 3, 4, 12)),
    ]
    totals = agg.totals(entries)
    week = Window.last_days(date(2024, 3, 7), 7)

    assert totals.distinct_active_days == 2
    assert totals.entry_count == 3
    assert math.isclose(totals.per_day(week)[Nutrient.CALORIES], (95 + 95 + 216) / 2)


def test_single_day_window_divides_by_one():
    totals = agg.totals([_entry(1, 2.0, datetime(2024, 3, 1, 8))])
    assert totals.per_day(Window.for_day(date(2024, 3, 1)))[Nutrient.CALORIES] == 190


def test_empty_window_is_zero_not_nan():
    totals = agg.totals([])
    per_day = totals.per_day(Window.last_days(date(2024, 3, 7)))
    assert all(v == 0.0 for v in per_day.values())


def test_entry_without_profile_is_skipped():
    entries = [_entry(1, 1.0, datetime(2024, 3, 1, 8)), _entry(99, 3.0, datetime(2024, 3, 2, 8))]
    totals = agg.totals(entries)
    assert totals[Nutrient.CALORIES] == 95
    # still counted as logged
    assert totals.entry_count == 2


def test_window_bounds():
    w = Window.last_days(date(2024, 3, 7), 7)
    assert w.start == datetime(2024, 3, 1)
    assert w.end == datetime(2024, 3, 8)
    assert not w.single_day
    assert Window.last_days(date(2024, 3, 7), 1).single_day


def test_portion_must_be_positive():
    with pytest.raises(ValueError):
        _entry(1, 0.0, datetime(2024, 3, 1))
