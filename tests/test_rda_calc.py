# tests/test_rda_calc.py
from __future__ import annotations

import math

from core.models.profile import BodyProfile
from core.nutrients import TRACKED, Nutrient
from core.rda_calc import RdaCalculator
from core.rda_table import BASE_RDA, BmiCategory

calc = RdaCalculator()

N = Nutrient


def _profile(bmi: float, height_cm: float = 170) -> BodyProfile:
    h = height_cm / 100
    return BodyProfile(weight_kg=bmi * h * h, height_cm=height_cm, age=30)


# ── absent / incomplete profile → base table ────────────────────────
def test_no_profile_is_base_table():
    rda = calc.targets(None)
    assert rda == {n: float(BASE_RDA[n]) for n in TRACKED}
    assert list(rda) == list(TRACKED)


def test_missing_height_is_base_table():
    rda = calc.targets(BodyProfile(weight_kg=70, height_cm=None))
    assert rda[N.PROTEIN] == 50
    assert calc.category(BodyProfile(weight_kg=70)) is None


def test_zero_height_is_base_table():
    assert calc.targets(BodyProfile(weight_kg=70, height_cm=0))[N.FAT] == 78


# ── BMI brackets ─────────────────────────────────────────────────────
def test_underweight_multipliers():
    p = _profile(17)
    rda = calc.targets(p)
    assert calc.category(p) is BmiCategory.UNDERWEIGHT
    assert math.isclose(rda[N.PROTEIN], 50 * 1.3)
    assert math.isclose(rda[N.CARBOHYDRATES], 275 * 1.2)
    assert math.isclose(rda[N.FAT], 78 * 1.1)
    assert math.isclose(rda[N.CALCIUM], 1000 * 1.15)
    assert math.isclose(rda[N.IRON], 18 * 1.1)
    assert rda[N.FIBER] == 28


def test_overweight_multipliers():
    rda = calc.targets(_profile(27))
    assert math.isclose(rda[N.CARBOHYDRATES], 275 * 0.85)
    assert math.isclose(rda[N.FAT], 78 * 0.85)
    assert math.isclose(rda[N.PROTEIN], 50 * 1.1)
    assert math.isclose(rda[N.FIBER], 28 * 1.15)
    assert rda[N.VITAMIN_D] == 20


def test_obese_multipliers():
    rda = calc.targets(_profile(32))
    assert math.isclose(rda[N.CARBOHYDRATES], 275 * 0.75)
    assert math.isclose(rda[N.FAT], 78 * 0.75)
    assert math.isclose(rda[N.PROTEIN], 50 * 1.2)
    assert math.isclose(rda[N.FIBER], 28 * 1.25)
    assert math.isclose(rda[N.VITAMIN_D], 20 * 1.3)


def test_normal_bmi_unchanged():
    p = _profile(22)
    assert calc.category(p) is BmiCategory.NORMAL
    assert calc.targets(p) == calc.targets(None)


def test_bracket_lower_bounds_inclusive():
    assert calc.category(_profile(18.5, height_cm=200)) is BmiCategory.NORMAL
    assert calc.category(_profile(25.0, height_cm=200)) is BmiCategory.OVERWEIGHT
    assert calc.category(_profile(30.0, height_cm=200)) is BmiCategory.OBESE
