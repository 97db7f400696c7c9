from scripts.seed_foods import _DEFAULT_FOODS, to_row

from core.nutrients import TRACKED


def test_ten_reference_foods():
    assert len(_DEFAULT_FOODS) == 10
    assert {f["name"] for f in _DEFAULT_FOODS} >= {"Apple", "Chicken Breast", "Salmon", "Milk"}


def test_row_has_every_nutrient():
    apple = to_row(_DEFAULT_FOODS[0])
    assert apple.category == "FRUIT"
    assert list(apple.nutrients) == [n.value for n in TRACKED]
    assert apple.nutrients["vitamin_c"] == 8.4
    assert apple.nutrients["vitamin_d"] == 0.0


def test_unknown_category_becomes_other():
    row = to_row({"name": "Tea", "category": "drinkable", "tags": ["Caffeine"]})
    assert row.category == "OTHER"
    assert row.tags == ["caffeine"]
    assert row.nutrients["calories"] == 0.0
