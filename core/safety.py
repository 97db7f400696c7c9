"""
core/safety.py
────────────────────────────────────────────────────────────────────────
Restriction / allergy screening for recommended foods.

Foods carry free-form lowercase tags ("dairy", "nuts", "poultry", …).
A restriction forbids a set of tags; an allergy (free text) forbids any
food whose name or tags contain it, case-insensitively.
"""

from __future__ import annotations

from core.models.food import FoodItem
from core.models.profile import BodyProfile, DietaryRestriction

R = DietaryRestriction

_ANIMAL_FLESH = frozenset({"meat", "pork", "poultry", "fish", "shellfish"})

FORBIDDEN_TAGS: dict[DietaryRestriction, frozenset[str]] = {
    R.VEGETARIAN: _ANIMAL_FLESH,
    R.VEGAN: _ANIMAL_FLESH | {"dairy", "egg", "honey"},
    R.GLUTEN_FREE: frozenset({"gluten"}),
    R.LACTOSE_FREE: frozenset({"dairy"}),
    R.NUT_ALLERGY: frozenset({"nuts"}),
    R.HALAL: frozenset({"pork", "alcohol"}),
    R.KOSHER: frozenset({"pork", "shellfish"}),
    R.LOW_SODIUM: frozenset({"high_sodium"}),
    R.DIABETIC_FRIENDLY: frozenset({"high_sugar"}),
}


def forbidden_tags(profile: BodyProfile | None) -> frozenset[str]:
    if profile is None:
        return frozenset()
    out: set[str] = set()
    for restriction in profile.restrictions:
        out |= FORBIDDEN_TAGS.get(restriction, frozenset())
    return frozenset(out)


def is_safe_for(profile: BodyProfile | None, name: str, food: FoodItem | None = None) -> bool:
    """
    `food` may be None when `name` is not in the catalogue.  Its tags are
    unknown, so it fails any restriction and is otherwise screened by
    allergy against its name only.
    """
    if profile is None:
        return True
    if food is None and profile.restrictions:
        return False

    tags = {t.lower() for t in food.tags} if food is not None else set()
    if tags & forbidden_tags(profile):
        return False

    haystack = [name.lower(), *tags]
    for allergy in profile.allergies:
        needle = allergy.strip().lower()
        if needle and any(needle in h for h in haystack):
            return False
    return True
