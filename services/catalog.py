"""
services/catalog.py
────────────────────────────────────────────────────────────────────────
In-memory view of the food catalogue for one request / batch run.

Loaded once from the database (`FoodCatalog.load`) and then used as the
profile lookup for aggregation, the food lookup for charts, the name
lookup for recommendation screening, and for search.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from core.models.food import FoodCategory, FoodItem, FoodNutrientProfile
from core.models.profile import BodyProfile
from core.safety import is_safe_for
from services.db import load_foods

Logger = logging.getLogger(__name__)


class FoodCatalog:
    def __init__(self, foods: Iterable[FoodItem] = ()) -> None:
        self._by_id: dict[int, FoodItem] = {}
        self._by_name: dict[str, FoodItem] = {}
        for food in foods:
            self._by_id[food.id] = food
            # first active food wins a name clash
            key = food.name.lower()
            if food.active and key not in self._by_name:
                self._by_name[key] = food

    @classmethod
    async def load(cls, db: AsyncSession) -> "FoodCatalog":
        foods = await load_foods(db)
        Logger.debug("catalogue loaded: %d foods", len(foods))
        return cls(foods.values())

    def __len__(self) -> int:
        return len(self._by_id)

    # ─── lookups ────────────────────────────────────────────────────
    def lookup(self, food_id: int) -> FoodItem | None:
        return self._by_id.get(food_id)

    def profile_of(self, food_id: int) -> FoodNutrientProfile | None:
        food = self._by_id.get(food_id)
        return food.profile if food is not None else None

    def by_name(self, name: str) -> FoodItem | None:
        return self._by_name.get(name.lower())

    def is_safe_for(self, profile: BodyProfile | None, name: str) -> bool:
        return is_safe_for(profile, name, self.by_name(name))

    # ─── search ─────────────────────────────────────────────────────
    def search(self, query: str | None = None, category: str | None = None) -> list[FoodItem]:
        """
        Active foods whose name contains `query` (case-insensitive),
        optionally limited to `category`.  An unknown category is ignored
        rather than rejected.
        """
        cat = FoodCategory.parse(category)
        if category and cat is None:
            Logger.info("unknown food category %r – returning unfiltered results", category)

        needle = (query or "").strip().lower()
        out = [
            f for f in self._by_id.values()
            if f.active
            and (cat is None or f.category is cat)
            and (not needle or needle in f.name.lower())
        ]
        return sorted(out, key=lambda f: f.name.lower())

    def category_counts(self) -> dict[str, int]:
        counts = Counter(f.category for f in self._by_id.values() if f.active)
        return {c.value: counts[c] for c in FoodCategory if counts[c]}
