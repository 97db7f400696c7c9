"""
Seed the default food catalogue into the `food_items` table.

Usage
-----

    # the ten reference foods, only if the catalogue is empty
    python -m scripts.seed_foods

    # custom list (same schema) in a JSON file
    python -m scripts.seed_foods --file path/to/foods.json
"""
from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, List

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import func, select

from core.models.food import FoodCategory
from core.models.intervention import utcnow
from core.nutrients import coerce_amounts
from services.db import Food, create_all, session_scope

# ────────────────────────────────────────────────────────────────────
# amounts per serving; micronutrients in the units of `core.nutrients`
_DEFAULT_FOODS: List[dict[str, Any]] = [
    {
        "name": "Apple", "description": "Fresh medium apple", "category": "FRUIT",
        "tags": ["fruit"],
        "nutrients": {
            "calories": 95, "protein": 0.5, "carbohydrates": 25, "fat": 0.3, "fiber": 4.4,
            "vitamin_a": 5, "vitamin_c": 8.4, "vitamin_e": 0.3, "vitamin_k": 4,
            "calcium": 11, "iron": 0.2, "magnesium": 9, "zinc": 0.1, "potassium": 195,
        },
    },
    {
        "name": "Banana", "description": "Medium banana", "category": "FRUIT",
        "tags": ["fruit"],
        "nutrients": {
            "calories": 105, "protein": 1.3, "carbohydrates": 27, "fat": 0.4, "fiber": 3.1,
            "vitamin_a": 4, "vitamin_c": 10.3, "vitamin_e": 0.1, "vitamin_k": 0.6,
            "calcium": 6, "iron": 0.3, "magnesium": 32, "zinc": 0.2, "potassium": 422,
        },
    },
    {
        "name": "Chicken Breast", "description": "Grilled skinless chicken breast (100g)",
        "category": "PROTEIN", "tags": ["meat", "poultry"],
        "nutrients": {
            "calories": 165, "protein": 31, "carbohydrates": 0, "fat": 3.6, "fiber": 0,
            "vitamin_a": 6, "vitamin_b12": 0.3, "vitamin_e": 0.3, "vitamin_d": 0.1,
            "calcium": 15, "iron": 1.0, "magnesium": 29, "zinc": 1.0, "potassium": 256,
        },
    },
    {
        "name": "Brown Rice", "description": "Cooked brown rice (1 cup)", "category": "GRAIN",
        "tags": ["grain"],
        "nutrients": {
            "calories": 216, "protein": 5, "carbohydrates": 45, "fat": 1.8, "fiber": 3.5,
            "vitamin_e": 0.1, "vitamin_k": 1.2,
            "calcium": 20, "iron": 0.8, "magnesium": 84, "zinc": 1.2, "potassium": 84,
        },
    },
    {
        "name": "Broccoli", "description": "Steamed broccoli (1 cup)", "category": "VEGETABLE",
        "tags": ["vegetable"],
        "nutrients": {
            "calories": 55, "protein": 3.7, "carbohydrates": 11, "fat": 0.6, "fiber": 5.1,
            "vitamin_a": 120, "vitamin_c": 101, "vitamin_e": 2.3, "vitamin_k": 220,
            "calcium": 62, "iron": 1.0, "magnesium": 33, "zinc": 0.7, "potassium": 457,
        },
    },
    {
        "name": "Milk", "description": "Whole milk (1 cup)", "category": "DAIRY",
        "tags": ["dairy"],
        "nutrients": {
            "calories": 149, "protein": 7.7, "carbohydrates": 11.7, "fat": 7.9, "fiber": 0,
            "vitamin_a": 112, "vitamin_d": 3.2, "vitamin_b12": 1.1, "vitamin_k": 0.5,
            "calcium": 276, "iron": 0.1, "magnesium": 24, "zinc": 0.9, "potassium": 322,
        },
    },
    {
        "name": "Egg", "description": "Large boiled egg", "category": "PROTEIN",
        "tags": ["egg"],
        "nutrients": {
            "calories": 78, "protein": 6.3, "carbohydrates": 0.6, "fat": 5.3, "fiber": 0,
            "vitamin_a": 74, "vitamin_d": 1.1, "vitamin_e": 0.5, "vitamin_b12": 0.6,
            "calcium": 25, "iron": 0.6, "magnesium": 5, "zinc": 0.5, "potassium": 63,
        },
    },
    {
        "name": "Salmon", "description": "Grilled salmon fillet (100g)", "category": "PROTEIN",
        "tags": ["fish"],
        "nutrients": {
            "calories": 206, "protein": 22, "carbohydrates": 0, "fat": 13, "fiber": 0,
            "vitamin_a": 15, "vitamin_d": 13.1, "vitamin_e": 1.1, "vitamin_b12": 2.8,
            "calcium": 15, "iron": 0.3, "magnesium": 30, "zinc": 0.4, "potassium": 384,
        },
    },
    {
        "name": "Spinach", "description": "Raw spinach (1 cup)", "category": "VEGETABLE",
        "tags": ["vegetable"],
        "nutrients": {
            "calories": 7, "protein": 0.9, "carbohydrates": 1.1, "fat": 0.1, "fiber": 0.7,
            "vitamin_a": 141, "vitamin_c": 8.4, "vitamin_e": 0.6, "vitamin_k": 145,
            "calcium": 30, "iron": 0.8, "magnesium": 24, "zinc": 0.2, "potassium": 167,
        },
    },
    {
        "name": "Almonds", "description": "Raw almonds (28g)", "category": "NUT_SEED",
        "tags": ["nuts"],
        "nutrients": {
            "calories": 164, "protein": 6, "carbohydrates": 6, "fat": 14, "fiber": 3.5,
            "vitamin_e": 7.3,
            "calcium": 76, "iron": 1.0, "magnesium": 77, "zinc": 0.9, "potassium": 208,
        },
    },
]


def to_row(item: dict[str, Any]) -> Food:
    """One catalogue dict → `Food` row, every tracked nutrient filled in."""
    category = FoodCategory.parse(item.get("category")) or FoodCategory.OTHER
    amounts = coerce_amounts(item.get("nutrients"))
    return Food(
        name=item["name"],
        description=item.get("description"),
        category=category.value,
        tags=[str(t).lower() for t in item.get("tags", [])],
        is_active=item.get("active", True),
        serving_size=float(item.get("serving_size", 100.0)),
        nutrients={n.value: v for n, v in amounts.items()},
        created_at=utcnow(),
    )


async def _seed(foods: list[dict[str, Any]], force: bool) -> None:
    await create_all()
    async with session_scope() as db:
        existing = (await db.execute(select(func.count(Food.id)))).scalar_one()
        if existing and not force:
            print(f"· skip – catalogue already holds {existing} foods (use --force)")
            return
        db.add_all([to_row(f) for f in foods])
        await db.commit()
    print(f"✓ inserted {len(foods)} foods")


def _load_json(path: Path) -> list[dict[str, Any]]:
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("JSON file must contain a list of food dictionaries")
    return data


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument(
        "--file",
        type=Path,
        help="optional JSON file with foods to seed (overrides defaults)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="insert even when the catalogue is not empty",
    )
    args = parser.parse_args()

    foods = _load_json(args.file) if args.file else _DEFAULT_FOODS
    asyncio.run(_seed(foods, args.force))


if __name__ == "__main__":  # pragma: no cover
    main()
