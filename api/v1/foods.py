from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.food import FoodItem
from services.catalog import FoodCatalog
from services.db import get_session
from api.v1.schemas import FoodOut

router = APIRouter()


def _out(food: FoodItem) -> FoodOut:
    profile = food.profile
    return FoodOut(
        id=food.id,
        name=food.name,
        category=food.category,
        tags=sorted(food.tags),
        serving_size=profile.serving_size if profile else 100.0,
        nutrients={n.value: v for n, v in profile.amounts.items()} if profile else {},
    )


@router.get("", response_model=list[FoodOut])
async def search_foods(
    query: str | None = Query(None, description="case-insensitive name fragment"),
    category: str | None = Query(None, description="unknown values are ignored"),
    db: AsyncSession = Depends(get_session),
) -> list[FoodOut]:
    catalog = await FoodCatalog.load(db)
    return [_out(f) for f in catalog.search(query, category)]


@router.get("/categories", response_model=dict[str, int])
async def category_counts(db: AsyncSession = Depends(get_session)) -> dict[str, int]:
    catalog = await FoodCatalog.load(db)
    return catalog.category_counts()
