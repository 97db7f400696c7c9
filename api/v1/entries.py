from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.intervention import utcnow
from core.nutrients import Nutrient
from services.db import DietaryEntry, Food, User, get_session, to_food
from api.v1.schemas import EntryCreate, EntryOut

router = APIRouter()


def _out(row: DietaryEntry, food: Food | None) -> EntryOut:
    item = to_food(food) if food is not None else None
    kcal = item.profile[Nutrient.CALORIES] * row.portion_size if item and item.profile else 0.0
    return EntryOut(
        id=row.id,
        user_id=row.user_id,
        food_id=row.food_id,
        food_name=food.name if food is not None else None,
        portion_size=row.portion_size,
        consumed_at=row.consumed_at,
        meal_type=row.meal_type,
        calories=round(kcal, 1),
    )


def _naive_local(moment: datetime | None) -> datetime:
    if moment is None:
        return datetime.now()
    if moment.tzinfo is not None:
        return moment.astimezone().replace(tzinfo=None)
    return moment


@router.post("", response_model=EntryOut, status_code=status.HTTP_201_CREATED)
async def log_entry(
    body: EntryCreate,
    db: AsyncSession = Depends(get_session),
) -> EntryOut:
    if await db.get(User, body.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    food = await db.get(Food, body.food_id)
    if food is None or not food.is_active:
        raise HTTPException(status_code=404, detail="Food not found")

    row = DietaryEntry(
        user_id=body.user_id,
        food_id=body.food_id,
        portion_size=body.portion_size,
        consumed_at=_naive_local(body.consumed_at),
        meal_type=body.meal_type.value if body.meal_type else None,
        created_at=utcnow(),
    )
    db.add(row)
    await db.commit()
    return _out(row, food)


@router.get("/{user_id}", response_model=list[EntryOut])
async def list_entries(
    user_id: int,
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
) -> list[EntryOut]:
    if await db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    res = await db.execute(
        select(DietaryEntry, Food)
        .join(Food, Food.id == DietaryEntry.food_id, isouter=True)
        .where(DietaryEntry.user_id == user_id)
        .order_by(DietaryEntry.consumed_at.desc(), DietaryEntry.id.desc())
        .limit(limit)
    )
    return [_out(entry, food) for entry, food in res.all()]
