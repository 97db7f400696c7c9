from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from core.models.consumption import MealSlot


class EntryCreate(BaseModel):
    user_id: int
    food_id: int
    portion_size: float = Field(1.0, gt=0, description="multiple of the food's serving")
    consumed_at: datetime | None = None
    meal_type: MealSlot | None = None


class EntryOut(BaseModel):
    id: int
    user_id: int
    food_id: int
    food_name: str | None = None
    portion_size: float
    consumed_at: datetime
    meal_type: MealSlot | None = None
    calories: float = 0.0

    model_config = ConfigDict(from_attributes=True)
