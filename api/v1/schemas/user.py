from __future__ import annotations

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from core.models.profile import ActivityLevel, DietaryRestriction


class UserCreate(BaseModel):
    id: int | None = None
    name: str | None = None
    email: str | None = None

    model_config = ConfigDict(from_attributes=True)


class UserOut(UserCreate):
    id: int
    created_at: datetime
    updated_at: datetime


class BodyProfileIn(BaseModel):
    weight_kg: float | None = Field(None, gt=0)
    height_cm: float | None = Field(None, gt=0)
    age: int | None = Field(None, ge=0)
    activity_level: ActivityLevel | None = None
    dietary_restrictions: List[DietaryRestriction] = []
    allergies: List[str] = []


class BodyProfileOut(BodyProfileIn):
    user_id: int
    bmi: float | None = None
    bmi_category: str | None = None
