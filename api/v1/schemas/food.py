from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel

from core.models.food import FoodCategory


class FoodOut(BaseModel):
    id: int
    name: str
    category: FoodCategory
    tags: List[str] = []
    serving_size: float = 100.0
    nutrients: Dict[str, float] = {}
