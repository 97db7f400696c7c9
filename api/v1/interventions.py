from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from services.db import SqlInterventionStore, sessions
from api.v1.schemas import InterventionOut

router = APIRouter()


async def get_store() -> SqlInterventionStore:
    return SqlInterventionStore(await sessions())


@router.get("/{user_id}", response_model=list[InterventionOut])
async def active_interventions(
    user_id: int,
    store: SqlInterventionStore = Depends(get_store),
) -> list[InterventionOut]:
    """Active records past the silent first days (level set)."""
    records = await store.active(user_id)
    return [InterventionOut.model_validate(r) for r in records if r.surfaced]


@router.post("/{record_id}/acknowledge", response_model=InterventionOut)
async def acknowledge(
    record_id: int,
    store: SqlInterventionStore = Depends(get_store),
) -> InterventionOut:
    record = await store.acknowledge(record_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Intervention not found")
    return InterventionOut.model_validate(record)
