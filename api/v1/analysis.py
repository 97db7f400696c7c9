from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from services import analysis
from services.db import User, get_session
from api.v1.schemas import AnalysisOut, ChartDataOut

router = APIRouter()


async def _require_user(db: AsyncSession, user_id: int) -> None:
    if await db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")


@router.get("/analysis/{user_id}/today", response_model=AnalysisOut)
async def analyze_today(user_id: int, db: AsyncSession = Depends(get_session)) -> AnalysisOut:
    await _require_user(db, user_id)
    report = await analysis.analyze_today(db, user_id)
    return AnalysisOut.model_validate(report)


@router.get("/analysis/{user_id}/week", response_model=AnalysisOut)
async def analyze_week(user_id: int, db: AsyncSession = Depends(get_session)) -> AnalysisOut:
    await _require_user(db, user_id)
    report = await analysis.analyze_week(db, user_id)
    return AnalysisOut.model_validate(report)


@router.get("/charts/{user_id}", response_model=ChartDataOut)
async def charts(
    user_id: int,
    days: int | None = Query(None, ge=1, description="window length, clamped to CHART_MAX_DAYS"),
    db: AsyncSession = Depends(get_session),
) -> ChartDataOut:
    await _require_user(db, user_id)
    data = await analysis.chart_data(db, user_id, days)
    return ChartDataOut.model_validate(data)
