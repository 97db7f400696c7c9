"""
Persistence against a throw-away SQLite file (aiosqlite driver).
"""
from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from core.deficiency import Severity
from core.intervention import Action, InterventionTracker
from core.models.intervention import InterventionLevel, utcnow
from core.nutrients import Nutrient
from services.db import (
    Base,
    DietaryEntry,
    Food,
    Intervention,
    SqlInterventionStore,
    User,
    delete_user,
    get_body_profile,
    query_entries,
)
from services.notifications import LogDispatcher

DAY1 = date(2024, 5, 1)


async def _setup(tmp_path):
    eng = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(eng, expire_on_commit=False)

    now = utcnow()
    async with factory() as db:
        db.add(User(id=1, name="ana", weight_kg=60, height_cm=165,
                    dietary_restrictions=["vegan", "bogus"], allergies=["peanut"],
                    created_at=now, updated_at=now))
        db.add(Food(id=1, name="Apple", category="FRUIT", tags=["fruit"], is_active=True,
                    serving_size=100.0, nutrients={"calories": 95}, created_at=now))
        db.add_all([
            DietaryEntry(user_id=1, food_id=1, portion_size=1.0,
                         consumed_at=datetime(2024, 5, 1, 8), created_at=now),
            DietaryEntry(user_id=1, food_id=1, portion_size=2.0,
                         consumed_at=datetime(2024, 5, 2, 8), created_at=now),
        ])
        await db.commit()
    return eng, factory


def test_tracker_round_trip_through_sql(tmp_path):
    async def go():
        eng, factory = await _setup(tmp_path)
        store = SqlInterventionStore(factory)
        tracker = InterventionTracker(store, LogDispatcher())

        steps = [
            await tracker.evaluate(1, Nutrient.IRON, Severity.SEVERE, DAY1 + timedelta(days=i))
            for i in range(7)
        ]
        repeat = await tracker.evaluate(1, Nutrient.IRON, Severity.SEVERE, DAY1 + timedelta(days=6))
        active = await store.active(1)
        acked = await store.acknowledge(active[0].id)
        await eng.dispose()
        return steps, repeat, active, acked

    steps, repeat, active, acked = asyncio.run(go())
    assert steps[-1].record.level is InterventionLevel.CRITICAL
    assert steps[-1].record.notified
    assert repeat.action is Action.NOOP
    assert len(active) == 1 and active[0].consecutive_days == 7
    assert acked.acknowledged and acked.acknowledged_at is not None
    assert acked.notified


def test_gap_keeps_one_active_row(tmp_path):
    async def go():
        eng, factory = await _setup(tmp_path)
        store = SqlInterventionStore(factory)
        tracker = InterventionTracker(store, LogDispatcher())
        await tracker.evaluate(1, Nutrient.ZINC, Severity.SEVERE, DAY1)
        step = await tracker.evaluate(1, Nutrient.ZINC, Severity.MODERATE, DAY1 + timedelta(days=3))
        async with factory() as db:
            rows = (await db.execute(select(Intervention).order_by(Intervention.id))).scalars().all()
        await eng.dispose()
        return step, rows

    step, rows = asyncio.run(go())
    assert step.action is Action.RESTART
    assert len(rows) == 2
    assert rows[0].resolved_at is not None
    assert rows[1].resolved_at is None


def test_query_and_profile(tmp_path):
    async def go():
        eng, factory = await _setup(tmp_path)
        async with factory() as db:
            entries = await query_entries(db, 1, datetime(2024, 5, 2), datetime(2024, 5, 3))
            profile = await get_body_profile(db, 1)
            missing = await get_body_profile(db, 404)
        await eng.dispose()
        return entries, profile, missing

    entries, profile, missing = asyncio.run(go())
    assert [e.portion_multiplier for e in entries] == [2.0]
    assert {r.value for r in profile.restrictions} == {"VEGAN"}
    assert profile.allergies == frozenset({"peanut"})
    assert missing is None


def test_delete_user_removes_owned_rows(tmp_path):
    async def go():
        eng, factory = await _setup(tmp_path)
        store = SqlInterventionStore(factory)
        await InterventionTracker(store, LogDispatcher()).evaluate(1, Nutrient.IRON, Severity.SEVERE, DAY1)
        async with factory() as db:
            deleted = await delete_user(db, 1)
            again = await delete_user(db, 1)
        async with factory() as db:
            counts = [
                (await db.execute(select(func.count()).select_from(t))).scalar_one()
                for t in (User, DietaryEntry, Intervention, Food)
            ]
        await eng.dispose()
        return deleted, again, counts

    deleted, again, counts = asyncio.run(go())
    assert deleted is True
    assert again is False
    assert counts == [0, 0, 0, 1]
