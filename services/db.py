"""
services/db.py
────────────────────────────────────────────────────────────────────────
* Async SQLAlchemy v2 setup
* Models for users, foods, dietary entries and interventions
* Small DAO helpers that hand plain `core` objects to the engine
* `SqlInterventionStore` – atomic read-modify-write for the tracker

Ownership is explicit: there are no ORM cascades and no server-side
timestamp defaults.  `delete_user()` removes a user's entries and
interventions itself, and every `created_at` / `updated_at` is stamped by
the code that creates or changes the row.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import AsyncGenerator, AsyncIterator, Iterable

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    delete,
    select,
    text,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncAttrs,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy.orm.exc import StaleDataError

from config import settings
from core.intervention import Action, Step, Transition
from core.models.consumption import ConsumptionEntry, MealSlot
from core.models.food import FoodCategory, FoodItem, FoodNutrientProfile
from core.models.intervention import (
    InterventionLevel,
    InterventionRecord,
    acknowledge,
    utcnow,
)
from core.models.profile import ActivityLevel, BodyProfile, DietaryRestriction
from core.nutrients import Nutrient

_LOG = logging.getLogger(__name__)

# ───────── connection helper ────────────────────────────────────────
_ENGINE: AsyncEngine | None = None
_SESSIONS: async_sessionmaker[AsyncSession] | None = None


async def _create_engine() -> AsyncEngine:
    # 1) plain URL
    if settings.database_url:
        return create_async_engine(settings.database_url, pool_pre_ping=True)

    # 2) Cloud SQL connector (only if URL not supplied)
    if not settings.cloud_sql_instance:
        raise RuntimeError(
            "Set either DATABASE_URL or CLOUD_SQL_CONNECTION_NAME env var"
        )

    # lazy import here
    try:
        from google.cloud.sql.connector import Connector, IPTypes  # type: ignore
    except ImportError as exc:
        raise RuntimeError(
            "cloud-sql-python-connector missing. Run:\n"
            "pip install 'cloud-sql-python-connector[asyncpg]>=1.4.0'"
        ) from exc

    connector = Connector()

    async def _getconn():  # type: ignore[name-defined]
        return await connector.connect_async(
            settings.cloud_sql_instance,
            "asyncpg",
            user=settings.db_user,
            password=settings.db_pass,
            db=settings.db_name,
            ip_type=IPTypes.PRIVATE,
        )

    return create_async_engine(
        "postgresql+asyncpg://",
        async_creator=_getconn,
        pool_pre_ping=True,
    )


async def engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        _ENGINE = await _create_engine()
    return _ENGINE


async def sessions() -> async_sessionmaker[AsyncSession]:
    global _SESSIONS
    if _SESSIONS is None:
        _SESSIONS = async_sessionmaker(await engine(), expire_on_commit=False)
    return _SESSIONS


# ───────── declarative base ──────────────────────────────────────────
Base = declarative_base(cls=AsyncAttrs)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str | None] = mapped_column(String(100))
    email: Mapped[str | None] = mapped_column(String(100))
    age: Mapped[int | None] = mapped_column(Integer)
    weight_kg: Mapped[float | None] = mapped_column(Float)
    height_cm: Mapped[float | None] = mapped_column(Float)
    activity_level: Mapped[str | None] = mapped_column(String(20))
    dietary_restrictions: Mapped[list] = mapped_column(JSON, default=list)
    allergies: Mapped[list] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class Food(Base):
    __tablename__ = "food_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), index=True)
    description: Mapped[str | None] = mapped_column(String(500))
    category: Mapped[str] = mapped_column(String(20), default=FoodCategory.OTHER.value)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    serving_size: Mapped[float] = mapped_column(Float, default=100.0)
    nutrients: Mapped[dict | None] = mapped_column(JSON)       # nutrient name → per serving
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class DietaryEntry(Base):
    __tablename__ = "consumption_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    food_id: Mapped[int] = mapped_column(ForeignKey("food_items.id"))
    portion_size: Mapped[float] = mapped_column(Float)
    consumed_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    meal_type: Mapped[str | None] = mapped_column(String(20))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class Intervention(Base):
    __tablename__ = "interventions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))
    nutrient: Mapped[str] = mapped_column(String(30))
    level: Mapped[str | None] = mapped_column(String(20))
    consecutive_days: Mapped[int] = mapped_column(Integer)
    last_evaluated_date: Mapped[date] = mapped_column(Date)
    message: Mapped[str] = mapped_column(Text, default="")
    acknowledged: Mapped[bool] = mapped_column(Boolean, default=False)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    notified: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        Index("ix_interventions_user_nutrient", "user_id", "nutrient"),
        # at most one open record per (user, nutrient)
        Index(
            "uq_interventions_active",
            "user_id",
            "nutrient",
            unique=True,
            postgresql_where=text("resolved_at IS NULL"),
            sqlite_where=text("resolved_at IS NULL"),
        ),
    )


# ───────── row → core conversions ────────────────────────────────────
def to_food(row: Food) -> FoodItem:
    return FoodItem(
        id=row.id,
        name=row.name,
        category=FoodCategory.parse(row.category) or FoodCategory.OTHER,
        profile=(
            FoodNutrientProfile.from_raw(row.nutrients, row.serving_size or 100.0)
            if row.nutrients is not None else None
        ),
        tags=frozenset(t.lower() for t in (row.tags or [])),
        active=bool(row.is_active),
    )


def to_entry(row: DietaryEntry) -> ConsumptionEntry:
    return ConsumptionEntry(
        user_id=row.user_id,
        food_id=row.food_id,
        portion_multiplier=row.portion_size,
        consumed_at=row.consumed_at,
        meal_slot=MealSlot(row.meal_type) if row.meal_type in MealSlot.__members__ else None,
    )


def _enum_set(enum_cls, raw: Iterable[str] | None) -> frozenset:
    out = set()
    for value in raw or []:
        try:
            out.add(enum_cls(str(value).upper()))
        except ValueError:
            _LOG.debug("ignoring unknown %s %r", enum_cls.__name__, value)
    return frozenset(out)


def to_profile(user: User) -> BodyProfile:
    activity = None
    if user.activity_level in ActivityLevel.__members__:
        activity = ActivityLevel(user.activity_level)
    return BodyProfile(
        weight_kg=user.weight_kg,
        height_cm=user.height_cm,
        age=user.age,
        activity_level=activity,
        restrictions=_enum_set(DietaryRestriction, user.dietary_restrictions),
        allergies=frozenset(str(a) for a in (user.allergies or []) if str(a).strip()),
    )


def to_record(row: Intervention) -> InterventionRecord:
    return InterventionRecord(
        id=row.id,
        user_id=row.user_id,
        nutrient=Nutrient(row.nutrient),
        consecutive_days=row.consecutive_days,
        last_evaluated_date=row.last_evaluated_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        level=InterventionLevel(row.level) if row.level else None,
        message=row.message or "",
        acknowledged=bool(row.acknowledged),
        acknowledged_at=row.acknowledged_at,
        notified=bool(row.notified),
        resolved_at=row.resolved_at,
    )


def _write_record(row: Intervention, rec: InterventionRecord) -> None:
    row.user_id = rec.user_id
    row.nutrient = rec.nutrient.value
    row.level = rec.level.value if rec.level else None
    row.consecutive_days = rec.consecutive_days
    row.last_evaluated_date = rec.last_evaluated_date
    row.message = rec.message
    row.acknowledged = rec.acknowledged
    row.acknowledged_at = rec.acknowledged_at
    # monotonic: never write True back to False
    row.notified = bool(row.notified) or rec.notified
    row.created_at = rec.created_at
    row.updated_at = rec.updated_at
    row.resolved_at = rec.resolved_at


# ───────── DAO helpers ───────────────────────────────────────────────
async def query_entries(
    db: AsyncSession, user_id: int, start: datetime, end: datetime
) -> list[ConsumptionEntry]:
    """Entries with start <= consumed_at < end, newest first."""
    res = await db.execute(
        select(DietaryEntry)
        .where(
            DietaryEntry.user_id == user_id,
            DietaryEntry.consumed_at >= start,
            DietaryEntry.consumed_at < end,
        )
        .order_by(DietaryEntry.consumed_at.desc(), DietaryEntry.id.desc())
    )
    return [to_entry(r) for r in res.scalars().all()]


async def load_foods(db: AsyncSession, ids: Iterable[int] | None = None) -> dict[int, FoodItem]:
    stmt = select(Food)
    if ids is not None:
        ids = set(ids)
        if not ids:
            return {}
        stmt = stmt.where(Food.id.in_(ids))
    res = await db.execute(stmt)
    return {row.id: to_food(row) for row in res.scalars().all()}


async def get_body_profile(db: AsyncSession, user_id: int) -> BodyProfile | None:
    user = await db.get(User, user_id)
    return to_profile(user) if user is not None else None


async def user_ids(db: AsyncSession) -> list[int]:
    res = await db.execute(select(User.id).order_by(User.id))
    return list(res.scalars().all())


async def delete_user(db: AsyncSession, user_id: int) -> bool:
    """Delete a user together with everything the user owns, in one transaction."""
    user = await db.get(User, user_id)
    if user is None:
        return False
    await db.execute(delete(DietaryEntry).where(DietaryEntry.user_id == user_id))
    await db.execute(delete(Intervention).where(Intervention.user_id == user_id))
    await db.delete(user)
    await db.commit()
    return True


# ───────── intervention persistence ─────────────────────────────────
class SqlInterventionStore:
    """
    Row-locked (SELECT … FOR UPDATE) read-modify-write with optimistic
    versioning as a second guard; conflicting writers retry the whole
    transition.
    """

    MAX_ATTEMPTS = 3

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._sessions = session_factory

    async def apply(self, user_id: int, nutrient: Nutrient, transition: Transition) -> Step:
        for attempt in range(1, self.MAX_ATTEMPTS + 1):
            try:
                return await self._apply_once(user_id, nutrient, transition)
            except (StaleDataError, IntegrityError) as exc:
                if attempt == self.MAX_ATTEMPTS:
                    raise
                _LOG.info(
                    "intervention write conflict for user %s (%s), retry %d: %s",
                    user_id, nutrient.value, attempt, exc,
                )
        raise RuntimeError("unreachable")

    async def _apply_once(self, user_id: int, nutrient: Nutrient, transition: Transition) -> Step:
        async with self._sessions() as db:
            async with db.begin():
                row = (
                    await db.execute(
                        select(Intervention)
                        .where(
                            Intervention.user_id == user_id,
                            Intervention.nutrient == nutrient.value,
                        )
                        .order_by(Intervention.id.desc())
                        .limit(1)
                        .with_for_update()
                    )
                ).scalar_one_or_none()

                step = transition(to_record(row) if row is not None else None)
                if step.action in (Action.NOOP, Action.SKIP):
                    return step

                if step.archived is not None and row is not None:
                    _write_record(row, step.archived)
                    await db.flush()   # close the old record before opening its successor

                record = step.record
                if record is not None:
                    if record.id is None:
                        new_row = Intervention()
                        _write_record(new_row, record)
                        db.add(new_row)
                        await db.flush()
                        record = replace(record, id=new_row.id)
                    elif row is not None:
                        _write_record(row, record)
            return replace(step, record=record)

    async def active(self, user_id: int) -> list[InterventionRecord]:
        async with self._sessions() as db:
            res = await db.execute(
                select(Intervention)
                .where(Intervention.user_id == user_id, Intervention.resolved_at.is_(None))
                .order_by(Intervention.id)
            )
            return [to_record(r) for r in res.scalars().all()]

    async def acknowledge(self, record_id: int) -> InterventionRecord | None:
        async with self._sessions() as db:
            async with db.begin():
                row = (
                    await db.execute(
                        select(Intervention).where(Intervention.id == record_id).with_for_update()
                    )
                ).scalar_one_or_none()
                if row is None:
                    return None
                rec = acknowledge(to_record(row), utcnow())
                _write_record(row, rec)
            return rec


# ───────── session helpers ───────────────────────────────────────────
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency."""
    factory = await sessions()
    async with factory() as session:
        yield session


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """Same as `get_session` for scripts and workers (`async with`)."""
    factory = await sessions()
    async with factory() as session:
        yield session


async def create_all() -> None:
    eng = await engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
