"""
core/intervention.py
────────────────────────────────────────────────────────────────────────
Day-by-day escalation of persistent deficiencies, keyed by
(user_id, nutrient).

    consecutive deficient days   level
    ──────────────────────────   ────────────────
    1 – 2                        none (tracked, not surfaced)
    3 – 4                        NORMAL
    5 – 6                        ELEVATED
    ≥ 7                          CRITICAL  → notify once

* `advance()` is the pure transition function.
* `InterventionTracker` runs it through an `InterventionStore`, which owns
  the atomic read-modify-write, and dispatches notifications after the
  state has been committed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Callable, Mapping, Protocol

from core.deficiency import NutrientStatus, Severity
from core.models.intervention import (
    InterventionLevel,
    InterventionRecord,
    open_record,
    touch,
    utcnow,
)
from core.nutrients import SCORED, Nutrient

_LOG = logging.getLogger(__name__)

# ──────────────── escalation table ──────────────────
# (minimum consecutive days, level), highest first
ESCALATION: tuple[tuple[int, InterventionLevel], ...] = (
    (7, InterventionLevel.CRITICAL),
    (5, InterventionLevel.ELEVATED),
    (3, InterventionLevel.NORMAL),
)

MESSAGES: dict[InterventionLevel, str] = {
    InterventionLevel.NORMAL: (
        "Your {nutrient} intake has been low for {days} days in a row. "
        "Check today's recommendations to get back on track."
    ),
    InterventionLevel.ELEVATED: (
        "Your {nutrient} intake has been low for {days} consecutive days. "
        "Plan your next meals around {nutrient}-rich foods."
    ),
    InterventionLevel.CRITICAL: (
        "URGENT: your {nutrient} intake has been low for {days} consecutive days. "
        "Please consider talking to a healthcare professional."
    ),
}


def level_for(consecutive_days: int) -> InterventionLevel | None:
    for min_days, level in ESCALATION:
        if consecutive_days >= min_days:
            return level
    return None


def message_for(nutrient: Nutrient, days: int, level: InterventionLevel | None) -> str:
    if level is None:
        return ""
    return MESSAGES[level].format(nutrient=nutrient.label, days=days)


# ──────────────────────────────────────────────────────────────────────
#  Pure transition
# ──────────────────────────────────────────────────────────────────────
class Action(str, Enum):
    NOOP = "noop"          # already evaluated for this date (or an older one)
    SKIP = "skip"          # not deficient and nothing to resolve
    OPEN = "open"          # first deficient day
    ESCALATE = "escalate"  # deficient again on the day after the last evaluation
    RESTART = "restart"    # deficient after a gap: stale record archived, new one opened
    RESOLVE = "resolve"    # back above threshold
    NOTIFIED = "notified"


@dataclass(frozen=True)
class Step:
    action: Action
    record: InterventionRecord | None = None
    archived: InterventionRecord | None = None
    should_notify: bool = False


def _resolved(record: InterventionRecord, now: datetime, **changes) -> InterventionRecord:
    return touch(record, now, consecutive_days=0, level=None, resolved_at=now, **changes)


def advance(
    latest: InterventionRecord | None,
    severity: Severity,
    day: date,
    now: datetime | None = None,
    *,
    user_id: int | None = None,
    nutrient: Nutrient | None = None,
) -> Step:
    """
    One daily step for a single (user, nutrient).

    `latest` is the most recent record for the pair, active or archived.
    `user_id`/`nutrient` are only needed when there is no record yet.
    """
    now = now or utcnow()

    if latest is not None and latest.last_evaluated_date >= day:
        return Step(Action.NOOP, latest)

    active = latest if latest is not None and latest.active else None

    if not severity.is_deficient:
        if active is None:
            return Step(Action.SKIP)
        return Step(Action.RESOLVE, _resolved(active, now, last_evaluated_date=day))

    if active is not None and active.last_evaluated_date == day - timedelta(days=1):
        days = active.consecutive_days + 1
        level = level_for(days)
        record = touch(
            active,
            now,
            consecutive_days=days,
            level=level,
            message=message_for(active.nutrient, days, level),
            last_evaluated_date=day,
        )
        return Step(
            Action.ESCALATE,
            record,
            should_notify=level is InterventionLevel.CRITICAL and not record.notified,
        )

    uid = active.user_id if active is not None else (latest.user_id if latest else user_id)
    nut = active.nutrient if active is not None else (latest.nutrient if latest else nutrient)
    if uid is None or nut is None:
        raise ValueError("user_id and nutrient are required to open a record")

    fresh = open_record(uid, nut, day, now)
    if active is not None:
        return Step(Action.RESTART, fresh, archived=_resolved(active, now))
    return Step(Action.OPEN, fresh)


def mark_notified(latest: InterventionRecord | None, now: datetime | None = None) -> Step:
    if (
        latest is None
        or not latest.active
        or latest.notified
        or latest.level is not InterventionLevel.CRITICAL
    ):
        return Step(Action.NOOP, latest)
    return Step(Action.NOTIFIED, touch(latest, now, notified=True))


# ──────────────────────────────────────────────────────────────────────
#  Collaborators
# ──────────────────────────────────────────────────────────────────────
Transition = Callable[["InterventionRecord | None"], Step]


class InterventionStore(Protocol):
    async def apply(self, user_id: int, nutrient: Nutrient, transition: Transition) -> Step:
        """
        Atomically: load the latest record for (user_id, nutrient), run
        `transition` on it, persist `step.archived` and `step.record`.
        `transition` is pure and may be re-run on a retry.
        """
        ...

    async def active(self, user_id: int) -> list[InterventionRecord]: ...


class NotificationDispatcher(Protocol):
    async def notify(self, user_id: int, record: InterventionRecord) -> bool: ...


class MemoryInterventionStore:
    """Process-local store; one asyncio lock per (user, nutrient)."""

    def __init__(self) -> None:
        self._records: dict[tuple[int, Nutrient], list[InterventionRecord]] = {}
        self._locks: dict[tuple[int, Nutrient], asyncio.Lock] = {}
        self._next_id = 1

    def history(self, user_id: int, nutrient: Nutrient) -> list[InterventionRecord]:
        return list(self._records.get((user_id, nutrient), []))

    async def apply(self, user_id: int, nutrient: Nutrient, transition: Transition) -> Step:
        key = (user_id, nutrient)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            rows = self._records.setdefault(key, [])
            step = transition(rows[-1] if rows else None)
            if step.action in (Action.NOOP, Action.SKIP):
                return step

            archived = step.archived
            if archived is not None:
                rows[-1] = archived
            record = step.record
            if record is not None:
                if record.id is None:
                    record = replace(record, id=self._next_id)
                    self._next_id += 1
                    rows.append(record)
                else:
                    rows[-1] = record
            return replace(step, record=record)

    async def active(self, user_id: int) -> list[InterventionRecord]:
        return [
            rows[-1]
            for (uid, _), rows in self._records.items()
            if uid == user_id and rows and rows[-1].active
        ]


# ──────────────────────────────────────────────────────────────────────
#  Tracker
# ──────────────────────────────────────────────────────────────────────
class InterventionTracker:
    def __init__(
        self,
        store: InterventionStore,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._clock = clock

    async def evaluate(
        self, user_id: int, nutrient: Nutrient, severity: Severity, day: date
    ) -> Step:
        now = self._clock()
        step = await self._store.apply(
            user_id,
            nutrient,
            lambda latest: advance(
                latest, severity, day, now, user_id=user_id, nutrient=nutrient
            ),
        )
        if step.action is not Action.NOOP:
            _LOG.debug(
                "user %s %s on %s: %s (%s days)",
                user_id, nutrient.value, day, step.action.value,
                step.record.consecutive_days if step.record else 0,
            )

        if step.should_notify and step.record is not None:
            if await self._dispatch(user_id, step.record):
                notified = await self._store.apply(
                    user_id, nutrient, lambda latest: mark_notified(latest, self._clock())
                )
                if notified.action is Action.NOTIFIED:
                    step = replace(step, record=notified.record)
        return step

    async def run_day(
        self,
        user_id: int,
        statuses: Mapping[Nutrient, NutrientStatus | Severity],
        day: date,
    ) -> dict[Nutrient, Step]:
        """Evaluate every scored nutrient of one user, strictly one after another."""
        out: dict[Nutrient, Step] = {}
        for nutrient in SCORED:
            status = statuses.get(nutrient)
            if status is None:
                continue
            severity = status.severity if isinstance(status, NutrientStatus) else status
            out[nutrient] = await self.evaluate(user_id, nutrient, severity, day)
        return out

    async def _dispatch(self, user_id: int, record: InterventionRecord) -> bool:
        try:
            ok = await self._dispatcher.notify(user_id, record)
        except Exception as exc:  # dispatchers must not raise; a failure is retried tomorrow
            _LOG.warning("notification for user %s (%s) raised: %s", user_id, record.nutrient.value, exc)
            return False
        if not ok:
            _LOG.warning(
                "notification for user %s (%s) failed – will retry next run",
                user_id, record.nutrient.value,
            )
        return bool(ok)


