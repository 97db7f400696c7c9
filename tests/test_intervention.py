"""
Intervention tracker, driven through the in-memory store.
"""
from __future__ import annotations

import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from core.deficiency import Severity
from core.intervention import (
    Action,
    InterventionTracker,
    MemoryInterventionStore,
    advance,
    level_for,
)
from core.models.intervention import InterventionLevel, open_record, touch
from core.nutrients import Nutrient

UID = 42
IRON = Nutrient.IRON
DAY1 = date(2024, 5, 1)
NOW = datetime(2024, 5, 1, 6, tzinfo=timezone.utc)


class FakeDispatcher:
    def __init__(self, *results):
        self.results = list(results) or [True]
        self.calls = []

    async def notify(self, user_id, record):
        self.calls.append((user_id, record.nutrient, record.consecutive_days))
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


def _tracker(dispatcher=None):
    store = MemoryInterventionStore()
    return store, InterventionTracker(store, dispatcher or FakeDispatcher(), clock=lambda: NOW)


def _run_days(tracker, severities, start=DAY1, nutrient=IRON):
    async def go():
        steps = []
        for i, sev in enumerate(severities):
            steps.append(await tracker.evaluate(UID, nutrient, sev, start + timedelta(days=i)))
        return steps
    return asyncio.run(go())


# ── escalation table ─────────────────────────────────────────────────
def test_level_for_table():
    assert [level_for(d) for d in range(1, 9)] == [
        None, None,
        InterventionLevel.NORMAL, InterventionLevel.NORMAL,
        InterventionLevel.ELEVATED, InterventionLevel.ELEVATED,
        InterventionLevel.CRITICAL, InterventionLevel.CRITICAL,
    ]


def test_seven_deficient_days_escalate_then_reset():
    store, tracker = _tracker()
    steps = _run_days(tracker, [Severity.SEVERE] * 7 + [Severity.NONE])

    assert [s.record.consecutive_days for s in steps[:7]] == [1, 2, 3, 4, 5, 6, 7]
    assert [s.record.level for s in steps[:7]] == [
        None, None,
        InterventionLevel.NORMAL, InterventionLevel.NORMAL,
        InterventionLevel.ELEVATED, InterventionLevel.ELEVATED,
        InterventionLevel.CRITICAL,
    ]
    assert steps[0].action is Action.OPEN
    assert steps[6].record.message.startswith("URGENT")

    last = steps[7]
    assert last.action is Action.RESOLVE
    assert last.record.consecutive_days == 0
    assert last.record.level is None
    assert asyncio.run(store.active(UID)) == []


def test_mild_counts_as_recovered():
    _, tracker = _tracker()
    steps = _run_days(tracker, [Severity.MODERATE, Severity.MILD])
    assert steps[1].action is Action.RESOLVE


def test_not_deficient_without_record_is_skip():
    store, tracker = _tracker()
    (step,) = _run_days(tracker, [Severity.NONE])
    assert step.action is Action.SKIP
    assert store.history(UID, IRON) == []


# ── idempotence ──────────────────────────────────────────────────────
def test_same_day_twice_is_noop():
    _, tracker = _tracker()
    first, second = _run_days(tracker, [Severity.SEVERE, Severity.SEVERE], start=DAY1)
    again = asyncio.run(tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1 + timedelta(days=1)))
    assert second.record.consecutive_days == 2
    assert again.action is Action.NOOP
    assert again.record.consecutive_days == 2


def test_older_date_is_noop():
    _, tracker = _tracker()
    _run_days(tracker, [Severity.SEVERE] * 3)
    step = asyncio.run(tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1))
    assert step.action is Action.NOOP
    assert step.record.consecutive_days == 3


# ── notification ─────────────────────────────────────────────────────
def test_critical_notifies_once():
    dispatcher = FakeDispatcher(True)
    _, tracker = _tracker(dispatcher)
    steps = _run_days(tracker, [Severity.SEVERE] * 9)

    assert dispatcher.calls == [(UID, IRON, 7)]
    assert steps[6].record.notified
    assert steps[8].record.notified
    assert steps[8].record.consecutive_days == 9


def test_repeat_run_on_critical_day_does_not_renotify():
    dispatcher = FakeDispatcher(True)
    _, tracker = _tracker(dispatcher)
    _run_days(tracker, [Severity.SEVERE] * 7)
    step = asyncio.run(tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1 + timedelta(days=6)))
    assert step.action is Action.NOOP
    assert step.record.notified
    assert len(dispatcher.calls) == 1


def test_failed_notification_is_retried_next_day():
    dispatcher = FakeDispatcher(False, True)
    _, tracker = _tracker(dispatcher)
    steps = _run_days(tracker, [Severity.SEVERE] * 8)

    assert not steps[6].record.notified
    assert steps[7].record.notified
    assert [c[2] for c in dispatcher.calls] == [7, 8]


def test_raising_dispatcher_is_contained():
    dispatcher = FakeDispatcher(RuntimeError("smtp down"))
    _, tracker = _tracker(dispatcher)
    steps = _run_days(tracker, [Severity.SEVERE] * 7)
    assert steps[6].record.level is InterventionLevel.CRITICAL
    assert not steps[6].record.notified


def test_notified_never_resets():
    rec = touch(open_record(UID, IRON, DAY1, NOW), NOW, notified=True)
    with pytest.raises(ValueError):
        touch(rec, NOW, notified=False)


# ── gaps ─────────────────────────────────────────────────────────────
def test_gap_archives_and_restarts():
    store, tracker = _tracker()

    async def go():
        await tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1)
        await tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1 + timedelta(days=1))
        return await tracker.evaluate(UID, IRON, Severity.SEVERE, DAY1 + timedelta(days=4))

    step = asyncio.run(go())
    assert step.action is Action.RESTART
    assert step.record.consecutive_days == 1
    assert not step.record.notified

    old, new = store.history(UID, IRON)
    assert old.resolved_at is not None
    assert new.active and new.id != old.id


def test_advance_requires_identity_for_first_record():
    with pytest.raises(ValueError):
        advance(None, Severity.SEVERE, DAY1, NOW)


# ── per-user batch ──────────────────────────────────────────────────
def test_run_day_covers_every_scored_nutrient():
    _, tracker = _tracker()
    statuses = {n: Severity.SEVERE for n in Nutrient}
    steps = asyncio.run(tracker.run_day(UID, statuses, DAY1))
    assert Nutrient.CALORIES not in steps
    assert len(steps) == 15
    assert all(s.action is Action.OPEN for s in steps.values())


def test_concurrent_users_are_independent():
    store, tracker = _tracker()

    async def go():
        await asyncio.gather(
            *(tracker.evaluate(uid, IRON, Severity.SEVERE, DAY1) for uid in (1, 2, 3))
        )
        await asyncio.gather(
            *(tracker.evaluate(uid, IRON, Severity.SEVERE, DAY1) for uid in (1, 2, 3))
        )

    asyncio.run(go())
    for uid in (1, 2, 3):
        (rec,) = store.history(uid, IRON)
        assert rec.consecutive_days == 1
