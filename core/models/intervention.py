from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from enum import Enum

from core.nutrients import Nutrient


class InterventionLevel(str, Enum):
    NORMAL = "NORMAL"
    ELEVATED = "ELEVATED"
    CRITICAL = "CRITICAL"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InterventionRecord:
    user_id: int
    nutrient: Nutrient
    consecutive_days: int
    last_evaluated_date: date
    created_at: datetime
    updated_at: datetime
    level: InterventionLevel | None = None
    message: str = ""
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    notified: bool = False
    resolved_at: datetime | None = None
    id: int | None = None

    @property
    def active(self) -> bool:
        return self.resolved_at is None

    @property
    def surfaced(self) -> bool:
        """Active and past the silent first days."""
        return self.active and self.level is not None


# ──────────────── explicit factories (no lifecycle hooks) ────────────
def open_record(
    user_id: int, nutrient: Nutrient, day: date, now: datetime | None = None
) -> InterventionRecord:
    now = now or utcnow()
    return InterventionRecord(
        user_id=user_id,
        nutrient=nutrient,
        consecutive_days=1,
        last_evaluated_date=day,
        created_at=now,
        updated_at=now,
    )


def touch(record: InterventionRecord, now: datetime | None = None, **changes) -> InterventionRecord:
    """Copy of `record` with `changes` applied and `updated_at` re-stamped."""
    if record.notified and changes.get("notified") is False:
        raise ValueError("notified cannot be reset once set")
    return replace(record, updated_at=now or utcnow(), **changes)


def acknowledge(record: InterventionRecord, now: datetime | None = None) -> InterventionRecord:
    now = now or utcnow()
    return touch(record, now, acknowledged=True, acknowledged_at=now)
