"""
`python -m workers.daily_interventions [--date YYYY-MM-DD] [--user-id N]`

Evaluates yesterday's (or the given day's) intake of every user and
advances their intervention records.  Users run in parallel, bounded by
BATCH_CONCURRENCY; each user gets its own session, and the nutrients of a
single user are evaluated one after another.
Run as a Cloud Run Job / cron once a day.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import date, timedelta

from dotenv import load_dotenv
load_dotenv()

from config import settings
from core.intervention import Action, InterventionTracker
from services.analysis import run_daily_for_user
from services.catalog import FoodCatalog
from services.db import SqlInterventionStore, session_scope, sessions, user_ids
from services.notifications import dispatcher_from_settings

_LOG = logging.getLogger(__name__)


async def _run_user(
    user_id: int,
    day: date,
    tracker: InterventionTracker,
    catalog: FoodCatalog,
    gate: asyncio.Semaphore,
) -> bool:
    async with gate:
        try:
            async with session_scope() as db:
                steps = await run_daily_for_user(db, user_id, day, tracker, catalog)
        except Exception:
            _LOG.exception("daily evaluation failed for user %s", user_id)
            return False

    changed = {n.value: s.action.value for n, s in steps.items() if s.action is not Action.NOOP}
    _LOG.info("user %s on %s: %s", user_id, day, changed or "no changes")
    return True


async def run(day: date, only_user: int | None = None) -> tuple[int, int]:
    """Returns (succeeded, failed) user counts."""
    tracker = InterventionTracker(SqlInterventionStore(await sessions()), dispatcher_from_settings())

    async with session_scope() as db:
        catalog = await FoodCatalog.load(db)
        ids = [only_user] if only_user is not None else await user_ids(db)

    gate = asyncio.Semaphore(settings.batch_concurrency)
    results = await asyncio.gather(
        *(_run_user(uid, day, tracker, catalog, gate) for uid in ids)
    )
    ok = sum(results)
    return ok, len(results) - ok


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--date", type=date.fromisoformat, help="day to evaluate (default: yesterday)")
    ap.add_argument("--user-id", type=int, help="evaluate only this user")
    args = ap.parse_args()

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    day = args.date or date.today() - timedelta(days=1)
    ok, failed = asyncio.run(run(day, args.user_id))
    _LOG.info("daily interventions for %s: %d users ok, %d failed", day, ok, failed)
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
