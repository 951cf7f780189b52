"""Daily stats aggregation: per (user, date) counters and the running streak."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Literal

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import DailyStat
from tilt.db.upsert import insert_for

logger = structlog.get_logger()

StatEvent = Literal["attempted", "solved", "unsolved"]


def utc_today(now: datetime | None = None) -> date:
    """Calendar date in UTC. Daily rows are keyed on this."""
    if now is None:
        now = datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


def next_streak(yesterday_streak: int | None) -> int:
    """Streak for a new day's row: continues only from the immediately preceding date."""
    if yesterday_streak is None:
        return 1
    return yesterday_streak + 1


async def get_daily_stat(db: AsyncSession, user_id: str, day: date) -> DailyStat | None:
    """Fetch a user's row for one calendar date."""
    result = await db.execute(
        select(DailyStat).where(DailyStat.user_id == user_id, DailyStat.day == day)
    )
    return result.scalar_one_or_none()


async def update_daily_stats(
    db: AsyncSession,
    user_id: str,
    event: StatEvent,
    today: date | None = None,
) -> None:
    """Apply one event to today's row, creating it if absent.

    ``attempted`` and ``solved`` upsert on (user_id, date) and increment in the
    database; the streak is only written when the row is created. ``unsolved``
    never creates a row and never drops the solved count below zero.
    """
    if today is None:
        today = utc_today()

    if event == "unsolved":
        await db.execute(
            update(DailyStat)
            .where(
                DailyStat.user_id == user_id,
                DailyStat.day == today,
                DailyStat.problems_solved > 0,
            )
            .values(problems_solved=DailyStat.problems_solved - 1)
            .execution_options(synchronize_session=False)
        )
        return

    yesterday = await get_daily_stat(db, user_id, today - timedelta(days=1))
    streak = next_streak(yesterday.streak if yesterday else None)

    table = DailyStat.__table__
    counter = "problems_attempted" if event == "attempted" else "problems_solved"
    stmt = insert_for(db, table).values(
        id=str(uuid.uuid4()),
        user_id=user_id,
        date=today,
        problems_attempted=1 if event == "attempted" else 0,
        problems_solved=1 if event == "solved" else 0,
        streak=streak,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.date],
        set_={counter: table.c[counter] + 1},
    )
    await db.execute(stmt)


async def record_stat_event(
    db: AsyncSession,
    user_id: str,
    event: StatEvent,
    today: date | None = None,
) -> bool:
    """Best-effort stats side effect inside a SAVEPOINT.

    A failure is logged and rolled back to the savepoint; the caller's own
    write stays intact. Returns True when the update was applied.
    """
    try:
        async with db.begin_nested():
            await update_daily_stats(db, user_id, event, today)
    except Exception:
        logger.warning("daily_stats_update_failed", user_id=user_id, stat_event=event, exc_info=True)
        return False
    return True
