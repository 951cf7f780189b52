"""Stats and leaderboard reads.

Leaderboard reads are cached in Redis for a short TTL. The database stays
the source of truth; without Redis every read goes straight to it.
"""

from __future__ import annotations

import json
from datetime import date

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import DailyStat, Profile, UserProblemInteraction
from tilt.stats.daily_stats import get_daily_stat, utc_today
from tilt.stats.schemas import (
    DailyActivity,
    DayStats,
    LeaderboardEntry,
    UserStatsResponse,
)

logger = structlog.get_logger()

LEADERBOARD_CACHE_KEY = "leaderboard:solved:{limit}"


async def count_solved(db: AsyncSession, user_id: str) -> int:
    """Lifetime solves: interactions with solved = true."""
    result = await db.execute(
        select(func.count(UserProblemInteraction.id)).where(
            UserProblemInteraction.user_id == user_id,
            UserProblemInteraction.solved.is_(True),
        )
    )
    return int(result.scalar() or 0)


async def get_user_stats(
    db: AsyncSession,
    user_id: str,
    today: date | None = None,
    recent_days: int = 7,
) -> UserStatsResponse:
    """Today's row (zero-filled if absent), lifetime solves and recent daily rows."""
    if today is None:
        today = utc_today()

    row = await get_daily_stat(db, user_id, today)
    today_stats = (
        DayStats(problems_solved=row.problems_solved, problems_attempted=row.problems_attempted, streak=row.streak)
        if row
        else DayStats()
    )

    recent = await db.execute(
        select(DailyStat)
        .where(DailyStat.user_id == user_id)
        .order_by(DailyStat.day.desc())
        .limit(recent_days)
    )

    return UserStatsResponse(
        today=today_stats,
        total_solved=await count_solved(db, user_id),
        recent_activity=[
            DailyActivity(
                day=r.day,
                problems_solved=r.problems_solved,
                problems_attempted=r.problems_attempted,
                streak=r.streak,
            )
            for r in recent.scalars()
        ],
    )


async def query_leaderboard(db: AsyncSession, limit: int = 10) -> list[LeaderboardEntry]:
    """Profiles ranked by solved interactions, descending.

    Left join so profiles with no solves still appear with 0. Ties keep the
    database's row order.
    """
    solved_count = func.count(UserProblemInteraction.id)
    result = await db.execute(
        select(Profile.id, Profile.name, Profile.avatar_url, solved_count.label("total_solved"))
        .outerjoin(
            UserProblemInteraction,
            and_(
                UserProblemInteraction.user_id == Profile.id,
                UserProblemInteraction.solved.is_(True),
            ),
        )
        .group_by(Profile.id, Profile.name, Profile.avatar_url)
        .order_by(solved_count.desc())
        .limit(limit)
    )
    return [
        LeaderboardEntry(
            rank=rank,
            user_id=row.id,
            name=row.name,
            avatar_url=row.avatar_url,
            total_solved=int(row.total_solved),
        )
        for rank, row in enumerate(result, start=1)
    ]


async def get_leaderboard(
    db: AsyncSession,
    redis: aioredis.Redis | None,
    limit: int = 10,
    cache_ttl: int = 30,
) -> list[LeaderboardEntry]:
    """Leaderboard with a short-lived Redis cache in front of the query."""
    cache_key = LEADERBOARD_CACHE_KEY.format(limit=limit)

    if redis is not None:
        try:
            cached = await redis.get(cache_key)
        except RedisError:
            logger.warning("leaderboard_cache_read_failed", exc_info=True)
            cached = None
        if cached:
            return [LeaderboardEntry.model_validate(e) for e in json.loads(cached)]

    entries = await query_leaderboard(db, limit)

    if redis is not None and cache_ttl > 0:
        try:
            await redis.setex(cache_key, cache_ttl, json.dumps([e.model_dump(mode="json") for e in entries]))
        except RedisError:
            logger.warning("leaderboard_cache_write_failed", exc_info=True)

    return entries
