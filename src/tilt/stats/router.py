"""Stats and leaderboard endpoints - /api/v1/stats/*."""

from __future__ import annotations

import redis.asyncio as aioredis
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.auth.dependencies import get_current_user
from tilt.config import get_settings
from tilt.database import get_session
from tilt.db.models import Profile
from tilt.redis_client import get_redis_optional
from tilt.stats.schemas import LeaderboardResponse, UserStatsResponse
from tilt.stats.service import get_leaderboard, get_user_stats

router = APIRouter(prefix="/api/v1/stats", tags=["Stats"])


@router.get("/me", response_model=UserStatsResponse)
async def my_stats(
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserStatsResponse:
    """Today's counters, lifetime solves and the last week of activity."""
    return await get_user_stats(db, user.id, recent_days=get_settings().recent_activity_days)


@router.get("/leaderboard", response_model=LeaderboardResponse)
async def leaderboard(
    limit: int | None = Query(None, ge=1, le=100),
    _user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: aioredis.Redis | None = Depends(get_redis_optional),
) -> LeaderboardResponse:
    """Top solvers by lifetime solved count."""
    settings = get_settings()
    entries = await get_leaderboard(
        db,
        redis,
        limit=limit or settings.leaderboard_default_limit,
        cache_ttl=settings.leaderboard_cache_ttl_seconds,
    )
    return LeaderboardResponse(entries=entries)
