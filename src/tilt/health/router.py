"""Liveness, readiness and version endpoints.

Readiness only fails on the database. Redis backs the rate limiter and the
leaderboard cache, and both bypass it when it is down, so a Redis outage
is reported as ``degraded`` with a 200.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.config import get_settings
from tilt.database import get_session
from tilt.redis_client import get_redis_optional

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness check."""
    return {"status": "healthy"}


async def _check_database(db: AsyncSession) -> str:
    try:
        await db.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


async def _check_redis() -> str:
    redis = get_redis_optional()
    if redis is None:
        return "not configured"
    try:
        await redis.ping()
    except (RedisError, OSError) as exc:
        return f"error: {exc.__class__.__name__}"
    return "ok"


@router.get("/ready")
async def readiness(db: AsyncSession = Depends(get_session)) -> JSONResponse:  # noqa: B008
    """Readiness: 503 when the database is unreachable."""
    checks = {"database": await _check_database(db), "redis": await _check_redis()}
    if checks["database"] != "ok":
        status, code = "unavailable", 503
    elif checks["redis"] != "ok":
        status, code = "degraded", 200
    else:
        status, code = "ready", 200
    return JSONResponse(status_code=code, content={"status": status, "checks": checks})


@router.get("/version")
async def version() -> dict[str, str]:
    settings = get_settings()
    return {"service": "tilt-api", "version": settings.app_version, "environment": settings.environment}
