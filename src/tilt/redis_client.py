"""Redis client for rate limiting and the leaderboard cache.

Redis is an accelerator here, not a source of truth: callers that can run
without it use ``get_redis_optional`` and treat errors as cache misses.
Short socket timeouts keep a slow Redis from stalling requests.
"""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str, timeout_seconds: float = 1.0) -> None:
    """Create the shared client. Connections are opened lazily on first command."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        health_check_interval=30,
    )


async def close_redis() -> None:
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """The shared client. Raises RuntimeError before ``init_redis``."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


def get_redis_optional() -> redis.Redis | None:
    """The shared client, or None when Redis was never configured (FastAPI dependency)."""
    return _pool
