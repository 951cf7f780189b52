"""Health endpoints - readiness states for database and Redis outages."""

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.exc import OperationalError

from tilt.config import get_settings
from tilt.database import get_session
from tilt.health import router as health_router
from tilt.main import create_app


class _FakeRedis:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.pings = 0

    async def ping(self) -> bool:
        self.pings += 1
        if self.error is not None:
            raise self.error
        return True


class _DownSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_ready_without_redis_is_degraded(client: AsyncClient) -> None:
    """Rate limiting and the leaderboard cache bypass a missing Redis."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {
        "status": "degraded",
        "checks": {"database": "ok", "redis": "not configured"},
    }


@pytest.mark.asyncio
async def test_ready_with_unreachable_redis_is_degraded(client: AsyncClient, monkeypatch) -> None:
    redis = _FakeRedis(RedisConnectionError("Connection refused"))
    monkeypatch.setattr(health_router, "get_redis_optional", lambda: redis)

    response = await client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {
        "status": "degraded",
        "checks": {"database": "ok", "redis": "error: ConnectionError"},
    }
    assert redis.pings == 1


@pytest.mark.asyncio
async def test_ready_when_everything_answers(client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(health_router, "get_redis_optional", lambda: _FakeRedis())

    response = await client.get("/ready")

    assert response.status_code == 200
    assert response.json() == {"status": "ready", "checks": {"database": "ok", "redis": "ok"}}


@pytest.mark.asyncio
async def test_ready_without_database_is_unavailable(engine) -> None:
    async def down_session() -> AsyncGenerator[_DownSession, None]:
        yield _DownSession()

    app = create_app()
    app.dependency_overrides[get_session] = down_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/ready")

    assert response.status_code == 503
    assert response.json() == {
        "status": "unavailable",
        "checks": {"database": "error: OperationalError", "redis": "not configured"},
    }


@pytest.mark.asyncio
async def test_version(client: AsyncClient) -> None:
    response = await client.get("/version")
    assert response.status_code == 200
    data = response.json()
    assert (data["service"], data["version"]) == ("tilt-api", "0.1.0")
    assert data["environment"] == get_settings().environment
