"""Shared test fixtures.

Tests run against a throwaway SQLite file per test (aiosqlite) through the
same engine/session plumbing the app uses. Redis is left uninitialized, so
rate limiting and the leaderboard cache are bypassed.
"""

from __future__ import annotations

import json
import time
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tilt.auth.identity import Identity
from tilt.auth.service import sync_profile
from tilt.config import get_settings
from tilt.database import close_db, get_engine, get_session_factory, init_db
from tilt.db import Base, Problem, Profile
from tilt.main import create_app

USER_ID = "5b0f3c4e-7a1d-4c2b-9e8f-1a2b3c4d5e6f"
OTHER_USER_ID = "9c8d7e6f-5a4b-4c3d-8e2f-0a1b2c3d4e5f"
ADMIN_ID = "0d1e2f3a-4b5c-4d6e-8f7a-8b9c0d1e2f3a"


def make_token(
    user_id: str = USER_ID,
    email: str = "solver@example.com",
    name: str | None = "Solver",
    avatar_url: str | None = None,
    expires_in: int = 3600,
    audience: str = "authenticated",
    secret: str | None = None,
) -> str:
    """Sign an identity-provider style session token."""
    settings = get_settings()
    metadata: dict[str, Any] = {}
    if name:
        metadata["full_name"] = name
    if avatar_url:
        metadata["avatar_url"] = avatar_url
    payload = {
        "sub": user_id,
        "email": email,
        "aud": audience,
        "role": "authenticated",
        "user_metadata": metadata,
        "iat": int(time.time()),
        "exp": int(time.time()) + expires_in,
    }
    return jwt.encode(
        payload,
        secret or settings.identity_jwt_secret,
        algorithm=settings.identity_jwt_algorithm,
    )


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def markdown(text: str) -> list[dict[str, str]]:
    return [{"type": "markdown", "content": text}]


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh schema in a per-test SQLite file."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'tilt.db'}")
    eng = get_engine()
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await close_db()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Short-lived sessions for setup and assertions around HTTP calls."""
    return get_session_factory()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(engine: AsyncEngine) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the test database."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _ensure_profile(
    factory: async_sessionmaker[AsyncSession],
    user_id: str,
    email: str,
    name: str | None,
    role: str = "user",
) -> Profile:
    async with factory() as session:
        profile, _ = await sync_profile(session, Identity(id=user_id, email=email, name=name))
        if role != "user":
            await session.execute(update(Profile).where(Profile.id == user_id).values(role=role))
            profile.role = role
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def user(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    """A regular profile, already mirrored."""
    return await _ensure_profile(session_factory, USER_ID, "solver@example.com", "Solver")


@pytest_asyncio.fixture
async def other_user(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    return await _ensure_profile(session_factory, OTHER_USER_ID, "rival@example.com", "Rival")


@pytest_asyncio.fixture
async def admin(session_factory: async_sessionmaker[AsyncSession]) -> Profile:
    """A profile promoted to admin out-of-band."""
    return await _ensure_profile(session_factory, ADMIN_ID, "admin@example.com", "Admin", role="admin")


@pytest.fixture
def user_headers() -> dict[str, str]:
    return bearer(make_token(USER_ID, "solver@example.com", "Solver"))


@pytest.fixture
def other_headers() -> dict[str, str]:
    return bearer(make_token(OTHER_USER_ID, "rival@example.com", "Rival"))


@pytest.fixture
def admin_headers(admin: Profile) -> dict[str, str]:
    return bearer(make_token(admin.id, admin.email, admin.name))


@pytest.fixture
def make_problem(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[Problem]]:
    """Factory that inserts a problem and returns it."""

    async def _make(
        title: str = "Two trains",
        published: bool = True,
        question: Any = None,  # noqa: ANN401
        answer: Any = None,  # noqa: ANN401
        effect: str = "none",
        problem_id: str | None = None,
    ) -> Problem:
        problem = Problem(
            id=problem_id or str(uuid.uuid4()),
            title=title,
            question_blocks=question if isinstance(question, str) else json.dumps(question or markdown(f"{title}?")),
            answer_blocks=answer if isinstance(answer, str) else json.dumps(answer or markdown("$42$")),
            effect=effect,
            is_published=published,
        )
        async with session_factory() as session:
            session.add(problem)
            await session.commit()
        return problem

    return _make
