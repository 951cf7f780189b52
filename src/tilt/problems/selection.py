"""Problem selection policies for the feed.

The feed only asks a policy for candidate ids; interaction bookkeeping
lives in ``tilt.problems.feed_service`` and does not depend on how the
candidates were chosen.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import Problem


class SelectionPolicy(Protocol):
    """Given excluded ids and a count, return up to ``limit`` published problem ids."""

    async def choose(
        self,
        db: AsyncSession,
        user_id: str,
        exclude_ids: Collection[str],
        limit: int,
    ) -> list[str]: ...


class RandomSelectionPolicy:
    """Uniformly random published problems, no personalization."""

    async def choose(
        self,
        db: AsyncSession,
        user_id: str,
        exclude_ids: Collection[str],
        limit: int,
    ) -> list[str]:
        if limit <= 0:
            return []
        query = select(Problem.id).where(Problem.is_published.is_(True))
        if exclude_ids:
            query = query.where(Problem.id.not_in(list(exclude_ids)))
        result = await db.execute(query.order_by(func.random()).limit(limit))
        return list(result.scalars().all())


_default_policy: SelectionPolicy = RandomSelectionPolicy()


def get_selection_policy() -> SelectionPolicy:
    """FastAPI dependency; override in tests or to plug in a ranked policy."""
    return _default_policy
