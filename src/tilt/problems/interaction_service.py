"""Interaction tracking: reactions and solved toggles.

Mutations target an interaction id and are only applied when the
interaction belongs to the calling user.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import UserProblemInteraction
from tilt.stats.daily_stats import record_stat_event

logger = structlog.get_logger()


class InteractionNotFoundError(LookupError):
    """No interaction with that id is owned by the caller."""


@dataclass(frozen=True)
class SolvedResult:
    solved: bool
    time_spent_seconds: int | None = None


def as_utc(dt: datetime) -> datetime:
    """Treat naive timestamps (SQLite round-trips) as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def elapsed_seconds(started_at: datetime, now: datetime) -> int:
    """Whole seconds between start and now, floored, never negative."""
    delta = as_utc(now) - as_utc(started_at)
    return max(0, int(delta.total_seconds()))


def normalize_uuid(value: str) -> str | None:
    """Canonical lowercase dashed form, or None if the value is not a UUID."""
    try:
        return str(uuid.UUID(value))
    except (ValueError, AttributeError, TypeError):
        return None


async def get_owned_interaction(
    db: AsyncSession,
    interaction_id: str,
    user_id: str,
) -> UserProblemInteraction:
    """Fetch an interaction owned by ``user_id``.

    Raises:
        InteractionNotFoundError: If the id is malformed, unknown, or owned by someone else.
    """
    canonical_id = normalize_uuid(interaction_id)
    if canonical_id is None:
        raise InteractionNotFoundError(interaction_id)
    result = await db.execute(
        select(UserProblemInteraction).where(UserProblemInteraction.id == canonical_id)
    )
    interaction = result.scalar_one_or_none()
    if interaction is None:
        raise InteractionNotFoundError(interaction_id)
    if interaction.user_id != user_id:
        logger.warning("interaction_owner_mismatch", interaction_id=interaction_id, user_id=user_id)
        raise InteractionNotFoundError(interaction_id)
    return interaction


async def record_reaction(
    db: AsyncSession,
    interaction_id: str,
    user_id: str,
    reaction: str | None,
) -> UserProblemInteraction:
    """Overwrite the reaction (like, dislike, or None to clear). Last write wins."""
    interaction = await get_owned_interaction(db, interaction_id, user_id)
    interaction.reaction = reaction
    await db.flush()
    return interaction


async def toggle_solved(
    db: AsyncSession,
    interaction_id: str,
    user_id: str,
    solved: bool,
    now: datetime | None = None,
) -> SolvedResult:
    """Mark an interaction solved or unsolved.

    Solving records solved_at and the elapsed seconds since the problem was
    first served. The day's solved counter only moves when the stored state
    actually changes, so repeated identical calls never double count.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    interaction = await get_owned_interaction(db, interaction_id, user_id)
    was_solved = interaction.solved

    if solved:
        time_spent = elapsed_seconds(interaction.started_at, now)
        interaction.solved = True
        interaction.solved_at = now
        interaction.time_spent_seconds = time_spent
        await db.flush()
        if not was_solved:
            await record_stat_event(db, user_id, "solved", today=as_utc(now).date())
            logger.info("problem_solved", interaction_id=interaction_id, time_spent_seconds=time_spent)
        return SolvedResult(solved=True, time_spent_seconds=time_spent)

    interaction.solved = False
    interaction.solved_at = None
    await db.flush()
    if was_solved:
        await record_stat_event(db, user_id, "unsolved", today=as_utc(now).date())
    return SolvedResult(solved=False)
