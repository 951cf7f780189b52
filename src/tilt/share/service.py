"""Sharing: public lookups by visible id and immutable share snapshots."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import Problem, Profile, Share, UserProblemInteraction
from tilt.problems.interaction_service import get_owned_interaction
from tilt.problems.visible_ids import generate_visible_id, is_visible_id
from tilt.share.schemas import SharePreview

logger = structlog.get_logger()

APP_NAME = "Tilt"
ANONYMOUS_NAME = "Someone"


@dataclass(frozen=True)
class ShareTarget:
    visible_id: str
    solved: bool
    time_spent_seconds: int
    problem_title: str
    user_name: str | None
    user_avatar: str | None


def status_text(solved: bool, time_spent_seconds: int | None, fast_seconds: int = 60) -> str:
    if not solved:
        return "Can you solve this?"
    if time_spent_seconds and time_spent_seconds < fast_seconds:
        return f"Solved in {time_spent_seconds} seconds!"
    return "Solved!"


def share_status(solved: bool, time_spent_seconds: int | None, fast_seconds: int = 60, gave_up: bool = False) -> str:
    """Outcome bucket for a share snapshot."""
    if solved:
        if time_spent_seconds and time_spent_seconds < fast_seconds:
            return "solved_fast"
        return "solved"
    return "gave_up" if gave_up else "unsolved"


def share_message(status: str, problem_title: str, time_spent_seconds: int | None = None) -> str:
    """Auto-generated message attached to a share."""
    if status == "solved_fast":
        return (
            f'I just solved "{problem_title}" on {APP_NAME} in {time_spent_seconds} seconds! '
            "Can you beat my time? \U0001f9e0"
        )
    if status == "solved":
        return f'I just solved "{problem_title}" on {APP_NAME}! Can you beat my time? \U0001f9e0'
    if status == "gave_up":
        return f"I challenge you to solve this problem on {APP_NAME}! \U0001f4aa"
    return f"This problem on {APP_NAME} has me stumped! Think you can solve it? \U0001f914"


async def find_share_target(db: AsyncSession, visible_id: str) -> ShareTarget | None:
    """Resolve a visible id to the interaction outcome, problem title and sharer."""
    if not is_visible_id(visible_id):
        return None
    result = await db.execute(
        select(
            UserProblemInteraction.visible_id,
            UserProblemInteraction.solved,
            UserProblemInteraction.time_spent_seconds,
            Problem.title,
            Profile.name,
            Profile.avatar_url,
        )
        .join(Problem, Problem.id == UserProblemInteraction.problem_id)
        .join(Profile, Profile.id == UserProblemInteraction.user_id)
        .where(UserProblemInteraction.visible_id == visible_id)
        .limit(1)
    )
    row = result.first()
    if row is None:
        return None
    return ShareTarget(
        visible_id=row.visible_id,
        solved=row.solved,
        time_spent_seconds=row.time_spent_seconds or 0,
        problem_title=row.title,
        user_name=row.name,
        user_avatar=row.avatar_url,
    )


def build_preview(target: ShareTarget, fast_seconds: int = 60) -> SharePreview:
    name = target.user_name or ANONYMOUS_NAME
    text = status_text(target.solved, target.time_spent_seconds, fast_seconds)
    return SharePreview(
        visible_id=target.visible_id,
        problem_title=target.problem_title,
        solved=target.solved,
        time_spent_seconds=target.time_spent_seconds,
        user_name=name,
        user_avatar=target.user_avatar,
        status_text=text,
        title=f"{target.problem_title} - {APP_NAME}",
        description=f'{name} shared a problem: "{target.problem_title}". {text}',
    )


async def create_share(
    db: AsyncSession,
    interaction_id: str,
    user_id: str,
    fast_seconds: int = 60,
    gave_up: bool = False,
) -> tuple[Share, str]:
    """Snapshot the caller's interaction outcome into an immutable share.

    Returns the share and the interaction's visible id for the share link.

    Raises:
        InteractionNotFoundError: If the interaction is not the caller's.
    """
    interaction = await get_owned_interaction(db, interaction_id, user_id)
    problem = await db.get(Problem, interaction.problem_id)
    title = problem.title if problem else ""

    status = share_status(interaction.solved, interaction.time_spent_seconds, fast_seconds, gave_up)
    share = Share(
        share_code=generate_visible_id(),
        interaction_id=interaction.id,
        status=status,
        share_message=share_message(status, title, interaction.time_spent_seconds),
        created_at=datetime.now(timezone.utc),
    )
    db.add(share)
    await db.flush()
    logger.info("share_created", share_code=share.share_code, interaction_id=interaction.id, status=status)
    return share, interaction.visible_id
