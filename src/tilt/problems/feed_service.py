"""Feed selection: serve unseen published problems with lazily created interactions."""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.db.models import Problem, UserProblemInteraction
from tilt.db.upsert import insert_for
from tilt.problems.blocks import BlockParseError, ContentBlock, parse_blocks
from tilt.problems.interaction_service import as_utc, normalize_uuid
from tilt.problems.schemas import ProblemWithInteraction
from tilt.problems.selection import RandomSelectionPolicy, SelectionPolicy
from tilt.problems.visible_ids import generate_visible_id
from tilt.stats.daily_stats import record_stat_event

logger = structlog.get_logger()


def parse_exclude_param(raw: str | None) -> list[str]:
    """Split a comma-separated exclude list, dropping blanks and non-UUID ids."""
    if not raw:
        return []
    ids: list[str] = []
    for part in raw.split(","):
        canonical = normalize_uuid(part.strip())
        if canonical is not None:
            ids.append(canonical)
    return ids


async def ensure_interaction(
    db: AsyncSession,
    user_id: str,
    problem_id: str,
    now: datetime,
) -> bool:
    """Create the (user, problem) interaction if absent. Returns True when created.

    A single INSERT ... ON CONFLICT (user_id, problem_id) DO NOTHING, so two
    concurrent feed requests cannot both create a row for the same pair.
    """
    stmt = (
        insert_for(db, UserProblemInteraction)
        .values(
            id=str(uuid.uuid4()),
            visible_id=generate_visible_id(),
            user_id=user_id,
            problem_id=problem_id,
            started_at=now,
        )
        .on_conflict_do_nothing(
            index_elements=[UserProblemInteraction.user_id, UserProblemInteraction.problem_id],
        )
        .returning(UserProblemInteraction.id)
    )


@dataclass(frozen=True)
class _Candidate:
    problem: Problem
    question_blocks: list[ContentBlock]
    answer_blocks: list[ContentBlock]


def _validated(problem: Problem) -> _Candidate | None:
    """Parse a problem's stored blocks; None (logged) when they fail validation."""
    try:
        return _Candidate(problem, parse_blocks(problem.question_blocks), parse_blocks(problem.answer_blocks))
    except BlockParseError as e:
        logger.warning("problem_blocks_invalid", problem_id=problem.id, error=str(e))
        return None


async def _pick_servable(
    db: AsyncSession,
    user_id: str,
    excluded: set[str],
    limit: int,
    policy: SelectionPolicy,
) -> list[_Candidate]:
    """Ask the policy for candidates until ``limit`` valid published problems are found.

    Rows that fail block validation are set aside and replaced by further
    candidates, so a broken row never shrinks a batch or ends the feed early.
    ``excluded`` grows with every id considered.
    """
    picked: list[_Candidate] = []
    while len(picked) < limit:
        wanted = limit - len(picked)
        chosen = [pid for pid in await policy.choose(db, user_id, excluded, wanted) if pid not in excluded]
        chosen = chosen[:wanted]
        if not chosen:
            break
        excluded.update(chosen)

        result = await db.execute(select(Problem).where(Problem.id.in_(chosen)))
        by_id = {p.id: p for p in result.scalars()}
        for pid in chosen:
            problem = by_id.get(pid)
            if problem is None or not problem.is_published:
                continue
            candidate = _validated(problem)
            if candidate is not None:
                picked.append(candidate)
    return picked


def _view_model(candidate: _Candidate, interaction: UserProblemInteraction) -> ProblemWithInteraction:
    problem = candidate.problem
    return ProblemWithInteraction(
        id=problem.id,
        title=problem.title,
        question_blocks=candidate.question_blocks,
        answer_blocks=candidate.answer_blocks,
        background_video_url=problem.background_video_url,
        background_music_url=problem.background_music_url,
        effect=problem.effect or "none",
        interaction_id=interaction.id,
        visible_id=interaction.visible_id,
        reaction=interaction.reaction,
        solved=interaction.solved,
        started_at=as_utc(interaction.started_at),
    )


async def get_next_problems(
    db: AsyncSession,
    user_id: str,
    exclude_ids: Iterable[str] = (),
    limit: int = 5,
    policy: SelectionPolicy | None = None,
    now: datetime | None = None,
) -> list[ProblemWithInteraction]:
    """Pick up to ``limit`` unseen published problems for the user.

    Blocks are validated before any bookkeeping: only servable problems get
    an interaction, and each creation counts as an attempt in today's stats.
    An empty list means nothing unseen and servable remains.
    """
    if policy is None:
        policy = RandomSelectionPolicy()
    if now is None:
        now = datetime.now(timezone.utc)

    excluded = set(exclude_ids)
    requested_exclusions = len(excluded)
    candidates = await _pick_servable(db, user_id, excluded, limit, policy)
    if not candidates:
        logger.info("feed_exhausted", user_id=user_id, excluded=requested_exclusions)
        return []

    for candidate in candidates:
        if await ensure_interaction(db, user_id, candidate.problem.id, now):
            logger.info("interaction_created", user_id=user_id, problem_id=candidate.problem.id)
            await record_stat_event(db, user_id, "attempted", today=as_utc(now).date())

    result = await db.execute(
        select(UserProblemInteraction).where(
            UserProblemInteraction.user_id == user_id,
            UserProblemInteraction.problem_id.in_([c.problem.id for c in candidates]),
        )
    )
    interactions = {i.problem_id: i for i in result.scalars()}

    served = [
        _view_model(c, interactions[c.problem.id]) for c in candidates if c.problem.id in interactions
    ]
    logger.info(
        "feed_served", user_id=user_id, requested=limit, served=len(served), excluded=requested_exclusions
    )
    return served
