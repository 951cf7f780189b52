"""Admin problem editor: create, replace, patch, publish toggle and delete.

Block sequences are validated against the tagged-union shape before they
are serialized and stored. Invalid input raises ValueError.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.admin.schemas import EDITABLE_FIELDS, AdminProblemResponse, ProblemWriteRequest
from tilt.db.models import Problem
from tilt.problems.blocks import BlockParseError, dump_blocks, parse_blocks
from tilt.problems.interaction_service import as_utc, normalize_uuid

logger = structlog.get_logger()

_REQUIRED_FIELDS = ("title", "question_blocks", "answer_blocks")
_NON_NULLABLE = frozenset({"title", "question_blocks", "answer_blocks", "effect", "is_published"})


def _clean_blocks(field: str, value: Any) -> str:  # noqa: ANN401
    """Validate a submitted block sequence and return its stored text form."""
    blocks = parse_blocks(value)
    if not blocks:
        msg = f"{field} must contain at least one block"
        raise ValueError(msg)
    return dump_blocks(blocks)


def _clean_fields(values: dict[str, Any]) -> dict[str, Any]:
    """Validate editable fields and convert them to column values."""
    cleaned: dict[str, Any] = {}
    for field, value in values.items():
        if field not in EDITABLE_FIELDS:
            continue
        if value is None and field in _NON_NULLABLE:
            msg = f"{field} cannot be null"
            raise ValueError(msg)
        if field in ("question_blocks", "answer_blocks"):
            cleaned[field] = _clean_blocks(field, value)
        elif field == "title":
            title = value.strip()
            if not title:
                msg = "title cannot be empty"
                raise ValueError(msg)
            cleaned[field] = title
        else:
            cleaned[field] = value
    return cleaned


def _require(body: ProblemWriteRequest) -> None:
    if any(not getattr(body, f) for f in _REQUIRED_FIELDS):
        msg = "Missing required fields"
        raise ValueError(msg)


def to_response(problem: Problem) -> AdminProblemResponse:
    """Admin view. Rows whose stored blocks fail validation are flagged, not served raw."""
    try:
        question = parse_blocks(problem.question_blocks)
        answer = parse_blocks(problem.answer_blocks)
        valid = True
    except BlockParseError as e:
        logger.warning("problem_blocks_invalid", problem_id=problem.id, error=str(e))
        question, answer, valid = [], [], False

    return AdminProblemResponse(
        id=problem.id,
        title=problem.title,
        question_blocks=question,
        answer_blocks=answer,
        blocks_valid=valid,
        background_video_url=problem.background_video_url,
        background_music_url=problem.background_music_url,
        effect=problem.effect or "none",
        is_published=problem.is_published,
        created_by=problem.created_by,
        created_at=as_utc(problem.created_at) if problem.created_at else None,
        updated_at=as_utc(problem.updated_at) if problem.updated_at else None,
    )


async def list_problems(db: AsyncSession, limit: int = 100) -> list[Problem]:
    """Most recently created problems first."""
    result = await db.execute(select(Problem).order_by(Problem.created_at.desc()).limit(limit))
    return list(result.scalars().all())


async def get_problem(db: AsyncSession, problem_id: str) -> Problem | None:
    canonical = normalize_uuid(problem_id)
    if canonical is None:
        return None
    return await db.get(Problem, canonical)


async def create_problem(db: AsyncSession, body: ProblemWriteRequest, creator_id: str) -> Problem:
    """Create a problem. Effect defaults to 'none', publish flag to False."""
    _require(body)
    fields = _clean_fields(body.model_dump(include=body.model_fields_set))
    now = datetime.now(timezone.utc)
    problem = Problem(
        title=fields["title"],
        question_blocks=fields["question_blocks"],
        answer_blocks=fields["answer_blocks"],
        background_video_url=fields.get("background_video_url"),
        background_music_url=fields.get("background_music_url"),
        effect=fields.get("effect") or "none",
        is_published=bool(fields.get("is_published")),
        created_by=creator_id,
        created_at=now,
        updated_at=now,
    )
    db.add(problem)
    await db.flush()
    logger.info("problem_created", problem_id=problem.id, created_by=creator_id)
    return problem


async def replace_problem(db: AsyncSession, problem_id: str, body: ProblemWriteRequest) -> Problem | None:
    """Full update: every editable field is rewritten, omitted optionals reset to defaults."""
    problem = await get_problem(db, problem_id)
    if problem is None:
        return None
    _require(body)
    values = body.model_dump()
    values["effect"] = values.get("effect") or "none"
    values["is_published"] = bool(values.get("is_published"))
    _apply(problem, _clean_fields(values))
    await db.flush()
    logger.info("problem_replaced", problem_id=problem.id)
    return problem


async def patch_problem(db: AsyncSession, problem_id: str, body: ProblemWriteRequest) -> Problem | None:
    """Partial update of the fields present in the request body only."""
    problem = await get_problem(db, problem_id)
    if problem is None:
        return None
    _apply(problem, _clean_fields(body.model_dump(include=body.model_fields_set)))
    await db.flush()
    logger.info("problem_patched", problem_id=problem.id, fields=sorted(body.model_fields_set))
    return problem


async def toggle_published(db: AsyncSession, problem_id: str) -> Problem | None:
    """Flip the publish flag."""
    problem = await get_problem(db, problem_id)
    if problem is None:
        return None
    _apply(problem, {"is_published": not problem.is_published})
    await db.flush()
    logger.info("problem_publish_toggled", problem_id=problem.id, is_published=problem.is_published)
    return problem


async def delete_problem(db: AsyncSession, problem_id: str) -> bool:
    """Delete a problem; its interactions go with it (ON DELETE CASCADE)."""
    canonical = normalize_uuid(problem_id)
    if canonical is None:
        return False
    result = await db.execute(
        delete(Problem).where(Problem.id == canonical).returning(Problem.id)
    )
    deleted = result.scalar_one_or_none() is not None
    if deleted:
        logger.info("problem_deleted", problem_id=canonical)
    return deleted


def _apply(problem: Problem, fields: dict[str, Any]) -> None:
    for field, value in fields.items():
        setattr(problem, field, value)
    problem.updated_at = datetime.now(timezone.utc)
