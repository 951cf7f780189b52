"""Feed and interaction endpoints - /api/v1/problems/*."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.auth.dependencies import get_current_user
from tilt.config import get_settings
from tilt.database import get_session
from tilt.db.models import Profile
from tilt.problems.feed_service import get_next_problems, parse_exclude_param
from tilt.problems.interaction_service import InteractionNotFoundError, record_reaction, toggle_solved
from tilt.problems.schemas import (
    FeedResponse,
    ReactionRequest,
    ReactionResponse,
    SolvedRequest,
    SolvedResponse,
)
from tilt.problems.selection import SelectionPolicy, get_selection_policy

router = APIRouter(prefix="/api/v1/problems", tags=["Problems"])


@router.get("", response_model=FeedResponse)
async def get_feed(
    limit: int | None = Query(None, ge=1),
    exclude: str | None = Query(None, description="Comma-separated problem ids already seen"),
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    policy: SelectionPolicy = Depends(get_selection_policy),
) -> FeedResponse:
    """Next batch of unseen published problems. Empty list = feed exhausted."""
    settings = get_settings()
    if limit is None:
        limit = settings.feed_initial_limit
    limit = min(limit, settings.feed_max_limit)

    problems = await get_next_problems(
        db,
        user.id,
        exclude_ids=parse_exclude_param(exclude),
        limit=limit,
        policy=policy,
    )
    await db.commit()
    return FeedResponse(problems=problems)


@router.post("/reaction", response_model=ReactionResponse)
async def post_reaction(
    body: ReactionRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ReactionResponse:
    """Set or clear the caller's like/dislike on an interaction."""
    if not body.interaction_id:
        raise HTTPException(status_code=400, detail="Missing interactionId")
    try:
        await record_reaction(db, body.interaction_id, user.id, body.reaction)
    except InteractionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Interaction not found") from e
    await db.commit()
    return ReactionResponse(success=True)


@router.post("/solved", response_model=SolvedResponse, response_model_exclude_none=True)
async def post_solved(
    body: SolvedRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> SolvedResponse:
    """Toggle solved/unsolved on one of the caller's interactions."""
    if not body.interaction_id:
        raise HTTPException(status_code=400, detail="Missing interactionId")
    try:
        result = await toggle_solved(db, body.interaction_id, user.id, body.solved)
    except InteractionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Interaction not found") from e
    await db.commit()
    return SolvedResponse(success=True, solved=result.solved, time_spent_seconds=result.time_spent_seconds)
