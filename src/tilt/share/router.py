"""Share endpoints - public preview lookup and share creation."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.auth.dependencies import get_current_user
from tilt.config import get_settings
from tilt.database import get_session
from tilt.db.models import Profile
from tilt.problems.interaction_service import InteractionNotFoundError, as_utc
from tilt.share.schemas import CreateShareRequest, SharePreview, ShareResponse
from tilt.share.service import build_preview, create_share, find_share_target

router = APIRouter(prefix="/api/v1/share", tags=["Share"])


@router.get("/{visible_id}", response_model=SharePreview)
async def get_share_preview(
    visible_id: str,
    db: AsyncSession = Depends(get_session),
) -> SharePreview:
    """Public: resolve a share link for social-preview rendering."""
    target = await find_share_target(db, visible_id)
    if target is None:
        raise HTTPException(status_code=404, detail="Share not found")
    return build_preview(target, get_settings().share_fast_solve_seconds)


@router.post("", response_model=ShareResponse, status_code=201)
async def create_share_endpoint(
    body: CreateShareRequest,
    user: Profile = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ShareResponse:
    """Snapshot one of the caller's interactions as a share."""
    if not body.interaction_id:
        raise HTTPException(status_code=400, detail="Missing interactionId")
    settings = get_settings()
    try:
        share, visible_id = await create_share(
            db,
            body.interaction_id,
            user.id,
            fast_seconds=settings.share_fast_solve_seconds,
            gave_up=body.gave_up,
        )
    except InteractionNotFoundError as e:
        raise HTTPException(status_code=404, detail="Interaction not found") from e
    await db.commit()

    return ShareResponse(
        share_code=share.share_code,
        interaction_id=share.interaction_id,
        status=share.status,
        share_message=share.share_message,
        share_url=f"{settings.share_base_url.rstrip('/')}/share/{visible_id}",
        created_at=as_utc(share.created_at),
    )
