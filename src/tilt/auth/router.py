"""Authentication router - profile mirroring for identity-provider sessions."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.auth.dependencies import get_current_identity, get_current_user
from tilt.auth.identity import Identity
from tilt.auth.schemas import ProfileResponse, SyncProfileResponse
from tilt.auth.service import sync_profile
from tilt.database import get_session
from tilt.db.models import Profile

router = APIRouter(prefix="/api/v1/auth", tags=["Auth"])


@router.post("/sync-profile", response_model=SyncProfileResponse)
async def sync_profile_endpoint(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> SyncProfileResponse:
    """Create the caller's profile after a successful external sign-in."""
    _, created = await sync_profile(db, identity)
    await db.commit()
    return SyncProfileResponse(success=True, created=created)


@router.get("/me", response_model=ProfileResponse)
async def me(user: Profile = Depends(get_current_user)) -> ProfileResponse:
    """Get own profile."""
    return ProfileResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar_url=user.avatar_url,
        role=user.role,
        created_at=user.created_at,
    )
