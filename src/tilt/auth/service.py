"""
Profile mirroring.

Every authenticated identity gets an application-owned profile row, created
on first sight with role ``user``. Role escalation is done out-of-band.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from tilt.auth.identity import Identity
from tilt.db.models import Profile
from tilt.db.upsert import insert_for

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


async def get_profile(db: AsyncSession, user_id: str) -> Profile | None:
    """Fetch a profile by identity id."""
    result = await db.execute(select(Profile).where(Profile.id == user_id))
    return result.scalar_one_or_none()


async def sync_profile(db: AsyncSession, identity: Identity) -> tuple[Profile, bool]:
    """
    Ensure a profile exists for the identity.

    Uses a single conflict-ignoring insert so concurrent first requests
    cannot create two rows. Existing profiles are left untouched.

    Returns:
        Tuple of (profile, created).
    """
    stmt = (
        insert_for(db, Profile)
        .values(
            id=identity.id,
            email=identity.email,
            name=identity.name,
            avatar_url=identity.avatar_url,
            role="user",
        )
        .on_conflict_do_nothing(index_elements=[Profile.id])
        .returning(Profile.id)
    )
    inserted = (await db.execute(stmt)).scalar_one_or_none()
    created = inserted is not None

    profile = await get_profile(db, identity.id)
    if profile is None:
        msg = f"Profile {identity.id} vanished after upsert"
        raise RuntimeError(msg)

    if created:
        logger.info("profile_created", user_id=identity.id)
    return profile, created
