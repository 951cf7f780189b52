"""FastAPI authentication dependencies."""

from __future__ import annotations

import jwt
import structlog
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tilt.auth.identity import Identity, verify_session
from tilt.auth.service import sync_profile
from tilt.config import get_settings
from tilt.database import get_session
from tilt.db.models import Profile

logger = structlog.get_logger()

_bearer = HTTPBearer(auto_error=False)


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    """Bearer header wins; fall back to the identity provider's session cookie."""
    if credentials is not None:
        return credentials.credentials
    return request.cookies.get(get_settings().session_cookie_name)


async def get_current_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> Identity:
    """Verify the session token and return the identity. 401 on any failure."""
    token = _extract_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        return verify_session(token)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail="Unauthorized") from e


async def get_current_user(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_session),
) -> Profile:
    """
    Return the caller's profile, mirroring the identity on first sight.

    Works for every endpoint that needs an authenticated session.
    """
    profile, created = await sync_profile(db, identity)
    if created:
        await db.commit()
    return profile


async def require_admin(
    user: Profile = Depends(get_current_user),
) -> Profile:
    """
    Same as get_current_user but additionally requires role 'admin'.

    Non-admins get the same 401 as anonymous callers so admin routes are not discoverable.
    """
    if not user.is_admin:
        logger.info("admin_access_denied", user_id=user.id)
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user
