"""
Identity-provider session token verification.

Sign-in, OAuth code exchange and cookie issuance happen at the external
identity provider. This service only verifies the signed session token the
provider hands out and reads the claims it needs to mirror a profile.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any

import jwt

from tilt.config import Settings, get_settings


@dataclass(frozen=True)
class Identity:
    """The subset of identity-provider claims the application relies on."""

    id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None


def decode_session_token(token: str, settings: Settings | None = None) -> dict[str, Any]:
    """
    Verify and decode an identity-provider session token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired or not for this audience.
    """
    settings = settings or get_settings()
    options: dict[str, Any] = {"require": ["sub", "exp"]}
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.identity_jwt_secret,
            algorithms=[settings.identity_jwt_algorithm],
            audience=settings.identity_jwt_audience,
            issuer=settings.identity_jwt_issuer,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        msg = "Session has expired"
        raise jwt.InvalidTokenError(msg) from None
    return payload


def identity_from_claims(payload: dict[str, Any]) -> Identity:
    """
    Build an Identity from decoded claims.

    Raises:
        jwt.InvalidTokenError: If ``sub`` is not a UUID or ``email`` is missing.
    """
    try:
        subject = str(uuid.UUID(str(payload["sub"])))
    except (KeyError, ValueError) as e:
        msg = "Invalid subject claim"
        raise jwt.InvalidTokenError(msg) from e

    email = payload.get("email")
    if not email:
        msg = "Missing email claim"
        raise jwt.InvalidTokenError(msg)

    metadata = payload.get("user_metadata") or {}
    return Identity(
        id=subject,
        email=email,
        name=metadata.get("name") or metadata.get("full_name") or None,
        avatar_url=metadata.get("avatar_url") or None,
    )


def verify_session(token: str, settings: Settings | None = None) -> Identity:
    """Verify a session token and return the caller's identity."""
    return identity_from_claims(decode_session_token(token, settings))
