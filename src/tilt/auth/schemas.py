"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from datetime import datetime

from tilt.schemas import CamelModel


class SyncProfileResponse(CamelModel):
    """Result of mirroring the identity into a profile."""

    success: bool
    created: bool


class ProfileResponse(CamelModel):
    """The caller's own profile."""

    id: str
    email: str
    name: str | None = None
    avatar_url: str | None = None
    role: str
    created_at: datetime | None = None
