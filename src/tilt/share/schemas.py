"""Share lookup and share creation schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from tilt.schemas import CamelModel

ShareStatus = Literal["solved_fast", "solved", "gave_up", "unsolved"]


class SharePreview(CamelModel):
    """Everything a social preview of a shared interaction needs."""

    visible_id: str
    problem_title: str
    solved: bool
    time_spent_seconds: int
    user_name: str
    user_avatar: str | None = None
    status_text: str
    title: str
    description: str


class CreateShareRequest(CamelModel):
    interaction_id: str | None = None
    gave_up: bool = False


class ShareResponse(CamelModel):
    share_code: str
    interaction_id: str
    status: ShareStatus
    share_message: str | None = None
    share_url: str
    created_at: datetime
