"""Admin problem editor schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tilt.problems.blocks import ContentBlock
from tilt.problems.schemas import Effect
from tilt.schemas import CamelModel

EDITABLE_FIELDS = frozenset({
    "title",
    "question_blocks",
    "answer_blocks",
    "background_video_url",
    "background_music_url",
    "effect",
    "is_published",
})


class ProblemWriteRequest(CamelModel):
    """Editable problem fields.

    Block sequences may be sent as JSON arrays or as serialized JSON text.
    Unknown keys are ignored, so PATCH can only touch editable fields.
    """

    title: str | None = None
    question_blocks: Any = None
    answer_blocks: Any = None
    background_video_url: str | None = None
    background_music_url: str | None = None
    effect: Effect | None = None
    is_published: bool | None = None


class AdminProblemResponse(CamelModel):
    id: str
    title: str
    question_blocks: list[ContentBlock]
    answer_blocks: list[ContentBlock]
    blocks_valid: bool = True
    background_video_url: str | None = None
    background_music_url: str | None = None
    effect: Effect = "none"
    is_published: bool
    created_by: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProblemEnvelope(CamelModel):
    problem: AdminProblemResponse


class ProblemListResponse(CamelModel):
    problems: list[AdminProblemResponse]


class DeleteResponse(CamelModel):
    success: bool
