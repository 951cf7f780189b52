"""Feed and interaction request/response schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from tilt.problems.blocks import ContentBlock
from tilt.schemas import CamelModel

Effect = Literal["none", "jitter", "confetti"]
Reaction = Literal["like", "dislike"]


class ProblemWithInteraction(CamelModel):
    """A problem's content combined with the caller's interaction state."""

    id: str
    title: str
    question_blocks: list[ContentBlock]
    answer_blocks: list[ContentBlock]
    background_video_url: str | None = None
    background_music_url: str | None = None
    effect: Effect = "none"
    interaction_id: str
    visible_id: str
    reaction: Reaction | None = None
    solved: bool = False
    started_at: datetime


class FeedResponse(CamelModel):
    """A feed batch. An empty list means the feed is exhausted."""

    problems: list[ProblemWithInteraction]


class ReactionRequest(CamelModel):
    interaction_id: str | None = None
    reaction: Reaction | None = None


class ReactionResponse(CamelModel):
    success: bool


class SolvedRequest(CamelModel):
    interaction_id: str | None = None
    solved: bool = False


class SolvedResponse(CamelModel):
    success: bool
    solved: bool
    time_spent_seconds: int | None = None
