"""ORM models for profiles, problems, interactions, daily stats and shares.

Content block sequences are stored as serialized JSON text and parsed
on read by ``tilt.problems.blocks``.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tilt.db.base import Base

ROLES = ("user", "admin")
EFFECTS = ("none", "jitter", "confetti")
REACTIONS = ("like", "dislike")
SHARE_STATUSES = ("solved_fast", "solved", "gave_up", "unsolved")


def _one_of(column: str, values: tuple[str, ...]) -> str:
    """SQL for a CHECK constraint restricting a text column to ``values``."""
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


def _uuid_str() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Profiles (mirrors identities issued by the external identity provider)
# ---------------------------------------------------------------------------


class Profile(Base):
    """Application-owned user record. ``id`` is the identity provider's user id."""

    __tablename__ = "profiles"
    __table_args__ = (CheckConstraint(_one_of("role", ROLES), name="ck_profiles_role"),)

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user", server_default="user")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


# ---------------------------------------------------------------------------
# Problems
# ---------------------------------------------------------------------------


class Problem(Base):
    """Authored content item: title, question/answer block sequences, media and effect."""

    __tablename__ = "problems"
    __table_args__ = (CheckConstraint(_one_of("effect", EFFECTS), name="ck_problems_effect"),)

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_uuid_str)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    question_blocks: Mapped[str] = mapped_column(Text, nullable=False)
    answer_blocks: Mapped[str] = mapped_column(Text, nullable=False)
    background_video_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_music_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    effect: Mapped[str] = mapped_column(String(16), nullable=False, default="none", server_default="none")
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    created_by: Mapped[str | None] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------


class UserProblemInteraction(Base):
    """One user's encounter with one problem: reaction, solved state, timing."""

    __tablename__ = "user_problem_interactions"
    __table_args__ = (
        UniqueConstraint("user_id", "problem_id", name="uq_interaction_user_problem"),
        CheckConstraint(
            f"reaction IS NULL OR {_one_of('reaction', REACTIONS)}", name="ck_interactions_reaction"
        ),
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_uuid_str)
    visible_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True
    )
    problem_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("problems.id", ondelete="CASCADE"), nullable=False
    )
    reaction: Mapped[str | None] = mapped_column(String(16), nullable=True)
    solved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    started_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    solved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    time_spent_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    problem: Mapped[Problem] = relationship("Problem", lazy="raise")
    user: Mapped[Profile] = relationship("Profile", lazy="raise")


# ---------------------------------------------------------------------------
# Daily stats (derived aggregate keyed by user + calendar date)
# ---------------------------------------------------------------------------


class DailyStat(Base):
    """Per-user, per-day attempted/solved counters and the running streak."""

    __tablename__ = "daily_stats"
    __table_args__ = (
        UniqueConstraint("user_id", "date", name="daily_stats_user_date_key"),
    )

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_uuid_str)
    user_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False
    )
    day: Mapped[date] = mapped_column("date", Date, nullable=False)
    problems_solved: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    problems_attempted: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    streak: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")


# ---------------------------------------------------------------------------
# Shares (immutable snapshot of an interaction's outcome)
# ---------------------------------------------------------------------------


class Share(Base):
    """Point-in-time share of an interaction with its auto-generated message."""

    __tablename__ = "shares"
    __table_args__ = (CheckConstraint(_one_of("status", SHARE_STATUSES), name="ck_shares_status"),)

    id: Mapped[str] = mapped_column(Uuid(as_uuid=False), primary_key=True, default=_uuid_str)
    share_code: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    interaction_id: Mapped[str] = mapped_column(
        Uuid(as_uuid=False), ForeignKey("user_problem_interactions.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    share_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
