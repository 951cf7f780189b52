"""Initial schema: profiles, problems, interactions, daily stats, shares.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all application tables."""
    # --- profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("role", sa.String(16), server_default="user", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("role IN ('user', 'admin')", name="ck_profiles_role"),
    )

    # --- problems ---
    op.create_table(
        "problems",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("question_blocks", sa.Text(), nullable=False),
        sa.Column("answer_blocks", sa.Text(), nullable=False),
        sa.Column("background_video_url", sa.Text(), nullable=True),
        sa.Column("background_music_url", sa.Text(), nullable=True),
        sa.Column("effect", sa.String(16), server_default="none", nullable=False),
        sa.Column("is_published", sa.Boolean(), server_default="false", nullable=False),
        sa.Column(
            "created_by",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("effect IN ('none', 'jitter', 'confetti')", name="ck_problems_effect"),
    )
    op.create_index(
        "ix_problems_published",
        "problems",
        ["is_published"],
        postgresql_where=sa.text("is_published"),
    )

    # --- user_problem_interactions ---
    op.create_table(
        "user_problem_interactions",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("visible_id", sa.String(32), nullable=False, unique=True),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "problem_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("problems.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reaction", sa.String(16), nullable=True),
        sa.Column("solved", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("solved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("time_spent_seconds", sa.Integer(), server_default="0", nullable=False),
        sa.UniqueConstraint("user_id", "problem_id", name="uq_interaction_user_problem"),
        sa.CheckConstraint("reaction IS NULL OR reaction IN ('like', 'dislike')", name="ck_interactions_reaction"),
    )
    op.create_index("ix_user_problem_interactions_user_id", "user_problem_interactions", ["user_id"])

    # --- daily_stats ---
    op.create_table(
        "daily_stats",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("problems_solved", sa.Integer(), server_default="0", nullable=False),
        sa.Column("problems_attempted", sa.Integer(), server_default="0", nullable=False),
        sa.Column("streak", sa.Integer(), server_default="0", nullable=False),
        sa.UniqueConstraint("user_id", "date", name="daily_stats_user_date_key"),
    )

    # --- shares ---
    op.create_table(
        "shares",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("share_code", sa.String(32), nullable=False, unique=True),
        sa.Column(
            "interaction_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("user_problem_interactions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("share_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "status IN ('solved_fast', 'solved', 'gave_up', 'unsolved')",
            name="ck_shares_status",
        ),
    )


def downgrade() -> None:
    """Drop all application tables."""
    op.drop_table("shares")
    op.drop_table("daily_stats")
    op.drop_index("ix_user_problem_interactions_user_id", table_name="user_problem_interactions")
    op.drop_table("user_problem_interactions")
    op.drop_index("ix_problems_published", table_name="problems")
    op.drop_table("problems")
    op.drop_table("profiles")
