"""Stats and leaderboard response schemas."""

from __future__ import annotations

from datetime import date

from pydantic import Field

from tilt.schemas import CamelModel


class DayStats(CamelModel):
    problems_solved: int = 0
    problems_attempted: int = 0
    streak: int = 0


class DailyActivity(DayStats):
    day: date = Field(alias="date")


class UserStatsResponse(CamelModel):
    """Today's counters, lifetime solves and the most recent daily rows (newest first)."""

    today: DayStats
    total_solved: int
    recent_activity: list[DailyActivity]


class LeaderboardEntry(CamelModel):
    rank: int
    user_id: str
    name: str | None = None
    avatar_url: str | None = None
    total_solved: int


class LeaderboardResponse(CamelModel):
    entries: list[LeaderboardEntry]
