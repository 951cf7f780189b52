"""Database models and helpers."""

from tilt.db.base import Base
from tilt.db.models import DailyStat, Problem, Profile, Share, UserProblemInteraction

__all__ = ["Base", "DailyStat", "Problem", "Profile", "Share", "UserProblemInteraction"]
