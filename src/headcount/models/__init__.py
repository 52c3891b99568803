"""SQLAlchemy models for the headcount service."""

from .member import Member
from .user_stats import USER_STATS_ROW_ID, UserStats

__all__ = [
    "Member",
    "UserStats", "USER_STATS_ROW_ID",
]
