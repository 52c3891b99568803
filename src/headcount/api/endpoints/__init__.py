"""API endpoint modules."""

from .members import router as members_router
from .usercount import router as usercount_router

__all__ = [
    "members_router",
    "usercount_router",
]
