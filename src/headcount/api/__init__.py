"""HTTP API for the headcount service."""

from .endpoints import members_router, usercount_router

__all__ = [
    "members_router",
    "usercount_router",
]
