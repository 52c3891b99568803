"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .member import MemberCreate, MemberResponse, MemberUpdate
from .usercount import ConsistencyResponse, RecalculateResponse, UserCountResponse

__all__ = [
    "MemberCreate", "MemberResponse", "MemberUpdate",
    "ConsistencyResponse", "RecalculateResponse", "UserCountResponse",
]
