"""Member-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _normalize_key(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _normalize_email(value: str) -> str:
    if "@" not in value:
        raise ValueError("must be an email address")
    return value.lower()


class MemberCreate(BaseModel):
    """Schema for registering a new member."""

    username: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255)

    @field_validator("username", "email")
    @classmethod
    def _strip(cls, value: str) -> str:
        return _normalize_key(value)

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str) -> str:
        return _normalize_email(value)


class MemberUpdate(BaseModel):
    """Partial update of a member's natural keys.

    Keys are normalized exactly as on registration so uniqueness holds.
    """

    username: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, min_length=3, max_length=255)

    @field_validator("username", "email")
    @classmethod
    def _strip(cls, value: str | None) -> str | None:
        return None if value is None else _normalize_key(value)

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, value: str | None) -> str | None:
        return None if value is None else _normalize_email(value)


class MemberResponse(BaseModel):
    """Schema for member information returned by the API."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    email: str
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")
