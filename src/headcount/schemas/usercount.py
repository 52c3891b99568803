"""Schemas for the user count endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserCountResponse(BaseModel):
    """Current value of the user counter."""

    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(..., ge=0, alias="totalUsers")
    last_updated: datetime | None = Field(None, alias="lastUpdated")


class RecalculateResponse(UserCountResponse):
    """Result of an on-demand reconciliation."""

    previous: int | None = Field(None, description="Stored count before the repair")


class ConsistencyResponse(BaseModel):
    """Stored counter compared with the ledger."""

    model_config = ConfigDict(populate_by_name=True)

    stored: int | None
    actual: int
    in_sync: bool = Field(..., alias="inSync")
    last_updated: datetime | None = Field(None, alias="lastUpdated")
