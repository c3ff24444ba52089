"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import available_timezones

from pydantic import BaseModel, ConfigDict, Field, field_validator


class SyncRequest(BaseModel):
    """Profile fields copied from the identity provider on sign-in."""

    email: str | None = Field(None, max_length=320)
    name: str | None = Field(None, min_length=1, max_length=128)


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=128)
    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if v is not None and v not in available_timezones():
            msg = f"Unknown timezone: {v}"
            raise ValueError(msg)
        return v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str | None = None
    name: str
    plan: str
    timezone: str
    streak_freeze_count: int
    created_at: datetime
