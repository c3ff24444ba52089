"""Request/response schemas for habit endpoints."""

from __future__ import annotations

import datetime as dt
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Frequency = Literal["daily", "weekdays", "weekends", "3x_week", "weekly", "custom"]
TimeOfDay = Literal["morning", "afternoon", "evening", "anytime"]
LogStatus = Literal["completed", "skipped", "failed"]


# ---------------------------------------------------------------------------
# Habits
# ---------------------------------------------------------------------------


class HabitCreateRequest(BaseModel):
    """Create a habit. ``custom_days`` uses 0=Sun .. 6=Sat."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str = Field(..., min_length=1, max_length=64)
    frequency: Frequency
    custom_days: list[int] | None = None
    time_of_day: TimeOfDay = "anytime"
    identity_label: str | None = Field(None, max_length=200)
    goal_id: int | None = None
    color: str | None = Field(None, max_length=32)
    icon: str | None = Field(None, max_length=64)
    estimated_minutes: int | None = Field(None, ge=0)

    @model_validator(mode="after")
    def check_custom_days(self) -> HabitCreateRequest:
        validate_custom_days(self.frequency, self.custom_days)
        return self


class HabitUpdateRequest(BaseModel):
    """Partial habit update; only fields that are sent are applied.

    The schedule (``frequency`` plus ``custom_days``) is validated against the
    stored habit by the service, since either half may be omitted here.
    """

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    category: str | None = Field(None, min_length=1, max_length=64)
    frequency: Frequency | None = None
    custom_days: list[int] | None = None
    time_of_day: TimeOfDay | None = None
    identity_label: str | None = Field(None, max_length=200)
    is_active: bool | None = None
    color: str | None = Field(None, max_length=32)
    icon: str | None = Field(None, max_length=64)

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: object) -> object:
        if isinstance(data, dict):
            for key in ("title", "category", "frequency", "time_of_day", "is_active"):
                if key in data and data[key] is None:
                    msg = f"{key} cannot be null"
                    raise ValueError(msg)
        return data


def validate_custom_days(frequency: str, custom_days: list[int] | None) -> None:
    """Raise ValueError unless the schedule is valid (0=Sun .. 6=Sat)."""
    if frequency == "custom" and not custom_days:
        msg = "custom_days is required when frequency is 'custom'"
        raise ValueError(msg)
    if custom_days and any(d < 0 or d > 6 for d in custom_days):
        msg = "custom_days values must be between 0 (Sun) and 6 (Sat)"
        raise ValueError(msg)


class HabitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_id: int | None = None
    title: str
    description: str | None = None
    category: str
    frequency: str
    custom_days: list[int] | None = None
    time_of_day: str
    identity_label: str | None = None
    color: str | None = None
    icon: str | None = None
    estimated_minutes: int | None = None
    is_active: bool
    streak_current: int
    streak_longest: int
    order: int
    created_at: datetime
    updated_at: datetime


class HabitCreatedResponse(BaseModel):
    id: int


# ---------------------------------------------------------------------------
# Completion ledger
# ---------------------------------------------------------------------------


class ToggleRequest(BaseModel):
    date: dt.date
    mood: int | None = Field(None, ge=1, le=5)
    note: str | None = Field(None, max_length=2000)


class SkipRequest(BaseModel):
    date: dt.date


class ToggleResponse(BaseModel):
    action: Literal["completed", "uncompleted"]
    xp_change: int
    streak: int | None = None


class SkipResponse(BaseModel):
    action: Literal["skipped"]
    streak: int


class StreakFreezeResponse(BaseModel):
    action: Literal["frozen"]
    streak: int
    freezes_left: int


class HabitLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    habit_id: int
    date: dt.date
    status: LogStatus
    mood: int | None = None
    note: str | None = None
    completed_at: datetime | None = None


class HabitStatsResponse(BaseModel):
    total_logs: int
    completed: int
    completion_rate: int
    streak_current: int
    streak_longest: int
    best_day: str
    worst_day: str
