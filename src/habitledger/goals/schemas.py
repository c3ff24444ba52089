"""Request/response schemas for goal and milestone endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

GoalStatus = Literal["in_progress", "completed", "paused", "abandoned", "draft"]
MilestoneStatus = Literal["not_started", "in_progress", "completed", "skipped"]


class GoalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    category: str = Field(..., min_length=1, max_length=64)
    target_date: date | None = None


class GoalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    category: str
    status: GoalStatus
    progress: int
    target_date: date | None = None
    completion_date: datetime | None = None
    created_at: datetime
    updated_at: datetime


class MilestoneCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    sequence_order: int = Field(0, ge=0)
    target_date: date | None = None


class MilestoneUpdateRequest(BaseModel):
    """Partial milestone update. Setting status to completed updates the goal."""

    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    status: MilestoneStatus | None = None
    progress_percentage: int | None = Field(None, ge=0, le=100)
    target_date: date | None = None

    @model_validator(mode="before")
    @classmethod
    def reject_nulls(cls, data: object) -> object:
        if isinstance(data, dict):
            for key in ("title", "status", "progress_percentage"):
                if key in data and data[key] is None:
                    msg = f"{key} cannot be null"
                    raise ValueError(msg)
        return data


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    goal_id: int
    title: str
    description: str | None = None
    sequence_order: int
    target_date: date | None = None
    status: MilestoneStatus
    progress_percentage: int
    completed_at: datetime | None = None


class CreatedResponse(BaseModel):
    id: int
