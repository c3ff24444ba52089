"""Request/response schemas for daily plans and weekly reviews."""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DailyPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: dt.date
    morning_intention: str | None = None
    top_priorities: list[str] | None = None
    morning_completed_at: datetime | None = None
    evening_reflection: str | None = None
    day_rating: int | None = None
    evening_completed_at: datetime | None = None
    daily_score: int | None = None


class MorningIntentionRequest(BaseModel):
    intention: str = Field(..., min_length=1, max_length=2000)
    top_priorities: list[str] | None = Field(None, max_length=3)


class EveningReflectionRequest(BaseModel):
    reflection: str | None = Field(None, max_length=5000)
    day_rating: int | None = Field(None, ge=1, le=5)


class DailyScoreRequest(BaseModel):
    daily_score: int = Field(..., ge=0, le=100)


class WeeklyReviewGenerateRequest(BaseModel):
    week_start: date


class WeeklyReviewRequest(BaseModel):
    week_start: date
    reflection: str | None = Field(None, max_length=5000)
    overall_rating: int | None = Field(None, ge=1, le=5)


class WeeklyReviewResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    week_start: date
    week_end: date
    habits_completion_rate: int
    xp_earned: int
    active_days: int
    goals_progressed: list[dict[str, Any]] = []
    reflection: str | None = None
    overall_rating: int | None = None
    reviewed: bool


class XPAwardResponse(BaseModel):
    xp_awarded: int
    total_xp: int
    level: int
