"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class GamificationProfileResponse(BaseModel):
    total_xp: int
    level: int
    xp_into_level: int
    xp_for_level: int
    xp_to_next_level: int
    progress_percent: int
    next_level: int
    achievements: list[dict[str, Any]] = []


class XPHistoryEntry(BaseModel):
    amount: int
    source: str
    description: str
    created_at: datetime


class XPHistoryResponse(BaseModel):
    entries: list[XPHistoryEntry]
    total: int
    page: int
    per_page: int


class AchievementResponse(BaseModel):
    id: str
    name: str
    description: str
    xp_reward: int
    unlocked: bool
    unlocked_at: str | None = None


class AchievementCheckResponse(BaseModel):
    unlocked: list[str]
    total_xp: int
    level: int
