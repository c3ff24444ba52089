"""Habit API endpoints: habit store and completion ledger."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.dependencies import get_auth_context
from habitledger.clock import Clock, get_clock
from habitledger.database import get_session
from habitledger.habits import service
from habitledger.habits.schemas import (
    HabitCreatedResponse,
    HabitCreateRequest,
    HabitLogResponse,
    HabitResponse,
    HabitStatsResponse,
    HabitUpdateRequest,
    SkipRequest,
    SkipResponse,
    StreakFreezeResponse,
    ToggleRequest,
    ToggleResponse,
)

router = APIRouter(prefix="/api/v1/habits", tags=["Habits"])


# ---------------------------------------------------------------------------
# Habit store
# ---------------------------------------------------------------------------


@router.post("", response_model=HabitCreatedResponse, status_code=201)
async def create_habit(
    body: HabitCreateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> HabitCreatedResponse:
    """Create a habit (plan quota enforced)."""
    habit = await service.create_habit(db, ctx, body.model_dump(), clock)
    await db.commit()
    return HabitCreatedResponse(id=habit.id)


@router.get("", response_model=list[HabitResponse])
async def list_active_habits(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> list[HabitResponse]:
    """List active habits in display order."""
    habits = await service.list_active(db, ctx)
    return [HabitResponse.model_validate(h) for h in habits]


@router.get("/all", response_model=list[HabitResponse])
async def list_all_habits(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> list[HabitResponse]:
    """List all habits including archived ones."""
    habits = await service.list_all(db, ctx)
    return [HabitResponse.model_validate(h) for h in habits]


@router.get("/logs", response_model=list[HabitLogResponse])
async def get_logs_for_date_range(
    start: date = Query(...),
    end: date = Query(...),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> list[HabitLogResponse]:
    """All of the caller's habit logs between start and end (inclusive)."""
    logs = await service.get_logs_for_date_range(db, ctx, start, end)
    return [HabitLogResponse.model_validate(log) for log in logs]


@router.patch("/{habit_id}", status_code=204)
async def update_habit(
    habit_id: int,
    body: HabitUpdateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> Response:
    """Update habit fields; omitted fields are left unchanged."""
    await service.update_habit(db, ctx, habit_id, body.model_dump(exclude_unset=True), clock)
    await db.commit()
    return Response(status_code=204)


@router.delete("/{habit_id}", status_code=204)
async def remove_habit(
    habit_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Delete a habit and its logs."""
    await service.remove_habit(db, ctx, habit_id)
    await db.commit()
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Completion ledger
# ---------------------------------------------------------------------------


@router.post("/{habit_id}/toggle", response_model=ToggleResponse, response_model_exclude_none=True)
async def toggle_complete(
    habit_id: int,
    body: ToggleRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> ToggleResponse:
    """Complete, or un-complete, a habit for a date."""
    result = await service.toggle_complete(
        db, ctx, habit_id, body.date, clock, mood=body.mood, note=body.note
    )
    await db.commit()
    return ToggleResponse(**result)


@router.post("/{habit_id}/skip", response_model=SkipResponse)
async def skip_habit(
    habit_id: int,
    body: SkipRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> SkipResponse:
    """Mark a habit as skipped for a date."""
    result = await service.skip(db, ctx, habit_id, body.date, clock)
    await db.commit()
    return SkipResponse(**result)


@router.post("/{habit_id}/freeze", response_model=StreakFreezeResponse)
async def use_streak_freeze(
    habit_id: int,
    body: SkipRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> StreakFreezeResponse:
    """Spend a streak freeze on a missed date."""
    result = await service.use_streak_freeze(db, ctx, habit_id, body.date, clock)
    await db.commit()
    return StreakFreezeResponse(**result)


@router.get("/{habit_id}/stats", response_model=HabitStatsResponse)
async def get_habit_stats(
    habit_id: int,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> HabitStatsResponse:
    """Completion rate and best/worst weekday for a habit."""
    stats = await service.get_stats(db, ctx, habit_id)
    return HabitStatsResponse(**stats)
