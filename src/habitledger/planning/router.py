"""Daily plan and weekly review endpoints."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.dependencies import get_auth_context
from habitledger.clock import Clock, get_clock
from habitledger.database import get_session
from habitledger.dependencies import get_redis_dep
from habitledger.planning import service
from habitledger.planning.schemas import (
    DailyPlanResponse,
    DailyScoreRequest,
    EveningReflectionRequest,
    MorningIntentionRequest,
    WeeklyReviewGenerateRequest,
    WeeklyReviewRequest,
    WeeklyReviewResponse,
    XPAwardResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Planning"])


@router.post("/plans/{day}", response_model=DailyPlanResponse)
async def get_or_create_plan(
    day: date,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> DailyPlanResponse:
    """Get the plan for a day, creating it on first access."""
    plan = await service.get_or_create_plan(db, ctx, day, clock)
    await db.commit()
    return DailyPlanResponse.model_validate(plan)


@router.post("/plans/{plan_id}/morning", response_model=DailyPlanResponse)
async def set_morning_intention(
    plan_id: int,
    body: MorningIntentionRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> DailyPlanResponse:
    plan = await service.set_morning_intention(
        db, ctx, plan_id, body.intention, clock, top_priorities=body.top_priorities
    )
    await db.commit()
    return DailyPlanResponse.model_validate(plan)


@router.post("/plans/{plan_id}/evening", response_model=XPAwardResponse)
async def set_evening_reflection(
    plan_id: int,
    body: EveningReflectionRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> XPAwardResponse:
    xp, gam = await service.set_evening_reflection(
        db, redis, ctx, plan_id, clock, reflection=body.reflection, day_rating=body.day_rating
    )
    await db.commit()
    return XPAwardResponse(xp_awarded=xp, total_xp=gam.total_xp, level=gam.level)


@router.post("/plans/{plan_id}/score", response_model=XPAwardResponse)
async def update_daily_score(
    plan_id: int,
    body: DailyScoreRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> XPAwardResponse:
    xp, gam = await service.update_daily_score(db, redis, ctx, plan_id, body.daily_score, clock)
    await db.commit()
    return XPAwardResponse(xp_awarded=xp, total_xp=gam.total_xp, level=gam.level)


@router.post("/reviews/generate", response_model=WeeklyReviewResponse)
async def generate_weekly_review(
    body: WeeklyReviewGenerateRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> WeeklyReviewResponse:
    """Compute (or refresh) the stats snapshot for a week before reviewing it."""
    review = await service.generate_weekly_review(db, ctx, body.week_start, clock)
    await db.commit()
    return WeeklyReviewResponse.model_validate(review)


@router.post("/reviews", response_model=WeeklyReviewResponse)
async def submit_weekly_review(
    body: WeeklyReviewRequest,
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> WeeklyReviewResponse:
    """Submit (or resubmit) the review for the week containing week_start."""
    review, _, _ = await service.submit_weekly_review(
        db, redis, ctx, body.week_start, clock,
        reflection=body.reflection, overall_rating=body.overall_rating,
    )
    await db.commit()
    return WeeklyReviewResponse.model_validate(review)
