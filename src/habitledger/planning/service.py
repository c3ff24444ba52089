"""Daily plans and weekly reviews, both of which grant XP.

Each grant is one-shot per plan or review: repeating the call updates the
stored fields but does not pay out again. A weekly review's stats snapshot is
recomputed on every generate until the review is submitted, then frozen.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select

from habitledger.db.models import DailyPlan, Goal, HabitLog, UserGamification, WeeklyReview, XPHistory
from habitledger.errors import NotFoundError
from habitledger.gamification.levels import (
    PERFECT_DAY_SCORE,
    XP_EVENING_REFLECTION,
    XP_PERFECT_DAY,
    XP_WEEKLY_REVIEW,
    round_half_up,
)
from habitledger.gamification.xp_service import get_or_create_gamification, grant_xp

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.auth.context import AuthContext
    from habitledger.clock import Clock

logger = structlog.get_logger()


def week_start_for(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.weekday())


async def get_or_create_plan(db: AsyncSession, ctx: AuthContext, day: date, clock: Clock) -> DailyPlan:
    result = await db.execute(
        select(DailyPlan).where(DailyPlan.user_id == ctx.user_id, DailyPlan.date == day)
    )
    plan = result.scalar_one_or_none()
    if plan is None:
        now = clock.now()
        plan = DailyPlan(user_id=ctx.user_id, date=day, created_at=now, updated_at=now)
        db.add(plan)
        await db.flush()
    return plan


async def get_owned_plan(db: AsyncSession, ctx: AuthContext, plan_id: int) -> DailyPlan:
    plan = await db.get(DailyPlan, plan_id)
    if not ctx.owns(plan):
        raise NotFoundError("Plan")
    return plan


async def set_morning_intention(
    db: AsyncSession,
    ctx: AuthContext,
    plan_id: int,
    intention: str,
    clock: Clock,
    top_priorities: list[str] | None = None,
) -> DailyPlan:
    """Store the day's intention and priorities. No XP."""
    plan = await get_owned_plan(db, ctx, plan_id)
    now = clock.now()

    plan.morning_intention = intention
    if top_priorities is not None:
        plan.top_priorities = top_priorities
    plan.morning_completed_at = now
    plan.updated_at = now
    await db.flush()
    return plan


async def set_evening_reflection(
    db: AsyncSession,
    redis: object,
    ctx: AuthContext,
    plan_id: int,
    clock: Clock,
    reflection: str | None = None,
    day_rating: int | None = None,
) -> tuple[int, UserGamification]:
    """Store the evening reflection. Returns (xp awarded, profile)."""
    plan = await get_owned_plan(db, ctx, plan_id)
    now = clock.now()
    first_time = plan.evening_completed_at is None

    if reflection is not None:
        plan.evening_reflection = reflection
    if day_rating is not None:
        plan.day_rating = day_rating
    plan.evening_completed_at = plan.evening_completed_at or now
    plan.updated_at = now
    await db.flush()

    if not first_time:
        return 0, await get_or_create_gamification(db, ctx.user_id, clock)

    gam = await grant_xp(
        db, redis, ctx.user_id, XP_EVENING_REFLECTION, "daily_login",
        "Completed evening reflection",
        clock,
    )
    return XP_EVENING_REFLECTION, gam


async def update_daily_score(
    db: AsyncSession,
    redis: object,
    ctx: AuthContext,
    plan_id: int,
    daily_score: int,
    clock: Clock,
) -> tuple[int, UserGamification]:
    """Store the day's score; crossing the perfect-day threshold grants XP once."""
    plan = await get_owned_plan(db, ctx, plan_id)
    already_perfect = plan.daily_score is not None and plan.daily_score >= PERFECT_DAY_SCORE

    plan.daily_score = daily_score
    plan.updated_at = clock.now()
    await db.flush()

    if daily_score < PERFECT_DAY_SCORE or already_perfect:
        return 0, await get_or_create_gamification(db, ctx.user_id, clock)

    gam = await grant_xp(
        db, redis, ctx.user_id, XP_PERFECT_DAY, "perfect_day",
        f"Perfect Day! Score {PERFECT_DAY_SCORE}%+",
        clock,
    )
    return XP_PERFECT_DAY, gam


async def _week_stats(db: AsyncSession, user_id: int, start: date, end: date) -> dict:
    """Habit completion rate, XP earned, active days and goal snapshot for a week.

    XP earned sums history entries only, so habit-toggle XP is not counted.
    """
    logs = (
        await db.execute(
            select(HabitLog).where(
                HabitLog.user_id == user_id,
                HabitLog.date >= start,
                HabitLog.date <= end,
            )
        )
    ).scalars().all()
    completed = sum(1 for log in logs if log.status == "completed")
    rate = round_half_up(completed / len(logs) * 100) if logs else 0

    window_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    window_end = datetime.combine(end + timedelta(days=1), time.min, tzinfo=timezone.utc)
    xp_earned = (
        await db.execute(
            select(func.coalesce(func.sum(XPHistory.amount), 0)).where(
                XPHistory.user_id == user_id,
                XPHistory.created_at >= window_start,
                XPHistory.created_at < window_end,
            )
        )
    ).scalar_one()

    plan_dates = (
        await db.execute(
            select(DailyPlan.date).where(
                DailyPlan.user_id == user_id,
                DailyPlan.date >= start,
                DailyPlan.date <= end,
            )
        )
    ).scalars().all()
    active_days = len({log.date for log in logs} | set(plan_dates))

    goals = (
        await db.execute(
            select(Goal)
            .where(Goal.user_id == user_id, Goal.status == "in_progress")
            .order_by(Goal.id)
        )
    ).scalars().all()

    return {
        "habits_completion_rate": rate,
        "xp_earned": xp_earned,
        "active_days": active_days,
        "goals_progressed": [{"goal_id": g.id, "title": g.title, "progress": g.progress} for g in goals],
    }


async def generate_weekly_review(
    db: AsyncSession,
    ctx: AuthContext,
    week_start: date,
    clock: Clock,
) -> WeeklyReview:
    """Create or refresh the stats snapshot for the week containing ``week_start``.

    A submitted review is returned unchanged.
    """
    week_start = week_start_for(week_start)
    week_end = week_start + timedelta(days=6)
    now = clock.now()

    result = await db.execute(
        select(WeeklyReview).where(
            WeeklyReview.user_id == ctx.user_id,
            WeeklyReview.week_start == week_start,
        )
    )
    review = result.scalar_one_or_none()
    if review is not None and review.reviewed:
        return review

    stats = await _week_stats(db, ctx.user_id, week_start, week_end)
    if review is None:
        review = WeeklyReview(
            user_id=ctx.user_id,
            week_start=week_start,
            week_end=week_end,
            reviewed=False,
            created_at=now,
        )
        db.add(review)

    for key, value in stats.items():
        setattr(review, key, value)
    review.updated_at = now
    await db.flush()

    logger.info(
        "weekly_review_generated",
        user_id=ctx.user_id,
        week_start=week_start.isoformat(),
        xp_earned=stats["xp_earned"],
        active_days=stats["active_days"],
    )
    return review


async def submit_weekly_review(
    db: AsyncSession,
    redis: object,
    ctx: AuthContext,
    week_start: date,
    clock: Clock,
    reflection: str | None = None,
    overall_rating: int | None = None,
) -> tuple[WeeklyReview, int, UserGamification]:
    """Store the user's reflection and mark the week reviewed. First submission grants XP."""
    review = await generate_weekly_review(db, ctx, week_start, clock)

    first_time = not review.reviewed
    if reflection is not None:
        review.reflection = reflection
    if overall_rating is not None:
        review.overall_rating = overall_rating
    review.reviewed = True
    review.updated_at = clock.now()
    await db.flush()

    if not first_time:
        return review, 0, await get_or_create_gamification(db, ctx.user_id, clock)

    gam = await grant_xp(
        db, redis, ctx.user_id, XP_WEEKLY_REVIEW, "weekly_review",
        "Completed weekly review",
        clock,
    )
    logger.info("weekly_review_submitted", user_id=ctx.user_id, week_start=review.week_start.isoformat())
    return review, XP_WEEKLY_REVIEW, gam
