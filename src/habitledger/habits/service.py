"""Habit store and completion ledger.

Toggle protocol, per (habit, date):

    absent              --toggle--> completed   streak +1, XP awarded
    completed           --toggle--> absent      streak -1 (floor 0), -10 reported
    skipped | failed    --toggle--> completed   streak +1, XP awarded
    any                 --skip----> skipped     streak untouched

Services flush but never commit; the router commits once per request so each
operation lands as a single transaction.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import delete, func, select

from habitledger.config import Settings, get_settings
from habitledger.db.models import Goal, Habit, HabitLog, User
from habitledger.errors import ConflictError, InvalidInputError, NotFoundError, QuotaExceededError
from habitledger.gamification.levels import XP_HABIT_UNCOMPLETE, habit_completion_xp, round_half_up
from habitledger.gamification.xp_service import award_xp
from habitledger.habits.schemas import validate_custom_days

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.auth.context import AuthContext
    from habitledger.clock import Clock

logger = structlog.get_logger()

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]

_UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "category",
    "frequency",
    "custom_days",
    "time_of_day",
    "identity_label",
    "is_active",
    "color",
    "icon",
})


def habit_limit(plan: str, settings: Settings) -> int | None:
    """Max active habits for a plan; None means unlimited."""
    if plan in ("pro", "lifetime"):
        return None
    return settings.free_habit_limit


# ---------------------------------------------------------------------------
# Habit store
# ---------------------------------------------------------------------------


async def count_active_habits(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Habit)
        .where(Habit.user_id == user_id, Habit.is_active.is_(True))
    )
    return result.scalar_one()


async def _check_quota(db: AsyncSession, ctx: AuthContext, settings: Settings) -> int:
    """Return the active habit count, raising if the plan has no room for one more."""
    active_count = await count_active_habits(db, ctx.user_id)
    limit = habit_limit(ctx.plan, settings)
    if limit is not None and active_count >= limit:
        raise QuotaExceededError(ctx.plan, limit, "habits")
    return active_count


async def get_owned_habit(db: AsyncSession, ctx: AuthContext, habit_id: int) -> Habit:
    """Fetch a habit owned by the caller, else raise NotFoundError."""
    habit = await db.get(Habit, habit_id)
    if not ctx.owns(habit):
        raise NotFoundError("Habit")
    return habit


async def create_habit(
    db: AsyncSession,
    ctx: AuthContext,
    fields: dict[str, Any],
    clock: Clock,
    settings: Settings | None = None,
) -> Habit:
    """
    Create a habit at the end of the caller's active list.

    Raises:
        QuotaExceededError: If the plan's active-habit limit is reached.
    """
    settings = settings or get_settings()
    active_count = await _check_quota(db, ctx, settings)

    goal_id = fields.get("goal_id")
    if goal_id is not None and not ctx.owns(await db.get(Goal, goal_id)):
        raise NotFoundError("Goal")

    now = clock.now()
    habit = Habit(
        user_id=ctx.user_id,
        **fields,
        is_active=True,
        streak_current=0,
        streak_longest=0,
        order=active_count,
        created_at=now,
        updated_at=now,
    )
    db.add(habit)
    await db.flush()

    logger.info("habit_created", user_id=ctx.user_id, habit_id=habit.id, order=habit.order)
    return habit


async def list_active(db: AsyncSession, ctx: AuthContext) -> list[Habit]:
    result = await db.execute(
        select(Habit)
        .where(Habit.user_id == ctx.user_id, Habit.is_active.is_(True))
        .order_by(Habit.order, Habit.id)
    )
    return list(result.scalars().all())


async def list_all(db: AsyncSession, ctx: AuthContext) -> list[Habit]:
    """All of the caller's habits, archived ones included."""
    result = await db.execute(
        select(Habit).where(Habit.user_id == ctx.user_id).order_by(Habit.order, Habit.id)
    )
    return list(result.scalars().all())


async def update_habit(
    db: AsyncSession,
    ctx: AuthContext,
    habit_id: int,
    patch: dict[str, Any],
    clock: Clock,
    settings: Settings | None = None,
) -> Habit:
    """
    Apply a partial update.

    Reactivating an archived habit is subject to the same quota as creation.
    The schedule is validated against the merged result, so a patch carrying
    only ``custom_days`` is checked against the stored frequency.

    Raises:
        InvalidInputError: If the merged frequency/custom_days are invalid.
    """
    habit = await get_owned_habit(db, ctx, habit_id)

    try:
        validate_custom_days(
            patch.get("frequency", habit.frequency),
            patch.get("custom_days", habit.custom_days),
        )
    except ValueError as exc:
        raise InvalidInputError(str(exc)) from exc

    if patch.get("is_active") is True and not habit.is_active:
        await _check_quota(db, ctx, settings or get_settings())

    for key, value in patch.items():
        if key in _UPDATABLE_FIELDS:
            setattr(habit, key, value)
    habit.updated_at = clock.now()
    await db.flush()
    return habit


async def remove_habit(db: AsyncSession, ctx: AuthContext, habit_id: int) -> int:
    """Delete a habit and all of its logs. Returns the number of logs removed."""
    habit = await get_owned_habit(db, ctx, habit_id)

    result = await db.execute(delete(HabitLog).where(HabitLog.habit_id == habit.id))
    await db.delete(habit)
    await db.flush()

    logger.info("habit_removed", user_id=ctx.user_id, habit_id=habit_id, logs_removed=result.rowcount)
    return result.rowcount


# ---------------------------------------------------------------------------
# Completion ledger
# ---------------------------------------------------------------------------


async def get_log(db: AsyncSession, habit_id: int, day: date) -> HabitLog | None:
    result = await db.execute(
        select(HabitLog).where(HabitLog.habit_id == habit_id, HabitLog.date == day)
    )
    return result.scalar_one_or_none()


async def toggle_complete(
    db: AsyncSession,
    ctx: AuthContext,
    habit_id: int,
    day: date,
    clock: Clock,
    mood: int | None = None,
    note: str | None = None,
) -> dict[str, Any]:
    """
    Toggle a habit's completion for one calendar day.

    Returns:
        ``{"action": "completed", "xp_change": n, "streak": s}`` or
        ``{"action": "uncompleted", "xp_change": -10}``.
    """
    habit = await get_owned_habit(db, ctx, habit_id)
    existing = await get_log(db, habit.id, day)
    now = clock.now()

    if existing is not None and existing.status == "completed":
        await db.delete(existing)
        habit.streak_current = max(0, habit.streak_current - 1)
        habit.updated_at = now
        await db.flush()

        # The -10 is reported only; stored XP is left untouched.
        logger.info("habit_uncompleted", habit_id=habit.id, date=day.isoformat(), streak=habit.streak_current)
        return {"action": "uncompleted", "xp_change": XP_HABIT_UNCOMPLETE}

    if existing is not None:
        existing.status = "completed"
        existing.mood = mood
        existing.note = note
        existing.completed_at = now
    else:
        db.add(HabitLog(
            habit_id=habit.id,
            user_id=ctx.user_id,
            date=day,
            status="completed",
            mood=mood,
            note=note,
            completed_at=now,
        ))

    new_streak = habit.streak_current + 1
    habit.streak_current = new_streak
    habit.streak_longest = max(habit.streak_longest, new_streak)
    habit.updated_at = now
    await db.flush()

    xp_gain = habit_completion_xp(new_streak)
    await award_xp(db, ctx.user_id, xp_gain, clock)

    logger.info(
        "habit_completed",
        habit_id=habit.id,
        date=day.isoformat(),
        streak=new_streak,
        xp_gain=xp_gain,
    )
    return {"action": "completed", "xp_change": xp_gain, "streak": new_streak}


async def skip(
    db: AsyncSession,
    ctx: AuthContext,
    habit_id: int,
    day: date,
    clock: Clock,
    settings: Settings | None = None,
) -> dict[str, Any]:
    """
    Mark a day as skipped, overwriting any prior status.

    The streak is preserved. With ``enforce_never_miss_twice`` enabled a skip
    directly after a skipped or failed previous day resets the current streak.
    """
    settings = settings or get_settings()
    habit = await get_owned_habit(db, ctx, habit_id)
    existing = await get_log(db, habit.id, day)

    if existing is not None:
        existing.status = "skipped"
    else:
        db.add(HabitLog(habit_id=habit.id, user_id=ctx.user_id, date=day, status="skipped"))

    if settings.enforce_never_miss_twice:
        yesterday = await get_log(db, habit.id, day - timedelta(days=1))
        if yesterday is not None and yesterday.status in ("skipped", "failed") and habit.streak_current:
            logger.info("streak_broken", habit_id=habit.id, date=day.isoformat(), streak=habit.streak_current)
            habit.streak_current = 0
            habit.updated_at = clock.now()

    await db.flush()
    return {"action": "skipped", "streak": habit.streak_current}


async def use_streak_freeze(
    db: AsyncSession,
    ctx: AuthContext,
    habit_id: int,
    day: date,
    clock: Clock,
) -> dict[str, Any]:
    """
    Spend one of the user's streak freezes to cover a missed day.

    The day is logged as skipped and the streak is left as it is, whatever the
    never-miss-twice policy says about the day before.

    Raises:
        ConflictError: If no freezes are left or the day is already completed.
    """
    habit = await get_owned_habit(db, ctx, habit_id)
    user = await db.get(User, ctx.user_id)
    if user.streak_freeze_count <= 0:
        raise ConflictError("No streak freezes available")

    existing = await get_log(db, habit.id, day)
    if existing is not None and existing.status == "completed":
        raise ConflictError("Day already completed")

    if existing is not None:
        existing.status = "skipped"
    else:
        db.add(HabitLog(habit_id=habit.id, user_id=ctx.user_id, date=day, status="skipped"))

    user.streak_freeze_count -= 1
    user.updated_at = clock.now()
    await db.flush()

    logger.info(
        "streak_freeze_used",
        habit_id=habit.id,
        date=day.isoformat(),
        streak=habit.streak_current,
        freezes_left=user.streak_freeze_count,
    )
    return {"action": "frozen", "streak": habit.streak_current, "freezes_left": user.streak_freeze_count}


async def get_logs_for_date_range(
    db: AsyncSession,
    ctx: AuthContext,
    start: date,
    end: date,
) -> list[HabitLog]:
    """All of the caller's logs with start <= date <= end."""
    result = await db.execute(
        select(HabitLog)
        .where(
            HabitLog.user_id == ctx.user_id,
            HabitLog.date >= start,
            HabitLog.date <= end,
        )
        .order_by(HabitLog.date, HabitLog.id)
    )
    return list(result.scalars().all())


def compute_stats(logs: list[HabitLog]) -> dict[str, Any]:
    """Completion rate plus best/worst weekday.

    Weekdays are ranked in the order they are first seen in ``logs``; ties keep
    the earlier day (strict comparisons).
    """
    total = len(logs)
    completed = sum(1 for log in logs if log.status == "completed")
    completion_rate = round_half_up(completed / total * 100) if total > 0 else 0

    day_count: dict[str, dict[str, int]] = {}
    for log in logs:
        day = DAY_NAMES[log.date.isoweekday() % 7]
        counts = day_count.setdefault(day, {"completed": 0, "total": 0})
        counts["total"] += 1
        if log.status == "completed":
            counts["completed"] += 1

    best_day = ""
    worst_day = ""
    best_rate = -1.0
    worst_rate = 101.0
    for day, counts in day_count.items():
        rate = counts["completed"] / counts["total"] * 100
        if rate > best_rate:
            best_rate = rate
            best_day = day
        if rate < worst_rate:
            worst_rate = rate
            worst_day = day

    return {
        "total_logs": total,
        "completed": completed,
        "completion_rate": completion_rate,
        "best_day": best_day,
        "worst_day": worst_day,
    }


async def get_stats(db: AsyncSession, ctx: AuthContext, habit_id: int) -> dict[str, Any]:
    habit = await get_owned_habit(db, ctx, habit_id)
    result = await db.execute(
        select(HabitLog).where(HabitLog.habit_id == habit.id).order_by(HabitLog.id)
    )
    stats = compute_stats(list(result.scalars().all()))
    stats["streak_current"] = habit.streak_current
    stats["streak_longest"] = habit.streak_longest
    return stats
