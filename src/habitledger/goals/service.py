"""Goals and milestones.

Completing a milestone recomputes the owning goal's progress in the same
transaction and grants milestone XP.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import func, select

from habitledger.config import Settings, get_settings
from habitledger.db.models import Goal, Milestone
from habitledger.errors import NotFoundError, QuotaExceededError
from habitledger.gamification.levels import XP_MILESTONE_COMPLETE, round_half_up
from habitledger.gamification.xp_service import grant_xp

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.auth.context import AuthContext
    from habitledger.clock import Clock

logger = structlog.get_logger()

_MILESTONE_FIELDS = frozenset({"title", "description", "status", "progress_percentage", "target_date"})


def goal_limit(plan: str, settings: Settings) -> int | None:
    """Max in-progress goals for a plan; None means unlimited."""
    if plan in ("pro", "lifetime"):
        return None
    return settings.free_goal_limit


def goal_progress(completed: int, total: int) -> int:
    """Percentage of completed milestones, rounded half up."""
    if total == 0:
        return 0
    return round_half_up(completed / total * 100)


async def get_owned_goal(db: AsyncSession, ctx: AuthContext, goal_id: int) -> Goal:
    goal = await db.get(Goal, goal_id)
    if not ctx.owns(goal):
        raise NotFoundError("Goal")
    return goal


async def get_owned_milestone(db: AsyncSession, ctx: AuthContext, milestone_id: int) -> Milestone:
    milestone = await db.get(Milestone, milestone_id)
    if not ctx.owns(milestone):
        raise NotFoundError("Milestone")
    return milestone


async def create_goal(
    db: AsyncSession,
    ctx: AuthContext,
    fields: dict[str, Any],
    clock: Clock,
    settings: Settings | None = None,
) -> Goal:
    """
    Create an in-progress goal.

    Raises:
        QuotaExceededError: If the plan's in-progress goal limit is reached.
    """
    settings = settings or get_settings()
    result = await db.execute(
        select(func.count())
        .select_from(Goal)
        .where(Goal.user_id == ctx.user_id, Goal.status == "in_progress")
    )
    active_count = result.scalar_one()
    limit = goal_limit(ctx.plan, settings)
    if limit is not None and active_count >= limit:
        raise QuotaExceededError(ctx.plan, limit, "goals")

    now = clock.now()
    goal = Goal(
        user_id=ctx.user_id,
        **fields,
        status="in_progress",
        progress=0,
        created_at=now,
        updated_at=now,
    )
    db.add(goal)
    await db.flush()
    logger.info("goal_created", user_id=ctx.user_id, goal_id=goal.id)
    return goal


async def list_goals(db: AsyncSession, ctx: AuthContext) -> list[Goal]:
    result = await db.execute(
        select(Goal).where(Goal.user_id == ctx.user_id).order_by(Goal.created_at, Goal.id)
    )
    return list(result.scalars().all())


async def create_milestone(
    db: AsyncSession,
    ctx: AuthContext,
    goal_id: int,
    fields: dict[str, Any],
    clock: Clock,
) -> Milestone:
    goal = await get_owned_goal(db, ctx, goal_id)
    now = clock.now()
    milestone = Milestone(
        user_id=ctx.user_id,
        goal_id=goal.id,
        **fields,
        status="not_started",
        progress_percentage=0,
        created_at=now,
        updated_at=now,
    )
    db.add(milestone)
    await db.flush()
    return milestone


async def list_milestones(db: AsyncSession, ctx: AuthContext, goal_id: int) -> list[Milestone]:
    goal = await get_owned_goal(db, ctx, goal_id)
    result = await db.execute(
        select(Milestone)
        .where(Milestone.goal_id == goal.id, Milestone.user_id == ctx.user_id)
        .order_by(Milestone.sequence_order, Milestone.id)
    )
    return list(result.scalars().all())


async def update_milestone(
    db: AsyncSession,
    redis: object,
    ctx: AuthContext,
    milestone_id: int,
    patch: dict[str, Any],
    clock: Clock,
) -> Milestone:
    """
    Apply a partial milestone update.

    On a transition into ``completed``:
    1. Stamp the milestone and set it to 100%
    2. Recompute goal progress from completed/total milestones
    3. Complete the goal at 100%, otherwise keep it in progress
    4. Grant milestone XP with a history entry
    """
    milestone = await get_owned_milestone(db, ctx, milestone_id)
    was_completed = milestone.status == "completed"
    now = clock.now()

    for key, value in patch.items():
        if key in _MILESTONE_FIELDS:
            setattr(milestone, key, value)
    milestone.updated_at = now

    if patch.get("status") != "completed" or was_completed:
        await db.flush()
        return milestone

    milestone.completed_at = now
    milestone.progress_percentage = 100
    await db.flush()

    goal = await db.get(Goal, milestone.goal_id)
    total_result = await db.execute(
        select(func.count()).select_from(Milestone).where(Milestone.goal_id == goal.id)
    )
    completed_result = await db.execute(
        select(func.count())
        .select_from(Milestone)
        .where(Milestone.goal_id == goal.id, Milestone.status == "completed")
    )
    progress = goal_progress(completed_result.scalar_one(), total_result.scalar_one())

    goal.progress = progress
    if progress >= 100:
        goal.status = "completed"
        goal.completion_date = now
    else:
        goal.status = "in_progress"
        goal.completion_date = None
    goal.updated_at = now

    await grant_xp(
        db, redis, ctx.user_id, XP_MILESTONE_COMPLETE, "milestone_complete",
        f"Completed milestone: {milestone.title}",
        clock,
    )

    logger.info("milestone_completed", milestone_id=milestone.id, goal_id=goal.id, progress=progress)
    return milestone
