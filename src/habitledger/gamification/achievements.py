"""Achievement catalog and unlock service with duplicate prevention.

Each achievement is earned once per user. Eligibility is computed from the
user's own habits, goals and milestones; unlocking appends an entry to the
profile's ``achievements`` list and grants the reward as XP with a history
entry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from habitledger.db.models import Goal, Habit, Milestone
from habitledger.errors import NotFoundError
from habitledger.gamification.xp_service import get_or_create_gamification, grant_xp

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.clock import Clock
    from habitledger.db.models import UserGamification

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Achievement:
    id: str
    name: str
    description: str
    metric: str
    threshold: int
    xp_reward: int


ACHIEVEMENTS: dict[str, Achievement] = {
    a.id: a
    for a in [
        Achievement("habit_builder", "Habit Builder", "Create your first habit", "habits_created", 1, 25),
        Achievement("goal_setter", "Goal Setter", "Create your first goal", "goals_created", 1, 25),
        Achievement("streak_3", "Three-peat", "3-day streak on any habit", "longest_streak", 3, 15),
        Achievement("streak_7", "Week Warrior", "7-day streak", "longest_streak", 7, 30),
        Achievement("streak_14", "Fortnight Force", "14-day streak", "longest_streak", 14, 50),
        Achievement("streak_30", "Monthly Master", "30-day streak", "longest_streak", 30, 100),
        Achievement("streak_60", "Iron Will", "60-day streak", "longest_streak", 60, 200),
        Achievement("streak_100", "Centurion", "100-day streak", "longest_streak", 100, 500),
        Achievement("streak_365", "Year of Transformation", "365-day streak", "longest_streak", 365, 2000),
        Achievement("goal_complete_1", "Dream Achiever", "Complete your first goal", "goals_completed", 1, 200),
        Achievement("goal_complete_5", "Goal Crusher", "Complete 5 goals", "goals_completed", 5, 500),
        Achievement("milestone_10", "Milestone Maverick", "Complete 10 milestones", "milestones_completed", 10, 100),
    ]
}


async def _metrics(db: AsyncSession, user_id: int) -> dict[str, int]:
    """Counters every achievement rule is evaluated against."""

    async def scalar(stmt) -> int:
        return (await db.execute(stmt)).scalar_one() or 0

    return {
        "habits_created": await scalar(
            select(func.count()).select_from(Habit).where(Habit.user_id == user_id)
        ),
        "longest_streak": await scalar(
            select(func.max(Habit.streak_longest)).where(Habit.user_id == user_id)
        ),
        "goals_created": await scalar(
            select(func.count()).select_from(Goal).where(Goal.user_id == user_id)
        ),
        "goals_completed": await scalar(
            select(func.count())
            .select_from(Goal)
            .where(Goal.user_id == user_id, Goal.status == "completed")
        ),
        "milestones_completed": await scalar(
            select(func.count())
            .select_from(Milestone)
            .where(Milestone.user_id == user_id, Milestone.status == "completed")
        ),
    }


def has_achievement(gam: UserGamification, achievement_id: str) -> bool:
    return any(a.get("id") == achievement_id for a in gam.achievements or [])


async def unlock_achievement(
    db: AsyncSession,
    redis: object,
    user_id: int,
    achievement_id: str,
    clock: Clock,
) -> bool:
    """Record an achievement and grant its XP reward.

    Returns True if unlocked, False if the user already has it.

    Raises:
        NotFoundError: If the id is not in the catalog.
    """
    achievement = ACHIEVEMENTS.get(achievement_id)
    if achievement is None:
        raise NotFoundError("Achievement")

    gam = await get_or_create_gamification(db, user_id, clock)
    if has_achievement(gam, achievement_id):
        return False

    # Reassign rather than append so the JSON column is marked dirty
    gam.achievements = [
        *(gam.achievements or []),
        {
            "id": achievement.id,
            "name": achievement.name,
            "description": achievement.description,
            "xp_reward": achievement.xp_reward,
            "unlocked_at": clock.now().isoformat(),
        },
    ]
    await db.flush()

    await grant_xp(
        db, redis, user_id, achievement.xp_reward, "achievement",
        f"Unlocked achievement: {achievement.name}",
        clock,
    )
    logger.info("User %d unlocked achievement %s", user_id, achievement_id)
    return True


async def check_achievements(
    db: AsyncSession,
    redis: object,
    user_id: int,
    clock: Clock,
) -> list[str]:
    """Unlock every catalog achievement the user now qualifies for.

    Returns the ids unlocked by this call, in catalog order.
    """
    metrics = await _metrics(db, user_id)
    gam = await get_or_create_gamification(db, user_id, clock)

    unlocked: list[str] = []
    for achievement in ACHIEVEMENTS.values():
        if has_achievement(gam, achievement.id):
            continue
        if metrics[achievement.metric] < achievement.threshold:
            continue
        if await unlock_achievement(db, redis, user_id, achievement.id, clock):
            unlocked.append(achievement.id)
    return unlocked
