"""Level computation and XP rates.

Level is a pure function of total XP: every 100 XP is one level.
"""

from __future__ import annotations

import math

XP_PER_LEVEL = 100

# XP earning rates
XP_HABIT_COMPLETE = 10
XP_HABIT_STREAK_7_BONUS = 5
XP_HABIT_STREAK_30_BONUS = 10
XP_HABIT_UNCOMPLETE = -10
XP_EVENING_REFLECTION = 15
XP_PERFECT_DAY = 25
XP_MILESTONE_COMPLETE = 50
XP_WEEKLY_REVIEW = 30

PERFECT_DAY_SCORE = 95


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, so 12.5 -> 13."""
    return math.floor(value + 0.5)


def level_for_xp(total_xp: int) -> int:
    """Return the level for a given XP total."""
    return total_xp // XP_PER_LEVEL + 1


def compute_level(total_xp: int) -> dict:
    """Compute level info from total XP."""
    level = level_for_xp(total_xp)
    level_floor = (level - 1) * XP_PER_LEVEL
    xp_into_level = total_xp - level_floor
    return {
        "level": level,
        "xp_into_level": xp_into_level,
        "xp_for_level": XP_PER_LEVEL,
        "xp_to_next_level": XP_PER_LEVEL - xp_into_level,
        "progress_percent": round(xp_into_level / XP_PER_LEVEL * 100),
        "next_level": level + 1,
    }


def habit_completion_xp(new_streak: int) -> int:
    """XP for completing a habit, including streak bonuses for the new streak."""
    xp = XP_HABIT_COMPLETE
    if new_streak >= 7:
        xp += XP_HABIT_STREAK_7_BONUS
    if new_streak >= 30:
        xp += XP_HABIT_STREAK_30_BONUS
    return xp
