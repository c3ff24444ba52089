"""XP awards, history entries and level-up detection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from habitledger.db.models import UserGamification, XPHistory
from habitledger.gamification.levels import level_for_xp
from habitledger.redis_client import publish_json

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.clock import Clock

logger = logging.getLogger(__name__)

LEVEL_UP_CHANNEL = "pubsub:level_up"


async def get_gamification(db: AsyncSession, user_id: int) -> UserGamification | None:
    """Fetch the gamification profile for a user."""
    result = await db.execute(
        select(UserGamification).where(UserGamification.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_gamification(
    db: AsyncSession, user_id: int, clock: Clock
) -> UserGamification:
    """Get or create the single gamification row for a user."""
    gam = await get_gamification(db, user_id)
    if gam is None:
        gam = UserGamification(
            user_id=user_id,
            total_xp=0,
            level=1,
            achievements=[],
            updated_at=clock.now(),
        )
        db.add(gam)
        await db.flush()
    return gam


async def award_xp(
    db: AsyncSession,
    user_id: int,
    amount: int,
    clock: Clock,
) -> tuple[UserGamification, int]:
    """Add XP to the profile and recompute the level. No history entry.

    Returns:
        Tuple of (profile, previous level).
    """
    gam = await get_or_create_gamification(db, user_id, clock)
    old_level = gam.level
    gam.total_xp = max(0, gam.total_xp + amount)
    gam.level = level_for_xp(gam.total_xp)
    gam.updated_at = clock.now()
    await db.flush()
    return gam, old_level


async def grant_xp(
    db: AsyncSession,
    redis: object,
    user_id: int,
    amount: int,
    source: str,
    description: str,
    clock: Clock,
) -> UserGamification:
    """Grant XP and append an XP history entry.

    After granting:
    1. Insert into xp_history
    2. Update user_gamification.total_xp
    3. Recompute level from total_xp
    4. If level changed, publish a level_up event
    """
    now = clock.now()
    db.add(XPHistory(
        user_id=user_id,
        amount=amount,
        source=source,
        description=description,
        created_at=now,
    ))

    gam, old_level = await award_xp(db, user_id, amount, clock)
    logger.info("Granted %d XP to user %d (%s), total %d", amount, user_id, source, gam.total_xp)

    if gam.level > old_level:
        await _emit_level_up(redis, user_id, old_level, gam.level)

    return gam


async def _emit_level_up(redis: object, user_id: int, old_level: int, new_level: int) -> None:
    """Broadcast a level-up event for dashboards and celebrations."""
    logger.info("User %d leveled up: %d -> %d", user_id, old_level, new_level)
    if redis is None:
        return
    try:
        await publish_json(
            redis,
            LEVEL_UP_CHANNEL,
            {"user_id": user_id, "old_level": old_level, "new_level": new_level},
        )
    except Exception:
        logger.warning("Failed to publish level_up broadcast", exc_info=True)


async def get_xp_history(
    db: AsyncSession,
    user_id: int,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[XPHistory], int]:
    """Return one page of XP history (newest first) and the total count."""
    total_result = await db.execute(
        select(func.count()).select_from(XPHistory).where(XPHistory.user_id == user_id)
    )
    total = total_result.scalar_one()

    result = await db.execute(
        select(XPHistory)
        .where(XPHistory.user_id == user_id)
        .order_by(XPHistory.created_at.desc(), XPHistory.id.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return list(result.scalars().all()), total
