"""User lookup and first-sign-in sync."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from habitledger.db.models import User
from habitledger.gamification.xp_service import get_or_create_gamification

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.clock import Clock

logger = structlog.get_logger()


async def get_user_by_subject(db: AsyncSession, subject: str) -> User | None:
    """Fetch a user by identity-provider subject."""
    result = await db.execute(select(User).where(User.subject == subject))
    return result.scalar_one_or_none()


async def sync_user(
    db: AsyncSession,
    subject: str,
    clock: Clock,
    email: str | None = None,
    name: str | None = None,
) -> tuple[User, bool]:
    """
    Upsert the user for an identity subject.

    New users start on the free plan with one streak freeze and get their
    gamification profile in the same transaction.

    Returns:
        Tuple of (user, created).
    """
    now = clock.now()
    user = await get_user_by_subject(db, subject)
    if user is not None:
        if email is not None:
            user.email = email
        if name is not None:
            user.name = name
        user.updated_at = now
        await db.flush()
        return user, False

    user = User(
        subject=subject,
        email=email,
        name=name or "User",
        plan="free",
        timezone="UTC",
        streak_freeze_count=1,
        created_at=now,
        updated_at=now,
    )
    db.add(user)
    await db.flush()
    await get_or_create_gamification(db, user.id, clock)

    logger.info("user_created", user_id=user.id)
    return user, True
