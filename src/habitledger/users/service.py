"""User profile management."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from habitledger.db.models import User

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from habitledger.clock import Clock

logger = structlog.get_logger()


async def update_profile(
    db: AsyncSession,
    user: User,
    clock: Clock,
    name: str | None = None,
    timezone: str | None = None,
) -> User:
    """Update editable profile fields."""
    if name is not None:
        user.name = name
    if timezone is not None:
        user.timezone = timezone
    user.updated_at = clock.now()
    await db.flush()
    logger.info("profile_updated", user_id=user.id)
    return user
