"""Gamification API endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from habitledger.auth.context import AuthContext
from habitledger.auth.dependencies import get_auth_context
from habitledger.clock import Clock, get_clock
from habitledger.database import get_session
from habitledger.dependencies import get_redis_dep
from habitledger.gamification.achievements import ACHIEVEMENTS, check_achievements
from habitledger.gamification.levels import compute_level
from habitledger.gamification.schemas import (
    AchievementCheckResponse,
    AchievementResponse,
    GamificationProfileResponse,
    XPHistoryEntry,
    XPHistoryResponse,
)
from habitledger.gamification.xp_service import get_or_create_gamification, get_xp_history

router = APIRouter(prefix="/api/v1/gamification", tags=["Gamification"])


@router.get("/profile", response_model=GamificationProfileResponse)
async def get_profile(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> GamificationProfileResponse:
    """Get current user's XP, level and unlocks."""
    gam = await get_or_create_gamification(db, ctx.user_id, clock)
    await db.commit()
    level_info = compute_level(gam.total_xp)

    return GamificationProfileResponse(
        total_xp=gam.total_xp,
        level=level_info["level"],
        xp_into_level=level_info["xp_into_level"],
        xp_for_level=level_info["xp_for_level"],
        xp_to_next_level=level_info["xp_to_next_level"],
        progress_percent=level_info["progress_percent"],
        next_level=level_info["next_level"],
        achievements=gam.achievements or [],
    )


@router.get("/xp/history", response_model=XPHistoryResponse)
async def xp_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
) -> XPHistoryResponse:
    """Get XP history (paginated, newest first)."""
    entries, total = await get_xp_history(db, ctx.user_id, page=page, per_page=per_page)

    return XPHistoryResponse(
        entries=[
            XPHistoryEntry(
                amount=e.amount,
                source=e.source,
                description=e.description,
                created_at=e.created_at,
            )
            for e in entries
        ],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/achievements", response_model=list[AchievementResponse])
async def list_achievements(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    clock: Clock = Depends(get_clock),
) -> list[AchievementResponse]:
    """The achievement catalog with the caller's unlock state."""
    gam = await get_or_create_gamification(db, ctx.user_id, clock)
    await db.commit()
    unlocked = {a["id"]: a.get("unlocked_at") for a in gam.achievements or []}

    return [
        AchievementResponse(
            id=a.id,
            name=a.name,
            description=a.description,
            xp_reward=a.xp_reward,
            unlocked=a.id in unlocked,
            unlocked_at=unlocked.get(a.id),
        )
        for a in ACHIEVEMENTS.values()
    ]


@router.post("/achievements/check", response_model=AchievementCheckResponse)
async def check_user_achievements(
    ctx: AuthContext = Depends(get_auth_context),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    clock: Clock = Depends(get_clock),
) -> AchievementCheckResponse:
    """Unlock any achievements the caller has earned since the last check."""
    unlocked = await check_achievements(db, redis, ctx.user_id, clock)
    gam = await get_or_create_gamification(db, ctx.user_id, clock)
    await db.commit()
    return AchievementCheckResponse(unlocked=unlocked, total_xp=gam.total_xp, level=gam.level)
