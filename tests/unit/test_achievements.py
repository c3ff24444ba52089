"""Achievement unlock tests: eligibility, XP reward and duplicate prevention."""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from sqlalchemy import select

from habitledger.db.models import XPHistory
from habitledger.errors import NotFoundError
from habitledger.gamification.achievements import ACHIEVEMENTS, check_achievements, unlock_achievement
from habitledger.gamification.xp_service import get_gamification
from habitledger.goals import service as goals_service
from habitledger.habits import service as habits_service

DAY = date(2025, 3, 10)


async def _habit(db, ctx, clock):
    return await habits_service.create_habit(
        db, ctx, {"title": "Read", "category": "learning", "frequency": "daily"}, clock
    )


class TestUnlock:

    @pytest.mark.asyncio
    async def test_unlock_records_and_grants_xp(self, db_session, ctx, clock):
        assert await unlock_achievement(db_session, None, ctx.user_id, "habit_builder", clock) is True

        gam = await get_gamification(db_session, ctx.user_id)
        assert [a["id"] for a in gam.achievements] == ["habit_builder"]
        assert gam.achievements[0]["unlocked_at"] == clock.now().isoformat()
        assert gam.total_xp == ACHIEVEMENTS["habit_builder"].xp_reward

        result = await db_session.execute(select(XPHistory).where(XPHistory.user_id == ctx.user_id))
        entry = result.scalar_one()
        assert entry.source == "achievement"
        assert entry.description == "Unlocked achievement: Habit Builder"

    @pytest.mark.asyncio
    async def test_unlock_is_once_only(self, db_session, ctx, clock):
        await unlock_achievement(db_session, None, ctx.user_id, "goal_setter", clock)
        assert await unlock_achievement(db_session, None, ctx.user_id, "goal_setter", clock) is False

        gam = await get_gamification(db_session, ctx.user_id)
        assert len(gam.achievements) == 1
        assert gam.total_xp == 25

    @pytest.mark.asyncio
    async def test_unknown_achievement(self, db_session, ctx, clock):
        with pytest.raises(NotFoundError):
            await unlock_achievement(db_session, None, ctx.user_id, "moon_landing", clock)


class TestCheck:

    @pytest.mark.asyncio
    async def test_nothing_earned_yet(self, db_session, ctx, clock):
        assert await check_achievements(db_session, None, ctx.user_id, clock) == []
        assert (await get_gamification(db_session, ctx.user_id)).total_xp == 0

    @pytest.mark.asyncio
    async def test_unlocks_what_the_user_qualifies_for(self, db_session, ctx, clock):
        habit = await _habit(db_session, ctx, clock)
        await goals_service.create_goal(db_session, ctx, {"title": "Run", "category": "health"}, clock)
        for offset in range(3):
            await habits_service.toggle_complete(db_session, ctx, habit.id, DAY + timedelta(days=offset), clock)

        unlocked = await check_achievements(db_session, None, ctx.user_id, clock)

        assert unlocked == ["habit_builder", "goal_setter", "streak_3"]
        gam = await get_gamification(db_session, ctx.user_id)
        # 30 from the three toggles plus 25 + 25 + 15 in rewards
        assert gam.total_xp == 95

    @pytest.mark.asyncio
    async def test_second_check_unlocks_nothing_new(self, db_session, ctx, clock):
        await _habit(db_session, ctx, clock)
        assert await check_achievements(db_session, None, ctx.user_id, clock) == ["habit_builder"]
        assert await check_achievements(db_session, None, ctx.user_id, clock) == []

    @pytest.mark.asyncio
    async def test_longest_streak_survives_uncomplete(self, db_session, ctx, clock):
        habit = await _habit(db_session, ctx, clock)
        for offset in range(3):
            await habits_service.toggle_complete(db_session, ctx, habit.id, DAY + timedelta(days=offset), clock)
        await habits_service.toggle_complete(db_session, ctx, habit.id, DAY + timedelta(days=2), clock)

        assert "streak_3" in await check_achievements(db_session, None, ctx.user_id, clock)

    @pytest.mark.asyncio
    async def test_scoped_to_user(self, db_session, ctx, other_ctx, clock):
        await _habit(db_session, ctx, clock)
        assert await check_achievements(db_session, None, other_ctx.user_id, clock) == []
