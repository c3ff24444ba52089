"""Level computation and habit XP rate tests."""

import pytest

from habitledger.gamification.levels import (
    XP_HABIT_COMPLETE,
    compute_level,
    habit_completion_xp,
    level_for_xp,
    round_half_up,
)


class TestLevelComputation:
    """Level is total_xp // 100 + 1."""

    def test_level_1_at_zero_xp(self):
        assert level_for_xp(0) == 1

    def test_level_boundary_99_xp(self):
        """99 XP is still level 1."""
        assert level_for_xp(99) == 1

    def test_level_2_at_100_xp(self):
        assert level_for_xp(100) == 2

    @pytest.mark.parametrize(
        "xp,expected_level",
        [(0, 1), (50, 1), (100, 2), (199, 2), (200, 3), (999, 10), (1000, 11), (12345, 124)],
    )
    def test_level_table(self, xp, expected_level):
        assert level_for_xp(xp) == expected_level

    def test_xp_into_level_calculation(self):
        result = compute_level(150)
        assert result["level"] == 2
        assert result["xp_into_level"] == 50
        assert result["xp_for_level"] == 100
        assert result["xp_to_next_level"] == 50
        assert result["progress_percent"] == 50
        assert result["next_level"] == 3

    def test_xp_into_level_at_boundary(self):
        result = compute_level(300)
        assert result["level"] == 4
        assert result["xp_into_level"] == 0
        assert result["xp_to_next_level"] == 100


class TestHabitCompletionXP:
    """Base XP plus streak bonuses, keyed on the streak after completion."""

    @pytest.mark.parametrize(
        "streak,expected",
        [(1, 10), (2, 10), (6, 10), (7, 15), (8, 15), (29, 15), (30, 25), (31, 25), (365, 25)],
    )
    def test_bonus_thresholds(self, streak, expected):
        assert habit_completion_xp(streak) == expected

    def test_base_rate(self):
        assert habit_completion_xp(1) == XP_HABIT_COMPLETE


class TestRoundHalfUp:
    """Percentages round .5 up, unlike Python's round()."""

    @pytest.mark.parametrize(
        "completed,total,expected",
        [(1, 8, 13), (7, 8, 88), (1, 3, 33), (2, 3, 67), (1, 2, 50), (0, 5, 0), (5, 5, 100)],
    )
    def test_percentage_of_ratio(self, completed, total, expected):
        assert round_half_up(completed / total * 100) == expected

    @pytest.mark.parametrize("value,expected", [(0.5, 1), (2.5, 3), (2.4999, 2), (99.5, 100)])
    def test_halves_go_up(self, value, expected):
        assert round_half_up(value) == expected
