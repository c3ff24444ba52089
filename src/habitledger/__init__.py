"""Habit Ledger API: habits, daily completions, streaks and XP."""

__version__ = "0.1.0"
