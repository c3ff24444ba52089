"""Habit ledger baseline.

Creates users, habits, habit_logs, user_gamification, xp_history, goals,
milestones, daily_plans and weekly_reviews.

Revision ID: 001_habit_ledger
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001_habit_ledger"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _id() -> sa.Column:
    return sa.Column("id", sa.BigInteger().with_variant(sa.Integer, "sqlite"), primary_key=True, autoincrement=True)


def _fk(name: str, target: str, ondelete: str = "CASCADE", nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.BigInteger().with_variant(sa.Integer, "sqlite"),
        sa.ForeignKey(target, ondelete=ondelete),
        nullable=nullable,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        "users",
        _id(),
        sa.Column("subject", sa.String(128), nullable=False, unique=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("plan", sa.String(16), nullable=False, server_default="free"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("streak_freeze_count", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
    )

    # --- Goals ---
    op.create_table(
        "goals",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="in_progress"),
        sa.Column("progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("target_date", sa.Date, nullable=True),
        sa.Column("completion_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_goals_user_id", "goals", ["user_id"])

    # --- Habits ---
    op.create_table(
        "habits",
        _id(),
        _fk("user_id", "users.id"),
        _fk("goal_id", "goals.id", ondelete="SET NULL", nullable=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("category", sa.String(64), nullable=False),
        sa.Column("frequency", sa.String(16), nullable=False),
        sa.Column("custom_days", sa.JSON, nullable=True),
        sa.Column("time_of_day", sa.String(16), nullable=False, server_default="anytime"),
        sa.Column("identity_label", sa.String(200), nullable=True),
        sa.Column("color", sa.String(32), nullable=True),
        sa.Column("icon", sa.String(64), nullable=True),
        sa.Column("estimated_minutes", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("streak_current", sa.Integer, nullable=False, server_default="0"),
        sa.Column("streak_longest", sa.Integer, nullable=False, server_default="0"),
        sa.Column("sort_order", sa.Integer, nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_habits_user_id", "habits", ["user_id"])
    op.create_index("ix_habits_is_active", "habits", ["is_active"])

    # --- Habit logs (one per habit per day) ---
    op.create_table(
        "habit_logs",
        _id(),
        _fk("habit_id", "habits.id"),
        _fk("user_id", "users.id"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("mood", sa.SmallInteger, nullable=True),
        sa.Column("note", sa.Text, nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("habit_id", "date", name="habit_logs_habit_id_date_key"),
    )
    op.create_index("ix_habit_logs_habit_id", "habit_logs", ["habit_id"])
    op.create_index("ix_habit_logs_user_id", "habit_logs", ["user_id"])

    # --- Gamification ---
    op.create_table(
        "user_gamification",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("total_xp", sa.Integer, nullable=False, server_default="0"),
        sa.Column("level", sa.Integer, nullable=False, server_default="1"),
        sa.Column("achievements", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_id", name="user_gamification_user_id_key"),
    )
    op.create_table(
        "xp_history",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("amount", sa.Integer, nullable=False),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("description", sa.String(256), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_xp_history_user_id", "xp_history", ["user_id"])

    # --- Milestones ---
    op.create_table(
        "milestones",
        _id(),
        _fk("user_id", "users.id"),
        _fk("goal_id", "goals.id"),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("sequence_order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("target_date", sa.Date, nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="not_started"),
        sa.Column("progress_percentage", sa.Integer, nullable=False, server_default="0"),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_milestones_goal_id", "milestones", ["goal_id"])

    # --- Daily plans & weekly reviews ---
    op.create_table(
        "daily_plans",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("morning_intention", sa.Text, nullable=True),
        sa.Column("top_priorities", sa.JSON, nullable=True),
        sa.Column("morning_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("evening_reflection", sa.Text, nullable=True),
        sa.Column("day_rating", sa.SmallInteger, nullable=True),
        sa.Column("evening_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("daily_score", sa.Integer, nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "date", name="daily_plans_user_id_date_key"),
    )
    op.create_table(
        "weekly_reviews",
        _id(),
        _fk("user_id", "users.id"),
        sa.Column("week_start", sa.Date, nullable=False),
        sa.Column("week_end", sa.Date, nullable=False),
        sa.Column("habits_completion_rate", sa.Integer, nullable=False, server_default="0"),
        sa.Column("xp_earned", sa.Integer, nullable=False, server_default="0"),
        sa.Column("active_days", sa.Integer, nullable=False, server_default="0"),
        sa.Column("goals_progressed", sa.JSON, nullable=False),
        sa.Column("reflection", sa.Text, nullable=True),
        sa.Column("overall_rating", sa.SmallInteger, nullable=True),
        sa.Column("reviewed", sa.Boolean, nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "week_start", name="weekly_reviews_user_id_week_start_key"),
    )


def downgrade() -> None:
    for table in [
        "weekly_reviews",
        "daily_plans",
        "milestones",
        "xp_history",
        "user_gamification",
        "habit_logs",
        "habits",
        "goals",
        "users",
    ]:
        op.drop_table(table)
