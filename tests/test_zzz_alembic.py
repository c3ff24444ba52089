"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Migrations run in a subprocess against a throwaway SQLite file, then the
resulting schema is compared with the ORM models.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect

from habitledger.db.base import Base
from habitledger.db import models  # noqa: F401

ROOT = Path(__file__).resolve().parents[1]


def _alembic(db_file: Path, *args: str) -> subprocess.CompletedProcess:
    env = {**os.environ, "HL_DATABASE_URL": f"sqlite+aiosqlite:///{db_file}"}
    return subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        capture_output=True,
        text=True,
        cwd=ROOT,
        env=env,
    )


@pytest.fixture
def migrated(tmp_path: Path):
    """Inspector over a database upgraded to head."""
    db_file = tmp_path / "migrations.db"
    result = _alembic(db_file, "upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"

    engine = create_engine(f"sqlite:///{db_file}")
    yield db_file, inspect(engine)
    engine.dispose()


def test_alembic_current_shows_head(migrated) -> None:
    db_file, _ = migrated
    result = _alembic(db_file, "current")
    assert result.returncode == 0
    assert "001_habit_ledger" in result.stdout


def test_tables_match_models(migrated) -> None:
    _, inspector = migrated
    assert set(inspector.get_table_names()) == set(Base.metadata.tables) | {"alembic_version"}


@pytest.mark.parametrize("table", sorted(Base.metadata.tables))
def test_columns_match_models(migrated, table: str) -> None:
    """Same column names and, outside the primary key, the same nullability."""
    _, inspector = migrated
    migrated_cols = {c["name"]: c["nullable"] for c in inspector.get_columns(table)}
    model_cols = {c.name: c.nullable for c in Base.metadata.tables[table].columns}

    assert set(migrated_cols) == set(model_cols)
    for name, nullable in model_cols.items():
        if name != "id":
            assert migrated_cols[name] == nullable, f"{table}.{name}"


def test_habit_log_date_is_unique_per_habit(migrated) -> None:
    _, inspector = migrated
    constraints = {
        c["name"]: c["column_names"] for c in inspector.get_unique_constraints("habit_logs")
    }
    assert constraints["habit_logs_habit_id_date_key"] == ["habit_id", "date"]


def test_downgrade_to_base(tmp_path: Path) -> None:
    db_file = tmp_path / "roundtrip.db"
    assert _alembic(db_file, "upgrade", "head").returncode == 0

    result = _alembic(db_file, "downgrade", "base")
    assert result.returncode == 0, f"alembic downgrade failed: {result.stderr}"

    engine = create_engine(f"sqlite:///{db_file}")
    try:
        assert set(inspect(engine).get_table_names()) == {"alembic_version"}
    finally:
        engine.dispose()
