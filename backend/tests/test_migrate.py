"""
Migration discovery and bookkeeping helpers.
"""
from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from app.core.config import settings
from app.db.migrate import (
    MigrationError,
    MigrationRunner,
    discover_migrations,
    is_already_exists_error,
    pending_migrations,
)


class TestDiscover:
    def test_numeric_order_and_filtering(self, tmp_path: Path):
        for name in ("010_b.sql", "002_a.sql", "1_first.sql", "notes.txt", "draft.sql"):
            (tmp_path / name).write_text("SELECT 1;")
        (tmp_path / "003_dir.sql").mkdir()

        names = [m.name for m in discover_migrations(tmp_path)]
        assert names == ["1_first.sql", "002_a.sql", "010_b.sql"]

    def test_duplicate_numbers_rejected(self, tmp_path: Path):
        (tmp_path / "004_one.sql").write_text("")
        (tmp_path / "4_two.sql").write_text("")
        with pytest.raises(MigrationError, match="Duplicate migration number 4"):
            discover_migrations(tmp_path)

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(MigrationError):
            discover_migrations(tmp_path / "nope")

    def test_bundled_migrations_are_contiguous(self):
        numbers = [m.number for m in discover_migrations(settings.migrations_dir)]
        assert numbers == list(range(1, len(numbers) + 1))
        assert numbers[0] == 1


def test_pending_skips_executed(tmp_path: Path):
    for name in ("001_a.sql", "002_b.sql", "003_c.sql"):
        (tmp_path / name).write_text("")
    migrations = discover_migrations(tmp_path)
    pending = pending_migrations(migrations, {"001_a.sql", "003_c.sql", "999_gone.sql"})
    assert [m.name for m in pending] == ["002_b.sql"]


class _Orig(Exception):
    pass


def test_already_exists_detection():
    exc = ProgrammingError("CREATE TABLE", {}, _Orig('relation "users" already exists'))
    assert is_already_exists_error(exc)
    other = ProgrammingError("CREATE TABLE", {}, _Orig("syntax error at or near"))
    assert not is_already_exists_error(other)
    assert is_already_exists_error(RuntimeError("type Already Exists"))


async def _history_names(engine, names: list[str]) -> list[str]:
    async with engine.begin() as conn:
        result = await conn.execute(
            text("SELECT migration_name FROM migration_history WHERE migration_name = ANY(:names)"),
            {"names": names},
        )
        return sorted(row[0] for row in result)


async def _forget(engine, names: list[str]) -> None:
    async with engine.begin() as conn:
        await conn.execute(
            text("DELETE FROM migration_history WHERE migration_name = ANY(:names)"),
            {"names": names},
        )


async def test_existing_objects_are_marked_executed(db_engine, tmp_path: Path):
    name = "901_users_again.sql"
    (tmp_path / name).write_text("CREATE TABLE users (id SERIAL PRIMARY KEY);")
    try:
        report = await MigrationRunner(db_engine, tmp_path).run()
        assert report.applied == []
        assert report.marked_existing == [name]
        assert await _history_names(db_engine, [name]) == [name]

        # recorded files are not run again
        report = await MigrationRunner(db_engine, tmp_path).run()
        assert report.marked_existing == []
    finally:
        await _forget(db_engine, [name])


async def test_failed_migration_leaves_no_history(db_engine, tmp_path: Path):
    name = "902_broken.sql"
    (tmp_path / name).write_text("CREATE TABLE zz_half_done (id INT); SELEC 1;")
    try:
        with pytest.raises(MigrationError, match="902_broken.sql failed"):
            await MigrationRunner(db_engine, tmp_path).run()
        assert await _history_names(db_engine, [name]) == []
        async with db_engine.begin() as conn:
            leftover = await conn.execute(text("SELECT to_regclass('zz_half_done')"))
            assert leftover.scalar_one() is None
    finally:
        await _forget(db_engine, [name])
