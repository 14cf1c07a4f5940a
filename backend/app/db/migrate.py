from __future__ import annotations

import argparse
import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.core.config import settings
from app.core.logging import logger

"""
Numbered .sql migration runner.

Files named NNN_description.sql are applied in numeric order. Every file runs
in its own transaction together with the INSERT into migration_history, so a
failed file leaves neither schema changes nor a history row behind. A file
that fails with "already exists" is recorded as executed: the objects it
creates are already in place (databases created before the runner was
introduced).
"""

MIGRATION_FILE_RE = re.compile(r"^(?P<number>\d+)_(?P<slug>[\w\-]+)\.sql$")

HISTORY_TABLE_DDL = """
CREATE TABLE IF NOT EXISTS migration_history (
    id SERIAL PRIMARY KEY,
    migration_name TEXT NOT NULL UNIQUE,
    executed_at TIMESTAMP NOT NULL DEFAULT now()
)
"""


class MigrationError(Exception):
    """A migration file failed with an error other than "already exists"."""


@dataclass(frozen=True)
class Migration:
    number: int
    name: str
    path: Path

    def read_sql(self) -> str:
        return self.path.read_text(encoding="utf-8")


@dataclass
class MigrationReport:
    applied: list[str] = field(default_factory=list)
    marked_existing: list[str] = field(default_factory=list)
    pruned: list[str] = field(default_factory=list)


def discover_migrations(directory: Path | str) -> list[Migration]:
    """List migration files ordered by their numeric prefix."""
    directory = Path(directory)
    if not directory.is_dir():
        raise MigrationError(f"Migrations directory not found: {directory}")

    migrations: list[Migration] = []
    seen_numbers: dict[int, str] = {}
    for path in directory.iterdir():
        match = MIGRATION_FILE_RE.match(path.name)
        if not path.is_file() or match is None:
            continue
        number = int(match.group("number"))
        if number in seen_numbers:
            raise MigrationError(
                f"Duplicate migration number {number}: {seen_numbers[number]} and {path.name}"
            )
        seen_numbers[number] = path.name
        migrations.append(Migration(number=number, name=path.name, path=path))

    return sorted(migrations, key=lambda m: m.number)


def pending_migrations(migrations: list[Migration], executed: set[str]) -> list[Migration]:
    return [m for m in migrations if m.name not in executed]


def is_already_exists_error(exc: BaseException) -> bool:
    orig = getattr(exc, "orig", None)
    return "already exists" in str(orig if orig is not None else exc).lower()


class MigrationRunner:
    """Applies pending migrations from a directory to the configured database."""

    def __init__(self, engine: AsyncEngine, directory: Path | str | None = None) -> None:
        self.engine = engine
        self.directory = Path(directory or settings.migrations_dir)

    async def _ensure_history_table(self, conn: AsyncConnection) -> None:
        await conn.execute(text(HISTORY_TABLE_DDL))

    async def executed_names(self) -> set[str]:
        async with self.engine.begin() as conn:
            await self._ensure_history_table(conn)
            result = await conn.execute(text("SELECT migration_name FROM migration_history"))
            return {row[0] for row in result}

    async def _record(self, conn: AsyncConnection, name: str) -> None:
        await conn.execute(
            text(
                "INSERT INTO migration_history (migration_name) VALUES (:name) "
                "ON CONFLICT (migration_name) DO NOTHING"
            ),
            {"name": name},
        )

    async def _apply(self, migration: Migration) -> bool:
        """Run one file. Returns False when it was only marked as executed."""
        sql = migration.read_sql()
        try:
            async with self.engine.connect() as conn:
                async with conn.begin():
                    # no_parameters: the file may hold many statements and literal % signs
                    await conn.exec_driver_sql(sql, execution_options={"no_parameters": True})
                    await self._record(conn, migration.name)
            return True
        except DBAPIError as exc:
            if not is_already_exists_error(exc):
                raise MigrationError(f"Migration {migration.name} failed: {exc.orig}") from exc

        logger.warning(
            f"Migration {migration.name} reported existing objects, marking it as executed"
        )
        async with self.engine.begin() as conn:
            await self._record(conn, migration.name)
        return False

    async def _prune(self, known: set[str], executed: set[str]) -> list[str]:
        stale = sorted(executed - known)
        if stale:
            async with self.engine.begin() as conn:
                await conn.execute(
                    text("DELETE FROM migration_history WHERE migration_name = ANY(:names)"),
                    {"names": stale},
                )
            logger.info(f"Pruned {len(stale)} stale migration_history rows: {stale}")
        return stale

    async def run(self, prune: bool = False) -> MigrationReport:
        migrations = discover_migrations(self.directory)
        executed = await self.executed_names()
        report = MigrationReport()

        if prune:
            report.pruned = await self._prune({m.name for m in migrations}, executed)

        pending = pending_migrations(migrations, executed)
        if not pending:
            logger.info("Database schema is up to date")
            return report

        for migration in pending:
            logger.info(f"Applying migration {migration.name}")
            if await self._apply(migration):
                report.applied.append(migration.name)
            else:
                report.marked_existing.append(migration.name)

        logger.info(
            f"Migrations finished: {len(report.applied)} applied, "
            f"{len(report.marked_existing)} marked as existing"
        )
        return report

    async def status(self) -> tuple[list[str], list[str]]:
        migrations = discover_migrations(self.directory)
        executed = await self.executed_names()
        applied = [m.name for m in migrations if m.name in executed]
        pending = [m.name for m in pending_migrations(migrations, executed)]
        return applied, pending


async def run_migrations(engine: AsyncEngine | None = None, prune: bool = False) -> MigrationReport:
    if engine is None:
        from app.db.session import engine as default_engine

        engine = default_engine
    return await MigrationRunner(engine).run(prune=prune)


async def _main(args: argparse.Namespace) -> None:
    from app.db.session import engine

    runner = MigrationRunner(engine, args.dir)
    try:
        if args.status:
            applied, pending = await runner.status()
            for name in applied:
                print(f"[x] {name}")
            for name in pending:
                print(f"[ ] {name}")
            return
        report = await runner.run(prune=args.prune)
        for name in report.applied:
            print(f"applied  {name}")
        for name in report.marked_existing:
            print(f"existing {name}")
        for name in report.pruned:
            print(f"pruned   {name}")
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply numbered SQL migrations")
    parser.add_argument("--dir", default=settings.migrations_dir, help="migrations directory")
    parser.add_argument(
        "--prune", action="store_true", help="delete history rows of removed migration files"
    )
    parser.add_argument(
        "--status", action="store_true", help="list applied and pending migrations only"
    )
    asyncio.run(_main(parser.parse_args()))


if __name__ == "__main__":
    main()
