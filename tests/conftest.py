"""Shared fixtures: an in-memory ``DatabaseClient`` and an application root."""

from pathlib import Path
from typing import Any

import pytest

from db_backupper.backup.orchestrator import BackupOrchestrator
from db_backupper.errors import DatabaseError


class FakeDatabaseClient:
    """In-memory ``DatabaseClient``.

    ``fail_on`` holds table names whose writes raise ``DatabaseError``.
    Failed writes leave the table untouched, like a rolled-back transaction.
    """

    def __init__(self, tables: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {
            name: [dict(r) for r in rows] for name, rows in (tables or {}).items()
        }
        self.fail_on: set[str] = set()
        self.writes: list[tuple[str, str]] = []
        self.closed = False

    def _check(self, table: str) -> None:
        if table not in self.tables:
            raise DatabaseError(f"no such table: {table}")

    async def list_tables(self) -> list[str]:
        return list(self.tables)

    async def select_all(self, table: str) -> list[dict[str, Any]]:
        self._check(table)
        return [dict(r) for r in self.tables[table]]

    async def delete_all(self, table: str) -> None:
        self._check(table)
        self.writes.append(("delete", table))
        if table in self.fail_on:
            raise DatabaseError(f"delete failed: {table}")
        self.tables[table] = []

    async def insert_many(self, table: str, rows: list[dict[str, Any]]) -> None:
        self._check(table)
        self.writes.append(("insert", table))
        if table in self.fail_on:
            raise DatabaseError(f"insert failed: {table}")
        self.tables[table].extend(dict(r) for r in rows)

    async def replace_all(self, table: str, rows: list[dict[str, Any]]) -> None:
        self._check(table)
        self.writes.append(("replace", table))
        if table in self.fail_on:
            raise DatabaseError(f"replace failed: {table}")
        self.tables[table] = [dict(r) for r in rows]

    async def execute(self, sql: str, params: dict | None = None) -> None:
        pass

    async def close(self) -> None:
        self.closed = True


def sample_tables() -> dict[str, list[dict[str, Any]]]:
    """``users`` with 2 rows, ``posts`` with 3 rows, plus a migrations table."""
    return {
        "users": [
            {"id": 1, "name": "Alice", "admin": True},
            {"id": 2, "name": "Bob", "admin": False},
        ],
        "posts": [
            {"id": 1, "user_id": 1, "title": "Hello", "body": None},
            {"id": 2, "user_id": 1, "title": "Again", "body": "more"},
            {"id": 3, "user_id": 2, "title": "Hi", "body": "text"},
        ],
        "schema_migrations": [{"version": "20240101000000"}],
    }


def sort_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return sorted(rows, key=lambda r: repr(sorted(r.items(), key=lambda kv: kv[0])))


@pytest.fixture
def root(tmp_path: Path) -> Path:
    app_root = tmp_path / "app"
    app_root.mkdir()
    return app_root.resolve()


@pytest.fixture
def client() -> FakeDatabaseClient:
    return FakeDatabaseClient(sample_tables())


@pytest.fixture
def orchestrator(client: FakeDatabaseClient, root: Path) -> BackupOrchestrator:
    return BackupOrchestrator(client, root_dir=root)
