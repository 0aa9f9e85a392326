"""Database client protocol definition.

Defines the ``DatabaseClient`` Protocol that backup and restore run
against.  All methods are ``async def`` -- the library is async-first.

Usage:
    from db_backupper.adapters.base import DatabaseClient

    async def copy_users(client: DatabaseClient) -> None:
        rows = await client.select_all("users")
        await client.replace_all("users", rows)
        await client.close()
"""

from typing import Any, Protocol


class DatabaseClient(Protocol):
    """Database client interface that all adapters must implement.

    Only the narrow table-level operations needed for full backup and
    restore are required.  Driver failures must surface as
    ``db_backupper.errors.DatabaseError``.
    """

    async def list_tables(self) -> list[str]:
        """Return the names of every table in the database.

        Example:
            tables = await client.list_tables()
            # ['posts', 'schema_migrations', 'users']
        """
        ...

    async def select_all(self, table: str) -> list[dict[str, Any]]:
        """Return every row of ``table`` as a dict (column -> value).

        Column order in each dict follows the table's column order.
        """
        ...

    async def delete_all(self, table: str) -> None:
        """Delete every row of ``table`` (``DELETE FROM`` semantics)."""
        ...

    async def insert_many(self, table: str, rows: list[dict[str, Any]]) -> None:
        """Insert rows into ``table`` in a single transaction.

        If any row fails, none of the rows are committed.
        """
        ...

    async def replace_all(self, table: str, rows: list[dict[str, Any]]) -> None:
        """Delete every row of ``table`` and insert ``rows`` in one transaction.

        Observers never see the table empty mid-replacement; on failure
        the table keeps its previous contents.
        """
        ...

    async def execute(self, sql: str, params: dict | None = None) -> None:
        """Execute a raw SQL statement.

        Example:
            await client.execute("CREATE TABLE items (id INTEGER PRIMARY KEY)")
        """
        ...

    async def close(self) -> None:
        """Close database connection and clean up resources."""
        ...
