"""Table selection for backup and restore.

Pure logic -- no I/O, no database connections.

Usage:
    from db_backupper.backup.catalog import interesting_tables

    tables = interesting_tables(await client.list_tables())
    tables = interesting_tables(all_tables, table_filter={"users", "posts"})
"""

from collections.abc import Iterable

# Framework/infrastructure tables that are never backed up or cleared
DEFAULT_EXCLUDED_TABLES: frozenset[str] = frozenset({
    "schema_migrations",
    "ar_internal_metadata",
    "sessions",
    "public_exceptions",
    "alembic_version",
})


def _as_name_set(value: Iterable[str], label: str) -> set[str]:
    if isinstance(value, (str, bytes)):
        raise TypeError(f"{label} must be a collection of table names, not a string")
    names = set(value)
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"{label} contains a non-string table name: {name!r}")
    return names


def interesting_tables(
    all_tables: Iterable[str],
    table_filter: Iterable[str] | None = None,
    excluded: Iterable[str] = DEFAULT_EXCLUDED_TABLES,
) -> list[str]:
    """List the tables an operation should touch, in lexicographic order.

    Without a filter, every known table except the excluded ones is returned.
    With a filter, only tables present in both ``all_tables`` and the filter
    are returned.  The exclusion list applies in both cases, so a filter
    can never re-include an excluded table.

    Args:
        all_tables: Every table name known to the database.
        table_filter: Optional subset of table names to restrict to.
        excluded: Table names that are never selected.

    Returns:
        Sorted list of table names.

    Raises:
        TypeError: If an argument is a bare string or holds non-string names.

    Example:
        >>> interesting_tables({"users", "posts", "schema_migrations"})
        ['posts', 'users']
        >>> interesting_tables({"users", "posts"}, {"users", "missing"})
        ['users']
    """
    known = _as_name_set(all_tables, "all_tables")
    denied = _as_name_set(excluded, "excluded")

    if table_filter is not None:
        known &= _as_name_set(table_filter, "table_filter")

    return sorted(known - denied)
