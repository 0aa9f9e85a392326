"""Table <-> record file serialization.

Each table is stored as a YAML list of mappings (column -> value) in
``<scratch_dir>/<table>.yml``.  YAML keeps timestamps, dates, booleans,
nulls and binary values typed, and times of day are tagged ``!time``, so a
record file read back yields the same row values that were written.

Driver-specific values are normalized before writing: UUIDs and decimals
become strings, driver time objects become ``datetime``.  Values that have
no portable representation raise ``SerializationError`` instead of being
dropped.

Usage:
    from db_backupper.backup.serializer import TableSerializer

    serializer = TableSerializer(scratch_dir)
    record = serializer.export_table("users", rows)
    rows = serializer.import_table("users")
    await serializer.replace_table(client, "users", rows)
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path, PurePosixPath
from typing import Any
from uuid import UUID

import yaml

from db_backupper.adapters.base import DatabaseClient
from db_backupper.backup.attachments import (
    DEFAULT_ATTACHMENT_SUFFIX,
    AttachmentResolver,
    NullAttachmentResolver,
)
from db_backupper.backup.models import RecordFile, Row
from db_backupper.errors import (
    DatabaseError,
    MissingRecordFileError,
    SerializationError,
)

logger = logging.getLogger(__name__)

RECORD_EXTENSION = ".yml"

_DRIVER_TIME_FIELDS = ("year", "month", "day", "hour", "minute", "second")

TIME_TAG = "!time"


class RecordDumper(yaml.SafeDumper):
    """SafeDumper that also writes ``datetime.time`` as a ``!time`` scalar."""


class RecordLoader(yaml.SafeLoader):
    """SafeLoader that reads ``!time`` scalars back as ``datetime.time``."""


def _represent_time(dumper: yaml.SafeDumper, value: time) -> yaml.ScalarNode:
    return dumper.represent_scalar(TIME_TAG, value.isoformat())


def _construct_time(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> time:
    raw = loader.construct_scalar(node)
    try:
        return time.fromisoformat(raw)
    except ValueError as e:
        raise yaml.constructor.ConstructorError(
            None, None, f"invalid time value {raw!r}", node.start_mark
        ) from e


RecordDumper.add_representer(time, _represent_time)
RecordLoader.add_constructor(TIME_TAG, _construct_time)


def _datetime_from_driver_time(value: Any) -> datetime:
    """Rebuild a driver time object (e.g. MySQL zero dates) as a ``datetime``.

    Month and day are clamped to at least 1 so zero dates stay representable.
    """
    return datetime(
        int(value.year),
        max(1, int(value.month)),
        max(1, int(value.day)),
        int(value.hour),
        int(value.minute),
        int(value.second),
    )


def normalize_value(value: Any) -> Any:
    """Convert a database value into a portable scalar.

    Raises:
        SerializationError: If the value has no portable representation.
    """
    if value is None or isinstance(value, (bool, int, float, str, bytes, datetime, date, time)):
        return value
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if all(hasattr(value, attr) for attr in _DRIVER_TIME_FIELDS):
        try:
            return _datetime_from_driver_time(value)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Invalid time value {value!r}: {e}") from e
    raise SerializationError(
        f"Cannot serialize value of type {type(value).__name__}: {value!r}"
    )


def tables_in_manifest(manifest: Iterable[str], scratch_prefix: str) -> list[str]:
    """Extract table names from archive members that are record files.

    Args:
        manifest: Root-relative archive member paths.
        scratch_prefix: Root-relative scratch directory (e.g. ``tmp/backup``).

    Returns:
        Sorted table names whose ``<table>.yml`` lives directly in the
        scratch directory.
    """
    prefix = PurePosixPath(scratch_prefix)
    tables: set[str] = set()
    for member in manifest:
        path = PurePosixPath(member.removeprefix("./"))
        if path.parent == prefix and path.suffix == RECORD_EXTENSION:
            tables.add(path.stem)
    return sorted(tables)


class TableSerializer:
    """Writes and reads per-table record files, and bulk-replaces table rows.

    Args:
        scratch_dir: Directory holding the ``<table>.yml`` files.
        resolver: Strategy used for attachment fields.
        attachment_suffix: Field-name suffix marking attachment columns.
    """

    def __init__(
        self,
        scratch_dir: str | Path,
        resolver: AttachmentResolver | None = None,
        attachment_suffix: str = DEFAULT_ATTACHMENT_SUFFIX,
    ) -> None:
        self.scratch_dir = Path(scratch_dir)
        self.resolver: AttachmentResolver = resolver or NullAttachmentResolver()
        self.attachment_suffix = attachment_suffix

    def record_path(self, table_name: str) -> Path:
        return self.scratch_dir / f"{table_name}{RECORD_EXTENSION}"

    # ------------------------------------------------------------------
    # Record files
    # ------------------------------------------------------------------

    def export_table(self, table_name: str, rows: Iterable[dict[str, Any]]) -> RecordFile:
        """Write a table's rows to its record file.

        Args:
            table_name: Table the rows belong to.
            rows: Row dicts as returned by the database client.

        Returns:
            ``RecordFile`` with the file path, row count and any attachment
            paths produced by the resolver.

        Raises:
            SerializationError: If a value cannot be represented or the
                attachment resolver raises.
        """
        records: list[Row] = []
        attachments: list[str] = []

        for row in rows:
            record: Row = {}
            for column, value in row.items():
                try:
                    record[column] = normalize_value(value)
                except SerializationError as e:
                    raise SerializationError(f"{table_name}.{column}: {e}") from e

            for column in record:
                if not column.endswith(self.attachment_suffix):
                    continue
                try:
                    extra = self.resolver.resolve(table_name, record, column)
                except Exception as e:
                    raise SerializationError(
                        f"Attachment resolver failed for {table_name}.{column}: {e}"
                    ) from e
                if extra:
                    extra_path = Path(extra).as_posix()
                    logger.debug(f"Attachment for {table_name}.{column}: {extra_path}")
                    if extra_path not in attachments:
                        attachments.append(extra_path)

            records.append(record)

        path = self.record_path(table_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "w", encoding="utf-8") as f:
                yaml.dump(records, f, Dumper=RecordDumper, sort_keys=False, allow_unicode=True)
        except yaml.YAMLError as e:
            raise SerializationError(f"Cannot write record file for '{table_name}': {e}") from e

        return RecordFile(
            table=table_name,
            path=path,
            row_count=len(records),
            attachments=attachments,
        )

    def import_table(self, table_name: str) -> list[Row]:
        """Read a table's rows back from its record file.

        Raises:
            MissingRecordFileError: If the record file does not exist.
            SerializationError: If the file is not a YAML list of mappings.
        """
        path = self.record_path(table_name)
        if not path.is_file():
            raise MissingRecordFileError(table_name, str(path))

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.load(f, Loader=RecordLoader)
        except yaml.YAMLError as e:
            raise SerializationError(f"Invalid record file for '{table_name}': {e}") from e

        if data is None:
            return []
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise SerializationError(
                f"Record file for '{table_name}' must contain a list of rows"
            )
        return data

    # ------------------------------------------------------------------
    # Live table operations
    # ------------------------------------------------------------------

    async def clear_table(self, client: DatabaseClient, table_name: str) -> None:
        """Delete every row of a live table."""
        logger.info(f"Clearing {table_name}...")
        try:
            await client.delete_all(table_name)
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to clear '{table_name}': {e}") from e

    async def insert_rows(
        self, client: DatabaseClient, table_name: str, rows: list[Row]
    ) -> None:
        """Insert rows into a live table inside one transaction."""
        logger.info(f"Loading {table_name} ({len(rows)} rows)...")
        try:
            await client.insert_many(table_name, rows)
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to insert into '{table_name}': {e}") from e

    async def replace_table(
        self, client: DatabaseClient, table_name: str, rows: list[Row]
    ) -> None:
        """Clear a live table and insert rows, all in one transaction."""
        logger.info(f"Replacing {table_name} ({len(rows)} rows)...")
        try:
            await client.replace_all(table_name, rows)
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to replace '{table_name}': {e}") from e
