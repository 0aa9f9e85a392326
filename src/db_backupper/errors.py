"""Error hierarchy for backup and restore operations.

Every expected failure mode of the backup protocol maps to one of these
exceptions.  Driver and process errors are chained (``raise ... from e``)
so the original cause stays visible in tracebacks.

Usage:
    from db_backupper.errors import ExportError, RollbackFailed

    try:
        await orchestrator.export()
    except ExportError as e:
        print(f"Backup failed: {e}")
"""


class BackupperError(RuntimeError):
    """Base exception for all backup/restore failures."""


class SerializationError(BackupperError):
    """Raised when a table's rows cannot be written to or read from a record file."""


class MissingRecordFileError(SerializationError):
    """Raised when an expected ``<table>.yml`` record file is absent."""

    def __init__(self, table: str, path: str) -> None:
        super().__init__(f"Record file for table '{table}' does not exist: {path}")
        self.table = table
        self.path = path


class DatabaseError(BackupperError):
    """Raised when the database driver fails during a read, delete, or insert."""


class ArchiveError(BackupperError):
    """Raised when the archiving process fails or the archive is unusable."""


class PathError(ArchiveError):
    """Raised when a path would escape the archive's base directory."""


class ExportError(BackupperError):
    """Raised when an export fails; no archive is produced."""


class SafetyBackupFailed(BackupperError):
    """Raised when the pre-import safety backup cannot be taken.

    The import never touches live data when this is raised.
    """


class TableSetMismatch(BackupperError):
    """Raised when an archive's tables differ from the tables being restored."""

    def __init__(self, expected: list[str], found: list[str]) -> None:
        missing = sorted(set(expected) - set(found))
        extra = sorted(set(found) - set(expected))
        parts = []
        if missing:
            parts.append(f"missing: {', '.join(missing)}")
        if extra:
            parts.append(f"unexpected: {', '.join(extra)}")
        super().__init__(f"Archive table set does not match ({'; '.join(parts)})")
        self.expected = list(expected)
        self.found = list(found)


class RollbackFailed(BackupperError):
    """Raised when restoring the safety backup after a failed import fails.

    The database may be in neither the old nor the new state.  This must
    be reported to an operator.
    """

    def __init__(self, message: str, safety_archive: str | None = None) -> None:
        super().__init__(message)
        self.safety_archive = safety_archive


__all__ = [
    "BackupperError",
    "SerializationError",
    "MissingRecordFileError",
    "DatabaseError",
    "ArchiveError",
    "PathError",
    "ExportError",
    "SafetyBackupFailed",
    "TableSetMismatch",
    "RollbackFailed",
]
