"""Backup data models.

Rows are plain insertion-ordered dicts mapping column name to a scalar
value.  Record files, the per-operation session, and import results are
modelled here.

Usage:
    from db_backupper.backup.models import ImportOutcome, ImportResult, RecordFile

    result = await orchestrator.import_archive("uploads/backup.tgz")
    if result.outcome is ImportOutcome.SUCCESS:
        print(f"Restored {len(result.tables)} tables")
"""

from datetime import date, datetime, time
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from db_backupper.errors import RollbackFailed

Scalar = str | int | float | bool | bytes | datetime | date | time | None
Row = dict[str, Scalar]


class RecordFile(BaseModel):
    """One table's serialized rows on disk."""

    table: str
    path: Path
    row_count: int = 0
    attachments: list[str] = Field(default_factory=list)  # root-relative paths


class ArchiveCommand(BaseModel):
    """Captured result of one external archiver invocation."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class BackupSession(BaseModel):
    """Transient state of a single export or import call."""

    archive_file: Path | None = None
    files_to_archive: list[str] = Field(default_factory=list)  # root-relative
    record_files: list[RecordFile] = Field(default_factory=list)

    def add_to_archive(self, relative_path: str) -> None:
        """Queue a root-relative path for the archive, ignoring duplicates."""
        if relative_path not in self.files_to_archive:
            self.files_to_archive.append(relative_path)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    EXPORTING = "exporting"
    ARCHIVED = "archived"
    SAFETY_BACKUP_TAKEN = "safety_backup_taken"
    REPLACING = "replacing"
    RESTORED = "restored"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"


class ImportOutcome(str, Enum):
    """Final outcome of an import."""

    SUCCESS = "success"
    FAILED_RESTORED_FROM_SAFETY = "failed_restored_from_safety"
    ROLLBACK_FAILED = "rollback_failed"


class ImportResult(BaseModel):
    """Result of ``BackupOrchestrator.import_archive()``.

    Attributes:
        outcome: Final outcome of the import.
        tables: Tables that were in scope for the import.
        safety_archive: Path of the safety backup taken before the import.
            Only kept on disk when the rollback failed.
        error: Message of the failure that triggered the rollback.
        rollback_error: Message of the rollback failure (fatal outcome only).
    """

    outcome: ImportOutcome
    tables: list[str] = Field(default_factory=list)
    safety_archive: str | None = None
    error: str | None = None
    rollback_error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is ImportOutcome.SUCCESS

    def raise_for_outcome(self) -> None:
        """Raise ``RollbackFailed`` if the database was left in an unknown state."""
        if self.outcome is ImportOutcome.ROLLBACK_FAILED:
            raise RollbackFailed(
                f"Import failed ({self.error}) and the rollback failed too "
                f"({self.rollback_error}). Safety archive: {self.safety_archive}",
                safety_archive=self.safety_archive,
            )
