"""db-backupper: full-database backup and restore with automatic rollback.

Exports a configurable set of tables to a portable ``.tgz`` archive of
per-table YAML record files, and restores such an archive over live data,
falling back to a safety backup when the restore fails.

Usage:
    from db_backupper import AsyncSQLAdapter, BackupOrchestrator, ImportOutcome

    adapter = AsyncSQLAdapter("postgresql://localhost/app")
    orchestrator = BackupOrchestrator(adapter, root_dir="/srv/app")
    archive = await orchestrator.export()
    result = await orchestrator.import_archive(archive)
"""

__version__ = "0.1.0"

# Adapters
from db_backupper.adapters.base import DatabaseClient
from db_backupper.adapters.sql import AsyncSQLAdapter

# Config
from db_backupper.config.loader import load_db_config
from db_backupper.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

# Factory
from db_backupper.factory import ProfileNotFoundError, get_adapter, resolve_url

# Backup
from db_backupper.backup.archive import ArchiveBuilder
from db_backupper.backup.attachments import (
    AttachmentResolver,
    CallableAttachmentResolver,
    NullAttachmentResolver,
    TemplateAttachmentResolver,
)
from db_backupper.backup.catalog import interesting_tables
from db_backupper.backup.models import ImportOutcome, ImportResult
from db_backupper.backup.orchestrator import BackupOrchestrator
from db_backupper.backup.serializer import TableSerializer
from db_backupper.backup.workspace import WorkspaceManager

# Errors
from db_backupper.errors import (
    ArchiveError,
    BackupperError,
    DatabaseError,
    ExportError,
    MissingRecordFileError,
    PathError,
    RollbackFailed,
    SafetyBackupFailed,
    SerializationError,
    TableSetMismatch,
)

__all__ = [
    # Adapters
    "DatabaseClient",
    "AsyncSQLAdapter",
    # Config
    "load_db_config",
    "BackupSettings",
    "DatabaseConfig",
    "DatabaseProfile",
    # Factory
    "get_adapter",
    "ProfileNotFoundError",
    "resolve_url",
    # Backup
    "ArchiveBuilder",
    "AttachmentResolver",
    "CallableAttachmentResolver",
    "NullAttachmentResolver",
    "TemplateAttachmentResolver",
    "interesting_tables",
    "ImportOutcome",
    "ImportResult",
    "BackupOrchestrator",
    "TableSerializer",
    "WorkspaceManager",
    # Errors
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
