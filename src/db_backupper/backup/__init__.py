"""Full-database backup and restore with rollback.

Usage:
    from db_backupper.backup import BackupOrchestrator, ImportOutcome
    from db_backupper.backup import ArchiveBuilder, TableSerializer, interesting_tables
"""

from db_backupper.backup.archive import ArchiveBuilder
from db_backupper.backup.attachments import (
    AttachmentResolver,
    CallableAttachmentResolver,
    NullAttachmentResolver,
    TemplateAttachmentResolver,
)
from db_backupper.backup.catalog import DEFAULT_EXCLUDED_TABLES, interesting_tables
from db_backupper.backup.models import (
    BackupSession,
    ImportOutcome,
    ImportResult,
    OrchestratorState,
    RecordFile,
)
from db_backupper.backup.orchestrator import BackupOrchestrator
from db_backupper.backup.serializer import TableSerializer
from db_backupper.backup.workspace import WorkspaceManager

__all__ = [
    "ArchiveBuilder",
    "AttachmentResolver",
    "CallableAttachmentResolver",
    "NullAttachmentResolver",
    "TemplateAttachmentResolver",
    "DEFAULT_EXCLUDED_TABLES",
    "interesting_tables",
    "BackupSession",
    "ImportOutcome",
    "ImportResult",
    "OrchestratorState",
    "RecordFile",
    "BackupOrchestrator",
    "TableSerializer",
    "WorkspaceManager",
]
