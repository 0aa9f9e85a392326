"""Database adapters package.

Provides the ``DatabaseClient`` Protocol and the SQLAlchemy-based
``AsyncSQLAdapter`` implementation.

Usage:
    from db_backupper.adapters import DatabaseClient, AsyncSQLAdapter
"""

from db_backupper.adapters.base import DatabaseClient
from db_backupper.adapters.sql import AsyncSQLAdapter

__all__ = [
    "DatabaseClient",
    "AsyncSQLAdapter",
]
