"""Configuration management: profiles, backup settings, and TOML loading.

Usage:
    >>> from db_backupper.config import load_db_config, BackupSettings, DatabaseConfig
"""

from db_backupper.config.loader import load_db_config, verbose_from_env
from db_backupper.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

__all__ = [
    "load_db_config",
    "verbose_from_env",
    "BackupSettings",
    "DatabaseConfig",
    "DatabaseProfile",
]
