"""TOML configuration loader for database profiles and backup settings."""

import os
import tomllib
from pathlib import Path

from pydantic import ValidationError

from db_backupper.config.models import BackupSettings, DatabaseConfig, DatabaseProfile

_TRUTHY = {"1", "true", "yes", "on"}


def load_db_config(config_path: Path | None = None) -> DatabaseConfig:
    """Load database profiles and backup settings from a TOML file.

    Args:
        config_path: Path to db.toml (default: ``Path.cwd() / "db.toml"``)

    Returns:
        DatabaseConfig with all profiles and the ``[backup]`` settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config format is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / "db.toml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"Database config not found: {config_path}\n"
            f"Create db.toml with a [profiles.<name>] section."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        # Parse profiles
        profiles = {}
        for name, profile_data in data.get("profiles", {}).items():
            profiles[name] = DatabaseProfile(**profile_data)

        backup = BackupSettings(**data.get("backup", {}))
    except (TypeError, ValidationError) as e:
        raise ValueError(f"Invalid configuration in {config_path}: {e}") from e

    return DatabaseConfig(profiles=profiles, backup=backup)


def verbose_from_env() -> bool:
    """Return True when ``VERBOSE`` or ``verbose`` is set to a truthy value."""
    value = os.environ.get("VERBOSE") or os.environ.get("verbose") or ""
    return value.strip().lower() in _TRUTHY
