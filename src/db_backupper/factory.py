"""Database client factory.

Resolves which database to back up or restore:

1. Direct URL: ``database_url`` argument or ``<PREFIX>DATABASE_URL`` env var.
2. Profile mode: ``profile_name`` argument or ``<PREFIX>DB_PROFILE`` env var,
   looked up in db.toml.

Usage:
    from db_backupper.factory import get_adapter

    adapter = await get_adapter(profile_name="local")
    adapter = await get_adapter(database_url="postgresql://localhost/app")
"""

import os
from pathlib import Path
from urllib.parse import quote

from db_backupper.adapters.base import DatabaseClient
from db_backupper.adapters.sql import AsyncSQLAdapter
from db_backupper.config.loader import load_db_config
from db_backupper.config.models import DatabaseProfile


class ProfileNotFoundError(Exception):
    """Raised when no database profile is configured."""

    pass


def get_active_profile_name(env_prefix: str = "") -> str:
    """Get active profile name from the ``<PREFIX>DB_PROFILE`` env var.

    Args:
        env_prefix: Prefix for environment variable lookup (e.g. ``APP_``).

    Returns:
        Profile name

    Raises:
        ProfileNotFoundError: If no profile is configured
    """
    env_profile = os.environ.get(f"{env_prefix}DB_PROFILE")
    if env_profile:
        return env_profile

    raise ProfileNotFoundError(
        "No database profile configured.\n"
        f"Run: {env_prefix}DB_PROFILE=<name> db-backupper export\n"
        "or pass --profile <name>."
    )


def get_active_profile(
    profile_name: str | None = None,
    env_prefix: str = "",
    config_path: Path | None = None,
) -> tuple[str, DatabaseProfile]:
    """Get active profile name and configuration.

    Returns:
        Tuple of (profile_name, DatabaseProfile)

    Raises:
        ProfileNotFoundError: If no profile configured
        KeyError: If profile not found in db.toml
    """
    if profile_name is None:
        profile_name = get_active_profile_name(env_prefix=env_prefix)
    config = load_db_config(config_path)

    if profile_name not in config.profiles:
        raise KeyError(
            f"Profile '{profile_name}' not found in db.toml.\n"
            f"Available profiles: {', '.join(config.profiles.keys())}"
        )

    return profile_name, config.profiles[profile_name]


def resolve_url(profile: DatabaseProfile) -> str:
    """Resolve profile URL with password substitution.

    Args:
        profile: Database profile from config

    Returns:
        Connection URL with ``[YOUR-PASSWORD]`` substituted (URL-quoted)
    """
    url = profile.url
    if profile.db_password and "[YOUR-PASSWORD]" in url:
        url = url.replace("[YOUR-PASSWORD]", quote(profile.db_password, safe=""))
    return url


async def get_adapter(
    profile_name: str | None = None,
    env_prefix: str = "",
    database_url: str | None = None,
    config_path: Path | None = None,
) -> DatabaseClient:
    """Create a database adapter.  A new adapter is created on every call.

    Args:
        profile_name: Profile name from db.toml.
        env_prefix: Prefix for ``DATABASE_URL`` / ``DB_PROFILE`` env vars.
        database_url: Direct connection URL; takes precedence over profiles.
        config_path: Path to db.toml (default: ``Path.cwd() / "db.toml"``).

    Returns:
        ``AsyncSQLAdapter`` instance

    Raises:
        ProfileNotFoundError: If no database configuration found
    """
    if database_url is None and profile_name is None:
        database_url = os.environ.get(f"{env_prefix}DATABASE_URL")

    if database_url:
        return AsyncSQLAdapter(database_url=database_url)

    _, profile = get_active_profile(profile_name, env_prefix, config_path)
    return AsyncSQLAdapter(database_url=resolve_url(profile))
