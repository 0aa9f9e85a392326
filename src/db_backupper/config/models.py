"""Pydantic models for database and backup configuration."""

from pathlib import PurePosixPath

from pydantic import BaseModel, Field, field_validator, model_validator

# Safety archives and incoming archive copies live here (root-relative)
LOCAL_ARCHIVE_DIR = "tmp"


def _contains(parent: PurePosixPath, child: PurePosixPath) -> bool:
    return parent == child or parent in child.parents


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Database connection profile from db.toml."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution


class BackupSettings(BaseModel):
    """``[backup]`` section of db.toml.

    Relative paths are resolved against ``root_dir``.
    """

    root_dir: str = "."
    scratch_dir: str = "tmp/backup"
    archive_file: str = "tmp/backup.tgz"
    exclude_tables: list[str] = Field(default_factory=list)  # added to the built-in deny-list
    attachment_suffix: str = "_file_name"
    attachment_template: str | None = None  # None disables attachment archiving
    tar_command: str = "tar"
    archive_timeout: float | None = None  # seconds per tar invocation
    verbose: bool = False

    @field_validator("scratch_dir", "archive_file")
    @classmethod
    def _must_be_relative(cls, value: str) -> str:
        if value.startswith("/") or ".." in value.split("/"):
            raise ValueError(f"must be a path inside root_dir, got '{value}'")
        return value

    @field_validator("attachment_suffix")
    @classmethod
    def _suffix_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("attachment_suffix must not be empty")
        return value

    @model_validator(mode="after")
    def _scratch_dir_is_disposable(self) -> "BackupSettings":
        # The scratch dir is deleted wholesale after every operation
        scratch = PurePosixPath(self.scratch_dir)
        if _contains(scratch, PurePosixPath(LOCAL_ARCHIVE_DIR)):
            raise ValueError(
                f"scratch_dir '{self.scratch_dir}' must not contain '{LOCAL_ARCHIVE_DIR}/', "
                f"where safety archives are kept"
            )
        if _contains(scratch, PurePosixPath(self.archive_file)):
            raise ValueError(
                f"archive_file '{self.archive_file}' must not be inside "
                f"scratch_dir '{self.scratch_dir}'"
            )
        return self


class DatabaseConfig(BaseModel):
    """Complete configuration from db.toml."""

    profiles: dict[str, DatabaseProfile] = Field(default_factory=dict)
    backup: BackupSettings = Field(default_factory=BackupSettings)
