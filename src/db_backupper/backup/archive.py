"""Compressed archive creation and extraction via an external ``tar``.

Archives store paths relative to a single base directory (the application
root), so an archive extracted under any root with the same layout
reproduces the same files.

Every invocation goes through ``ArchiveBuilder.run()``, which captures the
exit code, stdout and stderr in an ``ArchiveCommand`` result.

Usage:
    from db_backupper.backup.archive import ArchiveBuilder

    builder = ArchiveBuilder()
    builder.create("/srv/app", ["tmp/backup/users.yml"], "/srv/app/tmp/backup.tgz")
    members = builder.extract("/srv/app/tmp/backup.tgz", "/srv/app")
"""

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path, PurePosixPath

from db_backupper.backup.models import ArchiveCommand
from db_backupper.errors import ArchiveError, PathError

logger = logging.getLogger(__name__)


def relative_to_base(base_dir: str | Path, path: str | Path) -> str:
    """Return ``path`` relative to ``base_dir`` as a POSIX string.

    Relative paths are interpreted against ``base_dir``.  Symlinks and
    ``..`` segments are resolved before the containment check.

    Raises:
        PathError: If the path resolves outside ``base_dir``.
    """
    base = Path(base_dir).resolve()
    candidate = (base / path).resolve()
    if candidate == base or not candidate.is_relative_to(base):
        raise PathError(f"Cannot add a path that is not under {base}: {path}")
    return candidate.relative_to(base).as_posix()


def _check_member(member: str) -> str:
    path = PurePosixPath(member.removeprefix("./"))
    if path.is_absolute() or ".." in path.parts:
        raise PathError(f"Archive member escapes the extraction directory: {member}")
    return path.as_posix()


class ArchiveBuilder:
    """Builds and extracts ``.tgz`` archives with an external ``tar``.

    Args:
        tar_command: Name or path of the tar executable.
        timeout: Optional timeout in seconds per tar invocation.  On expiry
            the process is killed and ``ArchiveError`` is raised.
    """

    def __init__(self, tar_command: str = "tar", timeout: float | None = None) -> None:
        self.tar_command = tar_command
        self.timeout = timeout

    def run(self, args: Sequence[str]) -> ArchiveCommand:
        """Run the archiver with ``args`` and capture its result."""
        cmd = [self.tar_command, *args]
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise ArchiveError(f"Archiver not found: {self.tar_command}") from e
        except subprocess.TimeoutExpired as e:
            raise ArchiveError(
                f"Archiver timed out after {self.timeout}s: {' '.join(cmd)}"
            ) from e

        return ArchiveCommand(
            args=cmd,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

    def create(
        self,
        base_dir: str | Path,
        relative_paths: Sequence[str | Path],
        destination: str | Path,
    ) -> Path:
        """Create a compressed archive of ``relative_paths`` under ``base_dir``.

        Args:
            base_dir: Directory the paths are relative to.
            relative_paths: Paths to include.  Each must resolve inside
                ``base_dir`` and exist.
            destination: Archive file to write.

        Returns:
            Absolute path of the created archive.

        Raises:
            PathError: If a path resolves outside ``base_dir``.
            ArchiveError: If there is nothing to archive, a path is missing,
                or tar exits non-zero.
        """
        if not relative_paths:
            raise ArchiveError("Nothing to archive: no paths were given")

        base = Path(base_dir).resolve()
        members: list[str] = []
        for path in relative_paths:
            relative = relative_to_base(base, path)
            if not (base / relative).exists():
                raise ArchiveError(f"File '{relative}' does not exist under {base}")
            if relative not in members:
                members.append(relative)

        dest = Path(destination).resolve()
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Creating archive {dest} ({len(members)} files)")

        result = self.run(["-czf", str(dest), "-C", str(base), "--", *members])
        if not result.ok:
            dest.unlink(missing_ok=True)
            raise ArchiveError(
                f"tar exited with status {result.returncode} creating {dest}: "
                f"{result.stderr.strip()}"
            )
        return dest

    def list_members(self, archive_path: str | Path) -> list[str]:
        """List the file members of an archive (directories excluded).

        Raises:
            ArchiveError: If the archive is missing or cannot be read.
            PathError: If a member would escape the extraction directory.
        """
        archive = Path(archive_path)
        if not archive.is_file():
            raise ArchiveError(f"File '{archive}' does not exist")

        result = self.run(["-tzf", str(archive)])
        if not result.ok:
            raise ArchiveError(
                f"tar exited with status {result.returncode} listing {archive}: "
                f"{result.stderr.strip()}"
            )

        members: list[str] = []
        for line in result.stdout.splitlines():
            if not line or line.endswith("/"):
                continue
            members.append(_check_member(line))
        return members

    def extract(self, archive_path: str | Path, destination_base_dir: str | Path) -> list[str]:
        """Extract an archive under ``destination_base_dir``.

        Returns:
            Member file paths, relative to ``destination_base_dir``.

        Raises:
            ArchiveError: If the archive is missing or tar exits non-zero.
            PathError: If a member would escape the destination directory.
        """
        members = self.list_members(archive_path)

        dest = Path(destination_base_dir)
        dest.mkdir(parents=True, exist_ok=True)
        logger.info(f"Extracting {archive_path} into {dest}")

        result = self.run(["-xzf", str(Path(archive_path).resolve()), "-C", str(dest)])
        if not result.ok:
            raise ArchiveError(
                f"tar exited with status {result.returncode} extracting {archive_path}: "
                f"{result.stderr.strip()}"
            )
        for member in members:
            logger.debug(f"Extracted {member}")
        return members
