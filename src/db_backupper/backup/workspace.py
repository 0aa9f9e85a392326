"""Scratch directory and pending-deletion bookkeeping."""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


class WorkspaceManager:
    """Owns one scratch directory and a list of paths to delete on cleanup.

    The scratch directory is created on first use and reused until
    ``clean_up()`` runs.  Two orchestrators must not share a workspace.

    Args:
        scratch_path: Directory to use as scratch space.
    """

    def __init__(self, scratch_path: str | Path) -> None:
        self._scratch_path = Path(scratch_path)
        self._scratch_dir: Path | None = None
        self._pending: list[Path] = []

    @property
    def scratch_path(self) -> Path:
        return self._scratch_path

    @property
    def pending(self) -> list[Path]:
        return list(self._pending)

    def scratch_dir(self) -> Path:
        """Return the scratch directory, creating it on first use."""
        if self._scratch_dir is None:
            self._scratch_path.mkdir(parents=True, exist_ok=True)
            self._scratch_dir = self._scratch_path
        return self._scratch_dir

    def mark_for_deletion(self, path: str | Path) -> None:
        path = Path(path)
        if path not in self._pending:
            self._pending.append(path)

    def clean_up(self) -> list[Path]:
        """Remove the scratch directory and every pending path.

        Paths that are already gone are ignored.  Removal failures are
        logged and returned; the manager is reset either way.

        Returns:
            Paths that could not be removed.
        """
        logger.info("Cleaning up.")
        failed: list[Path] = []

        for path in [self._scratch_path, *self._pending]:
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not remove {path}: {e}")
                failed.append(path)

        self._scratch_dir = None
        self._pending = []
        return failed
