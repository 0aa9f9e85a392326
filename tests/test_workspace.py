"""Tests for WorkspaceManager."""

from pathlib import Path
from unittest.mock import patch

from db_backupper.backup.workspace import WorkspaceManager


class TestScratchDir:

    def test_created_lazily(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "tmp" / "backup")
        assert not ws.scratch_path.exists()
        scratch = ws.scratch_dir()
        assert scratch.is_dir()
        assert ws.scratch_dir() == scratch

    def test_recreated_after_cleanup(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "scratch")
        ws.scratch_dir()
        ws.clean_up()
        assert not ws.scratch_path.exists()
        assert ws.scratch_dir().is_dir()


class TestCleanUp:

    def test_removes_scratch_and_pending(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "scratch")
        (ws.scratch_dir() / "users.yml").write_text("[]")
        extra_file = tmp_path / "incoming.tgz"
        extra_file.write_bytes(b"x")
        extra_dir = tmp_path / "extracted"
        (extra_dir / "nested").mkdir(parents=True)

        ws.mark_for_deletion(extra_file)
        ws.mark_for_deletion(extra_dir)
        assert ws.clean_up() == []

        assert not ws.scratch_path.exists()
        assert not extra_file.exists()
        assert not extra_dir.exists()
        assert ws.pending == []

    def test_already_gone_is_fine(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "never-created")
        ws.mark_for_deletion(tmp_path / "ghost.txt")
        assert ws.clean_up() == []

    def test_idempotent(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "scratch")
        ws.scratch_dir()
        ws.clean_up()
        assert ws.clean_up() == []

    def test_mark_deduplicates(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "scratch")
        ws.mark_for_deletion(tmp_path / "a")
        ws.mark_for_deletion(str(tmp_path / "a"))
        assert ws.pending == [tmp_path / "a"]

    def test_failure_is_reported_and_state_reset(self, tmp_path):
        ws = WorkspaceManager(tmp_path / "scratch")
        ws.scratch_dir()
        stuck = tmp_path / "stuck.txt"
        stuck.write_text("x")
        ws.mark_for_deletion(stuck)

        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            failed = ws.clean_up()

        assert failed == [stuck]
        assert stuck.exists()
        assert ws.pending == []
