"""Tests for record file serialization and live table operations."""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import UUID

import pytest

from db_backupper.backup.attachments import CallableAttachmentResolver
from db_backupper.backup.serializer import (
    TableSerializer,
    normalize_value,
    tables_in_manifest,
)
from db_backupper.errors import DatabaseError, MissingRecordFileError, SerializationError

from conftest import FakeDatabaseClient, sort_rows


@pytest.fixture
def serializer(tmp_path: Path) -> TableSerializer:
    return TableSerializer(tmp_path / "scratch")


# ------------------------------------------------------------------
# Value normalization
# ------------------------------------------------------------------


class TestNormalizeValue:

    @pytest.mark.parametrize(
        "value",
        [None, True, False, 0, -7, 2**40, 1.5, "", "text", b"\x00raw", time(8, 15),
         datetime(2024, 5, 1, 12, 30), date(2024, 5, 1)],
    )
    def test_scalars_pass_through(self, value):
        assert normalize_value(value) == value

    def test_uuid_becomes_string(self):
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert normalize_value(value) == "12345678-1234-5678-1234-567812345678"

    def test_decimal_becomes_string(self):
        assert normalize_value(Decimal("10.50")) == "10.50"

    def test_buffers_become_bytes(self):
        assert normalize_value(bytearray(b"\x01\x02")) == b"\x01\x02"
        assert normalize_value(memoryview(b"abc")) == b"abc"

    def test_driver_time_object_becomes_datetime(self):
        mysql_time = SimpleNamespace(year=2023, month=4, day=9, hour=10, minute=5, second=30)
        assert normalize_value(mysql_time) == datetime(2023, 4, 9, 10, 5, 30)

    def test_driver_zero_date_is_clamped(self):
        zero = SimpleNamespace(year=2023, month=0, day=0, hour=0, minute=0, second=0)
        assert normalize_value(zero) == datetime(2023, 1, 1, 0, 0, 0)

    @pytest.mark.parametrize("value", [{"a": 1}, [1, 2], object()])
    def test_unrepresentable_values_raise(self, value):
        with pytest.raises(SerializationError):
            normalize_value(value)


# ------------------------------------------------------------------
# Record files
# ------------------------------------------------------------------


class TestExportImport:

    def test_round_trip_preserves_rows(self, serializer):
        rows = [
            {"id": 1, "name": "Alice", "active": True, "score": 9.5,
             "created_at": datetime(2024, 1, 2, 3, 4, 5), "birthday": date(1990, 6, 1), "note": None},
            {"id": 2, "name": "2024-01-01", "active": False, "score": 0.0,
             "created_at": datetime(2024, 2, 3, 4, 5, 6, tzinfo=timezone.utc),
             "birthday": None, "note": "yes"},
        ]
        serializer.export_table("users", rows)
        restored = serializer.import_table("users")
        assert sort_rows(restored) == sort_rows(rows)

    def test_time_of_day_round_trips_typed(self, serializer):
        """A TIME column reads back as datetime.time, not as a string."""
        serializer.export_table("shifts", [{"id": 1, "starts_at": time(8, 15), "ends_at": time(17, 0, 30, 250)}])
        row = serializer.import_table("shifts")[0]
        assert isinstance(row["starts_at"], time)
        assert row["starts_at"] == time(8, 15)
        assert row["ends_at"] == time(17, 0, 30, 250)

    def test_time_is_tagged_in_record_file(self, serializer):
        record = serializer.export_table("shifts", [{"starts_at": time(8, 15)}])
        text = record.path.read_text()
        assert "!time" in text
        assert "08:15:00" in text

    def test_invalid_time_tag(self, serializer):
        serializer.scratch_dir.mkdir(parents=True)
        serializer.record_path("shifts").write_text("- starts_at: !time not-a-time\n")
        with pytest.raises(SerializationError, match="shifts"):
            serializer.import_table("shifts")

    def test_binary_round_trips(self, serializer):
        """bytea values are written as !!binary and read back as bytes."""
        payload = bytes(range(256))
        record = serializer.export_table("blobs", [{"id": 1, "data": payload}, {"id": 2, "data": b""}])
        assert "!!binary" in record.path.read_text()
        assert serializer.import_table("blobs") == [{"id": 1, "data": payload}, {"id": 2, "data": b""}]

    def test_string_that_looks_like_a_date_stays_a_string(self, serializer):
        serializer.export_table("t", [{"v": "2024-01-01"}, {"v": "true"}, {"v": "null"}])
        assert serializer.import_table("t") == [{"v": "2024-01-01"}, {"v": "true"}, {"v": "null"}]

    def test_column_order_preserved(self, serializer):
        serializer.export_table("t", [{"z": 1, "a": 2, "m": 3}])
        assert list(serializer.import_table("t")[0]) == ["z", "a", "m"]

    def test_file_named_after_table(self, serializer):
        record = serializer.export_table("posts", [{"id": 1}])
        assert record.path == serializer.scratch_dir / "posts.yml"
        assert record.path.is_file()
        assert record.row_count == 1

    def test_empty_table(self, serializer):
        record = serializer.export_table("empty", [])
        assert record.row_count == 0
        assert serializer.import_table("empty") == []

    def test_missing_record_file(self, serializer):
        with pytest.raises(MissingRecordFileError) as exc_info:
            serializer.import_table("ghosts")
        assert exc_info.value.table == "ghosts"

    def test_malformed_record_file(self, serializer):
        serializer.scratch_dir.mkdir(parents=True)
        serializer.record_path("bad").write_text("just: a mapping\n")
        with pytest.raises(SerializationError):
            serializer.import_table("bad")

    def test_unrepresentable_value_names_column(self, serializer):
        with pytest.raises(SerializationError, match="users.avatar"):
            serializer.export_table("users", [{"id": 1, "avatar": {"w": 64}}])


class TestAttachments:

    def test_resolver_called_for_suffixed_fields_only(self, tmp_path):
        calls = []

        def resolve(table, row, field):
            calls.append((table, row["id"], field))
            return f"public/{table}/{row['id']}/{row[field]}"

        serializer = TableSerializer(tmp_path, CallableAttachmentResolver(resolve))
        record = serializer.export_table(
            "users",
            [{"id": 1, "name": "a", "avatar_file_name": "me.png"},
             {"id": 2, "name": "b", "avatar_file_name": "you.png"}],
        )
        assert calls == [("users", 1, "avatar_file_name"), ("users", 2, "avatar_file_name")]
        assert record.attachments == ["public/users/1/me.png", "public/users/2/you.png"]

    def test_resolver_returning_none_is_not_a_failure(self, tmp_path):
        serializer = TableSerializer(tmp_path, CallableAttachmentResolver(lambda t, r, f: None))
        record = serializer.export_table("users", [{"id": 1, "avatar_file_name": None}])
        assert record.attachments == []
        assert record.row_count == 1

    def test_resolver_exception_becomes_serialization_error(self, tmp_path):
        def boom(table, row, field):
            raise LookupError("storage offline")

        serializer = TableSerializer(tmp_path, CallableAttachmentResolver(boom))
        with pytest.raises(SerializationError, match="storage offline"):
            serializer.export_table("users", [{"id": 1, "avatar_file_name": "x.png"}])

    def test_custom_suffix(self, tmp_path):
        seen = []
        resolver = CallableAttachmentResolver(lambda t, r, f: seen.append(f))
        serializer = TableSerializer(tmp_path, resolver, attachment_suffix="_path")
        serializer.export_table("docs", [{"id": 1, "pdf_path": "a.pdf", "avatar_file_name": "x"}])
        assert seen == ["pdf_path"]


class TestManifest:

    def test_tables_from_record_files_only(self):
        manifest = [
            "tmp/backup/users.yml",
            "tmp/backup/posts.yml",
            "public/system/users/avatar/1/original/me.png",
            "tmp/backup/nested/other.yml",
            "tmp/backup/readme.txt",
        ]
        assert tables_in_manifest(manifest, "tmp/backup") == ["posts", "users"]

    def test_leading_dot_slash(self):
        assert tables_in_manifest(["./tmp/backup/users.yml"], "tmp/backup") == ["users"]


# ------------------------------------------------------------------
# Live table operations
# ------------------------------------------------------------------


class TestLiveTables:

    async def test_clear_table(self, serializer):
        client = FakeDatabaseClient({"users": [{"id": 1}]})
        await serializer.clear_table(client, "users")
        assert client.tables["users"] == []

    async def test_insert_rows(self, serializer):
        client = FakeDatabaseClient({"users": []})
        await serializer.insert_rows(client, "users", [{"id": 1}, {"id": 2}])
        assert client.tables["users"] == [{"id": 1}, {"id": 2}]

    async def test_insert_failure_leaves_table_unchanged(self, serializer):
        client = FakeDatabaseClient({"users": [{"id": 9}]})
        client.fail_on.add("users")
        with pytest.raises(DatabaseError):
            await serializer.insert_rows(client, "users", [{"id": 1}])
        assert client.tables["users"] == [{"id": 9}]

    async def test_replace_table(self, serializer):
        client = FakeDatabaseClient({"users": [{"id": 9}]})
        await serializer.replace_table(client, "users", [{"id": 1}])
        assert client.tables["users"] == [{"id": 1}]

    async def test_driver_exceptions_become_database_error(self, serializer):
        client = AsyncMock()
        client.delete_all.side_effect = RuntimeError("connection reset")
        with pytest.raises(DatabaseError, match="connection reset"):
            await serializer.clear_table(client, "users")
