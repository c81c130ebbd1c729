# ABOUTME: Unit tests for snapshot file loading and atomic writing.
# ABOUTME: Validates missing files, malformed files, permissions, and write failures.

import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from novella.store.errors import PersistenceError, SnapshotFormatError
from novella.store.snapshot import load_snapshot, write_snapshot
from novella.store.tables import EntityTables


class TestLoadSnapshot:
    """Tests for load_snapshot."""

    def test_missing_file_returns_none(self, tmp_path: Path) -> None:
        """A missing snapshot is not an error."""
        assert load_snapshot(tmp_path / "absent.json") is None

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """A file that is not JSON is a format error."""
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SnapshotFormatError):
            load_snapshot(path)

    def test_non_utf8_file_raises(self, tmp_path: Path) -> None:
        """Bytes that are not UTF-8 are a format error, not a decode crash."""
        path = tmp_path / "binary.json"
        path.write_bytes(b"\xff\xfe{not utf8")
        with pytest.raises(SnapshotFormatError, match="UTF-8"):
            load_snapshot(path)

    def test_loads_written_tables(self, tmp_path: Path) -> None:
        """A written snapshot loads back with the same counters."""
        path = tmp_path / "db.json"
        tables = EntityTables()
        tables.next_novel_id = 41
        write_snapshot(path, tables)

        restored = load_snapshot(path)
        assert restored is not None
        assert restored.next_novel_id == 41


class TestWriteSnapshot:
    """Tests for write_snapshot."""

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        """Missing parent directories are created."""
        path = tmp_path / "a" / "b" / "db.json"
        write_snapshot(path, EntityTables())
        assert path.exists()

    def test_returns_byte_count(self, tmp_path: Path) -> None:
        """The return value is the size of the file written."""
        path = tmp_path / "db.json"
        size = write_snapshot(path, EntityTables())
        assert size == path.stat().st_size

    def test_writes_json_document(self, tmp_path: Path) -> None:
        """The file is a JSON object with the counter fields."""
        path = tmp_path / "db.json"
        write_snapshot(path, EntityTables())
        document = json.loads(path.read_text())
        assert document["next_user_id"] == 0

    def test_file_is_private(self, tmp_path: Path) -> None:
        """The snapshot is readable only by its owner."""
        path = tmp_path / "db.json"
        write_snapshot(path, EntityTables())
        assert path.stat().st_mode & 0o077 == 0

    def test_overwrites_previous_snapshot(self, tmp_path: Path) -> None:
        """Each write replaces the whole file."""
        path = tmp_path / "db.json"
        tables = EntityTables()
        write_snapshot(path, tables)
        tables.next_comment_id = 9
        write_snapshot(path, tables)
        assert json.loads(path.read_text())["next_comment_id"] == 9

    def test_failed_rename_keeps_previous_file(self, tmp_path: Path) -> None:
        """If the final rename fails, the old snapshot is intact and no temp file remains."""
        path = tmp_path / "db.json"
        write_snapshot(path, EntityTables())
        before = path.read_text()

        tables = EntityTables()
        tables.next_user_id = 5
        with patch("novella.store.snapshot.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceError):
                write_snapshot(path, tables)

        assert path.read_text() == before
        assert os.listdir(tmp_path) == ["db.json"]
