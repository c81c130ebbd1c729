# ABOUTME: Unit tests for converting tables to and from the snapshot document.
# ABOUTME: Validates field names, optional fields, legacy sessions, and malformed input.

from datetime import datetime, timezone

import pytest

from novella.store.errors import SnapshotFormatError
from novella.store.mapping import (
    comment_to_dict,
    dict_to_comment,
    document_to_tables,
    tables_to_document,
)
from novella.store.tables import EntityTables
from novella.store.types import Comment, Novel, NovelStatus, Session, User

_NOW = datetime(2024, 3, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)
_LOADED = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _tables() -> EntityTables:
    tables = EntityTables()
    user = User(1, "Alice", "Alice@Example.com", "salt", "hash", _NOW)
    tables.add_user(user)
    tables.novels_by_id[1] = Novel(
        1, 1, "Dune Roads", "Sand.", "sci-fi", NovelStatus.DRAFT, _NOW, _NOW
    )
    tables.sessions["tok"] = Session("tok", 1, _NOW)
    tables.next_user_id = 1
    tables.next_novel_id = 1
    return tables


class TestTablesToDocument:
    """Tests for tables_to_document."""

    def test_top_level_collections(self) -> None:
        """Every required collection and counter is present."""
        document = tables_to_document(EntityTables())
        assert set(document) >= {
            "users_by_id",
            "users_by_email",
            "users_by_username",
            "novels_by_id",
            "chapters_by_id",
            "chapter_ids_by_novel",
            "comments_by_id",
            "comment_ids_by_novel",
            "bookmarks",
            "sessions",
            "next_user_id",
            "next_novel_id",
            "next_chapter_id",
            "next_comment_id",
        }

    def test_indexes_use_normalized_keys(self) -> None:
        """Email and username indexes are keyed by normalized values."""
        document = tables_to_document(_tables())
        assert document["users_by_email"] == {"alice@example.com": 1}
        assert document["users_by_username"] == {"alice": 1}
        assert document["users_by_id"]["1"]["email"] == "Alice@Example.com"

    def test_sessions_map_token_to_user(self) -> None:
        """sessions maps token to user id; issue times are kept alongside."""
        document = tables_to_document(_tables())
        assert document["sessions"] == {"tok": 1}
        assert document["session_issued_at"] == {"tok": _NOW.isoformat()}

    def test_status_serialized_as_string(self) -> None:
        """Novel status is written as its plain value."""
        document = tables_to_document(_tables())
        assert document["novels_by_id"]["1"]["status"] == "draft"


class TestCommentMapping:
    """Tests for optional chapter_id on comments."""

    def test_novel_level_comment_omits_chapter(self) -> None:
        """A comment without a chapter has no chapter_id key."""
        row = comment_to_dict(Comment(1, 2, 3, "hi", _NOW))
        assert "chapter_id" not in row
        assert dict_to_comment(row).chapter_id is None

    def test_chapter_comment_keeps_chapter(self) -> None:
        """A chapter-scoped comment keeps its chapter_id."""
        row = comment_to_dict(Comment(1, 2, 3, "hi", _NOW, chapter_id=9))
        assert dict_to_comment(row).chapter_id == 9


class TestDocumentToTables:
    """Tests for document_to_tables."""

    def test_round_trip_is_exact(self) -> None:
        """Converting to a document and back yields equal tables."""
        tables = _tables()
        restored = document_to_tables(tables_to_document(tables), loaded_at=_LOADED)
        assert restored == tables

    def test_empty_document_is_empty_store(self) -> None:
        """An empty object loads as empty tables with zero counters."""
        assert document_to_tables({}, loaded_at=_LOADED) == EntityTables()

    def test_session_without_issue_time_uses_load_time(self) -> None:
        """Sessions from snapshots without session_issued_at are stamped at load."""
        document = tables_to_document(_tables())
        del document["session_issued_at"]
        restored = document_to_tables(document, loaded_at=_LOADED)
        assert restored.sessions["tok"].issued_at == _LOADED

    def test_rejects_non_object(self) -> None:
        """A JSON array is not a snapshot."""
        with pytest.raises(SnapshotFormatError):
            document_to_tables([], loaded_at=_LOADED)

    def test_rejects_bad_status(self) -> None:
        """An unknown novel status is a format error."""
        document = tables_to_document(_tables())
        document["novels_by_id"]["1"]["status"] = "archived"
        with pytest.raises(SnapshotFormatError):
            document_to_tables(document, loaded_at=_LOADED)

    def test_rejects_missing_field(self) -> None:
        """A user row without a username is a format error."""
        document = tables_to_document(_tables())
        del document["users_by_id"]["1"]["username"]
        with pytest.raises(SnapshotFormatError):
            document_to_tables(document, loaded_at=_LOADED)

    def test_rejects_wrong_section_type(self) -> None:
        """A collection that is not an object is a format error."""
        with pytest.raises(SnapshotFormatError):
            document_to_tables({"novels_by_id": [1, 2]}, loaded_at=_LOADED)

    def test_bookmark_keys_rebuilt_from_rows(self) -> None:
        """Bookmark keys come from each row, so a mislabeled key cannot duplicate a pair."""
        document = {
            "bookmarks": {
                "1:1": {"user_id": 1, "novel_id": 1, "updated_at": _NOW.isoformat()},
                "9:9": {"user_id": 1, "novel_id": 1, "updated_at": _LOADED.isoformat()},
                "7:3": {"user_id": 2, "novel_id": 5, "updated_at": _NOW.isoformat()},
            }
        }
        restored = document_to_tables(document, loaded_at=_LOADED)
        assert set(restored.bookmarks) == {"1:1", "2:5"}
        assert restored.bookmarks["1:1"].updated_at == _LOADED
