# ABOUTME: Unit tests for reading-position bookmarks on NovelStore.
# ABOUTME: Validates upsert semantics, position snapshots, and visibility filtering.

import pytest

from novella.store import (
    AuthError,
    ForbiddenError,
    Novel,
    NotFoundError,
    NovelStore,
    User,
)
from tests.conftest import FakeClock


@pytest.fixture
def novel(store: NovelStore, alice: tuple[User, str]) -> Novel:
    return store.create_novel(alice[0].id, "Salt Roads", status="published")


class TestUpsertBookmark:
    """Tests for NovelStore.upsert_bookmark."""

    def test_novel_level(self, store: NovelStore, bob: tuple[User, str], novel: Novel) -> None:
        """A bookmark without a chapter has no position."""
        bookmark = store.upsert_bookmark(novel.id, bob[0].id)
        assert bookmark.novel_id == novel.id
        assert bookmark.chapter_id is None
        assert bookmark.chapter_position is None

    def test_copies_chapter_position(
        self, store: NovelStore, alice: tuple[User, str], bob: tuple[User, str], novel: Novel
    ) -> None:
        """The chapter position is captured at bookmark time, not tracked live."""
        chapter = store.create_chapter(novel.id, alice[0].id, "One", position=4)
        store.upsert_bookmark(novel.id, bob[0].id, chapter.id)
        store.update_chapter(novel.id, chapter.id, alice[0].id, position=9)
        [bookmark] = store.list_bookmarks(bob[0].id)
        assert bookmark.chapter_position == 4

    def test_replaces_existing(
        self, store: NovelStore, alice: tuple[User, str], bob: tuple[User, str], novel: Novel
    ) -> None:
        """One bookmark per user and novel; a second upsert replaces the first."""
        one = store.create_chapter(novel.id, alice[0].id, "One")
        two = store.create_chapter(novel.id, alice[0].id, "Two")
        store.upsert_bookmark(novel.id, bob[0].id, one.id)
        store.upsert_bookmark(novel.id, bob[0].id, two.id)
        bookmarks = store.list_bookmarks(bob[0].id)
        assert [b.chapter_id for b in bookmarks] == [two.id]
        assert store.stats()["bookmarks"] == 1

    def test_requires_authentication(self, store: NovelStore, novel: Novel) -> None:
        """Anonymous requesters cannot bookmark."""
        with pytest.raises(AuthError):
            store.upsert_bookmark(novel.id, None)

    def test_draft_forbidden(
        self, store: NovelStore, alice: tuple[User, str], bob: tuple[User, str]
    ) -> None:
        """Only the author may bookmark a draft."""
        draft = store.create_novel(alice[0].id, "Draft")
        with pytest.raises(ForbiddenError):
            store.upsert_bookmark(draft.id, bob[0].id)

    def test_chapter_must_belong_to_novel(
        self, store: NovelStore, bob: tuple[User, str], novel: Novel
    ) -> None:
        """An unknown chapter is not found."""
        with pytest.raises(NotFoundError):
            store.upsert_bookmark(novel.id, bob[0].id, 404)


class TestListBookmarks:
    """Tests for NovelStore.list_bookmarks."""

    def test_only_own_bookmarks_newest_first(
        self,
        store: NovelStore,
        alice: tuple[User, str],
        bob: tuple[User, str],
        novel: Novel,
        clock: FakeClock,
    ) -> None:
        """Each user sees their own bookmarks, most recently updated first."""
        other = store.create_novel(alice[0].id, "Other", status="published")
        store.upsert_bookmark(novel.id, bob[0].id)
        clock.advance(minutes=5)
        store.upsert_bookmark(other.id, bob[0].id)
        store.upsert_bookmark(novel.id, alice[0].id)

        assert [b.novel_id for b in store.list_bookmarks(bob[0].id)] == [other.id, novel.id]
        assert [b.novel_id for b in store.list_bookmarks(alice[0].id)] == [novel.id]

    def test_hides_unpublished_novels(
        self, store: NovelStore, alice: tuple[User, str], bob: tuple[User, str], novel: Novel
    ) -> None:
        """A novel moved back to draft drops out of other readers' bookmarks."""
        store.upsert_bookmark(novel.id, bob[0].id)
        store.update_novel(novel.id, alice[0].id, status="draft")
        assert store.list_bookmarks(bob[0].id) == []

    def test_deleted_novel_removes_bookmarks(
        self, store: NovelStore, alice: tuple[User, str], bob: tuple[User, str], novel: Novel
    ) -> None:
        """Deleting a novel deletes bookmarks on it."""
        store.upsert_bookmark(novel.id, bob[0].id)
        store.delete_novel(novel.id, alice[0].id)
        assert store.list_bookmarks(bob[0].id) == []
        assert store.stats()["bookmarks"] == 0

    def test_requires_authentication(self, store: NovelStore) -> None:
        """Anonymous requesters have no bookmarks to list."""
        with pytest.raises(AuthError):
            store.list_bookmarks(None)
