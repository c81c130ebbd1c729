# ABOUTME: In-memory entity tables for the Novella store.
# ABOUTME: Keyed collections, secondary indexes, and monotonically increasing id counters.

from dataclasses import dataclass, field, replace

from novella.store.types import Bookmark, Chapter, Comment, Novel, Session, User


def normalize(value: str) -> str:
    """Lower-case and trim a string for uniqueness checks and lookups."""
    return value.strip().lower()


def bookmark_key(user_id: int, novel_id: int) -> str:
    """Composite key for the bookmark table, e.g. "3:12"."""
    return f"{user_id}:{novel_id}"


@dataclass
class EntityTables:
    """The complete table set guarded by the store lock.

    chapter_ids_by_novel and comment_ids_by_novel keep insertion order,
    which is the tie-breaker when chapters share a position or comments
    share a creation time. Counters hold the last id handed out; the next
    entity gets counter + 1.

    Not thread-safe on its own: every access goes through NovelStore.
    """

    users_by_id: dict[int, User] = field(default_factory=dict)
    users_by_email: dict[str, int] = field(default_factory=dict)
    users_by_username: dict[str, int] = field(default_factory=dict)
    novels_by_id: dict[int, Novel] = field(default_factory=dict)
    chapters_by_id: dict[int, Chapter] = field(default_factory=dict)
    chapter_ids_by_novel: dict[int, list[int]] = field(default_factory=dict)
    comments_by_id: dict[int, Comment] = field(default_factory=dict)
    comment_ids_by_novel: dict[int, list[int]] = field(default_factory=dict)
    bookmarks: dict[str, Bookmark] = field(default_factory=dict)
    sessions: dict[str, Session] = field(default_factory=dict)
    next_user_id: int = 0
    next_novel_id: int = 0
    next_chapter_id: int = 0
    next_comment_id: int = 0

    # --- Identifier allocation ---

    def allocate_user_id(self) -> int:
        self.next_user_id += 1
        return self.next_user_id

    def allocate_novel_id(self) -> int:
        self.next_novel_id += 1
        return self.next_novel_id

    def allocate_chapter_id(self) -> int:
        self.next_chapter_id += 1
        return self.next_chapter_id

    def allocate_comment_id(self) -> int:
        self.next_comment_id += 1
        return self.next_comment_id

    # --- Users ---

    def add_user(self, user: User) -> None:
        self.users_by_id[user.id] = user
        self.users_by_email[normalize(user.email)] = user.id
        self.users_by_username[normalize(user.username)] = user.id

    def user_by_email(self, email: str) -> User | None:
        user_id = self.users_by_email.get(normalize(email))
        return self.users_by_id.get(user_id) if user_id is not None else None

    # --- Chapters and comments ---

    def add_chapter(self, chapter: Chapter) -> None:
        self.chapters_by_id[chapter.id] = chapter
        self.chapter_ids_by_novel.setdefault(chapter.novel_id, []).append(chapter.id)

    def remove_chapter(self, chapter: Chapter) -> None:
        del self.chapters_by_id[chapter.id]
        ids = self.chapter_ids_by_novel.get(chapter.novel_id, [])
        if chapter.id in ids:
            ids.remove(chapter.id)

    def clear_bookmarks_for_chapter(self, chapter_id: int) -> None:
        """Narrow bookmarks pointing at a chapter back to novel level."""
        for key, bookmark in self.bookmarks.items():
            if bookmark.chapter_id == chapter_id:
                self.bookmarks[key] = replace(bookmark, chapter_id=None, chapter_position=None)

    def chapters_of(self, novel_id: int) -> list[Chapter]:
        """Chapters of a novel in insertion order."""
        return [
            self.chapters_by_id[cid]
            for cid in self.chapter_ids_by_novel.get(novel_id, [])
            if cid in self.chapters_by_id
        ]

    def chapter_in_novel(self, novel_id: int, chapter_id: int) -> Chapter | None:
        """Return the chapter only if it exists and belongs to novel_id."""
        chapter = self.chapters_by_id.get(chapter_id)
        if chapter is None or chapter.novel_id != novel_id:
            return None
        return chapter

    def add_comment(self, comment: Comment) -> None:
        self.comments_by_id[comment.id] = comment
        self.comment_ids_by_novel.setdefault(comment.novel_id, []).append(comment.id)

    def comments_of(self, novel_id: int) -> list[Comment]:
        """Comments of a novel in insertion order."""
        return [
            self.comments_by_id[cid]
            for cid in self.comment_ids_by_novel.get(novel_id, [])
            if cid in self.comments_by_id
        ]

    # --- Cascades ---

    def remove_novel(self, novel_id: int) -> None:
        """Delete a novel with its chapters, comments, and bookmarks."""
        self.novels_by_id.pop(novel_id, None)
        for chapter_id in self.chapter_ids_by_novel.pop(novel_id, []):
            self.chapters_by_id.pop(chapter_id, None)
        for comment_id in self.comment_ids_by_novel.pop(novel_id, []):
            self.comments_by_id.pop(comment_id, None)
        for key in [k for k, b in self.bookmarks.items() if b.novel_id == novel_id]:
            del self.bookmarks[key]

    def counts(self) -> dict[str, int]:
        """Row counts per table."""
        return {
            "users": len(self.users_by_id),
            "novels": len(self.novels_by_id),
            "chapters": len(self.chapters_by_id),
            "comments": len(self.comments_by_id),
            "bookmarks": len(self.bookmarks),
            "sessions": len(self.sessions),
        }
