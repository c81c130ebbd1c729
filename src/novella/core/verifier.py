# ABOUTME: Referential-integrity verification for a Novella table set.
# ABOUTME: Finds orphaned rows, dangling references, stale indexes, and lagging id counters.

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from novella.store.tables import EntityTables


@dataclass
class IntegrityIssue:
    """One problem found in the tables."""

    kind: str
    key: str
    detail: str


@dataclass
class IntegrityReport:
    """Aggregated results from a verification run."""

    ok: int = 0
    issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    def add(self, kind: str, key: object, detail: str) -> None:
        self.issues.append(IntegrityIssue(kind=kind, key=str(key), detail=detail))


def _check_users(tables: "EntityTables", report: IntegrityReport) -> None:
    for index_name, index in (
        ("users_by_email", tables.users_by_email),
        ("users_by_username", tables.users_by_username),
    ):
        for name, user_id in index.items():
            if user_id not in tables.users_by_id:
                report.add(
                    "dangling_user_index", name, f"{index_name} points at missing user {user_id}"
                )
    report.ok += len(tables.users_by_id)


def _check_chapters(tables: "EntityTables", report: IntegrityReport) -> None:
    for chapter in tables.chapters_by_id.values():
        if chapter.novel_id not in tables.novels_by_id:
            report.add("orphan_chapter", chapter.id, f"novel {chapter.novel_id} is missing")
        elif chapter.id not in tables.chapter_ids_by_novel.get(chapter.novel_id, []):
            report.add(
                "unindexed_chapter", chapter.id, f"not listed under novel {chapter.novel_id}"
            )
        else:
            report.ok += 1

    for novel_id, chapter_ids in tables.chapter_ids_by_novel.items():
        for chapter_id in chapter_ids:
            chapter = tables.chapters_by_id.get(chapter_id)
            if chapter is None:
                report.add(
                    "stale_chapter_index", chapter_id, f"listed under novel {novel_id} but missing"
                )
            elif chapter.novel_id != novel_id:
                report.add(
                    "stale_chapter_index",
                    chapter_id,
                    f"listed under novel {novel_id} but belongs to novel {chapter.novel_id}",
                )


def _check_comments(tables: "EntityTables", report: IntegrityReport) -> None:
    for comment in tables.comments_by_id.values():
        if comment.novel_id not in tables.novels_by_id:
            report.add("orphan_comment", comment.id, f"novel {comment.novel_id} is missing")
            continue
        # A comment may outlive its chapter; it must never point into another novel.
        chapter = tables.chapters_by_id.get(comment.chapter_id) if comment.chapter_id else None
        if chapter is not None and chapter.novel_id != comment.novel_id:
            report.add(
                "foreign_comment_chapter",
                comment.id,
                f"chapter {chapter.id} belongs to novel {chapter.novel_id}, not {comment.novel_id}",
            )
        elif comment.id not in tables.comment_ids_by_novel.get(comment.novel_id, []):
            report.add(
                "unindexed_comment", comment.id, f"not listed under novel {comment.novel_id}"
            )
        else:
            report.ok += 1


def _check_bookmarks(tables: "EntityTables", report: IntegrityReport) -> None:
    for key, bookmark in tables.bookmarks.items():
        if bookmark.user_id not in tables.users_by_id:
            report.add("dangling_bookmark", key, f"user {bookmark.user_id} is missing")
        elif bookmark.novel_id not in tables.novels_by_id:
            report.add("dangling_bookmark", key, f"novel {bookmark.novel_id} is missing")
        elif bookmark.chapter_id is not None and (
            tables.chapter_in_novel(bookmark.novel_id, bookmark.chapter_id) is None
        ):
            report.add(
                "dangling_bookmark",
                key,
                f"chapter {bookmark.chapter_id} is not in novel {bookmark.novel_id}",
            )
        else:
            report.ok += 1


def _check_sessions(tables: "EntityTables", report: IntegrityReport) -> None:
    for token, session in tables.sessions.items():
        if session.user_id not in tables.users_by_id:
            # Never echo the token itself.
            report.add("dangling_session", f"{token[:8]}...", f"user {session.user_id} is missing")
        else:
            report.ok += 1


def _check_counters(tables: "EntityTables", report: IntegrityReport) -> None:
    for name, counter, ids in (
        ("next_user_id", tables.next_user_id, tables.users_by_id),
        ("next_novel_id", tables.next_novel_id, tables.novels_by_id),
        ("next_chapter_id", tables.next_chapter_id, tables.chapters_by_id),
        ("next_comment_id", tables.next_comment_id, tables.comments_by_id),
    ):
        highest = max(ids, default=0)
        if counter < highest:
            report.add("lagging_counter", name, f"counter {counter} is below highest id {highest}")


def verify_tables(tables: "EntityTables") -> IntegrityReport:
    """Verify referential integrity across every table.

    Checks, in order:
    1. User indexes point at existing users.
    2. Chapters belong to existing novels and appear in their novel's index.
    3. Comments belong to existing novels and never reference another novel's chapter.
    4. Bookmarks reference an existing user, novel, and (if set) a chapter of that novel.
    5. Sessions belong to existing users.
    6. Id counters are at least the highest id in use.

    Args:
        tables: The table set to verify. It is only read.

    Returns:
        An IntegrityReport with the count of clean rows and every issue found.
    """
    report = IntegrityReport()
    _check_users(tables, report)
    _check_chapters(tables, report)
    _check_comments(tables, report)
    _check_bookmarks(tables, report)
    _check_sessions(tables, report)
    _check_counters(tables, report)
    return report
