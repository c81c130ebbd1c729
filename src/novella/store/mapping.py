# ABOUTME: Converts between the in-memory EntityTables and the snapshot JSON document.
# ABOUTME: Field names are stable; integer keys become strings and datetimes ISO-8601 text.

from datetime import datetime
from typing import Any

from novella.store.errors import SnapshotFormatError
from novella.store.tables import EntityTables, bookmark_key
from novella.store.types import Bookmark, Chapter, Comment, Novel, NovelStatus, Session, User


def _ts(value: datetime) -> str:
    return value.isoformat()


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _optional_int(value: Any) -> int | None:
    return int(value) if value is not None else None


def user_to_dict(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "password_salt": user.password_salt,
        "password_hash": user.password_hash,
        "created_at": _ts(user.created_at),
    }


def dict_to_user(row: dict[str, Any]) -> User:
    return User(
        id=int(row["id"]),
        username=row["username"],
        email=row["email"],
        password_salt=row["password_salt"],
        password_hash=row["password_hash"],
        created_at=_parse_ts(row["created_at"]),
    )


def novel_to_dict(novel: Novel) -> dict[str, Any]:
    return {
        "id": novel.id,
        "author_id": novel.author_id,
        "title": novel.title,
        "description": novel.description,
        "genre": novel.genre,
        "status": novel.status.value,
        "created_at": _ts(novel.created_at),
        "updated_at": _ts(novel.updated_at),
    }


def dict_to_novel(row: dict[str, Any]) -> Novel:
    return Novel(
        id=int(row["id"]),
        author_id=int(row["author_id"]),
        title=row["title"],
        description=row.get("description", ""),
        genre=row.get("genre", ""),
        status=NovelStatus(row["status"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def chapter_to_dict(chapter: Chapter) -> dict[str, Any]:
    return {
        "id": chapter.id,
        "novel_id": chapter.novel_id,
        "title": chapter.title,
        "content": chapter.content,
        "position": chapter.position,
        "created_at": _ts(chapter.created_at),
        "updated_at": _ts(chapter.updated_at),
    }


def dict_to_chapter(row: dict[str, Any]) -> Chapter:
    return Chapter(
        id=int(row["id"]),
        novel_id=int(row["novel_id"]),
        title=row["title"],
        content=row.get("content", ""),
        position=int(row["position"]),
        created_at=_parse_ts(row["created_at"]),
        updated_at=_parse_ts(row["updated_at"]),
    )


def comment_to_dict(comment: Comment) -> dict[str, Any]:
    """Serialize a comment. chapter_id is omitted for novel-level comments."""
    row: dict[str, Any] = {
        "id": comment.id,
        "novel_id": comment.novel_id,
        "user_id": comment.user_id,
        "body": comment.body,
        "created_at": _ts(comment.created_at),
    }
    if comment.chapter_id is not None:
        row["chapter_id"] = comment.chapter_id
    return row


def dict_to_comment(row: dict[str, Any]) -> Comment:
    return Comment(
        id=int(row["id"]),
        novel_id=int(row["novel_id"]),
        user_id=int(row["user_id"]),
        body=row["body"],
        created_at=_parse_ts(row["created_at"]),
        chapter_id=_optional_int(row.get("chapter_id")),
    )


def bookmark_to_dict(bookmark: Bookmark) -> dict[str, Any]:
    row: dict[str, Any] = {
        "user_id": bookmark.user_id,
        "novel_id": bookmark.novel_id,
        "updated_at": _ts(bookmark.updated_at),
    }
    if bookmark.chapter_id is not None:
        row["chapter_id"] = bookmark.chapter_id
    if bookmark.chapter_position is not None:
        row["chapter_position"] = bookmark.chapter_position
    return row


def dict_to_bookmark(row: dict[str, Any]) -> Bookmark:
    return Bookmark(
        user_id=int(row["user_id"]),
        novel_id=int(row["novel_id"]),
        updated_at=_parse_ts(row["updated_at"]),
        chapter_id=_optional_int(row.get("chapter_id")),
        chapter_position=_optional_int(row.get("chapter_position")),
    )


def _id_lists(mapping: dict[int, list[int]]) -> dict[str, list[int]]:
    return {str(key): list(ids) for key, ids in mapping.items()}


def tables_to_document(tables: EntityTables) -> dict[str, Any]:
    """Convert the full table set to a JSON-serializable snapshot document.

    Sessions are written as the token -> user id map plus a parallel
    token -> issue time map.
    """
    return {
        "users_by_id": {str(k): user_to_dict(v) for k, v in tables.users_by_id.items()},
        "users_by_email": dict(tables.users_by_email),
        "users_by_username": dict(tables.users_by_username),
        "novels_by_id": {str(k): novel_to_dict(v) for k, v in tables.novels_by_id.items()},
        "chapters_by_id": {str(k): chapter_to_dict(v) for k, v in tables.chapters_by_id.items()},
        "chapter_ids_by_novel": _id_lists(tables.chapter_ids_by_novel),
        "comments_by_id": {str(k): comment_to_dict(v) for k, v in tables.comments_by_id.items()},
        "comment_ids_by_novel": _id_lists(tables.comment_ids_by_novel),
        "bookmarks": {k: bookmark_to_dict(v) for k, v in tables.bookmarks.items()},
        "sessions": {token: s.user_id for token, s in tables.sessions.items()},
        "session_issued_at": {token: _ts(s.issued_at) for token, s in tables.sessions.items()},
        "next_user_id": tables.next_user_id,
        "next_novel_id": tables.next_novel_id,
        "next_chapter_id": tables.next_chapter_id,
        "next_comment_id": tables.next_comment_id,
    }


def document_to_tables(document: Any, *, loaded_at: datetime) -> EntityTables:
    """Rebuild an EntityTables from a snapshot document.

    Missing collections load as empty, matching a store that never wrote
    them. Sessions without a recorded issue time are stamped with
    loaded_at.

    Raises:
        SnapshotFormatError: If the document's shape or values are invalid.
    """
    if not isinstance(document, dict):
        raise SnapshotFormatError("Snapshot document must be a JSON object")

    def section(name: str) -> dict[str, Any]:
        value = document.get(name) or {}
        if not isinstance(value, dict):
            raise SnapshotFormatError(f"Snapshot field '{name}' must be an object")
        return value

    try:
        issued = section("session_issued_at")
        return EntityTables(
            users_by_id={int(k): dict_to_user(v) for k, v in section("users_by_id").items()},
            users_by_email={k: int(v) for k, v in section("users_by_email").items()},
            users_by_username={k: int(v) for k, v in section("users_by_username").items()},
            novels_by_id={int(k): dict_to_novel(v) for k, v in section("novels_by_id").items()},
            chapters_by_id={
                int(k): dict_to_chapter(v) for k, v in section("chapters_by_id").items()
            },
            chapter_ids_by_novel={
                int(k): [int(i) for i in v] for k, v in section("chapter_ids_by_novel").items()
            },
            comments_by_id={
                int(k): dict_to_comment(v) for k, v in section("comments_by_id").items()
            },
            comment_ids_by_novel={
                int(k): [int(i) for i in v] for k, v in section("comment_ids_by_novel").items()
            },
            bookmarks={
                bookmark_key(b.user_id, b.novel_id): b
                for b in map(dict_to_bookmark, section("bookmarks").values())
            },
            sessions={
                token: Session(
                    token=token,
                    user_id=int(user_id),
                    issued_at=_parse_ts(issued[token]) if token in issued else loaded_at,
                )
                for token, user_id in section("sessions").items()
            },
            next_user_id=int(document.get("next_user_id", 0)),
            next_novel_id=int(document.get("next_novel_id", 0)),
            next_chapter_id=int(document.get("next_chapter_id", 0)),
            next_comment_id=int(document.get("next_comment_id", 0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise SnapshotFormatError(f"Invalid snapshot document: {exc}") from exc
