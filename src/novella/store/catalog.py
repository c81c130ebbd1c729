# ABOUTME: NovelStore, the single entry point to the Novella tables.
# ABOUTME: Validates, authorizes, mutates, cascades, and persists under one reader/writer lock.

import logging
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from novella.core.verifier import IntegrityReport, verify_tables
from novella.store.config import StoreConfig
from novella.store.errors import AuthError, ConflictError, NotFoundError, ValidationError
from novella.store.hashing import generate_salt, generate_token, hash_password, verify_password
from novella.store.locking import ReadWriteLock
from novella.store.mapping import tables_to_document
from novella.store.rules import Access, authorize, can_view, is_author
from novella.store.snapshot import load_snapshot, write_snapshot
from novella.store.tables import EntityTables, bookmark_key, normalize
from novella.store.types import (
    Bookmark,
    Chapter,
    Comment,
    Novel,
    NovelStatus,
    Session,
    User,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class _Clear:
    """Type of the CLEAR sentinel."""

    def __repr__(self) -> str:
        return "CLEAR"


CLEAR = _Clear()
"""Pass as an optional text field in an update to set it to an empty string."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_status(status: NovelStatus | str | None) -> NovelStatus:
    """Coerce a status argument; None or "" defaults to draft."""
    if status is None or status == "":
        return NovelStatus.DRAFT
    try:
        return NovelStatus(status)
    except ValueError as exc:
        raise ValidationError(f"Invalid status: {status!r}") from exc


def _text_change(value: str | _Clear | None, *, strip: bool = True) -> str | None:
    """Resolve an optional text field in a partial update.

    None and "" leave the field unchanged (returns None); CLEAR empties it.
    """
    if isinstance(value, _Clear):
        return ""
    if value is None or value == "":
        return None
    return value.strip() if strip else value


def _title_change(title: str | _Clear | None) -> str | None:
    if isinstance(title, _Clear):
        raise ValidationError("title cannot be cleared")
    if title is None or not title.strip():
        return None
    return title.strip()


def _check_paging(limit: int, offset: int) -> None:
    if limit < 0:
        raise ValidationError(f"limit must not be negative: {limit}")
    if offset < 0:
        raise ValidationError(f"offset must not be negative: {offset}")


class NovelStore:
    """Thread-safe store for users, novels, chapters, comments, and bookmarks.

    Every mutation runs under the exclusive lock and rewrites the snapshot
    (when a snapshot path is configured) before returning. Reads run under
    the shared lock. Requester ids of None or 0 mean "anonymous".

    A PersistenceError from a mutation means the change is already applied
    in memory but was not confirmed on disk.
    """

    def __init__(
        self,
        config: StoreConfig | None = None,
        *,
        tables: EntityTables | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._config = config or StoreConfig()
        self._tables = tables if tables is not None else EntityTables()
        self._clock = clock or _utcnow
        self._lock = ReadWriteLock()

    @property
    def config(self) -> StoreConfig:
        return self._config

    # --- Internal helpers (caller holds the lock) ---

    def _persist(self) -> None:
        path = self._config.snapshot_path
        if path is not None:
            write_snapshot(path, self._tables)

    def _require_user(self, requester_id: int | None) -> User:
        user = self._tables.users_by_id.get(requester_id) if requester_id else None
        if user is None:
            raise AuthError("Authentication required")
        return user

    def _resolve_novel(self, novel_id: int, requester_id: int | None, access: Access) -> Novel:
        """Look up a novel and apply the access rule: NotFound first, then Forbidden."""
        novel = self._tables.novels_by_id.get(novel_id)
        if novel is None:
            raise NotFoundError(f"Novel {novel_id} not found")
        authorize(novel, requester_id, access)
        return novel

    def _resolve_chapter(
        self, novel_id: int, chapter_id: int, requester_id: int | None, access: Access
    ) -> tuple[Novel, Chapter]:
        novel = self._resolve_novel(novel_id, requester_id, access)
        chapter = self._tables.chapter_in_novel(novel_id, chapter_id)
        if chapter is None:
            raise NotFoundError(f"Chapter {chapter_id} not found in novel {novel_id}")
        return novel, chapter

    def _issue_session(self, user_id: int) -> str:
        token = generate_token()
        while token in self._tables.sessions:
            token = generate_token()
        self._tables.sessions[token] = Session(
            token=token, user_id=user_id, issued_at=self._clock()
        )
        logger.debug("Issued session for user %d", user_id)
        return token

    def _is_expired(self, session: Session, now: datetime) -> bool:
        ttl = self._config.session_ttl
        return ttl is not None and now - session.issued_at > ttl

    # --- Identity ---

    def register(self, username: str, email: str, password: str) -> tuple[User, str]:
        """Create an account and a first session.

        Returns:
            The new user and a session token.

        Raises:
            ValidationError: If any field is empty after trimming.
            ConflictError: If the normalized username or email is taken.
        """
        norm_username = normalize(username)
        norm_email = normalize(email)
        if not norm_username or not norm_email or not password:
            raise ValidationError("username, email, and password are required")

        with self._lock.exclusive():
            tables = self._tables
            if norm_username in tables.users_by_username:
                raise ConflictError("Username is already registered")
            if norm_email in tables.users_by_email:
                raise ConflictError("Email is already registered")

            salt = generate_salt()
            user = User(
                id=tables.allocate_user_id(),
                username=username.strip(),
                email=email.strip(),
                password_salt=salt,
                password_hash=hash_password(salt, password),
                created_at=self._clock(),
            )
            tables.add_user(user)
            token = self._issue_session(user.id)
            self._persist()
        return user, token

    def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and issue a new session. Earlier sessions stay valid.

        Raises:
            AuthError: If the email is unknown or the password does not match.
        """
        with self._lock.exclusive():
            user = self._tables.user_by_email(email)
            if user is None or not verify_password(
                user.password_salt, password, user.password_hash
            ):
                raise AuthError("Invalid email or password")
            token = self._issue_session(user.id)
            self._persist()
        return user, token

    def logout(self, token: str) -> None:
        """Revoke a single session.

        Raises:
            AuthError: If the token is not a live session.
        """
        with self._lock.exclusive():
            session = self._tables.sessions.pop(token, None)
            if session is None:
                raise AuthError("Invalid session")
            logger.debug("Revoked session for user %d", session.user_id)
            self._persist()

    def resolve_session(self, token: str) -> User:
        """Return the user a session token belongs to.

        Raises:
            AuthError: If the token is unknown, expired, or its user is gone.
        """
        with self._lock.shared():
            session = self._tables.sessions.get(token) if token else None
            if session is None:
                raise AuthError("Invalid session")
            if self._is_expired(session, self._clock()):
                logger.warning("Expired session presented for user %d", session.user_id)
                raise AuthError("Session expired")
            user = self._tables.users_by_id.get(session.user_id)
            if user is None:
                raise AuthError("Invalid session")
            return user

    def purge_expired_sessions(self) -> int:
        """Drop sessions older than the configured TTL and return how many were removed."""
        if self._config.session_ttl is None:
            return 0
        with self._lock.exclusive():
            now = self._clock()
            expired = [
                token for token, session in self._tables.sessions.items()
                if self._is_expired(session, now)
            ]
            for token in expired:
                del self._tables.sessions[token]
            if expired:
                self._persist()
        return len(expired)

    def get_user(self, user_id: int) -> User:
        with self._lock.shared():
            user = self._tables.users_by_id.get(user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            return user

    # --- Novels ---

    def create_novel(
        self,
        requester_id: int | None,
        title: str,
        description: str = "",
        genre: str = "",
        status: NovelStatus | str | None = None,
    ) -> Novel:
        """Create a novel owned by the requester. Status defaults to draft."""
        new_status = _parse_status(status)
        if not title.strip():
            raise ValidationError("title is required")

        with self._lock.exclusive():
            author = self._require_user(requester_id)
            now = self._clock()
            novel = Novel(
                id=self._tables.allocate_novel_id(),
                author_id=author.id,
                title=title.strip(),
                description=description.strip(),
                genre=genre.strip(),
                status=new_status,
                created_at=now,
                updated_at=now,
            )
            self._tables.novels_by_id[novel.id] = novel
            self._persist()
        return novel

    def list_novels(
        self,
        requester_id: int | None = None,
        *,
        query: str = "",
        author_id: int | None = None,
        include_drafts: bool = False,
        limit: int = 0,
        offset: int = 0,
    ) -> list[Novel]:
        """List novels, most recently updated first.

        Args:
            requester_id: Who is asking; None for anonymous.
            query: Case-insensitive substring matched against title,
                description and genre.
            author_id: Only novels by this author, when positive.
            include_drafts: Also return drafts, but only the requester's own.
            limit: Maximum results when positive.
            offset: Results to skip; past the end yields an empty list.

        Raises:
            ValidationError: If limit or offset is negative.
        """
        _check_paging(limit, offset)
        needle = normalize(query)

        with self._lock.shared():
            result = []
            for novel in self._tables.novels_by_id.values():
                if author_id and novel.author_id != author_id:
                    continue
                if not novel.is_published and not (
                    include_drafts and is_author(novel, requester_id)
                ):
                    continue
                if needle:
                    blob = normalize(f"{novel.title} {novel.description} {novel.genre}")
                    if needle not in blob:
                        continue
                result.append(novel)

        result.sort(key=lambda n: (n.updated_at, n.id), reverse=True)
        result = result[offset:]
        if limit > 0:
            result = result[:limit]
        return result

    def get_novel(self, novel_id: int, requester_id: int | None = None) -> Novel:
        with self._lock.shared():
            return self._resolve_novel(novel_id, requester_id, Access.VIEW)

    def update_novel(
        self,
        novel_id: int,
        requester_id: int | None,
        *,
        title: str | _Clear | None = None,
        description: str | _Clear | None = None,
        genre: str | _Clear | None = None,
        status: NovelStatus | str | None = None,
    ) -> Novel:
        """Apply a partial update; only the author may call it.

        None or "" leaves a field unchanged. CLEAR empties description or
        genre. The update timestamp is always refreshed.
        """
        changes: dict[str, object] = {}
        new_title = _title_change(title)
        if new_title is not None:
            changes["title"] = new_title
        for name, value in (("description", description), ("genre", genre)):
            new_value = _text_change(value)
            if new_value is not None:
                changes[name] = new_value
        if status is not None and status != "":
            changes["status"] = _parse_status(status)

        with self._lock.exclusive():
            novel = self._resolve_novel(novel_id, requester_id, Access.OWN)
            novel = replace(novel, **changes, updated_at=self._clock())
            self._tables.novels_by_id[novel_id] = novel
            self._persist()
        return novel

    def delete_novel(self, novel_id: int, requester_id: int | None) -> None:
        """Delete a novel with all its chapters, comments, and bookmarks."""
        with self._lock.exclusive():
            self._resolve_novel(novel_id, requester_id, Access.OWN)
            self._tables.remove_novel(novel_id)
            self._persist()

    # --- Chapters ---

    def create_chapter(
        self,
        novel_id: int,
        requester_id: int | None,
        title: str,
        content: str = "",
        position: int | None = None,
    ) -> Chapter:
        """Add a chapter to a novel the requester owns.

        A missing or non-positive position becomes the novel's current
        chapter count + 1. Positions are not required to be unique.
        """
        if not title.strip():
            raise ValidationError("title is required")

        with self._lock.exclusive():
            novel = self._resolve_novel(novel_id, requester_id, Access.OWN)
            if position is None or position <= 0:
                position = len(self._tables.chapter_ids_by_novel.get(novel_id, [])) + 1
            now = self._clock()
            chapter = Chapter(
                id=self._tables.allocate_chapter_id(),
                novel_id=novel_id,
                title=title.strip(),
                content=content,
                position=position,
                created_at=now,
                updated_at=now,
            )
            self._tables.add_chapter(chapter)
            self._tables.novels_by_id[novel_id] = replace(novel, updated_at=now)
            self._persist()
        return chapter

    def list_chapters(self, novel_id: int, requester_id: int | None = None) -> list[Chapter]:
        """Chapters ordered by position; equal positions keep creation order."""
        with self._lock.shared():
            self._resolve_novel(novel_id, requester_id, Access.VIEW)
            chapters = self._tables.chapters_of(novel_id)
        return sorted(chapters, key=lambda c: c.position)

    def get_chapter(
        self, novel_id: int, chapter_id: int, requester_id: int | None = None
    ) -> Chapter:
        with self._lock.shared():
            _, chapter = self._resolve_chapter(novel_id, chapter_id, requester_id, Access.VIEW)
            return chapter

    def update_chapter(
        self,
        novel_id: int,
        chapter_id: int,
        requester_id: int | None,
        *,
        title: str | _Clear | None = None,
        content: str | _Clear | None = None,
        position: int | None = None,
    ) -> Chapter:
        """Apply a partial update to a chapter; only the novel's author may call it.

        A missing or non-positive position leaves the position unchanged.
        """
        changes: dict[str, object] = {}
        new_title = _title_change(title)
        if new_title is not None:
            changes["title"] = new_title
        new_content = _text_change(content, strip=False)
        if new_content is not None:
            changes["content"] = new_content
        if position is not None and position > 0:
            changes["position"] = position

        with self._lock.exclusive():
            novel, chapter = self._resolve_chapter(novel_id, chapter_id, requester_id, Access.OWN)
            now = self._clock()
            chapter = replace(chapter, **changes, updated_at=now)
            self._tables.chapters_by_id[chapter_id] = chapter
            self._tables.novels_by_id[novel_id] = replace(novel, updated_at=now)
            self._persist()
        return chapter

    def delete_chapter(self, novel_id: int, chapter_id: int, requester_id: int | None) -> None:
        """Delete a chapter. Bookmarks on it narrow to the novel; comments are kept."""
        with self._lock.exclusive():
            _, chapter = self._resolve_chapter(novel_id, chapter_id, requester_id, Access.OWN)
            self._tables.remove_chapter(chapter)
            self._tables.clear_bookmarks_for_chapter(chapter_id)
            self._persist()

    # --- Comments ---

    def create_comment(
        self,
        novel_id: int,
        requester_id: int | None,
        body: str,
        chapter_id: int | None = None,
    ) -> Comment:
        """Post a comment on a visible novel, optionally scoped to one of its chapters."""
        if not body.strip():
            raise ValidationError("body is required")

        with self._lock.exclusive():
            user = self._require_user(requester_id)
            self._resolve_novel(novel_id, user.id, Access.VIEW)
            if (
                chapter_id is not None
                and self._tables.chapter_in_novel(novel_id, chapter_id) is None
            ):
                raise NotFoundError(f"Chapter {chapter_id} not found in novel {novel_id}")
            comment = Comment(
                id=self._tables.allocate_comment_id(),
                novel_id=novel_id,
                user_id=user.id,
                body=body.strip(),
                created_at=self._clock(),
                chapter_id=chapter_id,
            )
            self._tables.add_comment(comment)
            self._persist()
        return comment

    def list_comments(
        self,
        novel_id: int,
        requester_id: int | None = None,
        chapter_id: int | None = None,
    ) -> list[Comment]:
        """Comments on a novel, oldest first, optionally only those on one chapter.

        Raises:
            NotFoundError: If the novel, or the chapter filter, does not exist
                under this novel.
        """
        with self._lock.shared():
            self._resolve_novel(novel_id, requester_id, Access.VIEW)
            if (
                chapter_id is not None
                and self._tables.chapter_in_novel(novel_id, chapter_id) is None
            ):
                raise NotFoundError(f"Chapter {chapter_id} not found in novel {novel_id}")
            comments = self._tables.comments_of(novel_id)

        if chapter_id is not None:
            comments = [c for c in comments if c.chapter_id == chapter_id]
        return sorted(comments, key=lambda c: c.created_at)

    # --- Bookmarks ---

    def upsert_bookmark(
        self, novel_id: int, requester_id: int | None, chapter_id: int | None = None
    ) -> Bookmark:
        """Record the requester's reading position, replacing any earlier bookmark.

        The chapter's current position is copied into the bookmark.
        """
        with self._lock.exclusive():
            user = self._require_user(requester_id)
            self._resolve_novel(novel_id, user.id, Access.VIEW)
            chapter_position = None
            if chapter_id is not None:
                chapter = self._tables.chapter_in_novel(novel_id, chapter_id)
                if chapter is None:
                    raise NotFoundError(f"Chapter {chapter_id} not found in novel {novel_id}")
                chapter_position = chapter.position
            bookmark = Bookmark(
                user_id=user.id,
                novel_id=novel_id,
                updated_at=self._clock(),
                chapter_id=chapter_id,
                chapter_position=chapter_position,
            )
            self._tables.bookmarks[bookmark_key(user.id, novel_id)] = bookmark
            self._persist()
        return bookmark

    def list_bookmarks(self, requester_id: int | None) -> list[Bookmark]:
        """The requester's bookmarks, most recently updated first.

        Bookmarks on novels the requester can no longer see are left out.
        """
        with self._lock.shared():
            user = self._require_user(requester_id)
            result = []
            for bookmark in self._tables.bookmarks.values():
                if bookmark.user_id != user.id:
                    continue
                novel = self._tables.novels_by_id.get(bookmark.novel_id)
                if novel is None or not can_view(novel, user.id):
                    continue
                result.append(bookmark)
        result.sort(key=lambda b: b.updated_at, reverse=True)
        return result

    # --- Whole-store views ---

    def snapshot_document(self) -> dict[str, Any]:
        """The document the snapshot file would contain right now."""
        with self._lock.shared():
            return tables_to_document(self._tables)

    def stats(self) -> dict[str, int]:
        with self._lock.shared():
            return self._tables.counts()

    def verify(self) -> IntegrityReport:
        """Run the referential-integrity checks against the live tables."""
        with self._lock.shared():
            return verify_tables(self._tables)


def open_store(config: StoreConfig | None = None, *, clock: Clock | None = None) -> NovelStore:
    """Create a NovelStore, restoring the snapshot if one exists.

    A missing snapshot file starts an empty store. Integrity problems in a
    loaded snapshot are logged as warnings but do not stop startup.

    Raises:
        SnapshotFormatError: If the snapshot file exists but is malformed.
        PersistenceError: If the snapshot file exists but cannot be read.
    """
    config = config or StoreConfig()
    tables = None
    if config.snapshot_path is None:
        logger.info("Opening store in memory mode (no snapshot path)")
    else:
        tables = load_snapshot(config.snapshot_path)
        if tables is not None:
            for issue in verify_tables(tables).issues:
                logger.warning(
                    "Snapshot integrity issue: %s %s: %s", issue.kind, issue.key, issue.detail
                )
    return NovelStore(config, tables=tables, clock=clock)
