# ABOUTME: Entity dataclasses held in the Novella tables.
# ABOUTME: Records are frozen; updates go through dataclasses.replace inside the store.

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NovelStatus(str, Enum):
    """Visibility state of a novel."""

    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass(frozen=True)
class User:
    """A registered account.

    username and email keep the caller's casing for display; uniqueness
    and lookup use the normalized (lower-cased, trimmed) forms.
    """

    id: int
    username: str
    email: str
    password_salt: str
    password_hash: str
    created_at: datetime


@dataclass(frozen=True)
class Novel:
    """A novel owned by its author. Drafts are visible only to the author."""

    id: int
    author_id: int
    title: str
    description: str
    genre: str
    status: NovelStatus
    created_at: datetime
    updated_at: datetime

    @property
    def is_published(self) -> bool:
        return self.status is NovelStatus.PUBLISHED


@dataclass(frozen=True)
class Chapter:
    """A chapter of a novel. position is a sort key, not a unique index."""

    id: int
    novel_id: int
    title: str
    content: str
    position: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Comment:
    id: int
    novel_id: int
    user_id: int
    body: str
    created_at: datetime
    chapter_id: int | None = None


@dataclass(frozen=True)
class Bookmark:
    """A reader's position in a novel, one per (user, novel) pair.

    chapter_position is a copy of the chapter's position taken when the
    bookmark was written; it does not follow later repositioning.
    """

    user_id: int
    novel_id: int
    updated_at: datetime
    chapter_id: int | None = None
    chapter_position: int | None = None


@dataclass(frozen=True)
class Session:
    """A bearer token mapped to the user it was issued to."""

    token: str
    user_id: int
    issued_at: datetime
