# ABOUTME: Public API for the Novella data store.
# ABOUTME: Exports the store facade, configuration, entity types, and error taxonomy.

from novella.store.catalog import CLEAR, NovelStore, open_store
from novella.store.config import StoreConfig
from novella.store.errors import (
    AuthError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    NovellaError,
    PersistenceError,
    SnapshotFormatError,
    ValidationError,
    status_for,
)
from novella.store.snapshot import DEFAULT_SNAPSHOT_PATH
from novella.store.types import Bookmark, Chapter, Comment, Novel, NovelStatus, Session, User

__all__ = [
    "CLEAR",
    "DEFAULT_SNAPSHOT_PATH",
    "AuthError",
    "Bookmark",
    "Chapter",
    "Comment",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "Novel",
    "NovelStatus",
    "NovelStore",
    "NovellaError",
    "PersistenceError",
    "Session",
    "SnapshotFormatError",
    "StoreConfig",
    "User",
    "ValidationError",
    "open_store",
    "status_for",
]
