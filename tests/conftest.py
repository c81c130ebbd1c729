# ABOUTME: Shared pytest fixtures for Novella tests.
# ABOUTME: Provides a deterministic clock, in-memory and snapshot-backed stores, and sample users.

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from novella.store import NovelStore, StoreConfig, User, open_store


class FakeClock:
    """A clock that advances one second every time it is read."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> NovelStore:
    """An in-memory store with no snapshot file."""
    return NovelStore(clock=clock)


@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "novella.db.json"


@pytest.fixture
def persistent_store(snapshot_path: Path, clock: FakeClock) -> NovelStore:
    """A store that rewrites its snapshot after every mutation."""
    return open_store(StoreConfig(snapshot_path=snapshot_path), clock=clock)


@pytest.fixture
def alice(store: NovelStore) -> tuple[User, str]:
    return store.register("Alice", "alice@example.com", "secret")


@pytest.fixture
def bob(store: NovelStore) -> tuple[User, str]:
    return store.register("Bob", "bob@example.com", "hunter2")
