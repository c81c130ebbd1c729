# ABOUTME: Store configuration: snapshot location and session lifetime.
# ABOUTME: Built directly or from NOVELLA_* environment variables.

import os
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from novella.store.errors import ValidationError

ENV_DB_PATH = "NOVELLA_DB_PATH"
ENV_SESSION_TTL = "NOVELLA_SESSION_TTL"


@dataclass(frozen=True)
class StoreConfig:
    """Settings for a NovelStore.

    snapshot_path=None or an empty path runs the store purely in memory
    (nothing is read or written). session_ttl=None means sessions never
    expire.
    """

    snapshot_path: Path | None = None
    session_ttl: timedelta | None = None

    def __post_init__(self) -> None:
        path = self.snapshot_path
        if path is not None:
            # Path("") collapses to "."
            raw = str(path).strip()
            path = Path(raw) if raw not in ("", ".") else None
        object.__setattr__(self, "snapshot_path", path)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "StoreConfig":
        """Build a config from NOVELLA_DB_PATH and NOVELLA_SESSION_TTL (seconds).

        Raises:
            ValidationError: If NOVELLA_SESSION_TTL is not a positive integer.
        """
        env = os.environ if environ is None else environ

        raw_path = env.get(ENV_DB_PATH, "").strip()
        snapshot_path = Path(raw_path).expanduser() if raw_path else None

        session_ttl = None
        raw_ttl = env.get(ENV_SESSION_TTL, "").strip()
        if raw_ttl:
            try:
                seconds = int(raw_ttl)
            except ValueError as exc:
                raise ValidationError(f"{ENV_SESSION_TTL} must be an integer: {raw_ttl!r}") from exc
            if seconds <= 0:
                raise ValidationError(f"{ENV_SESSION_TTL} must be positive: {seconds}")
            session_ttl = timedelta(seconds=seconds)

        return cls(snapshot_path=snapshot_path, session_ttl=session_ttl)
