# ABOUTME: Snapshot persistence for the Novella store.
# ABOUTME: Loads the table set at startup and rewrites the whole file atomically after mutations.

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from novella.store.errors import PersistenceError, SnapshotFormatError
from novella.store.mapping import document_to_tables, tables_to_document
from novella.store.tables import EntityTables

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = Path.home() / ".novella" / "novella.db.json"


def load_snapshot(path: Path) -> EntityTables | None:
    """Read a snapshot file into a fresh EntityTables.

    Args:
        path: Location of the snapshot file.

    Returns:
        The restored tables, or None if the file does not exist.

    Raises:
        SnapshotFormatError: If the file exists but is not a valid snapshot.
        PersistenceError: If the file exists but cannot be read.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except UnicodeDecodeError as exc:
        raise SnapshotFormatError(f"Snapshot {path} is not valid UTF-8: {exc}") from exc
    except OSError as exc:
        raise PersistenceError(f"Failed to read snapshot {path}: {exc}") from exc

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(f"Snapshot {path} is not valid JSON: {exc}") from exc

    tables = document_to_tables(document, loaded_at=datetime.now(timezone.utc))
    logger.info("Loaded snapshot from %s: %s", path, tables.counts())
    return tables


def dump_document(tables: EntityTables) -> str:
    """Serialize the table set to the snapshot's JSON text."""
    return json.dumps(tables_to_document(tables), indent=2)


def write_snapshot(path: Path, tables: EntityTables) -> int:
    """Replace the snapshot file with the current table set.

    Writes to a temporary file in the same directory, fsyncs it, then
    renames it over the target, so a crash leaves either the previous
    complete snapshot or the new one on disk, never a partial file.

    Args:
        path: Location of the snapshot file. Parent directories are created.
        tables: The table set to persist.

    Returns:
        Number of bytes written.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    data = dump_document(tables).encode("utf-8")
    tmp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as exc:
        logger.error("Snapshot write to %s failed: %s", path, exc)
        raise PersistenceError(f"Failed to write snapshot {path}: {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    logger.debug("Wrote snapshot to %s (%d bytes)", path, len(data))
    return len(data)
