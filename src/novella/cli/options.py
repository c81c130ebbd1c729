# ABOUTME: Shared Click options and store access for Novella CLI commands.
# ABOUTME: Provides --db and --as, plus a helper that opens the store or exits cleanly.

from dataclasses import replace
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from novella.store import DEFAULT_SNAPSHOT_PATH, NovellaError, NovelStore, StoreConfig, open_store
from novella.store.config import ENV_DB_PATH

db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path, dir_okay=False),
    envvar=ENV_DB_PATH,
    default=None,
    help=f"Path to the snapshot file (default: {DEFAULT_SNAPSHOT_PATH})",
)

as_option = click.option(
    "--as",
    "requester_id",
    type=int,
    default=None,
    help="Act as this user id (draft novels are visible only to their author).",
)


def load_store(db_path: Path | None, console: Console) -> NovelStore:
    """Open the store at db_path, printing the error and exiting 1 on failure."""
    try:
        config = StoreConfig.from_env()
        path = db_path or config.snapshot_path or DEFAULT_SNAPSHOT_PATH
        return open_store(replace(config, snapshot_path=path))
    except NovellaError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc
