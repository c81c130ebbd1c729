# ABOUTME: The `novella stats` command for table row counts.
# ABOUTME: Prints one row per entity table in the snapshot.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from novella.cli.options import db_option, load_store

console = Console()


@click.command("stats")
@db_option
def stats(db_path: Path | None) -> None:
    """Show how many rows each table holds."""
    store = load_store(db_path, console)

    table = Table()
    table.add_column("Table", style="bold")
    table.add_column("Rows", justify="right")
    for name, count in store.stats().items():
        table.add_row(name, str(count))

    console.print(table)
