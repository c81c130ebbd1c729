# ABOUTME: The `novella verify` command for checking snapshot integrity.
# ABOUTME: Reports orphaned rows, dangling references, and lagging counters.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from novella.cli.options import db_option, load_store

console = Console()


@click.command("verify")
@db_option
def verify(db_path: Path | None) -> None:
    """Verify referential integrity of the stored tables."""
    store = load_store(db_path, console)

    result = store.verify()

    if result.total_issues > 0:
        table = Table()
        table.add_column("Kind", style="bold")
        table.add_column("Key", style="dim")
        table.add_column("Issue", style="red")

        for issue in result.issues:
            table.add_row(issue.kind, escape(issue.key), escape(issue.detail))

        console.print(table)
        console.print(
            f"\n[red]{result.total_issues} issue(s) found, {result.ok} row(s) verified.[/red]"
        )
        raise SystemExit(1)

    console.print(f"[green]All {result.ok} row(s) verified.[/green]")
