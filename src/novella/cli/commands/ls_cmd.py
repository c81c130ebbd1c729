# ABOUTME: The `novella ls` command for listing novels.
# ABOUTME: Displays a Rich table of novels, newest activity first.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from novella.cli.options import as_option, db_option, load_store
from novella.store import NovellaError

console = Console()


@click.command("ls")
@db_option
@as_option
@click.option("--query", "-q", default="", help="Filter by text in title, description, or genre.")
@click.option("--author", "author_id", type=int, default=None, help="Filter by author id.")
@click.option(
    "--drafts",
    "include_drafts",
    is_flag=True,
    default=False,
    help="Include the --as user's own drafts.",
)
@click.option("--limit", type=int, default=0, help="Maximum number of novels to show.")
@click.option("--offset", type=int, default=0, help="Number of novels to skip.")
def ls(
    db_path: Path | None,
    requester_id: int | None,
    query: str,
    author_id: int | None,
    include_drafts: bool,
    limit: int,
    offset: int,
) -> None:
    """List novels visible to the requester."""
    store = load_store(db_path, console)

    try:
        novels = store.list_novels(
            requester_id,
            query=query,
            author_id=author_id,
            include_drafts=include_drafts,
            limit=limit,
            offset=offset,
        )
    except NovellaError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    if not novels:
        console.print("[yellow]No novels found.[/yellow]")
        return

    table = Table()
    table.add_column("ID", style="dim", width=4)
    table.add_column("Title", style="bold")
    table.add_column("Author", width=6)
    table.add_column("Genre")
    table.add_column("Status")

    for novel in novels:
        table.add_row(
            str(novel.id),
            escape(novel.title),
            str(novel.author_id),
            escape(novel.genre) or "[dim]-[/dim]",
            novel.status.value,
        )

    console.print(table)
    console.print(f"\n[dim]{len(novels)} novel(s)[/dim]")
