# ABOUTME: The `novella info` command for displaying a novel in detail.
# ABOUTME: Shows the novel's fields followed by its chapters in reading order.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from novella.cli.options import as_option, db_option, load_store
from novella.store import NovellaError

console = Console()


@click.command("info")
@click.argument("novel_id", type=int)
@db_option
@as_option
def info(novel_id: int, db_path: Path | None, requester_id: int | None) -> None:
    """Show details and chapters for a novel by ID."""
    store = load_store(db_path, console)

    try:
        novel = store.get_novel(novel_id, requester_id)
        chapters = store.list_chapters(novel_id, requester_id)
        author = store.get_user(novel.author_id)
    except NovellaError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Field", style="bold", width=12)
    table.add_column("Value")

    table.add_row("ID", str(novel.id))
    table.add_row("Title", escape(novel.title))
    table.add_row("Author", f"{escape(author.username)} ({author.id})")
    table.add_row("Status", novel.status.value)
    if novel.genre:
        table.add_row("Genre", escape(novel.genre))
    if novel.description:
        table.add_row("Description", escape(novel.description))
    table.add_row("Created", novel.created_at.isoformat(timespec="seconds"))
    table.add_row("Updated", novel.updated_at.isoformat(timespec="seconds"))
    console.print(table)

    if not chapters:
        console.print("\n[dim]No chapters.[/dim]")
        return

    chapter_table = Table(title="Chapters")
    chapter_table.add_column("Pos", width=4)
    chapter_table.add_column("ID", style="dim", width=4)
    chapter_table.add_column("Title", style="bold")
    chapter_table.add_column("Words", justify="right")
    for chapter in chapters:
        chapter_table.add_row(
            str(chapter.position),
            str(chapter.id),
            escape(chapter.title),
            str(len(chapter.content.split())),
        )
    console.print(chapter_table)
