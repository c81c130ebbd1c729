# ABOUTME: The `novella export` command for writing a novel to an EPUB file.
# ABOUTME: Chapters are exported in reading order; drafts only for their author.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from novella.cli.options import as_option, db_option, load_store
from novella.formats.epub import ExportError, export_novel_epub
from novella.store import NovellaError

console = Console()


@click.command("export")
@click.argument("novel_id", type=int)
@click.argument("output", type=click.Path(path_type=Path, dir_okay=False))
@db_option
@as_option
def export(novel_id: int, output: Path, db_path: Path | None, requester_id: int | None) -> None:
    """Export a novel and its chapters to an EPUB file."""
    store = load_store(db_path, console)

    try:
        path = export_novel_epub(store, novel_id, requester_id, output)
    except (NovellaError, ExportError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"[green]Exported novel {novel_id} to[/green] {escape(str(path))}")
