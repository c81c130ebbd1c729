# ABOUTME: The `novella register` command for creating a user account.
# ABOUTME: Prompts for a password and prints the new user id and session token.

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from novella.cli.options import db_option, load_store
from novella.store import NovellaError

console = Console()


@click.command("register")
@click.argument("username")
@click.argument("email")
@click.password_option(help="Password for the new account.")
@db_option
def register(username: str, email: str, password: str, db_path: Path | None) -> None:
    """Register a new user and issue a session token."""
    store = load_store(db_path, console)

    try:
        user, token = store.register(username, email, password)
    except NovellaError as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise SystemExit(1) from exc

    console.print(f"[green]Registered user {user.id}[/green] ({escape(user.username)})")
    console.print(f"Token: {token}")
