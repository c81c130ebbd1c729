# ABOUTME: CLI package for Novella, built on Click.
# ABOUTME: Defines the root command group and registers subcommands.

import logging

import click
from rich.logging import RichHandler

from novella.cli.commands import export_cmd, info_cmd, ls_cmd, register_cmd, stats_cmd, verify_cmd


@click.group()
@click.version_option(package_name="novella")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Novella - operator tools for the serialized-fiction data store."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(show_path=False)],
        )


cli.add_command(register_cmd.register)
cli.add_command(ls_cmd.ls)
cli.add_command(info_cmd.info)
cli.add_command(stats_cmd.stats)
cli.add_command(verify_cmd.verify)
cli.add_command(export_cmd.export)
