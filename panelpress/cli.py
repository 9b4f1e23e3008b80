"""Command-line interface for panelpress using Click command groups."""

from __future__ import annotations

from typing import NoReturn
import click
from panelpress import __version__
from panelpress.logs import configure_logging


@click.group()
@click.version_option(version=__version__)
@click.option("log_level", "--log-level", type=str, default=None, help="Log level (default: $PANELPRESS_LOG_LEVEL or INFO)")
def cli(log_level: str | None) -> None:
    """panelpress: watch comic generation jobs and browse journal entries."""
    configure_logging(level=log_level)


# Register subcommands
from panelpress.commands.entries import entries  # noqa: E402
from panelpress.commands.jobs import generate, watch  # noqa: E402

cli.add_command(entries)
cli.add_command(generate)
cli.add_command(watch)


def main() -> NoReturn:
    """Entry point for the CLI."""
    cli()
