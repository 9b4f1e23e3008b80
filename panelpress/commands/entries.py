"""Browse stored journal entries.

Examples
--------
  panelpress entries list --db ~/.local/share/PanelPress/journal.sqlite
  panelpress entries list --db journal.sqlite --search beach --format json
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path

import click

from panelpress.config import Config
from panelpress.entries.codec import build_codec
from panelpress.entries.store import SqlEntryStore


@click.group(name="entries")
def entries() -> None:
    """Inspect the local entry store."""


@entries.command(name="list")
@click.option(
    "db",
    "--db",
    type=click.Path(path_type=Path, dir_okay=False),
    envvar="PANELPRESS_DB",
    required=True,
    help="SQLite database file",
)
@click.option(
    "key",
    "--key",
    type=str,
    envvar="PANELPRESS_KEY",
    default=None,
    help="Fernet key used to decrypt previews (omit for plaintext stores)",
)
@click.option("limit", "--limit", type=int, default=Config.LIST_LIMIT, show_default=True, help="Maximum entries")
@click.option("offset", "--offset", type=int, default=Config.LIST_OFFSET, show_default=True, help="Entries to skip")
@click.option("search", "--search", type=str, default="", help="Filter by preview, mood, or tag")
@click.option(
    "fmt",
    "--format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format",
)
def list_entries(db: Path, key: str | None, limit: int, offset: int, search: str, fmt: str) -> None:
    """List entries, newest first."""

    if not db.exists():
        raise click.ClickException(f"Missing database file: {db}")
    if limit < 0 or offset < 0:
        raise click.ClickException("--limit and --offset must be non-negative.")
    try:
        codec = build_codec(key)
    except ValueError as e:
        raise click.ClickException(f"Invalid --key: {e}") from e
    store = SqlEntryStore.at_path(db, codec=codec)
    items = [s for s in store.list_entries(limit, offset) if s.matches(search)]

    if fmt.lower() == "json":
        click.echo(json.dumps([asdict(s) for s in items], ensure_ascii=False, indent=2))
        return
    if not items:
        click.echo("No entries.")
        return
    for s in items:
        mood = f" [{s.mood}]" if s.mood else ""
        click.echo(f"{s.id}  {s.created_at[:19]}{mood}  {s.preview or ''}")
