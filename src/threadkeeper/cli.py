"""threadkeeper CLI — verbatim, append-only notes for agents.

Commands:
    threadkeeper serve                 start stdio MCP server
    threadkeeper path                  print the resolved store file
    threadkeeper list [--kind KIND]    list notes in insertion order
    threadkeeper show ID               show one note
    threadkeeper find SUBSTRING        notes whose text contains SUBSTRING
    threadkeeper add TEXT              append a note (asks for confirmation)
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from threadkeeper.config import ThreadkeeperConfig, load_config
from threadkeeper.errors import ThreadkeeperError
from threadkeeper.mcp import run_server
from threadkeeper.models import NoteEntry
from threadkeeper.query import (
    NO_MATCH_MESSAGE,
    NO_NOTES_MESSAGE,
    by_id,
    by_kind,
    containing,
    format_entries,
    format_entry,
    no_id_message,
    no_kind_message,
)
from threadkeeper.store import NoteStore

logger = logging.getLogger("threadkeeper.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(level: str) -> None:
    # stderr only: stdout carries JSON-RPC when serving
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _load_cfg(ctx: click.Context) -> ThreadkeeperConfig:
    cfg = ctx.obj
    if cfg is None:
        msg = "configuration not loaded"
        raise click.ClickException(msg)
    return cfg


def _load_entries(cfg: ThreadkeeperConfig) -> list[NoteEntry]:
    try:
        return NoteStore(cfg.store_path).load_all()
    except (ThreadkeeperError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


# ---------------------------------------------------------------------------
# Root group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(package_name="threadkeeper")
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="config.toml to read (default: ~/.threadkeeper/config.toml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """threadkeeper — verbatim note store for agents."""
    try:
        cfg = load_config(config_path)
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc
    _setup_logging(cfg.log_level)
    ctx.obj = cfg


# ---------------------------------------------------------------------------
# threadkeeper serve / path
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--store", "store_path", default=None, help="Override the store file for this run")
@click.pass_context
def serve(ctx: click.Context, store_path: str | None) -> None:
    """Start stdio MCP server (connect via your agent's MCP config)."""
    cfg = _load_cfg(ctx)
    if store_path:
        cfg.store_path = Path(store_path).expanduser().resolve()
    try:
        run_server(cfg)
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        logger.exception("server failed")
        click.echo(str(exc), err=True)
        raise SystemExit(1) from exc


@cli.command()
@click.pass_context
def path(ctx: click.Context) -> None:
    """Print the resolved store file path."""
    click.echo(str(_load_cfg(ctx).store_path))


# ---------------------------------------------------------------------------
# threadkeeper list / show / find
# ---------------------------------------------------------------------------


def _print_table(entries: list[NoteEntry]) -> None:
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Timestamp", no_wrap=True)
    table.add_column("Kind")
    table.add_column("File")
    table.add_column("Text")
    for e in entries:
        table.add_row(e.id, e.timestamp, escape(e.kind or ""), escape(e.file or ""), escape(e.text))
    Console().print(table)


@cli.command("list")
@click.option("--kind", "-k", default=None, help="Only notes with exactly this kind")
@click.option("--table", "as_table", is_flag=True, help="Render as a table")
@click.pass_context
def list_cmd(ctx: click.Context, kind: str | None, as_table: bool) -> None:
    """List stored notes in insertion order."""
    entries = _load_entries(_load_cfg(ctx))
    if kind is not None:
        entries = by_kind(entries, kind)
        empty = no_kind_message(kind)
    else:
        empty = NO_NOTES_MESSAGE

    if as_table and entries:
        _print_table(entries)
        return
    click.echo(format_entries(entries, empty))


@cli.command()
@click.argument("entry_id")
@click.pass_context
def show(ctx: click.Context, entry_id: str) -> None:
    """Show a single note by ID."""
    entry = by_id(_load_entries(_load_cfg(ctx)), entry_id)
    if entry is None:
        raise click.ClickException(no_id_message(entry_id))
    click.echo(format_entry(entry))


@cli.command()
@click.argument("substring")
@click.pass_context
def find(ctx: click.Context, substring: str) -> None:
    """Notes whose text contains SUBSTRING exactly (case-sensitive)."""
    matches = containing(_load_entries(_load_cfg(ctx)), substring)
    click.echo(format_entries(matches, NO_MATCH_MESSAGE))


# ---------------------------------------------------------------------------
# threadkeeper add
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("text")
@click.option("--kind", "-k", default=None, help="Category tag, e.g. teach.note")
@click.option("--file", "-f", "source_file", default=None, help="Source file the note refers to")
@click.option("--timestamp", default=None, help="ISO-8601 timestamp (default: now)")
@click.option("--yes", "-y", "approved", is_flag=True, help="Store without asking for confirmation")
@click.pass_context
def add(
    ctx: click.Context,
    text: str,
    kind: str | None,
    source_file: str | None,
    timestamp: str | None,
    approved: bool,
) -> None:
    """Append TEXT verbatim to the store."""
    cfg = _load_cfg(ctx)
    if not approved:
        click.echo("About to store, verbatim:")
        click.echo(text)
        approved = click.confirm("Store this text?", default=False)
    if not approved:
        raise click.ClickException("Not stored: text was not approved.")

    try:
        entry = NoteStore(cfg.store_path).add(text, file=source_file, timestamp=timestamp, kind=kind)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Stored note {entry.id}.")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    cli(standalone_mode=True)


if __name__ == "__main__":
    main()
