# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for genro-dbal (gdbal command).

Connection settings come from an ini file (--config) or from the
GENRO_DBAL_* environment variables.

Commands:
    query: Run a read query and print the rows
    execute: Run a statement on the primary and print the affected rows
    ping: Check that primary and replica answer
    version: Show version info
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .adapter import Adapter
from .config import DbalConfig, config_from_env, config_from_ini
from .exceptions import DbalException

console = Console()


def _load_config(config_path: str | None) -> DbalConfig:
    if config_path:
        return config_from_ini(config_path)
    return config_from_env()


def _get_adapter(ctx: click.Context) -> Adapter:
    """Create the adapter on first use and close it when the command ends."""
    if ctx.obj.get("adapter") is None:
        adapter = Adapter.from_config(ctx.obj["config"])
        ctx.obj["adapter"] = adapter
        ctx.call_on_close(adapter.close_connection)
    return ctx.obj["adapter"]


def _print_rows(rows: list[dict[str, Any]], title: str | None = None) -> None:
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return

    table = Table(title=title)
    for column in rows[0]:
        table.add_column(str(column), style="cyan" if column == "id" else None)
    for row in rows:
        table.add_row(*("[dim]NULL[/dim]" if v is None else str(v) for v in row.values()))
    console.print(table)


def _fail(error: DbalException) -> None:
    console.print(f"[red]error:[/red] {escape(str(error))}")
    sys.exit(1)


# ============================================================================
# CLI Commands
# ============================================================================


@click.group()
@click.version_option(package_name="genro-dbal")
@click.option("--config", "-c", "config_path", default=None, help="Ini file with a [database] section.")
@click.option("--verbose", "-v", is_flag=True, help="Log every query.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Genro DBAL - primary/replica database access."""
    try:
        config = _load_config(config_path)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
        config.log_queries = True

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@main.command("query")
@click.argument("sql")
@click.option("--param", "-p", "params", multiple=True, help="Positional parameter (repeatable).")
@click.option("--primary", is_flag=True, help="Read from the primary instead of a replica.")
@click.pass_context
def query_cmd(ctx: click.Context, sql: str, params: tuple[str, ...], primary: bool) -> None:
    """Run a read query and print the rows."""
    adapter = _get_adapter(ctx)
    try:
        rows = adapter.fetch_all(sql, list(params), use_primary=primary)
    except DbalException as e:
        _fail(e)
        return
    _print_rows(rows, title="primary" if primary else "replica")


@main.command("execute")
@click.argument("sql")
@click.option("--param", "-p", "params", multiple=True, help="Positional parameter (repeatable).")
@click.pass_context
def execute_cmd(ctx: click.Context, sql: str, params: tuple[str, ...]) -> None:
    """Run a statement on the primary and print the affected rows."""
    adapter = _get_adapter(ctx)
    try:
        count = adapter.query_primary(sql, list(params)).row_count()
    except DbalException as e:
        _fail(e)
        return
    console.print(f"[green]{max(count, 0)} row(s) affected[/green]")


@main.command("ping")
@click.pass_context
def ping_cmd(ctx: click.Context) -> None:
    """Check that primary and replica answer SELECT 1."""
    adapter = _get_adapter(ctx)
    failed = False
    for label, use_primary in (("primary", True), ("replica", False)):
        try:
            adapter.fetch_one("SELECT 1", use_primary=use_primary)
            console.print(f"{label}: [green]ok[/green]")
        except DbalException as e:
            console.print(f"{label}: [red]{escape(str(e))}[/red]")
            failed = True
    if failed:
        sys.exit(1)


@main.command("version")
def version_cmd() -> None:
    """Show version information."""
    from genro_dbal import __version__

    console.print(f"genro-dbal {__version__}")


if __name__ == "__main__":
    main()
