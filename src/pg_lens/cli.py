"""
Command-line interface for pg_lens.

Provides table-info, list-tables, search-tables and suggest-joins commands
against a live PostgreSQL database or an offline YAML schema file.
"""

from __future__ import annotations

import json
import logging
import math
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from pg_lens import __version__
from pg_lens.config import ConnectionSettings
from pg_lens.errors import PgLensError
from pg_lens.inference import JoinInferrer
from pg_lens.metadata import InMemoryMetadataProvider, MetadataProvider, PostgresMetadataProvider
from pg_lens.models import TableRef
from pg_lens.render import (
    render_join_suggestions,
    render_search_results,
    render_table_info,
    render_table_list,
)
from pg_lens.snapshot import SchemaSnapshotter

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with Rich handler."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
    )


def _emit(text: str) -> None:
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _fail(message: str) -> None:
    err_console.print(f"Error: {message}", style="red", markup=False, highlight=False, soft_wrap=True)
    sys.exit(1)


@contextmanager
def _open_provider(ctx: click.Context, timeout: Optional[float] = None) -> Iterator[MetadataProvider]:
    """
    Yield the metadata provider selected by the global options.

    A request timeout also caps each catalog query on the server.
    """
    options = ctx.obj
    if options["schema_file"] is not None:
        yield InMemoryMetadataProvider.from_yaml(options["schema_file"])
        return

    settings = ConnectionSettings.from_env(
        host=options["host"],
        port=options["port"],
        database=options["database"],
        user=options["user"],
        password=options["password"],
        ssl=options["ssl"],
        statement_timeout=None if timeout is None else max(1, math.ceil(timeout * 1000)),
    )
    with PostgresMetadataProvider(settings) as provider:
        yield provider


@click.group()
@click.version_option(version=__version__, prog_name="pg-lens")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.option("--host", type=str, default=None, help="Database host (POSTGRES_HOST, default localhost)")
@click.option("--port", type=int, default=None, help="Database port (POSTGRES_PORT, default 5432)")
@click.option("--database", type=str, default=None, help="Database name (POSTGRES_DATABASE)")
@click.option("--user", type=str, default=None, help="Database user (POSTGRES_USER)")
@click.option("--password", type=str, default=None, help="Database password (POSTGRES_PASSWORD)")
@click.option("--ssl/--no-ssl", default=None, help="Require SSL (POSTGRES_SSL)")
@click.option(
    "--schema-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML schema file to inspect instead of a live database",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    host: Optional[str],
    port: Optional[int],
    database: Optional[str],
    user: Optional[str],
    password: Optional[str],
    ssl: Optional[bool],
    schema_file: Optional[Path],
) -> None:
    """
    pg-lens - Read-only PostgreSQL introspection

    Inspect tables and get JOIN suggestions derived from foreign keys.
    """
    setup_logging(verbose)
    ctx.obj = {
        "host": host,
        "port": port,
        "database": database,
        "user": user,
        "password": password,
        "ssl": ssl,
        "schema_file": schema_file,
    }


@cli.command("table-info")
@click.argument("table_name")
@click.pass_context
def table_info(ctx: click.Context, table_name: str) -> None:
    """
    Show columns, keys, foreign keys and indexes of a table.

    TABLE_NAME may include a schema: schema.table
    """
    try:
        with _open_provider(ctx) as provider:
            snapshot = SchemaSnapshotter(provider).get_table_info(table_name)
    except (PgLensError, ValueError) as e:
        _fail(f"getting table info: {e}")
        return

    if snapshot is None:
        _emit(f"Table '{table_name}' not found")
        return
    _emit(render_table_info(snapshot))


@cli.command("list-tables")
@click.pass_context
def list_tables(ctx: click.Context) -> None:
    """List all accessible tables."""
    try:
        with _open_provider(ctx) as provider:
            tables = SchemaSnapshotter(provider).list_tables()
    except (PgLensError, ValueError) as e:
        _fail(f"listing tables: {e}")
        return
    _emit(render_table_list(tables))


@cli.command("search-tables")
@click.argument("pattern")
@click.pass_context
def search_tables(ctx: click.Context, pattern: str) -> None:
    """
    Search tables by regex on table or schema name (case-sensitive).
    """
    try:
        with _open_provider(ctx) as provider:
            tables = SchemaSnapshotter(provider).search_tables(pattern)
    except (PgLensError, ValueError) as e:
        _fail(f"searching tables: {e}")
        return
    _emit(render_search_results(pattern, tables))


@cli.command("suggest-joins")
@click.argument("new_table")
@click.argument("existing_tables", nargs=-1, required=True)
@click.option("--naming-heuristics", is_flag=True, help="Also match <table>_id column names")
@click.option("--timeout", type=float, default=None, help="Abort after this many seconds")
@click.option("--workers", type=click.IntRange(min=1), default=1, help="Table pairs analysed concurrently")
@click.option("--json", "as_json", is_flag=True, help="Print suggestions as JSON")
@click.pass_context
def suggest_joins(
    ctx: click.Context,
    new_table: str,
    existing_tables: Tuple[str, ...],
    naming_heuristics: bool,
    timeout: Optional[float],
    workers: int,
    as_json: bool,
) -> None:
    """
    Suggest JOIN expressions for adding NEW_TABLE to a query.

    Tables are given as table:alias (schema.table:alias also works).

    Examples:

        pg-lens suggest-joins order_items:oi users:u orders:o

        pg-lens --schema-file schema.yaml suggest-joins orders:o users:u --json
    """
    try:
        new_ref = TableRef.parse(new_table)
        existing_refs = [TableRef.parse(spec) for spec in existing_tables]
        with _open_provider(ctx, timeout) as provider:
            inferrer = JoinInferrer(
                provider,
                naming_heuristics=naming_heuristics,
                max_workers=workers,
            )
            suggestions = inferrer.suggest_joins(existing_refs, new_ref, timeout=timeout)
    except (PgLensError, ValueError) as e:
        _fail(f"generating JOIN suggestions: {e}")
        return

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in suggestions], indent=2))
        return
    _emit(render_join_suggestions(new_ref, suggestions))


def main() -> None:
    """Entry point."""
    cli()


if __name__ == "__main__":
    main()
