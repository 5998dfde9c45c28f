from __future__ import annotations

import json
import sys
from typing import Any, List, Optional

import psycopg
import typer

from querylog.config import get_settings
from querylog.domain.models import Error, LogEntry, Ok
from querylog.infrastructure.db_factory import apply_statement_timeout, get_sync_connection
from querylog.instrumentation import execute_logged
from querylog.rendering import render
from querylog.utils.logging import configure_logging

app = typer.Typer(help="querylog CLI.")


def _parse_param(raw: str) -> Any:
    """Parse a CLI parameter as JSON, falling back to the raw text."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"logger={settings.logger_name} level={settings.log_level} "
        f"purge={settings.purge_level}"
    )


@app.command("render")
def render_entry(
    query: str = typer.Option(..., "--query", "-q", help="Query text."),
    params: Optional[List[str]] = typer.Option(
        None,
        "--param",
        "-p",
        help="Query parameter, parsed as JSON when possible. Repeat for several.",
    ),
    query_time: int = typer.Option(0, "--query-time", help="Query time in microseconds."),
    decode_time: Optional[int] = typer.Option(
        None, "--decode-time", help="Decode time in microseconds."
    ),
    queue_time: Optional[int] = typer.Option(
        None, "--queue-time", help="Queue time in microseconds."
    ),
    error: bool = typer.Option(False, "--error", help="Mark the query as failed."),
) -> None:
    """
    Render a query log line from the given fields.
    """
    entry = LogEntry(
        query=query,
        params=[_parse_param(raw) for raw in params or []],
        query_time=query_time,
        decode_time=decode_time,
        queue_time=queue_time,
        result=Error("failed from CLI") if error else Ok(None),
    )
    typer.echo(render(entry))


@app.command("exec")
def exec_query(
    sql: str = typer.Argument(..., help="Statement to execute."),
    level: Optional[str] = typer.Option(
        None, "--level", "-l", help="Level to log the query at (default: debug)."
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging threshold (default from settings)."
    ),
) -> None:
    """
    Execute a statement against the configured database and log it.
    """
    settings = get_settings()
    configure_logging(level=log_level or settings.log_level)

    try:
        with get_sync_connection() as conn:
            with conn.cursor() as cur:
                apply_statement_timeout(cur, settings.db_statement_timeout_ms)
            rows = execute_logged(conn, sql, level=level)
    except psycopg.Error as exc:
        typer.echo(f"Query failed: {exc}", err=True)
        raise typer.Exit(code=1)

    if rows is None:
        typer.echo("OK")
    else:
        typer.echo(f"{len(rows)} row(s)")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
