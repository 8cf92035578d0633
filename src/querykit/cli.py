"""
CLI: ``querykit``: run ad-hoc parameterized queries.

Positional ``ARGS`` bind to ``@0, @1, ...`` in order.  Arguments that parse
as integers are bound as integers, everything else as text.

Examples:
    querykit engines
    querykit -c app.db scalar "SELECT COUNT(*) FROM users WHERE age > @0" 30
    querykit -c app.db query "SELECT * FROM users WHERE name = @0" alice --json
    querykit -c app.db execute "INSERT INTO users (name) VALUES (@0)" bob --identity
"""

from __future__ import annotations

import json
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from querykit.adapters.registry import adapter_registry
from querykit.errors import QueryKitError
from querykit.executor import QueryExecutor
from querykit.logging import configure_logging
from querykit.settings import QueryKitSettings, create_executor, get_settings

app = typer.Typer(
    name="querykit",
    help="querykit: parameterized SQL against SQLite, MySQL and SQL Server.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    engine: str | None = typer.Option(None, "--engine", "-e", help="Adapter name."),
    connection: str | None = typer.Option(None, "--connection", "-c", help="Connection string or SQLite path."),
    timeout: int | None = typer.Option(None, "--timeout", help="Command timeout in seconds."),
) -> None:
    """querykit CLI: defaults come from QUERYKIT_* environment variables."""
    settings = get_settings()
    overrides: dict[str, Any] = {}
    if engine is not None:
        overrides["engine"] = engine.strip().lower()
    if connection is not None:
        overrides["connection_string"] = connection
    if timeout is not None:
        overrides["command_timeout"] = timeout
    settings = settings.model_copy(update=overrides)
    configure_logging(settings.log_level, json_format=settings.log_format == "json")
    ctx.obj = settings


# ── Helpers ──────────────────────────────────────────────────────────────


def parse_arg(raw: str) -> int | str:
    try:
        return int(raw)
    except ValueError:
        return raw


def _executor(ctx: typer.Context) -> QueryExecutor:
    settings: QueryKitSettings = ctx.obj or get_settings()
    return create_executor(settings)


def _fail(exc: QueryKitError) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({exc.category.value}): {exc.message}")
    raise typer.Exit(code=1)


def _print_table(rows: list[dict[str, Any]]) -> None:
    table = Table(show_lines=False, pad_edge=False)
    for column in rows[0]:
        table.add_column(column, overflow="fold")
    for row in rows:
        table.add_row(*("NULL" if v is None else str(v) for v in row.values()))
    console.print(table)


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("engines")
def engines() -> None:
    """List registered database adapters."""
    for name in adapter_registry.list_adapters():
        console.print(name)


@app.command("scalar")
def scalar(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL with @0, @1, ... placeholders"),
    args: list[str] | None = typer.Argument(None, help="Parameter values"),
) -> None:
    """Print the first column of the first row."""
    try:
        value = _executor(ctx).get_object(sql, *[parse_arg(a) for a in args or []])
    except QueryKitError as exc:
        _fail(exc)
    console.print("NULL" if value is None else str(value))


@app.command("query")
def query(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL with @0, @1, ... placeholders"),
    args: list[str] | None = typer.Argument(None, help="Parameter values"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Print every row of a query."""
    try:
        rows = _executor(ctx).get_table(sql, *[parse_arg(a) for a in args or []])
    except QueryKitError as exc:
        _fail(exc)

    if json_out:
        console.print_json(json.dumps(rows, default=str))
        return
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return
    _print_table(rows)


@app.command("execute")
def execute(
    ctx: typer.Context,
    sql: str = typer.Argument(..., help="SQL with @0, @1, ... placeholders"),
    args: list[str] | None = typer.Argument(None, help="Parameter values"),
    identity: bool = typer.Option(False, "--identity", help="Print the inserted row's identity."),
) -> None:
    """Execute a statement and print rows affected (or the new identity)."""
    values = [parse_arg(a) for a in args or []]
    try:
        executor = _executor(ctx)
        if identity:
            console.print(str(executor.execute_get_identity(sql, *values)))
        else:
            console.print(f"{executor.execute(sql, *values)} row(s) affected")
    except QueryKitError as exc:
        _fail(exc)


__all__ = ["app", "parse_arg"]
