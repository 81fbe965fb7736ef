"""
CLI: ``sqlchain`` — run statements and queries through a chain.

``exec`` runs every statement in one transaction, so a failing statement
leaves the database untouched.  ``query`` runs a single ``get_many`` and
renders the rows.
"""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from sqlchain.errors import ChainError
from sqlchain.factory import SqlChain
from sqlchain.logging import configure_logging
from sqlchain.refs import Ref
from sqlchain.settings import ChainSettings

app = typer.Typer(
    name="sqlchain",
    help="sqlchain — run SQL as fluent, short-circuiting chains.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        from sqlchain import __version__

        typer.echo(f"sqlchain {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """sqlchain CLI — execute statements and queries against a database."""


def _open(url: str | None) -> SqlChain:
    settings = ChainSettings() if url is None else ChainSettings(database_url=url)
    configure_logging(level=settings.log_level, json_format=settings.log_json, stream=sys.stderr)
    try:
        return SqlChain.from_settings(settings)
    except ChainError as e:
        _fail(e)


_DML_VERBS = ("INSERT", "UPDATE", "DELETE", "REPLACE", "MERGE")


def _is_dml(statement: str) -> bool:
    # DDL row counts are driver-specific (-1 on SQLite), so only DML is counted
    words = statement.split(None, 1)
    return bool(words) and words[0].upper() in _DML_VERBS


def _fail(error: BaseException) -> NoReturn:
    err_console.print(f"[bold red]Error[/bold red] ({type(error).__name__}): {escape(str(error))}")
    raise typer.Exit(code=1)


@app.command("exec")
def exec_(
    statements: list[str] = typer.Argument(..., help="Statements to run, in order"),
    url: str | None = typer.Option(None, "--url", "-u", help="Database URL or path"),
) -> None:
    """Run STATEMENTS in one transaction; nothing is committed if any fails."""
    factory = _open(url)
    counts: list[Ref[int]] = [Ref() for _ in statements]

    chain = factory.new_chain().begin()
    for statement, count in zip(statements, counts, strict=True):
        chain.exec(statement)
        if _is_dml(statement):
            chain.rows_affected(count)
    error = chain.commit().err()
    factory.close()

    if error is not None:
        _fail(error)

    table = Table(title="Statements")
    table.add_column("#", justify="right")
    table.add_column("Statement")
    table.add_column("Rows", justify="right")
    for i, (statement, count) in enumerate(zip(statements, counts, strict=True), start=1):
        table.add_row(str(i), escape(statement), str(count.get("-")))
    console.print(table)


@app.command()
def query(
    sql: str = typer.Argument(..., help="SELECT statement"),
    url: str | None = typer.Option(None, "--url", "-u", help="Database URL or path"),
    json_out: bool = typer.Option(False, "--json", help="JSON output"),
) -> None:
    """Run SQL and print every row."""
    factory = _open(url)
    rows: list[Any] = []
    error = factory.new_chain().get_many(rows, sql).err()
    factory.close()

    if error is not None:
        _fail(error)

    if json_out:
        console.print_json(json.dumps(rows, default=str))
        return

    if not rows:
        console.print("[dim]No rows[/dim]")
        return

    table = Table()
    if isinstance(rows[0], dict):
        columns = list(rows[0].keys())
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*(escape(str(row[c])) for c in columns))
    else:
        table.add_column("value")
        for row in rows:
            table.add_row(escape(str(row)))
    console.print(table)


if __name__ == "__main__":
    app()
