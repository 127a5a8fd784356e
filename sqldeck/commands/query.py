"""Statement execution command."""

import json
import typer
from typing import Any, List, Optional
from rich.console import Console
from rich.table import Table

from ..drivers import ResultSet
from ..errors import DriverError
from . import DRIVER_HELP, TARGET_HELP, fail, open_driver

console = Console()


def parse_argument(value: str) -> Any:
    """Interpret a positional argument as JSON when possible, else as text."""
    try:
        return json.loads(value)
    except ValueError:
        return value


def print_result(result: ResultSet) -> None:
    if result.headers:
        table = Table()
        for header in result.headers:
            table.add_column(header.display_name, style="cyan")
        for row in result.rows:
            table.add_row(*["NULL" if row[h.name] is None else str(row[h.name]) for h in result.headers])
        console.print(table)
        console.print(f"[dim]{len(result.rows)} row(s)[/dim]")
    else:
        console.print(f"[green]{result.stats.rows_affected} row(s) affected[/green]")

    if result.last_insert_rowid is not None:
        console.print(f"[dim]Last insert rowid: {result.last_insert_rowid}[/dim]")


def run_query(
    sql: str = typer.Argument(..., help="SQL statement; use ? for positional arguments"),
    args: Optional[List[str]] = typer.Argument(None, help="Positional arguments (JSON literals or text)"),
    driver: str = typer.Option("sqlite", "--driver", "-d", help=DRIVER_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    history: bool = typer.Option(True, "--history/--no-history", help="Record the statement in query history"),
):
    """Execute one SQL statement and print its result."""
    params = [parse_argument(a) for a in args or []]
    try:
        with open_driver(driver, target, history=history) as db:
            result = db.query(sql, params)
    except (DriverError, ValueError) as e:
        fail(console, e)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), default=str))
        return
    print_result(result)
