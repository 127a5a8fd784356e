"""DDL generation commands."""

import typer
from typing import Optional
from rich.console import Console
from rich.syntax import Syntax

from ..drivers import flags_for_backend, generate_database_change, generate_table_change
from ..errors import DriverError
from ..models import DatabaseChangeModel, TableChangeModel
from . import DRIVER_HELP, TARGET_HELP, fail, load_json_argument, open_driver

app = typer.Typer(help="Generate DDL from JSON change requests")
console = Console()


def _print_statements(statements) -> None:
    if not statements:
        console.print("[yellow]No changes.[/yellow]")
        return
    for stmt in statements:
        console.print(Syntax(stmt + ";", "sql", word_wrap=True))


@app.command("table")
def table_change(
    change_json: str = typer.Argument(..., help="Table change request as JSON text or a path to a JSON file"),
    driver: str = typer.Option("sqlite", "--driver", "-d", help=DRIVER_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
    execute: bool = typer.Option(False, "--execute", "-x", help="Run the statements against the target"),
):
    """Generate (and optionally run) statements for a table change."""
    try:
        request = TableChangeModel.model_validate(load_json_argument(change_json)).to_request()

        if not execute:
            statements = generate_table_change(flags_for_backend(driver), None, request)
            _print_statements(statements)
            return

        with open_driver(driver, target) as db:
            current = None
            if not request.is_create:
                current = db.table_schema(request.schema_name, request.old_name)
            statements = db.generate_table_change(request, current)
            _print_statements(statements)
            if statements:
                db.transaction(statements)
                console.print(f"[green]Executed {len(statements)} statement(s).[/green]")
    except (DriverError, ValueError) as e:
        fail(console, e)


@app.command("database")
def database_change(
    change_json: str = typer.Argument(..., help="Database change request as JSON text or a path to a JSON file"),
    driver: str = typer.Option("mysql", "--driver", "-d", help=DRIVER_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
    execute: bool = typer.Option(False, "--execute", "-x", help="Run the statements against the target"),
):
    """Generate (and optionally run) statements for a database change."""
    try:
        request = DatabaseChangeModel.model_validate(load_json_argument(change_json)).to_request()
        statements = generate_database_change(flags_for_backend(driver), request)
        _print_statements(statements)

        if execute and statements:
            with open_driver(driver, target) as db:
                db.transaction(statements)
            console.print(f"[green]Executed {len(statements)} statement(s).[/green]")
    except (DriverError, ValueError) as e:
        fail(console, e)
