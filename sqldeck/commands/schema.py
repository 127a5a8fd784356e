"""Schema browsing commands."""

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table

from ..drivers import create_driver
from ..errors import DriverError
from . import DRIVER_HELP, TARGET_HELP, fail

app = typer.Typer(help="Schema introspection commands")
console = Console()


def _format_size(size: Optional[int]) -> str:
    if size is None:
        return "-"
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


@app.command("list")
def list_schemas(
    driver: str = typer.Option("sqlite", "--driver", "-d", help=DRIVER_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """List schemas with their tables, views and triggers."""
    try:
        with create_driver(driver, target) as db:
            schemas = db.introspect()
    except (DriverError, ValueError) as e:
        fail(console, e)

    if not len(schemas):
        console.print("[yellow]No schemas found.[/yellow]")
        return

    for schema_name in schemas:
        schema = schemas[schema_name]
        table = Table(title=f"Schema: {schema_name}")
        table.add_column("Name", style="cyan")
        table.add_column("Type", style="green")
        table.add_column("Columns", justify="right")
        table.add_column("Primary Key", style="magenta")
        table.add_column("Size", justify="right")

        for item in schema.tables:
            table.add_row(
                item.name,
                item.type.value,
                str(len(item.columns)),
                ", ".join(item.pk),
                _format_size(item.stats.size_in_bytes),
            )
        for trigger in schema.triggers:
            table.add_row(
                trigger.name,
                trigger.type.value,
                "",
                "",
                f"{trigger.timing} {trigger.event or ''} ON {trigger.table_name}".strip(),
            )

        console.print(table)


@app.command("describe")
def describe_table(
    schema_name: str = typer.Argument(..., help="Schema (database) name"),
    table_name: str = typer.Argument(..., help="Table name"),
    driver: str = typer.Option("sqlite", "--driver", "-d", help=DRIVER_HELP),
    target: Optional[str] = typer.Option(None, "--target", "-t", help=TARGET_HELP),
):
    """Show columns and constraints of one table."""
    try:
        with create_driver(driver, target) as db:
            table_info = db.table_schema(schema_name, table_name)
    except (DriverError, ValueError) as e:
        fail(console, e)

    console.print(f"[bold]{table_info.type.value.title()}: {schema_name}.{table_name}[/bold]")
    if table_info.auto_increment:
        console.print("  Auto increment: Yes")

    columns = Table(title="Columns")
    columns.add_column("Name", style="cyan")
    columns.add_column("Type", style="green")
    columns.add_column("Nullable")
    columns.add_column("Default")
    columns.add_column("PK", style="magenta")

    for col in table_info.columns:
        constraint = col.constraint
        default = ""
        if constraint is not None:
            if constraint.default_expression is not None:
                default = constraint.default_expression
            elif constraint.default_value is not None:
                default = repr(constraint.default_value)
        columns.add_row(col.name, col.type, "Yes" if col.nullable else "No", default, "Yes" if col.pk else "")
    console.print(columns)

    if table_info.constraints:
        constraints = Table(title="Constraints")
        constraints.add_column("Name", style="cyan")
        constraints.add_column("Kind", style="green")
        constraints.add_column("Columns")
        constraints.add_column("References", style="blue")
        for con in table_info.constraints:
            reference = ""
            if con.foreign_key is not None:
                fk = con.foreign_key
                target_name = f"{fk.foreign_schema_name}.{fk.foreign_table_name}".lstrip(".")
                reference = f"{target_name}({', '.join(str(c) for c in fk.foreign_columns)})"
            constraints.add_row(con.name or "-", con.kind.value, ", ".join(con.columns), reference)
        console.print(constraints)
