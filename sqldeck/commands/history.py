"""Query history commands."""

import typer
from typing import Optional
from rich.console import Console
from rich.table import Table

from ..config import settings
from ..history import QueryHistoryDatabase

app = typer.Typer(help="Query history commands")
console = Console()


@app.command("list")
def list_history(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries to show"),
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Filter by status (success, error)"),
    driver: Optional[str] = typer.Option(None, "--driver", "-d", help="Filter by driver dialect"),
):
    """Show recently executed statements."""
    with QueryHistoryDatabase(settings.history_db_path, max_sql_size=settings.history_max_sql_size) as db:
        entries = db.get_recent(limit=limit, status=status, driver=driver)

    if not entries:
        console.print("[yellow]No history entries found.[/yellow]")
        return

    table = Table(title="Query History")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Time", style="blue")
    table.add_column("Driver", style="magenta")
    table.add_column("Status")
    table.add_column("Rows", justify="right")
    table.add_column("Duration", justify="right")
    table.add_column("SQL", style="green")

    for entry in entries:
        status_text = "[green]success[/green]" if entry["status"] == "success" else "[red]error[/red]"
        duration = f"{entry['duration_ms']:.1f} ms" if entry["duration_ms"] is not None else "-"
        rows = entry["rows_returned"] if entry["rows_returned"] else entry["rows_affected"]
        table.add_row(
            str(entry["id"]),
            entry["timestamp"][:19],
            entry["driver"],
            status_text,
            "-" if rows is None else str(rows),
            duration,
            entry["sql"] if entry["status"] == "success" else f"{entry['sql']}\n[red]{entry['error_message']}[/red]",
        )

    console.print(table)
