"""sqldeck CLI - Main entry point."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from .commands import ddl, history, query, schema
from .config import settings

app = typer.Typer(
    name="sqldeck",
    help="Browse schemas, run queries and generate DDL on MySQL and SQLite backends",
    add_completion=False,
)

# Add subcommands
app.add_typer(schema.app, name="schema")
app.add_typer(ddl.app, name="ddl")
app.add_typer(history.app, name="history")
app.command("query")(query.run_query)

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  MySQL: {settings.mysql_user or '(no user)'}@{settings.mysql_host}:{settings.mysql_port}")
    console.print(f"  MySQL database: {settings.mysql_database or 'Not set'}")
    console.print(f"  SQLite path: {settings.sqlite_path}")
    console.print(f"  libSQL URL: {settings.libsql_url or 'Not set'}")
    console.print(f"  libSQL token configured: {'Yes' if settings.libsql_auth_token else 'No'}")
    console.print(f"  Big integers: {'On' if settings.big_int else 'Off'}")
    console.print(f"  Strict foreign keys: {'On' if settings.strict_foreign_keys else 'Off'}")
    console.print(f"  Introspection workers: {settings.introspection_workers}")
    console.print(f"  History: {'Enabled' if settings.history_enabled else 'Disabled'}")
    console.print(f"  History database: {settings.history_db_path or '~/.sqldeck/history.db'}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """
    sqldeck - one interface over MySQL-family and SQLite-family databases.

    Examples:

        sqldeck schema list --driver sqlite --target app.db

        sqldeck query "SELECT * FROM users WHERE id = ?" 1 -t app.db

        sqldeck ddl table change.json --driver mysql
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            datefmt="[%X]",
            handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        )


if __name__ == "__main__":
    app()
