"""CLI command groups and the helpers they share."""

import json
import os
from typing import Any, Optional

import typer
from rich.console import Console

from ..drivers import BaseDriver, create_driver
from ..errors import DriverError

DRIVER_HELP = "Backend: mysql, sqlite or libsql"
TARGET_HELP = "SQLite file path, libSQL URL or MySQL database (defaults from settings)"


def open_driver(driver: str, target: Optional[str], history: bool = True) -> BaseDriver:
    """Create a driver with the standard extensions attached."""
    from ..extensions import create_standard_extensions

    extensions = create_standard_extensions(history=None if history else False)
    return create_driver(driver, target, extensions=extensions)


def load_json_argument(value: str) -> Any:
    """Parse a JSON argument given inline or as a path to a JSON file."""
    if os.path.isfile(value):
        with open(value, encoding="utf-8") as f:
            return json.load(f)
    return json.loads(value)


def fail(console: Console, error: Exception) -> None:
    """Print a typed error and exit with status 1."""
    if isinstance(error, DriverError):
        console.print(f"[red]{error.code}: {error.message}[/red]")
    else:
        console.print(f"[red]Error: {error}[/red]")
    raise typer.Exit(1)
