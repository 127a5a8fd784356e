"""Driver construction from a backend name."""

import logging
from typing import Optional

from .base import BaseDriver

logger = logging.getLogger(__name__)

BACKENDS = ("mysql", "sqlite", "libsql")


def create_driver(
    backend: str,
    target: Optional[str] = None,
    extensions=None,
    **kwargs,
) -> BaseDriver:
    """Create a driver for ``backend``.

    Args:
        backend: One of 'mysql', 'sqlite' or 'libsql'
        target: SQLite file path, libSQL URL, or MySQL database name.
            Falls back to the matching setting when omitted.
        extensions: ExtensionRegistry injected into the driver
        **kwargs: Passed through to the driver constructor

    Returns:
        An unconnected driver; connections open on first use
    """
    normalized = (backend or "").strip().lower()
    logger.debug("Creating %s driver (target=%s)", normalized, target)

    if normalized == "mysql":
        from .mysql import PyMySQLDriver
        return PyMySQLDriver(database=target, extensions=extensions, **kwargs)

    if normalized == "sqlite":
        from .sqlite import SQLiteDriver
        return SQLiteDriver(path=target, extensions=extensions, **kwargs)

    if normalized == "libsql":
        from .libsql import LibSQLDriver
        return LibSQLDriver(url=target, extensions=extensions, **kwargs)

    raise ValueError(f"Unsupported backend: {backend}. Choose one of: {', '.join(BACKENDS)}")
