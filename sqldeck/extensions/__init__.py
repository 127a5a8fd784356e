"""Driver extensions.

Extensions observe user queries. They are collected in an explicit
ExtensionRegistry handed to each driver rather than kept in global state.
"""

from typing import Optional

from .base import Extension, ExtensionRegistry
from .history import QueryHistoryExtension
from .query_log import QueryConsoleLogExtension


def create_standard_extensions(
    history: Optional[bool] = None,
    history_db_path: Optional[str] = None,
) -> ExtensionRegistry:
    """Build the registry used by default: console log plus history.

    Args:
        history: Record statements in the history database
            (defaults to settings.history_enabled)
        history_db_path: Override for settings.history_db_path
    """
    from ..config import settings

    registry = ExtensionRegistry([QueryConsoleLogExtension()])

    enabled = settings.history_enabled if history is None else history
    if enabled:
        registry.register(QueryHistoryExtension(
            db_path=history_db_path or settings.history_db_path,
            max_sql_size=settings.history_max_sql_size,
            retention_days=settings.history_retention_days,
        ))

    return registry


__all__ = [
    "Extension",
    "ExtensionRegistry",
    "QueryConsoleLogExtension",
    "QueryHistoryExtension",
    "create_standard_extensions",
]
