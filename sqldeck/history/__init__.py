"""Query history module for sqldeck.

Keeps a local SQLite record of executed statements.
"""

from sqldeck.history.history_db import QueryHistoryDatabase, get_default_history_db_path

__all__ = [
    "QueryHistoryDatabase",
    "get_default_history_db_path",
]
