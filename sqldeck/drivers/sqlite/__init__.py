"""SQLite-family driver."""

from .ddl import SQLiteSchemaChangeGenerator
from .driver import SQLITE_COLLATION_LIST, SQLiteLikeDriver, map_sqlite_column
from .transport import SQLiteDriver

__all__ = [
    "SQLITE_COLLATION_LIST",
    "SQLiteDriver",
    "SQLiteLikeDriver",
    "SQLiteSchemaChangeGenerator",
    "map_sqlite_column",
]
