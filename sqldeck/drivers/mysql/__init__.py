"""MySQL-family driver."""

from .ddl import MySQLSchemaChangeGenerator
from .driver import MYSQL_COLLATION_LIST, MySQLLikeDriver, map_mysql_column
from .transport import PyMySQLDriver

__all__ = [
    "MYSQL_COLLATION_LIST",
    "MySQLLikeDriver",
    "MySQLSchemaChangeGenerator",
    "PyMySQLDriver",
    "map_mysql_column",
]
