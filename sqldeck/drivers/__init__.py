"""Driver layer for sqldeck.

This module provides a backend-neutral interface over MySQL-family and
SQLite-family databases: capability flags, type mapping, schema
introspection, result normalisation and DDL generation.
"""

from .models import (
    Column,
    ColumnChange,
    ColumnConstraint,
    ConstraintChange,
    ConstraintKind,
    DatabaseChangeRequest,
    ForeignKey,
    ResultHeader,
    ResultSet,
    ResultStats,
    Schema,
    SchemaCollection,
    SchemaItemType,
    Statement,
    Table,
    TableChangeRequest,
    TableConstraint,
    TableStats,
    Trigger,
)
from .type_mappers import ColumnType, TypeMapper, MySQLTypeMapper, SQLiteTypeMapper
from .flags import DriverFlags, MYSQL_FLAGS, SQLITE_FLAGS, flags_for_backend, libsql_flags
from .result import RawResult, transform_raw_result
from .introspection import CatalogRows, build_schema_collection
from .ddl import SchemaChangeGenerator, generate_database_change, generate_table_change
from .base import BaseDriver
from .factory import BACKENDS, create_driver

__all__ = [
    # Data models
    "Column",
    "ColumnChange",
    "ColumnConstraint",
    "ConstraintChange",
    "ConstraintKind",
    "DatabaseChangeRequest",
    "ForeignKey",
    "ResultHeader",
    "ResultSet",
    "ResultStats",
    "Schema",
    "SchemaCollection",
    "SchemaItemType",
    "Statement",
    "Table",
    "TableChangeRequest",
    "TableConstraint",
    "TableStats",
    "Trigger",
    # Type mappers and flags
    "ColumnType",
    "TypeMapper",
    "MySQLTypeMapper",
    "SQLiteTypeMapper",
    "DriverFlags",
    "MYSQL_FLAGS",
    "SQLITE_FLAGS",
    "flags_for_backend",
    "libsql_flags",
    # Pure components
    "RawResult",
    "transform_raw_result",
    "CatalogRows",
    "build_schema_collection",
    "SchemaChangeGenerator",
    "generate_table_change",
    "generate_database_change",
    # Drivers
    "BaseDriver",
    "BACKENDS",
    "create_driver",
]
