"""MySQL-family driver: catalog queries and column mapping."""

from typing import Any, Dict, List, Optional

from ...errors import TableNotFoundError
from ..base import BaseDriver
from ..flags import MYSQL_FLAGS, DriverFlags
from ..introspection import CatalogRows, build_schema_collection
from ..models import Column, ColumnConstraint, SchemaCollection, Statement, Table
from ..sql_helper import escape_mysql_value
from ..type_mappers import MySQLTypeMapper
from .ddl import MySQLSchemaChangeGenerator

SYSTEM_SCHEMAS = ("mysql", "information_schema", "performance_schema", "sys")

MYSQL_COLLATION_LIST = [
    "utf8mb4_0900_ai_ci",
    "utf8mb4_0900_as_cs",
    "utf8mb4_0900_bin",
    "utf8mb4_general_ci",
    "utf8mb4_unicode_ci",
    "utf8mb4_unicode_520_ci",
    "utf8mb4_bin",
    "utf8mb3_general_ci",
    "utf8mb3_unicode_ci",
    "utf8mb3_bin",
    "latin1_swedish_ci",
    "latin1_general_ci",
    "latin1_general_cs",
    "latin1_bin",
    "ascii_general_ci",
    "ascii_bin",
    "binary",
]

_SYSTEM_LIST = ", ".join(f"'{s}'" for s in SYSTEM_SCHEMAS)
_NOT_SYSTEM = f"TABLE_SCHEMA NOT IN ({_SYSTEM_LIST})"


def map_mysql_column(row: Dict[str, Any]) -> Column:
    """Convert one information_schema.columns row into a Column."""
    extra = (row.get("EXTRA") or "").lower()
    nullable = row.get("IS_NULLABLE") != "NO"
    default = row.get("COLUMN_DEFAULT")

    constraint = ColumnConstraint(
        not_null=not nullable,
        primary_key=row.get("COLUMN_KEY") == "PRI",
        auto_increment="auto_increment" in extra,
        collate=row.get("COLLATION_NAME") or None,
    )

    if default is None:
        if nullable:
            constraint.default_expression = "NULL"
    elif "default_generated" in extra:
        constraint.default_expression = str(default)
    else:
        constraint.default_value = default

    return Column(
        name=row["COLUMN_NAME"],
        type=row.get("COLUMN_TYPE") or "",
        constraint=constraint,
        pk=constraint.primary_key,
    )


class MySQLLikeDriver(BaseDriver):
    """Shared behaviour of MySQL-compatible drivers.

    Subclasses only provide the transport.
    """

    type_mapper = MySQLTypeMapper()
    generator_class = MySQLSchemaChangeGenerator

    def get_flags(self) -> DriverFlags:
        return MYSQL_FLAGS

    def escape_value(self, value: Any) -> str:
        return escape_mysql_value(value)

    def get_collation_list(self) -> List[str]:
        return list(MYSQL_COLLATION_LIST)

    def current_schema(self) -> Optional[str]:
        result = self._execute(Statement(sql="SELECT DATABASE() AS db"))
        if not result.rows:
            return None
        return result.rows[0].get("db")

    def introspect(self) -> SchemaCollection:
        """Introspect every non-system database on the server."""
        results = self._run_catalog_queries({
            "schemas": (
                "SELECT SCHEMA_NAME FROM information_schema.SCHEMATA "
                f"WHERE SCHEMA_NAME NOT IN ({_SYSTEM_LIST})"
            ),
            "tables": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, TABLE_TYPE, DATA_LENGTH, INDEX_LENGTH "
                f"FROM information_schema.tables WHERE {_NOT_SYSTEM}"
            ),
            "columns": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, COLUMN_TYPE, DATA_TYPE, EXTRA, "
                "COLUMN_KEY, IS_NULLABLE, COLUMN_DEFAULT, COLLATION_NAME "
                f"FROM information_schema.columns WHERE {_NOT_SYSTEM} "
                "ORDER BY TABLE_SCHEMA, TABLE_NAME, ORDINAL_POSITION"
            ),
            "constraints": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, CONSTRAINT_NAME, CONSTRAINT_TYPE "
                f"FROM information_schema.table_constraints WHERE {_NOT_SYSTEM} "
                "AND CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')"
            ),
            "constraint_columns": (
                "SELECT CONSTRAINT_NAME, TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, "
                "REFERENCED_TABLE_SCHEMA, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME "
                f"FROM information_schema.key_column_usage WHERE {_NOT_SYSTEM} "
                "ORDER BY TABLE_SCHEMA, TABLE_NAME, CONSTRAINT_NAME, ORDINAL_POSITION"
            ),
            "triggers": (
                "SELECT TRIGGER_NAME, TRIGGER_SCHEMA, EVENT_OBJECT_SCHEMA, EVENT_OBJECT_TABLE, "
                "ACTION_TIMING, ACTION_STATEMENT, EVENT_MANIPULATION "
                "FROM information_schema.triggers "
                f"WHERE TRIGGER_SCHEMA NOT IN ({_SYSTEM_LIST})"
            ),
        })

        return build_schema_collection(
            CatalogRows(**results),
            map_mysql_column,
            strict_foreign_keys=self.strict_foreign_keys,
        )

    def table_schema(self, schema_name: str, table_name: str) -> Table:
        """Introspect one table with catalog queries filtered to it."""
        where = (
            f"TABLE_SCHEMA = {self.escape_value(schema_name)} "
            f"AND TABLE_NAME = {self.escape_value(table_name)}"
        )
        results = self._run_catalog_queries({
            "tables": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, TABLE_TYPE, DATA_LENGTH, INDEX_LENGTH "
                f"FROM information_schema.tables WHERE {where}"
            ),
            "columns": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, COLUMN_TYPE, DATA_TYPE, EXTRA, "
                "COLUMN_KEY, IS_NULLABLE, COLUMN_DEFAULT, COLLATION_NAME "
                f"FROM information_schema.columns WHERE {where} ORDER BY ORDINAL_POSITION"
            ),
            "constraints": (
                "SELECT TABLE_SCHEMA, TABLE_NAME, CONSTRAINT_NAME, CONSTRAINT_TYPE "
                f"FROM information_schema.table_constraints WHERE {where} "
                "AND CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')"
            ),
            "constraint_columns": (
                "SELECT CONSTRAINT_NAME, TABLE_SCHEMA, TABLE_NAME, COLUMN_NAME, "
                "REFERENCED_TABLE_SCHEMA, REFERENCED_TABLE_NAME, REFERENCED_COLUMN_NAME "
                f"FROM information_schema.key_column_usage WHERE {where} "
                "ORDER BY CONSTRAINT_NAME, ORDINAL_POSITION"
            ),
        })

        collection = build_schema_collection(
            CatalogRows(schemas=[{"SCHEMA_NAME": schema_name}], **results),
            map_mysql_column,
            strict_foreign_keys=self.strict_foreign_keys,
        )
        table = collection.get_table(schema_name, table_name)
        if table is None:
            raise TableNotFoundError(schema_name, table_name)
        return table
