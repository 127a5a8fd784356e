"""SQLite-family driver: pragma catalog normalisation and column mapping.

SQLite has no information_schema. The catalog queries below read
``sqlite_master`` and the table-valued pragma functions of every
attached database, and the rows are reshaped into the same catalog row
shape the MySQL queries return so both families share one join.
"""

import logging
import re
from collections import defaultdict
from typing import Any, Dict, List, Optional

from ...errors import TableNotFoundError
from ..base import BaseDriver, Row
from ..flags import SQLITE_FLAGS, DriverFlags
from ..introspection import CatalogRows, build_schema_collection
from ..models import Column, ColumnConstraint, ConstraintKind, SchemaCollection, Table
from ..sql_helper import escape_sql_value
from ..type_mappers import SQLiteTypeMapper
from .ddl import SQLiteSchemaChangeGenerator

logger = logging.getLogger(__name__)

SQLITE_COLLATION_LIST = ["BINARY", "NOCASE", "RTRIM"]

_AUTOINCREMENT_RE = re.compile(r"\bAUTOINCREMENT\b", re.IGNORECASE)
_TRIGGER_TIMING_RE = re.compile(r"\b(BEFORE|AFTER|INSTEAD\s+OF)\b", re.IGNORECASE)
_TRIGGER_EVENT_RE = re.compile(r"\b(INSERT|UPDATE|DELETE)\b", re.IGNORECASE)


def map_sqlite_column(row: Row) -> Column:
    """Convert one normalised pragma_table_xinfo row into a Column."""
    is_pk = bool(row.get("PK"))
    constraint = ColumnConstraint(
        not_null=bool(row.get("NOT_NULL")),
        primary_key=is_pk,
        auto_increment=bool(row.get("AUTO_INCREMENT")),
        default_expression=row.get("COLUMN_DEFAULT"),
    )
    return Column(
        name=row["COLUMN_NAME"],
        type=row.get("COLUMN_TYPE") or "",
        constraint=constraint,
        pk=is_pk,
    )


def _parse_trigger(sql: str):
    timing = _TRIGGER_TIMING_RE.search(sql or "")
    event = _TRIGGER_EVENT_RE.search(sql or "")
    return (
        " ".join(timing.group(1).upper().split()) if timing else "BEFORE",
        event.group(1).upper() if event else None,
    )


class SQLiteLikeDriver(BaseDriver):
    """Shared behaviour of SQLite-compatible drivers.

    Subclasses only provide the transport.
    """

    type_mapper = SQLiteTypeMapper()
    generator_class = SQLiteSchemaChangeGenerator

    def get_flags(self) -> DriverFlags:
        return SQLITE_FLAGS

    def escape_value(self, value: Any) -> str:
        return escape_sql_value(value)

    def get_collation_list(self) -> List[str]:
        return list(SQLITE_COLLATION_LIST)

    def current_schema(self) -> Optional[str]:
        # SQLite has no notion of a selected database
        return None

    def _schema_names(self) -> List[str]:
        rows = self._run_catalog_queries({"schemas": "PRAGMA database_list"})["schemas"]
        return [r["name"] for r in rows if r["name"] != "temp"]

    def _catalog_queries(self, schemas: List[str], table_name: Optional[str] = None) -> Dict[str, str]:
        """Build the UNION ALL catalog queries over ``schemas``."""
        table_filter = f" AND m.name = {self.escape_value(table_name)}" if table_name else ""

        def union(template: str, order_by: str) -> str:
            parts = [
                template.format(
                    literal=self.escape_value(s),
                    master=f"{self.escape_id(s)}.sqlite_master",
                    filter=table_filter,
                )
                for s in schemas
            ]
            return " UNION ALL ".join(parts) + f" ORDER BY {order_by}"

        return {
            "tables": union(
                "SELECT {literal} AS TABLE_SCHEMA, m.name AS TABLE_NAME, "
                "CASE m.type WHEN 'view' THEN 'VIEW' ELSE 'BASE TABLE' END AS TABLE_TYPE, "
                "m.sql AS TABLE_SQL "
                "FROM {master} AS m "
                "WHERE m.type IN ('table', 'view') AND m.name NOT LIKE 'sqlite_%'{filter}",
                "TABLE_SCHEMA, TABLE_NAME",
            ),
            "columns": union(
                "SELECT {literal} AS TABLE_SCHEMA, m.name AS TABLE_NAME, p.cid AS CID, "
                "p.name AS COLUMN_NAME, p.type AS COLUMN_TYPE, p.\"notnull\" AS NOT_NULL, "
                "p.dflt_value AS COLUMN_DEFAULT, p.pk AS PK "
                "FROM {master} AS m JOIN pragma_table_xinfo(m.name, {literal}) AS p "
                "WHERE m.type IN ('table', 'view') AND m.name NOT LIKE 'sqlite_%' "
                "AND p.hidden <> 1{filter}",
                "TABLE_SCHEMA, TABLE_NAME, CID",
            ),
            # A reference without a column list points at the parent's primary key
            "foreign_keys": union(
                "SELECT {literal} AS TABLE_SCHEMA, m.name AS TABLE_NAME, f.id AS FK_ID, f.seq AS SEQ, "
                "f.\"table\" AS REFERENCED_TABLE_NAME, f.\"from\" AS COLUMN_NAME, "
                "COALESCE(f.\"to\", (SELECT x.name FROM pragma_table_xinfo(f.\"table\", {literal}) AS x "
                "WHERE x.pk = f.seq + 1)) AS REFERENCED_COLUMN_NAME "
                "FROM {master} AS m JOIN pragma_foreign_key_list(m.name, {literal}) AS f "
                "WHERE m.type = 'table'{filter}",
                "TABLE_SCHEMA, TABLE_NAME, FK_ID, SEQ",
            ),
            "unique_indexes": union(
                "SELECT {literal} AS TABLE_SCHEMA, m.name AS TABLE_NAME, il.name AS INDEX_NAME, "
                "ii.seqno AS SEQNO, ii.name AS COLUMN_NAME "
                "FROM {master} AS m "
                "JOIN pragma_index_list(m.name, {literal}) AS il "
                "JOIN pragma_index_info(il.name, {literal}) AS ii "
                "WHERE m.type = 'table' AND il.\"unique\" = 1 AND il.origin = 'u'{filter}",
                "TABLE_SCHEMA, TABLE_NAME, INDEX_NAME, SEQNO",
            ),
            "triggers": union(
                "SELECT {literal} AS TRIGGER_SCHEMA, m.name AS TRIGGER_NAME, "
                "m.tbl_name AS EVENT_OBJECT_TABLE, m.sql AS ACTION_STATEMENT "
                "FROM {master} AS m WHERE m.type = 'trigger'"
                + (f" AND m.tbl_name = {self.escape_value(table_name)}" if table_name else ""),
                "TRIGGER_SCHEMA, TRIGGER_NAME",
            ),
        }

    def _normalise(self, schemas: List[str], results: Dict[str, List[Row]]) -> CatalogRows:
        """Reshape pragma rows into information_schema-style catalog rows."""
        rows = CatalogRows(schemas=[{"SCHEMA_NAME": s} for s in schemas])
        rows.tables = results["tables"]

        autoincrement_tables = {
            (t["TABLE_SCHEMA"], t["TABLE_NAME"])
            for t in rows.tables
            if t.get("TABLE_SQL") and _AUTOINCREMENT_RE.search(t["TABLE_SQL"])
        }

        # (schema, table) -> pk column names ordered by their position in the key
        pk_columns: Dict[tuple, List[tuple]] = defaultdict(list)
        for c in results["columns"]:
            key = (c["TABLE_SCHEMA"], c["TABLE_NAME"])
            if c["PK"]:
                pk_columns[key].append((c["PK"], c["COLUMN_NAME"]))
            rows.columns.append(c)

        for c in rows.columns:
            key = (c["TABLE_SCHEMA"], c["TABLE_NAME"])
            c["AUTO_INCREMENT"] = bool(c["PK"]) and key in autoincrement_tables and len(pk_columns.get(key, [])) == 1

        for (schema, table), members in pk_columns.items():
            rows.constraints.append(self._constraint_row(schema, table, "pk", ConstraintKind.PRIMARY_KEY))
            for _, column_name in sorted(members):
                rows.constraint_columns.append(self._member_row(schema, table, "pk", column_name))

        seen_fks = set()
        for f in results["foreign_keys"]:
            schema, table = f["TABLE_SCHEMA"], f["TABLE_NAME"]
            key = f"fk:{f['FK_ID']}"
            if (schema, table, key) not in seen_fks:
                seen_fks.add((schema, table, key))
                rows.constraints.append(self._constraint_row(schema, table, key, ConstraintKind.FOREIGN_KEY))

            rows.constraint_columns.append(self._member_row(
                schema, table, key, f["COLUMN_NAME"],
                referenced=(schema, f["REFERENCED_TABLE_NAME"], f["REFERENCED_COLUMN_NAME"]),
            ))

        seen_indexes = set()
        for u in results["unique_indexes"]:
            schema, table = u["TABLE_SCHEMA"], u["TABLE_NAME"]
            key = f"uq:{u['INDEX_NAME']}"
            if (schema, table, key) not in seen_indexes:
                seen_indexes.add((schema, table, key))
                rows.constraints.append(self._constraint_row(schema, table, key, ConstraintKind.UNIQUE))
            rows.constraint_columns.append(self._member_row(schema, table, key, u["COLUMN_NAME"]))

        for t in results["triggers"]:
            timing, event = _parse_trigger(t["ACTION_STATEMENT"])
            rows.triggers.append({**t, "ACTION_TIMING": timing, "EVENT_MANIPULATION": event})

        return rows

    @staticmethod
    def _constraint_row(schema: str, table: str, key: str, kind: ConstraintKind) -> Row:
        return {
            "TABLE_SCHEMA": schema,
            "TABLE_NAME": table,
            "CONSTRAINT_NAME": None,
            "CONSTRAINT_KEY": key,
            "CONSTRAINT_TYPE": kind.value,
        }

    @staticmethod
    def _member_row(schema: str, table: str, key: str, column_name: str, referenced=(None, None, None)) -> Row:
        return {
            "TABLE_SCHEMA": schema,
            "TABLE_NAME": table,
            "CONSTRAINT_NAME": None,
            "CONSTRAINT_KEY": key,
            "COLUMN_NAME": column_name,
            "REFERENCED_TABLE_SCHEMA": referenced[0],
            "REFERENCED_TABLE_NAME": referenced[1],
            "REFERENCED_COLUMN_NAME": referenced[2],
        }

    def introspect(self) -> SchemaCollection:
        """Introspect every attached database except ``temp``."""
        schemas = self._schema_names()
        if not schemas:
            return SchemaCollection()
        logger.debug("Introspecting attached databases: %s", ", ".join(schemas))

        results = self._run_catalog_queries(self._catalog_queries(schemas))
        return build_schema_collection(
            self._normalise(schemas, results),
            map_sqlite_column,
            strict_foreign_keys=self.strict_foreign_keys,
        )

    def table_schema(self, schema_name: str, table_name: str) -> Table:
        """Introspect one table of one attached database."""
        schema_name = schema_name or self.get_flags().default_schema
        results = self._run_catalog_queries(self._catalog_queries([schema_name], table_name))
        collection = build_schema_collection(
            self._normalise([schema_name], results),
            map_sqlite_column,
            strict_foreign_keys=self.strict_foreign_keys,
        )
        table = collection.get_table(schema_name, table_name)
        if table is None:
            raise TableNotFoundError(schema_name, table_name)
        return table
