"""In-memory catalog join producing the canonical schema model.

Catalog rows use information_schema column names (``TABLE_SCHEMA``,
``CONSTRAINT_NAME`` ...) as the common shape. MySQL-family drivers pass
their catalog rows through unchanged; SQLite-family drivers normalise
their pragma output into the same shape first. The join itself never
talks to a backend, so it can be tested against plain lists of dicts.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..errors import AmbiguousForeignKeyError
from .models import (
    Column,
    ConstraintKind,
    ForeignKey,
    Schema,
    SchemaCollection,
    SchemaItemType,
    Table,
    TableConstraint,
    TableStats,
    Trigger,
)

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
ColumnMapper = Callable[[Row], Column]

_CONSTRAINT_KINDS = {kind.value: kind for kind in ConstraintKind}


def _constraint_key(row: Row) -> Tuple[str, str, Any]:
    # Unnamed constraints (SQLite) carry a CONSTRAINT_KEY unique within their table
    return (row["TABLE_SCHEMA"], row["TABLE_NAME"], row.get("CONSTRAINT_KEY", row["CONSTRAINT_NAME"]))


@dataclass
class CatalogRows:
    """Raw result rows of the catalog queries, one list per query."""
    schemas: List[Row] = field(default_factory=list)
    tables: List[Row] = field(default_factory=list)
    columns: List[Row] = field(default_factory=list)
    constraints: List[Row] = field(default_factory=list)
    constraint_columns: List[Row] = field(default_factory=list)
    triggers: List[Row] = field(default_factory=list)


def _table_size(row: Row) -> Optional[int]:
    data_length = row.get("DATA_LENGTH")
    index_length = row.get("INDEX_LENGTH")
    if data_length is None and index_length is None:
        return None
    return int(data_length or 0) + int(index_length or 0)


def build_schema_collection(
    rows: CatalogRows,
    map_column: ColumnMapper,
    strict_foreign_keys: bool = True,
) -> SchemaCollection:
    """Join catalog rows into a SchemaCollection.

    Args:
        rows: Results of the catalog queries
        map_column: Backend-specific conversion of one column row
        strict_foreign_keys: Raise AmbiguousForeignKeyError when the rows
            of one foreign key name different referenced tables. When
            False the last row wins and a warning is logged.

    Returns:
        SchemaCollection keyed by schema name
    """
    # schema name -> Schema
    schema_record: Dict[str, Schema] = {}
    for s in rows.schemas:
        schema_record[s["SCHEMA_NAME"]] = Schema(name=s["SCHEMA_NAME"])

    # (schema, table) -> Table
    table_record: Dict[Tuple[str, str], Table] = {}
    for t in rows.tables:
        key = (t["TABLE_SCHEMA"], t["TABLE_NAME"])
        table = Table(
            name=t["TABLE_NAME"],
            schema_name=t["TABLE_SCHEMA"],
            type=SchemaItemType.VIEW if t.get("TABLE_TYPE") == "VIEW" else SchemaItemType.TABLE,
            stats=TableStats(size_in_bytes=_table_size(t)),
        )
        table_record[key] = table
        if t["TABLE_SCHEMA"] in schema_record:
            schema_record[t["TABLE_SCHEMA"]].tables.append(table)

    for c in rows.columns:
        table = table_record.get((c["TABLE_SCHEMA"], c["TABLE_NAME"]))
        if table is None:
            logger.warning(
                "Skipping column %s of unknown table %s.%s",
                c.get("COLUMN_NAME"), c["TABLE_SCHEMA"], c["TABLE_NAME"],
            )
            continue
        column = map_column(c)
        table.columns.append(column)
        if column.constraint and column.constraint.auto_increment:
            table.auto_increment = True

    # (schema, table, constraint) -> TableConstraint
    constraint_record: Dict[Tuple[str, str, Any], TableConstraint] = {}
    for c in rows.constraints:
        table = table_record.get((c["TABLE_SCHEMA"], c["TABLE_NAME"]))
        kind = _CONSTRAINT_KINDS.get(c["CONSTRAINT_TYPE"])
        if table is None or table.is_view or kind is None:
            continue
        constraint = TableConstraint(
            name=c["CONSTRAINT_NAME"],
            kind=kind,
            foreign_key=ForeignKey() if kind == ConstraintKind.FOREIGN_KEY else None,
        )
        table.constraints.append(constraint)
        constraint_record[_constraint_key(c)] = constraint

    for m in rows.constraint_columns:
        constraint = constraint_record.get(_constraint_key(m))
        if constraint is None:
            continue
        table = table_record[(m["TABLE_SCHEMA"], m["TABLE_NAME"])]
        constraint.columns.append(m["COLUMN_NAME"])

        if constraint.primary_key:
            column = table.get_column(m["COLUMN_NAME"])
            if column:
                column.pk = True
        elif constraint.foreign_key is not None:
            _attach_foreign_key_member(constraint, m, strict_foreign_keys)

    for trg in rows.triggers:
        schema = schema_record.get(trg["TRIGGER_SCHEMA"])
        if schema is None:
            continue
        schema.triggers.append(Trigger(
            name=trg["TRIGGER_NAME"],
            table_name=trg["EVENT_OBJECT_TABLE"],
            schema_name=trg["TRIGGER_SCHEMA"],
            timing=trg.get("ACTION_TIMING") or "",
            statement=trg.get("ACTION_STATEMENT") or "",
            event=trg.get("EVENT_MANIPULATION"),
        ))

    logger.debug(
        "Built schema collection: %d schemas, %d tables, %d constraints",
        len(schema_record), len(table_record), len(constraint_record),
    )
    return SchemaCollection(schemas=schema_record)


def _attach_foreign_key_member(constraint: TableConstraint, m: Row, strict: bool) -> None:
    fk = constraint.foreign_key
    fk.columns.append(m["COLUMN_NAME"])
    fk.foreign_columns.append(m["REFERENCED_COLUMN_NAME"])

    referenced = (m["REFERENCED_TABLE_SCHEMA"], m["REFERENCED_TABLE_NAME"])
    seen = (fk.foreign_schema_name, fk.foreign_table_name)
    if fk.foreign_table_name and seen != referenced:
        if strict:
            raise AmbiguousForeignKeyError(
                m["TABLE_SCHEMA"], m["TABLE_NAME"], m["CONSTRAINT_NAME"], seen, referenced
            )
        logger.warning(
            "Foreign key %s on %s.%s references both %s.%s and %s.%s; keeping the latter",
            m["CONSTRAINT_NAME"], m["TABLE_SCHEMA"], m["TABLE_NAME"],
            seen[0], seen[1], referenced[0], referenced[1],
        )
    fk.foreign_schema_name, fk.foreign_table_name = referenced
