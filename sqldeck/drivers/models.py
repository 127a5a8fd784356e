"""Canonical data models shared by every driver."""

from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union
from dataclasses import dataclass, field

from .type_mappers import ColumnType


class SchemaItemType(str, Enum):
    """Kinds of objects listed under a schema."""
    TABLE = "table"
    VIEW = "view"
    TRIGGER = "trigger"


class ConstraintKind(str, Enum):
    """Table-level constraint kinds reconstructed from the catalog."""
    PRIMARY_KEY = "PRIMARY KEY"
    UNIQUE = "UNIQUE"
    FOREIGN_KEY = "FOREIGN KEY"


@dataclass
class ColumnConstraint:
    """Per-column constraint metadata."""
    not_null: bool = False
    primary_key: bool = False
    auto_increment: bool = False
    default_value: Any = None
    default_expression: Optional[str] = None
    collate: Optional[str] = None


@dataclass
class Column:
    """Represents a table column.

    ``pk`` is derived during constraint reconciliation and is not a copy
    of the raw catalog row.
    """
    name: str
    type: str
    constraint: Optional[ColumnConstraint] = None
    pk: bool = False

    @property
    def nullable(self) -> bool:
        return not (self.constraint and self.constraint.not_null)


@dataclass
class ForeignKey:
    """Referencing and referenced side of a foreign key."""
    columns: List[str] = field(default_factory=list)
    foreign_schema_name: str = ""
    foreign_table_name: str = ""
    foreign_columns: List[str] = field(default_factory=list)


@dataclass
class TableConstraint:
    """A named primary key, unique or foreign key constraint."""
    name: Optional[str]
    kind: ConstraintKind
    columns: List[str] = field(default_factory=list)
    foreign_key: Optional[ForeignKey] = None

    @property
    def primary_key(self) -> bool:
        return self.kind == ConstraintKind.PRIMARY_KEY

    @property
    def unique(self) -> bool:
        return self.kind == ConstraintKind.UNIQUE


@dataclass
class TableStats:
    """Size statistics reported by the catalog, when available."""
    size_in_bytes: Optional[int] = None


@dataclass
class Table:
    """Represents a table or a view."""
    name: str
    schema_name: str
    type: SchemaItemType = SchemaItemType.TABLE
    columns: List[Column] = field(default_factory=list)
    constraints: List[TableConstraint] = field(default_factory=list)
    auto_increment: bool = False
    stats: TableStats = field(default_factory=TableStats)

    @property
    def is_view(self) -> bool:
        return self.type == SchemaItemType.VIEW

    @property
    def pk(self) -> List[str]:
        """Primary key column names in column order."""
        return [col.name for col in self.columns if col.pk]

    def get_column(self, name: str) -> Optional[Column]:
        for col in self.columns:
            if col.name == name:
                return col
        return None


@dataclass
class Trigger:
    """Represents a trigger attached to a table."""
    name: str
    table_name: str
    schema_name: str
    timing: str
    statement: str
    event: Optional[str] = None
    type: SchemaItemType = SchemaItemType.TRIGGER


SchemaItem = Union[Table, Trigger]


@dataclass
class Schema:
    """A named namespace (MySQL database or SQLite attached file)."""
    name: str
    tables: List[Table] = field(default_factory=list)
    triggers: List[Trigger] = field(default_factory=list)

    @property
    def views(self) -> List[Table]:
        return [t for t in self.tables if t.is_view]

    def items(self) -> List[SchemaItem]:
        """All tables, views and triggers in listing order."""
        return [*self.tables, *self.triggers]

    def get_table(self, name: str) -> Optional[Table]:
        for table in self.tables:
            if table.name == name:
                return table
        return None


@dataclass
class SchemaCollection:
    """Full introspection result keyed by schema name."""
    schemas: Dict[str, Schema] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Schema:
        return self.schemas[name]

    def __contains__(self, name: object) -> bool:
        return name in self.schemas

    def __iter__(self) -> Iterator[str]:
        return iter(self.schemas)

    def __len__(self) -> int:
        return len(self.schemas)

    def get_all_tables(self) -> List[Table]:
        """Get all tables and views across all schemas."""
        tables = []
        for schema in self.schemas.values():
            tables.extend(schema.tables)
        return tables

    def get_table(self, schema_name: str, table_name: str) -> Optional[Table]:
        schema = self.schemas.get(schema_name)
        if schema is None:
            return None
        return schema.get_table(table_name)


# Query results

@dataclass
class ResultHeader:
    """One output column of a result set."""
    name: str
    display_name: str
    original_type: Optional[str]
    type: ColumnType


@dataclass
class ResultStats:
    """Fixed-shape statistics; unsupported fields stay ``None``."""
    rows_affected: int = 0
    rows_read: Optional[int] = None
    rows_written: Optional[int] = None
    query_duration_ms: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rowsAffected": self.rows_affected,
            "rowsRead": self.rows_read,
            "rowsWritten": self.rows_written,
            "queryDurationMs": self.query_duration_ms,
        }


@dataclass
class ResultSet:
    """Canonical query result; rows are keyed by header ``name``."""
    headers: List[ResultHeader] = field(default_factory=list)
    rows: List[Dict[str, Any]] = field(default_factory=list)
    stats: ResultStats = field(default_factory=ResultStats)
    last_insert_rowid: Optional[Union[int, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "headers": [
                {
                    "name": h.name,
                    "displayName": h.display_name,
                    "originalType": h.original_type,
                    "type": h.type.value,
                }
                for h in self.headers
            ],
            "rows": self.rows,
            "stat": self.stats.to_dict(),
            "lastInsertRowid": self.last_insert_rowid,
        }


# Change requests

@dataclass
class ColumnChange:
    """One column diff entry.

    ``old`` is None for an added column, ``new`` is None for a dropped one.
    """
    old: Optional[Column] = None
    new: Optional[Column] = None


@dataclass
class ConstraintChange:
    """One constraint diff entry, same convention as ColumnChange."""
    old: Optional[TableConstraint] = None
    new: Optional[TableConstraint] = None


@dataclass
class TableChangeRequest:
    """Requested change to one table.

    ``old_name`` None means create the table; ``new_name`` None means drop it.
    """
    schema_name: str
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    columns: List[ColumnChange] = field(default_factory=list)
    constraints: List[ConstraintChange] = field(default_factory=list)

    @property
    def is_create(self) -> bool:
        return self.old_name is None

    @property
    def is_drop(self) -> bool:
        return self.old_name is not None and self.new_name is None


@dataclass
class DatabaseChangeRequest:
    """Requested change to a database (schema) itself."""
    old_name: Optional[str] = None
    new_name: Optional[str] = None
    collation: Optional[str] = None
    character_set: Optional[str] = None


# Statements

@dataclass
class Statement:
    """A SQL statement with positional arguments."""
    sql: str
    args: List[Any] = field(default_factory=list)


StatementLike = Union[str, Statement]


def as_statement(stmt: StatementLike, args: Optional[List[Any]] = None) -> Statement:
    if isinstance(stmt, Statement):
        return stmt
    return Statement(sql=stmt, args=list(args or []))
