"""Backend-specific type mapping strategies."""

import re
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

_NUMERIC_LITERAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class ColumnType(str, Enum):
    """Canonical column types used for display and literal rendering."""
    INTEGER = "integer"
    REAL = "real"
    TEXT = "text"
    BLOB = "blob"
    BOOLEAN = "boolean"
    UNKNOWN = "unknown"


class TypeMapper(ABC):
    """Abstract base class for backend type mapping."""

    @abstractmethod
    def to_column_type(self, db_type: Optional[str]) -> ColumnType:
        """Convert a backend-native type name to a canonical type."""
        pass

    def is_numeric(self, db_type: Optional[str]) -> bool:
        return self.to_column_type(db_type) in (ColumnType.INTEGER, ColumnType.REAL, ColumnType.BOOLEAN)

    def render_default(self, db_type: Optional[str], value: Any, escape_value: Callable[[Any], str]) -> str:
        """Render a literal default value for a column of ``db_type``.

        Numeric literals on numeric columns are emitted bare, everything
        else goes through the dialect's value escaping.
        """
        if value is None:
            return "NULL"
        if self.is_numeric(db_type):
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                return str(value)
            if isinstance(value, str) and _NUMERIC_LITERAL.match(value.strip()):
                return value.strip()
        return escape_value(value)


class MySQLTypeMapper(TypeMapper):
    """Type mapper for MySQL-family column types."""

    def to_column_type(self, db_type: Optional[str]) -> ColumnType:
        if not db_type:
            return ColumnType.UNKNOWN
        type_upper = db_type.upper().strip()

        # tinyint(1) is how MySQL spells BOOLEAN
        if type_upper.startswith("TINYINT(1)") or type_upper in ("BOOL", "BOOLEAN"):
            return ColumnType.BOOLEAN
        elif any(t in type_upper for t in ["GEOMETRY", "POINT", "LINESTRING", "POLYGON"]):
            return ColumnType.BLOB
        elif "INT" in type_upper:
            return ColumnType.INTEGER
        elif any(t in type_upper for t in ["DECIMAL", "NUMERIC", "FLOAT", "DOUBLE", "REAL"]):
            return ColumnType.REAL
        elif type_upper.startswith("BIT") or "BLOB" in type_upper or "BINARY" in type_upper:
            return ColumnType.BLOB
        elif any(t in type_upper for t in ["CHAR", "TEXT", "ENUM", "SET", "JSON"]):
            return ColumnType.TEXT
        elif any(t in type_upper for t in ["DATE", "TIME", "YEAR"]):
            return ColumnType.TEXT
        return ColumnType.UNKNOWN


class SQLiteTypeMapper(TypeMapper):
    """Type mapper for SQLite-family declared types.

    Follows SQLite's column affinity rules, checked in the same order
    SQLite applies them.
    """

    def to_column_type(self, db_type: Optional[str]) -> ColumnType:
        if db_type is None:
            return ColumnType.UNKNOWN
        type_upper = db_type.upper().strip()

        if "BOOL" in type_upper:
            return ColumnType.BOOLEAN
        elif "INT" in type_upper:
            return ColumnType.INTEGER
        elif any(t in type_upper for t in ["CHAR", "CLOB", "TEXT"]):
            return ColumnType.TEXT
        elif "BLOB" in type_upper or type_upper == "":
            return ColumnType.BLOB
        elif any(t in type_upper for t in ["REAL", "FLOA", "DOUB"]):
            return ColumnType.REAL
        elif any(t in type_upper for t in ["NUMERIC", "DECIMAL"]):
            return ColumnType.REAL
        return ColumnType.UNKNOWN
