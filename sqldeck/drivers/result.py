"""Conversion of raw backend results into the canonical ResultSet."""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Union

from ..errors import TransformError
from .models import ResultHeader, ResultSet, ResultStats
from .type_mappers import SQLiteTypeMapper, TypeMapper

# Probes tried before giving up on a unique internal column name
MAX_RENAME_ATTEMPTS = 20

# Largest integer a plain (double precision) number holds exactly
MAX_SAFE_INTEGER = 2 ** 53 - 1


@dataclass
class RawResult:
    """Result as handed over by a transport, before normalisation."""
    columns: List[str] = field(default_factory=list)
    column_types: List[Optional[str]] = field(default_factory=list)
    rows: List[Sequence[Any]] = field(default_factory=list)
    rows_affected: int = 0
    last_insert_rowid: Optional[Union[int, str]] = None
    rows_read: Optional[int] = None
    rows_written: Optional[int] = None
    query_duration_ms: Optional[float] = None


def resolve_header_names(columns: Sequence[str]) -> List[str]:
    """Give every column a unique internal name.

    The first occurrence of a name keeps it; later duplicates get
    ``__<name>_0``, ``__<name>_1`` ... whichever is free first.
    """
    used = set()
    names = []
    for col_name in columns:
        rename = col_name
        attempt = 0
        while rename in used:
            if attempt >= MAX_RENAME_ATTEMPTS:
                raise TransformError(
                    f"Could not find a unique name for column '{col_name}'",
                    details={"column": col_name, "attempts": MAX_RENAME_ATTEMPTS},
                )
            rename = f"__{col_name}_{attempt}"
            attempt += 1
        used.add(rename)
        names.append(rename)
    return names


def normalize_integer(value: Union[int, str], big_int: bool = False) -> Union[int, float]:
    """Normalise a possibly wide integer.

    Without big-integer mode, values outside the safe range become a
    float, the shape a plain number consumer receives anyway.
    """
    number = int(value)
    if big_int or -MAX_SAFE_INTEGER <= number <= MAX_SAFE_INTEGER:
        return number
    return float(number)


def _convert_cell(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return list(bytes(value))
    return value


def transform_raw_result(
    raw: RawResult,
    type_mapper: Optional[TypeMapper] = None,
    big_int: bool = False,
) -> ResultSet:
    """Convert a raw backend result into a ResultSet.

    Args:
        raw: Columns, declared types, rows and stats from the transport
        type_mapper: Mapper for declared types (SQLite affinity by default)
        big_int: Keep wide integers exact

    Returns:
        ResultSet with collision-free header names
    """
    type_mapper = type_mapper or SQLiteTypeMapper()

    column_types = list(raw.column_types) if raw.column_types else [None] * len(raw.columns)
    if len(column_types) != len(raw.columns):
        raise TransformError(
            "Column type list does not match column list",
            details={"columns": len(raw.columns), "column_types": len(column_types)},
        )

    names = resolve_header_names(raw.columns)
    headers = [
        ResultHeader(
            name=name,
            display_name=col_name,
            original_type=col_type,
            type=type_mapper.to_column_type(col_type),
        )
        for name, col_name, col_type in zip(names, raw.columns, column_types)
    ]

    rows = []
    for idx, raw_row in enumerate(raw.rows):
        if len(raw_row) != len(headers):
            raise TransformError(
                f"Row {idx} has {len(raw_row)} values for {len(headers)} columns",
                details={"row": idx, "values": len(raw_row), "columns": len(headers)},
            )
        rows.append({
            header.name: _convert_cell(cell)
            for header, cell in zip(headers, raw_row)
        })

    last_insert_rowid = None
    if raw.last_insert_rowid is not None:
        last_insert_rowid = normalize_integer(raw.last_insert_rowid, big_int)

    return ResultSet(
        headers=headers,
        rows=rows,
        stats=ResultStats(
            rows_affected=raw.rows_affected,
            rows_read=raw.rows_read,
            rows_written=raw.rows_written,
            query_duration_ms=raw.query_duration_ms,
        ),
        last_insert_rowid=last_insert_rowid,
    )
