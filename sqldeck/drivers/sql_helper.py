"""Identifier and literal escaping helpers shared by the SQL dialects."""

import re
from decimal import Decimal
from typing import Any

_KEYWORD_RE = re.compile(r"\w+")


def escape_identifier(identifier: str, quote: str = '"') -> str:
    """Quote an identifier, doubling any embedded quote character."""
    return f"{quote}{identifier.replace(quote, quote * 2)}{quote}"


def sql_keyword(value: str, what: str = "keyword") -> str:
    """Validate a bare word such as a collation or character set name."""
    if not _KEYWORD_RE.fullmatch(value):
        raise ValueError(f"Invalid {what}: {value!r}")
    return value


def escape_sql_string(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def escape_sql_binary(value) -> str:
    """Render bytes (or a list of byte values) as an X'..' hex literal."""
    return "X'" + bytes(value).hex().upper() + "'"


def escape_sql_value(value: Any) -> str:
    """Render a Python value as a SQL literal."""
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, str):
        return escape_sql_string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return escape_sql_binary(value)
    if isinstance(value, list) and all(isinstance(v, int) and 0 <= v < 256 for v in value):
        # Byte-value lists are how ResultSet carries blobs
        return escape_sql_binary(value)
    return escape_sql_string(str(value))


def escape_mysql_value(value: Any) -> str:
    """Like escape_sql_value, but also doubles backslashes.

    MySQL treats backslash as an escape character inside string
    literals unless NO_BACKSLASH_ESCAPES is set.
    """
    if isinstance(value, str):
        return escape_sql_string(value.replace("\\", "\\\\"))
    return escape_sql_value(value)


def qmark_to_format(sql: str) -> str:
    """Rewrite ``?`` placeholders as ``%s`` for format-style DB-API drivers.

    Placeholders inside quoted strings and identifiers are left alone,
    and literal ``%`` signs are doubled so they survive formatting.
    """
    out = []
    quote = None
    for ch in sql:
        if quote:
            if ch == quote:
                quote = None
            out.append("%%" if ch == "%" else ch)
        elif ch in ("'", '"', "`"):
            quote = ch
            out.append(ch)
        elif ch == "?":
            out.append("%s")
        elif ch == "%":
            out.append("%%")
        else:
            out.append(ch)
    return "".join(out)
