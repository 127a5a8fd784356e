"""Local SQLite transport using the standard library ``sqlite3`` module."""

import logging
import sqlite3
import time
from typing import List, Optional

from ...errors import DriverConnectionError, QueryError
from ..base import batch_error_details
from ..models import ResultSet, Statement
from ..result import RawResult, transform_raw_result
from .driver import SQLiteLikeDriver

logger = logging.getLogger(__name__)

# Python value type -> SQLite storage class
_STORAGE_CLASSES = (
    (int, "INTEGER"),
    (float, "REAL"),
    (str, "TEXT"),
    (bytes, "BLOB"),
)


def _storage_class(values: list) -> Optional[str]:
    # sqlite3 reports no declared types; the first non-null value decides
    sample = next((v for v in values if v is not None), None)
    for python_type, name in _STORAGE_CLASSES:
        if isinstance(sample, python_type):
            return name
    return None


class SQLiteDriver(SQLiteLikeDriver):
    """SQLite-family driver over a local database file."""

    def __init__(self, path: Optional[str] = None, **kwargs):
        from ...config import settings

        super().__init__(**kwargs)
        self.path = path or settings.sqlite_path
        self._connection: Optional[sqlite3.Connection] = None

    def connect(self) -> sqlite3.Connection:
        """Open the database file, reusing an open connection."""
        if self._connection is None:
            try:
                self._connection = sqlite3.connect(
                    self.path,
                    check_same_thread=False,
                    isolation_level=None,  # Auto-commit mode
                )
            except sqlite3.Error as e:
                raise DriverConnectionError(
                    f"Could not open SQLite database: {e}",
                    details={"path": self.path},
                ) from e
            logger.debug("Opened SQLite database %s", self.path)
        return self._connection

    def close(self):
        """Close the connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def _run(self, conn: sqlite3.Connection, stmt: Statement) -> ResultSet:
        start = time.time()
        cursor = conn.execute(stmt.sql, stmt.args)
        try:
            rows = cursor.fetchall() if cursor.description else []
            duration_ms = (time.time() - start) * 1000
            columns = [d[0] for d in cursor.description] if cursor.description else []
            column_types = [_storage_class([r[idx] for r in rows]) for idx in range(len(columns))]

            raw = RawResult(
                columns=columns,
                column_types=column_types,
                rows=rows,
                rows_affected=max(cursor.rowcount, 0),
                last_insert_rowid=cursor.lastrowid or None,
                query_duration_ms=duration_ms,
            )
        finally:
            cursor.close()
        return transform_raw_result(raw, self.type_mapper)

    def _execute(self, stmt: Statement) -> ResultSet:
        conn = self.connect()
        try:
            return self._run(conn, stmt)
        except sqlite3.Error as e:
            raise QueryError(str(e), details={"sql": stmt.sql}) from e

    def _batch(self, stmts: List[Statement]) -> List[ResultSet]:
        conn = self.connect()
        results = []
        try:
            conn.execute("BEGIN")
            for stmt in stmts:
                results.append(self._run(conn, stmt))
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            if conn.in_transaction:
                try:
                    conn.execute("ROLLBACK")
                except sqlite3.Error as rollback_error:
                    logger.warning("Rollback failed on %s: %s", self.path, rollback_error)
            raise QueryError(str(e), details=batch_error_details(stmts, len(results))) from e
        return results
