"""Database operations for query history."""

import sqlite3
import logging
import json
from pathlib import Path
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS query_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    timestamp TEXT NOT NULL,
    driver TEXT NOT NULL,
    sql TEXT NOT NULL,
    args TEXT,  -- JSON array
    batch_size INTEGER DEFAULT 1,
    status TEXT NOT NULL,  -- 'success', 'error'
    rows_affected INTEGER,
    rows_returned INTEGER,
    duration_ms REAL,
    error_message TEXT,
    error_type TEXT
);

CREATE INDEX IF NOT EXISTS idx_query_history_timestamp ON query_history(timestamp);
CREATE INDEX IF NOT EXISTS idx_query_history_status ON query_history(status);
CREATE INDEX IF NOT EXISTS idx_query_history_driver ON query_history(driver);
"""


def get_default_history_db_path() -> str:
    """Get the default database path (~/.sqldeck/history.db)."""
    home = Path.home()
    sqldeck_dir = home / ".sqldeck"
    sqldeck_dir.mkdir(exist_ok=True)
    return str(sqldeck_dir / "history.db")


class QueryHistoryDatabase:
    """SQLite database holding executed statements."""

    def __init__(self, db_path: Optional[str] = None, max_sql_size: int = 10000):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses default.
            max_sql_size: Statements longer than this are truncated
        """
        self.db_path = db_path or get_default_history_db_path()
        self.max_sql_size = max_sql_size
        self._connection: Optional[sqlite3.Connection] = None
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self._connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        try:
            conn = self._get_connection()
            conn.executescript(SCHEMA_SQL)
            self._initialized = True
            logger.debug("Query history database initialized at %s", self.db_path)
        except Exception as e:
            logger.error("Failed to initialize query history database: %s", e)
            raise

    def close(self) -> None:
        if self._connection:
            self._connection.close()
            self._connection = None
            self._initialized = False

    def _truncate(self, text: str) -> str:
        if len(text) > self.max_sql_size:
            return text[: self.max_sql_size] + "... [truncated]"
        return text

    def insert_entry(
        self,
        driver: str,
        sql: str,
        status: str,
        args: Optional[List[Any]] = None,
        batch_size: int = 1,
        rows_affected: Optional[int] = None,
        rows_returned: Optional[int] = None,
        duration_ms: Optional[float] = None,
        error_message: Optional[str] = None,
        error_type: Optional[str] = None,
    ) -> int:
        """Insert a history entry.

        Args:
            driver: Dialect of the driver that ran the statement
            sql: Statement text (batches are joined with ';\\n')
            status: 'success' or 'error'
            args: Positional arguments, stored as JSON
            batch_size: Number of statements in the batch
            rows_affected: Total affected rows
            rows_returned: Total rows returned
            duration_ms: Wall-clock duration
            error_message: Error message when status is 'error'
            error_type: Exception class name when status is 'error'

        Returns:
            The row ID of the inserted entry
        """
        self.initialize()
        conn = self._get_connection()

        args_json = json.dumps(args, default=str) if args else None

        cursor = conn.execute(
            """
            INSERT INTO query_history (
                timestamp, driver, sql, args, batch_size, status,
                rows_affected, rows_returned, duration_ms, error_message, error_type
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                datetime.utcnow().isoformat(), driver, self._truncate(sql), args_json,
                batch_size, status, rows_affected, rows_returned, duration_ms,
                error_message, error_type,
            ),
        )
        return cursor.lastrowid

    def get_recent(
        self,
        limit: int = 50,
        offset: int = 0,
        status: Optional[str] = None,
        driver: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Get recent history entries, newest first.

        Args:
            limit: Maximum number of entries to return
            offset: Number of entries to skip
            status: Filter by status
            driver: Filter by driver dialect

        Returns:
            List of history entries as dictionaries
        """
        self.initialize()
        conn = self._get_connection()

        conditions = []
        params: List[Any] = []

        if status:
            conditions.append("status = ?")
            params.append(status)

        if driver:
            conditions.append("driver = ?")
            params.append(driver)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        params.extend([limit, offset])

        query = f"""
            SELECT * FROM query_history
            WHERE {where_clause}
            ORDER BY id DESC
            LIMIT ? OFFSET ?
        """

        cursor = conn.execute(query, params)
        return [dict(row) for row in cursor.fetchall()]

    def cleanup_old_entries(self, retention_days: int = 30) -> int:
        """Delete entries older than the retention period.

        Returns:
            Number of deleted rows
        """
        self.initialize()
        conn = self._get_connection()

        cutoff_time = datetime.utcnow() - timedelta(days=retention_days)
        cursor = conn.execute(
            "DELETE FROM query_history WHERE timestamp < ?",
            (cutoff_time.isoformat(),),
        )

        deleted = cursor.rowcount
        if deleted > 0:
            logger.info("Cleaned up %d old query history entries", deleted)

        return deleted

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
