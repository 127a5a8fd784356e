"""Extension that records executed statements in the history database."""

import logging
from typing import List, Optional

from ..drivers.models import ResultSet, Statement
from ..history import QueryHistoryDatabase
from .base import Extension

logger = logging.getLogger(__name__)


class QueryHistoryExtension(Extension):
    """Persists every user query or batch as one history entry."""

    name = "query-history"

    def __init__(
        self,
        db_path: Optional[str] = None,
        max_sql_size: int = 10000,
        retention_days: Optional[int] = None,
    ):
        self.db = QueryHistoryDatabase(db_path, max_sql_size=max_sql_size)
        self.db.initialize()
        if retention_days is not None:
            self.db.cleanup_old_entries(retention_days)

    def after_query(
        self,
        driver,
        statements: List[Statement],
        results: Optional[List[ResultSet]],
        duration_ms: float,
        error: Optional[BaseException] = None,
    ) -> None:
        sql = ";\n".join(stmt.sql for stmt in statements)
        args = [stmt.args for stmt in statements] if len(statements) > 1 else statements[0].args
        dialect = driver.get_flags().dialect

        if error is not None:
            self.db.insert_entry(
                driver=dialect,
                sql=sql,
                status="error",
                args=args,
                batch_size=len(statements),
                duration_ms=duration_ms,
                error_message=str(error),
                error_type=type(error).__name__,
            )
            return

        self.db.insert_entry(
            driver=dialect,
            sql=sql,
            status="success",
            args=args,
            batch_size=len(statements),
            rows_affected=sum(r.stats.rows_affected for r in results or []),
            rows_returned=sum(len(r.rows) for r in results or []),
            duration_ms=duration_ms,
        )

    def close(self) -> None:
        self.db.close()
