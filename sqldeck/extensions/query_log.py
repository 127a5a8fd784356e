"""Extension that writes every executed statement to the log."""

import logging
from typing import List, Optional

from ..drivers.models import ResultSet, Statement
from .base import Extension

logger = logging.getLogger(__name__)


class QueryConsoleLogExtension(Extension):
    """Logs statements, row counts and timings at INFO."""

    name = "query-console-log"

    def after_query(
        self,
        driver,
        statements: List[Statement],
        results: Optional[List[ResultSet]],
        duration_ms: float,
        error: Optional[BaseException] = None,
    ) -> None:
        dialect = driver.get_flags().dialect
        if error is not None:
            logger.info("[%s] failed after %.1fms: %s", dialect, duration_ms, error)
            for stmt in statements:
                logger.info("  %s", stmt.sql)
            return

        for stmt, result in zip(statements, results or []):
            logger.info(
                "[%s] %s -- %d rows, %d affected (%.1fms)",
                dialect, stmt.sql, len(result.rows), result.stats.rows_affected, duration_ms,
            )
