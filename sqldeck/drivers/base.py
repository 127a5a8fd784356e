"""Abstract base class shared by every driver."""

import logging
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from ..errors import CatalogQueryError
from .ddl import SchemaChangeGenerator
from .flags import DriverFlags
from .models import (
    DatabaseChangeRequest,
    ResultSet,
    SchemaCollection,
    Statement,
    StatementLike,
    Table,
    TableChangeRequest,
    as_statement,
)
from .type_mappers import TypeMapper

if TYPE_CHECKING:
    from ..extensions.base import ExtensionRegistry

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def batch_error_details(stmts: List[Statement], completed: int) -> Dict[str, Any]:
    """Describe where a batch failed.

    ``completed`` equal to the batch size means every statement ran and
    the failure came from ``COMMIT``.
    """
    if completed < len(stmts):
        return {"sql": stmts[completed].sql, "statement_index": completed}
    return {"sql": None, "statement_index": None, "step": "commit"}


class BaseDriver(ABC):
    """Abstract base class for drivers.

    Subclasses supply the transport (``_execute``/``_batch``), the
    dialect (escaping, flags, DDL generator) and the catalog queries.
    Everything else, including the common row-editing SQL, lives here.
    """

    # Catalog queries may run on several threads at once
    CONCURRENT_CATALOG_QUERIES: bool = False

    type_mapper: TypeMapper
    generator_class: type

    def __init__(
        self,
        extensions: Optional["ExtensionRegistry"] = None,
        strict_foreign_keys: Optional[bool] = None,
        introspection_workers: Optional[int] = None,
    ):
        from ..config import settings
        from ..extensions.base import ExtensionRegistry

        self.extensions = extensions if extensions is not None else ExtensionRegistry()
        self.strict_foreign_keys = (
            settings.strict_foreign_keys if strict_foreign_keys is None else strict_foreign_keys
        )
        self.introspection_workers = (
            settings.introspection_workers if introspection_workers is None else introspection_workers
        )

    # Transport

    @abstractmethod
    def _execute(self, stmt: Statement) -> ResultSet:
        """Run one statement on the backend and return its transformed result."""
        pass

    @abstractmethod
    def _batch(self, stmts: List[Statement]) -> List[ResultSet]:
        """Run statements atomically and return one result per statement."""
        pass

    @abstractmethod
    def close(self):
        """Close the underlying connection."""
        pass

    # Dialect

    @abstractmethod
    def get_flags(self) -> DriverFlags:
        pass

    def get_collation_list(self) -> List[str]:
        return []

    def get_generator(self) -> SchemaChangeGenerator:
        return self.generator_class(self.get_flags())

    def escape_id(self, identifier: str) -> str:
        return self.get_generator().escape_id(identifier)

    def escape_value(self, value: Any) -> str:
        return self.get_generator().escape_value(value)

    def qualify(self, schema_name: Optional[str], table_name: str) -> str:
        return self.get_generator().qualify(schema_name, table_name)

    # Queries

    def query(self, stmt: StatementLike, args: Optional[List[Any]] = None) -> ResultSet:
        """Execute one statement.

        Args:
            stmt: SQL text or Statement
            args: Positional arguments when ``stmt`` is SQL text

        Returns:
            Canonical ResultSet
        """
        statement = as_statement(stmt, args)
        return self._observe([statement], lambda: [self._execute(statement)])[0]

    def transaction(self, stmts: Sequence[StatementLike]) -> List[ResultSet]:
        """Execute statements atomically, one ResultSet per statement."""
        statements = [as_statement(s) for s in stmts]
        if not statements:
            return []
        return self._observe(statements, lambda: self._batch(statements))

    def _observe(self, statements: List[Statement], run) -> List[ResultSet]:
        self.extensions.before_query(self, statements)
        start = time.time()
        try:
            results = run()
        except Exception as e:
            duration_ms = (time.time() - start) * 1000
            self.extensions.after_query(self, statements, None, duration_ms, e)
            raise
        duration_ms = (time.time() - start) * 1000
        self.extensions.after_query(self, statements, results, duration_ms)
        return results

    # Schema

    @abstractmethod
    def introspect(self) -> SchemaCollection:
        """Introspect every non-system schema."""
        pass

    @abstractmethod
    def table_schema(self, schema_name: str, table_name: str) -> Table:
        """Introspect one table."""
        pass

    @abstractmethod
    def current_schema(self) -> Optional[str]:
        pass

    def _run_catalog_queries(self, queries: Dict[str, StatementLike]) -> Dict[str, List[Row]]:
        """Run named catalog queries and return their rows by name.

        Queries are independent; on thread-safe transports they run
        concurrently. Either way all of them finish before anything is
        returned, and the first failure aborts the whole set.
        """
        statements = {name: as_statement(sql) for name, sql in queries.items()}

        if self.CONCURRENT_CATALOG_QUERIES and self.introspection_workers > 1 and len(statements) > 1:
            with ThreadPoolExecutor(max_workers=self.introspection_workers) as pool:
                futures = {name: pool.submit(self._execute, stmt) for name, stmt in statements.items()}
                wait(futures.values())
                return {name: self._catalog_rows(name, future.result) for name, future in futures.items()}

        return {
            name: self._catalog_rows(name, lambda stmt=stmt: self._execute(stmt))
            for name, stmt in statements.items()
        }

    @staticmethod
    def _catalog_rows(name: str, fetch) -> List[Row]:
        try:
            result = fetch()
        except Exception as e:
            raise CatalogQueryError(name, str(e)) from e
        logger.debug("Catalog query %s returned %d rows", name, len(result.rows))
        return result.rows

    # DDL

    def generate_table_change(self, change: TableChangeRequest, table: Optional[Table] = None) -> List[str]:
        """Statements performing ``change``; see SchemaChangeGenerator."""
        return self.get_generator().generate_table_change(change, table)

    def generate_database_change(self, change: DatabaseChangeRequest) -> List[str]:
        return self.get_generator().generate_database_change(change)

    # Common row-editing SQL

    def select_table(
        self,
        schema_name: str,
        table_name: str,
        limit: int = 50,
        offset: int = 0,
        order_by: Optional[List[Tuple[str, str]]] = None,
        where: Optional[str] = None,
    ) -> Statement:
        """Build a paged SELECT over one table.

        Args:
            order_by: (column, 'ASC'|'DESC') pairs
            where: Raw filter expression, used as given
        """
        select_list = "rowid, *" if self.get_flags().support_row_id else "*"
        sql = f"SELECT {select_list} FROM {self.qualify(schema_name, table_name)}"
        if where:
            sql += f" WHERE {where}"
        if order_by:
            parts = []
            for column, direction in order_by:
                direction = direction.upper()
                if direction not in ("ASC", "DESC"):
                    raise ValueError(f"Invalid sort direction: {direction}")
                parts.append(f"{self.escape_id(column)} {direction}")
            sql += " ORDER BY " + ", ".join(parts)
        sql += f" LIMIT {int(limit)} OFFSET {int(offset)}"
        return Statement(sql=sql)

    def insert_row(self, schema_name: str, table_name: str, values: Dict[str, Any]) -> Statement:
        columns = ", ".join(self.escape_id(c) for c in values)
        placeholders = ", ".join("?" for _ in values)
        sql = f"INSERT INTO {self.qualify(schema_name, table_name)}({columns}) VALUES({placeholders})"
        if self.get_flags().support_insert_returning:
            sql += " RETURNING *"
        return Statement(sql=sql, args=list(values.values()))

    def update_rows(
        self,
        schema_name: str,
        table_name: str,
        values: Dict[str, Any],
        where: Dict[str, Any],
    ) -> Statement:
        if not where:
            raise ValueError("update_rows needs at least one WHERE column")
        set_clause = ", ".join(f"{self.escape_id(c)} = ?" for c in values)
        where_clause = " AND ".join(f"{self.escape_id(c)} = ?" for c in where)
        sql = f"UPDATE {self.qualify(schema_name, table_name)} SET {set_clause} WHERE {where_clause}"
        if self.get_flags().support_update_returning:
            sql += " RETURNING *"
        return Statement(sql=sql, args=[*values.values(), *where.values()])

    def delete_rows(self, schema_name: str, table_name: str, where: Dict[str, Any]) -> Statement:
        if not where:
            raise ValueError("delete_rows needs at least one WHERE column")
        where_clause = " AND ".join(f"{self.escape_id(c)} = ?" for c in where)
        sql = f"DELETE FROM {self.qualify(schema_name, table_name)} WHERE {where_clause}"
        return Statement(sql=sql, args=list(where.values()))

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        self.extensions.close()
