"""PyMySQL transport for MySQL-family servers."""

import logging
import time
from typing import List, Optional

import pymysql
from pymysql.constants import FIELD_TYPE

from ...errors import DriverConnectionError, QueryError
from ..base import batch_error_details
from ..models import ResultSet, Statement
from ..result import RawResult, transform_raw_result
from ..sql_helper import qmark_to_format
from .driver import MySQLLikeDriver

logger = logging.getLogger(__name__)

# Wire type code -> type name understood by MySQLTypeMapper
_FIELD_TYPE_NAMES = {
    FIELD_TYPE.TINY: "tinyint",
    FIELD_TYPE.SHORT: "smallint",
    FIELD_TYPE.INT24: "mediumint",
    FIELD_TYPE.LONG: "int",
    FIELD_TYPE.LONGLONG: "bigint",
    FIELD_TYPE.YEAR: "year",
    FIELD_TYPE.FLOAT: "float",
    FIELD_TYPE.DOUBLE: "double",
    FIELD_TYPE.DECIMAL: "decimal",
    FIELD_TYPE.NEWDECIMAL: "decimal",
    FIELD_TYPE.BIT: "bit",
    FIELD_TYPE.DATE: "date",
    FIELD_TYPE.NEWDATE: "date",
    FIELD_TYPE.TIME: "time",
    FIELD_TYPE.DATETIME: "datetime",
    FIELD_TYPE.TIMESTAMP: "timestamp",
    FIELD_TYPE.VARCHAR: "varchar",
    FIELD_TYPE.VAR_STRING: "varchar",
    FIELD_TYPE.STRING: "char",
    FIELD_TYPE.ENUM: "enum",
    FIELD_TYPE.SET: "set",
    FIELD_TYPE.JSON: "json",
    FIELD_TYPE.GEOMETRY: "geometry",
    FIELD_TYPE.TINY_BLOB: "blob",
    FIELD_TYPE.MEDIUM_BLOB: "blob",
    FIELD_TYPE.LONG_BLOB: "blob",
    FIELD_TYPE.BLOB: "blob",
}


def _column_type_name(type_code: int, values: list) -> Optional[str]:
    name = _FIELD_TYPE_NAMES.get(type_code)
    if name == "blob":
        # TEXT columns share the BLOB wire types; decoded values tell them apart
        sample = next((v for v in values if v is not None), None)
        if isinstance(sample, str):
            return "text"
    return name


class PyMySQLDriver(MySQLLikeDriver):
    """MySQL-family driver talking to the server through PyMySQL."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        database: Optional[str] = None,
        **kwargs,
    ):
        from ...config import settings

        super().__init__(**kwargs)
        self.host = host or settings.mysql_host
        self.port = port or settings.mysql_port
        self.user = user or settings.mysql_user
        self.password = password if password is not None else settings.mysql_password
        self.database = database or settings.mysql_database
        self._connection = None

    def connect(self):
        """Connect to the server, reusing an open connection."""
        if self._connection is not None:
            return self._connection

        try:
            self._connection = pymysql.connect(
                host=self.host,
                port=int(self.port),
                user=self.user,
                password=self.password or "",
                database=self.database,
                autocommit=True,
                charset="utf8mb4",
            )
        except pymysql.err.Error as e:
            raise DriverConnectionError(
                f"MySQL connection failed: {e}",
                details={"host": self.host, "port": self.port},
            ) from e

        logger.debug("Connected to MySQL at %s:%s", self.host, self.port)
        return self._connection

    def close(self):
        """Close the connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def _run(self, cursor, stmt: Statement) -> ResultSet:
        start = time.time()
        if stmt.args:
            cursor.execute(qmark_to_format(stmt.sql), stmt.args)
        else:
            cursor.execute(stmt.sql)
        duration_ms = (time.time() - start) * 1000

        if cursor.description:
            rows = [list(r) for r in cursor.fetchall()]
            columns = [d[0] for d in cursor.description]
            column_types = [
                _column_type_name(d[1], [r[idx] for r in rows])
                for idx, d in enumerate(cursor.description)
            ]
        else:
            rows, columns, column_types = [], [], []

        raw = RawResult(
            columns=columns,
            column_types=column_types,
            rows=rows,
            rows_affected=0 if cursor.description else max(cursor.rowcount, 0),
            last_insert_rowid=cursor.lastrowid or None,
            query_duration_ms=duration_ms,
        )
        return transform_raw_result(raw, self.type_mapper)

    def _execute(self, stmt: Statement) -> ResultSet:
        conn = self.connect()
        cursor = conn.cursor()
        try:
            return self._run(cursor, stmt)
        except pymysql.err.Error as e:
            raise QueryError(str(e), details={"sql": stmt.sql}) from e
        finally:
            cursor.close()

    def _batch(self, stmts: List[Statement]) -> List[ResultSet]:
        conn = self.connect()
        cursor = conn.cursor()
        results = []
        try:
            conn.begin()
            for stmt in stmts:
                results.append(self._run(cursor, stmt))
            conn.commit()
        except pymysql.err.Error as e:
            try:
                conn.rollback()
            except pymysql.err.Error as rollback_error:
                logger.warning("Rollback failed on %s: %s", self.host, rollback_error)
            raise QueryError(str(e), details=batch_error_details(stmts, len(results))) from e
        finally:
            cursor.close()
        return results
