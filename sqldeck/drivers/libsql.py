"""Remote libSQL driver speaking the Hrana v2 HTTP pipeline protocol."""

import base64
import logging
import threading
from typing import Any, Dict, List, Optional

import httpx

from ..errors import DriverConnectionError, QueryError
from .base import batch_error_details
from .flags import DriverFlags, libsql_flags
from .models import ResultSet, Statement
from .result import RawResult, normalize_integer, transform_raw_result
from .sqlite.driver import SQLiteLikeDriver

logger = logging.getLogger(__name__)

PIPELINE_PATH = "/v2/pipeline"


def encode_value(value: Any) -> Dict[str, Any]:
    """Encode a Python value as a Hrana value object."""
    if value is None:
        return {"type": "null"}
    if isinstance(value, bool):
        return {"type": "integer", "value": "1" if value else "0"}
    if isinstance(value, int):
        return {"type": "integer", "value": str(value)}
    if isinstance(value, float):
        return {"type": "float", "value": value}
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {"type": "blob", "base64": base64.b64encode(bytes(value)).decode("ascii")}
    return {"type": "text", "value": str(value)}


def decode_value(value: Dict[str, Any], big_int: bool = False) -> Any:
    """Decode a Hrana value object."""
    kind = value.get("type")
    if kind == "null":
        return None
    if kind == "integer":
        return normalize_integer(value["value"], big_int)
    if kind == "float":
        return float(value["value"])
    if kind == "text":
        return value["value"]
    if kind == "blob":
        data = value.get("base64") or ""
        return base64.b64decode(data + "=" * (-len(data) % 4))
    raise QueryError(f"Unknown value type in response: {kind}", details={"value": value})


def _stmt_payload(stmt: Statement) -> Dict[str, Any]:
    return {
        "sql": stmt.sql,
        "args": [encode_value(a) for a in stmt.args],
        "want_rows": True,
    }


class LibSQLDriver(SQLiteLikeDriver):
    """SQLite-family driver for a remote libSQL server.

    Every call is a stateless pipeline request; batches are wrapped in
    BEGIN/COMMIT steps conditioned on the previous step succeeding.
    """

    CONCURRENT_CATALOG_QUERIES = True

    def __init__(
        self,
        url: Optional[str] = None,
        auth_token: Optional[str] = None,
        big_int: Optional[bool] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
        **kwargs,
    ):
        from ..config import settings

        super().__init__(**kwargs)
        url = url or settings.libsql_url
        if not url:
            raise DriverConnectionError("No libSQL URL configured")
        if url.startswith("libsql://"):
            url = "https://" + url[len("libsql://"):]
        self.url = url.rstrip("/")
        self.auth_token = auth_token if auth_token is not None else settings.libsql_auth_token
        self.big_int = settings.big_int if big_int is None else big_int
        self.timeout = timeout or settings.query_timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        with self._lock:
            if self._client is None:
                headers = {"Content-Type": "application/json"}
                if self.auth_token:
                    headers["Authorization"] = f"Bearer {self.auth_token}"
                self._client = httpx.Client(
                    base_url=self.url,
                    headers=headers,
                    timeout=self.timeout,
                    transport=self._transport,
                )
            return self._client

    def close(self):
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None

    def get_flags(self) -> DriverFlags:
        return libsql_flags(self.big_int)

    def _pipeline(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """Send one request in its own pipeline and return its response."""
        body = {"baton": None, "requests": [request, {"type": "close"}]}
        try:
            response = self.client.post(PIPELINE_PATH, json=body)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise QueryError(
                f"libSQL server returned HTTP {e.response.status_code}",
                details={"body": e.response.text[:500]},
            ) from e
        except httpx.HTTPError as e:
            raise DriverConnectionError(f"libSQL request failed: {e}", details={"url": self.url}) from e

        result = response.json()["results"][0]
        if result["type"] == "error":
            raise QueryError(result["error"].get("message", "Unknown error"), details=result["error"])
        return result["response"]

    def _to_result_set(self, result: Dict[str, Any]) -> ResultSet:
        cols = result.get("cols") or []
        raw = RawResult(
            columns=[c.get("name") or "" for c in cols],
            column_types=[c.get("decltype") for c in cols],
            rows=[[decode_value(v, self.big_int) for v in row] for row in result.get("rows") or []],
            rows_affected=result.get("affected_row_count") or 0,
            last_insert_rowid=result.get("last_insert_rowid"),
            rows_read=result.get("rows_read"),
            rows_written=result.get("rows_written"),
            query_duration_ms=result.get("query_duration_ms"),
        )
        return transform_raw_result(raw, self.type_mapper, big_int=self.big_int)

    def _execute(self, stmt: Statement) -> ResultSet:
        response = self._pipeline({"type": "execute", "stmt": _stmt_payload(stmt)})
        return self._to_result_set(response["result"])

    def _batch(self, stmts: List[Statement]) -> List[ResultSet]:
        steps: List[Dict[str, Any]] = [{"stmt": {"sql": "BEGIN"}}]
        for stmt in stmts:
            steps.append({
                "stmt": _stmt_payload(stmt),
                "condition": {"type": "ok", "step": len(steps) - 1},
            })
        commit_step = len(steps)
        steps.append({"stmt": {"sql": "COMMIT"}, "condition": {"type": "ok", "step": commit_step - 1}})
        steps.append({
            "stmt": {"sql": "ROLLBACK"},
            "condition": {"type": "not", "cond": {"type": "ok", "step": commit_step}},
        })

        response = self._pipeline({"type": "batch", "batch": {"steps": steps}})
        step_results = response["result"]["step_results"]
        step_errors = response["result"]["step_errors"]

        for idx, error in enumerate(step_errors[:commit_step + 1]):
            if error is not None:
                details = {"step": "begin"} if idx == 0 else batch_error_details(stmts, idx - 1)
                raise QueryError(error.get("message", "Unknown error"), details={**details, **error})

        return [self._to_result_set(step_results[idx]) for idx in range(1, commit_step)]
