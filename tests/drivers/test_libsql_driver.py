"""Tests for the libSQL HTTP driver using a mocked transport."""

import json
import threading

import httpx
import pytest
from sqldeck.drivers.libsql import PIPELINE_PATH, LibSQLDriver, decode_value, encode_value
from sqldeck.drivers.type_mappers import ColumnType
from sqldeck.errors import DriverConnectionError, QueryError
from sqldeck.extensions import ExtensionRegistry


def _ok(response):
    return {"type": "ok", "response": response}


def _execute_result(cols=(), rows=(), **stats):
    result = {
        "cols": [{"name": name, "decltype": decltype} for name, decltype in cols],
        "rows": [[encode_value(v) for v in row] for row in rows],
        "affected_row_count": 0,
        "last_insert_rowid": None,
    }
    result.update(stats)
    return result


class FakeLibSQLServer:
    """Answers pipeline requests and remembers what it received."""

    def __init__(self):
        self.requests = []
        self.lock = threading.Lock()
        self.execute_handler = lambda sql: _execute_result()
        self.batch_response = None
        self.status_code = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        with self.lock:
            self.requests.append((request, body))

        if self.status_code != 200:
            return httpx.Response(self.status_code, text="server exploded")

        first = body["requests"][0]
        if first["type"] == "execute":
            outcome = self.execute_handler(first["stmt"]["sql"])
            if outcome.get("type") == "error":
                result = outcome
            else:
                result = _ok({"type": "execute", "result": outcome})
        else:
            result = _ok({"type": "batch", "result": self.batch_response})

        return httpx.Response(200, json={
            "baton": None,
            "base_url": None,
            "results": [result, _ok({"type": "close"})],
        })


@pytest.fixture
def server():
    return FakeLibSQLServer()


@pytest.fixture
def libsql_driver(server):
    driver = LibSQLDriver(
        url="libsql://db.example.com",
        auth_token="secret",
        big_int=False,
        transport=httpx.MockTransport(server),
        extensions=ExtensionRegistry(),
    )
    yield driver
    driver.close()


class TestValueCodec:
    """Test Hrana value objects."""

    @pytest.mark.parametrize("value,encoded", [
        (None, {"type": "null"}),
        (True, {"type": "integer", "value": "1"}),
        (42, {"type": "integer", "value": "42"}),
        (1.5, {"type": "float", "value": 1.5}),
        ("hi", {"type": "text", "value": "hi"}),
        (b"\x00\xff", {"type": "blob", "base64": "AP8="}),
    ])
    def test_encode(self, value, encoded):
        """Test Python values encode to their Hrana type."""
        assert encode_value(value) == encoded

    def test_decode_integer_is_normalised(self):
        """Test wide integers follow the big-int setting."""
        wide = {"type": "integer", "value": str(2 ** 62)}
        assert isinstance(decode_value(wide), float)
        assert decode_value(wide, big_int=True) == 2 ** 62

    def test_decode_unpadded_blob(self):
        """Test blobs without base64 padding are decoded."""
        assert decode_value({"type": "blob", "base64": "AP8"}) == b"\x00\xff"

    def test_decode_unknown_type(self):
        """Test an unknown value type raises QueryError."""
        with pytest.raises(QueryError):
            decode_value({"type": "mystery"})


class TestConnection:
    """Test URL handling and request shape."""

    def test_libsql_scheme_becomes_https(self, libsql_driver):
        """Test libsql:// URLs are sent over https."""
        assert libsql_driver.url == "https://db.example.com"

    def test_missing_url(self, monkeypatch):
        """Test a driver without URL cannot be created."""
        from sqldeck.config import settings

        monkeypatch.setattr(settings, "libsql_url", None)
        with pytest.raises(DriverConnectionError):
            LibSQLDriver(extensions=ExtensionRegistry())

    def test_request_shape(self, libsql_driver, server):
        """Test statements are posted to the pipeline with auth and a close request."""
        libsql_driver.query("SELECT ?", [7])
        request, body = server.requests[0]

        assert request.url.path == PIPELINE_PATH
        assert request.url.host == "db.example.com"
        assert request.headers["Authorization"] == "Bearer secret"
        assert body["baton"] is None
        assert body["requests"][0] == {
            "type": "execute",
            "stmt": {"sql": "SELECT ?", "args": [{"type": "integer", "value": "7"}], "want_rows": True},
        }
        assert body["requests"][1] == {"type": "close"}

    def test_http_error(self, libsql_driver, server):
        """Test non-success HTTP statuses become QueryError."""
        server.status_code = 500
        with pytest.raises(QueryError) as exc_info:
            libsql_driver.query("SELECT 1")
        assert "500" in exc_info.value.message

    def test_network_error(self):
        """Test transport failures become DriverConnectionError."""

        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        driver = LibSQLDriver(
            url="http://localhost:8080",
            transport=httpx.MockTransport(refuse),
            extensions=ExtensionRegistry(),
        )
        with pytest.raises(DriverConnectionError):
            driver.query("SELECT 1")

    def test_flags_follow_big_int(self, server):
        """Test the big-int option changes the capability flags."""
        driver = LibSQLDriver(
            url="http://localhost:8080", big_int=True, transport=httpx.MockTransport(server),
            extensions=ExtensionRegistry(),
        )
        assert driver.get_flags().support_big_int is True
        assert driver.get_flags().support_modify_column is True


class TestExecute:
    """Test single statements."""

    def test_result_set(self, libsql_driver, server):
        """Test columns, declared types, values and stats are mapped."""
        server.execute_handler = lambda sql: _execute_result(
            cols=[("id", "INTEGER"), ("name", "TEXT"), ("id", "INTEGER")],
            rows=[[1, "a", 2]],
            rows_read=3,
            rows_written=0,
            query_duration_ms=0.25,
        )
        result = libsql_driver.query("SELECT id, name, id FROM t")

        assert [h.name for h in result.headers] == ["id", "name", "__id_0"]
        assert [h.type for h in result.headers] == [ColumnType.INTEGER, ColumnType.TEXT, ColumnType.INTEGER]
        assert result.rows == [{"id": 1, "name": "a", "__id_0": 2}]
        assert result.stats.rows_read == 3
        assert result.stats.query_duration_ms == 0.25

    def test_insert_stats(self, libsql_driver, server):
        """Test affected rows and last rowid are reported."""
        server.execute_handler = lambda sql: _execute_result(affected_row_count=1, last_insert_rowid="9")
        result = libsql_driver.query("INSERT INTO t VALUES (1)")
        assert result.stats.rows_affected == 1
        assert result.last_insert_rowid == 9

    def test_wide_integer_becomes_float(self, libsql_driver, server):
        """Test integers beyond the safe range become floats without big-int mode."""
        server.execute_handler = lambda sql: _execute_result(cols=[("n", "INTEGER")], rows=[[2 ** 60]])
        value = libsql_driver.query("SELECT n FROM t").rows[0]["n"]
        assert isinstance(value, float)

    def test_statement_error(self, libsql_driver, server):
        """Test an error result becomes QueryError with the server message."""
        server.execute_handler = lambda sql: {
            "type": "error", "error": {"message": "no such table: t", "code": "SQLITE_ERROR"},
        }
        with pytest.raises(QueryError) as exc_info:
            libsql_driver.query("SELECT * FROM t")
        assert exc_info.value.message == "no such table: t"


class TestBatch:
    """Test transactions sent as conditional batches."""

    def test_batch_steps(self, libsql_driver, server):
        """Test statements are wrapped in BEGIN, COMMIT and a guarded ROLLBACK."""
        server.batch_response = {
            "step_results": [
                _execute_result(),
                _execute_result(affected_row_count=1),
                _execute_result(cols=[("n", "INTEGER")], rows=[[1]]),
                _execute_result(),
                None,
            ],
            "step_errors": [None, None, None, None, None],
        }
        results = libsql_driver.transaction(["INSERT INTO t VALUES (1)", "SELECT COUNT(*) AS n FROM t"])

        steps = server.requests[0][1]["requests"][0]["batch"]["steps"]
        assert [s["stmt"]["sql"] for s in steps] == [
            "BEGIN", "INSERT INTO t VALUES (1)", "SELECT COUNT(*) AS n FROM t", "COMMIT", "ROLLBACK",
        ]
        assert steps[1]["condition"] == {"type": "ok", "step": 0}
        assert steps[3]["condition"] == {"type": "ok", "step": 2}
        assert steps[4]["condition"] == {"type": "not", "cond": {"type": "ok", "step": 3}}

        assert len(results) == 2
        assert results[0].stats.rows_affected == 1
        assert results[1].rows == [{"n": 1}]

    def test_batch_error(self, libsql_driver, server):
        """Test the first failing step is reported with its statement index."""
        server.batch_response = {
            "step_results": [_execute_result(), _execute_result(), None, None, _execute_result()],
            "step_errors": [None, None, {"message": "UNIQUE constraint failed"}, None, None],
        }
        with pytest.raises(QueryError) as exc_info:
            libsql_driver.transaction(["INSERT INTO t VALUES (1)", "INSERT INTO t VALUES (1)"])
        assert exc_info.value.details["statement_index"] == 1
        assert "UNIQUE" in exc_info.value.message

    def test_commit_error(self, libsql_driver, server):
        """Test a failing COMMIT step is reported as the commit."""
        server.batch_response = {
            "step_results": [_execute_result(), _execute_result(), None, _execute_result()],
            "step_errors": [None, None, {"message": "FOREIGN KEY constraint failed"}, None],
        }
        with pytest.raises(QueryError) as exc_info:
            libsql_driver.transaction(["INSERT INTO c VALUES (42)"])
        assert exc_info.value.details["step"] == "commit"
        assert exc_info.value.details["statement_index"] is None


class TestIntrospect:
    """Test introspection over HTTP."""

    def test_catalog_queries_run_concurrently(self, libsql_driver, server):
        """Test every catalog query is sent and the collection is built."""

        def handler(sql):
            if sql == "PRAGMA database_list":
                return _execute_result(cols=[("seq", None), ("name", None), ("file", None)],
                                       rows=[[0, "main", ""]])
            return _execute_result()

        server.execute_handler = handler
        result = libsql_driver.introspect()

        assert list(result) == ["main"]
        assert len(server.requests) == 6
        assert libsql_driver.CONCURRENT_CATALOG_QUERIES is True
