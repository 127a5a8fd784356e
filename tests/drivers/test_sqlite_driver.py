"""Tests for the SQLite driver against an in-memory database."""

import pytest
from sqldeck.drivers.models import ConstraintKind, SchemaItemType, Statement
from sqldeck.drivers.sqlite import SQLITE_COLLATION_LIST, SQLiteDriver
from sqldeck.drivers.type_mappers import ColumnType
from sqldeck.errors import DriverConnectionError, QueryError, TableNotFoundError
from sqldeck.extensions import ExtensionRegistry

from .fixtures import RecordingExtension


def _constraint(table, kind):
    return next(c for c in table.constraints if c.kind == kind)


class TestIntrospect:
    """Test pragma-based introspection."""

    def test_main_schema(self, shop_driver):
        """Test the main database is listed and temp is not."""
        result = shop_driver.introspect()
        assert list(result) == ["main"]
        names = [t.name for t in result["main"].tables]
        assert names == ["big_orders", "customers", "empty_table", "orders"]

    def test_empty_database(self, sqlite_driver):
        """Test a database with no tables gives an empty main schema."""
        result = sqlite_driver.introspect()
        assert result["main"].items() == []

    def test_columns(self, shop_driver):
        """Test column types, nullability and defaults come from the pragma rows."""
        customers = shop_driver.introspect().get_table("main", "customers")
        assert [c.name for c in customers.columns] == ["id", "email", "name"]
        assert customers.get_column("email").constraint.not_null is True
        assert customers.get_column("name").constraint.default_expression == "'anonymous'"
        assert customers.get_column("id").type == "INTEGER"

    def test_autoincrement(self, shop_driver):
        """Test AUTOINCREMENT in the table definition marks the key column."""
        result = shop_driver.introspect()
        customers = result.get_table("main", "customers")
        assert customers.auto_increment is True
        assert customers.get_column("id").constraint.auto_increment is True
        assert result.get_table("main", "orders").auto_increment is False

    def test_primary_keys(self, shop_driver):
        """Test single and composite primary keys."""
        result = shop_driver.introspect()
        assert result.get_table("main", "customers").pk == ["id"]
        orders = result.get_table("main", "orders")
        assert orders.pk == ["order_id", "line"]
        pk = _constraint(orders, ConstraintKind.PRIMARY_KEY)
        assert pk.name is None
        assert pk.columns == ["order_id", "line"]

    def test_unique_constraint(self, shop_driver):
        """Test UNIQUE column constraints become unnamed unique constraints."""
        customers = shop_driver.introspect().get_table("main", "customers")
        unique = [c for c in customers.constraints if c.kind == ConstraintKind.UNIQUE]
        assert len(unique) == 1
        assert unique[0].columns == ["email"]
        assert unique[0].name is None

    def test_primary_key_index_not_unique_constraint(self, shop_driver):
        """Test the implicit index of a composite key is not reported as UNIQUE."""
        orders = shop_driver.introspect().get_table("main", "orders")
        assert [c.kind for c in orders.constraints if c.kind == ConstraintKind.UNIQUE] == []

    def test_foreign_key(self, shop_driver):
        """Test foreign keys reference a table in the same schema."""
        orders = shop_driver.introspect().get_table("main", "orders")
        fk = _constraint(orders, ConstraintKind.FOREIGN_KEY).foreign_key
        assert fk.columns == ["customer_id"]
        assert fk.foreign_schema_name == "main"
        assert fk.foreign_table_name == "customers"
        assert fk.foreign_columns == ["id"]

    def test_implicit_foreign_key_columns(self, shop_driver):
        """Test a reference without columns resolves to the parent's primary key."""
        shop_driver.query(
            "CREATE TABLE shipments (order_id INTEGER, line INTEGER, "
            "FOREIGN KEY (order_id, line) REFERENCES orders)"
        )
        shipments = shop_driver.introspect().get_table("main", "shipments")
        fk = _constraint(shipments, ConstraintKind.FOREIGN_KEY).foreign_key
        assert fk.columns == ["order_id", "line"]
        assert fk.foreign_columns == ["order_id", "line"]

    def test_view(self, shop_driver):
        """Test views are tagged, have columns and no constraints."""
        view = shop_driver.introspect().get_table("main", "big_orders")
        assert view.type == SchemaItemType.VIEW
        assert [c.name for c in view.columns] == ["order_id", "total"]
        assert view.constraints == []

    def test_trigger(self, shop_driver):
        """Test triggers get timing and event from their definition."""
        trigger = shop_driver.introspect()["main"].triggers[0]
        assert trigger.name == "orders_audit"
        assert trigger.table_name == "orders"
        assert trigger.timing == "AFTER"
        assert trigger.event == "INSERT"

    def test_attached_database(self, shop_driver):
        """Test attached databases are introspected as separate schemas."""
        shop_driver.query("ATTACH DATABASE ':memory:' AS aux")
        shop_driver.query('CREATE TABLE aux.notes (id INTEGER PRIMARY KEY, body TEXT)')
        result = shop_driver.introspect()
        assert set(result) == {"main", "aux"}
        notes = result.get_table("aux", "notes")
        assert notes.schema_name == "aux"
        assert notes.pk == ["id"]

    def test_catalog_queries_bypass_extensions(self, shop_driver):
        """Test introspection does not reach extension hooks."""
        recorder = RecordingExtension()
        shop_driver.extensions.register(recorder)
        shop_driver.introspect()
        assert recorder.before == []


class TestTableSchema:
    """Test single-table introspection."""

    def test_table_schema(self, shop_driver):
        """Test one table is returned with its constraints."""
        orders = shop_driver.table_schema("main", "orders")
        assert orders.name == "orders"
        assert {c.kind for c in orders.constraints} == {ConstraintKind.PRIMARY_KEY, ConstraintKind.FOREIGN_KEY}

    def test_implicit_foreign_key_matches_introspect(self, sqlite_driver):
        """Test a reference without columns resolves the same way as full introspection."""
        sqlite_driver.query("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
        sqlite_driver.query("CREATE TABLE child (pid INTEGER REFERENCES parent)")

        single = _constraint(sqlite_driver.table_schema("main", "child"), ConstraintKind.FOREIGN_KEY)
        full = _constraint(sqlite_driver.introspect().get_table("main", "child"), ConstraintKind.FOREIGN_KEY)
        assert single.foreign_key.foreign_columns == ["id"]
        assert single.foreign_key == full.foreign_key

    def test_default_schema(self, shop_driver):
        """Test an empty schema name falls back to main."""
        assert shop_driver.table_schema("", "customers").schema_name == "main"

    def test_missing_table(self, shop_driver):
        """Test an unknown table raises TableNotFoundError."""
        with pytest.raises(TableNotFoundError) as exc_info:
            shop_driver.table_schema("main", "missing")
        assert exc_info.value.code == "TABLE_NOT_FOUND"


class TestQueries:
    """Test user queries and transactions."""

    def test_select(self, shop_driver):
        """Test rows come back keyed by column name."""
        shop_driver.query("INSERT INTO customers (email) VALUES (?)", ["a@example.com"])
        result = shop_driver.query("SELECT id, email, name FROM customers")
        assert result.rows == [{"id": 1, "email": "a@example.com", "name": "anonymous"}]

    def test_insert_stats(self, shop_driver):
        """Test inserts report affected rows and the new rowid."""
        result = shop_driver.query("INSERT INTO customers (email) VALUES ('b@example.com')")
        assert result.stats.rows_affected == 1
        assert result.last_insert_rowid == 1
        assert result.headers == []

    def test_select_has_no_rowid(self, shop_driver):
        """Test statements that insert nothing report no rowid."""
        assert shop_driver.query("SELECT 1 AS one").last_insert_rowid is None

    def test_duplicate_columns(self, shop_driver):
        """Test duplicate output columns are renamed and keep their values."""
        result = shop_driver.query("SELECT 1 AS a, 2 AS a")
        assert [h.name for h in result.headers] == ["a", "__a_0"]
        assert result.rows == [{"a": 1, "__a_0": 2}]

    def test_header_types_from_values(self, shop_driver):
        """Test header types follow the storage class of the first non-null value."""
        result = shop_driver.query(
            "SELECT 1 AS i, 1.5 AS r, 'x' AS t, x'00' AS b, NULL AS n "
            "UNION ALL SELECT NULL, NULL, NULL, NULL, NULL"
        )
        assert [h.original_type for h in result.headers] == ["INTEGER", "REAL", "TEXT", "BLOB", None]
        assert [h.type for h in result.headers] == [
            ColumnType.INTEGER, ColumnType.REAL, ColumnType.TEXT, ColumnType.BLOB, ColumnType.UNKNOWN,
        ]

    def test_blob_values(self, shop_driver):
        """Test blobs are returned as byte value lists."""
        result = shop_driver.query("SELECT x'0aff' AS data")
        assert result.rows[0]["data"] == [10, 255]

    def test_query_error(self, shop_driver):
        """Test backend errors become QueryError."""
        with pytest.raises(QueryError) as exc_info:
            shop_driver.query("SELECT * FROM nowhere")
        assert "nowhere" in exc_info.value.message

    def test_transaction(self, shop_driver):
        """Test a transaction returns one result per statement."""
        results = shop_driver.transaction([
            "INSERT INTO customers (email) VALUES ('a@example.com')",
            Statement(sql="INSERT INTO customers (email) VALUES (?)", args=["b@example.com"]),
            "SELECT COUNT(*) AS n FROM customers",
        ])
        assert len(results) == 3
        assert results[2].rows == [{"n": 2}]

    def test_transaction_rolls_back(self, shop_driver):
        """Test a failing statement rolls back the whole transaction."""
        with pytest.raises(QueryError) as exc_info:
            shop_driver.transaction([
                "INSERT INTO customers (email) VALUES ('a@example.com')",
                "INSERT INTO customers (email) VALUES ('a@example.com')",
            ])
        assert exc_info.value.details["statement_index"] == 1
        assert shop_driver.query("SELECT COUNT(*) AS n FROM customers").rows == [{"n": 0}]

    def test_failing_commit(self, sqlite_driver):
        """Test a deferred constraint failing at COMMIT raises QueryError and rolls back."""
        sqlite_driver.query("PRAGMA foreign_keys = ON")
        sqlite_driver.query("CREATE TABLE parent (id INTEGER PRIMARY KEY)")
        sqlite_driver.query(
            "CREATE TABLE child (pid INTEGER REFERENCES parent (id) DEFERRABLE INITIALLY DEFERRED)"
        )
        with pytest.raises(QueryError) as exc_info:
            sqlite_driver.transaction(["INSERT INTO child VALUES (42)"])

        assert exc_info.value.details["step"] == "commit"
        assert exc_info.value.details["statement_index"] is None
        assert sqlite_driver.connect().in_transaction is False
        assert sqlite_driver.query("SELECT COUNT(*) AS n FROM child").rows == [{"n": 0}]

    def test_extensions_see_transaction(self, shop_driver):
        """Test a transaction reaches extensions as one batch."""
        recorder = RecordingExtension()
        shop_driver.extensions.register(recorder)
        shop_driver.transaction(["SELECT 1", "SELECT 2"])
        assert recorder.before == [["SELECT 1", "SELECT 2"]]
        assert len(recorder.after[0]["results"]) == 2

    def test_failing_extension_does_not_break_query(self, shop_driver):
        """Test an extension raising in a hook leaves the query result intact."""

        class Broken(RecordingExtension):
            name = "broken"

            def after_query(self, *args, **kwargs):
                raise RuntimeError("boom")

        shop_driver.extensions.register(Broken())
        assert shop_driver.query("SELECT 1 AS one").rows == [{"one": 1}]


class TestRowStatements:
    """Test the common row-editing SQL on SQLite."""

    def test_select_table_includes_rowid(self, shop_driver):
        """Test paged selects include the rowid."""
        stmt = shop_driver.select_table("main", "orders", limit=5)
        assert stmt.sql == 'SELECT rowid, * FROM "main"."orders" LIMIT 5 OFFSET 0'
        result = shop_driver.query(stmt)
        assert [h.name for h in result.headers][:2] == ["rowid", "order_id"]

    def test_insert_returning(self, shop_driver):
        """Test inserts return the new row."""
        stmt = shop_driver.insert_row("main", "customers", {"email": "c@example.com"})
        assert stmt.sql.endswith(" RETURNING *")
        result = shop_driver.query(stmt)
        assert result.rows == [{"id": 1, "email": "c@example.com", "name": "anonymous"}]

    def test_update_and_delete(self, shop_driver):
        """Test update returns the changed row and delete removes it."""
        shop_driver.query(shop_driver.insert_row("main", "customers", {"email": "d@example.com"}))

        updated = shop_driver.query(shop_driver.update_rows("main", "customers", {"name": "Dee"}, {"id": 1}))
        assert updated.rows[0]["name"] == "Dee"

        shop_driver.query(shop_driver.delete_rows("main", "customers", {"id": 1}))
        assert shop_driver.query("SELECT COUNT(*) AS n FROM customers").rows == [{"n": 0}]


class TestConnection:
    """Test connection handling."""

    def test_collations(self, sqlite_driver):
        """Test the built-in collations are listed."""
        assert sqlite_driver.get_collation_list() == SQLITE_COLLATION_LIST

    def test_current_schema(self, sqlite_driver):
        """Test SQLite has no selected schema."""
        assert sqlite_driver.current_schema() is None

    def test_unopenable_path(self, tmp_path):
        """Test a path that cannot be opened raises DriverConnectionError."""
        driver = SQLiteDriver(path=str(tmp_path / "missing" / "db.sqlite"), extensions=ExtensionRegistry())
        with pytest.raises(DriverConnectionError):
            driver.connect()

    def test_close_is_idempotent(self, sqlite_driver):
        """Test closing twice is harmless and the driver reconnects on use."""
        sqlite_driver.query("SELECT 1")
        sqlite_driver.close()
        sqlite_driver.close()
        assert sqlite_driver.query("SELECT 1 AS one").rows == [{"one": 1}]
