"""Shared pytest fixtures for sqldeck tests."""

import pytest

from sqldeck.config import settings
from sqldeck.drivers.flags import MYSQL_FLAGS, SQLITE_FLAGS
from sqldeck.drivers.models import Column, ColumnConstraint, Table
from sqldeck.drivers.sqlite import SQLiteDriver
from sqldeck.extensions import ExtensionRegistry


SHOP_SCHEMA = """
CREATE TABLE customers (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    email TEXT NOT NULL UNIQUE,
    name TEXT DEFAULT 'anonymous'
);
CREATE TABLE orders (
    order_id INTEGER NOT NULL,
    line INTEGER NOT NULL,
    customer_id INTEGER REFERENCES customers(id),
    total REAL,
    PRIMARY KEY (order_id, line)
);
CREATE TABLE empty_table (note TEXT);
CREATE VIEW big_orders AS SELECT order_id, total FROM orders WHERE total > 100;
CREATE TRIGGER orders_audit AFTER INSERT ON orders BEGIN SELECT 1; END;
"""


@pytest.fixture(autouse=True)
def isolated_history(tmp_path, monkeypatch):
    """Keep query history out of the user's home directory."""
    monkeypatch.setattr(settings, "history_db_path", str(tmp_path / "history.db"))
    return settings.history_db_path


@pytest.fixture
def mysql_flags():
    return MYSQL_FLAGS


@pytest.fixture
def sqlite_flags():
    return SQLITE_FLAGS


@pytest.fixture
def users_table():
    """A two column users table with an id primary key."""
    return Table(
        name="users",
        schema_name="main",
        columns=[
            Column(name="id", type="INTEGER", constraint=ColumnConstraint(primary_key=True), pk=True),
            Column(name="name", type="TEXT"),
        ],
    )


@pytest.fixture
def sqlite_driver():
    """In-memory SQLite driver with no extensions."""
    driver = SQLiteDriver(path=":memory:", extensions=ExtensionRegistry())
    yield driver
    driver.close()


@pytest.fixture
def shop_driver(sqlite_driver):
    """In-memory SQLite driver holding the shop schema."""
    sqlite_driver.connect().executescript(SHOP_SCHEMA)
    return sqlite_driver


@pytest.fixture
def shop_db_file(tmp_path):
    """Path to a SQLite file holding the shop schema."""
    import sqlite3

    path = tmp_path / "shop.db"
    conn = sqlite3.connect(str(path))
    conn.executescript(SHOP_SCHEMA)
    conn.close()
    return str(path)
