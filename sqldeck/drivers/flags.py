"""Capability flags describing what each backend dialect supports."""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class DriverFlags:
    """Immutable per-driver feature flags.

    Built once per driver instance and read-only afterwards. The DDL
    generators consult these before emitting any statement.
    """

    dialect: str
    default_schema: str = ""
    optional_schema: bool = False
    support_big_int: bool = False
    support_modify_column: bool = False
    support_create_update_table: bool = True
    support_create_update_database: bool = False
    support_use_statement: bool = False
    support_row_id: bool = False
    support_insert_returning: bool = False
    support_update_returning: bool = False
    mismatch_detection: bool = False

    def with_overrides(self, **changes) -> "DriverFlags":
        """Return a copy with some flags changed."""
        return replace(self, **changes)


MYSQL_FLAGS = DriverFlags(
    dialect="mysql",
    default_schema="",
    optional_schema=False,
    support_big_int=False,
    support_modify_column=True,
    support_create_update_table=True,
    support_create_update_database=True,
    support_use_statement=True,
    support_row_id=False,
    support_insert_returning=False,
    support_update_returning=False,
    mismatch_detection=False,
)

SQLITE_FLAGS = DriverFlags(
    dialect="sqlite",
    default_schema="main",
    optional_schema=True,
    support_big_int=False,
    support_modify_column=False,
    support_create_update_table=True,
    support_create_update_database=False,
    support_use_statement=False,
    support_row_id=True,
    support_insert_returning=True,
    support_update_returning=True,
    mismatch_detection=False,
)


def libsql_flags(big_int: bool = False) -> DriverFlags:
    """Flags for a remote libSQL server.

    libSQL adds ALTER COLUMN on top of SQLite; big-integer mode also
    turns on mismatch detection since values may not round-trip as
    plain numbers.
    """
    return SQLITE_FLAGS.with_overrides(
        support_big_int=big_int,
        support_modify_column=True,
        mismatch_detection=big_int,
    )


_REGISTRY = {
    "mysql": MYSQL_FLAGS,
    "sqlite": SQLITE_FLAGS,
    "libsql": libsql_flags(),
}


def flags_for_backend(backend: str) -> DriverFlags:
    """Return the default capability flags for a backend name."""
    normalized = (backend or "").strip().lower()
    if normalized not in _REGISTRY:
        raise ValueError(f"Unsupported backend: {backend}")
    return _REGISTRY[normalized]
