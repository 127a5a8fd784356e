"""SQLite-family DDL generation."""

from typing import Any, List, Optional

from ..ddl import AlterPlan, SchemaChangeGenerator
from ..models import (
    Column,
    ColumnConstraint,
    ConstraintChange,
    Table,
    TableChangeRequest,
    TableConstraint,
)
from ..sql_helper import escape_identifier, escape_sql_value
from ..type_mappers import SQLiteTypeMapper


class SQLiteSchemaChangeGenerator(SchemaChangeGenerator):
    """DDL generator for SQLite and libSQL.

    SQLite's ALTER TABLE takes exactly one action, so every logical
    change gets its own statement. Table constraints can only be set
    when the table is created. Column definition changes use libSQL's
    ``ALTER COLUMN`` and are only emitted when the flags allow it.
    """

    COMBINED_ALTER = False

    type_mapper = SQLiteTypeMapper()

    def escape_id(self, identifier: str) -> str:
        return escape_identifier(identifier, '"')

    def escape_value(self, value: Any) -> str:
        return escape_sql_value(value)

    def primary_key_tokens(self, constraint: ColumnConstraint) -> List[str]:
        if constraint.auto_increment:
            return ["PRIMARY KEY", "AUTOINCREMENT"]
        return ["PRIMARY KEY"]

    def reference_target(self, constraint: TableConstraint) -> str:
        # SQLite foreign keys always point into the same schema
        return self.escape_id(constraint.foreign_key.foreign_table_name)

    def modify_column_clause(self, old: Column, new: Column) -> str:
        return f"ALTER COLUMN {self.escape_id(old.name)} TO {self.column_definition(new, include_primary_key=False)}"

    def add_column_clause(self, column: Column) -> str:
        constraint = column.constraint or ColumnConstraint()
        if constraint.primary_key or constraint.auto_increment:
            raise self._unsupported(
                f"SQLite cannot add primary key column {column.name} to an existing table",
                "alter_constraint",
            )
        return super().add_column_clause(column)

    def _plan_constraint_change(self, plan: AlterPlan, con: ConstraintChange, table: Optional[Table]) -> None:
        if con.old is not None and con.new is not None and con.old == con.new:
            return
        raise self._unsupported(
            "SQLite cannot add or drop constraints on an existing table",
            "alter_constraint",
        )

    def before_drop_column(
        self,
        plan: AlterPlan,
        column: Column,
        change: TableChangeRequest,
        table: Optional[Table],
    ) -> None:
        """SQLite refuses to drop a column that a table constraint uses."""
        if table is None:
            return
        for constraint in table.constraints:
            members = constraint.columns
            if constraint.foreign_key is not None:
                members = constraint.foreign_key.columns or members
            if column.name in members:
                raise self._unsupported(
                    f"SQLite cannot drop column {column.name} used by constraint "
                    f"{constraint.name or constraint.kind.value}",
                    "drop_constrained_column",
                )

    def drop_constraint_clause(self, constraint: TableConstraint) -> str:
        raise self._unsupported(
            "SQLite cannot drop constraints on an existing table",
            "alter_constraint",
        )

    def rename_table_clause(self, change: TableChangeRequest) -> str:
        return f"RENAME TO {self.escape_id(change.new_name)}"
