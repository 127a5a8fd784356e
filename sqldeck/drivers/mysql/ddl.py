"""MySQL-family DDL generation."""

from typing import Any, List, Optional

from ..ddl import AlterPlan, SchemaChangeGenerator
from ..models import (
    Column,
    ColumnConstraint,
    ConstraintKind,
    DatabaseChangeRequest,
    Table,
    TableChangeRequest,
    TableConstraint,
)
from ..sql_helper import escape_identifier, escape_mysql_value, sql_keyword
from ..type_mappers import MySQLTypeMapper

# Default expressions MySQL accepts without parentheses
_BARE_DEFAULTS = ("NULL", "CURRENT_TIMESTAMP", "NOW(", "LOCALTIME", "LOCALTIMESTAMP", "CURRENT_DATE")


class MySQLSchemaChangeGenerator(SchemaChangeGenerator):
    """DDL generator for MySQL and compatible servers.

    MySQL accepts several comma separated clauses in one ALTER TABLE,
    so a table change becomes a single statement.
    """

    COMBINED_ALTER = True

    type_mapper = MySQLTypeMapper()

    def escape_id(self, identifier: str) -> str:
        return escape_identifier(identifier, "`")

    def escape_value(self, value: Any) -> str:
        return escape_mysql_value(value)

    def render_default_expression(self, expression: str) -> str:
        stripped = expression.strip()
        if stripped.startswith("(") or stripped.upper().startswith(_BARE_DEFAULTS):
            return stripped
        return f"({stripped})"

    def auto_increment_tokens(self, constraint: ColumnConstraint) -> List[str]:
        return ["AUTO_INCREMENT"] if constraint.auto_increment else []

    def modify_column_clause(self, old: Column, new: Column) -> str:
        definition = self.column_definition(new, include_primary_key=False)
        if old.name != new.name:
            return f"CHANGE COLUMN {self.escape_id(old.name)} {definition}"
        return f"MODIFY COLUMN {definition}"

    def drop_constraint_clause(self, constraint: TableConstraint) -> str:
        if constraint.kind == ConstraintKind.PRIMARY_KEY:
            return "DROP PRIMARY KEY"
        if constraint.kind == ConstraintKind.FOREIGN_KEY:
            return f"DROP FOREIGN KEY {self.escape_id(constraint.name)}"
        return f"DROP INDEX {self.escape_id(constraint.name)}"

    def before_drop_column(
        self,
        plan: AlterPlan,
        column: Column,
        change: TableChangeRequest,
        table: Optional[Table],
    ) -> None:
        """Drop foreign keys that still use the column being removed."""
        if table is None:
            return
        already_dropped = {c.old.name for c in change.constraints if c.old is not None}
        for constraint in table.constraints:
            if constraint.kind != ConstraintKind.FOREIGN_KEY or constraint.name in already_dropped:
                continue
            if column.name in (constraint.foreign_key.columns or constraint.columns):
                plan.add("drop_constraints", self.drop_constraint_clause(constraint))
                already_dropped.add(constraint.name)

    def rename_table_clause(self, change: TableChangeRequest) -> str:
        return f"RENAME TO {self.qualify(change.schema_name, change.new_name)}"

    def database_change_statements(self, change: DatabaseChangeRequest) -> List[str]:
        if change.old_name is None:
            if not change.new_name:
                raise ValueError("A new database needs a name")
            statement = f"CREATE DATABASE {self.escape_id(change.new_name)}"
            if change.character_set:
                statement += f" CHARACTER SET {sql_keyword(change.character_set, 'character set')}"
            if change.collation:
                statement += f" COLLATE {sql_keyword(change.collation, 'collation')}"
            return [statement]

        if change.new_name is None:
            return [f"DROP DATABASE {self.escape_id(change.old_name)}"]

        if change.new_name != change.old_name:
            raise self._unsupported("MySQL cannot rename a database", "rename_database")

        options = []
        if change.character_set:
            options.append(f"CHARACTER SET {sql_keyword(change.character_set, 'character set')}")
        if change.collation:
            options.append(f"COLLATE {sql_keyword(change.collation, 'collation')}")
        if not options:
            return []
        return [f"ALTER DATABASE {self.escape_id(change.old_name)} " + " ".join(options)]
