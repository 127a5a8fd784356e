"""Shared DDL generation: turns change requests into ordered SQL statements."""

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, List, Optional

from ..errors import UnsupportedOperationError
from .flags import DriverFlags
from .models import (
    Column,
    ColumnChange,
    ColumnConstraint,
    ConstraintChange,
    ConstraintKind,
    DatabaseChangeRequest,
    Table,
    TableChangeRequest,
    TableConstraint,
)
from .sql_helper import sql_keyword
from .type_mappers import TypeMapper


class AlterPlan:
    """ALTER clauses grouped in the order they must run.

    Constraint drops come before the column drops they may depend on,
    new columns before new constraints, and the table rename last.
    """

    ORDER = (
        "drop_constraints",
        "drop_columns",
        "add_columns",
        "modify_columns",
        "rename_columns",
        "add_constraints",
        "rename_table",
    )

    def __init__(self):
        self.buckets = {name: [] for name in self.ORDER}

    def add(self, bucket: str, clause: str) -> None:
        self.buckets[bucket].append(clause)

    def clauses(self) -> List[str]:
        ordered = []
        for name in self.ORDER:
            ordered.extend(self.buckets[name])
        return ordered


class SchemaChangeGenerator(ABC):
    """Base class for dialect DDL generators.

    Generators are pure: they read capability flags, the current table
    shape and a change request, and return SQL text without any I/O.
    """

    # Whether one ALTER TABLE may carry several comma separated clauses
    COMBINED_ALTER = False

    type_mapper: TypeMapper

    def __init__(self, flags: DriverFlags):
        self.flags = flags

    @abstractmethod
    def escape_id(self, identifier: str) -> str:
        pass

    @abstractmethod
    def escape_value(self, value: Any) -> str:
        pass

    def qualify(self, schema_name: Optional[str], name: str) -> str:
        if schema_name:
            return f"{self.escape_id(schema_name)}.{self.escape_id(name)}"
        return self.escape_id(name)

    def _unsupported(self, message: str, capability: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(message, capability=capability, dialect=self.flags.dialect)

    # Column and constraint definitions

    def render_default(self, column: Column) -> Optional[str]:
        constraint = column.constraint
        if constraint is None:
            return None
        if constraint.default_expression is not None:
            return self.render_default_expression(constraint.default_expression)
        if constraint.default_value is not None:
            return self.type_mapper.render_default(column.type, constraint.default_value, self.escape_value)
        return None

    def render_default_expression(self, expression: str) -> str:
        return expression

    def primary_key_tokens(self, constraint: ColumnConstraint) -> List[str]:
        return ["PRIMARY KEY"]

    def auto_increment_tokens(self, constraint: ColumnConstraint) -> List[str]:
        return []

    def column_definition(self, column: Column, include_primary_key: bool = True) -> str:
        tokens = [self.escape_id(column.name)]
        if column.type:
            tokens.append(column.type)

        constraint = column.constraint or ColumnConstraint()
        if constraint.not_null:
            tokens.append("NOT NULL")

        default = self.render_default(column)
        if default is not None:
            tokens.append(f"DEFAULT {default}")

        tokens.extend(self.auto_increment_tokens(constraint))
        if include_primary_key and constraint.primary_key:
            tokens.extend(self.primary_key_tokens(constraint))

        if constraint.collate:
            tokens.append(f"COLLATE {sql_keyword(constraint.collate, 'collation')}")

        return " ".join(tokens)

    def _column_list(self, columns: List[str]) -> str:
        return ", ".join(self.escape_id(c) for c in columns)

    def reference_target(self, constraint: TableConstraint) -> str:
        fk = constraint.foreign_key
        return self.qualify(fk.foreign_schema_name or None, fk.foreign_table_name)

    def constraint_definition(self, constraint: TableConstraint) -> str:
        prefix = f"CONSTRAINT {self.escape_id(constraint.name)} " if constraint.name else ""

        if constraint.kind == ConstraintKind.PRIMARY_KEY:
            return f"{prefix}PRIMARY KEY ({self._column_list(constraint.columns)})"
        if constraint.kind == ConstraintKind.UNIQUE:
            return f"{prefix}UNIQUE ({self._column_list(constraint.columns)})"

        fk = constraint.foreign_key
        columns = fk.columns or constraint.columns
        return (
            f"{prefix}FOREIGN KEY ({self._column_list(columns)}) "
            f"REFERENCES {self.reference_target(constraint)} ({self._column_list(fk.foreign_columns)})"
        )

    # Table changes

    def generate_table_change(self, change: TableChangeRequest, table: Optional[Table] = None) -> List[str]:
        """Generate the statements performing ``change``.

        Args:
            change: Requested table change
            table: Current shape of the table, if it exists

        Returns:
            Ordered list of SQL statements

        Raises:
            UnsupportedOperationError: if the change needs a capability
                the backend does not have
        """
        if not self.flags.support_create_update_table:
            raise self._unsupported(
                f"{self.flags.dialect} does not support creating or altering tables",
                "support_create_update_table",
            )

        if change.is_create:
            if not change.new_name:
                raise ValueError("A new table needs a name")
            return [self.create_table(change)]

        if change.is_drop:
            return [f"DROP TABLE {self.qualify(change.schema_name, change.old_name)}"]

        plan = self.plan_alter(change, table)
        clauses = plan.clauses()
        if not clauses:
            return []

        target = self.qualify(change.schema_name, change.old_name)
        if self.COMBINED_ALTER:
            return [f"ALTER TABLE {target} " + ", ".join(clauses)]
        return [f"ALTER TABLE {target} {clause}" for clause in clauses]

    def create_table(self, change: TableChangeRequest) -> str:
        new_constraints = [c.new for c in change.constraints if c.new is not None]
        has_table_pk = any(c.primary_key for c in new_constraints)

        lines = [
            self.column_definition(col.new, include_primary_key=not has_table_pk)
            for col in change.columns
            if col.new is not None
        ]
        lines.extend(self.constraint_definition(c) for c in new_constraints)

        body = ",\n  ".join(lines)
        return f"CREATE TABLE {self.qualify(change.schema_name, change.new_name)}(\n  {body}\n)"

    def plan_alter(self, change: TableChangeRequest, table: Optional[Table]) -> AlterPlan:
        plan = AlterPlan()

        for col in change.columns:
            self._plan_column_change(plan, col, change, table)

        for con in change.constraints:
            self._plan_constraint_change(plan, con, table)

        if change.new_name and change.new_name != change.old_name:
            plan.add("rename_table", self.rename_table_clause(change))

        return plan

    def _plan_column_change(
        self,
        plan: AlterPlan,
        col: ColumnChange,
        change: TableChangeRequest,
        table: Optional[Table],
    ) -> None:
        if col.old is None and col.new is None:
            return

        if col.new is None:
            self.before_drop_column(plan, col.old, change, table)
            plan.add("drop_columns", f"DROP COLUMN {self.escape_id(col.old.name)}")
            return

        if col.old is None:
            plan.add("add_columns", self.add_column_clause(col.new))
            return

        renamed = col.old.name != col.new.name
        if self.definition_changed(col.old, col.new):
            if not self.flags.support_modify_column:
                raise self._unsupported(
                    f"{self.flags.dialect} cannot change the definition of column {col.old.name}",
                    "support_modify_column",
                )
            plan.add("modify_columns", self.modify_column_clause(col.old, col.new))
        elif renamed:
            plan.add(
                "rename_columns",
                f"RENAME COLUMN {self.escape_id(col.old.name)} TO {self.escape_id(col.new.name)}",
            )

    def _plan_constraint_change(self, plan: AlterPlan, con: ConstraintChange, table: Optional[Table]) -> None:
        if con.old is not None and con.new is not None and con.old == con.new:
            return
        if con.old is not None:
            plan.add("drop_constraints", self.drop_constraint_clause(con.old))
        if con.new is not None:
            plan.add("add_constraints", self.add_constraint_clause(con.new))

    @staticmethod
    def definition_changed(old: Column, new: Column) -> bool:
        """Type or column constraint changed; the pk flag is left to table constraints."""
        old_constraint = replace(old.constraint or ColumnConstraint(), primary_key=False)
        new_constraint = replace(new.constraint or ColumnConstraint(), primary_key=False)
        return old.type != new.type or old_constraint != new_constraint

    def before_drop_column(
        self,
        plan: AlterPlan,
        column: Column,
        change: TableChangeRequest,
        table: Optional[Table],
    ) -> None:
        """Hook for dialects that must act before a column can be dropped."""
        pass

    def add_column_clause(self, column: Column) -> str:
        return f"ADD COLUMN {self.column_definition(column)}"

    def add_constraint_clause(self, constraint: TableConstraint) -> str:
        return f"ADD {self.constraint_definition(constraint)}"

    @abstractmethod
    def modify_column_clause(self, old: Column, new: Column) -> str:
        pass

    @abstractmethod
    def drop_constraint_clause(self, constraint: TableConstraint) -> str:
        pass

    @abstractmethod
    def rename_table_clause(self, change: TableChangeRequest) -> str:
        pass

    # Database changes

    def generate_database_change(self, change: DatabaseChangeRequest) -> List[str]:
        if not self.flags.support_create_update_database:
            raise self._unsupported(
                f"{self.flags.dialect} does not support creating or altering databases",
                "support_create_update_database",
            )
        return self.database_change_statements(change)

    def database_change_statements(self, change: DatabaseChangeRequest) -> List[str]:
        raise self._unsupported(
            f"{self.flags.dialect} has no database change statements",
            "support_create_update_database",
        )


def generator_for(flags: DriverFlags) -> SchemaChangeGenerator:
    """Pick the DDL generator for the dialect named in ``flags``."""
    from .mysql.ddl import MySQLSchemaChangeGenerator
    from .sqlite.ddl import SQLiteSchemaChangeGenerator

    generators = {
        "mysql": MySQLSchemaChangeGenerator,
        "sqlite": SQLiteSchemaChangeGenerator,
    }
    if flags.dialect not in generators:
        raise ValueError(f"No DDL generator for dialect: {flags.dialect}")
    return generators[flags.dialect](flags)


def generate_table_change(flags: DriverFlags, table: Optional[Table], change: TableChangeRequest) -> List[str]:
    """Generate ordered statements for a table change under ``flags``."""
    return generator_for(flags).generate_table_change(change, table)


def generate_database_change(flags: DriverFlags, change: DatabaseChangeRequest) -> List[str]:
    """Generate ordered statements for a database change under ``flags``."""
    return generator_for(flags).generate_database_change(change)
