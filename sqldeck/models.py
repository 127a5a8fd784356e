"""Pydantic models for change requests read from JSON."""

from pydantic import BaseModel, Field
from typing import Optional, List, Any

from .drivers.models import (
    Column,
    ColumnChange,
    ColumnConstraint,
    ConstraintChange,
    ConstraintKind,
    DatabaseChangeRequest,
    ForeignKey,
    TableChangeRequest,
    TableConstraint,
)


class OldNew(BaseModel):
    """A renameable name: ``old`` None for create, ``new`` None for drop."""
    old: Optional[str] = None
    new: Optional[str] = None


class ColumnConstraintModel(BaseModel):
    """Per-column constraint."""
    not_null: bool = Field(default=False, alias="notNull")
    primary_key: bool = Field(default=False, alias="primaryKey")
    auto_increment: bool = Field(default=False, alias="autoIncrement")
    default_value: Any = Field(default=None, alias="defaultValue")
    default_expression: Optional[str] = Field(default=None, alias="defaultExpression")
    collate: Optional[str] = None

    class Config:
        populate_by_name = True

    def to_constraint(self) -> ColumnConstraint:
        return ColumnConstraint(
            not_null=self.not_null,
            primary_key=self.primary_key,
            auto_increment=self.auto_increment,
            default_value=self.default_value,
            default_expression=self.default_expression,
            collate=self.collate,
        )


class ColumnModel(BaseModel):
    """Column definition."""
    name: str
    type: str = ""
    constraint: Optional[ColumnConstraintModel] = None

    def to_column(self) -> Column:
        constraint = self.constraint.to_constraint() if self.constraint else None
        return Column(
            name=self.name,
            type=self.type,
            constraint=constraint,
            pk=bool(constraint and constraint.primary_key),
        )


class ForeignKeyModel(BaseModel):
    """Foreign key target."""
    columns: List[str] = []
    foreign_schema_name: str = Field(default="", alias="foreignSchemaName")
    foreign_table_name: str = Field(alias="foreignTableName")
    foreign_columns: List[str] = Field(default=[], alias="foreignColumns")

    class Config:
        populate_by_name = True


class TableConstraintModel(BaseModel):
    """Table constraint, tagged by which of the three kinds is set."""
    name: Optional[str] = None
    primary_key: bool = Field(default=False, alias="primaryKey")
    primary_columns: List[str] = Field(default=[], alias="primaryColumns")
    unique: bool = False
    unique_columns: List[str] = Field(default=[], alias="uniqueColumns")
    foreign_key: Optional[ForeignKeyModel] = Field(default=None, alias="foreignKey")

    class Config:
        populate_by_name = True

    def to_constraint(self) -> TableConstraint:
        if self.primary_key:
            return TableConstraint(
                name=self.name,
                kind=ConstraintKind.PRIMARY_KEY,
                columns=list(self.primary_columns),
            )
        if self.unique:
            return TableConstraint(
                name=self.name,
                kind=ConstraintKind.UNIQUE,
                columns=list(self.unique_columns),
            )
        if self.foreign_key is not None:
            fk = self.foreign_key
            return TableConstraint(
                name=self.name,
                kind=ConstraintKind.FOREIGN_KEY,
                columns=list(fk.columns),
                foreign_key=ForeignKey(
                    columns=list(fk.columns),
                    foreign_schema_name=fk.foreign_schema_name,
                    foreign_table_name=fk.foreign_table_name,
                    foreign_columns=list(fk.foreign_columns),
                ),
            )
        raise ValueError(f"Constraint {self.name or '(unnamed)'} is not a primary key, unique or foreign key")


class ColumnChangeModel(BaseModel):
    old: Optional[ColumnModel] = None
    new: Optional[ColumnModel] = None


class ConstraintChangeModel(BaseModel):
    old: Optional[TableConstraintModel] = None
    new: Optional[TableConstraintModel] = None


class TableChangeModel(BaseModel):
    """JSON form of a table change request."""
    schema_name: str = Field(default="", alias="schemaName")
    name: OldNew
    columns: List[ColumnChangeModel] = []
    constraints: List[ConstraintChangeModel] = []

    class Config:
        populate_by_name = True

    def to_request(self) -> TableChangeRequest:
        return TableChangeRequest(
            schema_name=self.schema_name,
            old_name=self.name.old,
            new_name=self.name.new,
            columns=[
                ColumnChange(
                    old=c.old.to_column() if c.old else None,
                    new=c.new.to_column() if c.new else None,
                )
                for c in self.columns
            ],
            constraints=[
                ConstraintChange(
                    old=c.old.to_constraint() if c.old else None,
                    new=c.new.to_constraint() if c.new else None,
                )
                for c in self.constraints
            ],
        )


class DatabaseChangeModel(BaseModel):
    """JSON form of a database change request."""
    name: OldNew
    collation: Optional[str] = None
    character_set: Optional[str] = Field(default=None, alias="characterSet")

    class Config:
        populate_by_name = True

    def to_request(self) -> DatabaseChangeRequest:
        return DatabaseChangeRequest(
            old_name=self.name.old,
            new_name=self.name.new,
            collation=self.collation,
            character_set=self.character_set,
        )
