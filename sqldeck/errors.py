"""Error types for the sqldeck driver layer."""

from typing import Optional, Dict, Any


class DriverError(Exception):
    """Base exception for driver errors."""

    def __init__(self, message: str, code: str = "DRIVER_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to a dictionary for API/CLI responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class DriverConnectionError(DriverError):
    """Error connecting to the backend."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONNECTION_ERROR", details=details)


class QueryError(DriverError):
    """A user statement failed at the backend."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="QUERY_ERROR", details=details)


class CatalogQueryError(DriverError):
    """A catalog query failed; introspection is aborted as a whole."""

    def __init__(self, query_name: str, message: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["query_name"] = query_name
        super().__init__(
            f"Catalog query '{query_name}' failed: {message}",
            code="CATALOG_QUERY_ERROR",
            details=error_details,
        )
        self.query_name = query_name


class UnsupportedOperationError(DriverError):
    """The requested change needs a capability the backend does not have."""

    def __init__(self, message: str, capability: Optional[str] = None, dialect: Optional[str] = None):
        super().__init__(
            message,
            code="UNSUPPORTED_OPERATION",
            details={"capability": capability, "dialect": dialect},
        )
        self.capability = capability
        self.dialect = dialect


class AmbiguousForeignKeyError(DriverError):
    """Membership rows of one foreign key disagree on the referenced table."""

    def __init__(
        self,
        schema_name: str,
        table_name: str,
        constraint_name: str,
        seen: tuple,
        conflicting: tuple,
    ):
        super().__init__(
            f"Foreign key {constraint_name} on {schema_name}.{table_name} references both "
            f"{seen[0]}.{seen[1]} and {conflicting[0]}.{conflicting[1]}",
            code="AMBIGUOUS_FOREIGN_KEY",
            details={
                "schema_name": schema_name,
                "table_name": table_name,
                "constraint_name": constraint_name,
                "referenced": [list(seen), list(conflicting)],
            },
        )


class TransformError(DriverError):
    """Raw result shape does not match its header list."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="TRANSFORM_ERROR", details=details)


class TableNotFoundError(DriverError):
    """Table is not present in the backend catalog."""

    def __init__(self, schema_name: str, table_name: str):
        super().__init__(
            f"Table not found: {schema_name}.{table_name}",
            code="TABLE_NOT_FOUND",
            details={"schema_name": schema_name, "table_name": table_name},
        )
