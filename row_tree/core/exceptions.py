"""RowTree exception hierarchy.

All exceptions are RowTree-specific. Driver exceptions raised while executing
a query are wrapped and chained, never exposed bare.
"""

from __future__ import annotations

from typing import Any


class RowTreeError(Exception):
    """Base exception for all RowTree errors."""


class ConfigurationError(RowTreeError):
    """Raised when connection configuration is missing or invalid."""


# --- Registry ---


class RegistryError(RowTreeError):
    """Base for SQL registry errors."""


class QueryNotFoundError(RegistryError):
    """Raised when a named query cannot be found in the registry."""

    def __init__(self, query_name: str) -> None:
        self.query_name = query_name
        super().__init__(f"Query not found: '{query_name}'")


class DuplicateQueryError(RegistryError):
    """Raised when two SQL files resolve to the same namespace key."""

    def __init__(self, query_name: str, path_a: str, path_b: str) -> None:
        self.query_name = query_name
        super().__init__(f"Duplicate query name '{query_name}': {path_a} and {path_b}")


# --- Execution ---


class ExecutionError(RowTreeError):
    """Base for query execution errors."""


class QueryError(ExecutionError):
    """Raised when the driver fails to execute a query."""

    def __init__(self, query: str, detail: str) -> None:
        self.query = query
        super().__init__(f"Query failed ({query}): {detail}")


class BadQueryError(ExecutionError):
    """Raised when a query is neither SQL text nor a prepared Statement."""

    def __init__(self, query: Any) -> None:
        super().__init__(
            f"query must be either SQL text or a Statement, got {type(query).__name__}"
        )


class ScanError(ExecutionError):
    """Raised when a row cannot be scanned into its destinations."""


class NoRowsError(ExecutionError):
    """Raised when a single-row query returns no rows.

    Kept distinct from other failures so callers can tell "not found" apart
    from real faults.
    """

    def __init__(self) -> None:
        super().__init__("no rows returned")


# --- Mapping ---


class MappingError(RowTreeError):
    """Base for mapping errors."""


class ShapeError(MappingError):
    """Base for destination shapes that cannot be mapped.

    Always raised before any row is touched.
    """

    def __init__(self, target: Any, detail: str) -> None:
        self.target = target
        name = getattr(target, "__name__", None) or type(target).__name__
        super().__init__(f"{name}: {detail}")


class NotAddressableError(ShapeError):
    """Raised when the destination is not a mutable instance or list."""

    def __init__(self, target: Any) -> None:
        super().__init__(target, "destination is not addressable (pass an instance or a list)")


class NotMappableError(ShapeError):
    """Raised when a type is neither a composite nor a list of composites."""

    def __init__(self, target: Any, detail: str = "not a mappable shape") -> None:
        super().__init__(target, detail)


class EmptyTypeError(ShapeError):
    """Raised when a composite type declares no fields."""

    def __init__(self, target: Any) -> None:
        super().__init__(target, "nothing to map (type has no fields)")


class RecursiveTypeError(ShapeError):
    """Raised when a composite type references itself, directly or not."""

    def __init__(self, target: Any, path: list[str]) -> None:
        self.path = path
        super().__init__(target, f"recursive type ({' -> '.join(path)})")


class UnsupportedFieldError(ShapeError):
    """Raised when a join leaf or identity field has an unsupported type."""


class MaterializationError(MappingError):
    """Base for errors raised while attaching a row to a result tree.

    The tree is not rolled back; the caller must discard it.
    """


class MissingCollectionError(MaterializationError):
    """Raised when a deeper level is expected but no trailing collection exists."""

    def __init__(self, target_class: str) -> None:
        self.target_class = target_class
        super().__init__(f"no slice found: {target_class} has no trailing collection field")


class TypeMismatchError(MaterializationError):
    """Raised when a value cannot be converted to a field's declared type."""

    def __init__(self, field: str, value: Any, expected: str, detail: str = "") -> None:
        self.field = field
        self.value = value
        self.expected = expected
        message = f"cannot assign {value!r} ({type(value).__name__}) to '{field}' of type {expected}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class StrictModeViolation(MappingError):
    """Raised in strict mode when result columns do not line up with fields."""


# --- Adapter ---


class AdapterError(RowTreeError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
