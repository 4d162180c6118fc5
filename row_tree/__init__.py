"""RowTree - map hand-written SQL results onto typed objects and nested trees."""

from __future__ import annotations

from row_tree.core.connection import (
    AsyncConnectionManager,
    ConnectionConfig,
    ConnectionManager,
)
from row_tree.core.engine import AsyncEngine, Engine
from row_tree.core.enums import FieldKind
from row_tree.core.exceptions import (
    AdapterError,
    BadQueryError,
    ConfigurationError,
    ConnectionError,  # noqa: A004
    DuplicateQueryError,
    EmptyTypeError,
    ExecutionError,
    MappingError,
    MaterializationError,
    MissingCollectionError,
    NoRowsError,
    NotAddressableError,
    NotMappableError,
    PoolError,
    QueryError,
    QueryNotFoundError,
    RecursiveTypeError,
    RegistryError,
    RowTreeError,
    ScanError,
    ShapeError,
    StrictModeViolation,
    TypeMismatchError,
    UnsupportedFieldError,
)
from row_tree.core.registry import SQLRegistry, Statement
from row_tree.mapping.descriptor import clear_cache, column, describe, register, to_snake, uint
from row_tree.mapping.query import scan_all, scan_join, scan_one
from row_tree.mapping.rows import BufferedRows, CursorRows

__all__ = [
    # Connection
    "ConnectionConfig",
    "ConnectionManager",
    "AsyncConnectionManager",
    # Engine
    "Engine",
    "AsyncEngine",
    # Registry
    "SQLRegistry",
    "Statement",
    # Mapping
    "describe",
    "register",
    "clear_cache",
    "column",
    "to_snake",
    "uint",
    "scan_one",
    "scan_all",
    "scan_join",
    "CursorRows",
    "BufferedRows",
    # Enums
    "FieldKind",
    # Exceptions
    "RowTreeError",
    "ConfigurationError",
    "RegistryError",
    "QueryNotFoundError",
    "DuplicateQueryError",
    "ExecutionError",
    "QueryError",
    "BadQueryError",
    "ScanError",
    "NoRowsError",
    "MappingError",
    "ShapeError",
    "NotAddressableError",
    "NotMappableError",
    "EmptyTypeError",
    "RecursiveTypeError",
    "UnsupportedFieldError",
    "MaterializationError",
    "MissingCollectionError",
    "TypeMismatchError",
    "StrictModeViolation",
    "AdapterError",
    "ConnectionError",
    "PoolError",
]
