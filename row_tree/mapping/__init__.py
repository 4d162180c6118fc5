"""Mapping layer - scan rows into typed objects and nested trees."""

from __future__ import annotations

from row_tree.mapping.copier import convert, copy_fields, copy_value
from row_tree.mapping.descriptor import (
    FieldDescriptor,
    TypeDescriptor,
    clear_cache,
    column,
    describe,
    register,
    resolve_destination,
    to_snake,
    uint,
)
from row_tree.mapping.materialize import TreeMaterializer
from row_tree.mapping.nulls import (
    NullBool,
    NullFloat,
    NullInt,
    NullString,
    NullTime,
    NullUint,
    NullValue,
)
from row_tree.mapping.plan import JoinPlan, LeafPlan, LevelPlan, flatten
from row_tree.mapping.protocol import Rows, ScanTarget
from row_tree.mapping.query import scan_all, scan_join, scan_one
from row_tree.mapping.rows import BufferedRows, CursorRows
from row_tree.mapping.scanner import FieldTarget, scan_targets

__all__ = [
    # Descriptors
    "FieldDescriptor",
    "TypeDescriptor",
    "describe",
    "register",
    "resolve_destination",
    "clear_cache",
    "column",
    "to_snake",
    "uint",
    # Rows
    "Rows",
    "ScanTarget",
    "CursorRows",
    "BufferedRows",
    # Flat scanning
    "FieldTarget",
    "scan_targets",
    # Join
    "JoinPlan",
    "LeafPlan",
    "LevelPlan",
    "flatten",
    "TreeMaterializer",
    # Wrappers and copying
    "NullValue",
    "NullBool",
    "NullInt",
    "NullUint",
    "NullFloat",
    "NullString",
    "NullTime",
    "convert",
    "copy_value",
    "copy_fields",
    # Entry points
    "scan_one",
    "scan_all",
    "scan_join",
]
