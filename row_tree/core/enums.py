"""Shape enumerations."""

from __future__ import annotations

from enum import Enum


class FieldKind(Enum):
    """How a composite field takes part in mapping."""

    SCALAR = "scalar"
    COMPOSITE = "composite"
    COMPOSITE_REF = "composite_ref"  # optional nested composite, allocated lazily
    COLLECTION = "collection"
