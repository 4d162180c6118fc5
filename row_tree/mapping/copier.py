"""Null-aware field copier.

Moves a nullable wrapper's payload into a destination field, converting
between the wrapper's representation and the field's declared type.
Conversions never cross incompatible kinds: numbers do not become booleans,
booleans do not become numbers, and lossy narrowing is refused.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

from row_tree.core.enums import FieldKind
from row_tree.core.exceptions import TypeMismatchError
from row_tree.mapping.descriptor import FieldDescriptor, TypeDescriptor, uint
from row_tree.mapping.nulls import NullValue


def _type_name(tp: Any) -> str:
    return getattr(tp, "__name__", None) or str(tp)


def convert(value: Any, target: Any, name: str = "?") -> Any:
    """Convert a non-NULL payload to *target*.

    Raises:
        TypeMismatchError: If the value cannot be represented as *target*.
    """
    expected = _type_name(target)

    if target is bool:
        if isinstance(value, bool):
            return value
        raise TypeMismatchError(name, value, expected, "refusing conversion to boolean")

    if target is int or target is uint:
        if isinstance(value, bool):
            raise TypeMismatchError(name, value, expected, "refusing boolean to integer")
        if isinstance(value, float):
            if not value.is_integer():
                raise TypeMismatchError(name, value, expected, "value would be truncated")
            value = int(value)
        if not isinstance(value, int):
            raise TypeMismatchError(name, value, expected)
        if target is uint and value < 0:
            raise TypeMismatchError(name, value, expected, "negative value")
        return value

    if target is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatchError(name, value, expected)
        return float(value)

    if target is datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day)
        raise TypeMismatchError(name, value, expected)

    if target is date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        raise TypeMismatchError(name, value, expected)

    if isinstance(target, type) and isinstance(value, target):
        return value
    raise TypeMismatchError(name, value, expected)


def copy_value(
    target: Any,
    field: FieldDescriptor,
    wrapper: NullValue,
    column: str | None = None,
) -> None:
    """Copy one wrapper into ``target.<field>``.

    NULL becomes ``None`` on optional fields and is an error otherwise.
    """
    name = column or field.column
    if not wrapper.valid:
        if not field.nullable:
            raise TypeMismatchError(
                name, None, _type_name(field.type), "NULL into a non-optional field"
            )
        setattr(target, field.name, None)
        return
    setattr(target, field.name, convert(wrapper.value, field.type, name))


def copy_fields(
    target: Any,
    descriptor: TypeDescriptor,
    values: Sequence[NullValue],
    position: int,
    columns: Sequence[str] | None = None,
) -> int:
    """Copy one entity's flattened scalars into *target*.

    Walks the descriptor in the same order the join plan flattened it,
    starting at *position*. *values* are in field order: the plan has
    already matched the columns of embedded composites to their fields by
    wire name or derived name (see :meth:`JoinPlan.bind`). Collections are
    not part of the entity's own span and are skipped. Returns the position
    just past the entity.
    """
    for field in descriptor.fields:
        if field.kind is FieldKind.COLLECTION:
            continue

        if field.is_nested:
            element = field.element
            width = element.inline_width
            child = getattr(target, field.name, None)
            if child is None:
                span = values[position : position + width]
                if field.kind is FieldKind.COMPOSITE_REF and not any(v.valid for v in span):
                    # Optional reference with nothing selected stays unset.
                    position += width
                    continue
                child = element.new_instance()
                setattr(target, field.name, child)
            position = copy_fields(child, element, values, position, columns)
            continue

        column = columns[position] if columns is not None else None
        copy_value(target, field, values[position], column)
        position += 1
    return position
