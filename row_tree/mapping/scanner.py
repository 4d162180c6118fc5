"""Flat row scanner.

Binds the columns of one row to fields of one composite value, descending
into embedded composites. Columns are matched by wire name in declaration
order:

* a scalar field whose name does not match the head column is skipped
  without consuming the column (it was not selected);
* an embedded composite is always descended into with the same column
  cursor, and its result decides whether the head column was consumed;
* a matching scalar becomes a scan target and consumes the head column.

Column order must follow field declaration order. A selected column that
matches no remaining field leaves the target list short, and the scan then
fails on the count mismatch.
"""

from __future__ import annotations

from typing import Any

from row_tree.mapping.copier import copy_value
from row_tree.mapping.descriptor import FieldDescriptor, TypeDescriptor
from row_tree.mapping.nulls import supported, wrapper_for
from row_tree.mapping.protocol import Rows


class FieldTarget:
    """Scan target writing straight into ``owner.<field>``."""

    __slots__ = ("field", "owner")

    def __init__(self, owner: Any, field: FieldDescriptor) -> None:
        self.owner = owner
        self.field = field

    def scan(self, value: Any) -> None:
        field = self.field
        if not supported(field):
            # Arrays, JSON, bytes, decimals: stored as the driver delivers them.
            setattr(self.owner, field.name, value)
            return
        wrapper = wrapper_for(field)(field.column)
        wrapper.scan(value)
        copy_value(self.owner, field, wrapper)

    def __repr__(self) -> str:
        return f"FieldTarget({type(self.owner).__name__}.{self.field.name})"


def _visit(
    descriptor: TypeDescriptor,
    instance: Any,
    columns: list[str],
    targets: list[FieldTarget],
) -> bool:
    """Collect targets for *instance*; return True to keep looking at the head column."""
    continue_looking = False

    for field in descriptor.fields:
        if not columns:
            return continue_looking

        if not field.is_nested:
            if not field.match(columns[0]):
                continue_looking = True
                continue
            targets.append(FieldTarget(instance, field))
            continue_looking = False
        else:
            element = field.element
            child = getattr(instance, field.name, None)
            if child is None:
                child = element.new_instance()
                setattr(instance, field.name, child)
            continue_looking = _visit(element, child, columns, targets)

        if not continue_looking:
            if len(columns) == 1:
                # last column of the row
                return continue_looking
            del columns[0]
            continue_looking = True

    return continue_looking


def scan_targets(descriptor: TypeDescriptor, instance: Any, columns: list[str]) -> list[FieldTarget]:
    """Build scan targets for one row into *instance*.

    *columns* is not modified. Embedded composites left unset on *instance*
    are allocated along the way.
    """
    targets: list[FieldTarget] = []
    _visit(descriptor, instance, list(columns), targets)
    return targets


def scan_row(descriptor: TypeDescriptor, instance: Any, rows: Rows, columns: list[str]) -> int:
    """Scan the current row of *rows* into *instance*. Returns the target count."""
    targets = scan_targets(descriptor, instance, columns)
    rows.scan(*targets)
    return len(targets)
