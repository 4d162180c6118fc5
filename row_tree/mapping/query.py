"""Mapping entry points over a row cursor.

    scan_one   first row into one composite instance
    scan_all   every row into a list, one element per row
    scan_join  a flattened join into a nested result tree

All three mutate the destination in place and return it. Shape errors are
raised before the first row is read. If a join fails midway the partially
built tree is left as is; discard it.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from row_tree.core.exceptions import NoRowsError
from row_tree.mapping.descriptor import resolve_destination
from row_tree.mapping.materialize import TreeMaterializer
from row_tree.mapping.plan import flatten
from row_tree.mapping.protocol import Rows
from row_tree.mapping.scanner import scan_row

logger = logging.getLogger(__name__)

T = TypeVar("T")


def scan_one(dest: T, rows: Rows) -> T:
    """Scan the first row of *rows* into *dest*.

    Raises:
        NoRowsError: If the result is empty.
    """
    descriptor = resolve_destination(dest)
    if not rows.next():
        raise NoRowsError()
    scan_row(descriptor, dest, rows, rows.columns())
    return dest


def scan_all(dest: list[Any], rows: Rows, model: type | None = None) -> list[Any]:
    """Scan every row of *rows* into *dest*.

    Elements already in *dest* are filled first, in order; further rows are
    appended as new instances of *model*. Elements past the end of the result
    are left untouched. *model* defaults to the type of ``dest[0]``.
    """
    descriptor = resolve_destination(dest, model)
    columns = rows.columns()

    reused = 0
    while reused < len(dest) and rows.next():
        scan_row(descriptor, dest[reused], rows, columns)
        reused += 1

    appended = 0
    while rows.next():
        element = descriptor.new_instance()
        scan_row(descriptor, element, rows, columns)
        dest.append(element)
        appended += 1

    logger.debug(
        "Scanned %d rows into %s (%d reused, %d appended)",
        reused + appended,
        descriptor.name,
        reused,
        appended,
    )
    return dest


def scan_join(
    dest: list[Any],
    rows: Rows,
    model: type | None = None,
    *,
    strict: bool = False,
) -> list[Any]:
    """Reconstruct a nested tree from a flattened join into *dest*.

    Each level of *model* lists its identity field first and its children as
    the trailing ``list[...]`` field. Rows should be ordered by the identity
    of each level, outermost first.

    Raises:
        ScanError: If the column count does not match the flattened shape.
        StrictModeViolation: In strict mode, if a column name does not match.
        MaterializationError: If a row cannot be attached.
    """
    descriptor = resolve_destination(dest, model)
    plan = flatten(descriptor, strict=strict)
    columns = rows.columns()
    order = plan.bind(columns)
    labels = [""] * len(order)
    for position, leaf in enumerate(order):
        labels[leaf] = columns[position]

    materializer = TreeMaterializer(descriptor)
    id_indices = plan.id_indices
    count = 0
    while rows.next():
        values = plan.new_targets()
        rows.scan(*(values[leaf] for leaf in order))
        materializer.materialize(dest, values, id_indices, labels)
        count += 1

    logger.debug(
        "Materialized %d rows into %d %s roots (%d elements created)",
        count,
        len(dest),
        descriptor.name,
        materializer.created,
    )
    return dest
