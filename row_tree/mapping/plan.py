"""Join plans - the flattened shape of a nested destination.

A join query returns one flat row per leaf of the tree. The plan lists, in
depth-first order, one nullable scan wrapper per scalar across every
nesting level, and records where each level's identity field sits.

Expansion rules:
    - embedded composites are flattened inline, at their position;
    - the trailing collection of a level type opens the next level;
    - any other collection is skipped entirely.

A level's own scalars are read by position; the columns of an embedded
composite are matched to its fields by name when the plan is bound.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from row_tree.core.enums import FieldKind
from row_tree.core.exceptions import ScanError, StrictModeViolation, UnsupportedFieldError
from row_tree.mapping.descriptor import FieldDescriptor, TypeDescriptor
from row_tree.mapping.nulls import NullValue, wrapper_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeafPlan:
    """One flattened scalar."""

    field: FieldDescriptor
    wrapper: type[NullValue]
    level: int
    path: tuple[str, ...]  # level class name, then attribute names

    @property
    def label(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class LevelPlan:
    """One nesting level (root entities, their children, ...)."""

    descriptor: TypeDescriptor
    offset: int  # position of the identity field
    width: int  # leaves owned by this level, deeper levels excluded


@dataclass(frozen=True)
class JoinPlan:
    """Compiled flattening of a nested destination type."""

    descriptor: TypeDescriptor
    leaves: tuple[LeafPlan, ...]
    levels: tuple[LevelPlan, ...]
    strict: bool = False
    spans: tuple[tuple[int, int], ...] = ()  # embedded composite leaf ranges

    @property
    def id_indices(self) -> tuple[int, ...]:
        """Identity positions per level, outermost first."""
        return tuple(level.offset for level in self.levels)

    def new_targets(self) -> list[NullValue]:
        """Fresh wrappers for scanning one row."""
        return [leaf.wrapper(leaf.label) for leaf in self.leaves]

    def bind(self, columns: Sequence[str]) -> tuple[int, ...]:
        """Resolve which leaf each result column fills.

        A level's own scalars are bound by position, so the duplicate ``id``
        columns of ``SELECT *`` over a join stay apart. Inside the span of an
        embedded composite, each column is matched to the first free field
        carrying its wire name or derived name, so those columns may come in
        any order. Columns in a span that match no field there take the
        remaining fields in declaration order. In strict mode every column
        must match the field it is bound to.

        Returns:
            The leaf index for each column position.

        Raises:
            ScanError: If the column count does not match the plan.
            StrictModeViolation: In strict mode, if a column name does not match.
        """
        if len(columns) != len(self.leaves):
            raise ScanError(
                f"{self.descriptor.name}: join plan has {len(self.leaves)} fields "
                f"but the query returned {len(columns)} columns"
            )
        order = list(range(len(columns)))
        for start, stop in self.spans:
            order[start:stop] = self._match_span(columns, start, stop)

        if self.strict:
            for position, column in enumerate(columns):
                leaf = self.leaves[order[position]]
                if not leaf.field.match(column):
                    raise StrictModeViolation(
                        f"Column {position} '{column}' does not match field "
                        f"'{leaf.label}' (expected '{leaf.field.column}')"
                    )
        return tuple(order)

    def _match_span(self, columns: Sequence[str], start: int, stop: int) -> list[int]:
        free = list(range(start, stop))
        matched: list[int | None] = []
        for position in range(start, stop):
            leaf = next((i for i in free if self.leaves[i].field.match(columns[position])), None)
            if leaf is not None:
                free.remove(leaf)
            matched.append(leaf)
        return [free.pop(0) if leaf is None else leaf for leaf in matched]


def _embedded_spans(leaves: Sequence[LeafPlan]) -> tuple[tuple[int, int], ...]:
    """Leaf ranges belonging to one embedded composite of a level type."""
    spans: list[tuple[int, int]] = []
    start = 0
    while start < len(leaves):
        leaf = leaves[start]
        stop = start + 1
        if len(leaf.path) > 2:
            owner = (leaf.level, leaf.path[1])
            while (
                stop < len(leaves)
                and len(leaves[stop].path) > 2
                and (leaves[stop].level, leaves[stop].path[1]) == owner
            ):
                stop += 1
            spans.append((start, stop))
        start = stop
    return tuple(spans)


def _flatten_inline(
    descriptor: TypeDescriptor,
    level: int,
    path: tuple[str, ...],
    leaves: list[LeafPlan],
) -> None:
    for field in descriptor.fields:
        if field.kind is FieldKind.COLLECTION:
            continue
        if field.is_nested:
            _flatten_inline(field.element, level, (*path, field.name), leaves)
            continue
        leaves.append(
            LeafPlan(field=field, wrapper=wrapper_for(field), level=level, path=(*path, field.name))
        )


def flatten(descriptor: TypeDescriptor, *, strict: bool = False) -> JoinPlan:
    """Compile the join plan of a (possibly multi-level) destination type.

    Raises:
        UnsupportedFieldError: If a leaf has no scan wrapper, or a level's
            identity field is not a scalar.
    """
    leaves: list[LeafPlan] = []
    levels: list[LevelPlan] = []
    current: TypeDescriptor | None = descriptor

    while current is not None:
        identity = current.identity
        if identity.kind is not FieldKind.SCALAR:
            raise UnsupportedFieldError(
                current.target_class,
                f"identity field '{identity.name}' must be a scalar, not {identity.kind.value}",
            )
        offset = len(leaves)
        _flatten_inline(current, len(levels), (current.name,), leaves)
        levels.append(LevelPlan(descriptor=current, offset=offset, width=len(leaves) - offset))

        trailing = current.trailing_collection
        current = trailing.element if trailing is not None else None

    plan = JoinPlan(
        descriptor=descriptor,
        leaves=tuple(leaves),
        levels=tuple(levels),
        strict=strict,
        spans=_embedded_spans(leaves),
    )
    logger.debug(
        "Flattened %s: %d leaves, identity positions %s",
        descriptor.name,
        len(leaves),
        list(plan.id_indices),
    )
    return plan
