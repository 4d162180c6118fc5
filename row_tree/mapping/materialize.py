"""Tree materializer.

Attaches one flattened join row at a time to a nested result tree. At each
level the row's identity value decides whether it continues an existing
element or starts a new one; a NULL identity (outer-join padding) ends the
descent for that row.

Lookups go through one identity map per collection, built lazily from the
collection's current elements. New elements are appended, so output order
follows row arrival order.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from row_tree.core.exceptions import MissingCollectionError
from row_tree.mapping.copier import convert, copy_fields
from row_tree.mapping.descriptor import FieldDescriptor, TypeDescriptor
from row_tree.mapping.nulls import NullValue


class TreeMaterializer:
    """Builds a result tree from flattened rows.

    One materializer serves one query: it remembers the identity maps of the
    collections it has touched.

    Args:
        descriptor: Descriptor of the root element type.
    """

    def __init__(self, descriptor: TypeDescriptor) -> None:
        self._descriptor = descriptor
        self._indexes: dict[int, tuple[list[Any], dict[Any, Any]]] = {}
        self.created = 0

    def materialize(
        self,
        roots: list[Any],
        values: Sequence[NullValue],
        id_indices: Sequence[int],
        columns: Sequence[str] | None = None,
    ) -> None:
        """Attach one row's contribution to *roots*.

        Raises:
            MissingCollectionError: If a deeper level is expected but the
                element type has no trailing collection.
            TypeMismatchError: If a value does not fit its field.
        """
        id_indices = tuple(id_indices)
        if not id_indices or not values[id_indices[0]].valid:
            return
        self._attach(roots, self._descriptor, values, id_indices, columns)

    def _attach(
        self,
        collection: list[Any],
        descriptor: TypeDescriptor,
        values: Sequence[NullValue],
        id_indices: tuple[int, ...],
        columns: Sequence[str] | None,
    ) -> None:
        element = self._find_or_create(collection, descriptor, values, id_indices[0], columns)

        if len(id_indices) == 1:
            return
        trailing = descriptor.trailing_collection
        if trailing is None:
            raise MissingCollectionError(descriptor.name)
        if not values[id_indices[1]].valid:
            return

        children = getattr(element, trailing.name)
        if children is None:
            children = []
            setattr(element, trailing.name, children)
        self._attach(children, trailing.element, values, id_indices[1:], columns)

    def _find_or_create(
        self,
        collection: list[Any],
        descriptor: TypeDescriptor,
        values: Sequence[NullValue],
        offset: int,
        columns: Sequence[str] | None,
    ) -> Any:
        identity_field = descriptor.identity
        key = convert(values[offset].value, identity_field.type, identity_field.column)
        index = self._index(collection, identity_field)

        element = index.get(key)
        if element is None:
            element = descriptor.new_instance()
            copy_fields(element, descriptor, values, offset, columns)
            collection.append(element)
            index[key] = element
            self.created += 1
        return element

    def _index(self, collection: list[Any], identity_field: FieldDescriptor) -> dict[Any, Any]:
        entry = self._indexes.get(id(collection))
        if entry is not None and entry[0] is collection:
            return entry[1]
        index: dict[Any, Any] = {}
        for element in collection:
            index.setdefault(getattr(element, identity_field.name), element)
        self._indexes[id(collection)] = (collection, index)
        return index
