"""Type descriptors - cached, ordered field maps for destination types.

A composite is a dataclass or a Pydantic model. Fields keep declaration
order. Each field binds to a column by its wire name: an explicit ``sql``
override, else the snake-case form of the attribute name.

Descriptors are built once per class and cached for the process lifetime.
Reads hit a plain dict; builds are serialized under a lock.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import types
from dataclasses import dataclass
from typing import Any, NamedTuple, NewType, Union, get_args, get_origin, get_type_hints

from pydantic import BaseModel

from row_tree.core.enums import FieldKind
from row_tree.core.exceptions import (
    EmptyTypeError,
    NotAddressableError,
    NotMappableError,
    RecursiveTypeError,
)

logger = logging.getLogger(__name__)

# Marks an int field as unsigned; selects the unsigned scan wrapper.
uint = NewType("uint", int)

WIRE_NAME_KEY = "sql"

_ZERO_VALUES: dict[Any, Any] = {
    bool: False,
    int: 0,
    uint: 0,
    float: 0.0,
    str: "",
    bytes: b"",
}

_IMMUTABLE = (type, tuple, frozenset, str, bytes, int, float, complex, bool, type(None))


def to_snake(name: str) -> str:
    """Convert a CamelCase name to snake_case.

    A run of uppercase letters collapses into one lowercase segment, so
    ``AId`` becomes ``aid`` and ``ABC`` becomes ``abc``. No underscore is
    inserted at position 0. Names that are already snake_case pass through.
    """
    out: list[str] = []
    found_upper = False
    for i, ch in enumerate(name):
        if ch.isupper():
            if i > 0 and not found_upper:
                out.append("_")
            out.append(ch.lower())
            found_upper = True
        else:
            found_upper = False
            out.append(ch)
    return "".join(out)


def column(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to an explicit column name.

    Usage:
        created: datetime = column("c")
        a_id: int = column("parent_id", default=0)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[WIRE_NAME_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def is_composite(tp: Any) -> bool:
    """Check if *tp* is a dataclass or Pydantic model class."""
    if not isinstance(tp, type) or get_origin(tp) is not None:
        return False
    return dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel)


def _is_frozen(cls: type) -> bool:
    if issubclass(cls, BaseModel):
        return bool(cls.model_config.get("frozen", False))
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


@dataclass(frozen=True, eq=False)
class FieldDescriptor:
    """One field of a composite type."""

    name: str
    column: str
    snake_name: str
    kind: FieldKind
    type: Any
    nullable: bool = False
    descriptor: TypeDescriptor | None = None
    has_default: bool = False
    init: bool = True

    @property
    def is_nested(self) -> bool:
        """True for embedded composites (value or optional reference)."""
        return self.kind in (FieldKind.COMPOSITE, FieldKind.COMPOSITE_REF)

    @property
    def element(self) -> TypeDescriptor:
        """Descriptor of the embedded composite or collection element."""
        if self.descriptor is None:
            raise NotMappableError(self.type, f"field '{self.name}' is not a composite")
        return self.descriptor

    def match(self, column: str) -> bool:
        return column == self.column or column == self.snake_name

    def zero_value(self) -> Any:
        """Value used for this field in a freshly allocated instance."""
        if self.kind is FieldKind.COMPOSITE:
            return self.element.new_instance()
        if self.kind is FieldKind.COMPOSITE_REF or self.nullable:
            return None
        if self.kind is FieldKind.COLLECTION:
            return []
        return _ZERO_VALUES.get(self.type)


@dataclass(frozen=True, eq=False)
class TypeDescriptor:
    """Ordered field map of one composite type."""

    target_class: type
    fields: tuple[FieldDescriptor, ...]

    @property
    def name(self) -> str:
        return self.target_class.__name__

    @property
    def identity(self) -> FieldDescriptor:
        """The identity field: by convention the first one."""
        return self.fields[0]

    @property
    def trailing_collection(self) -> FieldDescriptor | None:
        """The last field, when it is a collection of composites."""
        last = self.fields[-1]
        return last if last.kind is FieldKind.COLLECTION else None

    @property
    def inline_width(self) -> int:
        """Number of scalar leaves flattened inline (collections excluded)."""
        width = 0
        for f in self.fields:
            if f.kind is FieldKind.COLLECTION:
                continue
            if f.is_nested:
                width += f.element.inline_width
            else:
                width += 1
        return width

    def new_instance(self) -> Any:
        """Allocate a blank instance: declared defaults, else zero values."""
        values = {f.name: f.zero_value() for f in self.fields if f.init and not f.has_default}
        if issubclass(self.target_class, BaseModel):
            return self.target_class.model_construct(**values)
        return self.target_class(**values)


class _Declared(NamedTuple):
    name: str
    annotation: Any
    column: str | None
    has_default: bool
    init: bool


def _pydantic_column(info: Any) -> str | None:
    extra = info.json_schema_extra
    if isinstance(extra, dict) and isinstance(extra.get(WIRE_NAME_KEY), str):
        return extra[WIRE_NAME_KEY]
    return info.alias


def _declared_fields(cls: type) -> list[_Declared]:
    """List a composite's fields in declaration order."""
    if issubclass(cls, BaseModel):
        return [
            _Declared(name, info.annotation, _pydantic_column(info), not info.is_required(), True)
            for name, info in cls.model_fields.items()
        ]

    try:
        hints = get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise NotMappableError(cls, f"cannot resolve annotations: {e}") from e

    declared = []
    for f in dataclasses.fields(cls):
        has_default = (
            f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING
        )
        declared.append(
            _Declared(f.name, hints.get(f.name, f.type), f.metadata.get(WIRE_NAME_KEY), has_default, f.init)
        )
    return declared


def _unwrap_optional(tp: Any) -> tuple[Any, bool]:
    """Strip ``None`` from a union; report whether it was there."""
    if get_origin(tp) in (Union, types.UnionType):
        args = get_args(tp)
        rest = [a for a in args if a is not type(None)]
        nullable = len(rest) != len(args)
        if len(rest) == 1:
            return rest[0], nullable
        return tp, nullable
    return tp, False


class DescriptorCache:
    """Process-wide descriptor cache keyed by class."""

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._lock = threading.RLock()

    def get(self, cls: type) -> TypeDescriptor:
        descriptor = self._descriptors.get(cls)
        if descriptor is not None:
            return descriptor
        with self._lock:
            return self._build(cls, ())

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()

    def __contains__(self, cls: object) -> bool:
        return cls in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def _build(self, cls: type, stack: tuple[type, ...]) -> TypeDescriptor:
        cached = self._descriptors.get(cls)
        if cached is not None:
            return cached
        if cls in stack:
            raise RecursiveTypeError(stack[0], [c.__name__ for c in (*stack, cls)])

        declared = _declared_fields(cls)
        if not declared:
            raise EmptyTypeError(cls)

        stack = (*stack, cls)
        fields = tuple(self._build_field(d, stack) for d in declared)
        descriptor = TypeDescriptor(target_class=cls, fields=fields)
        self._descriptors[cls] = descriptor
        logger.debug(
            "Described %s: %s",
            cls.__name__,
            ", ".join(f"{f.name}->{f.column} ({f.kind.value})" for f in fields),
        )
        return descriptor

    def _build_field(self, declared: _Declared, stack: tuple[type, ...]) -> FieldDescriptor:
        tp, nullable = _unwrap_optional(declared.annotation)
        nested: TypeDescriptor | None = None

        if is_composite(tp):
            kind = FieldKind.COMPOSITE_REF if nullable else FieldKind.COMPOSITE
            nested = self._build(tp, stack)
        elif get_origin(tp) is list and get_args(tp) and is_composite(get_args(tp)[0]):
            kind = FieldKind.COLLECTION
            tp = get_args(tp)[0]
            nested = self._build(tp, stack)
        else:
            kind = FieldKind.SCALAR

        snake_name = to_snake(declared.name)
        return FieldDescriptor(
            name=declared.name,
            column=declared.column or snake_name,
            snake_name=snake_name,
            kind=kind,
            type=tp,
            nullable=nullable,
            descriptor=nested,
            has_default=declared.has_default,
            init=declared.init,
        )


_cache = DescriptorCache()


def describe(shape: Any) -> TypeDescriptor:
    """Return the descriptor of a composite class or ``list[Composite]``.

    Raises:
        NotMappableError: If the shape is not a composite or list of composites.
        EmptyTypeError: If the composite has no fields.
        RecursiveTypeError: If the composite references itself.
    """
    if get_origin(shape) is list:
        args = get_args(shape)
        if len(args) != 1 or not is_composite(args[0]):
            raise NotMappableError(shape)
        shape = args[0]
    elif not is_composite(shape):
        raise NotMappableError(shape)
    return _cache.get(shape)


def register(*shapes: Any) -> None:
    """Describe and cache *shapes* up front, so shape errors surface at startup.

    Usage:
        register(User, Order, list[Invoice])
    """
    for shape in shapes:
        describe(shape)


def clear_cache() -> None:
    """Drop every cached descriptor."""
    _cache.clear()


def cached(shape: type) -> bool:
    """Check if a descriptor for *shape* is already cached."""
    return shape in _cache


def resolve_destination(dest: Any, model: type | None = None) -> TypeDescriptor:
    """Validate a destination value and return its element descriptor.

    *dest* is either a mutable composite instance or a ``list``. For lists the
    element type is *model*, else the type of the first element.
    """
    if isinstance(dest, list):
        if model is None:
            if not dest:
                raise NotMappableError(list, "cannot infer the element type of an empty list")
            model = type(dest[0])
        descriptor = describe(model)
        if _is_frozen(model):
            raise NotAddressableError(model)
        return descriptor

    if isinstance(dest, _IMMUTABLE):
        raise NotAddressableError(dest)

    cls = type(dest)
    if model is not None and cls is not model:
        raise NotMappableError(cls, f"destination is not a {model.__name__}")
    descriptor = describe(cls)
    if _is_frozen(cls):
        raise NotAddressableError(dest)
    return descriptor
