"""Nullable scan wrappers.

A join row is scanned into wrappers first, so that NULL padding from outer
joins can be seen before anything is written into the result tree. Each
wrapper normalizes what the driver delivers (SQLite hands back timestamps as
text and booleans as integers, for example) into one Python type.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar

from row_tree.core.exceptions import TypeMismatchError, UnsupportedFieldError
from row_tree.mapping.descriptor import FieldDescriptor, uint

_TRUE_STRINGS = frozenset({"1", "t", "true", "y", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "f", "false", "n", "no", "off"})


class NullValue:
    """Base nullable wrapper: ``valid`` is False when the column was NULL."""

    kind: ClassVar[str] = "value"

    __slots__ = ("column", "valid", "value")

    def __init__(self, column: str = "") -> None:
        self.column = column
        self.value: Any = None
        self.valid = False

    def scan(self, src: Any) -> None:
        if src is None:
            self.value = None
            self.valid = False
            return
        self.value = self.convert(src)
        self.valid = True

    def convert(self, src: Any) -> Any:
        raise NotImplementedError

    def _mismatch(self, src: Any, detail: str = "") -> TypeMismatchError:
        return TypeMismatchError(self.column or "?", src, self.kind, detail)

    def __repr__(self) -> str:
        if not self.valid:
            return f"{type(self).__name__}(NULL)"
        return f"{type(self).__name__}({self.value!r})"


class NullBool(NullValue):
    kind = "bool"

    __slots__ = ()

    def convert(self, src: Any) -> bool:
        if isinstance(src, bool):
            return src
        if isinstance(src, int) and src in (0, 1):
            return bool(src)
        if isinstance(src, bytes):
            src = src.decode()
        if isinstance(src, str):
            lowered = src.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise self._mismatch(src)


class NullInt(NullValue):
    kind = "int"

    __slots__ = ()

    def convert(self, src: Any) -> int:
        if isinstance(src, bool):
            raise self._mismatch(src, "refusing boolean to integer")
        if isinstance(src, int):
            return src
        if isinstance(src, (float, Decimal)):
            try:
                value = int(src)
            except (ValueError, OverflowError):
                raise self._mismatch(src) from None
            if value != src:
                raise self._mismatch(src, "value would be truncated")
            return value
        if isinstance(src, bytes):
            src = src.decode()
        if isinstance(src, str):
            try:
                return int(src.strip())
            except ValueError:
                raise self._mismatch(src) from None
        raise self._mismatch(src)


class NullUint(NullInt):
    kind = "uint"

    __slots__ = ()

    def convert(self, src: Any) -> int:
        value = super().convert(src)
        if value < 0:
            raise self._mismatch(src, "negative value")
        return value


class NullFloat(NullValue):
    kind = "float"

    __slots__ = ()

    def convert(self, src: Any) -> float:
        if isinstance(src, bool):
            raise self._mismatch(src, "refusing boolean to float")
        if isinstance(src, (int, float, Decimal)):
            return float(src)
        if isinstance(src, bytes):
            src = src.decode()
        if isinstance(src, str):
            try:
                return float(src.strip())
            except ValueError:
                raise self._mismatch(src) from None
        raise self._mismatch(src)


class NullString(NullValue):
    kind = "str"

    __slots__ = ()

    def convert(self, src: Any) -> str:
        if isinstance(src, str):
            return src
        if isinstance(src, (bytes, bytearray, memoryview)):
            return bytes(src).decode()
        if isinstance(src, bool):
            return "true" if src else "false"
        if isinstance(src, (int, float, Decimal)):
            return str(src)
        if isinstance(src, (datetime, date)):
            return src.isoformat()
        raise self._mismatch(src)


class NullTime(NullValue):
    kind = "datetime"

    __slots__ = ()

    def convert(self, src: Any) -> datetime:
        if isinstance(src, datetime):
            return src
        if isinstance(src, date):
            return datetime(src.year, src.month, src.day)
        if isinstance(src, bytes):
            src = src.decode()
        if isinstance(src, str):
            try:
                return datetime.fromisoformat(src.strip())
            except ValueError:
                raise self._mismatch(src) from None
        raise self._mismatch(src)


WRAPPERS: dict[Any, type[NullValue]] = {
    bool: NullBool,
    int: NullInt,
    uint: NullUint,
    float: NullFloat,
    str: NullString,
    datetime: NullTime,
    date: NullTime,
}


def supported(field: FieldDescriptor) -> bool:
    try:
        return field.type in WRAPPERS
    except TypeError:
        return False


def wrapper_for(field: FieldDescriptor) -> type[NullValue]:
    """Pick the wrapper class for a scalar field.

    Raises:
        UnsupportedFieldError: If the field's type has no wrapper.
    """
    try:
        return WRAPPERS[field.type]
    except (KeyError, TypeError):
        raise UnsupportedFieldError(
            field.type, f"field '{field.name}' has no nullable scan wrapper"
        ) from None
