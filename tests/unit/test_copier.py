"""Unit tests for nullable wrappers and the field copier."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

import pytest

from row_tree.core.exceptions import TypeMismatchError, UnsupportedFieldError
from row_tree.mapping.copier import convert, copy_fields, copy_value
from row_tree.mapping.descriptor import describe, uint
from row_tree.mapping.nulls import (
    NullBool,
    NullFloat,
    NullInt,
    NullString,
    NullTime,
    NullUint,
    wrapper_for,
)


@dataclass
class Address:
    city: str
    zip_code: str | None = None


@dataclass
class Customer:
    id: int
    name: str | None
    score: float
    home: Address
    work: Address | None = None


@dataclass
class Flags:
    id: int
    active: bool
    payload: bytes = b""


def _scanned(wrapper_cls, *values):
    out = []
    for value in values:
        wrapper = wrapper_cls()
        wrapper.scan(value)
        out.append(wrapper)
    return out


class TestNullWrappers:
    def test_null_marks_invalid(self) -> None:
        wrapper = NullInt("id")
        wrapper.scan(None)
        assert wrapper.valid is False
        assert wrapper.value is None

    def test_rescan_clears_previous_value(self) -> None:
        wrapper = NullString("name")
        wrapper.scan("alice")
        wrapper.scan(None)
        assert wrapper.valid is False
        assert wrapper.value is None

    @pytest.mark.parametrize(
        ("src", "expected"),
        [(True, True), (0, False), (1, True), ("true", True), ("F", False), (b"yes", True)],
    )
    def test_bool(self, src: object, expected: bool) -> None:
        wrapper = NullBool()
        wrapper.scan(src)
        assert wrapper.value is expected

    def test_bool_rejects_other_numbers(self) -> None:
        with pytest.raises(TypeMismatchError):
            NullBool("active").scan(2)

    @pytest.mark.parametrize(
        ("src", "expected"),
        [(7, 7), (7.0, 7), (Decimal("12"), 12), ("42", 42), (b" -3 ", -3)],
    )
    def test_int(self, src: object, expected: int) -> None:
        wrapper = NullInt()
        wrapper.scan(src)
        assert wrapper.value == expected
        assert type(wrapper.value) is int

    def test_int_refuses_truncation(self) -> None:
        with pytest.raises(TypeMismatchError, match="truncated"):
            NullInt("count").scan(1.5)

    def test_int_refuses_boolean(self) -> None:
        with pytest.raises(TypeMismatchError, match="boolean"):
            NullInt("count").scan(True)

    def test_int_rejects_text(self) -> None:
        with pytest.raises(TypeMismatchError, match="'count'"):
            NullInt("count").scan("many")

    def test_uint_rejects_negative(self) -> None:
        wrapper = NullUint("count")
        wrapper.scan(3)
        assert wrapper.value == 3
        with pytest.raises(TypeMismatchError, match="negative"):
            wrapper.scan(-1)

    def test_float(self) -> None:
        wrapper = NullFloat()
        wrapper.scan(81)
        assert wrapper.value == 81.0
        assert type(wrapper.value) is float
        wrapper.scan("2.5")
        assert wrapper.value == 2.5

    def test_string_from_other_kinds(self) -> None:
        wrapper = NullString()
        wrapper.scan(625)
        assert wrapper.value == "625"
        wrapper.scan(b"abc")
        assert wrapper.value == "abc"
        wrapper.scan(date(2024, 1, 2))
        assert wrapper.value == "2024-01-02"

    def test_time_from_text(self) -> None:
        wrapper = NullTime()
        wrapper.scan("2024-03-04 05:06:07")
        assert wrapper.value == datetime(2024, 3, 4, 5, 6, 7)
        wrapper.scan(date(2024, 3, 4))
        assert wrapper.value == datetime(2024, 3, 4)

    def test_time_rejects_garbage(self) -> None:
        with pytest.raises(TypeMismatchError):
            NullTime("created").scan("yesterday")

    def test_repr(self) -> None:
        wrapper = NullInt()
        assert repr(wrapper) == "NullInt(NULL)"
        wrapper.scan(5)
        assert repr(wrapper) == "NullInt(5)"

    def test_wrapper_for(self) -> None:
        fields = {f.name: f for f in describe(Flags).fields}
        assert wrapper_for(fields["id"]) is NullInt
        assert wrapper_for(fields["active"]) is NullBool
        with pytest.raises(UnsupportedFieldError, match="payload"):
            wrapper_for(fields["payload"])


class TestConvert:
    def test_widens_int_to_float(self) -> None:
        assert convert(3, float) == 3.0

    def test_narrows_integral_float(self) -> None:
        assert convert(4.0, int) == 4

    def test_refuses_lossy_narrowing(self) -> None:
        with pytest.raises(TypeMismatchError, match="truncated"):
            convert(4.5, int, "qty")

    def test_refuses_number_to_bool(self) -> None:
        with pytest.raises(TypeMismatchError):
            convert(1, bool)

    def test_refuses_bool_to_number(self) -> None:
        with pytest.raises(TypeMismatchError):
            convert(True, int)
        with pytest.raises(TypeMismatchError):
            convert(True, float)

    def test_uint(self) -> None:
        assert convert(2, uint) == 2
        with pytest.raises(TypeMismatchError, match="negative"):
            convert(-2, uint)

    def test_dates(self) -> None:
        stamp = datetime(2024, 5, 6, 7, 8)
        assert convert(stamp, date) == date(2024, 5, 6)
        assert convert(date(2024, 5, 6), datetime) == datetime(2024, 5, 6)

    def test_same_type_passes_through(self) -> None:
        assert convert("x", str) == "x"

    def test_mismatch_names_field(self) -> None:
        with pytest.raises(TypeMismatchError, match="'label'") as exc_info:
            convert(5, str, "label")
        assert exc_info.value.field == "label"
        assert exc_info.value.value == 5


class TestCopyValue:
    def test_null_into_optional(self) -> None:
        customer = Customer(id=1, name="old", score=0.0, home=Address(city="x"))
        field = describe(Customer).fields[1]
        copy_value(customer, field, _scanned(NullString, None)[0])
        assert customer.name is None

    def test_null_into_required_raises(self) -> None:
        customer = Customer(id=1, name=None, score=0.0, home=Address(city="x"))
        field = describe(Customer).fields[0]
        with pytest.raises(TypeMismatchError, match="non-optional"):
            copy_value(customer, field, _scanned(NullInt, None)[0])

    def test_valid_value_is_converted(self) -> None:
        customer = Customer(id=1, name=None, score=0.0, home=Address(city="x"))
        field = describe(Customer).fields[2]
        copy_value(customer, field, _scanned(NullInt, 9)[0])
        assert customer.score == 9.0


class TestCopyFields:
    def test_walks_nested_composites_in_order(self) -> None:
        descriptor = describe(Customer)
        values = [
            *_scanned(NullInt, 7),
            *_scanned(NullString, "Ada"),
            *_scanned(NullFloat, 1.5),
            *_scanned(NullString, "London", "N1", "Paris", None),
        ]
        customer = descriptor.new_instance()

        end = copy_fields(customer, descriptor, values, 0)

        assert end == 7
        assert customer.id == 7
        assert customer.name == "Ada"
        assert customer.score == 1.5
        assert customer.home == Address(city="London", zip_code="N1")
        assert customer.work == Address(city="Paris", zip_code=None)

    def test_all_null_optional_composite_stays_unset(self) -> None:
        descriptor = describe(Customer)
        values = [
            *_scanned(NullInt, 7),
            *_scanned(NullString, None),
            *_scanned(NullFloat, 0.5),
            *_scanned(NullString, "Rome", None, None, None),
        ]
        customer = descriptor.new_instance()

        copy_fields(customer, descriptor, values, 0)

        assert customer.home == Address(city="Rome")
        assert customer.work is None

    def test_starts_at_position(self) -> None:
        descriptor = describe(Address)
        values = _scanned(NullString, "skip", "Oslo", "0150")
        address = descriptor.new_instance()
        assert copy_fields(address, descriptor, values, 1) == 3
        assert address == Address(city="Oslo", zip_code="0150")
