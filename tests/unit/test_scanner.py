"""Unit tests for the flat row scanner and scan_one / scan_all."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import pytest

from row_tree.core.exceptions import (
    NoRowsError,
    NotAddressableError,
    NotMappableError,
    ScanError,
    TypeMismatchError,
)
from row_tree.mapping.descriptor import column, describe
from row_tree.mapping.query import scan_all, scan_one
from row_tree.mapping.rows import BufferedRows
from row_tree.mapping.scanner import scan_targets

T1 = datetime(2013, 9, 24, 17, 27)
T2 = datetime(2012, 12, 12, 12, 12, 12)


@dataclass
class Tester:
    text_field: str = ""
    b: int = 0
    some_sort_of_date_time: datetime | None = column("c", default=None)


@dataclass
class Tester4:
    field_b: int = column("b", default=0)


@dataclass
class Tester3:
    tester4: Tester4 | None = None


@dataclass
class Tester2:
    field_a: int = 0
    tester3: Tester3 | None = None
    tester4: Tester4 | None = None


@dataclass
class Tester5:
    first_column: str = ""
    not_included: str = ""
    third_column: str = column("test", default="")


@dataclass
class Document:
    id: int = 0
    tags: list[str] = field(default_factory=list)
    note: str | None = None


def _go_test_rows() -> BufferedRows:
    return BufferedRows(
        ["text_field", "b", "c"],
        [("testing", 9001, "2013-09-24 17:27:00"), ("testing 2", 666, T2)],
    )


class TestScanTargets:
    def test_exact_match(self) -> None:
        test = Tester()
        targets = scan_targets(describe(Tester), test, ["text_field", "b", "c"])
        assert [t.field.name for t in targets] == ["text_field", "b", "some_sort_of_date_time"]

    def test_columns_are_not_modified(self) -> None:
        columns = ["text_field", "b", "c"]
        scan_targets(describe(Tester), Tester(), columns)
        assert columns == ["text_field", "b", "c"]

    def test_unselected_field_is_skipped(self) -> None:
        targets = scan_targets(describe(Tester5), Tester5(), ["first_column", "test"])
        assert [t.field.name for t in targets] == ["first_column", "third_column"]

    def test_snake_name_also_matches_overridden_field(self) -> None:
        targets = scan_targets(describe(Tester5), Tester5(), ["first_column", "third_column"])
        assert [t.field.name for t in targets] == ["first_column", "third_column"]

    def test_embedded_composites_share_repeated_column(self) -> None:
        test = Tester2()
        targets = scan_targets(describe(Tester2), test, ["field_a", "b", "b"])

        assert len(targets) == 3
        assert test.tester3 is not None
        assert test.tester3.tester4 is not None
        assert test.tester4 is not None
        assert targets[0].owner is test
        assert targets[1].owner is test.tester3.tester4
        assert targets[2].owner is test.tester4

    def test_unknown_column_leaves_targets_short(self) -> None:
        targets = scan_targets(describe(Tester), Tester(), ["text_field", "bogus", "b"])
        assert len(targets) == 1


class TestScanOne:
    def test_first_row(self) -> None:
        test = scan_one(Tester(), _go_test_rows())
        assert test.text_field == "testing"
        assert test.b == 9001
        assert test.some_sort_of_date_time == T1

    def test_embedded(self) -> None:
        rows = BufferedRows(["field_a", "b", "b"], [(10, 66, 66)])
        test = scan_one(Tester2(), rows)
        assert test.field_a == 10
        assert test.tester3.tester4.field_b == 66
        assert test.tester4.field_b == 66

    def test_missing_fields_in_target(self) -> None:
        rows = BufferedRows(["first_column", "test"], [("first", "third")])
        test = scan_one(Tester5(), rows)
        assert test.first_column == "first"
        assert test.not_included == ""
        assert test.third_column == "third"

    def test_no_rows(self) -> None:
        with pytest.raises(NoRowsError, match="no rows"):
            scan_one(Tester(), BufferedRows(["text_field"], []))

    def test_count_mismatch(self) -> None:
        rows = BufferedRows(["text_field", "bogus", "b"], [("x", 1, 2)])
        with pytest.raises(ScanError, match="expected 3 destination arguments in scan, not 1"):
            scan_one(Tester(), rows)

    def test_null_into_optional_and_required(self) -> None:
        test = scan_one(Tester(), BufferedRows(["text_field", "c"], [("x", None)]))
        assert test.some_sort_of_date_time is None

        with pytest.raises(TypeMismatchError, match="'b'"):
            scan_one(Tester(), BufferedRows(["b"], [(None,)]))

    def test_unsupported_scalar_is_stored_raw(self) -> None:
        rows = BufferedRows(["id", "tags", "note"], [(1, ["a", "b"], None)])
        doc = scan_one(Document(tags=["old"]), rows)
        assert doc.tags == ["a", "b"]
        assert doc.note is None

    def test_class_is_rejected_before_reading(self) -> None:
        rows = _go_test_rows()
        with pytest.raises(NotAddressableError):
            scan_one(Tester, rows)
        assert rows.next()


class TestScanAll:
    def test_reuses_existing_elements(self) -> None:
        first, second = Tester(), Tester()
        dest = [first, second]
        result = scan_all(dest, _go_test_rows())

        assert result is dest
        assert len(dest) == 2
        assert dest[0] is first
        assert dest[1] is second
        assert (second.text_field, second.b, second.some_sort_of_date_time) == ("testing 2", 666, T2)

    def test_appends_past_existing(self) -> None:
        dest = [Tester(text_field="keep me")]
        scan_all(dest, _go_test_rows())
        assert [t.text_field for t in dest] == ["testing", "testing 2"]

    def test_empty_list_with_model(self) -> None:
        dest: list[Tester] = []
        scan_all(dest, _go_test_rows(), Tester)
        assert [t.b for t in dest] == [9001, 666]
        assert dest[0].some_sort_of_date_time == T1

    def test_extra_elements_are_untouched(self) -> None:
        dest = [Tester(), Tester(), Tester(text_field="spare")]
        scan_all(dest, _go_test_rows())
        assert len(dest) == 3
        assert dest[2].text_field == "spare"

    def test_empty_result(self) -> None:
        dest: list[Tester] = []
        assert scan_all(dest, BufferedRows(["b"], []), Tester) == []

    def test_empty_list_without_model(self) -> None:
        with pytest.raises(NotMappableError):
            scan_all([], _go_test_rows())
