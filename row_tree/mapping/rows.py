"""Row cursors.

CursorRows adapts a DB-API cursor; BufferedRows serves rows already in
memory (async fetches, tests). Rows are read positionally, so duplicate
column names from ``SELECT *`` over a join are kept apart.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from row_tree.core.exceptions import ScanError
from row_tree.mapping.protocol import ScanTarget


class _RowCursor:
    """Shared scan logic over a "current row" tuple."""

    def __init__(self, columns: Sequence[str]) -> None:
        self._columns = list(columns)
        self._current: tuple[Any, ...] | None = None

    def columns(self) -> list[str]:
        return list(self._columns)

    def next(self) -> bool:
        row = self._fetch()
        self._current = None if row is None else tuple(row)
        return self._current is not None

    def scan(self, *targets: ScanTarget) -> None:
        if self._current is None:
            raise ScanError("scan called without a current row")
        if len(targets) != len(self._current):
            raise ScanError(
                f"expected {len(self._current)} destination arguments in scan, not {len(targets)}"
            )
        for target, value in zip(targets, self._current, strict=True):
            target.scan(value)

    def _fetch(self) -> Any:
        raise NotImplementedError


class CursorRows(_RowCursor):
    """Rows over a DB-API cursor (``description`` + ``fetchone``)."""

    def __init__(self, cursor: Any) -> None:
        description = cursor.description or ()
        super().__init__([desc[0] for desc in description])
        self._cursor = cursor

    def _fetch(self) -> Any:
        if not self._columns:
            return None
        try:
            return self._cursor.fetchone()
        except Exception as e:
            raise ScanError(f"fetching next row failed: {e}") from e

    def close(self) -> None:
        self._cursor.close()


class BufferedRows(_RowCursor):
    """Rows over an in-memory sequence of tuples.

    Usage:
        rows = BufferedRows(["id", "name"], [(1, "Alice"), (2, "Bob")])
    """

    def __init__(self, columns: Sequence[str], rows: Iterable[Sequence[Any]]) -> None:
        super().__init__(columns)
        self._rows = iter(rows)

    def _fetch(self) -> Any:
        return next(self._rows, None)
