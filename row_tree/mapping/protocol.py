"""Row-cursor protocol.

The mapper needs exactly three operations from whatever executes SQL:
advance to the next row, report column names, and scan the current row's
values into targets. Anything implementing :class:`Rows` can be mapped.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ScanTarget(Protocol):
    """A placeholder bound to one column of the current row."""

    def scan(self, value: Any) -> None:
        """Receive the raw column value."""
        ...


@runtime_checkable
class Rows(Protocol):
    """Forward-only cursor over a query result."""

    def next(self) -> bool:
        """Advance to the next row. Returns False when exhausted."""
        ...

    def columns(self) -> list[str]:
        """Column names of the result, in select order."""
        ...

    def scan(self, *targets: ScanTarget) -> None:
        """Scan the current row, one target per column."""
        ...
