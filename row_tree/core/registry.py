"""SQL Registry - named, hand-written SQL loaded from a directory tree.

Namespace convention:
    sql/user/get_by_id.sql       -> "user.get_by_id"
    sql/report/a_b_c_tree.sql    -> "report.a_b_c_tree"

Each file becomes a :class:`Statement`: a prepared handle the engine accepts
anywhere it accepts raw SQL text.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from row_tree.core.exceptions import DuplicateQueryError, QueryNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Statement:
    """A named SQL statement."""

    name: str
    sql: str
    path: Path | None = None

    def __str__(self) -> str:
        return self.name


class SQLRegistry:
    """Loads and caches SQL files from a directory structure.

    The registry is immutable after loading: load once at startup, then
    read-only access for the lifetime of the application.

    Args:
        root_dir: Root directory containing SQL files.

    Raises:
        DuplicateQueryError: If two files resolve to the same namespace key.
    """

    def __init__(self, root_dir: Path | str) -> None:
        self._root_dir = Path(root_dir)
        self._statements: dict[str, Statement] = {}
        self._load()

    def _load(self) -> None:
        if not self._root_dir.exists():
            logger.debug("SQL directory %s does not exist; registry is empty", self._root_dir)
            return

        for sql_file in sorted(self._root_dir.rglob("*.sql")):
            parts = list(sql_file.relative_to(self._root_dir).parts)
            parts[-1] = parts[-1].removesuffix(".sql")
            name = ".".join(parts)

            existing = self._statements.get(name)
            if existing is not None:
                raise DuplicateQueryError(name, str(existing.path), str(sql_file))

            self._statements[name] = Statement(
                name=name,
                sql=sql_file.read_text(encoding="utf-8").strip(),
                path=sql_file,
            )
        logger.debug("Loaded %d statements from %s", len(self._statements), self._root_dir)

    def get(self, query_name: str) -> Statement:
        """Look up a statement by namespace-qualified name.

        Raises:
            QueryNotFoundError: If no query matches the given name.
        """
        try:
            return self._statements[query_name]
        except KeyError:
            raise QueryNotFoundError(query_name) from None

    def has(self, query_name: str) -> bool:
        """Check if a query name is registered."""
        return query_name in self._statements

    @property
    def query_names(self) -> list[str]:
        """List all registered query names, sorted alphabetically."""
        return sorted(self._statements)

    def __len__(self) -> int:
        return len(self._statements)
