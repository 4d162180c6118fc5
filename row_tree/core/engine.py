"""Query execution engine.

The Engine runs hand-written SQL (raw text or a registry Statement) through
the adapter and maps the resulting rows onto a destination:

    engine.query(user, "SELECT ... WHERE id = ?", 1)          one row
    engine.query(users, "SELECT ...", model=User)              every row
    engine.query_join(authors, stmt, model=Author)             nested tree

Positional arguments are handed to the driver unchanged; a single mapping
argument is passed as named parameters.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from row_tree.core.connection import AsyncConnectionManager, ConnectionConfig, ConnectionManager
from row_tree.core.exceptions import BadQueryError, QueryError, QueryNotFoundError
from row_tree.core.registry import SQLRegistry, Statement
from row_tree.mapping.descriptor import resolve_destination
from row_tree.mapping.query import scan_all, scan_join, scan_one
from row_tree.mapping.rows import BufferedRows, CursorRows

logger = logging.getLogger(__name__)


def _sql_text(query: Any) -> str:
    if isinstance(query, Statement):
        return query.sql
    if isinstance(query, str):
        return query
    raise BadQueryError(query)


def _label(query: Statement | str) -> str:
    if isinstance(query, Statement):
        return query.name
    text = " ".join(query.split())
    return text if len(text) <= 60 else text[:57] + "..."


def _params(args: tuple[Any, ...]) -> Any:
    if len(args) == 1 and isinstance(args[0], Mapping):
        return args[0]
    return args


class Engine:
    """Synchronous query execution engine."""

    def __init__(
        self,
        connection_manager: ConnectionManager,
        registry: SQLRegistry | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        self._registry = registry

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        registry: SQLRegistry | None = None,
    ) -> Engine:
        """Create an Engine from a ConnectionConfig and optional SQLRegistry."""
        return cls(ConnectionManager(config), registry)

    def prepare(self, query_name: str) -> Statement:
        """Look up a named statement in the registry."""
        if self._registry is None:
            raise QueryNotFoundError(query_name)
        return self._registry.get(query_name)

    def _execute(self, conn: Any, query: Statement | str, args: tuple[Any, ...]) -> Any:
        sql = _sql_text(query)
        try:
            cursor = self._connection_manager.adapter.execute(conn, sql, _params(args))
        except Exception as e:
            raise QueryError(_label(query), str(e)) from e
        logger.debug("Executed %s", _label(query))
        return cursor

    def query(
        self,
        dest: Any,
        query: Statement | str,
        *args: Any,
        model: type | None = None,
    ) -> Any:
        """Run *query* and scan its rows into *dest*.

        A composite instance receives the first row (``NoRowsError`` if
        there is none); a list receives every row as instances of *model*.

        Returns:
            *dest*, populated in place.
        """
        resolve_destination(dest, model)
        _sql_text(query)

        with self._connection_manager.get_connection() as conn:
            rows = CursorRows(self._execute(conn, query, args))
            try:
                if isinstance(dest, list):
                    return scan_all(dest, rows, model)
                return scan_one(dest, rows)
            finally:
                rows.close()

    def query_join(
        self,
        dest: list[Any],
        query: Statement | str,
        *args: Any,
        model: type | None = None,
        strict: bool = False,
    ) -> list[Any]:
        """Run a flattened join query and rebuild the nested tree in *dest*."""
        resolve_destination(dest, model)
        _sql_text(query)

        with self._connection_manager.get_connection() as conn:
            rows = CursorRows(self._execute(conn, query, args))
            try:
                return scan_join(dest, rows, model, strict=strict)
            finally:
                rows.close()

    def execute(self, query: Statement | str, *args: Any) -> int:
        """Execute a write query. Returns affected row count."""
        with self._connection_manager.get_connection() as conn:
            cursor = self._execute(conn, query, args)
            conn.commit()
            return int(cursor.rowcount)

    def close(self) -> None:
        self._connection_manager.close_pool()


async def _buffer(cursor: Any) -> BufferedRows:
    """Drain an async cursor into memory."""
    description = cursor.description or ()
    columns = [desc[0] for desc in description]
    try:
        data = await cursor.fetchall() if columns else []
    finally:
        await cursor.close()
    return BufferedRows(columns, data)


class AsyncEngine:
    """Asynchronous query execution engine.

    Rows are fetched asynchronously, then mapped synchronously; mapping has
    no suspension points of its own.
    """

    def __init__(
        self,
        connection_manager: AsyncConnectionManager,
        registry: SQLRegistry | None = None,
    ) -> None:
        self._connection_manager = connection_manager
        self._registry = registry

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        registry: SQLRegistry | None = None,
    ) -> AsyncEngine:
        """Create an AsyncEngine from a ConnectionConfig and optional SQLRegistry."""
        return cls(AsyncConnectionManager(config), registry)

    def prepare(self, query_name: str) -> Statement:
        """Look up a named statement in the registry."""
        if self._registry is None:
            raise QueryNotFoundError(query_name)
        return self._registry.get(query_name)

    async def _fetch(self, query: Statement | str, args: tuple[Any, ...]) -> BufferedRows:
        sql = _sql_text(query)
        async with self._connection_manager.get_connection() as conn:
            try:
                cursor = await self._connection_manager.adapter.execute_async(
                    conn, sql, _params(args)
                )
            except Exception as e:
                raise QueryError(_label(query), str(e)) from e
            logger.debug("Executed %s", _label(query))
            return await _buffer(cursor)

    async def query(
        self,
        dest: Any,
        query: Statement | str,
        *args: Any,
        model: type | None = None,
    ) -> Any:
        """Async variant of :meth:`Engine.query`."""
        resolve_destination(dest, model)
        rows = await self._fetch(query, args)
        if isinstance(dest, list):
            return scan_all(dest, rows, model)
        return scan_one(dest, rows)

    async def query_join(
        self,
        dest: list[Any],
        query: Statement | str,
        *args: Any,
        model: type | None = None,
        strict: bool = False,
    ) -> list[Any]:
        """Async variant of :meth:`Engine.query_join`."""
        resolve_destination(dest, model)
        rows = await self._fetch(query, args)
        return scan_join(dest, rows, model, strict=strict)

    async def execute(self, query: Statement | str, *args: Any) -> int:
        """Execute a write query asynchronously."""
        sql = _sql_text(query)
        async with self._connection_manager.get_connection() as conn:
            try:
                cursor = await self._connection_manager.adapter.execute_async(
                    conn, sql, _params(args)
                )
            except Exception as e:
                raise QueryError(_label(query), str(e)) from e

            await conn.commit()
            return int(cursor.rowcount)

    async def close(self) -> None:
        await self._connection_manager.close_pool()
