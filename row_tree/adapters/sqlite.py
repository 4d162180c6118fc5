"""SQLite adapter - sync (sqlite3 stdlib) and async (aiosqlite).

Rows come back as plain tuples. SQLite has no native timestamp or boolean
type; the scan wrappers convert the text and integers it stores.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from row_tree.core.connection import ConnectionConfig
from row_tree.core.exceptions import PoolError


def _pool_size(config: ConnectionConfig) -> int:
    # Every connection to ":memory:" opens its own private database.
    if config.database == ":memory:":
        return 1
    return config.pool_size


class SqliteSyncAdapter:
    """Synchronous SQLite adapter using stdlib sqlite3."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    def create_pool(self, config: ConnectionConfig) -> list[sqlite3.Connection]:
        """Create a 'pool' (list of connections) for SQLite."""
        pool: list[sqlite3.Connection] = []
        for _ in range(_pool_size(config)):
            conn = sqlite3.connect(config.database, timeout=config.pool_timeout)
            conn.execute("PRAGMA foreign_keys=ON")
            pool.append(conn)
        return pool

    def acquire_connection(self, pool: list[sqlite3.Connection]) -> sqlite3.Connection:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(
        self, connection: sqlite3.Connection, pool: list[sqlite3.Connection]
    ) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[sqlite3.Connection]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(self, connection: sqlite3.Connection, sql: str, params: Any = ()) -> sqlite3.Cursor:
        return connection.execute(sql, params)


class SqliteAsyncAdapter:
    """Asynchronous SQLite adapter using aiosqlite."""

    @property
    def paramstyle(self) -> str:
        return "qmark"

    async def create_pool_async(self, config: ConnectionConfig) -> list[Any]:
        import aiosqlite

        pool: list[Any] = []
        for _ in range(_pool_size(config)):
            conn = await aiosqlite.connect(config.database, timeout=config.pool_timeout)
            await conn.execute("PRAGMA foreign_keys=ON")
            pool.append(conn)
        return pool

    async def acquire_connection_async(self, pool: list[Any]) -> Any:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    async def release_connection_async(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    async def close_pool_async(self, pool: list[Any]) -> None:
        for conn in pool:
            await conn.close()
        pool.clear()

    async def execute_async(self, connection: Any, sql: str, params: Any = ()) -> Any:
        return await connection.execute(sql, params)
