"""PostgreSQL adapter - sync and async using psycopg (v3+).

Connections use psycopg's default tuple rows: joins routinely select
duplicate column names (``id`` from every table), which dict rows would merge.
"""

from __future__ import annotations

from typing import Any

from row_tree.core.connection import ConnectionConfig
from row_tree.core.exceptions import ConnectionError, PoolError  # noqa: A004


def _build_conninfo(config: ConnectionConfig) -> str:
    """Build a libpq connection string from config fields."""
    parts: list[str] = []
    if config.host is not None:
        parts.append(f"host={config.host}")
    if config.port is not None:
        parts.append(f"port={config.port}")
    if config.user is not None:
        parts.append(f"user={config.user}")
    if config.password is not None:
        parts.append(f"password={config.password}")
    parts.append(f"dbname={config.database}")
    parts.append(f"connect_timeout={config.pool_timeout}")
    for key, value in config.extra.items():
        parts.append(f"{key}={value}")
    return " ".join(parts)


class PostgresqlSyncAdapter:
    """Synchronous PostgreSQL adapter using psycopg (v3+)."""

    @property
    def paramstyle(self) -> str:
        return "format"

    def create_pool(self, config: ConnectionConfig) -> list[Any]:
        import psycopg

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        try:
            for _ in range(config.pool_size):
                pool.append(psycopg.connect(conninfo))
        except psycopg.OperationalError as e:
            self.close_pool(pool)
            raise ConnectionError(f"Cannot connect to PostgreSQL: {e}") from e
        return pool

    def acquire_connection(self, pool: list[Any]) -> Any:
        if not pool:
            raise PoolError("No connections available in pool")
        return pool.pop()

    def release_connection(self, connection: Any, pool: list[Any]) -> None:
        pool.append(connection)

    def close_pool(self, pool: list[Any]) -> None:
        for conn in pool:
            conn.close()
        pool.clear()

    def execute(self, connection: Any, sql: str, params: Any = ()) -> Any:
        return connection.execute(sql, params or None)


class PostgresqlAsyncAdapter:
    """Asynchronous PostgreSQL adapter using psycopg (v3+) async support."""

    @property
    def paramstyle(self) -> str:
        return "format"

    async def create_pool_async(self, config: ConnectionConfig) -> list[Any]:
        import psycopg

        conninfo = _build_conninfo(config)
        pool: list[Any] = []
        try:
            for _ in range(config.pool_size):
                pool.append(await psycopg.AsyncConnection.connect(conninfo))
        except psycopg.OperationalError as e:
            await self.close_pool_async(pool)
            raise ConnectionError(f"Cannot connect to PostgreSQL: {e}") from e
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
        return await connection.execute(sql, params or None)
