"""Connection configuration and management.

ConnectionConfig is a Pydantic model for type-safe connection config; it can
be read from ``ROW_TREE_DB_*`` environment variables. ConnectionManager and
AsyncConnectionManager use adapter protocols for pool-based connection
lifecycle.
"""

from __future__ import annotations

import importlib
import logging
import os
from collections.abc import AsyncIterator, Iterator, Mapping
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from pydantic import BaseModel, ValidationError

from row_tree.core.exceptions import AdapterError, ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "ROW_TREE_"

# config field -> environment variable suffix
_ENV_FIELDS: dict[str, str] = {
    "driver": "DB_DRIVER",
    "database": "DB_NAME",
    "host": "DB_HOST",
    "port": "DB_PORT",
    "user": "DB_USER",
    "password": "DB_PASSWORD",
    "pool_size": "DB_POOL_SIZE",
}
_ENV_REQUIRED = ("driver", "database")


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    pool_size: int = 5
    pool_timeout: int = 30
    extra: dict[str, Any] = {}

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> ConnectionConfig:
        """Build a config from environment variables.

        Reads ``{prefix}DB_DRIVER`` and ``{prefix}DB_NAME`` (required), plus
        ``DB_HOST``, ``DB_PORT``, ``DB_USER``, ``DB_PASSWORD`` and
        ``DB_POOL_SIZE`` under the same prefix.

        Raises:
            ConfigurationError: If a required variable is unset or a value
                does not validate.
        """
        env = os.environ if environ is None else environ
        values: dict[str, str] = {}
        for name, suffix in _ENV_FIELDS.items():
            value = env.get(prefix + suffix, "")
            if value:
                values[name] = value

        for name in _ENV_REQUIRED:
            if name not in values:
                raise ConfigurationError(
                    f"environment variable {prefix + _ENV_FIELDS[name]} not set"
                )

        try:
            config = cls.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(f"invalid database environment: {e}") from e
        logger.debug("Loaded %s connection config for '%s' from environment", config.driver, config.database)
        return config


# driver name -> (adapter module, sync class, async class)
_ADAPTERS: dict[str, tuple[str, str, str]] = {
    "sqlite": ("row_tree.adapters.sqlite", "SqliteSyncAdapter", "SqliteAsyncAdapter"),
    "postgresql": (
        "row_tree.adapters.postgresql",
        "PostgresqlSyncAdapter",
        "PostgresqlAsyncAdapter",
    ),
}
_DRIVER_ALIASES = {"sqlite3": "sqlite", "postgres": "postgresql", "pg": "postgresql"}


def _load_adapter(driver: str, kind: str) -> Any:
    """Instantiate the sync or async adapter registered for *driver*."""
    name = driver.lower()
    name = _DRIVER_ALIASES.get(name, name)
    try:
        module_path, sync_name, async_name = _ADAPTERS[name]
    except KeyError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None

    cls_name = sync_name if kind == "sync" else async_name
    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load {kind} adapter for '{driver}': {e}") from e


class ConnectionManager:
    """Lends pooled connections through a SyncAdapter.

    The pool opens on first use. A connection handed back because of an
    exception is rolled back first, so a failed statement never leaves its
    transaction open for the next borrower.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self.adapter = _load_adapter(config.driver, "sync")
        self._pool: Any = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    def initialize_pool(self) -> Any:
        if self._pool is None:
            self._pool = self.adapter.create_pool(self.config)
            logger.debug("Opened %s pool of %d", self.config.driver, self.config.pool_size)
        return self._pool

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        pool = self.initialize_pool()
        connection = self.adapter.acquire_connection(pool)
        try:
            yield connection
        except Exception:
            connection.rollback()
            raise
        finally:
            self.adapter.release_connection(connection, pool)

    def close_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            self.adapter.close_pool(pool)
            logger.debug("Closed %s pool", self.config.driver)


class AsyncConnectionManager:
    """Async counterpart of ConnectionManager, over an AsyncAdapter."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config
        self.adapter = _load_adapter(config.driver, "async")
        self._pool: Any = None

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def initialize_pool(self) -> Any:
        if self._pool is None:
            self._pool = await self.adapter.create_pool_async(self.config)
            logger.debug("Opened async %s pool of %d", self.config.driver, self.config.pool_size)
        return self._pool

    @asynccontextmanager
    async def get_connection(self) -> AsyncIterator[Any]:
        pool = await self.initialize_pool()
        connection = await self.adapter.acquire_connection_async(pool)
        try:
            yield connection
        except Exception:
            await connection.rollback()
            raise
        finally:
            await self.adapter.release_connection_async(connection, pool)

    async def close_pool(self) -> None:
        pool, self._pool = self._pool, None
        if pool is not None:
            await self.adapter.close_pool_async(pool)
            logger.debug("Closed async %s pool", self.config.driver)
