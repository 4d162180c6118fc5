"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from row_tree.core.connection import ConnectionConfig
from row_tree.mapping.descriptor import clear_cache


@pytest.fixture(autouse=True)
def fresh_descriptor_cache() -> Iterator[None]:
    """Isolate every test from descriptors cached by the others."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def sqlite_config() -> ConnectionConfig:
    """SQLite in-memory connection config."""
    return ConnectionConfig(driver="sqlite", database=":memory:", pool_size=1)


@pytest.fixture
def tmp_sql_dir(tmp_path: Path) -> Path:
    """Temporary directory for SQL files."""
    return tmp_path / "sql"


@pytest.fixture
def write_sql(tmp_sql_dir: Path):
    """Helper to write SQL files into the temp directory.

    Usage:
        write_sql("user/get_by_id.sql", "SELECT * FROM users WHERE id = ?")
    """

    def _write(relative_path: str, content: str) -> Path:
        file_path = tmp_sql_dir / relative_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
        return file_path

    return _write
