"""Unit tests for SQLRegistry."""

from __future__ import annotations

from pathlib import Path

import pytest

from row_tree.core.exceptions import QueryNotFoundError
from row_tree.core.registry import SQLRegistry, Statement


class TestSQLRegistry:
    def test_load_directory(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("user/get_by_id.sql", "SELECT * FROM users WHERE id = ?")
        write_sql("user/list.sql", "SELECT * FROM users")
        registry = SQLRegistry(tmp_sql_dir)
        assert len(registry) == 2

    def test_dot_separated_namespace(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("billing/invoice/list.sql", "SELECT * FROM invoices")
        registry = SQLRegistry(tmp_sql_dir)
        assert registry.has("billing.invoice.list")
        assert registry.get("billing.invoice.list").sql == "SELECT * FROM invoices"

    def test_get_returns_statement(self, tmp_sql_dir: Path, write_sql) -> None:
        path = write_sql("user/list.sql", "  SELECT id, name FROM users ORDER BY name\n")
        registry = SQLRegistry(tmp_sql_dir)
        statement = registry.get("user.list")
        assert isinstance(statement, Statement)
        assert statement.name == "user.list"
        assert statement.sql == "SELECT id, name FROM users ORDER BY name"
        assert statement.path == path
        assert str(statement) == "user.list"

    def test_has_returns_false_for_missing(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("user/list.sql", "SELECT 1")
        registry = SQLRegistry(tmp_sql_dir)
        assert registry.has("user.missing") is False

    def test_query_names_sorted(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("b/query.sql", "SELECT 1")
        write_sql("a/query.sql", "SELECT 2")
        write_sql("c/query.sql", "SELECT 3")
        registry = SQLRegistry(tmp_sql_dir)
        assert registry.query_names == ["a.query", "b.query", "c.query"]

    def test_query_not_found_error(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("user/list.sql", "SELECT 1")
        registry = SQLRegistry(tmp_sql_dir)
        with pytest.raises(QueryNotFoundError, match="missing.query"):
            registry.get("missing.query")

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        registry = SQLRegistry(tmp_path / "nowhere")
        assert len(registry) == 0
        assert registry.query_names == []

    def test_ignores_non_sql_files(self, tmp_sql_dir: Path, write_sql) -> None:
        write_sql("user/list.sql", "SELECT 1")
        write_sql("user/README.md", "not sql")
        registry = SQLRegistry(tmp_sql_dir)
        assert len(registry) == 1
