"""Tests for the command-line interface, run against a YAML schema file."""

import json
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from pg_lens.cli import cli
from pg_lens.errors import MetadataUnavailable


@pytest.fixture
def schema_file(tmp_path, shop_schema):
    path = tmp_path / "shop.yaml"
    path.write_text(yaml.safe_dump(shop_schema))
    return str(path)


@pytest.fixture
def run(schema_file):
    runner = CliRunner()

    def _run(*args):
        return runner.invoke(cli, ["--schema-file", schema_file, *args])

    return _run


class TestCli:
    """Tests for the pg-lens commands."""

    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "suggest-joins" in result.output

    def test_table_info(self, run):
        result = run("table-info", "orders")
        assert result.exit_code == 0
        assert "# Table: public.orders" in result.output
        assert "user_id → users.id" in result.output

    def test_table_info_not_found(self, run):
        result = run("table-info", "ghosts")
        assert result.exit_code == 0
        assert "Table 'ghosts' not found" in result.output

    def test_list_tables(self, run):
        result = run("list-tables")
        assert result.exit_code == 0
        assert "# Database Tables (11 found)" in result.output
        assert "## Schema: sales" in result.output

    def test_search_tables(self, run):
        result = run("search-tables", "invoice")
        assert result.exit_code == 0
        assert "Found 2 matching table(s):" in result.output

    def test_search_tables_invalid_pattern(self, run):
        result = run("search-tables", "(")
        assert result.exit_code == 1
        assert "Error: searching tables" in result.output

    def test_suggest_joins(self, run):
        result = run("suggest-joins", "order_items:oi", "users:u", "orders:o")
        assert result.exit_code == 0
        assert "# JOIN Suggestions for order_items (oi)" in result.output
        assert "INNER JOIN users u ON oi.user_id = u.id" in result.output
        assert "LEFT JOIN order_items oi ON o.user_id = oi.user_id" in result.output

    def test_suggest_joins_json(self, run):
        result = run("suggest-joins", "users:u", "orders:o", "--json")
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data[0] == {
            "joinType": "INNER JOIN",
            "expression": "INNER JOIN users u ON o.user_id = u.id",
            "description": "Direct foreign key relationship from orders to users (FK: orders_user_id_fkey)",
            "score": 105,
        }

    def test_suggest_joins_naming_heuristics(self, run):
        assert "products p" not in run("suggest-joins", "products:p", "reviews:r").output

        result = run("suggest-joins", "products:p", "reviews:r", "--naming-heuristics", "--workers", "2")
        assert result.exit_code == 0
        assert "LEFT JOIN products p ON r.product_id = p.id" in result.output

    def test_suggest_joins_unknown_table(self, run):
        result = run("suggest-joins", "ghosts:g", "users:u")
        assert result.exit_code == 1
        assert "Table 'ghosts' not found" in result.output

    def test_suggest_joins_requires_existing_tables(self, run):
        result = run("suggest-joins", "users:u")
        assert result.exit_code != 0

    def test_missing_connection_settings(self, monkeypatch):
        for name in ("POSTGRES_DATABASE", "POSTGRES_USER", "POSTGRES_PASSWORD"):
            monkeypatch.delenv(name, raising=False)

        result = CliRunner().invoke(cli, ["list-tables"])
        assert result.exit_code == 1
        assert "Missing required database configuration" in result.output

    def test_timeout_caps_server_statements(self):
        with patch("pg_lens.cli.PostgresMetadataProvider") as provider_cls:
            provider_cls.return_value.__enter__.side_effect = MetadataUnavailable("database is down")
            result = CliRunner().invoke(cli, ["suggest-joins", "users:u", "orders:o", "--timeout", "2.5"])

        assert result.exit_code == 1
        assert "database is down" in result.output
        settings = provider_cls.call_args[0][0]
        assert settings.statement_timeout == 2500
