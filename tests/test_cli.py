"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine

from metacrawl.cli import cli


@pytest.fixture
def database_url(tmp_path):
    """Create a SQLite database file with one table."""
    path = tmp_path / "warehouse.db"
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE customers (customer_id INTEGER PRIMARY KEY)")
    engine.dispose()
    return f"sqlite:///{path}"


@pytest.fixture
def overrides_file(tmp_path):
    path = tmp_path / "overrides.yaml"
    path.write_text(
        "retrieval_strategies:\n"
        "  index: custom_query\n"
        "information_schema_views:\n"
        "  INDEXES: SELECT * FROM sqlite_master WHERE type = 'index'\n"
    )
    return path


class TestProbeCommand:
    """Tests for the probe command."""

    def test_probe_json(self, database_url, overrides_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["probe", "--url", database_url, "--overrides", str(overrides_file), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dialect"] == "sqlite"
        assert "TABLE" in data["capabilities"]["table_types"]
        assert data["retrieval_strategies"]["index"] == "custom_query"
        assert data["retrieval_strategies"]["table"] == "native_api"

    def test_probe_tables(self, database_url):
        runner = CliRunner()
        result = runner.invoke(cli, ["probe", "--url", database_url])

        assert result.exit_code == 0, result.output
        assert "Engine Capabilities" in result.stdout
        assert "Retrieval Strategies" in result.stdout

    def test_probe_bad_overrides(self, database_url, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("retrieval_strategies:\n  table: fastest\n")

        runner = CliRunner()
        result = runner.invoke(cli, ["probe", "--url", database_url, "--overrides", str(path)])

        assert result.exit_code == 1
        assert "fastest" in result.stdout


class TestStrategiesCommand:
    """Tests for the strategies command."""

    def test_strategies(self, overrides_file):
        runner = CliRunner()
        result = runner.invoke(cli, ["strategies", "--overrides", str(overrides_file)])

        assert result.exit_code == 0, result.output
        assert "custom_query" in result.stdout
        assert "native_api" in result.stdout
        assert "INDEXES" in result.stdout
