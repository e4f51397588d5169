"""Tests for database-specific override options."""

from pathlib import Path

import pytest

from metacrawl.exceptions import ConfigurationError, InvalidOverrideError
from metacrawl.models import DataType, MetadataCategory, RetrievalStrategy
from metacrawl.options import (
    DatabaseSpecificOverrideOptions,
    InformationSchemaKey,
    InformationSchemaViews,
)

SAMPLES_DIR = Path(__file__).parent.parent / "samples"


class TestInformationSchemaViews:
    """Tests for InformationSchemaViews."""

    def test_get_query(self):
        views = InformationSchemaViews.from_dict({
            "TABLES": "SELECT * FROM information_schema.tables",
            "foreign_keys": "SELECT * FROM information_schema.referential_constraints",
        })

        assert len(views) == 2
        assert views.has_query(InformationSchemaKey.TABLES)
        assert views.get_query("FOREIGN_KEYS").startswith("SELECT")
        assert views.get_query(InformationSchemaKey.INDEXES) is None
        assert "TABLES" in views
        assert "NOT_A_VIEW" not in views

    def test_blank_sql_is_ignored(self):
        views = InformationSchemaViews({"TABLES": "   ", "VIEWS": None})
        assert views.is_empty

    def test_unknown_view_name(self):
        with pytest.raises(InvalidOverrideError):
            InformationSchemaViews({"NOT_A_VIEW": "SELECT 1"})

    def test_for_category(self):
        assert InformationSchemaKey.for_category(MetadataCategory.COLUMN) == InformationSchemaKey.TABLE_COLUMNS
        assert InformationSchemaKey.for_category("foreign_key") == InformationSchemaKey.FOREIGN_KEYS

    def test_from_directory(self, tmp_path):
        (tmp_path / "TABLES.sql").write_text("SELECT table_name FROM information_schema.tables")
        (tmp_path / "indexes.sql").write_text("SELECT * FROM sys.indexes")
        (tmp_path / "README.sql").write_text("-- not a view")
        (tmp_path / "notes.txt").write_text("ignored")

        views = InformationSchemaViews.from_directory(tmp_path)

        assert set(views) == {InformationSchemaKey.TABLES, InformationSchemaKey.INDEXES}
        assert views.get_query("INDEXES") == "SELECT * FROM sys.indexes"

    def test_from_missing_directory(self, tmp_path):
        with pytest.raises(ConfigurationError):
            InformationSchemaViews.from_directory(tmp_path / "missing")


class TestDatabaseSpecificOverrideOptions:
    """Tests for DatabaseSpecificOverrideOptions."""

    def test_defaults(self):
        options = DatabaseSpecificOverrideOptions()

        assert options.retrieval_strategies == {}
        assert options.information_schema_views.is_empty
        assert options.identifiers is None
        assert options.supports_catalogs is None
        assert options.supports_schemas is None

    def test_string_values_are_normalized(self):
        options = DatabaseSpecificOverrideOptions(
            retrieval_strategies={"foreign_key": "custom_query", "index": None},
            type_map={"date": "timestamp"},
            information_schema_views={"FOREIGN_KEYS": "SELECT 1"},
        )

        assert options.retrieval_strategies == {MetadataCategory.FOREIGN_KEY: RetrievalStrategy.CUSTOM_QUERY}
        assert options.type_map == {"DATE": DataType.TIMESTAMP}
        assert isinstance(options.information_schema_views, InformationSchemaViews)
        assert options.has_override_for("foreign_key")
        assert not options.has_override_for(MetadataCategory.INDEX)

    def test_invalid_strategy(self):
        with pytest.raises(InvalidOverrideError):
            DatabaseSpecificOverrideOptions(retrieval_strategies={"table": "fastest"})

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        ("false", False),
        ("No", False),
        (" TRUE ", True),
        ("yes", True),
    ])
    def test_capability_flags_are_booleans(self, value, expected):
        options = DatabaseSpecificOverrideOptions.from_dict({
            "supports_catalogs": value,
            "supports_schemas": value,
        })

        assert options.supports_catalogs is expected
        assert options.supports_schemas is expected

    @pytest.mark.parametrize("value", ["maybe", "0", 1, 0, [True]])
    def test_invalid_capability_flag(self, value):
        with pytest.raises(InvalidOverrideError, match="supports_catalogs"):
            DatabaseSpecificOverrideOptions(supports_catalogs=value)

    def test_quoted_yaml_flag(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("supports_catalogs: \"false\"\nsupports_schemas: \"yes\"\n")

        options = DatabaseSpecificOverrideOptions.from_yaml(path)

        assert options.supports_catalogs is False
        assert options.supports_schemas is True

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text(
            "retrieval_strategies:\n"
            "  table: custom_query\n"
            "supports_catalogs: true\n"
            "information_schema_views:\n"
            "  TABLES: SELECT * FROM information_schema.tables\n"
        )

        options = DatabaseSpecificOverrideOptions.from_yaml(path, identifiers="quoting-policy")

        assert options.retrieval_strategies[MetadataCategory.TABLE] == RetrievalStrategy.CUSTOM_QUERY
        assert options.supports_catalogs is True
        assert options.supports_schemas is None
        assert options.identifiers == "quoting-policy"
        assert options.information_schema_views.has_query("TABLES")

    def test_from_yaml_views_directory(self, tmp_path):
        views_dir = tmp_path / "views"
        views_dir.mkdir()
        (views_dir / "PRIMARY_KEYS.sql").write_text("SELECT 1")
        path = tmp_path / "overrides.yaml"
        path.write_text("information_schema_views: views\n")

        options = DatabaseSpecificOverrideOptions.from_yaml(path)

        assert options.information_schema_views.get_query("PRIMARY_KEYS") == "SELECT 1"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("")

        options = DatabaseSpecificOverrideOptions.from_yaml(path)
        assert options.retrieval_strategies == {}

    def test_missing_yaml(self, tmp_path):
        with pytest.raises(ConfigurationError):
            DatabaseSpecificOverrideOptions.from_yaml(tmp_path / "missing.yaml")

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "overrides.yaml"
        path.write_text("- table\n- column\n")

        with pytest.raises(ConfigurationError):
            DatabaseSpecificOverrideOptions.from_yaml(path)

    def test_sample_files(self):
        oracle = DatabaseSpecificOverrideOptions.from_yaml(SAMPLES_DIR / "oracle.yaml")
        assert oracle.retrieval_strategies == {
            MetadataCategory.PRIMARY_KEY: RetrievalStrategy.CUSTOM_QUERY,
            MetadataCategory.FOREIGN_KEY: RetrievalStrategy.CUSTOM_QUERY,
        }
        assert oracle.type_map["DATE"] == DataType.TIMESTAMP
        assert oracle.information_schema_views.has_query("FOREIGN_KEYS")

        sqlserver = DatabaseSpecificOverrideOptions.from_yaml(SAMPLES_DIR / "sqlserver.yaml")
        assert sqlserver.retrieval_strategies == {MetadataCategory.INDEX: RetrievalStrategy.CUSTOM_QUERY}
        assert sqlserver.information_schema_views.has_query("INDEXES")

    def test_to_dict(self):
        options = DatabaseSpecificOverrideOptions(
            retrieval_strategies={MetadataCategory.INDEX: RetrievalStrategy.CUSTOM_QUERY},
            supports_schemas=False,
        )
        data = options.to_dict()

        assert data["retrieval_strategies"] == {"index": "custom_query"}
        assert data["supports_schemas"] is False
