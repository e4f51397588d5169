"""
Database-specific override options.

Override options tell the retriever connection how a particular engine
should be crawled: which metadata categories bypass the native metadata API
in favour of custom queries, the SQL for those queries (information schema
views), and corrections to capabilities the engine misreports.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

import yaml

from metacrawl.exceptions import ConfigurationError, InvalidOverrideError
from metacrawl.models import DataType, MetadataCategory, RetrievalStrategy, normalize_type_name

logger = logging.getLogger(__name__)

_FLAG_VALUES = {"true": True, "yes": True, "false": False, "no": False}


def parse_flag(name: str, value: Any) -> Optional[bool]:
    """Parse an optional capability flag from a bool or a true/false/yes/no string."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _FLAG_VALUES:
        return _FLAG_VALUES[value.strip().lower()]
    raise InvalidOverrideError(f"{name} must be true or false, got {value!r}")


class InformationSchemaKey(str, Enum):
    """Logical names of the information schema views an engine can define."""
    TABLES = "tables"
    VIEWS = "views"
    TABLE_COLUMNS = "table_columns"
    PRIMARY_KEYS = "primary_keys"
    INDEXES = "indexes"
    FOREIGN_KEYS = "foreign_keys"
    TABLE_CONSTRAINTS = "table_constraints"
    CHECK_CONSTRAINTS = "check_constraints"
    ROUTINES = "routines"
    SEQUENCES = "sequences"
    SYNONYMS = "synonyms"
    TRIGGERS = "triggers"
    ADDITIONAL_TABLE_ATTRIBUTES = "additional_table_attributes"
    ADDITIONAL_COLUMN_ATTRIBUTES = "additional_column_attributes"

    @classmethod
    def parse(cls, value: Union[str, InformationSchemaKey]) -> InformationSchemaKey:
        """Parse a key from its name or value, e.g. ``"FOREIGN_KEYS"``."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if text == member.value:
                return member
        raise InvalidOverrideError(f"Unknown information schema view: {value!r}")

    @classmethod
    def for_category(cls, category: Union[str, MetadataCategory]) -> InformationSchemaKey:
        """Return the view that serves custom queries for a metadata category."""
        return _CATEGORY_VIEWS[MetadataCategory.parse(category)]


_CATEGORY_VIEWS = {
    MetadataCategory.TABLE: InformationSchemaKey.TABLES,
    MetadataCategory.COLUMN: InformationSchemaKey.TABLE_COLUMNS,
    MetadataCategory.PRIMARY_KEY: InformationSchemaKey.PRIMARY_KEYS,
    MetadataCategory.INDEX: InformationSchemaKey.INDEXES,
    MetadataCategory.FOREIGN_KEY: InformationSchemaKey.FOREIGN_KEYS,
}


class InformationSchemaViews:
    """
    Engine-specific SQL for information schema style views.

    The SQL text is not interpreted here. It is handed unchanged to the
    retrievers that run custom queries.
    """

    def __init__(self, views: Optional[Mapping[Any, str]] = None):
        queries: Dict[InformationSchemaKey, str] = {}
        for key, sql in (views or {}).items():
            if sql is None or not str(sql).strip():
                continue
            queries[InformationSchemaKey.parse(key)] = str(sql).strip()
        self._views = MappingProxyType(queries)

    def get_query(self, key: Union[str, InformationSchemaKey]) -> Optional[str]:
        """Get the SQL for a view, or None if the engine does not define it."""
        return self._views.get(InformationSchemaKey.parse(key))

    def has_query(self, key: Union[str, InformationSchemaKey]) -> bool:
        """Check whether the engine defines SQL for a view."""
        return InformationSchemaKey.parse(key) in self._views

    def keys(self):
        return self._views.keys()

    @property
    def is_empty(self) -> bool:
        return not self._views

    def __contains__(self, key: object) -> bool:
        try:
            return self.has_query(key)  # type: ignore[arg-type]
        except InvalidOverrideError:
            return False

    def __iter__(self) -> Iterator[InformationSchemaKey]:
        return iter(self._views)

    def __len__(self) -> int:
        return len(self._views)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InformationSchemaViews):
            return NotImplemented
        return dict(self._views) == dict(other._views)

    def __repr__(self) -> str:
        names = ", ".join(sorted(k.name for k in self._views))
        return f"InformationSchemaViews([{names}])"

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary for serialization."""
        return {key.name: sql for key, sql in self._views.items()}

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, str]]) -> InformationSchemaViews:
        """Create from a mapping of view name to SQL."""
        return cls(data or {})

    @classmethod
    def from_directory(cls, path: Path) -> InformationSchemaViews:
        """
        Load view SQL from a directory of ``<VIEW_NAME>.sql`` files.

        Args:
            path: Directory holding files such as ``TABLES.sql`` or ``FOREIGN_KEYS.sql``

        Returns:
            InformationSchemaViews with one entry per recognized file
        """
        path = Path(path)
        if not path.is_dir():
            raise ConfigurationError(f"Information schema views directory not found: {path}")

        views: Dict[InformationSchemaKey, str] = {}
        for sql_file in sorted(path.glob("*.sql")):
            try:
                key = InformationSchemaKey.parse(sql_file.stem)
            except InvalidOverrideError:
                logger.warning(f"Ignoring unrecognized information schema view file: {sql_file}")
                continue
            views[key] = sql_file.read_text(encoding="utf-8")

        logger.info(f"Loaded {len(views)} information schema views from {path}")
        return cls(views)


@dataclass
class DatabaseSpecificOverrideOptions:
    """
    Per-engine options that override what the native metadata API reports.

    Categories absent from ``retrieval_strategies`` are fetched through the
    native metadata API. ``supports_catalogs`` and ``supports_schemas`` take
    precedence over the probed values when they are not None, and
    ``type_map`` entries take precedence over the probed type mapping.
    """
    information_schema_views: InformationSchemaViews = field(default_factory=InformationSchemaViews)
    identifiers: Optional[Any] = None  # Identifier quoting policy, passed through untouched
    retrieval_strategies: Dict[MetadataCategory, RetrievalStrategy] = field(default_factory=dict)
    supports_catalogs: Optional[bool] = None
    supports_schemas: Optional[bool] = None
    type_map: Dict[str, DataType] = field(default_factory=dict)

    def __post_init__(self):
        if self.information_schema_views is None:
            self.information_schema_views = InformationSchemaViews()
        elif not isinstance(self.information_schema_views, InformationSchemaViews):
            self.information_schema_views = InformationSchemaViews(self.information_schema_views)

        self.supports_catalogs = parse_flag("supports_catalogs", self.supports_catalogs)
        self.supports_schemas = parse_flag("supports_schemas", self.supports_schemas)

        self.retrieval_strategies = {
            MetadataCategory.parse(category): RetrievalStrategy.parse(strategy)
            for category, strategy in (self.retrieval_strategies or {}).items()
            if strategy is not None
        }
        self.type_map = {
            normalize_type_name(name): DataType.parse(data_type)
            for name, data_type in (self.type_map or {}).items()
        }

    def has_override_for(self, category: Union[str, MetadataCategory]) -> bool:
        """Check whether a retrieval strategy was set explicitly for a category."""
        return MetadataCategory.parse(category) in self.retrieval_strategies

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization (the identifier policy is omitted)."""
        return {
            "retrieval_strategies": {c.value: s.value for c, s in self.retrieval_strategies.items()},
            "supports_catalogs": self.supports_catalogs,
            "supports_schemas": self.supports_schemas,
            "type_map": {name: dt.value for name, dt in self.type_map.items()},
            "information_schema_views": self.information_schema_views.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Optional[Dict[str, Any]],
        base_dir: Optional[Path] = None,
        identifiers: Optional[Any] = None,
    ) -> DatabaseSpecificOverrideOptions:
        """
        Create from a dictionary, typically parsed from YAML.

        ``information_schema_views`` may be an inline mapping of view name to
        SQL, or a directory of ``.sql`` files (relative to ``base_dir``).
        """
        data = data or {}

        views_conf = data.get("information_schema_views")
        if isinstance(views_conf, str):
            views_dir = Path(views_conf)
            if not views_dir.is_absolute() and base_dir is not None:
                views_dir = Path(base_dir) / views_dir
            views = InformationSchemaViews.from_directory(views_dir)
        elif isinstance(views_conf, dict) or views_conf is None:
            views = InformationSchemaViews.from_dict(views_conf)
        else:
            raise InvalidOverrideError(
                "information_schema_views must be a mapping or a directory path"
            )

        return cls(
            information_schema_views=views,
            identifiers=identifiers,
            retrieval_strategies=data.get("retrieval_strategies") or {},
            supports_catalogs=data.get("supports_catalogs"),
            supports_schemas=data.get("supports_schemas"),
            type_map=data.get("type_map") or {},
        )

    @classmethod
    def from_yaml(cls, path: Path, identifiers: Optional[Any] = None) -> DatabaseSpecificOverrideOptions:
        """Load override options from a YAML file."""
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Override options file not found: {path}")

        with open(path, "r") as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Could not parse override options file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Override options file must contain a mapping: {path}")

        options = cls.from_dict(data, base_dir=path.parent, identifiers=identifiers)
        logger.info(
            f"Loaded override options from {path} "
            f"({len(options.retrieval_strategies)} strategy overrides, "
            f"{len(options.information_schema_views)} information schema views)"
        )
        return options
