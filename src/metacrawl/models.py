"""
Core data models for the metacrawl package.

Defines the enumerations and value objects shared by the retriever
connection: generic data types, metadata categories, retrieval strategies
and the probed engine capabilities.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Union

from metacrawl.exceptions import InvalidOverrideError


class DataType(str, Enum):
    """Generic data types that native engine types are mapped onto."""
    STRING = "string"
    INTEGER = "integer"
    BIGINT = "bigint"
    DECIMAL = "decimal"
    FLOAT = "float"
    DOUBLE = "double"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    BOOLEAN = "boolean"
    BINARY = "binary"
    JSON = "json"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Union[str, DataType]) -> DataType:
        """Parse a data type from its name or value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise InvalidOverrideError(f"Unknown data type: {value!r}")


class MetadataCategory(str, Enum):
    """Classes of schema objects whose retrieval can be configured independently."""
    TABLE = "table"
    COLUMN = "column"
    PRIMARY_KEY = "primary_key"
    INDEX = "index"
    FOREIGN_KEY = "foreign_key"

    @classmethod
    def parse(cls, value: Union[str, MetadataCategory]) -> MetadataCategory:
        """Parse a category from its name or value, e.g. ``"foreign_key"`` or ``"FOREIGN-KEY"``."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if text == member.value:
                return member
        raise InvalidOverrideError(f"Unknown metadata category: {value!r}")


class RetrievalStrategy(str, Enum):
    """How a metadata category is fetched from the database."""
    NATIVE_API = "native_api"      # SQLAlchemy reflection / driver metadata calls
    CUSTOM_QUERY = "custom_query"  # Engine-specific SQL, e.g. INFORMATION_SCHEMA views

    @classmethod
    def parse(cls, value: Union[str, RetrievalStrategy]) -> RetrievalStrategy:
        """Parse a strategy from its name or value (case-insensitive)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if text == member.value:
                return member
        raise InvalidOverrideError(f"Unknown retrieval strategy: {value!r}")


# Read-only mapping holding exactly one strategy per category
RetrievalStrategies = Mapping[MetadataCategory, RetrievalStrategy]

_TYPE_SUFFIX = re.compile(r"\s*\(.*\)\s*$")


def normalize_type_name(native_type: str) -> str:
    """Upper-case a native type name and drop any length/precision suffix."""
    return _TYPE_SUFFIX.sub("", str(native_type)).strip().upper()


@dataclass(frozen=True)
class EngineCapabilities:
    """Facts probed once from a database engine."""
    table_types: FrozenSet[str] = frozenset()
    supports_catalogs: bool = False
    supports_schemas: bool = False
    type_map: Mapping[str, DataType] = field(default_factory=dict)

    def __post_init__(self):
        # Capabilities never change after probing
        object.__setattr__(self, "table_types", frozenset(self.table_types))
        object.__setattr__(
            self,
            "type_map",
            MappingProxyType({normalize_type_name(k): v for k, v in dict(self.type_map).items()}),
        )

    def map_type(self, native_type: str) -> DataType:
        """Map a native type name to a generic DataType; unknown names map to UNKNOWN."""
        if not native_type:
            return DataType.UNKNOWN
        return self.type_map.get(normalize_type_name(native_type), DataType.UNKNOWN)

    def accepts_table_type(self, table_type: str) -> bool:
        """
        Check whether a table type is supported by the engine.

        An empty set of table types means the engine could not report them,
        in which case every type is accepted.
        """
        if not self.table_types:
            return True
        return table_type.strip() in self.table_types

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_types": sorted(self.table_types),
            "supports_catalogs": self.supports_catalogs,
            "supports_schemas": self.supports_schemas,
            "type_map": {name: dt.value for name, dt in sorted(self.type_map.items())},
        }
