"""
Engine capability probing.

Derives table types, catalog and schema support, and the native type
mapping for a connection. Each check that fails degrades to a conservative
default (no table types, no catalog or schema support, UNKNOWN types)
instead of aborting.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional, TypeVar

from sqlalchemy import types as sqltypes

from metacrawl.models import DataType, EngineCapabilities, normalize_type_name

logger = logging.getLogger(__name__)

T = TypeVar("T")


# Static reference table of native type names, covering ANSI SQL plus the
# Oracle and Hive spellings
STANDARD_TYPE_MAP = {
    # Character
    "CHAR": DataType.STRING,
    "CHARACTER": DataType.STRING,
    "NCHAR": DataType.STRING,
    "VARCHAR": DataType.STRING,
    "VARCHAR2": DataType.STRING,
    "NVARCHAR": DataType.STRING,
    "NVARCHAR2": DataType.STRING,
    "CHARACTER VARYING": DataType.STRING,
    "TEXT": DataType.STRING,
    "NTEXT": DataType.STRING,
    "CLOB": DataType.STRING,
    "NCLOB": DataType.STRING,
    "LONG": DataType.STRING,
    "STRING": DataType.STRING,
    # Exact numeric
    "TINYINT": DataType.INTEGER,
    "SMALLINT": DataType.INTEGER,
    "INT": DataType.INTEGER,
    "INTEGER": DataType.INTEGER,
    "MEDIUMINT": DataType.INTEGER,
    "BIGINT": DataType.BIGINT,
    "DECIMAL": DataType.DECIMAL,
    "NUMERIC": DataType.DECIMAL,
    "NUMBER": DataType.DECIMAL,
    "MONEY": DataType.DECIMAL,
    # Approximate numeric
    "REAL": DataType.FLOAT,
    "FLOAT": DataType.FLOAT,
    "BINARY_FLOAT": DataType.FLOAT,
    "DOUBLE": DataType.DOUBLE,
    "DOUBLE PRECISION": DataType.DOUBLE,
    "BINARY_DOUBLE": DataType.DOUBLE,
    # Date and time
    "DATE": DataType.DATE,
    "TIME": DataType.TIME,
    "DATETIME": DataType.TIMESTAMP,
    "DATETIME2": DataType.TIMESTAMP,
    "SMALLDATETIME": DataType.TIMESTAMP,
    "TIMESTAMP": DataType.TIMESTAMP,
    "TIMESTAMP WITH TIME ZONE": DataType.TIMESTAMP,
    "TIMESTAMP WITH LOCAL TIME ZONE": DataType.TIMESTAMP,
    "TIMESTAMPTZ": DataType.TIMESTAMP,
    # Other
    "BOOL": DataType.BOOLEAN,
    "BOOLEAN": DataType.BOOLEAN,
    "BIT": DataType.BOOLEAN,
    "BINARY": DataType.BINARY,
    "VARBINARY": DataType.BINARY,
    "RAW": DataType.BINARY,
    "LONG RAW": DataType.BINARY,
    "BLOB": DataType.BINARY,
    "BYTEA": DataType.BINARY,
    "IMAGE": DataType.BINARY,
    "JSON": DataType.JSON,
    "JSONB": DataType.JSON,
}


def _checked(description: str, check: Callable[[], T], default: T) -> T:
    """Run a capability check, collapsing any failure to a conservative default."""
    try:
        return check()
    except Exception as e:
        logger.warning(f"Could not determine {description}, assuming {default!r}: {e}")
        return default


def normalize_table_types(table_types: Iterable[str]) -> frozenset:
    """Trim table type names, drop blanks, and keep the engine's casing."""
    return frozenset(
        name.strip() for name in table_types
        if name is not None and name.strip()
    )


def classify_type(type_class: Any) -> DataType:
    """Map a SQLAlchemy type class (or instance) to a generic DataType."""
    if type_class is None:
        return DataType.UNKNOWN
    if not isinstance(type_class, type):
        type_class = type(type_class)

    if issubclass(type_class, sqltypes.Boolean):
        return DataType.BOOLEAN
    elif issubclass(type_class, sqltypes.BigInteger):
        return DataType.BIGINT
    elif issubclass(type_class, sqltypes.Integer):
        return DataType.INTEGER
    elif issubclass(type_class, sqltypes.Double):
        return DataType.DOUBLE
    elif issubclass(type_class, sqltypes.Float):
        return DataType.FLOAT
    elif issubclass(type_class, sqltypes.Numeric):
        return DataType.DECIMAL
    elif issubclass(type_class, sqltypes.DateTime):
        return DataType.TIMESTAMP
    elif issubclass(type_class, sqltypes.Date):
        return DataType.DATE
    elif issubclass(type_class, sqltypes.Time):
        return DataType.TIME
    elif issubclass(type_class, sqltypes.JSON):
        return DataType.JSON
    elif issubclass(type_class, (sqltypes.LargeBinary, sqltypes.BINARY, sqltypes.VARBINARY)):
        return DataType.BINARY
    elif issubclass(type_class, sqltypes.String):
        return DataType.STRING
    else:
        return DataType.UNKNOWN


def build_type_map(type_info: Dict[str, Any]) -> Dict[str, DataType]:
    """
    Cross-reference the engine's native type names against the reference table.

    Names missing from the reference table are classified by their SQLAlchemy
    type class; anything else maps to UNKNOWN.
    """
    type_map: Dict[str, DataType] = {}
    for native_name, type_class in type_info.items():
        name = normalize_type_name(native_name)
        if not name:
            continue
        data_type = STANDARD_TYPE_MAP.get(name)
        if data_type is None:
            data_type = _checked(f"generic type for {name}", lambda: classify_type(type_class), DataType.UNKNOWN)
        type_map[name] = data_type
    return type_map


def probe_capabilities(metadata: Any, override_options: Optional[Any] = None) -> EngineCapabilities:
    """
    Probe engine capabilities from the native metadata facility.

    Args:
        metadata: ConnectionMetadata, or any object with the same methods
        override_options: Optional DatabaseSpecificOverrideOptions whose
            explicit values win over probed ones

    Returns:
        EngineCapabilities; never raises
    """
    table_types = _checked(
        "supported table types",
        lambda: normalize_table_types(metadata.get_table_types()),
        frozenset(),
    )

    supports_catalogs = getattr(override_options, "supports_catalogs", None)
    if supports_catalogs is None:
        supports_catalogs = _checked("catalog support", lambda: bool(metadata.supports_catalogs()), False)

    supports_schemas = getattr(override_options, "supports_schemas", None)
    if supports_schemas is None:
        supports_schemas = _checked("schema support", lambda: bool(metadata.supports_schemas()), False)

    type_map = _checked("native type mapping", lambda: build_type_map(metadata.get_type_info()), {})
    type_map.update(getattr(override_options, "type_map", None) or {})

    capabilities = EngineCapabilities(
        table_types=table_types,
        supports_catalogs=supports_catalogs,
        supports_schemas=supports_schemas,
        type_map=type_map,
    )
    logger.debug(
        f"Probed capabilities: table types {sorted(capabilities.table_types)}, "
        f"catalogs={capabilities.supports_catalogs}, schemas={capabilities.supports_schemas}, "
        f"{len(capabilities.type_map)} mapped types"
    )
    return capabilities
