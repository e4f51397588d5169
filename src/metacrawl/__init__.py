"""
metacrawl - Retriever connection context for relational metadata crawling

Wraps a live SQLAlchemy connection with the facts a metadata crawler needs
before it fetches anything:

- Connection liveness validation
- Engine capabilities (table types, catalog/schema support, type mapping)
- Per-category retrieval strategy (native metadata API or custom query)
- Engine-specific information schema view SQL
"""

__version__ = "0.1.0"

from metacrawl.exceptions import (
    ConfigurationError,
    DatabaseConnectionError,
    InvalidConnectionError,
    InvalidOverrideError,
    MetacrawlError,
    MissingOverridesError,
)
from metacrawl.models import (
    DataType,
    EngineCapabilities,
    MetadataCategory,
    RetrievalStrategy,
)
from metacrawl.options import (
    DatabaseSpecificOverrideOptions,
    InformationSchemaKey,
    InformationSchemaViews,
)
from metacrawl.metadata import (
    ConnectionMetadata,
    RetrieverConnection,
    probe_capabilities,
    resolve_retrieval_strategies,
    validate_connection,
)

__all__ = [
    # Models
    "DataType",
    "EngineCapabilities",
    "MetadataCategory",
    "RetrievalStrategy",
    # Options
    "DatabaseSpecificOverrideOptions",
    "InformationSchemaKey",
    "InformationSchemaViews",
    # Retriever connection
    "ConnectionMetadata",
    "RetrieverConnection",
    "probe_capabilities",
    "resolve_retrieval_strategies",
    "validate_connection",
    # Errors
    "ConfigurationError",
    "DatabaseConnectionError",
    "InvalidConnectionError",
    "InvalidOverrideError",
    "MetacrawlError",
    "MissingOverridesError",
]
