"""
Retriever connection: the per-connection context shared by metadata retrievers.

Wraps a live database connection together with everything retrievers need
to decide how to fetch each metadata category. Construction does all the
fallible work; once built, the object is read-only and its methods cannot
fail.
"""

from __future__ import annotations

import logging
from typing import Any, FrozenSet, Mapping, Optional, Union

from sqlalchemy.engine import Connection

from metacrawl.exceptions import MissingOverridesError
from metacrawl.metadata.capabilities import probe_capabilities
from metacrawl.metadata.connection import ConnectionMetadata, validate_connection
from metacrawl.metadata.strategies import resolve_retrieval_strategies
from metacrawl.models import (
    DataType,
    EngineCapabilities,
    MetadataCategory,
    RetrievalStrategies,
    RetrievalStrategy,
)
from metacrawl.options import DatabaseSpecificOverrideOptions, InformationSchemaViews

logger = logging.getLogger(__name__)


class RetrieverConnection:
    """
    A connection for the retrievers. Wraps a live database connection.

    The connection is borrowed: the caller opens it, closes it, and must keep
    it open for as long as this object is in use. One RetrieverConnection
    serves one crawl at a time; it does no locking of its own.

    Construction steps, stopping at the first failure:
    1. Validate the connection (InvalidConnectionError)
    2. Require override options (MissingOverridesError)
    3. Probe engine capabilities (never fails, degrades to defaults); a
       transaction the probe autobegins is rolled back
    4. Resolve a retrieval strategy for every metadata category
    5. Keep the information schema views and identifier policy as supplied
    """

    def __init__(
        self,
        connection: Connection,
        override_options: DatabaseSpecificOverrideOptions,
        metadata: Optional[Any] = None,
    ):
        """
        Initialize the retriever connection.

        Args:
            connection: Live SQLAlchemy connection
            override_options: Database-specific override options
            metadata: Native metadata facility; defaults to ConnectionMetadata
                over the given connection
        """
        validate_connection(connection)

        if override_options is None:
            raise MissingOverridesError("No database specific overrides provided")

        if metadata is None:
            metadata = ConnectionMetadata(connection)

        # Probing only reads; the caller's transaction state is unchanged afterwards
        in_transaction = connection.in_transaction()
        try:
            capabilities = probe_capabilities(metadata, override_options)
        finally:
            if not in_transaction and connection.in_transaction():
                connection.rollback()
        strategies = resolve_retrieval_strategies(override_options)

        self._set("_connection", connection)
        self._set("_metadata", metadata)
        self._set("_capabilities", capabilities)
        self._set("_retrieval_strategies", strategies)
        self._set("_information_schema_views", override_options.information_schema_views)
        self._set("_identifiers", override_options.identifiers)
        self._set("_frozen", True)

        logger.debug(f"Database specific options: {override_options.to_dict()}")
        logger.debug(f"Supported table types are <{', '.join(sorted(capabilities.table_types))}>")
        logger.info(f"Created retriever connection: {self!r}")

    def _set(self, name: str, value: Any) -> None:
        object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "_frozen", False):
            raise AttributeError(f"RetrieverConnection is read-only, cannot set {name!r}")
        object.__setattr__(self, name, value)

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"RetrieverConnection is read-only, cannot delete {name!r}")

    def __repr__(self) -> str:
        strategies = ", ".join(f"{c.value}={s.value}" for c, s in self._retrieval_strategies.items())
        dialect = getattr(self._connection, "dialect", None)
        dialect_name = getattr(dialect, "name", "unknown")
        return f"RetrieverConnection(dialect={dialect_name}, {strategies})"

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def metadata(self) -> Any:
        """The native metadata facility used to probe capabilities."""
        return self._metadata

    # Capabilities

    @property
    def capabilities(self) -> EngineCapabilities:
        return self._capabilities

    @property
    def table_types(self) -> FrozenSet[str]:
        return self._capabilities.table_types

    @property
    def supports_catalogs(self) -> bool:
        return self._capabilities.supports_catalogs

    @property
    def supports_schemas(self) -> bool:
        return self._capabilities.supports_schemas

    @property
    def type_map(self) -> Mapping[str, DataType]:
        return self._capabilities.type_map

    # Retrieval strategies

    @property
    def retrieval_strategies(self) -> RetrievalStrategies:
        return self._retrieval_strategies

    def get_retrieval_strategy(self, category: Union[str, MetadataCategory]) -> RetrievalStrategy:
        """Get the retrieval strategy for a metadata category."""
        return self._retrieval_strategies[MetadataCategory.parse(category)]

    def uses_custom_query(self, category: Union[str, MetadataCategory]) -> bool:
        """Check whether a metadata category is fetched with a custom query."""
        return self.get_retrieval_strategy(category) == RetrievalStrategy.CUSTOM_QUERY

    @property
    def table_retrieval_strategy(self) -> RetrievalStrategy:
        return self._retrieval_strategies[MetadataCategory.TABLE]

    @property
    def table_column_retrieval_strategy(self) -> RetrievalStrategy:
        return self._retrieval_strategies[MetadataCategory.COLUMN]

    @property
    def primary_key_retrieval_strategy(self) -> RetrievalStrategy:
        return self._retrieval_strategies[MetadataCategory.PRIMARY_KEY]

    @property
    def index_retrieval_strategy(self) -> RetrievalStrategy:
        return self._retrieval_strategies[MetadataCategory.INDEX]

    @property
    def foreign_key_retrieval_strategy(self) -> RetrievalStrategy:
        return self._retrieval_strategies[MetadataCategory.FOREIGN_KEY]

    # Pass-through configuration

    @property
    def information_schema_views(self) -> InformationSchemaViews:
        """Gets the information schema views select SQL statements."""
        return self._information_schema_views

    @property
    def identifiers(self) -> Optional[Any]:
        return self._identifiers
