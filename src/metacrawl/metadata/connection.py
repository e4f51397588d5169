"""
Connection validation and the native metadata facility.

ConnectionMetadata wraps SQLAlchemy reflection for a live connection and is
the only place the capability probe talks to the database.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Inspector

from metacrawl.exceptions import InvalidConnectionError

logger = logging.getLogger(__name__)


# Reflection calls that list each kind of table-like object
TABLE_TYPE_PROBES = [
    ("TABLE", "get_table_names"),
    ("VIEW", "get_view_names"),
    ("MATERIALIZED VIEW", "get_materialized_view_names"),
    ("LOCAL TEMPORARY", "get_temp_table_names"),
]

# Dialects that accept a database (catalog) qualifier ahead of the schema
CATALOG_DIALECTS = {"mssql"}


def validate_connection(connection: Optional[Connection]) -> None:
    """
    Check that a connection is open and answers a round-trip.

    Uses the dialect's ping, the same check SQLAlchemy runs for pool_pre_ping.

    Args:
        connection: Live SQLAlchemy connection

    Raises:
        InvalidConnectionError: If the connection is missing, closed,
            invalidated, or the ping fails
    """
    if connection is None:
        raise InvalidConnectionError("No database connection provided")

    if connection.closed:
        raise InvalidConnectionError("Database connection is closed")
    if connection.invalidated:
        raise InvalidConnectionError("Database connection has been invalidated")

    try:
        dbapi_connection = connection.connection.dbapi_connection
        connection.dialect.do_ping(dbapi_connection)
    except Exception as e:
        raise InvalidConnectionError(f"Bad database connection: {e}", cause=e) from e

    logger.debug(f"Validated {connection.dialect.name} connection")


class ConnectionMetadata:
    """
    Native metadata facility for a SQLAlchemy connection.

    Every method may raise; callers decide how to degrade. The connection is
    borrowed and never closed here. Reads that autobegin a transaction on an
    idle connection roll it back before returning, so each check leaves the
    connection as it found it; a transaction the caller already holds is left
    alone.
    """

    def __init__(self, connection: Connection):
        self._connection = connection
        self._inspector: Optional[Inspector] = None

    @property
    def connection(self) -> Connection:
        return self._connection

    @property
    def inspector(self) -> Inspector:
        """Get the reflection inspector, created on first use."""
        if self._inspector is None:
            self._inspector = inspect(self._connection)
        return self._inspector

    @property
    def dialect_name(self) -> str:
        return self._connection.dialect.name

    @property
    def server_version(self) -> Optional[str]:
        """Server version as reported by the dialect, if known."""
        version_info = getattr(self._connection.dialect, "server_version_info", None)
        if not version_info:
            return None
        return ".".join(str(part) for part in version_info)

    @contextmanager
    def _reading(self) -> Iterator[None]:
        """Run reflection reads, ending any transaction they autobegin."""
        owns_transaction = not self._connection.in_transaction()
        try:
            yield
        finally:
            if owns_transaction and self._connection.in_transaction():
                self._connection.rollback()

    def get_table_types(self) -> List[str]:
        """
        List the kinds of table-like objects the engine can reflect.

        Each kind is tested by listing its objects in the default schema, so
        the cost grows with the size of that schema: on large Oracle or SQL
        Server catalogs this is several full dictionary scans. Kinds the
        dialect does not implement are skipped; any other error propagates.
        """
        table_types = []
        for table_type, method_name in TABLE_TYPE_PROBES:
            try:
                with self._reading():
                    getattr(self.inspector, method_name)()
            except NotImplementedError:
                logger.debug(f"{self.dialect_name} does not reflect {table_type} objects")
                continue
            table_types.append(table_type)
        return table_types

    def supports_catalogs(self) -> bool:
        """Check whether tables can be qualified by catalog."""
        return self.dialect_name in CATALOG_DIALECTS

    def supports_schemas(self) -> bool:
        """Check whether tables can be qualified by schema."""
        with self._reading():
            return len(self.inspector.get_schema_names()) > 0

    def get_type_info(self) -> Dict[str, Any]:
        """Get the engine's native type names and their SQLAlchemy type classes."""
        ischema_names = getattr(self._connection.dialect, "ischema_names", None)
        if ischema_names is None:
            return {}
        return dict(ischema_names)
