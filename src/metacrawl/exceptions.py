"""
Error types raised while building a retriever connection.

Connection and configuration problems are reported to the caller as typed
errors. Capability probing never raises; see metacrawl.metadata.capabilities.
"""

from __future__ import annotations

from typing import Optional


class MetacrawlError(Exception):
    """Base class for all metacrawl errors."""


class DatabaseConnectionError(MetacrawlError):
    """A problem with the database connection handed to metacrawl."""


class InvalidConnectionError(DatabaseConnectionError):
    """
    The connection failed liveness validation.

    The underlying driver or SQLAlchemy error, if any, is available as
    ``cause`` and is also chained as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ConfigurationError(MetacrawlError):
    """Database-specific override options are missing or malformed."""


class MissingOverridesError(ConfigurationError):
    """No database-specific override options were supplied."""


class InvalidOverrideError(ConfigurationError):
    """An override option holds an unrecognized category, strategy, view key or type."""
