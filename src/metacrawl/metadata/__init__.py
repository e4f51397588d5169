"""
Retriever connection layer.

Validates a live connection, probes engine capabilities, and resolves how
each metadata category (tables, columns, primary keys, indexes, foreign
keys) is retrieved.
"""

from metacrawl.metadata.capabilities import probe_capabilities
from metacrawl.metadata.connection import ConnectionMetadata, validate_connection
from metacrawl.metadata.retriever import RetrieverConnection
from metacrawl.metadata.strategies import resolve_retrieval_strategies

__all__ = [
    "ConnectionMetadata",
    "RetrieverConnection",
    "probe_capabilities",
    "resolve_retrieval_strategies",
    "validate_connection",
]
