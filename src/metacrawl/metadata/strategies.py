"""
Retrieval strategy resolution.

Turns the optional per-category overrides into a total mapping, so that
retrievers never see a category without a strategy.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Optional

from metacrawl.models import MetadataCategory, RetrievalStrategies, RetrievalStrategy

logger = logging.getLogger(__name__)

DEFAULT_RETRIEVAL_STRATEGY = RetrievalStrategy.NATIVE_API


def resolve_retrieval_strategies(override_options: Optional[Any]) -> RetrievalStrategies:
    """
    Resolve one retrieval strategy per metadata category.

    Args:
        override_options: DatabaseSpecificOverrideOptions, or None

    Returns:
        Read-only mapping from every MetadataCategory to its strategy;
        categories without an override use the native metadata API
    """
    overrides = getattr(override_options, "retrieval_strategies", None) or {}

    resolved = {}
    for category in MetadataCategory:
        strategy = overrides.get(category)
        resolved[category] = RetrievalStrategy.parse(strategy) if strategy else DEFAULT_RETRIEVAL_STRATEGY

    custom = [c.value for c, s in resolved.items() if s == RetrievalStrategy.CUSTOM_QUERY]
    if custom:
        logger.debug(f"Custom query retrieval for: {', '.join(custom)}")

    return MappingProxyType(resolved)
