"""
Search Configuration Module

This module provides configuration classes for the search engine,
including enums, base configs, and validation models.
"""

from .base import SearchMode, MetricType, BaseSearchConfig
from .hybrid import HybridSearchConfig, MIN_BLEND, MAX_BLEND
from .bm25 import BM25Config
from .validation import SearchParams

__all__ = [
    # Enums
    "SearchMode",
    "MetricType",

    # Base config
    "BaseSearchConfig",

    # Search configs
    "HybridSearchConfig",
    "BM25Config",
    "MIN_BLEND",
    "MAX_BLEND",

    # Validation
    "SearchParams",
]
