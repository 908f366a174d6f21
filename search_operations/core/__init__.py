"""
Core Search Operations Module

This module provides the core infrastructure for search operations,
including base classes, result types and exceptions.
"""

from .base import BaseSearch, RankedHit, TabSummary, SearchResponse, generate_content_excerpt
from .search_ops_exceptions import (
    SearchError,
    InvalidSearchParametersError,
    EmbeddingGenerationError,
    VectorSearchError,
    LexicalIndexUnavailableError,
    FusionError,
    HybridSearchError,
)

__all__ = [
    # Base classes
    "BaseSearch",
    "RankedHit",
    "TabSummary",
    "SearchResponse",
    "generate_content_excerpt",

    # Exceptions
    "SearchError",
    "InvalidSearchParametersError",
    "EmbeddingGenerationError",
    "VectorSearchError",
    "LexicalIndexUnavailableError",
    "FusionError",
    "HybridSearchError",
]
