"""
Search Implementations Module

This module contains the search channels (vector, lexical) and the hybrid
engine that fuses them.
"""

from .semantic import VectorSearch
from .lexical import LexicalSearch
from .hybrid import (
    HybridSearch,
    QueryAnalyzer,
    QueryAnalysis,
    QueryKind,
    analyze_query,
    FusedHit,
    fuse_ranked_results,
    HybridSearchMetrics,
    SearchStatus,
    keyword_fallback,
    FallbackManager,
)

__all__ = [
    "VectorSearch",
    "LexicalSearch",
    "HybridSearch",
    "QueryAnalyzer",
    "QueryAnalysis",
    "QueryKind",
    "analyze_query",
    "FusedHit",
    "fuse_ranked_results",
    "HybridSearchMetrics",
    "SearchStatus",
    "keyword_fallback",
    "FallbackManager",
]
