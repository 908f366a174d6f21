"""
Hybrid Search Module

This module provides hybrid search combining a vector channel and a lexical
channel with rank fusion, graceful degradation, and metrics.
"""

from .core.engine import HybridSearch
from .core.analyzer import QueryAnalyzer, QueryAnalysis, QueryKind, analyze_query
from .core.fusion import FusedHit, fuse_ranked_results
from .utils.metrics import HybridSearchMetrics, SearchStatus
from .resilience.fallback import keyword_fallback, FallbackManager

__all__ = [
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
