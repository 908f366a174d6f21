"""
Hybrid Search Core Module

This module provides the core functionality for hybrid search operations,
including the search engine, query analysis, and rank fusion.
"""

from .engine import HybridSearch
from .analyzer import QueryAnalyzer, QueryAnalysis, QueryKind, analyze_query
from .fusion import FusedHit, fuse_ranked_results, position_score, rrf_score, deduplicate_hits

__all__ = [
    "HybridSearch",
    "QueryAnalyzer",
    "QueryAnalysis",
    "QueryKind",
    "analyze_query",
    "FusedHit",
    "fuse_ranked_results",
    "position_score",
    "rrf_score",
    "deduplicate_hits",
]
