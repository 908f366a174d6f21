"""
Search Operations Module

This module provides hybrid search over enriched tabs:
- Query analysis gating the expensive vector channel
- Vector (cosine) and lexical (BM25) channels over pluggable indexes
- Rank fusion with configurable weights or a single blend slider
- Query embedding cache with LRU eviction
- Graceful degradation to keyword matching, metrics and health checks
"""

# Core exports
from .core import (
    BaseSearch,
    RankedHit,
    TabSummary,
    SearchResponse,
    SearchError,
    InvalidSearchParametersError,
    EmbeddingGenerationError,
    VectorSearchError,
    LexicalIndexUnavailableError,
    FusionError,
    HybridSearchError,
)

# Configuration exports
from .config import (
    SearchMode,
    MetricType,
    BaseSearchConfig,
    HybridSearchConfig,
    BM25Config,
    SearchParams,
)

# Provider exports
from .providers import (
    EmbeddingProvider,
    EmbeddingResult,
    GeminiEmbeddingProvider,
    DimensionMismatchError,
    TaskType,
)

# Cache exports
from .cache import EmbeddingCache

# Index exports
from .indexes import (
    VectorIndex,
    LexicalIndex,
    VectorMatch,
    TextMatch,
    BM25TextIndex,
    InMemoryVectorIndex,
    MilvusVectorIndex,
)

# Search implementations exports
from .search import (
    VectorSearch,
    LexicalSearch,
    HybridSearch,
    QueryAnalyzer,
    QueryAnalysis,
    QueryKind,
    fuse_ranked_results,
    HybridSearchMetrics,
    SearchStatus,
)

__all__ = [
    # Core
    "BaseSearch",
    "RankedHit",
    "TabSummary",
    "SearchResponse",

    # Exceptions
    "SearchError",
    "InvalidSearchParametersError",
    "EmbeddingGenerationError",
    "VectorSearchError",
    "LexicalIndexUnavailableError",
    "FusionError",
    "HybridSearchError",

    # Configuration
    "SearchMode",
    "MetricType",
    "BaseSearchConfig",
    "HybridSearchConfig",
    "BM25Config",
    "SearchParams",

    # Providers
    "EmbeddingProvider",
    "EmbeddingResult",
    "GeminiEmbeddingProvider",
    "DimensionMismatchError",
    "TaskType",

    # Cache
    "EmbeddingCache",

    # Indexes
    "VectorIndex",
    "LexicalIndex",
    "VectorMatch",
    "TextMatch",
    "BM25TextIndex",
    "InMemoryVectorIndex",
    "MilvusVectorIndex",

    # Search implementations
    "VectorSearch",
    "LexicalSearch",
    "HybridSearch",
    "QueryAnalyzer",
    "QueryAnalysis",
    "QueryKind",
    "fuse_ranked_results",
    "HybridSearchMetrics",
    "SearchStatus",
]
