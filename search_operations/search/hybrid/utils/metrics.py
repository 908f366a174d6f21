"""
Metrics Module

This module provides metrics tracking for hybrid search operations,
including status enumerations and the per-search metrics record.
"""

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional


class SearchStatus(Enum):
    """
    Enumeration of search operation states.

    Used to track the final status of search operations for monitoring
    and observability purposes.
    """
    SUCCESS = "success"
    DEGRADED = "degraded"
    FAILURE = "failure"


@dataclass
class HybridSearchMetrics:
    """
    Metrics for one hybrid search.

    Attributes:
        query_hash: Hash of the query for identification
        owner_id: Owner scope searched
        query_kind: Analyzer classification of the query
        embedding_time_ms: Time taken to obtain the query embedding
        vector_time_ms: Vector channel time (embedding included)
        text_time_ms: Lexical channel time
        fusion_time_ms: Time taken for rank fusion
        total_time_ms: Total end-to-end time
        results_count: Number of results returned
        vector_results: Hits from the vector channel
        text_results: Hits from the lexical channel (or keyword fallback)
        cache_hit: Whether the query embedding came from the cache
        status: Final status of the search operation
        error_message: First channel error, if any
        search_mode: "hybrid" or "keyword"
        degraded_channels: Channels that failed and were treated as empty
        timestamp: Unix timestamp when search was initiated
    """
    query_hash: str
    owner_id: str = ""
    query_kind: str = ""
    embedding_time_ms: float = 0.0
    vector_time_ms: float = 0.0
    text_time_ms: float = 0.0
    fusion_time_ms: float = 0.0
    total_time_ms: float = 0.0
    results_count: int = 0
    vector_results: int = 0
    text_results: int = 0
    cache_hit: bool = False
    status: SearchStatus = SearchStatus.SUCCESS
    error_message: Optional[str] = None
    search_mode: str = "hybrid"
    degraded_channels: List[str] = field(default_factory=list)
    timestamp: float = field(default_factory=time.time)

    def mark_degraded(self, channel: str, error: BaseException) -> None:
        self.degraded_channels.append(channel)
        if self.status == SearchStatus.SUCCESS:
            self.status = SearchStatus.DEGRADED
        if self.error_message is None:
            self.error_message = f"{channel}: {error}"

    def to_dict(self):
        """
        Convert metrics to dictionary format.

        Returns:
            Dictionary representation of metrics
        """
        return {
            "query_hash": self.query_hash,
            "owner_id": self.owner_id,
            "query_kind": self.query_kind,
            "embedding_time_ms": round(self.embedding_time_ms, 2),
            "vector_time_ms": round(self.vector_time_ms, 2),
            "text_time_ms": round(self.text_time_ms, 2),
            "fusion_time_ms": round(self.fusion_time_ms, 2),
            "total_time_ms": round(self.total_time_ms, 2),
            "results_count": self.results_count,
            "vector_results": self.vector_results,
            "text_results": self.text_results,
            "cache_hit": self.cache_hit,
            "status": self.status.value,
            "error_message": self.error_message,
            "search_mode": self.search_mode,
            "degraded_channels": list(self.degraded_channels),
            "timestamp": self.timestamp,
        }
