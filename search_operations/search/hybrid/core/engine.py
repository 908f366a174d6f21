"""
Hybrid Search Engine

This module provides the hybrid search engine: it runs the vector and
lexical channels concurrently, fuses their rankings, and degrades instead
of failing when a channel is unavailable.
"""

import time
import logging
import asyncio
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List, Optional

from persistence_operations.repository import TabRepository
from utils.circuit_breaker import CircuitBreaker, CircuitState
from ....cache.embedding_cache import EmbeddingCache
from ....config.base import SearchMode
from ....config.hybrid import HybridSearchConfig
from ....core.base import BaseSearch, RankedHit, SearchResponse, TabSummary
from ....core.search_ops_exceptions import HybridSearchError, LexicalIndexUnavailableError
from ....providers.embedding import EmbeddingProvider, TaskType
from ...lexical.engine import LexicalSearch
from ...semantic.engine import VectorSearch
from ..resilience.fallback import FallbackManager, keyword_fallback
from ..utils.metrics import HybridSearchMetrics, SearchStatus
from ..utils.validation import sanitize_query, validate_search_params
from .analyzer import QueryAnalyzer
from .fusion import fuse_ranked_results

logger = logging.getLogger(__name__)


class HybridSearch(BaseSearch[HybridSearchConfig]):
    """
    Hybrid (vector + lexical) search over one owner's tabs.

    Features:
    - Query analysis gates the expensive vector channel
    - Channels run concurrently, each under its own timeout
    - Query embeddings served from an LRU cache
    - Position-based (default) or reciprocal-rank fusion
    - A failed channel is treated as empty; a failed lexical index falls
      back to substring matching and flags the response as "keyword"
    - Per-search metrics history, summary and health check

    Example:
        ```python
        engine = HybridSearch(repository, vector_search, lexical_search, provider, EmbeddingCache())
        response = await engine.hybrid_search("stripe docs", owner_id="user_001")
        for hit in response.results:
            print(hit.title, hit.score)
        ```
    """

    def __init__(
        self,
        repository: TabRepository,
        vector_search: Optional[VectorSearch] = None,
        lexical_search: Optional[LexicalSearch] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        embedding_cache: Optional[EmbeddingCache] = None,
        config: Optional[HybridSearchConfig] = None,
        analyzer: Optional[QueryAnalyzer] = None,
        embedding_breaker: Optional[CircuitBreaker] = None,
        enable_fallback: bool = True,
        max_limit: int = 100,
        enable_metrics: bool = True,
        max_metrics_history: int = 1000,
        metrics_callback: Optional[Callable[[HybridSearchMetrics], None]] = None
    ):
        """
        Initialize hybrid search.

        Args:
            repository: Source of tab records (summaries, fallback matching)
            vector_search: Vector channel (None disables it)
            lexical_search: Lexical channel (None means keyword fallback only)
            embedding_provider: Provider for query embeddings
            embedding_cache: Query embedding cache (a fresh one if omitted)
            config: Default search configuration
            analyzer: Query analyzer
            embedding_breaker: Optional circuit breaker around embedding calls
            enable_fallback: Use substring matching when the lexical index fails
            max_limit: Largest accepted result limit
            enable_metrics: Record per-search metrics
            max_metrics_history: Maximum metrics records retained
            metrics_callback: Optional callback for real-time metrics reporting
        """
        self.repository = repository
        self.vector_search = vector_search
        self.lexical_search = lexical_search
        self.embedding_provider = embedding_provider
        self.embedding_cache = embedding_cache or EmbeddingCache()
        self.default_config = config or HybridSearchConfig()
        self.analyzer = analyzer or QueryAnalyzer()
        self.embedding_breaker = embedding_breaker
        self.fallback_manager = FallbackManager(enable_fallback=enable_fallback)
        self.max_limit = max_limit
        self.enable_metrics = enable_metrics
        self.max_metrics_history = max_metrics_history
        self.metrics_callback = metrics_callback

        self._metrics_history: List[HybridSearchMetrics] = []
        self._lock = asyncio.Lock()

        logger.info(
            f"HybridSearch initialized - "
            f"vector: {vector_search is not None}, "
            f"lexical: {lexical_search is not None}, "
            f"fusion: {self.default_config.fusion_strategy.value}, "
            f"fallback: {enable_fallback}"
        )

    async def search(
        self,
        query: str,
        owner_id: str,
        config: Optional[HybridSearchConfig] = None
    ) -> SearchResponse:
        return await self.hybrid_search(query, owner_id, config)

    async def hybrid_search(
        self,
        query: str,
        owner_id: str,
        config: Optional[HybridSearchConfig] = None
    ) -> SearchResponse:
        """
        Run a hybrid search.

        Steps:
        1. Validate and sanitize, then analyze the query
        2. Run the enabled channels concurrently, each over-fetching
           ceil(limit * over_fetch_factor) candidates
        3. Fuse by rank, break ties by newer date_added, truncate to limit

        Args:
            query: Query text
            owner_id: Owner scope
            config: Search configuration (engine default when omitted)

        Returns:
            SearchResponse; never raises because a channel failed

        Raises:
            InvalidSearchParametersError: If the request is malformed
            HybridSearchError: If tab records cannot be loaded for the fused ranking
        """
        config = config or self.default_config
        start_time = time.time()

        validate_search_params(owner_id, config, self.max_limit)
        sanitized_query = sanitize_query(query)
        analysis = self.analyzer.analyze(sanitized_query)

        metrics = HybridSearchMetrics(
            query_hash=str(hash(sanitized_query.lower())),
            owner_id=owner_id,
            query_kind=analysis.kind.value
        )

        if not analysis.runs_any_channel:
            logger.debug(f"Query kind {analysis.kind.value} enables no channel - empty result")
            response = SearchResponse(results=[], analysis=analysis.to_dict())
            return await self._finish(response, metrics, start_time)

        run_vector = analysis.use_vector and config.vector_weight > 0 and self.vector_search is not None
        run_text = analysis.use_text and config.text_weight > 0
        candidate_limit = config.candidate_limit

        channels: Dict[str, Awaitable[List[RankedHit]]] = {}
        if run_vector:
            channels["vector"] = asyncio.wait_for(
                self._run_vector_channel(sanitized_query, owner_id, candidate_limit, metrics),
                timeout=config.timeout
            )
        if run_text:
            channels["text"] = asyncio.wait_for(
                self._run_text_channel(sanitized_query, owner_id, candidate_limit, metrics),
                timeout=config.timeout
            )

        outcomes = await asyncio.gather(*channels.values(), return_exceptions=True)
        results = dict(zip(channels.keys(), outcomes))

        vector_hits = self._channel_hits("vector", results.get("vector"), metrics)
        text_hits = self._channel_hits("text", results.get("text"), metrics)

        search_mode = SearchMode.HYBRID
        if "text" in metrics.degraded_channels and self.fallback_manager.enable_fallback:
            text_hits = await self._keyword_fallback(sanitized_query, owner_id, candidate_limit)
            search_mode = SearchMode.KEYWORD
        if run_text:
            self.fallback_manager.record_operation(search_mode == SearchMode.KEYWORD)

        metrics.vector_results = len(vector_hits)
        metrics.text_results = len(text_hits)
        metrics.search_mode = search_mode.value

        fusion_start = time.time()
        summaries = await self._fuse(sanitized_query, owner_id, vector_hits, text_hits, config)
        metrics.fusion_time_ms = (time.time() - fusion_start) * 1000

        response = SearchResponse(
            results=summaries,
            search_mode=search_mode,
            analysis=analysis.to_dict()
        )
        return await self._finish(response, metrics, start_time)

    def _channel_hits(
        self,
        channel: str,
        outcome: Any,
        metrics: HybridSearchMetrics
    ) -> List[RankedHit]:
        """Unpack one gathered channel outcome, treating failures as empty."""
        if outcome is None:
            return []
        if isinstance(outcome, asyncio.TimeoutError):
            logger.warning(f"{channel} channel timed out - treating as empty")
            metrics.mark_degraded(channel, outcome)
            return []
        if isinstance(outcome, Exception):
            logger.warning(f"{channel} channel failed - treating as empty: {outcome}")
            metrics.mark_degraded(channel, outcome)
            return []
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def _embed_query(self, query: str, metrics: HybridSearchMetrics) -> Optional[List[float]]:
        """Query embedding through the cache; None when it cannot be produced."""
        if self.embedding_provider is None:
            return None

        computed = False

        async def _compute(text: str, task: str) -> List[float]:
            nonlocal computed
            computed = True
            if self.embedding_breaker is not None:
                return await self.embedding_breaker.call(self.embedding_provider.embed, text, task)
            return await self.embedding_provider.embed(text, task)

        embedding_start = time.time()
        try:
            embedding = await self.embedding_cache.get_or_compute(query, TaskType.RETRIEVAL_QUERY, _compute)
        except Exception as e:
            logger.warning(f"Query embedding unavailable: {e}")
            metrics.mark_degraded("embedding", e)
            return None
        finally:
            metrics.embedding_time_ms = (time.time() - embedding_start) * 1000

        metrics.cache_hit = not computed
        return embedding

    async def _run_vector_channel(
        self,
        query: str,
        owner_id: str,
        limit: int,
        metrics: HybridSearchMetrics
    ) -> List[RankedHit]:
        channel_start = time.time()
        try:
            embedding = await self._embed_query(query, metrics)
            return await self.vector_search.search_by_vector(embedding, owner_id, limit)
        finally:
            metrics.vector_time_ms = (time.time() - channel_start) * 1000

    async def _run_text_channel(
        self,
        query: str,
        owner_id: str,
        limit: int,
        metrics: HybridSearchMetrics
    ) -> List[RankedHit]:
        if self.lexical_search is None:
            raise LexicalIndexUnavailableError("No lexical index configured")

        channel_start = time.time()
        try:
            return await self.lexical_search.search_by_text(query, owner_id, limit)
        finally:
            metrics.text_time_ms = (time.time() - channel_start) * 1000

    async def _keyword_fallback(self, query: str, owner_id: str, limit: int) -> List[RankedHit]:
        try:
            tabs = await self.repository.list_tabs(owner_id)
        except Exception as e:
            logger.error(f"Keyword fallback could not load tabs: {e}")
            return []
        return keyword_fallback(tabs, query, limit)

    async def _fuse(
        self,
        query: str,
        owner_id: str,
        vector_hits: List[RankedHit],
        text_hits: List[RankedHit],
        config: HybridSearchConfig
    ) -> List[TabSummary]:
        candidate_ids = list(dict.fromkeys([h.tab_id for h in vector_hits] + [h.tab_id for h in text_hits]))
        if not candidate_ids:
            return []

        try:
            tabs = await self.repository.get_tabs_by_ids(candidate_ids, owner_id)
        except Exception as e:
            raise HybridSearchError(f"Could not load tabs for fused results: {e}") from e

        by_id = {tab.id: tab for tab in tabs if not tab.is_discarded}

        fused = fuse_ranked_results(
            vector_hits,
            text_hits,
            config.vector_weight,
            config.text_weight,
            limit=len(candidate_ids),
            date_added={tab_id: tab.date_added for tab_id, tab in by_id.items()},
            strategy=config.fusion_strategy,
            rrf_k=config.rrf_k
        )

        summaries = [
            TabSummary.from_tab(by_id[hit.tab_id], hit.score, hit.vector_rank, hit.text_rank, query)
            for hit in fused if hit.tab_id in by_id
        ]
        return summaries[:config.limit]

    async def _finish(
        self,
        response: SearchResponse,
        metrics: HybridSearchMetrics,
        start_time: float
    ) -> SearchResponse:
        response.took_ms = (time.time() - start_time) * 1000
        metrics.total_time_ms = response.took_ms
        metrics.results_count = len(response.results)

        logger.debug(
            f"Hybrid search completed - mode: {metrics.search_mode}, "
            f"results: {metrics.results_count}, status: {metrics.status.value}, "
            f"took: {metrics.total_time_ms:.1f}ms"
        )

        if self.enable_metrics:
            async with self._lock:
                self._metrics_history.append(metrics)
                if len(self._metrics_history) > self.max_metrics_history:
                    self._metrics_history = self._metrics_history[-self.max_metrics_history:]

        if self.metrics_callback:
            try:
                self.metrics_callback(metrics)
            except Exception as e:
                logger.error(f"Metrics callback failed: {e}")

        return response

    async def get_metrics_summary(self) -> Dict[str, Any]:
        """
        Get summary of search metrics.

        Returns:
            Dictionary with metrics summary including success rates,
            average timings, and component statistics
        """
        async with self._lock:
            if not self._metrics_history:
                return {"message": "No metrics available"}

            history = list(self._metrics_history)

        total_searches = len(history)
        successful = sum(1 for m in history if m.status == SearchStatus.SUCCESS)
        degraded = sum(1 for m in history if m.status == SearchStatus.DEGRADED)
        failed = sum(1 for m in history if m.status == SearchStatus.FAILURE)

        mode_counts: Dict[str, int] = defaultdict(int)
        for m in history:
            mode_counts[m.search_mode] += 1

        return {
            "total_searches": total_searches,
            "successful": successful,
            "degraded": degraded,
            "failed": failed,
            "success_rate": successful / total_searches,
            "cache_hits": sum(1 for m in history if m.cache_hit),
            "avg_embedding_time_ms": round(sum(m.embedding_time_ms for m in history) / total_searches, 2),
            "avg_vector_time_ms": round(sum(m.vector_time_ms for m in history) / total_searches, 2),
            "avg_text_time_ms": round(sum(m.text_time_ms for m in history) / total_searches, 2),
            "avg_fusion_time_ms": round(sum(m.fusion_time_ms for m in history) / total_searches, 2),
            "avg_total_time_ms": round(sum(m.total_time_ms for m in history) / total_searches, 2),
            "search_modes": dict(mode_counts),
            "embedding_cache": self.embedding_cache.get_stats(),
            "fallback": self.fallback_manager.get_stats(),
        }

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform health check of the hybrid search system.

        Returns:
            Overall status ("healthy" or "degraded") and per-component details
        """
        health: Dict[str, Any] = {
            "status": "healthy",
            "timestamp": time.time(),
            "components": {
                "vector_channel": {"enabled": self.vector_search is not None and self.embedding_provider is not None},
                "lexical_channel": {"enabled": self.lexical_search is not None},
                "embedding_cache": self.embedding_cache.get_stats(),
                "fallback": self.fallback_manager.get_stats(),
            }
        }

        index = getattr(self.lexical_search, "index", None)
        if index is not None and hasattr(index, "get_stats"):
            health["components"]["lexical_channel"]["index"] = index.get_stats()

        if self.embedding_breaker is not None:
            health["components"]["embedding_breaker"] = self.embedding_breaker.get_stats()
            if self.embedding_breaker.get_state() == CircuitState.OPEN:
                health["status"] = "degraded"

        if self.fallback_manager.is_degraded():
            health["status"] = "degraded"

        return health

    def get_metrics_history(self) -> List[HybridSearchMetrics]:
        return list(self._metrics_history)

    async def close(self) -> None:
        """Clear cached embeddings and metrics."""
        await self.embedding_cache.clear()
        async with self._lock:
            self._metrics_history.clear()
        logger.info("HybridSearch closed")
