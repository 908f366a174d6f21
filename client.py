"""
Tab Operations Client

This module provides the main client interface for tab operations,
wiring settings, providers, indexes, the hybrid search engine and the
enrichment services into one object.
"""

from typing import Any, Dict, Optional, Sequence, Union
import logging
import os
from pathlib import Path

from config.settings import RetryPolicySettings, TabOpsSettings, load_settings
from enrichment_operations import (
    AIProvider,
    BatchOrchestrator,
    BatchReport,
    ContentProvider,
    EnrichmentPipeline,
    EnrichmentWorkerPool,
    GeminiAIProvider,
    HttpContentExtractor,
    HttpScreenshotProvider,
    ProcessType,
    ScreenshotProvider,
    ScreenshotStore,
)
from persistence_operations import InMemoryTabRepository, TabRepository
from search_operations import (
    BM25Config,
    BM25TextIndex,
    EmbeddingCache,
    EmbeddingProvider,
    GeminiEmbeddingProvider,
    HybridSearch,
    HybridSearchConfig,
    InMemoryVectorIndex,
    InvalidSearchParametersError,
    LexicalIndex,
    LexicalSearch,
    SearchParams,
    SearchResponse,
    VectorIndex,
    VectorSearch,
)
from tab_ops_exceptions import ConfigurationError
from utils.circuit_breaker import CircuitBreaker
from utils.rate_limiter import ProviderRateLimiters
from utils.retry import RetryOptions, RetryPolicies

# Logger setup
logger = logging.getLogger(__name__)

PACKAGE_LOGGERS = (
    "client",
    "config",
    "utils",
    "persistence_operations",
    "search_operations",
    "enrichment_operations",
)


def _policy(base: RetryOptions, settings: RetryPolicySettings) -> RetryOptions:
    return base.with_overrides(
        max_attempts=settings.max_attempts,
        base_delay=settings.base_delay,
        max_delay=settings.max_delay,
        backoff_multiplier=settings.backoff_multiplier,
    )


class TabOpsClient:
    """
    Main client interface for tab operations.

    Collaborators that are not passed in are built from settings: the
    in-memory repository and indexes always, Gemini providers when an API key
    is available, the screenshot provider when a service URL is configured.

    Example:
        ```python
        client = TabOpsClient("config.yaml")
        report = await client.process_batch(["t1", "t2"], "user_001")
        response = await client.search("stripe docs", "user_001", blend=1.2)
        await client.close()
        ```
    """

    def __init__(
        self,
        config: Optional[Union[TabOpsSettings, str, Path]] = None,
        repository: Optional[TabRepository] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        content_provider: Optional[ContentProvider] = None,
        screenshot_provider: Optional[ScreenshotProvider] = None,
        ai_provider: Optional[AIProvider] = None,
        vector_index: Optional[VectorIndex] = None,
        lexical_index: Optional[LexicalIndex] = None,
        screenshot_store: Optional[ScreenshotStore] = None
    ):
        """
        Initialize the client.

        Args:
            config: Either a TabOpsSettings object or a path to a config YAML file.
                   If None, default configuration will be used.
            repository: Persistence collaborator (in-memory if omitted)
            embedding_provider: Embedding provider for documents and queries
            content_provider: Page content extractor
            screenshot_provider: Screenshot renderer
            ai_provider: Summarization and categorization provider
            vector_index: Vector index (in-memory cosine index if omitted)
            lexical_index: Lexical index (in-memory BM25 if omitted)
            screenshot_store: Storage for captured images
        """
        # Load configuration
        if config is None:
            self.config = load_settings()
        elif isinstance(config, (str, Path)):
            self.config = load_settings(str(config))
        elif isinstance(config, TabOpsSettings):
            self.config = config
        else:
            raise ConfigurationError("Invalid configuration type. Expected TabOpsSettings, str, Path, or None.")

        self.repository = repository or InMemoryTabRepository()
        self.rate_limiters = ProviderRateLimiters(self.config.provider.requests_per_minute)

        self._initialize_providers(embedding_provider, content_provider, screenshot_provider,
                                   ai_provider, screenshot_store)
        self._initialize_indexes(vector_index, lexical_index)
        self._initialize_services()

        logger.info("TabOpsClient initialized successfully")

    def _api_key(self) -> Optional[str]:
        return self.config.provider.gemini_api_key or os.getenv("GEMINI_API_KEY")

    def _initialize_providers(
        self,
        embedding_provider: Optional[EmbeddingProvider],
        content_provider: Optional[ContentProvider],
        screenshot_provider: Optional[ScreenshotProvider],
        ai_provider: Optional[AIProvider],
        screenshot_store: Optional[ScreenshotStore]
    ) -> None:
        provider_settings = self.config.provider
        api_key = self._api_key()

        if embedding_provider is None and api_key:
            embedding_provider = GeminiEmbeddingProvider(
                model_name=self.config.embedding.model_name,
                output_dimensionality=self.config.embedding.dimension,
                api_key=api_key,
                rate_limiters=self.rate_limiters,
            )
        if ai_provider is None and api_key:
            ai_provider = GeminiAIProvider(
                model_name=provider_settings.gemini_model,
                api_key=api_key,
                max_content_length=self.config.enrichment.ai_content_max_length,
                rate_limiters=self.rate_limiters,
            )
        if content_provider is None:
            content_provider = HttpContentExtractor(
                timeout=self.config.enrichment.content_fetch_timeout_seconds,
                user_agent=provider_settings.user_agent,
                min_content_length=self.config.enrichment.min_content_length,
                rate_limiters=self.rate_limiters,
            )
        if screenshot_provider is None and provider_settings.screenshot_service_url:
            screenshot_provider = HttpScreenshotProvider(
                provider_settings.screenshot_service_url,
                timeout=provider_settings.screenshot_timeout_seconds,
                store=screenshot_store,
                rate_limiters=self.rate_limiters,
            )

        if embedding_provider is None:
            logger.warning("No embedding provider configured; vector search and embeddings are disabled")

        self.embedding_provider = embedding_provider
        self.ai_provider = ai_provider
        self.content_provider = content_provider
        self.screenshot_provider = screenshot_provider

    def _initialize_indexes(
        self,
        vector_index: Optional[VectorIndex],
        lexical_index: Optional[LexicalIndex]
    ) -> None:
        self.vector_index = vector_index or InMemoryVectorIndex(self.repository)
        self.lexical_index = lexical_index or BM25TextIndex(
            self.repository, BM25Config.from_settings(self.config.bm25)
        )

    def _breaker(self, name: str) -> CircuitBreaker:
        settings = self.config.circuit_breaker
        return CircuitBreaker(
            failure_threshold=settings.failure_threshold,
            recovery_timeout=settings.recovery_timeout,
            monitoring_period=settings.monitoring_period,
            name=name,
        )

    def _initialize_services(self) -> None:
        """Initialize search and enrichment services"""
        search_settings = self.config.search
        retry_settings = self.config.retry

        self.search_engine = HybridSearch(
            self.repository,
            vector_search=VectorSearch(self.vector_index, search_settings.max_vector_distance),
            lexical_search=LexicalSearch(self.lexical_index),
            embedding_provider=self.embedding_provider,
            embedding_cache=EmbeddingCache(
                max_size=self.config.embedding.cache_size,
                max_age_seconds=self.config.embedding.cache_max_age_seconds,
            ),
            config=HybridSearchConfig.from_settings(search_settings),
            embedding_breaker=self._breaker("query-embedding"),
            max_limit=search_settings.max_limit,
            enable_metrics=self.config.monitoring.enable_metrics,
            max_metrics_history=search_settings.max_metrics_history,
        )

        ai_breaker = self._breaker("ai")
        self.pipeline = EnrichmentPipeline(
            self.repository,
            content_provider=self.content_provider,
            screenshot_provider=self.screenshot_provider,
            ai_provider=self.ai_provider,
            embedding_provider=self.embedding_provider,
            vector_index=self.vector_index,
            lexical_index=self.lexical_index,
            settings=self.config.enrichment,
            retry_policies={
                "screenshot": _policy(RetryPolicies.SCREENSHOT, retry_settings.screenshot),
                "content": _policy(RetryPolicies.IMPORT, retry_settings.imports).with_overrides(name="content"),
                "summarize": _policy(RetryPolicies.AI, retry_settings.ai).with_overrides(name="summarize"),
                "categorize": _policy(RetryPolicies.AI, retry_settings.ai).with_overrides(name="categorize"),
                "embedding": _policy(RetryPolicies.IMPORT, retry_settings.imports).with_overrides(name="embedding"),
            },
            breakers={
                "screenshot": self._breaker("screenshot"),
                "content": self._breaker("content"),
                "summarize": ai_breaker,
                "categorize": ai_breaker,
                "embedding": self._breaker("embedding"),
            },
            stage_timeout=self.config.enrichment.stage_timeout_seconds,
            timeouts={"screenshot": self.config.provider.screenshot_timeout_seconds},
            rate_limiters=self.rate_limiters,
        )
        self.orchestrator = BatchOrchestrator(self.pipeline, self.config.enrichment)
        self._worker_pool: Optional[EnrichmentWorkerPool] = None

    def configure_logging(self) -> None:
        """Apply the configured log level to the package loggers."""
        level = getattr(logging, self.config.monitoring.log_level)
        for name in PACKAGE_LOGGERS:
            logging.getLogger(name).setLevel(level)

    async def search(
        self,
        query: str,
        owner_id: str,
        limit: Optional[int] = None,
        blend: Optional[float] = None,
        vector_weight: Optional[float] = None,
        text_weight: Optional[float] = None
    ) -> SearchResponse:
        """
        Search an owner's tabs.

        Either `blend` (0..2, higher favours semantic matches) or an explicit
        weight pair may be given, not both.

        Raises:
            InvalidSearchParametersError: For malformed parameters
        """
        try:
            params = SearchParams(
                query=query or "",
                limit=limit,
                blend=blend,
                vector_weight=vector_weight,
                text_weight=text_weight,
            )
            config = params.apply_to(self.search_engine.default_config)
        except ValueError as e:
            raise InvalidSearchParametersError(str(e)) from e
        return await self.search_engine.hybrid_search(params.query, owner_id, config)

    async def process_batch(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL,
        import_batch_id: Optional[str] = None
    ) -> BatchReport:
        return await self.orchestrator.process_batch(
            tab_ids, owner_id, process_type, import_batch_id=import_batch_id
        )

    async def regenerate_all(
        self,
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL
    ) -> BatchReport:
        """Reprocess every tab of an owner with the bulk inter-chunk delay."""
        tabs = await self.repository.list_tabs(owner_id)
        return await self.orchestrator.regenerate_all([tab.id for tab in tabs], owner_id, process_type)

    @property
    def worker_pool(self) -> EnrichmentWorkerPool:
        if self._worker_pool is None:
            self._worker_pool = EnrichmentWorkerPool(
                self.orchestrator, max_workers=self.config.enrichment.worker_pool_size
            )
        return self._worker_pool

    def submit_background(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL,
        import_batch_id: Optional[str] = None
    ):
        """Schedule a batch on the background worker pool and return its future."""
        return self.worker_pool.submit(tab_ids, owner_id, process_type, import_batch_id)

    async def update_missing_embeddings(self, owner_id: str, batch_size: Optional[int] = None) -> int:
        return await self.pipeline.update_missing_embeddings(owner_id, batch_size)

    async def get_embedding_stats(self, owner_id: str) -> Dict[str, Any]:
        return await self.pipeline.get_embedding_stats(owner_id)

    async def health_check(self) -> Dict[str, Any]:
        health = await self.search_engine.health_check()
        health["rate_limiters"] = self.rate_limiters.get_metrics()
        if self._worker_pool is not None:
            health["worker_pool"] = self._worker_pool.get_stats()
        return health

    async def close(self) -> None:
        """Close the client and release all resources"""
        if self._worker_pool is not None:
            await self._worker_pool.shutdown(wait=True)
        await self.search_engine.close()
        for provider in (self.content_provider, self.screenshot_provider):
            closer = getattr(provider, "close", None)
            if closer is not None:
                await closer()
        logger.info("TabOpsClient closed")
