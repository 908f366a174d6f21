"""
Enrichment Pipeline

This module runs the per-tab enrichment stages in a fixed order:
screenshot, content extraction, summarization and categorization, embedding.

Each stage call carries a timeout, its own retry policy and an optional
circuit breaker. A failing stage is a soft failure: it is logged, its fields
stay unset and the next stage still runs. Everything produced in one run is
written back with a single partial update.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from config.settings import EnrichmentSettings
from persistence_operations.models.entities import TabRecord, TabUpdates
from persistence_operations.repository import TabRepository
from search_operations.indexes.base import LexicalIndex, VectorIndex
from search_operations.providers.embedding import EmbeddingProvider, TaskType
from tab_ops_exceptions import ProviderTimeoutError, ValidationError
from utils.circuit_breaker import CircuitBreaker
from utils.rate_limiter import ProviderRateLimiters
from utils.retry import RetryOptions, RetryPolicies, SleepFunc, retry, retry_batch
from ..enrichment_exceptions import StageError
from ..models.entities import OutcomeStatus, ProcessType, Stage, StageFlags, TabOutcome
from ..providers.base import AIProvider, ContentProvider, ExtractedContent, ScreenshotProvider
from .text import clean_text_content, generate_embedding_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Provider quota bucket used by each stage call
STAGE_RATE_LIMITS: Dict[str, str] = {
    "screenshot": "screenshots",
    "content": "content",
    "summarize": "gemini",
    "categorize": "gemini",
    "embedding": "embeddings",
}


class EnrichmentPipeline:
    """
    Per-tab enrichment state machine.

    Providers that are not configured make their stage a no-op (the
    matching update flag stays False). Content extraction feeds both the AI
    stage and the embedding stage; when it fails, those stages fall back to
    the title and summary the tab already has.

    Example:
        ```python
        pipeline = EnrichmentPipeline(repository, content_provider=HttpContentExtractor(),
                                      ai_provider=GeminiAIProvider(), embedding_provider=provider)
        outcome = await pipeline.enrich_tab(tab, ProcessType.FULL)
        print(outcome.updates.to_dict())
        ```
    """

    def __init__(
        self,
        repository: TabRepository,
        content_provider: Optional[ContentProvider] = None,
        screenshot_provider: Optional[ScreenshotProvider] = None,
        ai_provider: Optional[AIProvider] = None,
        embedding_provider: Optional[EmbeddingProvider] = None,
        vector_index: Optional[VectorIndex] = None,
        lexical_index: Optional[LexicalIndex] = None,
        settings: Optional[EnrichmentSettings] = None,
        retry_policies: Optional[Dict[str, RetryOptions]] = None,
        breakers: Optional[Dict[str, CircuitBreaker]] = None,
        stage_timeout: Optional[float] = None,
        timeouts: Optional[Dict[str, float]] = None,
        rate_limiters: Optional[ProviderRateLimiters] = None,
        sleep: SleepFunc = asyncio.sleep
    ):
        """
        Initialize the enrichment pipeline.

        Args:
            repository: Persistence collaborator receiving the partial updates
            content_provider: Page content extractor
            screenshot_provider: Screenshot renderer
            ai_provider: Summarization and categorization provider
            embedding_provider: Document embedding provider
            vector_index: Vector index refreshed after an update
            lexical_index: Lexical index refreshed after an update
            settings: Length limits and timeouts
            retry_policies: Overrides keyed by stage call name
                (screenshot, content, summarize, categorize, embedding)
            breakers: Circuit breakers keyed by stage call name
            stage_timeout: Timeout for stage calls without a specific one
                (default: settings.stage_timeout_seconds)
            timeouts: Per stage call timeout overrides, keyed like retry_policies
            rate_limiters: Provider quotas; a token is taken before each timed attempt
            sleep: Async sleep used between retry attempts
        """
        self.repository = repository
        self.content_provider = content_provider
        self.screenshot_provider = screenshot_provider
        self.ai_provider = ai_provider
        self.embedding_provider = embedding_provider
        self.vector_index = vector_index
        self.lexical_index = lexical_index
        self.settings = settings or EnrichmentSettings()
        self.stage_timeout = stage_timeout if stage_timeout is not None else self.settings.stage_timeout_seconds
        self.breakers = breakers or {}
        self._sleep = sleep

        self.retry_policies: Dict[str, RetryOptions] = {
            "screenshot": RetryPolicies.SCREENSHOT,
            "content": RetryPolicies.IMPORT.with_overrides(name="content"),
            "summarize": RetryPolicies.AI.with_overrides(name="summarize"),
            "categorize": RetryPolicies.AI.with_overrides(name="categorize"),
            "embedding": RetryPolicies.IMPORT.with_overrides(name="embedding"),
        }
        self.retry_policies.update(retry_policies or {})

        self.timeouts: Dict[str, float] = {
            "content": self.settings.content_fetch_timeout_seconds,
        }
        self.timeouts.update(timeouts or {})
        self.rate_limiters = rate_limiters

        logger.info(
            f"EnrichmentPipeline initialized - "
            f"screenshots: {screenshot_provider is not None}, "
            f"content: {content_provider is not None}, "
            f"ai: {ai_provider is not None}, "
            f"embeddings: {embedding_provider is not None}"
        )

    async def _run_stage_call(
        self,
        name: str,
        tab_id: str,
        operation: Callable[[], Awaitable[T]]
    ) -> Optional[T]:
        """
        Run one provider call under timeout, retry and breaker.

        Returns:
            The call's result, or None when the stage failed (soft failure)
        """
        timeout = self.timeouts.get(name, self.stage_timeout)
        breaker = self.breakers.get(name)

        async def _timed() -> T:
            try:
                return await asyncio.wait_for(operation(), timeout=timeout)
            except asyncio.TimeoutError as e:
                raise ProviderTimeoutError(f"{name} timed out after {timeout}s") from e

        async def _attempt() -> T:
            bucket = STAGE_RATE_LIMITS.get(name)
            if self.rate_limiters is None or bucket is None:
                return await _timed()
            # Waiting for quota does not count against the stage timeout
            async with self.rate_limiters.reserved(bucket):
                return await _timed()

        async def _guarded() -> T:
            if breaker is not None:
                return await breaker.call(_attempt)
            return await _attempt()

        try:
            return await retry(_guarded, self.retry_policies[name], sleep=self._sleep)
        except Exception as e:
            logger.warning(str(StageError(name, tab_id, e)))
            return None

    async def enrich_tab(self, tab: TabRecord, process_type: ProcessType = ProcessType.FULL) -> TabOutcome:
        """
        Run the requested stages for one tab and persist what they produced.

        Stage failures are absorbed. Errors raised by the repository itself
        propagate to the caller, which records the tab as failed.

        Args:
            tab: Tab to enrich
            process_type: Which subset of stages to run

        Returns:
            TabOutcome with the per-stage update flags
        """
        stages = process_type.stages
        updates = TabUpdates()
        flags = StageFlags()
        start_time = time.time()

        if Stage.SCREENSHOTS in stages and self.screenshot_provider is not None:
            flags.screenshots = await self._screenshot_stage(tab, updates)

        extracted: Optional[ExtractedContent] = None
        if Stage.CONTENT in stages and self.content_provider is not None:
            extracted = await self._content_stage(tab, updates)

        title = updates.title or tab.title
        page_text = extracted.content if extracted is not None and extracted.has_content else (tab.content or "")

        if Stage.AI in stages and self.ai_provider is not None:
            flags.ai = await self._ai_stage(tab, updates, title, page_text)

        if Stage.EMBEDDINGS in stages and self.embedding_provider is not None:
            summary = updates.summary or tab.summary
            flags.embeddings = await self._embedding_stage(tab, updates, title, summary, page_text)

        await self._persist(tab, updates)

        logger.debug(
            f"Enriched tab {tab.id} ({process_type.value}) in "
            f"{(time.time() - start_time) * 1000:.1f}ms: {flags.to_dict()}"
        )
        return TabOutcome(tab_id=tab.id, status=OutcomeStatus.SUCCESS, updates=flags)

    async def _screenshot_stage(self, tab: TabRecord, updates: TabUpdates) -> bool:
        shots = await self._run_stage_call(
            "screenshot", tab.id, lambda: self.screenshot_provider.capture_screenshots(tab.url)
        )
        if shots is None or shots.is_empty:
            return False
        if shots.thumbnail:
            updates.thumbnail_url = shots.thumbnail
        if shots.preview:
            updates.screenshot_url = shots.preview
        if shots.full_height:
            updates.full_screenshot_url = shots.full_height
        return True

    async def _content_stage(self, tab: TabRecord, updates: TabUpdates) -> Optional[ExtractedContent]:
        extracted = await self._run_stage_call(
            "content", tab.id, lambda: self.content_provider.extract_page_content(tab.url)
        )
        if extracted is None:
            return None
        if extracted.title and extracted.title.strip():
            updates.title = extracted.title.strip()[:self.settings.title_max_length]
        if extracted.has_content:
            updates.content = extracted.content[:self.settings.stored_content_max_length]
        return extracted

    async def _ai_stage(self, tab: TabRecord, updates: TabUpdates, title: Optional[str], page_text: str) -> bool:
        ai_input = page_text or generate_embedding_text(title, tab.summary, None, tab.url)
        if not ai_input:
            logger.warning(f"No text available to summarize tab {tab.id}")
            return False
        ai_input = ai_input[:self.settings.ai_content_max_length]

        summary = await self._run_stage_call(
            "summarize", tab.id, lambda: self.ai_provider.summarize(tab.url, ai_input)
        )
        category = await self._run_stage_call(
            "categorize", tab.id, lambda: self.ai_provider.categorize(tab.url, ai_input)
        )

        if summary is not None:
            updates.summary = summary.summary
            updates.tags = list(summary.tags)
        if category:
            updates.category = category
        # Category alone is a partial result; the stage counts only with a summary
        return summary is not None

    async def _embedding_stage(
        self,
        tab: TabRecord,
        updates: TabUpdates,
        title: Optional[str],
        summary: Optional[str],
        page_text: str
    ) -> bool:
        text = generate_embedding_text(
            title,
            summary,
            clean_text_content(page_text, self.settings.embedding_content_max_length),
            tab.url
        )
        if not text:
            logger.warning(f"No text available to embed tab {tab.id}")
            return False

        vector = await self._run_stage_call(
            "embedding", tab.id, lambda: self.embedding_provider.embed(text, TaskType.RETRIEVAL_DOCUMENT)
        )
        if not vector:
            return False
        updates.embedding = [float(x) for x in vector]
        return True

    async def _persist(self, tab: TabRecord, updates: TabUpdates) -> None:
        if updates.is_empty():
            logger.debug(f"No fields produced for tab {tab.id}")
            return

        affected = await self.repository.update_tab(tab.id, updates)
        if affected == 0:
            logger.warning(f"Update for tab {tab.id} affected 0 rows (tab removed during enrichment?)")
            return

        await self._reindex(tab)

    async def _reindex(self, tab: TabRecord) -> None:
        if self.vector_index is None and self.lexical_index is None:
            return

        refreshed = await self.repository.get_tabs_by_ids([tab.id], tab.owner_id)
        if not refreshed:
            return
        for index in (self.vector_index, self.lexical_index):
            if index is None:
                continue
            try:
                await index.index_tab(refreshed[0])
            except Exception as e:
                logger.warning(f"Reindexing tab {tab.id} failed: {e}")

    async def update_missing_embeddings(self, owner_id: str, batch_size: Optional[int] = None) -> int:
        """
        Embed tabs that still lack a vector.

        Args:
            owner_id: Owner scope
            batch_size: Maximum tabs handled in this call

        Returns:
            Number of tabs that received an embedding
        """
        if not owner_id:
            raise ValidationError("owner_id is required")
        if self.embedding_provider is None:
            logger.warning("update_missing_embeddings called without an embedding provider")
            return 0

        batch_size = batch_size or self.settings.backfill_batch_size
        tabs = await self.repository.list_tabs_without_embeddings(owner_id, batch_size)
        if not tabs:
            return 0

        async def _embed_one(tab: TabRecord) -> bool:
            vector = await self.embedding_provider.embed(
                generate_embedding_text(
                    tab.title,
                    tab.summary,
                    clean_text_content(tab.content, self.settings.embedding_content_max_length),
                    tab.url
                ),
                TaskType.RETRIEVAL_DOCUMENT
            )
            affected = await self.repository.update_tab(tab.id, TabUpdates(embedding=[float(x) for x in vector]))
            if affected:
                await self._reindex(tab)
            return affected > 0

        operations: List[Callable[[], Awaitable[bool]]] = [
            (lambda t=tab: _embed_one(t)) for tab in tabs
        ]
        outcomes = await retry_batch(
            operations,
            self.retry_policies["embedding"],
            concurrency=self.settings.chunk_size,
            sleep=self._sleep
        )
        updated = sum(1 for outcome in outcomes if outcome.success and outcome.result)
        logger.info(f"Backfilled embeddings for {updated}/{len(tabs)} tabs of owner {owner_id}")
        return updated

    async def get_embedding_stats(self, owner_id: str) -> Dict[str, Any]:
        """
        Report how many of an owner's tabs carry an embedding.

        Returns:
            {"total", "with_embeddings", "without_embeddings", "percentage"}
        """
        tabs = await self.repository.list_tabs(owner_id)
        total = len(tabs)
        with_embeddings = sum(1 for tab in tabs if tab.has_embedding)
        return {
            "total": total,
            "with_embeddings": with_embeddings,
            "without_embeddings": total - with_embeddings,
            "percentage": round(with_embeddings / total * 100, 2) if total else 0.0,
        }
