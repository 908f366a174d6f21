"""
Batch Orchestrator

Splits a batch of tab ids into fixed-size chunks and runs the enrichment
pipeline over them: tabs inside a chunk run concurrently, chunks run one
after another with an optional pause in between.
"""

import asyncio
import logging
import time
from typing import List, Optional, Sequence, Union

from config.settings import EnrichmentSettings
from persistence_operations.models.entities import TabRecord
from utils.retry import SleepFunc
from ..enrichment_exceptions import BatchValidationError
from ..models.entities import BatchReport, OutcomeStatus, ProcessType, TabOutcome
from .pipeline import EnrichmentPipeline

logger = logging.getLogger(__name__)


def chunked(items: Sequence[str], size: int) -> List[List[str]]:
    """Split `items` into consecutive chunks of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


class BatchOrchestrator:
    """
    Chunked batch runner on top of EnrichmentPipeline.

    The batch never raises once validated: an unexpected error inside one tab
    becomes a failed outcome for that tab, and the report always carries
    `successful + failed == processed == len(tab_ids)`.

    Example:
        ```python
        orchestrator = BatchOrchestrator(pipeline)
        report = await orchestrator.process_batch(["t1", "t2"], "user_001", ProcessType.FULL)
        print(report.to_dict())
        ```
    """

    def __init__(
        self,
        pipeline: EnrichmentPipeline,
        settings: Optional[EnrichmentSettings] = None,
        sleep: SleepFunc = asyncio.sleep
    ):
        self.pipeline = pipeline
        self.settings = settings or EnrichmentSettings()
        self._sleep = sleep

    async def process_batch(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL,
        import_batch_id: Optional[str] = None,
        chunk_delay: Optional[float] = None,
        chunk_size: Optional[int] = None
    ) -> BatchReport:
        """
        Enrich a batch of tabs.

        Args:
            tab_ids: Tabs to process; unknown ids are reported as failed
            owner_id: Owner scope
            process_type: Subset of stages to run
            import_batch_id: Identifier echoed back in the report
            chunk_delay: Pause between chunks in seconds (defaults to the
                import delay; bulk regeneration uses the longer delay)
            chunk_size: Tabs in flight per chunk

        Returns:
            BatchReport covering every requested tab

        Raises:
            BatchValidationError: If tab_ids is empty or owner_id is missing
        """
        if not tab_ids:
            raise BatchValidationError("tabIds must be a non-empty list")
        if not owner_id:
            raise BatchValidationError("owner_id is required")
        try:
            process_type = ProcessType(process_type)
        except ValueError as e:
            raise BatchValidationError(f"Unknown process type: {process_type}") from e

        chunk_size = chunk_size or self.settings.chunk_size
        delay = self.settings.import_delay_seconds if chunk_delay is None else chunk_delay
        chunks = chunked(list(tab_ids), chunk_size)
        report = BatchReport(import_batch_id=import_batch_id, process_type=process_type)
        start_time = time.time()

        logger.info(
            f"Processing batch {import_batch_id or '-'}: {len(tab_ids)} tabs, "
            f"{len(chunks)} chunks, process type {process_type.value}"
        )

        for number, chunk in enumerate(chunks, start=1):
            outcomes = await self._process_chunk(chunk, owner_id, process_type)
            report.results.extend(outcomes)
            report.chunks += 1
            logger.debug(f"Chunk {number}/{len(chunks)} done")

            if delay > 0 and number < len(chunks):
                await self._sleep(delay)

        report.errors = [
            f"{outcome.tab_id}: {outcome.error}"
            for outcome in report.results
            if not outcome.succeeded
        ][:self.settings.max_reported_errors]
        report.duration_ms = (time.time() - start_time) * 1000

        logger.info(
            f"Batch {import_batch_id or '-'} complete: {report.successful} successful, "
            f"{report.failed} failed in {report.duration_ms:.1f}ms"
        )
        return report

    async def regenerate_all(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL
    ) -> BatchReport:
        """Bulk reprocessing paced with the longer inter-chunk delay."""
        return await self.process_batch(
            tab_ids,
            owner_id,
            process_type,
            chunk_delay=self.settings.regenerate_all_delay_seconds
        )

    async def _process_chunk(
        self,
        chunk: List[str],
        owner_id: str,
        process_type: ProcessType
    ) -> List[TabOutcome]:
        try:
            tabs = await self.pipeline.repository.get_tabs_by_ids(chunk, owner_id)
        except Exception as e:
            logger.error(f"Loading tabs for chunk failed: {e}")
            return [self._failed(tab_id, f"Failed to load tab: {e}") for tab_id in chunk]

        by_id = {tab.id: tab for tab in tabs}
        return list(await asyncio.gather(
            *[self._process_one(tab_id, by_id.get(tab_id), process_type) for tab_id in chunk]
        ))

    async def _process_one(
        self,
        tab_id: str,
        tab: Optional[TabRecord],
        process_type: ProcessType
    ) -> TabOutcome:
        if tab is None:
            return self._failed(tab_id, "Tab not found")
        try:
            return await self.pipeline.enrich_tab(tab, process_type)
        except Exception as e:
            logger.error(f"Enrichment failed for tab {tab_id}: {e}")
            return self._failed(tab_id, str(e))

    @staticmethod
    def _failed(tab_id: str, error: str) -> TabOutcome:
        return TabOutcome(tab_id=tab_id, status=OutcomeStatus.FAILED, error=error)
