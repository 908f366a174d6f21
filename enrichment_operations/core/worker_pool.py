"""
Background Enrichment Worker Pool

Runs batch enrichment in the background without blocking the caller, with
a bounded number of batches in flight. Every submission returns a future,
so a failure is observable instead of only being logged.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Sequence, Set, Union

from ..enrichment_exceptions import EnrichmentError
from ..models.entities import BatchReport, ProcessType
from .orchestrator import BatchOrchestrator

logger = logging.getLogger(__name__)


class EnrichmentWorkerPool:
    """
    Bounded pool of background batch jobs on the running event loop.

    Example:
        ```python
        pool = EnrichmentWorkerPool(orchestrator, max_workers=2)
        future = pool.submit(["t1", "t2"], "user_001", ProcessType.FULL, "import-42")
        report = await future
        await pool.shutdown()
        ```
    """

    def __init__(self, orchestrator: BatchOrchestrator, max_workers: int = 2):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.orchestrator = orchestrator
        self.max_workers = max_workers
        self._semaphore = asyncio.Semaphore(max_workers)
        self._tasks: Set["asyncio.Task[BatchReport]"] = set()
        self._running = 0
        self._submitted = 0
        self._completed = 0
        self._failed = 0
        self._closed = False

        logger.debug(f"EnrichmentWorkerPool created with {max_workers} workers")

    def submit(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str] = ProcessType.FULL,
        import_batch_id: Optional[str] = None
    ) -> "asyncio.Future[BatchReport]":
        """
        Schedule a batch and return immediately.

        Must be called from a running event loop.

        Returns:
            Future resolving to the BatchReport, or to the batch's exception

        Raises:
            EnrichmentError: If the pool has been shut down
        """
        if self._closed:
            raise EnrichmentError("Worker pool is shut down")

        self._submitted += 1
        task = asyncio.ensure_future(
            self._run(list(tab_ids), owner_id, process_type, import_batch_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    async def _run(
        self,
        tab_ids: Sequence[str],
        owner_id: str,
        process_type: Union[ProcessType, str],
        import_batch_id: Optional[str]
    ) -> BatchReport:
        async with self._semaphore:
            self._running += 1
            try:
                return await self.orchestrator.process_batch(
                    tab_ids, owner_id, process_type, import_batch_id=import_batch_id
                )
            finally:
                self._running -= 1

    def _on_done(self, task: "asyncio.Task[BatchReport]") -> None:
        self._tasks.discard(task)
        if task.cancelled():
            self._failed += 1
            return
        error = task.exception()
        if error is not None:
            self._failed += 1
            logger.error(f"Background enrichment batch failed: {error}")
        else:
            self._completed += 1

    def get_stats(self) -> Dict[str, Any]:
        return {
            "max_workers": self.max_workers,
            "submitted": self._submitted,
            "running": self._running,
            "pending": len(self._tasks) - self._running,
            "completed": self._completed,
            "failed": self._failed,
            "closed": self._closed,
        }

    async def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work.

        Args:
            wait: Wait for in-flight batches; otherwise cancel them
        """
        self._closed = True
        tasks = list(self._tasks)
        if not tasks:
            return
        if not wait:
            for task in tasks:
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"EnrichmentWorkerPool shut down ({len(tasks)} batches drained)")
