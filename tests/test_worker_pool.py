import asyncio

import pytest

from enrichment_operations import BatchReport, EnrichmentError, EnrichmentWorkerPool, ProcessType


class FakeOrchestrator:
    def __init__(self, error=None, gate=None):
        self.error = error
        self.gate = gate
        self.calls = []

    async def process_batch(self, tab_ids, owner_id, process_type, import_batch_id=None):
        self.calls.append((list(tab_ids), owner_id, import_batch_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return BatchReport(import_batch_id=import_batch_id, process_type=ProcessType(process_type))


@pytest.mark.asyncio
async def test_submit_returns_future_with_report():
    pool = EnrichmentWorkerPool(FakeOrchestrator())

    future = pool.submit(["t1"], "user_001", ProcessType.FULL, "import-7")
    report = await future

    assert report.import_batch_id == "import-7"
    assert pool.get_stats()["completed"] == 1


@pytest.mark.asyncio
async def test_batch_failure_is_observable_on_the_future():
    pool = EnrichmentWorkerPool(FakeOrchestrator(error=RuntimeError("database unavailable")))

    future = pool.submit(["t1"], "user_001")

    with pytest.raises(RuntimeError):
        await future
    await asyncio.sleep(0)
    assert pool.get_stats()["failed"] == 1


@pytest.mark.asyncio
async def test_pool_bounds_running_batches():
    gate = asyncio.Event()
    orchestrator = FakeOrchestrator(gate=gate)
    pool = EnrichmentWorkerPool(orchestrator, max_workers=1)

    first = pool.submit(["t1"], "user_001")
    second = pool.submit(["t2"], "user_001")
    await asyncio.sleep(0.01)

    stats = pool.get_stats()
    assert stats["running"] == 1
    assert stats["pending"] == 1
    assert len(orchestrator.calls) == 1

    gate.set()
    await asyncio.gather(first, second)
    assert len(orchestrator.calls) == 2


@pytest.mark.asyncio
async def test_shutdown_drains_and_rejects_new_work():
    pool = EnrichmentWorkerPool(FakeOrchestrator())
    future = pool.submit(["t1"], "user_001")

    await pool.shutdown()

    assert future.done()
    assert pool.get_stats()["closed"] is True
    with pytest.raises(EnrichmentError):
        pool.submit(["t2"], "user_001")


@pytest.mark.asyncio
async def test_shutdown_without_wait_cancels_batches():
    gate = asyncio.Event()
    pool = EnrichmentWorkerPool(FakeOrchestrator(gate=gate))
    future = pool.submit(["t1"], "user_001")
    await asyncio.sleep(0)

    await pool.shutdown(wait=False)

    assert future.cancelled()


def test_max_workers_must_be_positive():
    with pytest.raises(ValueError):
        EnrichmentWorkerPool(FakeOrchestrator(), max_workers=0)
