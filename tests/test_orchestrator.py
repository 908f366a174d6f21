import asyncio

import pytest

from enrichment_operations import (
    BatchOrchestrator,
    BatchValidationError,
    EnrichmentPipeline,
    ProcessType,
    TabOutcome,
)
from enrichment_operations.core.orchestrator import chunked
from persistence_operations import InMemoryTabRepository

from conftest import (
    FakeAIProvider,
    FakeContentProvider,
    FakeEmbeddingProvider,
    FakeScreenshotProvider,
    SleepRecorder,
    make_tab,
)


class RecordingPipeline:
    """Stands in for EnrichmentPipeline and records start/end events per tab."""

    def __init__(self, repository, fail_ids=()):
        self.repository = repository
        self.fail_ids = set(fail_ids)
        self.events = []

    async def enrich_tab(self, tab, process_type):
        self.events.append(("start", tab.id))
        await asyncio.sleep(0)
        self.events.append(("end", tab.id))
        if tab.id in self.fail_ids:
            raise RuntimeError(f"unexpected failure on {tab.id}")
        return TabOutcome(tab_id=tab.id)


def seven_tabs():
    return InMemoryTabRepository([make_tab(f"t{i}") for i in range(7)])


def test_chunked():
    assert chunked(["a", "b", "c"], 2) == [["a", "b"], ["c"]]
    with pytest.raises(ValueError):
        chunked(["a"], 0)


@pytest.mark.asyncio
async def test_chunks_run_sequentially():
    pipeline = RecordingPipeline(seven_tabs())
    orchestrator = BatchOrchestrator(pipeline, sleep=SleepRecorder())
    ids = [f"t{i}" for i in range(7)]

    report = await orchestrator.process_batch(ids, "user_001", ProcessType.FULL, "import-1")

    assert report.chunks == 2
    assert report.processed == report.successful == 7
    assert [r.tab_id for r in report.results] == ids

    first_chunk_end = max(i for i, (kind, tab_id) in enumerate(pipeline.events)
                          if kind == "end" and tab_id in ids[:5])
    second_chunk_start = min(i for i, (kind, tab_id) in enumerate(pipeline.events)
                             if kind == "start" and tab_id in ids[5:])
    assert first_chunk_end < second_chunk_start


@pytest.mark.asyncio
async def test_tabs_within_a_chunk_run_concurrently():
    pipeline = RecordingPipeline(seven_tabs())
    orchestrator = BatchOrchestrator(pipeline, sleep=SleepRecorder())

    await orchestrator.process_batch(["t0", "t1", "t2"], "user_001")

    assert [kind for kind, _ in pipeline.events] == ["start"] * 3 + ["end"] * 3


@pytest.mark.asyncio
async def test_empty_batch_is_rejected():
    orchestrator = BatchOrchestrator(RecordingPipeline(seven_tabs()))

    with pytest.raises(BatchValidationError):
        await orchestrator.process_batch([], "user_001")
    with pytest.raises(BatchValidationError):
        await orchestrator.process_batch(["t0"], "")
    with pytest.raises(BatchValidationError):
        await orchestrator.process_batch(["t0"], "user_001", "bogus")


@pytest.mark.asyncio
async def test_one_failure_fails_only_that_tab():
    pipeline = RecordingPipeline(seven_tabs(), fail_ids={"t3"})
    orchestrator = BatchOrchestrator(pipeline, sleep=SleepRecorder())

    report = await orchestrator.process_batch(["t2", "t3", "t4", "missing"], "user_001")

    assert report.successful == 2
    assert report.failed == 2
    assert report.errors == ["t3: unexpected failure on t3", "missing: Tab not found"]
    assert report.to_dict()["results"][1] == {
        "tabId": "t3",
        "status": "failed",
        "updates": {"screenshots": False, "ai": False, "embeddings": False},
        "error": "unexpected failure on t3",
    }


@pytest.mark.asyncio
async def test_repository_failure_fails_the_whole_chunk():
    class BrokenRepository(InMemoryTabRepository):
        async def get_tabs_by_ids(self, ids, owner_id):
            raise RuntimeError("connection refused")

    orchestrator = BatchOrchestrator(RecordingPipeline(BrokenRepository()))

    report = await orchestrator.process_batch(["a", "b"], "user_001")

    assert report.failed == 2
    assert all("connection refused" in error for error in report.errors)


@pytest.mark.asyncio
async def test_error_list_is_truncated_but_counts_are_complete():
    orchestrator = BatchOrchestrator(RecordingPipeline(InMemoryTabRepository()), sleep=SleepRecorder())

    report = await orchestrator.process_batch([f"x{i}" for i in range(12)], "user_001")

    assert report.failed == 12
    assert report.processed == 12
    assert len(report.errors) == 10


@pytest.mark.asyncio
async def test_regenerate_all_pauses_between_chunks():
    sleep = SleepRecorder()
    orchestrator = BatchOrchestrator(RecordingPipeline(seven_tabs()), sleep=sleep)

    await orchestrator.regenerate_all([f"t{i}" for i in range(7)], "user_001")

    assert sleep.delays == [2.0]


@pytest.mark.asyncio
async def test_import_batches_do_not_pause_by_default():
    sleep = SleepRecorder()
    orchestrator = BatchOrchestrator(RecordingPipeline(seven_tabs()), sleep=sleep)

    await orchestrator.process_batch([f"t{i}" for i in range(7)], "user_001")

    assert sleep.delays == []


@pytest.mark.asyncio
async def test_batch_with_real_pipeline(repository, no_sleep):
    pipeline = EnrichmentPipeline(
        repository,
        content_provider=FakeContentProvider(),
        screenshot_provider=FakeScreenshotProvider(),
        ai_provider=FakeAIProvider(category="technology"),
        embedding_provider=FakeEmbeddingProvider(),
        sleep=no_sleep,
    )
    orchestrator = BatchOrchestrator(pipeline, sleep=no_sleep)

    report = await orchestrator.process_batch(["github", "other-owner"], "user_001", "ai")

    assert report.to_dict()["processType"] == "ai"
    assert report.successful == 1
    assert report.errors == ["other-owner: Tab not found"]
    assert repository.get("github").category == "technology"
