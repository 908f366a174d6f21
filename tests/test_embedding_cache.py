import asyncio

import pytest

from search_operations.cache import EmbeddingCache
from search_operations.providers.embedding import TaskType


class CountingCompute:
    def __init__(self, error=None, delay=0.0):
        self.calls = []
        self.error = error
        self.delay = delay

    async def __call__(self, text, task):
        self.calls.append((text, task))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [float(len(text)), 1.0]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_get_or_compute_calls_provider_once_per_normalized_key():
    cache = EmbeddingCache(max_size=10)
    compute = CountingCompute()

    first = await cache.get_or_compute("Stripe Docs ", TaskType.RETRIEVAL_QUERY, compute)
    second = await cache.get_or_compute("stripe docs", TaskType.RETRIEVAL_QUERY, compute)

    assert first == second
    assert len(compute.calls) == 1
    assert compute.calls[0] == ("Stripe Docs ", "RETRIEVAL_QUERY")
    assert cache.get_stats()["hits"] == 1
    assert cache.get_stats()["hit_rate"] == 0.5


@pytest.mark.asyncio
async def test_task_label_is_part_of_the_key():
    cache = EmbeddingCache()
    compute = CountingCompute()

    await cache.get_or_compute("stripe", TaskType.RETRIEVAL_QUERY, compute)
    await cache.get_or_compute("stripe", TaskType.RETRIEVAL_DOCUMENT, compute)

    assert len(compute.calls) == 2


@pytest.mark.asyncio
async def test_size_never_exceeds_capacity_and_evicts_lru():
    cache = EmbeddingCache(max_size=2)
    compute = CountingCompute()

    await cache.get_or_compute("one", "q", compute)
    await cache.get_or_compute("two", "q", compute)
    await cache.get_or_compute("one", "q", compute)
    await cache.get_or_compute("three", "q", compute)

    assert len(cache) == 2
    assert await cache.get("two", "q") is None
    assert await cache.get("one", "q") is not None


@pytest.mark.asyncio
async def test_failed_computation_is_not_cached():
    cache = EmbeddingCache()
    failing = CountingCompute(error=RuntimeError("quota"))

    with pytest.raises(RuntimeError):
        await cache.get_or_compute("stripe", "q", failing)

    assert len(cache) == 0
    compute = CountingCompute()
    await cache.get_or_compute("stripe", "q", compute)
    assert len(compute.calls) == 1


@pytest.mark.asyncio
async def test_entries_older_than_max_age_are_recomputed():
    clock = FakeClock()
    cache = EmbeddingCache(max_age_seconds=60, clock=clock)
    compute = CountingCompute()

    await cache.get_or_compute("stripe", "q", compute)
    clock.now += 61
    await cache.get_or_compute("stripe", "q", compute)

    assert len(compute.calls) == 2


@pytest.mark.asyncio
async def test_evict_older_than_returns_removed_count():
    clock = FakeClock()
    cache = EmbeddingCache(clock=clock)

    await cache.put("old", "q", [1.0])
    clock.now += 100
    await cache.put("new", "q", [2.0])

    removed = await cache.evict_older_than(50)

    assert removed == 1
    assert [entry["text"] for entry in cache.entries()] == ["new"]


@pytest.mark.asyncio
async def test_clear_resets_entries_and_counters():
    cache = EmbeddingCache()
    await cache.get_or_compute("stripe", "q", CountingCompute())

    await cache.clear()

    assert cache.get_stats() == {"hits": 0, "misses": 0, "size": 0, "capacity": 1000, "hit_rate": 0.0}


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        EmbeddingCache(max_size=0)


@pytest.mark.asyncio
async def test_overlapping_misses_share_one_computation():
    cache = EmbeddingCache()
    compute = CountingCompute(delay=0.05)

    first, second = await asyncio.gather(
        cache.get_or_compute("Stripe", TaskType.RETRIEVAL_QUERY, compute),
        cache.get_or_compute(" stripe ", TaskType.RETRIEVAL_QUERY, compute),
    )

    assert len(compute.calls) == 1
    assert first == second
    assert cache.get_stats()["misses"] == 1
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_overlapping_failure_reaches_every_waiter():
    cache = EmbeddingCache()
    compute = CountingCompute(error=RuntimeError("provider down"), delay=0.05)

    results = await asyncio.gather(
        cache.get_or_compute("stripe", "q", compute),
        cache.get_or_compute("stripe", "q", compute),
        return_exceptions=True,
    )

    assert len(compute.calls) == 1
    assert all(isinstance(result, RuntimeError) for result in results)
    assert len(cache) == 0

    retry_compute = CountingCompute()
    await cache.get_or_compute("stripe", "q", retry_compute)
    assert len(retry_compute.calls) == 1
