import pytest

from utils.rate_limiter import ProviderRateLimiters, TokenBucketRateLimiter


@pytest.mark.asyncio
async def test_first_request_is_not_throttled():
    limiter = TokenBucketRateLimiter.per_minute(60, name="gemini")

    waited = await limiter.acquire()

    assert waited == 0.0
    assert limiter.get_metrics()["total_requests"] == 1


@pytest.mark.asyncio
async def test_empty_bucket_waits_for_refill():
    limiter = TokenBucketRateLimiter(rate=100.0, capacity=1)

    await limiter.acquire()
    waited = await limiter.acquire()

    assert waited > 0
    assert limiter.get_metrics()["total_throttled"] == 1


@pytest.mark.asyncio
async def test_acquiring_more_than_capacity_is_rejected():
    limiter = TokenBucketRateLimiter(rate=1.0, capacity=1)

    with pytest.raises(ValueError):
        await limiter.acquire(tokens=2)


@pytest.mark.asyncio
async def test_registry_skips_unconfigured_providers():
    limiters = ProviderRateLimiters({"gemini": 60, "screenshots": 0})

    assert await limiters.acquire("unknown") == 0.0
    assert limiters.get("screenshots") is None
    await limiters.acquire("gemini")
    assert set(limiters.get_metrics()) == {"gemini"}


def test_default_limits():
    limiters = ProviderRateLimiters()

    assert set(limiters.get_metrics()) == {"gemini", "embeddings", "screenshots", "content"}
    assert limiters.get("embeddings").capacity == 6


@pytest.mark.asyncio
async def test_reserved_token_is_used_by_the_next_acquire():
    limiters = ProviderRateLimiters({"gemini": 60})

    async with limiters.reserved("gemini"):
        assert await limiters.acquire("gemini") == 0.0
    metrics = limiters.get_metrics()["gemini"]

    assert metrics["total_requests"] == 1
    assert metrics["current_tokens"] == 0.0
