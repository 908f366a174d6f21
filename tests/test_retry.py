import pytest

from tab_ops_exceptions import (
    CircuitOpenError,
    InvalidUrlError,
    ProviderError,
    QuotaExceededError,
    ValidationError,
)
from utils.retry import (
    RetryOptions,
    RetryPolicies,
    calculate_backoff_delay,
    retry,
    retry_batch,
    should_retry_ai,
    should_retry_import,
    should_retry_screenshot,
)

from conftest import SleepRecorder


class Flaky:
    """Fails `failures` times with `error`, then returns `result`."""

    def __init__(self, failures, error=None, result="ok"):
        self.failures = failures
        self.error = error or ConnectionError("connection reset")
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_succeeds_after_transient_failures():
    sleep = SleepRecorder()
    operation = Flaky(failures=2)

    result = await retry(operation, RetryOptions(max_attempts=3, jitter=False), sleep=sleep)

    assert result == "ok"
    assert operation.calls == 3
    assert sleep.delays == [1.0, 2.0]


@pytest.mark.asyncio
async def test_final_failure_is_rethrown_without_extra_delay():
    sleep = SleepRecorder()
    operation = Flaky(failures=10)

    with pytest.raises(ConnectionError):
        await retry(operation, RetryOptions(max_attempts=4, base_delay=0.5, jitter=False), sleep=sleep)

    assert operation.calls == 4
    assert len(sleep.delays) == 3
    assert sleep.delays == sorted(set(sleep.delays))


@pytest.mark.asyncio
async def test_non_retryable_error_fails_immediately():
    sleep = SleepRecorder()
    operation = Flaky(failures=1, error=QuotaExceededError("quota exceeded"))

    with pytest.raises(QuotaExceededError):
        await retry(operation, RetryPolicies.AI, sleep=sleep)

    assert operation.calls == 1
    assert sleep.delays == []


def test_backoff_is_capped_and_jitter_bounded():
    options = RetryOptions(base_delay=2.0, max_delay=10.0, jitter=False)
    assert [calculate_backoff_delay(n, options) for n in (1, 2, 3, 4)] == [2.0, 4.0, 8.0, 10.0]

    jittered = RetryOptions(base_delay=2.0, max_delay=10.0, jitter=True)
    for _ in range(20):
        assert 2.0 <= calculate_backoff_delay(1, jittered) <= 2.2


def test_invalid_options_are_rejected():
    with pytest.raises(ValueError):
        RetryOptions(max_attempts=0)
    with pytest.raises(ValueError):
        RetryOptions(base_delay=5.0, max_delay=1.0)


def test_screenshot_predicate():
    assert should_retry_screenshot(RuntimeError("render crashed"))
    assert not should_retry_screenshot(InvalidUrlError("bad url"))
    assert not should_retry_screenshot(RuntimeError("net::ERR_NAME_NOT_RESOLVED"))
    assert not should_retry_screenshot(CircuitOpenError())


def test_ai_predicate():
    assert should_retry_ai(RuntimeError("model overloaded"))
    assert not should_retry_ai(RuntimeError("Quota exceeded for project"))
    assert not should_retry_ai(ProviderError("too many requests", status_code=429))
    assert not should_retry_ai(RuntimeError("rate limit hit"))


def test_import_predicate():
    assert should_retry_import(ConnectionError("reset"))
    assert should_retry_import(ProviderError("bad gateway", status_code=502))
    assert should_retry_import(RuntimeError("network unreachable"))
    assert not should_retry_import(ValidationError("missing url"))
    assert not should_retry_import(ProviderError("not found", status_code=404))
    assert not should_retry_import(RuntimeError("something odd"))


@pytest.mark.asyncio
async def test_retry_batch_isolates_failures():
    sleep = SleepRecorder()
    operations = [Flaky(failures=0, result="a"), Flaky(failures=99), Flaky(failures=1, result="c")]

    outcomes = await retry_batch(
        operations,
        RetryOptions(max_attempts=2, jitter=False),
        concurrency=2,
        sleep=sleep,
    )

    assert [o.index for o in outcomes] == [0, 1, 2]
    assert [o.success for o in outcomes] == [True, False, True]
    assert outcomes[0].result == "a"
    assert outcomes[2].result == "c"
    assert isinstance(outcomes[1].error, ConnectionError)


@pytest.mark.asyncio
async def test_retry_batch_rejects_bad_concurrency():
    with pytest.raises(ValueError):
        await retry_batch([], concurrency=0)
