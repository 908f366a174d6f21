"""
Retry Module

This module provides retry logic with exponential backoff for handling
transient failures in provider calls, plus the failure-class policies used
by the enrichment pipeline and import operations.

Key Features:
- Exponential backoff capped at a maximum delay, with up to 10% jitter
- Policy-specific `should_retry` predicates (screenshot, AI, import)
- Batch execution in fixed-size concurrency chunks with per-operation outcomes
- Built on tenacity's AsyncRetrying engine
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from tab_ops_exceptions import (
    CircuitOpenError,
    InvalidUrlError,
    ProviderError,
    QuotaExceededError,
    ValidationError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

SleepFunc = Callable[[float], Awaitable[None]]


def _always_retry(error: BaseException) -> bool:
    return not isinstance(error, CircuitOpenError)


@dataclass
class RetryOptions:
    """
    Configuration for one retry() call.

    Attributes:
        max_attempts: Total attempts including the first one
        base_delay: Delay in seconds after the first failure
        max_delay: Upper bound for any single delay
        backoff_multiplier: Growth factor applied per attempt
        jitter: Add up to 10% random jitter to each delay
        should_retry: Predicate deciding whether an error is worth another attempt
        name: Label used in log messages
    """
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0
    jitter: bool = True
    should_retry: Callable[[BaseException], bool] = field(default=_always_retry)
    name: str = "operation"

    def __post_init__(self):
        """Validate retry options."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be non-negative, got {self.base_delay}")
        if self.max_delay < self.base_delay:
            raise ValueError(
                f"max_delay ({self.max_delay}) must be >= base_delay ({self.base_delay})"
            )
        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be >= 1, got {self.backoff_multiplier}"
            )

    def with_overrides(self, **changes: Any) -> "RetryOptions":
        return replace(self, **changes)


def calculate_backoff_delay(attempt: int, options: RetryOptions) -> float:
    """
    Calculate the delay to wait after a failed attempt.

    Args:
        attempt: Number of the attempt that just failed (1-indexed)
        options: Retry options

    Returns:
        Delay in seconds: min(base * multiplier^(attempt-1), max) plus jitter
    """
    delay = min(
        options.base_delay * (options.backoff_multiplier ** (attempt - 1)),
        options.max_delay
    )
    if options.jitter:
        delay += random.random() * 0.1 * delay
    return delay


def _error_text(error: BaseException) -> str:
    return str(error).lower()


def should_retry_screenshot(error: BaseException) -> bool:
    """Retry transient capture failures, never invalid or unresolvable URLs."""
    if isinstance(error, (CircuitOpenError, InvalidUrlError, ValidationError)):
        return False
    message = _error_text(error)
    if "invalid url" in message or "err_name_not_resolved" in message:
        return False
    return True


def should_retry_ai(error: BaseException) -> bool:
    """Retry transient AI failures, never quota or rate-limit signals."""
    if isinstance(error, (CircuitOpenError, QuotaExceededError, ValidationError)):
        return False
    if isinstance(error, ProviderError) and error.status_code == 429:
        return False
    message = _error_text(error)
    if "quota" in message or "rate limit" in message or "429" in message:
        return False
    return True


def should_retry_import(error: BaseException) -> bool:
    """
    Never retry validation (4xx-equivalent) errors; retry network and 5xx failures.
    """
    if isinstance(error, (CircuitOpenError, ValidationError)):
        return False
    if isinstance(error, ProviderError):
        if error.status_code is not None and 400 <= error.status_code < 500:
            return False
        return error.transient
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, ConnectionError, OSError)):
        return True
    message = _error_text(error)
    if "validation" in message or "invalid" in message:
        return False
    return any(
        marker in message
        for marker in ("network", "timeout", "timed out", "fetch", "connection", "500", "502", "503", "504")
    )


class RetryPolicies:
    """Retry presets per failure class."""

    SCREENSHOT = RetryOptions(
        max_attempts=2,
        base_delay=3.0,
        max_delay=15.0,
        should_retry=should_retry_screenshot,
        name="screenshot"
    )
    AI = RetryOptions(
        max_attempts=3,
        base_delay=1.0,
        max_delay=8.0,
        should_retry=should_retry_ai,
        name="ai"
    )
    IMPORT = RetryOptions(
        max_attempts=3,
        base_delay=2.0,
        max_delay=10.0,
        should_retry=should_retry_import,
        name="import"
    )
    DEFAULT = RetryOptions()


def _log_before_sleep(options: RetryOptions) -> Callable[[RetryCallState], None]:
    def _log(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        logger.warning(
            f"{options.name} attempt {retry_state.attempt_number}/{options.max_attempts} "
            f"failed: {error}. Retrying in {delay:.2f}s..."
        )
    return _log


async def retry(
    operation: Callable[[], Awaitable[T]],
    options: Optional[RetryOptions] = None,
    sleep: SleepFunc = asyncio.sleep
) -> T:
    """
    Execute an async operation with retry logic and exponential backoff.

    The operation is rethrown immediately, without further delay, when the
    final attempt fails or when `should_retry` rejects the error.

    Args:
        operation: Zero-argument async callable to execute
        options: Retry options (defaults to RetryPolicies.DEFAULT)
        sleep: Async sleep function used between attempts

    Returns:
        Result of the first successful attempt

    Raises:
        Exception: The last error raised by the operation
    """
    options = options or RetryPolicies.DEFAULT

    retrying = AsyncRetrying(
        stop=stop_after_attempt(options.max_attempts),
        wait=lambda retry_state: calculate_backoff_delay(retry_state.attempt_number, options),
        retry=retry_if_exception(options.should_retry),
        sleep=sleep,
        before_sleep=_log_before_sleep(options),
        reraise=True
    )
    result = await retrying(operation)

    attempts = retrying.statistics.get("attempt_number", 1)
    if attempts > 1:
        logger.info(f"{options.name} succeeded after {attempts} attempts")
    return result


@dataclass
class BatchOperationOutcome(Generic[T]):
    """Outcome of one operation inside retry_batch()."""
    index: int
    success: bool
    result: Optional[T] = None
    error: Optional[BaseException] = None


async def retry_batch(
    operations: Sequence[Callable[[], Awaitable[T]]],
    options: Optional[RetryOptions] = None,
    concurrency: int = 5,
    sleep: SleepFunc = asyncio.sleep
) -> List[BatchOperationOutcome[T]]:
    """
    Run operations in fixed-size concurrency chunks, each independently retried.

    One operation exhausting its retries never aborts its siblings.

    Args:
        operations: Zero-argument async callables
        options: Retry options applied to every operation
        concurrency: Number of operations in flight per chunk
        sleep: Async sleep function used between attempts

    Returns:
        One outcome per operation, in input order
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be at least 1, got {concurrency}")

    async def _run(index: int, operation: Callable[[], Awaitable[T]]) -> BatchOperationOutcome[T]:
        try:
            result = await retry(operation, options, sleep=sleep)
            return BatchOperationOutcome(index=index, success=True, result=result)
        except Exception as e:
            return BatchOperationOutcome(index=index, success=False, error=e)

    outcomes: List[BatchOperationOutcome[T]] = []
    for start in range(0, len(operations), concurrency):
        chunk = operations[start:start + concurrency]
        outcomes.extend(await asyncio.gather(
            *[_run(start + offset, op) for offset, op in enumerate(chunk)]
        ))

    failed = sum(1 for outcome in outcomes if not outcome.success)
    if failed:
        logger.warning(f"retry_batch finished with {failed}/{len(outcomes)} failed operations")
    return outcomes
