"""
Circuit Breaker Module

This module implements the circuit breaker pattern for fault tolerance,
preventing cascading failures by temporarily blocking calls to failing providers.

Breakers are plain instances owned by the service that needs them, so each
provider (and each test) gets its own state.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, Type, TypeVar

from tab_ops_exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(str, Enum):
    """
    Circuit breaker states.

    - CLOSED: Normal operation, calls pass through
    - OPEN: Too many failures, calls fail fast without reaching the provider
    - HALF_OPEN: Recovery timeout elapsed, one trial call is allowed through
    """
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreaker:
    """
    Circuit breaker with a failure-count threshold and a stale-failure window.

    State transitions:
    - closed: failures increment a counter, a success resets it to 0
    - open: entered when failures >= failure_threshold; every call raises
      CircuitOpenError until recovery_timeout has elapsed since the last failure
    - half-open: one trial call is let through; success closes the circuit,
      failure reopens it

    The failure counter also resets when monitoring_period has elapsed since
    the last failure, regardless of outcomes.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60.0,
        monitoring_period: float = 300.0,
        expected_exception: Type[BaseException] = Exception,
        name: str = "default",
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening circuit
            recovery_timeout: Seconds to wait after the last failure before a trial call
            monitoring_period: Seconds after which stale failures are forgotten
            expected_exception: Exception type that counts as a failure
            name: Label used in log messages and stats
            clock: Monotonic time source
        """
        if failure_threshold < 1:
            raise ValueError(f"failure_threshold must be at least 1, got {failure_threshold}")
        if recovery_timeout < 0 or monitoring_period < 0:
            raise ValueError("recovery_timeout and monitoring_period must be non-negative")

        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.monitoring_period = monitoring_period
        self.expected_exception = expected_exception
        self.name = name
        self._clock = clock

        self.failure_count = 0
        self.last_failure_time: Optional[float] = None
        self.state = CircuitState.CLOSED
        self._trial_in_flight = False
        self._rejected_calls = 0
        self._lock = asyncio.Lock()

        logger.info(
            f"CircuitBreaker '{name}' initialized - "
            f"threshold: {failure_threshold}, "
            f"recovery_timeout: {recovery_timeout}s, "
            f"monitoring_period: {monitoring_period}s"
        )

    async def _before_call(self) -> bool:
        """Admit or reject a call; returns True when the call is the half-open trial."""
        async with self._lock:
            now = self._clock()

            if (
                self.last_failure_time is not None
                and now - self.last_failure_time > self.monitoring_period
                and self.failure_count
            ):
                logger.debug(f"CircuitBreaker '{self.name}' forgetting stale failures")
                self.failure_count = 0

            if self.state == CircuitState.OPEN:
                if now - self.last_failure_time < self.recovery_timeout:
                    self._rejected_calls += 1
                    raise CircuitOpenError()
                self.state = CircuitState.HALF_OPEN
                logger.info(f"CircuitBreaker '{self.name}' entering half-open state")

            if self.state == CircuitState.HALF_OPEN:
                if self._trial_in_flight:
                    self._rejected_calls += 1
                    raise CircuitOpenError()
                self._trial_in_flight = True
                return True

            return False

    async def call(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """
        Execute function with circuit breaker protection.

        Args:
            func: Async function to execute
            *args: Positional arguments for function
            **kwargs: Keyword arguments for function

        Returns:
            Result of function execution

        Raises:
            CircuitOpenError: If the circuit is open
            Exception: Original exception from function
        """
        is_trial = await self._before_call()

        try:
            result = await func(*args, **kwargs)
        except self.expected_exception:
            async with self._lock:
                self._trial_in_flight = False
                self.failure_count += 1
                self.last_failure_time = self._clock()

                if is_trial or self.failure_count >= self.failure_threshold:
                    self.state = CircuitState.OPEN
                    logger.error(
                        f"CircuitBreaker '{self.name}' OPENED after "
                        f"{self.failure_count} failures"
                    )
                else:
                    logger.warning(
                        f"CircuitBreaker '{self.name}' failure "
                        f"{self.failure_count}/{self.failure_threshold}"
                    )
            raise
        except BaseException:
            if is_trial:
                async with self._lock:
                    self._trial_in_flight = False
            raise

        async with self._lock:
            self._trial_in_flight = False
            if self.state == CircuitState.HALF_OPEN:
                logger.info(f"CircuitBreaker '{self.name}' closed - service recovered")
            self.state = CircuitState.CLOSED
            self.failure_count = 0

        return result

    def get_state(self) -> CircuitState:
        return self.state

    def get_failure_count(self) -> int:
        return self.failure_count

    async def reset(self) -> None:
        """Manually reset the circuit breaker to closed state."""
        async with self._lock:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self.last_failure_time = None
            self._trial_in_flight = False

        logger.info(f"CircuitBreaker '{self.name}' manually reset to closed state")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get circuit breaker statistics.

        Returns:
            Dictionary with current state and statistics
        """
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "failure_threshold": self.failure_threshold,
            "last_failure_time": self.last_failure_time,
            "recovery_timeout": self.recovery_timeout,
            "monitoring_period": self.monitoring_period,
            "rejected_calls": self._rejected_calls
        }
