"""
Rate Limiting Utilities

This module provides provider-side rate limiting so enrichment bursts stay
inside each external provider's request quota. Each provider gets its own
token bucket, refilled at the provider's requests-per-minute rate.

Key Features:
- Token bucket algorithm for smooth rate limiting with burst capacity
- Per-provider limiter registry built from requests-per-minute settings
- Async-safe acquisition
- Token reservation, so callers can wait for quota outside a timed section
- Metrics for monitoring
"""

import asyncio
import time
import logging
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import AsyncIterator, Dict, Any, FrozenSet, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Providers whose token for the current call was already taken by the caller
_reserved_tokens: ContextVar[FrozenSet[str]] = ContextVar("reserved_rate_limit_tokens", default=frozenset())


@dataclass
class RateLimiterMetrics:
    """Metrics for rate limiter monitoring and observability."""
    total_requests: int = 0
    total_throttled: int = 0
    total_wait_time: float = 0.0
    peak_wait_time: float = 0.0
    current_tokens: float = 0.0

    @property
    def throttle_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.total_throttled / self.total_requests

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary for monitoring systems."""
        return {
            "total_requests": self.total_requests,
            "total_throttled": self.total_throttled,
            "total_wait_time_seconds": round(self.total_wait_time, 2),
            "peak_wait_time_seconds": round(self.peak_wait_time, 2),
            "current_tokens": round(self.current_tokens, 2),
            "throttle_rate_percent": round(self.throttle_rate * 100, 2),
        }


class TokenBucketRateLimiter:
    """
    Token bucket rate limiter with async support.

    Tokens are added to the bucket at a constant rate and each provider call
    consumes one. When the bucket is empty, callers wait for a refill.

    Example:
        >>> limiter = TokenBucketRateLimiter.per_minute(60)
        >>> await limiter.acquire()  # one Gemini request
    """

    def __init__(
        self,
        rate: float,
        capacity: Optional[int] = None,
        initial_tokens: Optional[float] = None,
        name: str = "default"
    ):
        """
        Initialize token bucket rate limiter.

        Args:
            rate: Token replenishment rate (tokens per second)
            capacity: Maximum bucket capacity (default: max(1, rate))
            initial_tokens: Initial number of tokens (default: full capacity)
            name: Label used in logs and metrics
        """
        if rate <= 0:
            raise ValueError("Rate must be positive")

        self.rate = rate
        self.name = name
        self.capacity = capacity if capacity is not None else max(1, int(rate))
        self.tokens = initial_tokens if initial_tokens is not None else float(self.capacity)
        self.last_update = time.monotonic()

        self._lock = asyncio.Lock()
        self._metrics = RateLimiterMetrics(current_tokens=self.tokens)

        logger.debug(
            f"TokenBucketRateLimiter '{name}' initialized: rate={rate:.3f}/s, "
            f"capacity={self.capacity}"
        )

    @classmethod
    def per_minute(cls, requests_per_minute: int, name: str = "default") -> "TokenBucketRateLimiter":
        """Build a limiter allowing `requests_per_minute` with a one-second burst."""
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        rate = requests_per_minute / 60.0
        return cls(rate=rate, capacity=max(1, int(rate)), name=name)

    def _refill_tokens(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_update
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.last_update = now
        self._metrics.current_tokens = self.tokens

    async def acquire(self, tokens: int = 1) -> float:
        """
        Acquire tokens from the bucket, waiting if necessary.

        Args:
            tokens: Number of tokens to acquire (default: 1)

        Returns:
            Time waited in seconds (0 if no wait was needed)

        Raises:
            ValueError: If tokens requested exceeds capacity
        """
        if tokens > self.capacity:
            raise ValueError(
                f"Cannot acquire {tokens} tokens (capacity: {self.capacity})"
            )

        wait_start = time.monotonic()
        total_wait = 0.0

        async with self._lock:
            self._metrics.total_requests += 1

            while True:
                self._refill_tokens()

                if self.tokens >= tokens:
                    self.tokens -= tokens
                    self._metrics.current_tokens = self.tokens

                    if total_wait > 0:
                        self._metrics.total_throttled += 1
                        self._metrics.total_wait_time += total_wait
                        self._metrics.peak_wait_time = max(
                            self._metrics.peak_wait_time, total_wait
                        )
                    return total_wait

                wait_time = (tokens - self.tokens) / self.rate
                if total_wait == 0:
                    logger.debug(
                        f"Rate limiter '{self.name}' throttling request, "
                        f"waiting {wait_time:.3f}s"
                    )
                await asyncio.sleep(min(wait_time, 0.1))
                total_wait = time.monotonic() - wait_start

    def get_metrics(self) -> Dict[str, Any]:
        return self._metrics.to_dict()

    def reset(self) -> None:
        """Refill the bucket to capacity and reset all metrics."""
        self.tokens = float(self.capacity)
        self.last_update = time.monotonic()
        self._metrics = RateLimiterMetrics(current_tokens=self.tokens)

    def __repr__(self) -> str:
        return (
            f"TokenBucketRateLimiter(name={self.name!r}, rate={self.rate:.3f}/s, "
            f"capacity={self.capacity}, tokens={self.tokens:.2f})"
        )


class ProviderRateLimiters:
    """
    Registry of one token bucket per external provider.

    Providers without a configured limit are not throttled.

    Example:
        ```python
        limiters = ProviderRateLimiters({"gemini": 60, "embeddings": 400})
        await limiters.acquire("gemini")
        ```
    """

    DEFAULT_LIMITS: Dict[str, int] = {
        "gemini": 60,
        "embeddings": 400,
        "screenshots": 30,
        "content": 100,
    }

    def __init__(self, requests_per_minute: Optional[Dict[str, int]] = None):
        limits = dict(self.DEFAULT_LIMITS if requests_per_minute is None else requests_per_minute)
        self._limiters: Dict[str, TokenBucketRateLimiter] = {
            name: TokenBucketRateLimiter.per_minute(rpm, name=name)
            for name, rpm in limits.items()
            if rpm and rpm > 0
        }

    async def acquire(self, provider: str) -> float:
        reserved = _reserved_tokens.get()
        if provider in reserved:
            _reserved_tokens.set(reserved - {provider})
            return 0.0
        limiter = self._limiters.get(provider)
        if limiter is None:
            return 0.0
        return await limiter.acquire()

    @asynccontextmanager
    async def reserved(self, provider: str) -> AsyncIterator[float]:
        """
        Take one token for `provider` now and let the next `acquire(provider)`
        made inside the block use it without waiting.

        Example:
            ```python
            async with limiters.reserved("gemini"):
                await asyncio.wait_for(ai_provider.summarize(url, text), timeout=30)
            ```
        """
        waited = await self.acquire(provider)
        token = _reserved_tokens.set(_reserved_tokens.get() | {provider})
        try:
            yield waited
        finally:
            _reserved_tokens.reset(token)

    def get(self, provider: str) -> Optional[TokenBucketRateLimiter]:
        return self._limiters.get(provider)

    def get_metrics(self) -> Dict[str, Dict[str, Any]]:
        return {name: limiter.get_metrics() for name, limiter in self._limiters.items()}
