"""
Utilities Module

This module provides shared resilience utilities used by the search and
enrichment services:
- Retry with exponential backoff and per-failure-class policies
- Batch retry in fixed-size concurrency chunks
- Circuit breaker with stale-failure monitoring window
- Per-provider token bucket rate limiting
"""

from .retry import (
    RetryOptions,
    RetryPolicies,
    BatchOperationOutcome,
    calculate_backoff_delay,
    retry,
    retry_batch,
    should_retry_ai,
    should_retry_import,
    should_retry_screenshot,
)
from .circuit_breaker import CircuitBreaker, CircuitState
from .rate_limiter import (
    TokenBucketRateLimiter,
    ProviderRateLimiters,
    RateLimiterMetrics
)

__all__ = [
    'RetryOptions',
    'RetryPolicies',
    'BatchOperationOutcome',
    'calculate_backoff_delay',
    'retry',
    'retry_batch',
    'should_retry_ai',
    'should_retry_import',
    'should_retry_screenshot',
    'CircuitBreaker',
    'CircuitState',
    'TokenBucketRateLimiter',
    'ProviderRateLimiters',
    'RateLimiterMetrics',
]
