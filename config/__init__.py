"""
Configuration Module

This module provides centralized configuration management for tab operations:
- Embedding provider and query cache settings
- Hybrid search weights, limits and fusion strategy
- BM25 lexical index tuning
- Retry policies and circuit breaker thresholds
- Enrichment pipeline and batch pacing
- Provider credentials and request quotas
- Logging and metrics

Implements an environment-aware configuration system with sensible defaults
and validation using Pydantic.
"""

from .settings import (
    TabOpsSettings,
    load_settings,
    FusionStrategy,
    EmbeddingSettings,
    SearchSettings,
    BM25Settings,
    RetrySettings,
    RetryPolicySettings,
    CircuitBreakerSettings,
    EnrichmentSettings,
    ProviderSettings,
    MonitoringSettings,
)

__all__ = [
    'TabOpsSettings',
    'load_settings',
    'FusionStrategy',
    'EmbeddingSettings',
    'SearchSettings',
    'BM25Settings',
    'RetrySettings',
    'RetryPolicySettings',
    'CircuitBreakerSettings',
    'EnrichmentSettings',
    'ProviderSettings',
    'MonitoringSettings',
]
