"""
Pydantic Settings for Tab Operations

This module provides strongly-typed configuration settings using Pydantic,
with support for environment variables and YAML configuration files.

Every group reads its own environment prefix (for example
`TAB_OPS_SEARCH_DEFAULT_LIMIT=30`); the aggregate `TabOpsSettings` also
accepts nested overrides such as `TAB_OPS_ENRICHMENT__CHUNK_SIZE=3`.
"""

from typing import Dict, Optional, Union
from enum import Enum
from pathlib import Path
import os

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_yaml import to_yaml_str, to_yaml_file


class FusionStrategy(str, Enum):
    """
    Rank fusion strategies for merging vector and lexical result lists.

    - POSITION: each channel contributes weight * (1 - i/n) for the item at rank i
    - RRF: weighted reciprocal rank fusion, weight / (k + i + 1)
    """
    POSITION = "position"
    RRF = "rrf"


class EmbeddingSettings(BaseSettings):
    """
    Embedding provider and query-embedding cache settings.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_EMBEDDING_", case_sensitive=False)

    model_name: str = Field("gemini-embedding-001",
                            description="Embedding model used for documents and queries")
    dimension: int = Field(768, description="Output dimensionality of embedding vectors")
    cache_size: int = Field(1000, description="Maximum number of cached query embeddings (LRU)")
    cache_max_age_seconds: Optional[float] = Field(
        None, description="Entries older than this are treated as misses (None = no expiry)")
    cache_eviction_age_seconds: float = Field(
        24 * 3600, description="Age used by periodic evict_older_than() sweeps")


class SearchSettings(BaseSettings):
    """
    Hybrid search settings.

    These settings control how the vector and lexical channels are combined:
    - Default weights and result limits
    - Candidate over-fetch factor per channel
    - Vector distance cut-off and per-channel timeouts
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_SEARCH_", case_sensitive=False,
                                      use_enum_values=False)

    default_limit: int = Field(20, description="Number of results returned when no limit is given")
    max_limit: int = Field(100, description="Largest accepted result limit")
    vector_weight: float = Field(1.0, description="Default weight of the vector channel")
    text_weight: float = Field(1.0, description="Default weight of the lexical channel")
    over_fetch_factor: float = Field(1.5, description="Each channel requests ceil(limit * factor) candidates")
    max_vector_distance: float = Field(0.7, description="Cosine distance above which vector matches are dropped")
    channel_timeout_seconds: float = Field(10.0, description="Timeout for each search channel")
    fusion_strategy: FusionStrategy = Field(FusionStrategy.POSITION, description="Rank fusion strategy")
    rrf_k: int = Field(60, description="Rank constant for reciprocal rank fusion")
    max_metrics_history: int = Field(1000, description="Number of per-search metrics records retained")


class BM25Settings(BaseSettings):
    """
    Lexical (BM25) index settings.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_BM25_", case_sensitive=False)

    k1: float = Field(1.5, description="Term frequency saturation parameter")
    b: float = Field(0.75, description="Length normalization parameter")
    enable_stemming: bool = Field(True, description="Apply suffix stemming to tokens")
    enable_stopwords: bool = Field(True, description="Drop common English stopwords")
    fold_diacritics: bool = Field(True, description="Strip accents so 'café' matches 'cafe'")


class RetryPolicySettings(BaseModel):
    """Attempts and delays for one retry policy."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 10.0
    backoff_multiplier: float = 2.0


class RetrySettings(BaseSettings):
    """
    Retry settings per failure class.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_RETRY_", case_sensitive=False,
                                      env_nested_delimiter="__")

    screenshot: RetryPolicySettings = Field(
        default_factory=lambda: RetryPolicySettings(max_attempts=2, base_delay=3.0, max_delay=15.0))
    ai: RetryPolicySettings = Field(
        default_factory=lambda: RetryPolicySettings(max_attempts=3, base_delay=1.0, max_delay=8.0))
    imports: RetryPolicySettings = Field(
        default_factory=lambda: RetryPolicySettings(max_attempts=3, base_delay=2.0, max_delay=10.0))
    default: RetryPolicySettings = Field(default_factory=RetryPolicySettings)


class CircuitBreakerSettings(BaseSettings):
    """
    Circuit breaker settings shared by provider breakers.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_BREAKER_", case_sensitive=False)

    failure_threshold: int = Field(5, description="Failures before the circuit opens")
    recovery_timeout: float = Field(60.0, description="Seconds before a half-open trial call")
    monitoring_period: float = Field(300.0, description="Seconds after which stale failures are forgotten")


class EnrichmentSettings(BaseSettings):
    """
    Enrichment pipeline and batch orchestration settings.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_ENRICHMENT_", case_sensitive=False)

    chunk_size: int = Field(5, description="Tabs processed concurrently per chunk")
    regenerate_all_delay_seconds: float = Field(2.0, description="Pause between chunks for bulk regeneration")
    import_delay_seconds: float = Field(0.0, description="Pause between chunks for background imports")
    max_reported_errors: int = Field(10, description="Errors kept in a batch report")
    title_max_length: int = Field(255, description="Longest title stored on a tab")
    stored_content_max_length: int = Field(10000, description="Longest extracted content stored on a tab")
    embedding_content_max_length: int = Field(8000, description="Longest cleaned content used for embeddings")
    ai_content_max_length: int = Field(4000, description="Content characters sent to summarize/categorize")
    min_content_length: int = Field(50, description="Extracted text shorter than this counts as no content")
    content_fetch_timeout_seconds: float = Field(10.0, description="Timeout for a single page fetch")
    stage_timeout_seconds: float = Field(30.0, description="Timeout for summarize, categorize and embedding calls")
    worker_pool_size: int = Field(2, description="Background batches running at the same time")
    backfill_batch_size: int = Field(20, description="Tabs embedded per update_missing_embeddings() call")


class ProviderSettings(BaseSettings):
    """
    External provider credentials, endpoints and request quotas.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_PROVIDER_", case_sensitive=False)

    gemini_api_key: Optional[str] = Field(None, description="Gemini API key (falls back to GEMINI_API_KEY)")
    gemini_model: str = Field("gemini-1.5-flash", description="Generative model for summaries and categories")
    screenshot_service_url: Optional[str] = Field(
        None, description="Endpoint of the screenshot rendering service")
    screenshot_timeout_seconds: float = Field(30.0, description="Timeout for a screenshot request")
    user_agent: str = Field("Mozilla/5.0 (compatible; TabOpsBot/0.1)", description="User agent for page fetches")
    requests_per_minute: Dict[str, int] = Field(
        default_factory=lambda: {"gemini": 60, "embeddings": 400, "screenshots": 30, "content": 100},
        description="Per-provider request quotas")


class MonitoringSettings(BaseSettings):
    """
    Logging and metrics settings.
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_MONITORING_", case_sensitive=False)

    log_level: str = Field("INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)")
    enable_metrics: bool = Field(True, description="Record per-search metrics")

    @model_validator(mode="after")
    def _check_level(self) -> "MonitoringSettings":
        level = self.log_level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {self.log_level}")
        self.log_level = level
        return self


class TabOpsSettings(BaseSettings):
    """
    Main settings class that consolidates all configuration categories.

    Usage:
        # Load from environment variables and defaults
        settings = TabOpsSettings()

        # Load from YAML file
        settings = TabOpsSettings.from_yaml('config.yaml')

        # Access nested settings
        chunk_size = settings.enrichment.chunk_size
        limit = settings.search.default_limit
    """
    model_config = SettingsConfigDict(env_prefix="TAB_OPS_", case_sensitive=False,
                                      env_nested_delimiter="__")

    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    bm25: BM25Settings = Field(default_factory=BM25Settings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    circuit_breaker: CircuitBreakerSettings = Field(default_factory=CircuitBreakerSettings)
    enrichment: EnrichmentSettings = Field(default_factory=EnrichmentSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @classmethod
    def from_yaml(cls, yaml_file: Union[str, Path]) -> "TabOpsSettings":
        """Load settings from YAML file"""
        import yaml
        with open(yaml_file, 'r') as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, yaml_file: Optional[Union[str, Path]] = None) -> str:
        """
        Serialize settings to YAML, optionally writing them to a file.

        Secrets are excluded from the output.
        """
        if yaml_file is not None:
            to_yaml_file(yaml_file, self, exclude={"provider": {"gemini_api_key"}})
        return to_yaml_str(self, exclude={"provider": {"gemini_api_key"}})


def load_settings(config_path: Optional[str] = None) -> TabOpsSettings:
    """
    Load settings from file and/or environment variables.

    Args:
        config_path: Path to YAML configuration file. If None or the file doesn't
                     exist, falls back to environment variables and default values.

    Returns:
        TabOpsSettings object with loaded configuration

    Example:
        settings = load_settings("/path/to/config.yaml")
        settings = load_settings()
    """
    if config_path and os.path.exists(config_path):
        return TabOpsSettings.from_yaml(config_path)
    return TabOpsSettings()
