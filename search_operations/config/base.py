"""
Base Search Configuration

This module defines base configuration classes and enums for search operations.
"""

from enum import Enum
from dataclasses import dataclass


class SearchMode(str, Enum):
    """Mode reported to the caller alongside results"""
    HYBRID = "hybrid"    # Vector and/or lexical channels fused
    KEYWORD = "keyword"  # Lexical index unavailable, substring fallback used


class MetricType(str, Enum):
    """Enumeration of supported distance metrics"""
    COSINE = "COSINE"     # Cosine distance (1 - cosine similarity)
    IP = "IP"             # Inner product


@dataclass
class BaseSearchConfig:
    """
    Base configuration for all search types.

    This class provides common parameters used across all search types,
    serving as a foundation for specialized search configurations.
    """
    limit: int = 20
    timeout: float = 10.0
    metric_type: MetricType = MetricType.COSINE

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
