"""
Hybrid Search Configuration

This module defines configuration for hybrid search operations.
"""

import math
from dataclasses import dataclass, replace

from config.settings import FusionStrategy, SearchSettings
from .base import BaseSearchConfig

MIN_BLEND = 0.0
MAX_BLEND = 2.0


@dataclass
class HybridSearchConfig(BaseSearchConfig):
    """
    Configuration for hybrid search.

    Combines a vector (semantic) channel and a lexical (BM25) channel.
    Weights are independent and need not sum to 1.0; a weight of 0
    turns its channel off entirely.
    """
    vector_weight: float = 1.0
    text_weight: float = 1.0
    over_fetch_factor: float = 1.5
    max_vector_distance: float = 0.7
    fusion_strategy: FusionStrategy = FusionStrategy.POSITION
    rrf_k: int = 60

    def __post_init__(self):
        """Validate hybrid search configuration"""
        super().__post_init__()

        if self.vector_weight < 0 or self.text_weight < 0:
            raise ValueError(
                f"Weights must be non-negative, got vector_weight={self.vector_weight}, "
                f"text_weight={self.text_weight}"
            )
        if self.over_fetch_factor < 1.0:
            raise ValueError(f"over_fetch_factor must be >= 1.0, got {self.over_fetch_factor}")
        if not 0.0 <= self.max_vector_distance <= 2.0:
            raise ValueError(f"max_vector_distance must be in [0, 2], got {self.max_vector_distance}")
        if self.rrf_k < 1:
            raise ValueError(f"rrf_k must be at least 1, got {self.rrf_k}")

    @property
    def candidate_limit(self) -> int:
        """Number of candidates each channel is asked for."""
        return math.ceil(self.limit * self.over_fetch_factor)

    @classmethod
    def from_settings(cls, settings: SearchSettings) -> "HybridSearchConfig":
        return cls(
            limit=settings.default_limit,
            timeout=settings.channel_timeout_seconds,
            vector_weight=settings.vector_weight,
            text_weight=settings.text_weight,
            over_fetch_factor=settings.over_fetch_factor,
            max_vector_distance=settings.max_vector_distance,
            fusion_strategy=settings.fusion_strategy,
            rrf_k=settings.rrf_k,
        )

    def with_blend(self, blend: float) -> "HybridSearchConfig":
        """
        Map a single slider value onto both weights.

        blend=0 is pure keyword, blend=1 balanced, blend=2 pure semantic.

        Raises:
            ValueError: If blend is outside [0, 2]
        """
        if not MIN_BLEND <= blend <= MAX_BLEND:
            raise ValueError(f"blend must be between {MIN_BLEND} and {MAX_BLEND}, got {blend}")
        return replace(self, vector_weight=blend, text_weight=MAX_BLEND - blend)

    def with_weights(self, vector_weight: float, text_weight: float) -> "HybridSearchConfig":
        return replace(self, vector_weight=vector_weight, text_weight=text_weight)

    def with_limit(self, limit: int) -> "HybridSearchConfig":
        return replace(self, limit=limit)
