"""
Embedding Providers

Abstract embedding interface and the Gemini implementation.
"""

from .embedding import EmbeddingProvider, EmbeddingResult, TaskType, task_label
from .gemini_embedding import GeminiEmbeddingProvider, DimensionMismatchError

__all__ = [
    "EmbeddingProvider",
    "EmbeddingResult",
    "TaskType",
    "task_label",
    "GeminiEmbeddingProvider",
    "DimensionMismatchError",
]
