"""
Embedding Provider Interface

This module defines the abstract interface every embedding backend implements,
together with the task labels used to distinguish document and query vectors.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Union


class TaskType(str, Enum):
    """Enumeration of supported embedding task labels."""
    RETRIEVAL_QUERY = "RETRIEVAL_QUERY"
    RETRIEVAL_DOCUMENT = "RETRIEVAL_DOCUMENT"
    SEMANTIC_SIMILARITY = "SEMANTIC_SIMILARITY"
    CLASSIFICATION = "CLASSIFICATION"
    CLUSTERING = "CLUSTERING"


def task_label(task: Union["TaskType", str]) -> str:
    """Return the plain string label for a task given as enum or string."""
    return task.value if isinstance(task, TaskType) else str(task)


@dataclass
class EmbeddingResult:
    """
    Result of an embedding call.

    Attributes:
        embedding: One vector, or a list of vectors for batch calls
        dimension: Vector dimensionality
        model_name: Model that produced the vectors
        processing_time_ms: Provider latency
        is_batch: Whether `embedding` holds several vectors
    """
    embedding: Union[List[float], List[List[float]]]
    dimension: int
    model_name: str
    processing_time_ms: float = 0.0
    is_batch: bool = False


class EmbeddingProvider(ABC):
    """
    Abstract embedding provider: given text and a task label, return a vector.
    """

    @abstractmethod
    async def embed(self, text: str, task: Union[TaskType, str] = TaskType.RETRIEVAL_DOCUMENT) -> List[float]:
        """
        Generate an embedding vector for one text.

        Args:
            text: Text to embed
            task: Task label (document vs query embeddings differ)

        Returns:
            Embedding vector

        Raises:
            EmbeddingGenerationError: If generation fails
        """
        pass

    @abstractmethod
    def get_dimension(self) -> int:
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        pass
