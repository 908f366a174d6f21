"""
Gemini Embedding Provider

This module provides a concrete implementation of the EmbeddingProvider
interface for Google's Gemini models.
"""

import asyncio
import os
import time
import logging
from typing import List, Optional, Union

import numpy as np
import google.generativeai as genai
from dotenv import load_dotenv

from tab_ops_exceptions import ConfigurationError, QuotaExceededError
from utils.rate_limiter import ProviderRateLimiters
from .embedding import EmbeddingProvider, EmbeddingResult, TaskType, task_label
from ..core.search_ops_exceptions import EmbeddingGenerationError

# Load environment variables from a .env file
load_dotenv()

logger = logging.getLogger(__name__)


class DimensionMismatchError(ValueError):
    """Custom exception for embedding dimension mismatches."""
    pass


def _is_quota_error(error: Exception) -> bool:
    message = str(error).lower()
    return "429" in message or "quota" in message or "resource exhausted" in message or "rate limit" in message


class GeminiEmbeddingProvider(EmbeddingProvider):
    """
    An implementation of EmbeddingProvider that uses the Gemini API.

    Document and query embeddings are produced with different task labels;
    vectors are normalized to unit length so cosine distance is meaningful.
    """

    def __init__(
        self,
        model_name: str = "gemini-embedding-001",
        output_dimensionality: int = 768,
        api_key: Optional[str] = None,
        rate_limiters: Optional[ProviderRateLimiters] = None
    ):
        """
        Initialize the Gemini embedding provider.

        Args:
            model_name: The name of the Gemini embedding model to use.
            output_dimensionality: The desired dimension of the output embeddings.
            api_key: The Gemini API key. If not provided, it will be
                     loaded from the GEMINI_API_KEY environment variable.
            rate_limiters: Optional provider quotas; the "embeddings" bucket is used.
        """
        self._model_name = model_name
        self._output_dimensionality = output_dimensionality
        self._rate_limiters = rate_limiters

        gemini_api_key = api_key or os.getenv("GEMINI_API_KEY")
        if not gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY not found in environment variables or provided directly.")

        genai.configure(api_key=gemini_api_key)

    async def embed(self, text: str, task: Union[TaskType, str] = TaskType.RETRIEVAL_DOCUMENT) -> List[float]:
        result = await self.generate_embeddings([text], task)
        return result.embedding  # type: ignore[return-value]

    async def generate_embeddings(
        self,
        texts: List[str],
        task: Union[TaskType, str] = TaskType.RETRIEVAL_DOCUMENT
    ) -> EmbeddingResult:
        """
        Generate embeddings for a batch of texts.

        Args:
            texts: A list of texts to generate embeddings for.
            task: Task label passed to the model.

        Returns:
            An EmbeddingResult containing the generated embeddings.

        Raises:
            QuotaExceededError: If the API reports quota exhaustion.
            EmbeddingGenerationError: If the embedding generation fails.
        """
        if not texts or not all(t and t.strip() for t in texts):
            raise EmbeddingGenerationError("Cannot embed empty text")

        if self._rate_limiters is not None:
            await self._rate_limiters.acquire("embeddings")

        start_time = time.time()
        try:
            result = await asyncio.to_thread(
                genai.embed_content,
                model=self._model_name,
                content=texts if len(texts) > 1 else texts[0],
                task_type=task_label(task),
                output_dimensionality=self._output_dimensionality
            )
        except Exception as e:
            if _is_quota_error(e):
                raise QuotaExceededError(f"Gemini embedding quota exceeded: {e}") from e
            raise EmbeddingGenerationError(f"Gemini embedding generation failed: {e}") from e

        embeddings = result['embedding']
        if not isinstance(embeddings[0], list):  # single text case
            embeddings = [embeddings]

        embeddings = self._normalize_embeddings(embeddings)
        for emb in embeddings:
            if len(emb) != self._output_dimensionality:
                raise DimensionMismatchError(
                    f"Expected dimension {self._output_dimensionality}, but got {len(emb)}"
                )

        processing_time_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Gemini embedded {len(texts)} text(s) with task {task_label(task)} "
            f"in {processing_time_ms:.1f}ms"
        )

        return EmbeddingResult(
            embedding=embeddings if len(texts) > 1 else embeddings[0],
            dimension=self._output_dimensionality,
            model_name=self._model_name,
            processing_time_ms=processing_time_ms,
            is_batch=len(texts) > 1
        )

    def get_dimension(self) -> int:
        return self._output_dimensionality

    def get_model_name(self) -> str:
        """Get the name of the embedding model."""
        return self._model_name

    def _normalize_embeddings(self, embeddings: List[List[float]]) -> List[List[float]]:
        """Normalize embeddings to unit length."""
        normed_embeddings = []
        for emb in embeddings:
            np_emb = np.asarray(emb, dtype=float)
            norm = np.linalg.norm(np_emb)
            if norm == 0:
                normed_embeddings.append(list(emb))
            else:
                normed_embeddings.append((np_emb / norm).tolist())
        return normed_embeddings
