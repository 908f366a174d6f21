"""
Embedding Cache

Bounded in-memory cache mapping (normalized query text, task label) to an
embedding vector, with least-recently-used eviction and hit/miss accounting.
Keeps repeated searches from paying the embedding provider's latency.

The cache is an explicitly constructed instance owned by the search engine;
all state changes happen under one asyncio lock.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Union

from ..providers.embedding import TaskType, task_label

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, str]
ComputeFn = Callable[[str, str], Awaitable[List[float]]]


@dataclass
class CacheEntry:
    """Cached embedding vector plus the time it was written."""
    vector: List[float]
    created_at: float


def normalize_query_text(text: str) -> str:
    """Lower-case and trim so equivalent queries share one cache entry."""
    return text.strip().lower()


def _consume_exception(future: "asyncio.Future[List[float]]") -> None:
    # Waiters may all be gone; keep asyncio from logging an unretrieved error
    if not future.cancelled():
        future.exception()


class EmbeddingCache:
    """
    LRU cache for query embeddings.

    Features:
    - `get_or_compute()` only calls the provider on a miss
    - Capacity bound enforced after every insertion
    - Optional max age (stale entries count as misses)
    - Concurrent misses on one key share a single computation
    - Failed computations are never cached

    Example:
        ```python
        cache = EmbeddingCache(max_size=1000)
        vector = await cache.get_or_compute("Stripe docs", TaskType.RETRIEVAL_QUERY, provider.embed)
        print(cache.get_stats())
        ```
    """

    def __init__(
        self,
        max_size: int = 1000,
        max_age_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize the embedding cache.

        Args:
            max_size: Maximum number of entries kept
            max_age_seconds: Entries older than this are recomputed (None = never)
            clock: Time source, in seconds
        """
        if max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {max_size}")

        self.max_size = max_size
        self.max_age_seconds = max_age_seconds
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._pending: Dict[CacheKey, "asyncio.Future[List[float]]"] = {}
        self._lock = asyncio.Lock()

        logger.info(f"EmbeddingCache initialized - capacity: {max_size}")

    @staticmethod
    def make_key(text: str, task: Union[TaskType, str]) -> CacheKey:
        return normalize_query_text(text), task_label(task)

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if self.max_age_seconds is None:
            return True
        return self._clock() - entry.created_at <= self.max_age_seconds

    async def get(self, text: str, task: Union[TaskType, str]) -> Optional[List[float]]:
        """Return a cached vector and mark it recently used, or None."""
        key = self.make_key(text, task)
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None or not self._is_fresh(entry):
                return None
            self._entries.move_to_end(key)
            return entry.vector

    async def put(self, text: str, task: Union[TaskType, str], vector: List[float]) -> None:
        """Store a fully computed vector, evicting least-recently-used entries."""
        key = self.make_key(text, task)
        async with self._lock:
            self._store(key, vector)

    def _store(self, key: CacheKey, vector: List[float]) -> None:
        self._entries[key] = CacheEntry(vector=list(vector), created_at=self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"EmbeddingCache evicted entry for task {evicted[1]}")

    async def get_or_compute(
        self,
        text: str,
        task: Union[TaskType, str],
        compute_fn: ComputeFn
    ) -> List[float]:
        """
        Return the cached vector for (text, task), computing it on a miss.

        Args:
            text: Query text (normalized for the key, passed unchanged to compute_fn)
            task: Embedding task label
            compute_fn: Async callable (text, task) -> vector, usually the provider

        Returns:
            Embedding vector

        Raises:
            Exception: Whatever compute_fn raised; nothing is cached in that case
        """
        key = self.make_key(text, task)
        owner = False
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_fresh(entry):
                self._entries.move_to_end(key)
                self._hits += 1
                logger.debug("EmbeddingCache hit")
                return entry.vector
            if entry is not None:
                del self._entries[key]

            pending = self._pending.get(key)
            if pending is not None:
                self._hits += 1
                logger.debug("EmbeddingCache joined in-flight computation")
            else:
                self._misses += 1
                pending = asyncio.get_running_loop().create_future()
                pending.add_done_callback(_consume_exception)
                self._pending[key] = pending
                owner = True

        if not owner:
            return list(await asyncio.shield(pending))

        try:
            vector = await compute_fn(text, key[1])
        except asyncio.CancelledError:
            self._pending.pop(key, None)
            pending.cancel()
            raise
        except Exception as e:
            self._pending.pop(key, None)
            pending.set_exception(e)
            raise

        # No await between storing and resolving, so waiters always see a result
        self._store(key, vector)
        self._pending.pop(key, None)
        pending.set_result(list(vector))
        return vector

    async def evict_older_than(self, max_age_seconds: float = 24 * 3600) -> int:
        """
        Remove entries older than `max_age_seconds`.

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - max_age_seconds
        async with self._lock:
            stale = [key for key, entry in self._entries.items() if entry.created_at < cutoff]
            for key in stale:
                del self._entries[key]
        if stale:
            logger.info(f"EmbeddingCache evicted {len(stale)} entries older than {max_age_seconds}s")
        return len(stale)

    async def clear(self) -> None:
        """Drop every entry and reset hit/miss counters."""
        async with self._lock:
            self._entries.clear()
            self._hits = 0
            self._misses = 0
        logger.info("EmbeddingCache cleared")

    def entries(self) -> List[Dict[str, Any]]:
        """Debug listing of cached keys, most recently used last."""
        now = self._clock()
        return [
            {"text": key[0], "task": key[1], "age_seconds": round(now - entry.created_at, 1)}
            for key, entry in self._entries.items()
        ]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with hits, misses, size, capacity and hit rate
        """
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "capacity": self.max_size,
            "hit_rate": round(self._hits / total, 3) if total else 0.0
        }

    def __len__(self) -> int:
        return len(self._entries)
