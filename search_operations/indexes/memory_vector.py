"""
In-Memory Vector Index

Brute-force cosine nearest-neighbour search with numpy over the tabs held
by a repository. Suitable for single-user corpora and tests.
"""

import logging
from typing import List

import numpy as np

from persistence_operations.repository import TabRepository
from .base import VectorIndex, VectorMatch

logger = logging.getLogger(__name__)


class InMemoryVectorIndex(VectorIndex):
    """
    Cosine-distance index reading embeddings straight from the repository,
    so a tab becomes searchable as soon as its embedding is written.
    """

    def __init__(self, repository: TabRepository):
        self._repository = repository

    async def query(
        self,
        embedding: List[float],
        owner_id: str,
        limit: int,
        max_distance: float = 0.7
    ) -> List[VectorMatch]:
        if not embedding or limit <= 0:
            return []

        tabs = [
            tab for tab in await self._repository.list_tabs(owner_id)
            if tab.has_embedding and not tab.is_discarded
        ]
        if not tabs:
            return []

        query_vec = np.asarray(embedding, dtype=float)
        query_norm = np.linalg.norm(query_vec)
        if query_norm == 0:
            return []

        matches = []
        for tab in tabs:
            vec = np.asarray(tab.embedding, dtype=float)
            if vec.shape != query_vec.shape:
                logger.warning(
                    f"Skipping tab {tab.id}: embedding dimension {vec.shape[0]}, "
                    f"query dimension {query_vec.shape[0]}"
                )
                continue
            norm = np.linalg.norm(vec)
            if norm == 0:
                continue
            distance = float(1.0 - np.dot(query_vec, vec) / (query_norm * norm))
            if distance <= max_distance:
                matches.append(VectorMatch(tab_id=tab.id, distance=distance))

        matches.sort(key=lambda m: (m.distance, m.tab_id))
        logger.debug(f"In-memory vector query kept {len(matches)} of {len(tabs)} embedded tabs")
        return matches[:limit]
