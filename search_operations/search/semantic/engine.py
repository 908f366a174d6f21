"""
Vector Search Operations

This module provides the semantic (dense vector) search channel: given a
query embedding, return the caller's nearest tabs by cosine similarity.
"""

import time
import logging
from typing import List, Optional

from ...core.base import RankedHit
from ...indexes.base import VectorIndex

logger = logging.getLogger(__name__)


class VectorSearch:
    """
    Semantic search channel.

    Results are ordered by descending similarity (ascending distance),
    scoped to one owner, with discarded tabs excluded by the index.
    An unavailable embedding or an empty index yields an empty list.
    """

    def __init__(self, index: VectorIndex, max_distance: float = 0.7):
        """
        Args:
            index: Vector index to query
            max_distance: Cosine distance above which matches are dropped
        """
        self.index = index
        self.max_distance = max_distance

    async def search_by_vector(
        self,
        query_embedding: Optional[List[float]],
        owner_id: str,
        limit: int
    ) -> List[RankedHit]:
        """
        Return up to `limit` hits with similarity scores.

        Args:
            query_embedding: Query vector, or None when it could not be produced
            owner_id: Owner scope
            limit: Maximum number of hits

        Returns:
            Ranked hits, most similar first

        Raises:
            VectorSearchError: If the index query itself fails
        """
        if not query_embedding:
            logger.debug("No query embedding available - vector channel returns nothing")
            return []

        start_time = time.time()
        matches = await self.index.query(query_embedding, owner_id, limit, self.max_distance)
        hits = [RankedHit(tab_id=m.tab_id, score=m.similarity) for m in matches[:limit]]

        logger.debug(
            f"Vector search returned {len(hits)} hits in "
            f"{(time.time() - start_time) * 1000:.1f}ms"
        )
        return hits
