"""
Lexical Search Operations

Term-relevance search channel backed by a lexical (BM25) index.
"""

import logging
from typing import List

from ...core.base import RankedHit
from ...indexes.base import LexicalIndex

logger = logging.getLogger(__name__)


class LexicalSearch:
    """
    Lexical search channel.

    Scores are BM25 relevance proxies: only their order and relative
    magnitude are meaningful.
    """

    def __init__(self, index: LexicalIndex):
        self.index = index

    async def search_by_text(self, query_text: str, owner_id: str, limit: int) -> List[RankedHit]:
        """
        Return up to `limit` hits ranked by relevance.

        Raises:
            LexicalIndexUnavailableError: If the index cannot be queried
        """
        if not query_text or not query_text.strip():
            return []

        matches = await self.index.query(query_text, owner_id, limit)
        hits = [RankedHit(tab_id=m.tab_id, score=m.score) for m in matches[:limit]]
        logger.debug(f"Lexical search returned {len(hits)} hits")
        return hits
