"""
Index Interfaces

Abstract vector and lexical indexes the search channels query. Both are
owner-scoped and never return discarded tabs.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List

from persistence_operations.models.entities import TabRecord


@dataclass(frozen=True)
class VectorMatch:
    """Nearest-neighbour match; `distance` is cosine distance (0 = identical)."""
    tab_id: str
    distance: float

    @property
    def similarity(self) -> float:
        return 1.0 - self.distance


@dataclass(frozen=True)
class TextMatch:
    """Lexical match with a BM25-style relevance score (higher is better)."""
    tab_id: str
    score: float


class VectorIndex(ABC):
    """
    Nearest-neighbour index over tab embeddings.

    Tabs without an embedding are simply absent from results.
    """

    @abstractmethod
    async def query(
        self,
        embedding: List[float],
        owner_id: str,
        limit: int,
        max_distance: float = 0.7
    ) -> List[VectorMatch]:
        """
        Return up to `limit` matches ordered by ascending distance.

        Args:
            embedding: Query vector
            owner_id: Owner scope
            limit: Maximum number of matches
            max_distance: Matches farther than this are dropped

        Returns:
            List of VectorMatch, closest first
        """
        pass

    async def index_tab(self, tab: TabRecord) -> None:
        """Make a freshly embedded tab visible to queries. No-op by default."""
        return None

    async def remove_tab(self, tab_id: str) -> None:
        return None


class LexicalIndex(ABC):
    """Full-text index with relevance scoring."""

    @abstractmethod
    async def query(self, text: str, owner_id: str, limit: int) -> List[TextMatch]:
        """
        Return up to `limit` matches ordered by descending relevance.

        Raises:
            LexicalIndexUnavailableError: If the index cannot be queried at all
        """
        pass

    async def index_tab(self, tab: TabRecord) -> None:
        return None

    async def remove_tab(self, tab_id: str) -> None:
        return None
