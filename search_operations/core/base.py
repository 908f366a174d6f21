"""
Base Search Operations

This module provides the result types shared by every search channel and
the abstract base class for search engines.
"""

from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional, TypeVar, Generic
from dataclasses import dataclass, field
from datetime import datetime

from persistence_operations.models.entities import TabRecord
from ..config.base import BaseSearchConfig, SearchMode

# Type variable for search configuration
T = TypeVar('T', bound=BaseSearchConfig)


@dataclass(frozen=True)
class RankedHit:
    """One channel's hit: tab id plus that channel's own relevance score."""
    tab_id: str
    score: float


def generate_content_excerpt(content: Optional[str], query: str, max_length: int = 200) -> str:
    """
    Build a short excerpt of `content`, centered on the query when it occurs.

    Args:
        content: Extracted page text
        query: Query text to locate
        max_length: Excerpt length when the query is not found

    Returns:
        Excerpt with "..." marking truncated ends
    """
    if not content or len(content) <= max_length:
        return content or ""

    index = content.lower().find(query.lower()) if query else -1
    if index == -1:
        return content[:max_length] + "..."

    start = max(0, index - 50)
    end = min(len(content), index + len(query) + 150)
    excerpt = content[start:end]
    if start > 0:
        excerpt = "..." + excerpt
    if end < len(content):
        excerpt = excerpt + "..."
    return excerpt


@dataclass
class TabSummary:
    """
    A search hit as returned to the caller.

    `vector_rank` and `text_rank` are the 0-based positions in each channel,
    or None when the tab did not appear there.
    """
    id: str
    url: str
    title: Optional[str]
    domain: Optional[str]
    summary: Optional[str]
    category: Optional[str]
    tags: List[str]
    screenshot_url: Optional[str]
    status: str
    date_added: datetime
    score: float
    vector_rank: Optional[int] = None
    text_rank: Optional[int] = None
    excerpt: str = ""

    @classmethod
    def from_tab(
        cls,
        tab: TabRecord,
        score: float,
        vector_rank: Optional[int] = None,
        text_rank: Optional[int] = None,
        query: str = ""
    ) -> "TabSummary":
        return cls(
            id=tab.id,
            url=tab.url,
            title=tab.title,
            domain=tab.domain,
            summary=tab.summary,
            category=tab.category,
            tags=list(tab.tags),
            screenshot_url=tab.thumbnail_url or tab.screenshot_url,
            status=tab.status.value,
            date_added=tab.date_added,
            score=score,
            vector_rank=vector_rank,
            text_rank=text_rank,
            excerpt=generate_content_excerpt(tab.content, query),
        )

    def to_dict(self) -> Dict[str, Any]:
        """External camelCase shape."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "domain": self.domain or "",
            "summary": self.summary or "",
            "category": self.category or "uncategorized",
            "tags": self.tags,
            "screenshot": self.screenshot_url,
            "status": self.status,
            "dateAdded": self.date_added.isoformat(),
            "score": round(self.score, 6),
            "vectorRank": self.vector_rank,
            "textRank": self.text_rank,
            "excerpt": self.excerpt,
        }


@dataclass
class SearchResponse:
    """
    Result of a search operation.

    This class encapsulates the ranked summaries and metadata
    about the search operation.
    """
    results: List[TabSummary]
    search_mode: SearchMode = SearchMode.HYBRID
    took_ms: float = 0.0
    analysis: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_hits(self) -> int:
        return len(self.results)

    @property
    def ids(self) -> List[str]:
        return [r.id for r in self.results]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "searchMode": self.search_mode.value,
            "tookMs": round(self.took_ms, 2),
        }


class BaseSearch(Generic[T], ABC):
    """
    Abstract base class for search engines.

    This class defines the common interface for engines that answer a
    query within one owner's scope.
    """

    @abstractmethod
    async def search(
        self,
        query: str,
        owner_id: str,
        config: Optional[T] = None
    ) -> SearchResponse:
        """
        Perform search operation.

        Args:
            query: Query text
            owner_id: Owner scope; only this owner's tabs are considered
            config: Search configuration (engine default when omitted)

        Returns:
            SearchResponse with ranked summaries and metadata

        Raises:
            InvalidSearchParametersError: If the request is malformed
        """
        pass
