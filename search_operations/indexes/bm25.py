"""
BM25 Lexical Index

This module provides an in-memory BM25 (Best Matching 25) index over the
searchable tab fields (title, url, domain, summary, category), used by the
lexical search channel.
"""

import math
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Counter as CounterType, Dict, Any, List, Optional, Tuple
from collections import Counter

from persistence_operations.models.entities import TabRecord
from persistence_operations.repository import TabRepository
from ..config.bm25 import BM25Config
from ..core.search_ops_exceptions import LexicalIndexUnavailableError
from .base import LexicalIndex, TextMatch
from .text_analysis import TextAnalyzer

logger = logging.getLogger(__name__)

INDEXED_FIELDS = ("title", "url", "domain", "summary", "category")


@dataclass
class _IndexedDoc:
    owner_id: str
    discarded: bool
    term_freq: CounterType[str]
    length: int
    version: Optional[datetime]


class BM25TextIndex(LexicalIndex):
    """
    In-memory BM25 index.

    Documents are added with `index_tab()` or, when a repository is given,
    pulled from it before every query. Tokenized documents are cached by
    (tab id, updated_at) so unchanged tabs are not re-tokenized.

    Corpus statistics (document count, document frequency, average length)
    are computed within the querying owner's scope.
    """

    def __init__(
        self,
        repository: Optional[TabRepository] = None,
        config: Optional[BM25Config] = None
    ):
        """
        Initialize BM25 index.

        Args:
            repository: Optional source of tabs, synced before each query
            config: BM25 configuration (uses defaults if not provided)
        """
        self.config = config or BM25Config()
        self.analyzer = TextAnalyzer(self.config)
        self._repository = repository
        self._docs: Dict[str, _IndexedDoc] = {}
        self._tokenized = 0
        self._lock = asyncio.Lock()

        logger.info(
            f"BM25TextIndex initialized - "
            f"k1: {self.config.k1}, b: {self.config.b}, "
            f"stemming: {self.config.enable_stemming}"
        )

    def _document_text(self, tab: TabRecord) -> str:
        return " ".join(str(getattr(tab, name) or "") for name in INDEXED_FIELDS)

    def _build_doc(self, tab: TabRecord) -> _IndexedDoc:
        tokens = self.analyzer.tokenize(self._document_text(tab))
        self._tokenized += 1
        return _IndexedDoc(
            owner_id=tab.owner_id,
            discarded=tab.is_discarded,
            term_freq=Counter(tokens),
            length=len(tokens),
            version=tab.updated_at,
        )

    async def index_tab(self, tab: TabRecord) -> None:
        """Add or replace one tab."""
        doc = self._build_doc(tab)
        async with self._lock:
            self._docs[tab.id] = doc

    async def remove_tab(self, tab_id: str) -> None:
        async with self._lock:
            self._docs.pop(tab_id, None)

    async def _sync_owner(self, owner_id: str) -> None:
        """Bring this owner's documents in line with the repository."""
        try:
            tabs = await self._repository.list_tabs(owner_id)
        except Exception as e:
            raise LexicalIndexUnavailableError(f"Could not load tabs for lexical index: {e}") from e

        async with self._lock:
            seen = set()
            for tab in tabs:
                seen.add(tab.id)
                cached = self._docs.get(tab.id)
                if (
                    cached is None
                    or cached.version != tab.updated_at
                    or cached.discarded != tab.is_discarded
                ):
                    self._docs[tab.id] = self._build_doc(tab)
            stale = [
                tab_id for tab_id, doc in self._docs.items()
                if doc.owner_id == owner_id and tab_id not in seen
            ]
            for tab_id in stale:
                del self._docs[tab_id]

    def _calculate_idf(self, doc_freq: int, total_docs: int) -> float:
        """
        Calculate IDF (Inverse Document Frequency) for a term.

        Rare terms get higher scores, common terms get lower scores.
        """
        if self.config.idf_smoothing:
            # Smoothed IDF to avoid division by zero and negative values
            idf = math.log(1 + (total_docs - doc_freq + 0.5) / (doc_freq + 0.5))
        elif doc_freq == 0:
            idf = math.log(total_docs + 1)
        else:
            idf = math.log(total_docs / doc_freq)
        return max(idf, 0.0)

    def _calculate_bm25_score(self, term_freq: int, doc_length: int, avg_doc_length: float, idf: float) -> float:
        """
        Calculate BM25 score for a term.

        Combines term frequency saturation, document length normalization and IDF.
        """
        normalized_length = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
        numerator = term_freq * (self.config.k1 + 1)
        denominator = term_freq + self.config.k1 * (1 - self.config.b + self.config.b * normalized_length)
        return idf * (numerator / denominator)

    async def query(self, text: str, owner_id: str, limit: int) -> List[TextMatch]:
        """
        Score the owner's non-discarded tabs against `text`.

        Args:
            text: Raw query text
            owner_id: Owner scope
            limit: Maximum number of matches

        Returns:
            Matches with score > 0, best first (ties broken by tab id)

        Raises:
            LexicalIndexUnavailableError: If the backing repository fails
        """
        if self._repository is not None:
            await self._sync_owner(owner_id)

        query_terms = list(dict.fromkeys(self.analyzer.tokenize(text)))
        if not query_terms or limit <= 0:
            return []

        async with self._lock:
            scope: List[Tuple[str, _IndexedDoc]] = [
                (tab_id, doc) for tab_id, doc in self._docs.items()
                if doc.owner_id == owner_id and not doc.discarded
            ]

        if not scope:
            return []

        total_docs = len(scope)
        avg_doc_length = sum(doc.length for _, doc in scope) / total_docs
        doc_freq = {
            term: sum(1 for _, doc in scope if term in doc.term_freq)
            for term in query_terms
        }

        matches = []
        for tab_id, doc in scope:
            score = 0.0
            for term in query_terms:
                tf = doc.term_freq.get(term, 0)
                if tf:
                    idf = self._calculate_idf(doc_freq[term], total_docs)
                    score += self._calculate_bm25_score(tf, doc.length, avg_doc_length, idf)
            if score > 0:
                matches.append(TextMatch(tab_id=tab_id, score=score))

        matches.sort(key=lambda m: (-m.score, m.tab_id))

        logger.debug(
            f"BM25 query matched {len(matches)} of {total_docs} docs - "
            f"terms: {query_terms}"
        )

        return matches[:limit]

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the index.

        Returns:
            Dictionary containing document and tokenization counts
        """
        return {
            "doc_count": len(self._docs),
            "unique_terms": len({t for doc in self._docs.values() for t in doc.term_freq}),
            "tokenizations": self._tokenized,
        }
