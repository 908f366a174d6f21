"""
Fallback Module

This module provides graceful degradation for hybrid search: when the
lexical index is unavailable, a naive case-insensitive substring match over
the owner's tabs stands in for it, and the response is flagged as
"keyword" mode.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

from persistence_operations.models.entities import TabRecord
from ....core.base import RankedHit

logger = logging.getLogger(__name__)

FALLBACK_FIELDS = ("title", "summary", "url", "domain")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _sort_key(tab: TabRecord):
    added = tab.date_added or _EPOCH
    if added.tzinfo is None:
        added = added.replace(tzinfo=timezone.utc)
    return (-added.timestamp(), tab.id)


def keyword_fallback(tabs: Iterable[TabRecord], query: str, limit: int) -> List[RankedHit]:
    """
    Substring match over title, summary, url and domain.

    Args:
        tabs: Candidate tabs (already owner-scoped)
        query: Raw query text
        limit: Maximum number of hits

    Returns:
        Matching non-discarded tabs, newest first, each scored 1.0
    """
    needle = (query or "").strip().lower()
    if not needle or limit <= 0:
        return []

    matches = [
        tab for tab in tabs
        if not tab.is_discarded and any(
            needle in (getattr(tab, name) or "").lower() for name in FALLBACK_FIELDS
        )
    ]
    matches.sort(key=_sort_key)

    logger.info(f"Keyword fallback returned {min(len(matches), limit)} results")
    return [RankedHit(tab_id=tab.id, score=1.0) for tab in matches[:limit]]


class FallbackManager:
    """
    Manager for tracking fallback operations.

    This class maintains statistics about fallback occurrences and
    whether the engine is currently operating degraded.
    """

    def __init__(self, enable_fallback: bool = True):
        """
        Initialize fallback manager.

        Args:
            enable_fallback: Whether the keyword fallback may be used
        """
        self.enable_fallback = enable_fallback
        self.fallback_count = 0
        self.total_operations = 0
        self.degraded_state = False

    def record_operation(self, used_fallback: bool) -> None:
        self.total_operations += 1
        if used_fallback:
            self.fallback_count += 1
            self.degraded_state = True
            logger.warning(
                f"Operating in degraded keyword mode - "
                f"fallback rate: {self.get_fallback_rate():.2%}"
            )
        else:
            self.degraded_state = False

    def get_fallback_rate(self) -> float:
        """
        Get the rate of fallback operations.

        Returns:
            Fallback rate as a float between 0 and 1
        """
        if self.total_operations == 0:
            return 0.0
        return self.fallback_count / self.total_operations

    def is_degraded(self) -> bool:
        return self.degraded_state

    def get_stats(self) -> Dict[str, Any]:
        """
        Get fallback statistics.

        Returns:
            Dictionary with fallback statistics
        """
        return {
            "enable_fallback": self.enable_fallback,
            "fallback_count": self.fallback_count,
            "total_operations": self.total_operations,
            "fallback_rate": self.get_fallback_rate(),
            "degraded_state": self.degraded_state
        }
