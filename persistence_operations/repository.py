"""
Tab Repository

Persistence collaborator interface consumed by the enrichment pipeline and the
search engine, plus an in-process implementation used by tests, local tools
and the default client wiring.

The persistence layer is the only writer of durable tab records. Callers never
assume exclusive ownership of a tab: an update that hits a tab deleted in the
meantime reports zero affected rows instead of raising.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from tab_ops_exceptions import ValidationError
from .models.entities import TabRecord, TabUpdates

logger = logging.getLogger(__name__)


class TabRepository(ABC):
    """Abstract persistence collaborator for tab records."""

    @abstractmethod
    async def get_tabs_by_ids(self, ids: List[str], owner_id: str) -> List[TabRecord]:
        """
        Fetch tabs by id, restricted to the owner scope.

        Unknown ids and tabs owned by someone else are silently skipped.
        """
        pass

    @abstractmethod
    async def update_tab(self, tab_id: str, updates: TabUpdates) -> int:
        """
        Apply a partial update to one tab.

        Args:
            tab_id: Tab to update
            updates: Fields produced by the caller; unset fields are untouched

        Returns:
            Number of rows affected (0 when the tab no longer exists or the
            update carried no fields)
        """
        pass

    @abstractmethod
    async def list_tabs(self, owner_id: str) -> List[TabRecord]:
        """Return every tab in the owner scope."""
        pass

    async def list_tabs_without_embeddings(self, owner_id: str, limit: int) -> List[TabRecord]:
        """Return up to `limit` tabs that still lack an embedding vector."""
        tabs = await self.list_tabs(owner_id)
        return [tab for tab in tabs if not tab.has_embedding][:limit]


class InMemoryTabRepository(TabRepository):
    """
    Dictionary-backed repository guarded by a single asyncio lock.

    Example:
        ```python
        repo = InMemoryTabRepository()
        await repo.add_tabs([TabRecord(id="t1", owner_id="u1", url="https://example.com")])
        await repo.update_tab("t1", TabUpdates(summary="Example domain"))
        ```
    """

    def __init__(self, tabs: Optional[Iterable[TabRecord]] = None):
        self._tabs: Dict[str, TabRecord] = {}
        self._lock = asyncio.Lock()
        self._update_calls = 0
        for tab in tabs or []:
            self._tabs[tab.id] = tab

    async def add_tabs(self, tabs: Iterable[TabRecord]) -> int:
        added = 0
        async with self._lock:
            for tab in tabs:
                if not tab.id:
                    raise ValidationError("Tab id cannot be empty")
                self._tabs[tab.id] = tab
                added += 1
        logger.debug(f"Stored {added} tabs")
        return added

    async def delete_tab(self, tab_id: str) -> bool:
        async with self._lock:
            return self._tabs.pop(tab_id, None) is not None

    async def get_tabs_by_ids(self, ids: List[str], owner_id: str) -> List[TabRecord]:
        async with self._lock:
            return [
                self._tabs[tab_id] for tab_id in ids
                if tab_id in self._tabs and self._tabs[tab_id].owner_id == owner_id
            ]

    async def update_tab(self, tab_id: str, updates: TabUpdates) -> int:
        fields = updates.as_fields()
        if not fields:
            return 0

        async with self._lock:
            self._update_calls += 1
            current = self._tabs.get(tab_id)
            if current is None:
                logger.debug(f"Update for tab {tab_id} affected 0 rows")
                return 0
            fields["updated_at"] = datetime.now(timezone.utc)
            self._tabs[tab_id] = current.model_copy(update=fields)
            return 1

    async def list_tabs(self, owner_id: str) -> List[TabRecord]:
        async with self._lock:
            return [tab for tab in self._tabs.values() if tab.owner_id == owner_id]

    def get(self, tab_id: str) -> Optional[TabRecord]:
        return self._tabs.get(tab_id)

    @property
    def update_calls(self) -> int:
        return self._update_calls

    def __len__(self) -> int:
        return len(self._tabs)
