"""
Persistence Operations Module

Provides the persistence collaborator boundary for tab records:
- Typed tab records and optional-field partial updates
- Mapping from raw storage rows to typed records
- Abstract repository interface with partial-update semantics
- In-memory repository for tests and local wiring

Typical usage from external projects:

    from persistence_operations import InMemoryTabRepository, TabRecord

    repo = InMemoryTabRepository()
    await repo.add_tabs([TabRecord(id="t1", owner_id="u1", url="https://example.com")])
"""

from .models.entities import (
    TabRecord,
    TabStatus,
    TabUpdates,
    extract_domain,
    tab_from_row,
)
from .repository import TabRepository, InMemoryTabRepository

__all__ = [
    "TabRecord",
    "TabStatus",
    "TabUpdates",
    "extract_domain",
    "tab_from_row",
    "TabRepository",
    "InMemoryTabRepository",
]
