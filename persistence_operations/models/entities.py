"""
Tab Entities

Defines Pydantic models for tab records and the partial updates the
enrichment pipeline applies to them, plus the mapping function used at the
persistence boundary to turn raw storage rows into typed records.

Typical usage from external projects:

    from persistence_operations import TabRecord, TabUpdates, tab_from_row

    tab = tab_from_row({"id": "t1", "user_id": "u1", "url": "https://stripe.com"})
    updates = TabUpdates(summary="Payments platform", category="finance")
    print(updates.as_fields())  # only the fields that were produced
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field


class TabStatus(str, Enum):
    """Review status of a tab. Discarded tabs never appear in search results."""
    UNPROCESSED = "unprocessed"
    KEPT = "kept"
    DISCARDED = "discarded"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_domain(url: str) -> str:
    """Return the host of a URL without a leading 'www.'."""
    if not url:
        return ""
    host = urlparse(url).hostname or ""
    return host[4:] if host.startswith("www.") else host


class TabRecord(BaseModel):
    """
    Durable tab record owned by the persistence layer.

    A tab is searchable by vector similarity only once `embedding` is set;
    it stays lexically searchable through its raw fields regardless.
    """
    model_config = ConfigDict(use_enum_values=False, validate_assignment=True)

    id: str = Field(..., description="Opaque tab identifier")
    owner_id: str = Field(..., description="Owner scope the tab belongs to")
    url: str
    title: Optional[str] = None
    domain: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    content: Optional[str] = Field(None, description="Extracted page text, capped length")
    screenshot_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    full_screenshot_url: Optional[str] = None
    embedding: Optional[List[float]] = None
    status: TabStatus = TabStatus.UNPROCESSED
    import_batch_id: Optional[str] = None
    date_added: datetime = Field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)

    @property
    def is_discarded(self) -> bool:
        return self.status == TabStatus.DISCARDED


class TabUpdates(BaseModel):
    """
    Partial set of fields produced by one enrichment run.

    Every field is optional; a field that was not produced is simply unset,
    so `as_fields()` only carries what a stage actually generated.
    """
    model_config = ConfigDict(validate_assignment=True)

    title: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    content: Optional[str] = None
    screenshot_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    full_screenshot_url: Optional[str] = None
    embedding: Optional[List[float]] = None

    def as_fields(self) -> Dict[str, Any]:
        """Fields explicitly set on this update, ready for a partial write."""
        return self.model_dump(exclude_unset=True)

    def is_empty(self) -> bool:
        return not self.model_fields_set


def _parse_tags(raw: Any) -> List[str]:
    """
    Normalize the tag shapes storage layers hand back.

    Accepts a JSON string, a list of strings, a list of {"name": ...} dicts,
    or a list of join rows shaped like {"tag": {"name": ...}}.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return []
        try:
            raw = json.loads(raw)
        except ValueError:
            return [part.strip() for part in raw.split(",") if part.strip()]
    tags: List[str] = []
    for item in raw if isinstance(raw, Sequence) else []:
        if isinstance(item, str):
            name = item
        elif isinstance(item, Mapping):
            nested = item.get("tag")
            name = nested.get("name") if isinstance(nested, Mapping) else item.get("name")
        else:
            name = None
        if name and name not in tags:
            tags.append(name)
    return tags


def _parse_embedding(raw: Any) -> Optional[List[float]]:
    if raw is None:
        return None
    if isinstance(raw, str):
        raw = json.loads(raw) if raw.strip() else None
        if raw is None:
            return None
    vector = [float(x) for x in raw]
    return vector or None


def _first(row: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in row and row[key] is not None:
            return row[key]
    return None


def tab_from_row(row: Mapping[str, Any]) -> TabRecord:
    """
    Map a raw storage row (snake_case or camelCase) to a TabRecord.

    Args:
        row: Row or document returned by the storage layer

    Returns:
        Typed TabRecord; the domain is derived from the URL when missing
    """
    url = _first(row, "url") or ""
    status = _first(row, "status") or TabStatus.UNPROCESSED.value
    record = TabRecord(
        id=str(_first(row, "id")),
        owner_id=str(_first(row, "owner_id", "user_id", "userId", "ownerId")),
        url=url,
        title=_first(row, "title"),
        domain=_first(row, "domain") or extract_domain(url) or None,
        summary=_first(row, "summary"),
        category=_first(row, "category"),
        tags=_parse_tags(_first(row, "tags")),
        content=_first(row, "content", "page_content", "pageContent"),
        screenshot_url=_first(row, "screenshot_url", "screenshotUrl"),
        thumbnail_url=_first(row, "thumbnail_url", "thumbnailUrl"),
        full_screenshot_url=_first(row, "full_screenshot_url", "fullScreenshotUrl"),
        embedding=_parse_embedding(_first(row, "embedding", "embedding_vector", "embeddingVector")),
        status=TabStatus(status),
        import_batch_id=_first(row, "import_batch_id", "importBatchId"),
        updated_at=_first(row, "updated_at", "updatedAt"),
    )
    date_added = _first(row, "date_added", "dateAdded", "created_at", "createdAt")
    if date_added is not None:
        record.date_added = date_added
    return record
