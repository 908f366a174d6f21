"""
Shared fixtures and fakes.

Providers and indexes are replaced by small in-process fakes so no test
touches the network.
"""

import asyncio
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest

from enrichment_operations.providers.base import (
    AIProvider,
    ContentProvider,
    ExtractedContent,
    ScreenshotProvider,
    ScreenshotSet,
    SummaryResult,
)
from persistence_operations import InMemoryTabRepository, TabRecord, TabStatus
from search_operations.core.search_ops_exceptions import LexicalIndexUnavailableError
from search_operations.indexes.base import LexicalIndex, TextMatch
from search_operations.providers.embedding import EmbeddingProvider


def make_tab(tab_id: str, **fields) -> TabRecord:
    fields.setdefault("owner_id", "user_001")
    fields.setdefault("url", f"https://example.com/{tab_id}")
    return TabRecord(id=tab_id, **fields)


def sample_tabs() -> List[TabRecord]:
    return [
        make_tab(
            "stripe",
            url="https://stripe.com/docs/payments",
            title="Stripe Payments Docs",
            domain="stripe.com",
            summary="Online payment processing for internet businesses",
            category="finance",
            embedding=[1.0, 0.0, 0.0],
            date_added=datetime(2024, 1, 5, tzinfo=timezone.utc),
        ),
        make_tab(
            "paypal",
            url="https://www.paypal.com",
            title="PayPal",
            domain="paypal.com",
            summary="Send money and pay online",
            category="finance",
            embedding=[0.8, 0.6, 0.0],
            date_added=datetime(2024, 1, 4, tzinfo=timezone.utc),
        ),
        make_tab(
            "github",
            url="https://github.com/docs/api",
            title="GitHub REST API",
            domain="github.com",
            summary="Developer documentation for the GitHub API",
            category="technology",
            embedding=[0.0, 1.0, 0.0],
            date_added=datetime(2024, 1, 3, tzinfo=timezone.utc),
        ),
        make_tab(
            "recipes",
            url="https://cooking.example.com/pasta",
            title="Pasta recipes",
            domain="cooking.example.com",
            summary="Italian cooking ideas",
            category="other",
            embedding=[0.0, 0.0, 1.0],
            date_added=datetime(2024, 1, 2, tzinfo=timezone.utc),
        ),
        make_tab(
            "trash",
            url="https://stripe-clone.example.com",
            title="Stripe clone",
            domain="stripe-clone.example.com",
            status=TabStatus.DISCARDED,
            embedding=[1.0, 0.0, 0.0],
            date_added=datetime(2024, 1, 6, tzinfo=timezone.utc),
        ),
        make_tab(
            "other-owner",
            owner_id="user_002",
            url="https://stripe.com/pricing",
            title="Stripe pricing",
            embedding=[1.0, 0.0, 0.0],
        ),
    ]


class FakeEmbeddingProvider(EmbeddingProvider):
    """Returns vectors from a lookup table; unknown texts map to `default`."""

    def __init__(
        self,
        vectors: Optional[Dict[str, List[float]]] = None,
        default: Optional[List[float]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0
    ):
        self.vectors = vectors or {}
        self.default = default or [0.0, 0.0, 1.0]
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []

    async def embed(self, text, task="RETRIEVAL_DOCUMENT"):
        self.calls.append((text, task))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.vectors.get(text, self.default))

    def get_dimension(self) -> int:
        return 3

    def get_model_name(self) -> str:
        return "fake-embedding"


class FailingLexicalIndex(LexicalIndex):
    def __init__(self):
        self.calls = 0

    async def query(self, text: str, owner_id: str, limit: int) -> List[TextMatch]:
        self.calls += 1
        raise LexicalIndexUnavailableError("full-text index offline")


class FakeContentProvider(ContentProvider):
    def __init__(self, title: Optional[str] = "Extracted title", content: str = "", error: Optional[Exception] = None,
                 delay: float = 0.0):
        self.title = title
        self.content = content or "Extracted page text about online payments. " * 5
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def extract_page_content(self, url: str) -> ExtractedContent:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ExtractedContent(title=self.title, content=self.content)


class FakeScreenshotProvider(ScreenshotProvider):
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[str] = []

    async def capture_screenshots(self, url: str) -> ScreenshotSet:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return ScreenshotSet(
            thumbnail="https://cdn.example.com/thumb.png",
            preview="https://cdn.example.com/thumb.png",
            full_height="https://cdn.example.com/full.png",
        )


class FakeAIProvider(AIProvider):
    def __init__(
        self,
        summary: str = "A concise page summary",
        tags: Optional[List[str]] = None,
        category: str = "finance",
        summarize_error: Optional[Exception] = None,
        categorize_error: Optional[Exception] = None
    ):
        self.summary = summary
        self.tags = tags if tags is not None else ["payments", "docs"]
        self.category = category
        self.summarize_error = summarize_error
        self.categorize_error = categorize_error
        self.summarize_inputs: List[str] = []
        self.categorize_inputs: List[str] = []

    async def summarize(self, url: str, content: str) -> SummaryResult:
        self.summarize_inputs.append(content)
        if self.summarize_error is not None:
            raise self.summarize_error
        return SummaryResult(summary=self.summary, tags=list(self.tags))

    async def categorize(self, url: str, content: str) -> str:
        self.categorize_inputs.append(content)
        if self.categorize_error is not None:
            raise self.categorize_error
        return self.category


class SleepRecorder:
    """Stand-in for asyncio.sleep that records delays without waiting."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def repository():
    return InMemoryTabRepository(sample_tabs())


@pytest.fixture
def no_sleep():
    return SleepRecorder()
