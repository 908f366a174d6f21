"""
Enrichment Provider Interfaces

This module defines the abstract collaborators the enrichment pipeline
consumes. Every provider is treated as potentially slow and unreliable:
the pipeline wraps each call in a timeout and a retry policy.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ExtractedContent:
    """Main text and title extracted from a page."""
    title: Optional[str] = None
    content: str = ""

    @property
    def has_content(self) -> bool:
        return bool(self.content and self.content.strip())


@dataclass
class ScreenshotSet:
    """
    Image URLs produced for one page.

    `preview` is stored as the tab's screenshot, `thumbnail` as its thumbnail
    and `full_height` as the full-page capture.
    """
    thumbnail: Optional[str] = None
    preview: Optional[str] = None
    full_height: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.thumbnail or self.preview or self.full_height)


@dataclass
class SummaryResult:
    summary: str
    tags: List[str] = field(default_factory=list)


class ContentProvider(ABC):
    """Fetches a page and extracts its readable content."""

    @abstractmethod
    async def extract_page_content(self, url: str) -> ExtractedContent:
        """
        Fetch and extract the main content of a page.

        Raises:
            ContentExtractionError: If the page cannot be fetched or parsed
            InvalidUrlError: If the URL is malformed or the host is unknown
        """
        pass


class ScreenshotProvider(ABC):
    """Renders a page into screenshot images."""

    @abstractmethod
    async def capture_screenshots(self, url: str) -> ScreenshotSet:
        pass


class AIProvider(ABC):
    """Generates summaries, tags and categories for page content."""

    @abstractmethod
    async def summarize(self, url: str, content: str) -> SummaryResult:
        pass

    @abstractmethod
    async def categorize(self, url: str, content: str) -> str:
        pass


class ScreenshotStore(ABC):
    """
    Durable storage for captured images.

    `save` returns the public URL of the stored image, or None when the store
    declines it; the caller then keeps the original data URL.
    """

    @abstractmethod
    async def save(self, key: str, data_url: str) -> Optional[str]:
        pass


class NullScreenshotStore(ScreenshotStore):
    """Store that keeps nothing, so data URLs are kept on the tab as-is."""

    async def save(self, key: str, data_url: str) -> Optional[str]:
        return None
