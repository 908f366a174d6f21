"""
Enrichment Operations Exceptions

This module defines custom exceptions for the enrichment pipeline and
its provider adapters.
"""

from typing import Optional

from tab_ops_exceptions import TabOpsError, ValidationError, ProviderError


class EnrichmentError(TabOpsError):
    """Base exception for all enrichment-related errors"""
    pass


class StageError(EnrichmentError):
    """
    Raised when one pipeline stage fails for one tab.

    Attributes:
        stage: Stage name (screenshot, content, ai, embedding)
        tab_id: Tab being processed
        cause: Underlying error
    """

    def __init__(self, stage: str, tab_id: str, cause: Optional[BaseException] = None):
        self.stage = stage
        self.tab_id = tab_id
        self.cause = cause
        super().__init__(f"{stage} stage failed for tab {tab_id}: {cause}")


class BatchValidationError(EnrichmentError, ValidationError):
    """Raised when a batch request is malformed (empty tab list, missing owner)"""
    pass


class ContentExtractionError(ProviderError):
    """Raised when page content cannot be fetched or extracted"""
    pass


class ScreenshotCaptureError(ProviderError):
    """Raised when the screenshot service fails"""
    pass


class AIProviderError(ProviderError):
    """Raised when summarization or categorization fails"""
    pass
