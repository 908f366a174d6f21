from .base import (
    AIProvider,
    ContentProvider,
    ExtractedContent,
    NullScreenshotStore,
    ScreenshotProvider,
    ScreenshotSet,
    ScreenshotStore,
    SummaryResult,
)
from .content import HttpContentExtractor
from .screenshot import HttpScreenshotProvider
from .gemini_ai import CATEGORIES, GeminiAIProvider, normalize_category, parse_summary_response

__all__ = [
    "AIProvider",
    "ContentProvider",
    "ExtractedContent",
    "NullScreenshotStore",
    "ScreenshotProvider",
    "ScreenshotSet",
    "ScreenshotStore",
    "SummaryResult",
    "HttpContentExtractor",
    "HttpScreenshotProvider",
    "CATEGORIES",
    "GeminiAIProvider",
    "normalize_category",
    "parse_summary_response",
]
