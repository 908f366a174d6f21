"""
Enrichment Operations Module

This module turns raw saved URLs into searchable tabs:
- Screenshot, content extraction, summarization/categorization and embedding stages
- Per-stage retry policies, timeouts and optional circuit breakers
- Soft failures: a failed stage leaves its fields unset without failing the tab
- Chunked batch orchestration with bounded concurrency and pacing
- Background worker pool returning futures for batch reports
- Embedding backfill and coverage statistics

Typical usage from external projects:

    from enrichment_operations import BatchOrchestrator, EnrichmentPipeline, ProcessType

    pipeline = EnrichmentPipeline(repository, content_provider=extractor, embedding_provider=provider)
    report = await BatchOrchestrator(pipeline).process_batch(["t1"], "user_001", ProcessType.FULL)
"""

from .enrichment_exceptions import (
    EnrichmentError,
    StageError,
    BatchValidationError,
    ContentExtractionError,
    ScreenshotCaptureError,
    AIProviderError,
)
from .models import (
    Stage,
    ProcessType,
    OutcomeStatus,
    StageFlags,
    TabOutcome,
    BatchReport,
)
from .providers import (
    AIProvider,
    ContentProvider,
    ScreenshotProvider,
    ScreenshotStore,
    NullScreenshotStore,
    ExtractedContent,
    ScreenshotSet,
    SummaryResult,
    HttpContentExtractor,
    HttpScreenshotProvider,
    GeminiAIProvider,
    CATEGORIES,
)
from .core import (
    EnrichmentPipeline,
    BatchOrchestrator,
    EnrichmentWorkerPool,
    clean_text_content,
    describe_url,
    generate_embedding_text,
)

__all__ = [
    # Exceptions
    "EnrichmentError",
    "StageError",
    "BatchValidationError",
    "ContentExtractionError",
    "ScreenshotCaptureError",
    "AIProviderError",

    # Models
    "Stage",
    "ProcessType",
    "OutcomeStatus",
    "StageFlags",
    "TabOutcome",
    "BatchReport",

    # Providers
    "AIProvider",
    "ContentProvider",
    "ScreenshotProvider",
    "ScreenshotStore",
    "NullScreenshotStore",
    "ExtractedContent",
    "ScreenshotSet",
    "SummaryResult",
    "HttpContentExtractor",
    "HttpScreenshotProvider",
    "GeminiAIProvider",
    "CATEGORIES",

    # Services
    "EnrichmentPipeline",
    "BatchOrchestrator",
    "EnrichmentWorkerPool",
    "clean_text_content",
    "describe_url",
    "generate_embedding_text",
]
