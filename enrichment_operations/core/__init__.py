from .text import clean_text_content, describe_url, generate_embedding_text
from .pipeline import EnrichmentPipeline
from .orchestrator import BatchOrchestrator, chunked
from .worker_pool import EnrichmentWorkerPool

__all__ = [
    "clean_text_content",
    "describe_url",
    "generate_embedding_text",
    "EnrichmentPipeline",
    "BatchOrchestrator",
    "chunked",
    "EnrichmentWorkerPool",
]
