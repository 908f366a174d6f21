from .embedding_cache import EmbeddingCache, CacheEntry, normalize_query_text

__all__ = ["EmbeddingCache", "CacheEntry", "normalize_query_text"]
