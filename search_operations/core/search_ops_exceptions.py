"""
Search Operations Exceptions

This module defines custom exceptions for tab search operations,
providing clear error handling and reporting for search-related issues.
"""

from tab_ops_exceptions import TabOpsError, ValidationError


class SearchError(TabOpsError):
    """Base exception for all search-related errors"""
    pass


class InvalidSearchParametersError(SearchError, ValidationError):
    """Raised when search parameters are invalid"""
    pass


class EmbeddingGenerationError(SearchError):
    """Raised when embedding generation fails"""
    pass


class VectorSearchError(SearchError):
    """Raised when the vector index query fails"""
    pass


class LexicalIndexUnavailableError(SearchError):
    """Raised when the index backing lexical search cannot be queried at all"""
    pass


class FusionError(SearchError):
    """Raised when result fusion fails"""
    pass


class HybridSearchError(SearchError):
    """Raised when a hybrid search cannot produce any response"""
    pass
