"""
Resilience Module

Graceful degradation for hybrid search operations.
"""

from .fallback import keyword_fallback, FallbackManager

__all__ = [
    "keyword_fallback",
    "FallbackManager",
]
