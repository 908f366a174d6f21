"""
Utilities Module

This module provides utility classes and functions for hybrid search operations,
including metrics tracking and validation utilities.
"""

from .metrics import SearchStatus, HybridSearchMetrics
from .validation import (
    validate_search_params,
    validate_fusion_weights,
    sanitize_query,
)

__all__ = [
    "SearchStatus",
    "HybridSearchMetrics",
    "validate_search_params",
    "validate_fusion_weights",
    "sanitize_query",
]
