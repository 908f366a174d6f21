"""
Validation Module

This module provides parameter validation and query sanitization utilities
for hybrid search operations.
"""

import logging
from typing import Optional

from ....core.search_ops_exceptions import InvalidSearchParametersError
from ....config.hybrid import HybridSearchConfig

logger = logging.getLogger(__name__)


def validate_search_params(
    owner_id: str,
    config: HybridSearchConfig,
    max_limit: int = 100
) -> None:
    """
    Validate search parameters for hybrid search operations.

    Args:
        owner_id: Owner scope of the search
        config: Hybrid search configuration
        max_limit: Largest accepted result limit

    Raises:
        InvalidSearchParametersError: If any parameter is invalid
    """
    if not owner_id or not owner_id.strip():
        raise InvalidSearchParametersError("Owner scope cannot be empty")

    if config.limit <= 0:
        raise InvalidSearchParametersError(f"limit must be positive, got {config.limit}")

    if config.limit > max_limit:
        raise InvalidSearchParametersError(
            f"limit exceeds maximum ({max_limit}), got {config.limit}"
        )

    validate_fusion_weights(config.vector_weight, config.text_weight)

    logger.debug(f"Search parameters validated for owner: {owner_id}")


def validate_fusion_weights(vector_weight: float, text_weight: float) -> None:
    """
    Validate fusion weights for result combination.

    Raises:
        InvalidSearchParametersError: If weights are invalid
    """
    if vector_weight < 0 or text_weight < 0:
        raise InvalidSearchParametersError(
            f"Weights must be non-negative, got vector_weight={vector_weight}, "
            f"text_weight={text_weight}"
        )

    if vector_weight == 0 and text_weight == 0:
        raise InvalidSearchParametersError("At least one weight must be positive")


def sanitize_query(query: Optional[str], max_length: int = 1000) -> str:
    """
    Sanitize query string to remove control characters and enforce length limits.

    This function drops control characters, collapses whitespace and caps
    the length. A blank query sanitizes to "" (the analyzer then disables
    every channel).

    Args:
        query: Raw query string
        max_length: Maximum allowed query length

    Returns:
        Sanitized query string
    """
    if not query:
        return ""

    sanitized = "".join(char for char in query if ord(char) >= 32 or char in "\n\t")
    sanitized = " ".join(sanitized.split())

    if len(sanitized) > max_length:
        logger.warning(
            f"Query truncated from {len(sanitized)} to {max_length} characters"
        )
        sanitized = sanitized[:max_length]

    return sanitized
