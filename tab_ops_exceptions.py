"""
Tab Operations Exceptions

This module defines custom exceptions for the tab_ops package
to provide clear error handling and reporting.
"""

from typing import Optional


class TabOpsError(Exception):
    """Base exception for all tab_ops errors"""
    pass


class ConfigurationError(TabOpsError):
    """Raised when configuration is invalid or missing"""
    pass


class ValidationError(TabOpsError):
    """
    Raised when caller input is malformed (missing id, empty tab list, bad weights).

    Validation errors are never retried and surface to the caller as a
    4xx-equivalent outcome.
    """
    pass


class PersistenceError(TabOpsError):
    """Raised when the persistence collaborator fails"""
    pass


class OperationTimeoutError(TabOpsError):
    """Raised when an operation times out"""
    pass


class CircuitOpenError(TabOpsError):
    """Raised when a circuit breaker rejects a call without invoking it"""

    def __init__(self, message: str = "Circuit breaker is open - service temporarily unavailable"):
        super().__init__(message)


class ProviderError(TabOpsError):
    """
    Raised when an external provider (content, screenshot, AI, embedding) fails.

    Attributes:
        status_code: HTTP-equivalent status code when the provider reported one
        transient: Whether the failure is worth retrying
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        transient: bool = True
    ):
        super().__init__(message)
        self.status_code = status_code
        self.transient = transient

    @classmethod
    def from_status(cls, message: str, status_code: int) -> "ProviderError":
        """
        Build the right provider error for an HTTP status code.

        429 maps to QuotaExceededError, other 4xx codes are permanent,
        5xx codes are transient.
        """
        if status_code == 429:
            return QuotaExceededError(message, status_code=status_code)
        if 400 <= status_code < 500:
            return cls(message, status_code=status_code, transient=False)
        return cls(message, status_code=status_code, transient=True)


class InvalidUrlError(ProviderError):
    """Raised when a URL is malformed or its host cannot be resolved"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code, transient=False)


class QuotaExceededError(ProviderError):
    """Raised when a provider reports quota exhaustion or rate limiting"""

    def __init__(self, message: str, status_code: Optional[int] = 429):
        super().__init__(message, status_code=status_code, transient=False)


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its timeout"""

    def __init__(self, message: str):
        super().__init__(message, status_code=None, transient=True)
