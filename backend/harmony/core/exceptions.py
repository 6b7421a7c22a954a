"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class HarmonyError(Exception):
    """Base exception for harmony."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class NotFoundError(HarmonyError):
    """Resource not found."""

    pass


class DuplicateError(HarmonyError):
    """Duplicate resource detected."""

    pass


class ValidationError(HarmonyError):
    """Validation error."""

    pass


class LLMError(HarmonyError):
    """LLM-related error."""

    def __init__(self, message: str, reason: str = "unknown", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.reason = reason


class AuthenticationError(HarmonyError):
    """Authentication failed."""

    pass


class AuthorizationError(HarmonyError):
    """Authorization failed."""

    pass


class InfrastructureError(HarmonyError):
    """Infrastructure-related error (realtime database, local store, etc.)."""

    pass


class StoreUnavailableError(InfrastructureError):
    """The remote realtime store is not configured or unreachable."""

    pass
