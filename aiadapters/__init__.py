"""LLM provider adapter package.

Exposes the base adapter types for external imports.
"""

from .base import (
    LLMAdapter,
    LLMError,
    LLMRateLimitError,
    LLMAuthError,
    LLMConnectionError,
    LLMSafetyError,
    LLMUnknownError,
    classify_provider_error,
)

__all__ = [
    "LLMAdapter",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMConnectionError",
    "LLMSafetyError",
    "LLMUnknownError",
    "classify_provider_error",
]
