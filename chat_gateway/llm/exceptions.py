"""
Error handling for chat completion operations.

This module provides the error types raised by the gateway and the
failure taxonomy used to classify transport errors:
- Provider-specific error information
- Missing credential detection
- Queue capacity errors
- Failure classification kinds for logging
"""

from __future__ import annotations

from enum import Enum


class FailureKind(Enum):
    """Classified kinds of chat completion failures."""
    CONTEXT_WINDOW_EXCEEDED = "context_window_exceeded"
    RATE_LIMITED = "rate_limited"
    MISSING_CREDENTIALS = "missing_credentials"
    UNKNOWN = "unknown"


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: str = "N/A",
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class ProviderError(LLMError):
    """Provider-specific configuration or setup errors."""
    pass


class MissingCredentialsError(ProviderError):
    """API key for the active provider is not available."""

    def __init__(self, message: str, env_var: str, **kwargs):
        super().__init__(message, **kwargs)
        self.env_var = env_var


class QueueFullError(LLMError):
    """Task queue reached its pending capacity."""

    def __init__(self, message: str, max_pending: int, **kwargs):
        kwargs.setdefault("provider", "task_queue")
        super().__init__(message, **kwargs)
        self.max_pending = max_pending
