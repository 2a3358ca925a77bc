"""
Chat completion integration.

This package provides:
- Type-safe dataclass models for requests and responses
- The model table with context window sizes
- Error types and the failure taxonomy
- The HTTP client and its lazy factory (``llm.client``)
- The single-concurrency task queue (``llm.rate_limiting``)
"""

from __future__ import annotations

from .exceptions import (
    FailureKind,
    LLMError,
    MissingCredentialsError,
    ProviderError,
    QueueFullError,
)
from .models import (
    CONTEXT_WINDOW_SIZE,
    GPT_3_5_TURBO,
    GPT_4,
    ChatChoice,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    MessageRole,
    ProviderType,
    RequestOptions,
    TokenUsage,
    get_context_window,
)

__all__ = [
    # Model table
    "CONTEXT_WINDOW_SIZE",
    "GPT_3_5_TURBO",
    "GPT_4",
    # Core models
    "ChatChoice",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    # Exceptions
    "FailureKind",
    "LLMError",
    "MessageRole",
    "MissingCredentialsError",
    "ProviderError",
    "ProviderType",
    "QueueFullError",
    "RequestOptions",
    "TokenUsage",
    "get_context_window",
]
