"""
Centralized logging and error handling utilities for the chat gateway.

This module provides helpers to standardize logging and failure reporting
across the codebase, reducing boilerplate and ensuring consistent error
reporting.

Features:
- Structured logging with contextual information
- Transport failure classification
- One human-readable log line per failure class
- Performance timing for operations
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog

from chat_gateway.llm.exceptions import FailureKind, MissingCredentialsError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

HTTP_BAD_REQUEST = 400
HTTP_TOO_MANY_REQUESTS = 429

FAILURE_MESSAGES: dict[FailureKind, str] = {
    FailureKind.CONTEXT_WINDOW_EXCEEDED: "Context window is full",
    FailureKind.RATE_LIMITED: "Rate limited by provider",
    FailureKind.MISSING_CREDENTIALS: "API key is not configured",
    FailureKind.UNKNOWN: "Chat completion failed",
}

logger = structlog.get_logger(__name__)


class ChatErrorHandler:
    """Centralized chat completion failure handling with structured logging."""

    @staticmethod
    def status_code_of(error: Exception) -> int | None:
        """Extract the HTTP status code carried by a transport error."""
        if isinstance(error, httpx.HTTPStatusError):
            return error.response.status_code
        return getattr(error, "status_code", None)

    @staticmethod
    def classify_error(error: Exception) -> FailureKind:
        """
        Classify a failed chat completion call.

        Args:
            error: The exception raised by the transport

        Returns:
            The failure kind used for logging
        """
        if isinstance(error, MissingCredentialsError):
            return FailureKind.MISSING_CREDENTIALS

        status_code = ChatErrorHandler.status_code_of(error)
        if status_code == HTTP_BAD_REQUEST:
            return FailureKind.CONTEXT_WINDOW_EXCEEDED
        if status_code == HTTP_TOO_MANY_REQUESTS:
            return FailureKind.RATE_LIMITED
        return FailureKind.UNKNOWN

    @staticmethod
    def log_failure(
        error: Exception,
        model: str,
        context: dict[str, Any] | None = None,
    ) -> FailureKind:
        """
        Log a failed call once, under its classified kind.

        The error itself is left untouched; callers re-raise it.

        Args:
            error: Original exception
            model: Model the request was addressed to
            context: Additional context for logging

        Returns:
            The failure kind that was logged
        """
        failure_kind = ChatErrorHandler.classify_error(error)
        log_data: dict[str, Any] = {
            "model": model,
            "failure_kind": failure_kind.value,
            "status_code": ChatErrorHandler.status_code_of(error),
            "error_type": type(error).__name__,
            **(context or {}),
        }
        if failure_kind == FailureKind.UNKNOWN:
            log_data["error_message"] = str(error)

        logger.error(FAILURE_MESSAGES[failure_kind], **log_data)
        return failure_kind


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
    log_failure: bool = True,
):
    """
    Async context manager for operation logging.

    Args:
        operation: Description of the operation
        context: Additional context for logging
        log_timing: Whether to log operation timing
        log_failure: Whether to log when the operation raises

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.info("Operation started")
    start_time = time.perf_counter() if log_timing else None

    try:
        yield operation_logger

        log_data: dict[str, Any] = {}
        if log_timing and start_time is not None:
            duration = round((time.perf_counter() - start_time) * 1000, 2)
            log_data["duration_ms"] = duration

        operation_logger.info("Operation completed successfully", **log_data)

    except Exception as e:
        if log_failure:
            error_log_data: dict[str, Any] = {
                "error_type": type(e).__name__,
                "error_message": str(e),
            }
            if log_timing and start_time is not None:
                duration = round((time.perf_counter() - start_time) * 1000, 2)
                error_log_data["duration_ms"] = duration

            operation_logger.error("Operation failed", **error_log_data)
        raise


class ContextualLogger:
    """Logger that maintains context across related operations."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def bind(self, **context: Any) -> ContextualLogger:
        """Create a new logger with additional context."""
        merged_context = {**self.base_context, **context}
        return ContextualLogger(merged_context)

    def info(self, message: str, **context: Any) -> None:
        """Log info message with context."""
        self._logger.info(message, **context)

    def warning(self, message: str, **context: Any) -> None:
        """Log warning message with context."""
        self._logger.warning(message, **context)

    def error(self, message: str, **context: Any) -> None:
        """Log error message with context."""
        self._logger.error(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        """Log debug message with context."""
        self._logger.debug(message, **context)
