"""
Centralized logging and error classification utilities for chatstream.

This module provides decorators and helpers that standardize how streaming
operations are logged:

Features:
- Structured logging with contextual information
- Error classification for the streaming error taxonomy
- Performance timing
- Distinct records for failures, cancellation and early consumer exit
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from chatstream.llm.exceptions import (
    ProtocolError,
    StreamCancelledError,
    TransportError,
)

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

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def classify_error(error: BaseException) -> str:
    """
    Classify an error into a log category.

    Args:
        error: The exception to classify

    Returns:
        Category name used in structured log records
    """
    if isinstance(error, StreamCancelledError | asyncio.CancelledError):
        return "cancelled"
    if isinstance(error, TransportError):
        return "transport_error"
    if isinstance(error, ProtocolError):
        return "protocol_error"
    if isinstance(error, ValidationError):
        return "validation_error"
    if isinstance(error, TimeoutError | httpx.TimeoutException):
        return "timeout_error"
    if isinstance(error, ConnectionError | OSError | httpx.TransportError):
        return "connection_error"
    return "unknown_error"


def _duration_ms(start_time: float | None) -> dict[str, Any]:
    if start_time is None:
        return {}
    return {"duration_ms": round((time.perf_counter() - start_time) * 1000, 2)}


def log_operation(
    operation: str,
    *,
    log_args: bool = False,
    log_result: bool = False,
    log_timing: bool = True,
    context: dict[str, Any] | None = None,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed
        log_args: Whether to log function arguments
        log_result: Whether to log function result
        log_timing: Whether to log execution timing
        context: Additional context to include in logs

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
                **(context or {}),
            )

            log_data = {}
            if log_args:
                log_data.update({
                    "args": args[1:] if args else [],  # Skip 'self' if present
                    "kwargs": kwargs,
                })

            operation_logger.info("Operation started", **log_data)
            start_time = time.perf_counter() if log_timing else None

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                operation_logger.error(
                    "Operation failed",
                    error_type=type(e).__name__,
                    error_category=classify_error(e),
                    error_message=str(e),
                    **_duration_ms(start_time),
                )
                raise

            end_log_data: dict[str, Any] = _duration_ms(start_time)
            if log_result:
                end_log_data["result"] = result
            operation_logger.info("Operation completed successfully", **end_log_data)
            return result

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
    log_timing: bool = True,
):
    """
    Async context manager for operation logging.

    Safe to hold open across ``yield`` in an async generator: a consumer that
    stops early and a cancelled task are logged, then propagated.

    Args:
        operation: Description of the operation
        context: Additional context for logging
        log_timing: Whether to log operation timing

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
    except (StreamCancelledError, asyncio.CancelledError):
        operation_logger.info("Operation cancelled", **_duration_ms(start_time))
        raise
    except GeneratorExit:
        operation_logger.info("Operation closed by consumer", **_duration_ms(start_time))
        raise
    except Exception as e:
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_category=classify_error(e),
            error_message=str(e),
            **_duration_ms(start_time),
        )
        raise

    operation_logger.info("Operation completed successfully", **_duration_ms(start_time))
