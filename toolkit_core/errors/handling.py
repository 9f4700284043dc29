from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..logging_config import log_structured_error
from .internal import (
    AuthenticationError,
    ConfigurationError,
    PersistenceError,
    ToolkitError,
    TransportError,
)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[BaseException], ...] = (
    TransportError,
    aiohttp.ClientError,
    OSError,
    ConnectionError,
    TimeoutError,
)


def categorize_error(error: BaseException) -> str:
    """Map an exception onto the error category used in structured logs."""
    if isinstance(error, AuthenticationError):
        return "auth"
    if isinstance(error, ConfigurationError):
        return "config"
    if isinstance(error, PersistenceError):
        return "persistence"
    if isinstance(error, TransportError | aiohttp.ClientError | OSError | ConnectionError):
        return "network"
    if isinstance(error, ToolkitError):
        return "internal"
    return "handler"


def log_error(
    message: str,
    error: BaseException,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log an exception with its category and optional context.

    Args:
        message: What was being attempted when the error occurred.
        error: The caught exception.
        context: Extra key/value pairs (listener name, command, user...).
        level: Logging level, ERROR unless the caller downgrades it.
    """
    log_structured_error(
        error_type=categorize_error(error),
        message=f"{message}: {error}",
        exception=error,
        context=context,
        level=level,
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    context: str,
    max_attempts: int = 3,
    max_backoff: float = 30,
) -> T:
    """Run ``operation`` with exponential backoff on retryable errors.

    Authentication failures and any error outside ``RETRYABLE_ERRORS`` are
    re-raised immediately.

    Args:
        operation: Zero-argument coroutine factory.
        context: Description used in retry logs.
        max_attempts: Total attempts before giving up.
        max_backoff: Upper bound for the wait between attempts, in seconds.

    Returns:
        Whatever ``operation`` returns on its first successful attempt.

    Raises:
        TransportError: When every attempt failed with a retryable error.
    """

    def before_attempt(retry_state):
        if retry_state.attempt_number > 1:
            logging.info(f"🔁 Retrying {context} (attempt {retry_state.attempt_number})")

    def after_attempt(retry_state):
        if retry_state.outcome is not None and retry_state.outcome.failed:
            log_error(
                f"Attempt {retry_state.attempt_number} failed for {context}",
                retry_state.outcome.exception(),
                context={"operation": context},
                level=logging.WARNING,
            )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, max=max_backoff),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before=before_attempt,
        after=after_attempt,
        reraise=True,
    )
    try:
        return await retrying(operation)
    except AuthenticationError:
        raise
    except RETRYABLE_ERRORS as e:
        raise TransportError(
            f"{context} failed after {max_attempts} attempts: {e}",
            data={"attempts": max_attempts},
        ) from e
