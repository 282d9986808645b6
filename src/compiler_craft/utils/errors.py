"""Exception hierarchy and timeout helper for Compiler Craft.

Parse failures in the table and tree renderers are values, not exceptions;
everything here signals a condition the caller has to surface.
"""

from __future__ import annotations

import asyncio
import builtins
from collections.abc import Awaitable
from typing import TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")


# =============================================================================
# Custom Exceptions
# =============================================================================


class CraftError(Exception):
    """Base exception for all Compiler Craft errors."""


class InputError(CraftError):
    """Request input is missing or unusable."""


class AnalysisValidationError(CraftError):
    """An analysis payload does not have the required shape.

    Attributes:
        path: Location of the offending field (e.g. ``phases.2.name``), if known.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class LLMError(CraftError):
    """The language model call failed."""


class RateLimitError(LLMError):
    """Rate limit exceeded.

    Attributes:
        retry_after: Number of seconds to wait before retrying, if known.
    """

    def __init__(self, message: str, retry_after: int | None = None) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class TimeoutError(LLMError):
    """Operation timed out."""


class ReportError(CraftError):
    """A report cannot be assembled from the given analysis."""


class SessionBusyError(CraftError):
    """An analysis is already in flight for this session."""


# =============================================================================
# Timeout Utilities
# =============================================================================


async def with_timeout(
    coro: Awaitable[T],
    timeout: float,
    error_message: str | None = None,
) -> T:
    """Execute an awaitable with a timeout.

    Args:
        coro: The coroutine to execute.
        timeout: Timeout in seconds.
        error_message: Custom error message for timeout.

    Returns:
        The result of the coroutine.

    Raises:
        TimeoutError: If the operation times out.
    """
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except builtins.TimeoutError as e:
        msg = error_message or f"Operation timed out after {timeout}s"
        log.warning("operation_timeout", timeout=timeout)
        raise TimeoutError(msg) from e
