"""
Bounded retry combinator for extraction steps.

An operation is called with its 1-based attempt number and returns a value, or
None when it found nothing. Exceptions count as a failed attempt. Session-closed
errors are re-raised immediately since retrying on a dead page cannot succeed.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

from shared.logging import get_logger
from worker.errors import is_session_closed_error

logger = get_logger(__name__)

T = TypeVar("T")


async def retry_async(
    operation: Callable[[int], Awaitable[Optional[T]]],
    *,
    max_attempts: int,
    delay_seconds: float,
    label: str,
) -> Optional[T]:
    """
    Run `operation` up to `max_attempts` times, sleeping `delay_seconds` between attempts.

    Returns the first non-None result, or None when every attempt failed.
    """
    for attempt in range(1, max_attempts + 1):
        try:
            result = await operation(attempt)
        except Exception as e:
            if is_session_closed_error(e):
                raise
            logger.warning(
                "retry_attempt_failed",
                label=label,
                attempt=attempt,
                max_attempts=max_attempts,
                error=str(e),
                error_type=type(e).__name__,
            )
            result = None
        if result is not None:
            return result
        if attempt < max_attempts:
            await asyncio.sleep(delay_seconds)
    logger.info("retry_exhausted", label=label, max_attempts=max_attempts)
    return None
