"""
Best-effort operations: failures are logged and never propagate.

Use only for steps whose outcome the caller does not depend on (scrolling,
closing a detail page, releasing a dead browser). Must-succeed steps call the
driver directly and let errors propagate.
"""

from __future__ import annotations

from typing import Any, Awaitable

from shared.logging import get_logger

logger = get_logger(__name__)


async def best_effort(operation: Awaitable[Any], event: str, **context: Any) -> bool:
    """
    Await `operation`; on failure log `event` as a warning and return False.

    Returns True when the operation completed.
    """
    try:
        await operation
    except Exception as e:
        logger.warning(event, error=str(e), error_type=type(e).__name__, **context)
        return False
    return True
