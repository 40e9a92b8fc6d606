"""
Selector resolution: try ordered candidates, each within an equal time slice.

Candidates are tried strictly in order (no racing) so an earlier entry wins
even when a later one would match sooner.
"""

from __future__ import annotations

from typing import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from shared.logging import get_logger
from worker.errors import NoCandidateMatched, is_session_closed_error

logger = get_logger(__name__)


def per_candidate_timeout_ms(candidate_count: int, total_timeout_ms: int) -> int:
    """Equal share of the total budget per candidate."""
    if candidate_count <= 0:
        return 0
    return max(1, total_timeout_ms // candidate_count)


async def resolve_selector(
    page: Page,
    candidates: Sequence[str],
    total_timeout_ms: int,
) -> str:
    """
    Return the first candidate that becomes present on the page.

    Raises NoCandidateMatched when every candidate times out or errors.
    Session-closed errors propagate unchanged.
    """
    slice_ms = per_candidate_timeout_ms(len(candidates), total_timeout_ms)
    for selector in candidates:
        try:
            await page.wait_for_selector(selector, timeout=slice_ms)
        except PlaywrightError as e:
            if is_session_closed_error(e):
                raise
            logger.info(
                "selector_candidate_missed",
                selector=selector,
                timeout_ms=slice_ms,
                error_type=type(e).__name__,
            )
            continue
        logger.info("selector_resolved", selector=selector)
        return selector
    logger.warning("selector_resolution_failed", candidates=list(candidates))
    raise NoCandidateMatched(candidates)
