"""
New-tab handling: a click may open a new page or render in place.

Both waits are started before the click so a fast popup is not missed. The
loser of a race is cancelled and its outcome ignored.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import BrowserContext, Page
from playwright.async_api import Error as PlaywrightError

from shared.logging import get_logger

logger = get_logger(__name__)


async def _drain(*tasks: asyncio.Future) -> None:
    for task in tasks:
        if not task.done():
            task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


def _succeeded(task: asyncio.Future) -> bool:
    return task.done() and not task.cancelled() and task.exception() is None


async def click_expecting_new_page(
    context: BrowserContext,
    click: Callable[[], Awaitable[Any]],
    timeout_ms: int,
) -> Optional[Page]:
    """Run `click` and return the page it opened, or None if none opened in time."""
    waiter = asyncio.ensure_future(context.wait_for_event("page", timeout=timeout_ms))
    try:
        await click()
        try:
            return await waiter
        except PlaywrightError as e:
            logger.info("new_page_not_opened", timeout_ms=timeout_ms, error_type=type(e).__name__)
            return None
    finally:
        await _drain(waiter)


async def race_new_page_or_in_place(
    context: BrowserContext,
    page: Page,
    click: Callable[[], Awaitable[Any]],
    in_place_selector: str,
    timeout_ms: int,
) -> tuple[Page, bool]:
    """
    Click, then take whichever comes first: a new page, or `in_place_selector`
    appearing on `page`.

    `in_place_selector` must not match `page` before the click, or the in-place
    side wins immediately.

    Returns (surface, opened_new_page). Falls back to (page, False) when
    neither side produced content within `timeout_ms`.
    """
    new_page_task = asyncio.ensure_future(context.wait_for_event("page", timeout=timeout_ms))
    in_place_task = asyncio.ensure_future(
        page.wait_for_selector(in_place_selector, timeout=timeout_ms)
    )
    try:
        await click()
        pending: set[asyncio.Future] = {new_page_task, in_place_task}
        while pending:
            done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            if new_page_task in done and _succeeded(new_page_task):
                logger.info("results_surface_selected", surface="new_page")
                return new_page_task.result(), True
            if in_place_task in done and _succeeded(in_place_task):
                logger.info("results_surface_selected", surface="in_place")
                return page, False
        logger.warning("results_surface_race_timeout", timeout_ms=timeout_ms)
        return page, False
    finally:
        await _drain(new_page_task, in_place_task)
