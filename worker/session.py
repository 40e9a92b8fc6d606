"""
Browser session ownership and liveness recovery.

A Session is the (browser, context, page) triple the orchestrator owns. The
SessionManager opens it, checks it before each row and rebuilds it in place
when the page, context or browser has died, restoring navigation to the last
known results address.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Browser, BrowserContext, BrowserType, Page

from shared.logging import get_logger
from worker.crawl.browser import create_browser_context, launch_browser, prepare_page
from worker.crawl.fallible import best_effort
from worker.crawl.navigation_retry import navigate_with_retry

logger = get_logger(__name__)


@dataclass(frozen=True)
class Session:
    """Live browser triple. Replace the whole value when any part changes."""

    browser: Optional[Browser]
    context: Optional[BrowserContext]
    page: Optional[Page]


def is_session_alive(session: Optional[Session]) -> bool:
    """
    A session is alive when all three parts exist, the browser is connected
    and the page reports itself open.
    """
    if session is None or session.browser is None or session.context is None:
        return False
    page = session.page
    if page is None:
        return False
    try:
        if page.is_closed():
            return False
        return bool(session.browser.is_connected())
    except Exception:
        return False


def _watch_page(page: Page) -> None:
    """Log page close/crash as they happen; the next liveness check acts on them."""
    page.on("close", lambda *_: logger.warning("page_closed"))
    page.on("crash", lambda *_: logger.error("page_crashed"))


class SessionManager:
    """Opens, checks, recovers and releases the single live Session."""

    def __init__(
        self,
        chromium: BrowserType,
        entry_url: str,
        recovery_headless: bool = True,
    ):
        self.chromium = chromium
        self.entry_url = entry_url
        self.recovery_headless = recovery_headless
        self.recoveries = 0

    async def _launch(self, headless: bool) -> Session:
        browser = await launch_browser(self.chromium, headless=headless)
        context = await create_browser_context(browser)
        page = await context.new_page()
        _watch_page(page)
        return Session(browser=browser, context=context, page=page)

    async def open(self, headless: bool) -> Session:
        """Launch the first (interactive) session and load the entry page."""
        logger.info("session_opening", headless=headless, entry_url=self.entry_url)
        session = await self._launch(headless)
        await prepare_page(session.page)
        result = await navigate_with_retry(session.page, self.entry_url, purpose="entry")
        if not result.success:
            logger.warning("entry_navigation_degraded", error_summary=result.error_summary)
        return session

    async def ensure_alive(
        self,
        session: Optional[Session],
        last_known_location: Optional[str],
    ) -> Session:
        """
        Return `session` unchanged when alive; otherwise rebuild it.

        The rebuilt session is navigated to `last_known_location`, or to the
        entry page when none is known (search state is then lost).
        """
        if is_session_alive(session):
            return session

        logger.warning(
            "session_recovery_started",
            last_known_location=last_known_location,
            recoveries=self.recoveries,
        )
        if session is not None and session.browser is not None:
            await best_effort(session.browser.close(), "dead_browser_close_failed")

        fresh = await self._launch(self.recovery_headless)
        self.recoveries += 1

        if last_known_location:
            target = last_known_location
        else:
            target = self.entry_url
            logger.warning(
                "session_recovery_without_location",
                detail="no results address known; the search must be rerun manually",
            )
        result = await navigate_with_retry(fresh.page, target, purpose="recovery")
        logger.info(
            "session_recovered",
            url=target,
            navigation_success=result.success,
            recoveries=self.recoveries,
        )
        return fresh

    async def close(self, session: Optional[Session]) -> None:
        """Release the browser; safe on a dead or missing session."""
        if session is None or session.browser is None:
            return
        if await best_effort(session.browser.close(), "browser_close_failed"):
            logger.info("browser_closed")
