"""
Browser launch and context creation (fixed UA, viewport, locale).
"""

from __future__ import annotations

from playwright.async_api import Browser, BrowserContext, BrowserType, Page

from worker.crawl.constants import (
    ACCEPT_LANGUAGE,
    CONTEXT_VIEWPORT,
    INTERACTIVE_VIEWPORT,
    LAUNCH_ARGS,
    LOCALE,
    USER_AGENT,
)


async def launch_browser(chromium: BrowserType, headless: bool) -> Browser:
    """Launch Chromium with the flags the lookup service tolerates."""
    return await chromium.launch(headless=headless, args=list(LAUNCH_ARGS))


async def create_browser_context(browser: Browser) -> BrowserContext:
    """
    Create an isolated browser context with a stable fingerprint.

    Recovered sessions use the same identity as the first one.
    """
    return await browser.new_context(
        user_agent=USER_AGENT,
        viewport=dict(CONTEXT_VIEWPORT),
        locale=LOCALE,
    )


async def prepare_page(page: Page) -> None:
    """Headers and viewport for the interactive search page."""
    await page.set_extra_http_headers({"Accept-Language": ACCEPT_LANGUAGE})
    await page.set_viewport_size(dict(INTERACTIVE_VIEWPORT))
