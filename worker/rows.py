"""
Row processing: read one results-table row, fetch its price, build its Record.

process_row never raises for row-level problems. Every field defaults to the
sentinel independently, and a failed price fetch only blanks the price. The one
exception is a closed page/context, surfaced as SessionClosed with the partial
record so the orchestrator can emit it and recover the session.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from playwright.async_api import Locator, Page

from shared.logging import bind_run_context, get_logger
from worker.artifacts import save_diagnostic_snapshot
from worker.crawl.constants import (
    AFTER_DETAIL_MS,
    DETAIL_LINK_MARKER,
    FIELD_READ_TIMEOUT_MS,
    NEW_PAGE_TIMEOUT_MS,
    ROW_FIELD_SELECTORS,
    ROW_LINK_SELECTOR,
    ROW_SETTLE_MS,
    SCROLL_TIMEOUT_MS,
    VALUE_CLICK_TIMEOUT_MS,
    VALUE_LINK_SELECTOR,
    VALUE_LINK_SETTLE_MS,
)
from worker.crawl.fallible import best_effort
from worker.crawl.navigation_retry import navigate_with_retry
from worker.crawl.price import extract_price
from worker.crawl.surfaces import click_expecting_new_page
from worker.errors import SessionClosed, is_session_closed_error
from worker.records import UNAVAILABLE, Record
from worker.session import Session

logger = get_logger(__name__)

_SCROLL_TO_CENTER_JS = "el => el.scrollIntoView({behavior: 'smooth', block: 'center'})"
_FORCE_NEW_TAB_JS = "el => el.setAttribute('target', '_blank')"
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class RowDescriptor:
    """Positional handle into one resolution of the results table."""

    index: int
    locator: Locator

    @property
    def number(self) -> int:
        return self.index + 1


def is_detail_link(href: Optional[str]) -> bool:
    return bool(href) and href != UNAVAILABLE and DETAIL_LINK_MARKER in href


async def read_cell_text(row: Locator, selector: str) -> str:
    """Text of the first cell matching `selector`, or the sentinel."""
    try:
        text = await row.locator(selector).first.inner_text(timeout=FIELD_READ_TIMEOUT_MS)
    except Exception as e:
        if is_session_closed_error(e):
            raise
        logger.info("field_extraction_failed", selector=selector, error_type=type(e).__name__)
        return UNAVAILABLE
    # cells wrap across lines; keep each record on one CSV line
    return _WHITESPACE.sub(" ", text).strip()


async def read_cell_href(row: Locator, selector: str) -> str:
    """href of the first link matching `selector`, or the sentinel."""
    try:
        href = await row.locator(selector).first.get_attribute("href", timeout=FIELD_READ_TIMEOUT_MS)
    except Exception as e:
        if is_session_closed_error(e):
            raise
        logger.info("field_extraction_failed", selector=selector, error_type=type(e).__name__)
        return UNAVAILABLE
    return href or UNAVAILABLE


async def open_detail_surface(session: Session, value_link: Locator, href: str) -> Page:
    """
    Open the detail view for a row.

    Order: the page opened by clicking the link, then a manually opened page at
    the link's absolute address, then the results page itself.
    """
    link = value_link.first
    await best_effort(link.evaluate(_SCROLL_TO_CENTER_JS), "value_link_scroll_failed")
    await asyncio.sleep(VALUE_LINK_SETTLE_MS / 1000)
    await best_effort(link.evaluate(_FORCE_NEW_TAB_JS), "value_link_target_failed")

    new_page = await click_expecting_new_page(
        session.context,
        lambda: link.click(force=True, timeout=VALUE_CLICK_TIMEOUT_MS),
        NEW_PAGE_TIMEOUT_MS,
    )
    if new_page is not None:
        logger.info("detail_surface_opened", surface="new_page")
        return new_page

    absolute = urljoin(session.page.url, href)
    if absolute.startswith("http"):
        logger.warning("detail_new_page_not_opened", fallback="manual", url=absolute)
        manual = await session.context.new_page()
        result = await navigate_with_retry(manual, absolute, purpose="detail")
        if result.success:
            logger.info("detail_surface_opened", surface="manual_page")
            return manual
        await best_effort(manual.close(), "detail_page_close_failed")

    logger.info("detail_surface_opened", surface="in_place")
    return session.page


async def return_to_results(page: Page, last_known_location: Optional[str]) -> None:
    """Undo an in-place detail navigation: back first, then a fresh load."""
    if last_known_location and page.url == last_known_location:
        return
    try:
        await page.go_back(wait_until="domcontentloaded")
        logger.info("returned_to_results", method="back")
        return
    except Exception as e:
        if is_session_closed_error(e):
            raise
        logger.warning("back_navigation_failed", error=str(e))
    if last_known_location:
        result = await navigate_with_retry(page, last_known_location, purpose="return_to_results")
        logger.info("returned_to_results", method="goto", success=result.success)


async def release_detail_surface(
    session: Session,
    detail_page: Page,
    last_known_location: Optional[str],
) -> None:
    if detail_page is not session.page:
        if not detail_page.is_closed():
            await best_effort(detail_page.close(run_before_unload=True), "detail_page_close_failed")
        return
    await return_to_results(session.page, last_known_location)


async def fetch_row_price(
    row: RowDescriptor,
    session: Session,
    href: str,
    subject: str,
    last_known_location: Optional[str],
    price_max_attempts: int,
) -> str:
    """Open the row's detail view and extract its price; the sentinel on any failure."""
    value_link = row.locator.locator(VALUE_LINK_SELECTOR)
    if not await value_link.count():
        logger.warning("value_link_missing")
        return UNAVAILABLE

    logger.info("detail_opening")
    price = UNAVAILABLE
    detail_page: Optional[Page] = None
    try:
        detail_page = await open_detail_surface(session, value_link, href)
        outcome = await extract_price(detail_page, subject, max_attempts=price_max_attempts)
        if outcome.found:
            price = outcome.value
        logger.info("row_price_result", status=outcome.status, price=price)
    except Exception as e:
        if is_session_closed_error(e):
            raise
        logger.warning("price_fetch_failed", error=str(e), error_type=type(e).__name__)
        await save_diagnostic_snapshot(session.page, f"row-{row.number}-click-error", "error")
    finally:
        if detail_page is not None:
            await release_detail_surface(session, detail_page, last_known_location)

    await asyncio.sleep(AFTER_DETAIL_MS / 1000)
    return price


async def process_row(
    row: RowDescriptor,
    session: Session,
    *,
    last_known_location: Optional[str],
    price_max_attempts: int = 3,
) -> Record:
    """Build the Record for one row. Raises only SessionClosed."""
    fields = {name: UNAVAILABLE for name in ROW_FIELD_SELECTORS}
    price = UNAVAILABLE
    try:
        await best_effort(
            row.locator.scroll_into_view_if_needed(timeout=SCROLL_TIMEOUT_MS),
            "row_scroll_failed",
        )
        await asyncio.sleep(ROW_SETTLE_MS / 1000)

        href = await read_cell_href(row.locator, ROW_LINK_SELECTOR)
        for name, selector in ROW_FIELD_SELECTORS.items():
            fields[name] = await read_cell_text(row.locator, selector)
        bind_run_context(subject=fields["full_name"])

        if is_detail_link(href):
            price = await fetch_row_price(
                row,
                session,
                href,
                fields["full_name"],
                last_known_location,
                price_max_attempts,
            )
        else:
            logger.info("detail_link_absent", href=href)
    except Exception as e:
        record = Record(**fields, price=price)
        if is_session_closed_error(e):
            logger.warning("row_session_closed", error=str(e))
            raise SessionClosed(record, e) from e
        logger.error("row_failed", error=str(e), error_type=type(e).__name__)
        await save_diagnostic_snapshot(session.page, f"row-error-{row.number}", "error")
        return record

    return Record(**fields, price=price)
