"""
Price extraction from a detail view.

Each attempt waits for a minimal load state, lets injected content settle, then
walks PRICE_SELECTORS in order and parses the first element text that carries a
number. When no element yields one, the price is decoded from the base64 JSON
`ID` query parameter. The last failed attempt captures a diagnostic snapshot.

Known risk: broad candidates such as `*:has-text("₹")` can match page chrome
that happens to contain the currency glyph, and the first number found wins.
The candidate order is kept as is; a wrong price here is a selector problem,
not a parsing one.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import Literal, Optional, Sequence
from urllib.parse import parse_qs, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from worker.artifacts import save_diagnostic_snapshot
from worker.crawl.constants import (
    APPROX_MARKER,
    CURRENCY_GLYPH,
    DETAIL_LOAD_TIMEOUT_MS,
    DETAIL_SETTLE_MS,
    PRICE_RETRY_DELAY_MS,
    PRICE_SELECTOR_TIMEOUT_MS,
    PRICE_SELECTORS,
    PRICE_URL_FIELD,
    PRICE_URL_PARAM,
)
from worker.crawl.retry import retry_async
from worker.crawl.selectors import resolve_selector
from worker.errors import NoCandidateMatched, is_session_closed_error
from worker.storage import sanitize_label

logger = get_logger(__name__)

# Optional "Approx" prefix, optional currency glyph, digits with thousands separators
PRICE_PATTERN = re.compile(r"(?:approx\.?\s*)?₹?\s*(\d+(?:,\d+)*)", re.I)

OutcomeStatus = Literal["value", "unavailable", "unavailable_with_capture"]


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of extract_price. snapshot_path is set only for unavailable_with_capture."""

    status: OutcomeStatus
    value: Optional[str] = None
    snapshot_path: Optional[str] = None
    attempts: int = 0

    @property
    def found(self) -> bool:
        return self.status == "value"


def format_price(digits: str) -> str:
    return f"{CURRENCY_GLYPH}{digits}"


def parse_price_text(text: str) -> Optional[str]:
    """
    Extract a currency-prefixed price from element text.

    "Approx ₹18,625" -> "₹18625". Returns None when no number is present.
    """
    if not text:
        return None
    match = PRICE_PATTERN.search(text)
    if not match:
        return None
    digits = match.group(1).replace(",", "")
    return format_price(digits) if digits else None


def decode_price_from_url(url: str) -> Optional[str]:
    """
    Read the price from the base64 JSON payload in the URL's ID parameter.

    {"recovery_values": "18625"} -> "₹18625". Returns None on any decode problem.
    """
    try:
        params = parse_qs(urlparse(url).query)
    except ValueError:
        return None
    values = params.get(PRICE_URL_PARAM)
    if not values:
        return None
    raw = values[0]
    try:
        # parse_qs turns '+' into ' '; restore it and pad before decoding
        token = raw.replace(" ", "+")
        token += "=" * (-len(token) % 4)
        payload = json.loads(base64.b64decode(token).decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, ValueError) as e:
        logger.info("price_url_decode_failed", error=str(e))
        return None
    if not isinstance(payload, dict):
        return None
    value = payload.get(PRICE_URL_FIELD)
    if value in (None, ""):
        return None
    digits = str(value).replace(",", "").strip()
    if not digits:
        return None
    return format_price(digits)


async def _price_from_selector(page: Page, selector: str) -> Optional[str]:
    """Parse the first element matching `selector` whose text holds a number."""
    for element in await page.locator(selector).all():
        try:
            text = await element.inner_text(timeout=PRICE_SELECTOR_TIMEOUT_MS)
        except PlaywrightError as e:
            if is_session_closed_error(e):
                raise
            continue
        price = parse_price_text(text)
        logger.debug("price_candidate_text", selector=selector, text=text[:120])
        if price:
            logger.info("price_found", price=price, selector=selector, source="dom")
            return price
    return None


async def find_price_in_dom(
    page: Page,
    selectors: Sequence[str] = PRICE_SELECTORS,
) -> Optional[str]:
    """Try each price selector in order; first parsed number wins."""
    for selector in selectors:
        try:
            await resolve_selector(page, [selector], PRICE_SELECTOR_TIMEOUT_MS)
        except NoCandidateMatched:
            continue
        price = await _price_from_selector(page, selector)
        if price:
            return price
    return None


async def log_price_markers(page: Page) -> None:
    """Record whether the page content mentions the currency glyph or the Approx marker."""
    try:
        content = await page.content()
    except Exception as e:
        logger.warning("page_content_unavailable", error=str(e))
        return
    logger.info(
        "price_markers",
        has_currency_glyph=CURRENCY_GLYPH in content,
        has_approx_marker=APPROX_MARKER in content,
    )


async def extract_price(
    page: Page,
    subject: str,
    max_attempts: int = 3,
) -> ExtractionOutcome:
    """
    Extract the price for `subject` from a detail page.

    Never raises for a missing price; session-closed errors propagate.
    """
    attempts_made = 0

    async def _attempt(attempt: int) -> Optional[str]:
        nonlocal attempts_made
        attempts_made = attempt
        logger.info("price_attempt", attempt=attempt, max_attempts=max_attempts, url=page.url)
        try:
            await page.wait_for_load_state("domcontentloaded", timeout=DETAIL_LOAD_TIMEOUT_MS)
        except PlaywrightTimeoutError:
            logger.warning("detail_load_soft_timeout", timeout_ms=DETAIL_LOAD_TIMEOUT_MS)
        await asyncio.sleep(DETAIL_SETTLE_MS / 1000)

        price = await find_price_in_dom(page)
        if price:
            return price

        price = decode_price_from_url(page.url)
        if price:
            logger.info("price_found", price=price, source="url")
            return price
        logger.info("price_not_found", attempt=attempt)
        return None

    try:
        price = await retry_async(
            _attempt,
            max_attempts=max_attempts,
            delay_seconds=PRICE_RETRY_DELAY_MS / 1000,
            label="price_extraction",
        )
    except Exception as e:
        if is_session_closed_error(e):
            raise
        logger.warning("price_extraction_error", error=str(e), error_type=type(e).__name__)
        price = None

    if price:
        return ExtractionOutcome(status="value", value=price, attempts=attempts_made)

    await log_price_markers(page)
    snapshot = await save_diagnostic_snapshot(
        page, f"price-not-found-{sanitize_label(subject)}", "error"
    )
    if snapshot is None:
        return ExtractionOutcome(status="unavailable", attempts=attempts_made)
    return ExtractionOutcome(
        status="unavailable_with_capture",
        snapshot_path=str(snapshot),
        attempts=attempts_made,
    )
