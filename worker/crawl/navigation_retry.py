"""
Navigation retry helper: deterministic backoff, failure classification, challenge detection.

Every navigation the pipeline issues on its own (entry page, recovery to the last
known results address, manually opened detail pages, return to results) goes
through navigate_with_retry. Challenge pages are flagged, never solved.
"""

from __future__ import annotations

import asyncio
import random
import time
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Page, Response
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.logging import get_logger
from worker.crawl.constants import NAV_TIMEOUT_MS
from worker.errors import is_session_closed_error

logger = get_logger(__name__)

# Max 3 attempts, backoff 1s / 2s / 4s, jitter 0–500 ms
MAX_NAV_ATTEMPTS = 3
BACKOFF_SECONDS = (1, 2, 4)
JITTER_MS = 500

# Substrings that indicate a challenge/captcha interstitial (case-insensitive)
CHALLENGE_INDICATORS = (
    "captcha",
    "verify you are human",
    "are you a robot",
    "access denied",
    "ddos protection",
)


@dataclass
class NavigateResult:
    """Result of navigate_with_retry."""

    success: bool
    response: Optional[Response]
    error_summary: Optional[str]
    challenge_detected: bool = False


def _backoff_seconds(attempt: int) -> float:
    """Exponential backoff for attempt 1-based index; add jitter 0–500 ms."""
    base = BACKOFF_SECONDS[min(attempt - 1, len(BACKOFF_SECONDS) - 1)]
    jitter = random.uniform(0, JITTER_MS / 1000.0)
    return base + jitter


def _classify_failure(exc: BaseException) -> tuple[bool, str]:
    """
    Classify navigation failure as retryable or not.

    Returns (retryable, reason). Reason is one of: navigation_timeout, net_err,
    or non_retryable.
    """
    if isinstance(exc, PlaywrightTimeoutError):
        return True, "navigation_timeout"
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    if "net::err_" in msg:
        return True, "net_err"
    return False, "non_retryable"


def _is_retryable_status(status: Optional[int]) -> bool:
    """Retry only on 403, 503, or 429 (rate-limit)."""
    return status in (403, 503, 429)


async def is_challenge_page(page: Page) -> bool:
    """True if the title or body text carries a challenge/captcha indicator."""
    try:
        title = await page.title()
        body_text = await page.inner_text("body")
    except Exception:
        return False
    combined = f"{title} {body_text}".lower()
    return any(ind in combined for ind in CHALLENGE_INDICATORS)


async def navigate_with_retry(
    page: Page,
    url: str,
    *,
    purpose: str,
    nav_timeout_ms: int = NAV_TIMEOUT_MS,
) -> NavigateResult:
    """
    Navigate with up to MAX_NAV_ATTEMPTS attempts and backoff.

    Session-closed errors are re-raised: a dead page is a session problem,
    not a navigation failure.
    """
    last_response: Optional[Response] = None

    for attempt in range(1, MAX_NAV_ATTEMPTS + 1):
        logger.info("navigation.attempt", attempt=attempt, url=url, purpose=purpose)
        attempt_start = time.monotonic()
        try:
            response = await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=nav_timeout_ms,
            )
        except Exception as e:
            if is_session_closed_error(e):
                raise
            retryable, reason = _classify_failure(e)
            if retryable and attempt < MAX_NAV_ATTEMPTS:
                backoff = _backoff_seconds(attempt)
                logger.info(
                    "navigation.retry",
                    reason=reason,
                    attempt=attempt,
                    backoff_s=round(backoff, 2),
                    url=url,
                    purpose=purpose,
                    error=str(e),
                )
                await asyncio.sleep(backoff)
                continue
            logger.error(
                "navigation.failed",
                reason=reason,
                attempt=attempt,
                url=url,
                purpose=purpose,
                elapsed_ms=round((time.monotonic() - attempt_start) * 1000),
                error=str(e),
            )
            return NavigateResult(
                success=False,
                response=None,
                error_summary=(
                    "Navigation timeout" if reason == "navigation_timeout" else "Navigation failed"
                ),
            )

        last_response = response
        if response is None:
            # Same-document navigations (e.g. hash changes) yield no response
            break

        status = response.status
        if _is_retryable_status(status):
            if attempt < MAX_NAV_ATTEMPTS:
                backoff = _backoff_seconds(attempt)
                logger.info(
                    "navigation.retry",
                    reason=f"status_{status}",
                    attempt=attempt,
                    backoff_s=round(backoff, 2),
                    url=url,
                    purpose=purpose,
                    status=status,
                )
                await asyncio.sleep(backoff)
                continue
            logger.warning(
                "navigation.failed",
                reason=f"status_{status}",
                attempt=attempt,
                url=url,
                purpose=purpose,
                status=status,
            )
            return NavigateResult(
                success=False,
                response=response,
                error_summary="Rate limited (429)" if status == 429 else "Blocked (403/503)",
            )

        if status >= 400:
            logger.error(
                "navigation.failed",
                reason="non_retryable_status",
                attempt=attempt,
                url=url,
                purpose=purpose,
                status=status,
            )
            return NavigateResult(
                success=False,
                response=response,
                error_summary="Navigation failed",
            )
        break

    challenge = await is_challenge_page(page)
    if challenge:
        logger.warning("navigation.challenge_detected", url=url, purpose=purpose)
    logger.info("navigation.success", url=url, purpose=purpose, challenge_detected=challenge)
    return NavigateResult(
        success=True,
        response=last_response,
        error_summary=None,
        challenge_detected=challenge,
    )
