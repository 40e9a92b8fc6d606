"""
Playwright-facing helpers for the extraction pipeline.

This package holds browser setup, selector resolution, navigation with retry,
new-tab handling and price extraction.

Public API: re-exports the symbols used by the worker modules and tests so
that `from worker.crawl import ...` stays valid.
"""

from __future__ import annotations

from worker.crawl.browser import create_browser_context, launch_browser, prepare_page
from worker.crawl.fallible import best_effort
from worker.crawl.navigation_retry import (
    NavigateResult,
    is_challenge_page,
    navigate_with_retry,
)
from worker.crawl.price import (
    PRICE_PATTERN,
    ExtractionOutcome,
    decode_price_from_url,
    extract_price,
    find_price_in_dom,
    log_price_markers,
    parse_price_text,
)
from worker.crawl.retry import retry_async
from worker.crawl.selectors import per_candidate_timeout_ms, resolve_selector
from worker.crawl.surfaces import click_expecting_new_page, race_new_page_or_in_place

__all__ = [
    # browser
    "launch_browser",
    "create_browser_context",
    "prepare_page",
    # fallible
    "best_effort",
    # navigation_retry
    "NavigateResult",
    "navigate_with_retry",
    "is_challenge_page",
    # price
    "PRICE_PATTERN",
    "ExtractionOutcome",
    "parse_price_text",
    "decode_price_from_url",
    "find_price_in_dom",
    "extract_price",
    "log_price_markers",
    # retry
    "retry_async",
    # selectors
    "resolve_selector",
    "per_candidate_timeout_ms",
    # surfaces
    "click_expecting_new_page",
    "race_new_page_or_in_place",
]
