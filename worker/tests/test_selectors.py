"""
Unit tests for ordered selector resolution with equal time slices.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, call

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from worker.crawl.selectors import per_candidate_timeout_ms, resolve_selector
from worker.errors import NoCandidateMatched


def test_per_candidate_timeout_is_equal_share():
    assert per_candidate_timeout_ms(4, 90_000) == 22_500
    assert per_candidate_timeout_ms(1, 5_000) == 5_000
    assert per_candidate_timeout_ms(0, 5_000) == 0


@pytest.mark.asyncio
async def test_resolve_selector_first_candidate_wins():
    page = AsyncMock()
    page.wait_for_selector = AsyncMock(return_value=object())

    chosen = await resolve_selector(page, ["a", "b", "c"], 3000)

    assert chosen == "a"
    page.wait_for_selector.assert_awaited_once_with("a", timeout=1000)


@pytest.mark.asyncio
async def test_resolve_selector_tries_in_order_until_match():
    page = AsyncMock()
    page.wait_for_selector = AsyncMock(
        side_effect=[PlaywrightTimeoutError("timeout"), PlaywrightTimeoutError("timeout"), object()]
    )

    chosen = await resolve_selector(page, ["a", "b", "c", "d"], 8000)

    assert chosen == "c"
    assert page.wait_for_selector.await_args_list == [
        call("a", timeout=2000),
        call("b", timeout=2000),
        call("c", timeout=2000),
    ]


@pytest.mark.asyncio
async def test_resolve_selector_invalid_selector_counts_as_miss():
    page = AsyncMock()
    page.wait_for_selector = AsyncMock(
        side_effect=[PlaywrightError("Unexpected token in selector"), object()]
    )

    assert await resolve_selector(page, ["b:contains('x')", "b.pulse"], 2000) == "b.pulse"


@pytest.mark.asyncio
async def test_resolve_selector_all_fail_raises_no_candidate_matched():
    page = AsyncMock()
    page.wait_for_selector = AsyncMock(side_effect=PlaywrightTimeoutError("timeout"))

    with pytest.raises(NoCandidateMatched) as exc_info:
        await resolve_selector(page, ["x", "y"], 1000)

    assert exc_info.value.candidates == ["x", "y"]
    assert page.wait_for_selector.await_count == 2


@pytest.mark.asyncio
async def test_resolve_selector_closed_page_propagates():
    page = AsyncMock()
    page.wait_for_selector = AsyncMock(
        side_effect=PlaywrightError("Target page, context or browser has been closed")
    )

    with pytest.raises(PlaywrightError):
        await resolve_selector(page, ["x", "y"], 1000)
    assert page.wait_for_selector.await_count == 1
