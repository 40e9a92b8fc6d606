"""
Unit tests for the bounded retry combinator.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from worker.crawl.retry import retry_async


@pytest.mark.asyncio
async def test_retry_async_returns_first_result():
    calls = []

    async def operation(attempt):
        calls.append(attempt)
        return "ok"

    with patch("worker.crawl.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retry_async(operation, max_attempts=3, delay_seconds=1.0, label="t")

    assert result == "ok"
    assert calls == [1]
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_async_retries_on_none_and_errors():
    outcomes = [None, ValueError("boom"), "found"]

    async def operation(attempt):
        outcome = outcomes[attempt - 1]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    with patch("worker.crawl.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retry_async(operation, max_attempts=3, delay_seconds=0.5, label="t")

    assert result == "found"
    assert mock_sleep.await_count == 2
    mock_sleep.assert_awaited_with(0.5)


@pytest.mark.asyncio
async def test_retry_async_exhausted_returns_none_without_trailing_sleep():
    operation = AsyncMock(return_value=None)

    with patch("worker.crawl.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        result = await retry_async(operation, max_attempts=3, delay_seconds=1.0, label="t")

    assert result is None
    assert operation.await_count == 3
    assert mock_sleep.await_count == 2


@pytest.mark.asyncio
async def test_retry_async_does_not_retry_closed_session():
    operation = AsyncMock(side_effect=RuntimeError("Target closed"))

    with (
        patch("worker.crawl.retry.asyncio.sleep", new_callable=AsyncMock),
        pytest.raises(RuntimeError, match="Target closed"),
    ):
        await retry_async(operation, max_attempts=3, delay_seconds=1.0, label="t")

    assert operation.await_count == 1
