"""
Unit tests for best-effort diagnostic snapshots and price marker logging.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from worker.artifacts import save_diagnostic_snapshot
from worker.tests.fakes import FakePage


@pytest.mark.asyncio
async def test_save_diagnostic_snapshot_writes_under_root(snapshots_dir):
    page = FakePage()

    path = await save_diagnostic_snapshot(page, "row-error-2", "error")

    assert path is not None
    assert path.parent == snapshots_dir
    assert path.name.endswith("_row-error-2_error.png")
    assert page.screenshots == [str(path)]
    assert snapshots_dir.is_dir()


@pytest.mark.asyncio
async def test_save_diagnostic_snapshot_explicit_root(tmp_path):
    page = FakePage()

    path = await save_diagnostic_snapshot(page, "critical-error", root=tmp_path / "snaps")

    assert path.parent == tmp_path / "snaps"


@pytest.mark.asyncio
async def test_save_diagnostic_snapshot_skips_closed_page():
    page = FakePage()
    page.closed = True

    with patch("worker.artifacts.logger") as mock_logger:
        path = await save_diagnostic_snapshot(page, "row-error-1")

    assert path is None
    assert page.screenshots == []
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args[0][0] == "snapshot_skipped"


@pytest.mark.asyncio
async def test_save_diagnostic_snapshot_skips_missing_page():
    assert await save_diagnostic_snapshot(None, "critical-error") is None


@pytest.mark.asyncio
async def test_save_diagnostic_snapshot_write_failure_returns_none():
    page = FakePage()
    page.screenshot = AsyncMock(side_effect=OSError("disk full"))

    with patch("worker.artifacts.logger") as mock_logger:
        path = await save_diagnostic_snapshot(page, "row-error-1")

    assert path is None
    mock_logger.warning.assert_called_once()
    kwargs = mock_logger.warning.call_args[1]
    assert kwargs["error_type"] == "OSError"
    assert kwargs["name"] == "row-error-1"

