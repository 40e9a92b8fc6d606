"""
Diagnostic artifacts: full-page screenshots captured on extraction failures.

Capture is best-effort. A closed page is skipped and write failures are logged
with context; neither ever fails the row or the run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from playwright.async_api import Page

from shared.logging import get_logger
from worker.storage import build_snapshot_path, ensure_snapshot_dir

logger = get_logger(__name__)


def _page_is_closed(page: Optional[Page]) -> bool:
    if page is None:
        return True
    try:
        return bool(page.is_closed())
    except Exception:
        return True


async def save_diagnostic_snapshot(
    page: Optional[Page],
    name: str,
    reason: str = "error",
    root: Optional[Path] = None,
) -> Optional[Path]:
    """
    Capture a full-page screenshot for post-hoc debugging.

    Returns the written path, or None when skipped or failed.
    """
    if _page_is_closed(page):
        logger.warning("snapshot_skipped", name=name, reason=reason, cause="page_closed")
        return None
    try:
        path = build_snapshot_path(name, reason, root=root)
        ensure_snapshot_dir(path)
        await page.screenshot(path=str(path), full_page=True)
    except Exception as e:
        logger.warning(
            "snapshot_failed",
            name=name,
            reason=reason,
            error=str(e),
            error_type=type(e).__name__,
        )
        return None
    logger.info("snapshot_saved", name=name, reason=reason, path=str(path))
    return path
