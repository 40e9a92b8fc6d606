"""
Per-row pacing: a short delay after every row and a longer pause every N rows.
"""

from __future__ import annotations

import asyncio

from shared.logging import get_logger

logger = get_logger(__name__)


class PacingController:
    def __init__(self, row_delay_ms: int = 1500, pause_every: int = 10, pause_ms: int = 5000):
        self.row_delay_ms = row_delay_ms
        self.pause_every = max(1, pause_every)
        self.pause_ms = pause_ms

    async def after_row(self, index: int) -> None:
        """Call after row `index` (0-based) has been written."""
        processed = index + 1
        if processed % self.pause_every == 0:
            logger.info("pacing_pause", rows_processed=processed, pause_ms=self.pause_ms)
            await asyncio.sleep(self.pause_ms / 1000)
        await asyncio.sleep(self.row_delay_ms / 1000)
