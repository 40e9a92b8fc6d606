"""
Incremental CSV sink: one row per completed record, durable before returning.

A header is written only when the output file is new or empty, so resumed runs
append to prior output. Use as a context manager so the file is closed on every
exit path.
"""

from __future__ import annotations

import csv
import os
from pathlib import Path
from typing import IO, Optional

from shared.logging import get_logger
from worker.records import RECORD_FIELDS, Record

logger = get_logger(__name__)


class CsvRecordSink:
    """Append-only record writer keyed by RECORD_FIELDS."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.rows_written = 0
        self._file: Optional[IO[str]] = None
        self._writer: Optional[csv.DictWriter] = None
        self._closed = False

    def open(self) -> "CsvRecordSink":
        if self._file is not None:
            return self
        resumed = self.path.exists() and self.path.stat().st_size > 0
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.path.open("a", encoding="utf-8", newline="")
        self._writer = csv.DictWriter(self._file, fieldnames=list(RECORD_FIELDS))
        if not resumed:
            self._writer.writeheader()
            self._sync()
        logger.info("sink_opened", path=str(self.path), resumed=resumed)
        return self

    def _sync(self) -> None:
        self._file.flush()
        os.fsync(self._file.fileno())

    def append(self, record: Record) -> None:
        """Write one record and force it to disk."""
        if self._closed:
            raise RuntimeError("Sink is closed")
        if self._writer is None:
            self.open()
        self._writer.writerow(record.as_row())
        self._sync()
        self.rows_written += 1
        logger.info("record_written", rows_written=self.rows_written, has_price=record.has_price)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._file is not None:
            self._file.flush()
            self._file.close()
        logger.info("sink_closed", path=str(self.path), rows_written=self.rows_written)

    def __enter__(self) -> "CsvRecordSink":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
