"""
Error taxonomy for the extraction pipeline.

Only errors that cross a component boundary are exceptions here. Field-level
read failures and unavailable prices are recovered where they happen and are
represented by sentinel values and logged events instead.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from worker.records import Record

# Driver messages that mean the page, its context or the browser is gone.
_SESSION_CLOSED_PHRASES = (
    "has been closed",
    "target closed",
    "browser closed",
    "target page, context or browser has been closed",
    "connection closed",
)


class ScrapeError(Exception):
    """Base class for pipeline errors."""


class NoCandidateMatched(ScrapeError):
    """None of a selector candidate list matched within the time budget."""

    def __init__(self, candidates: Sequence[str]):
        self.candidates = list(candidates)
        super().__init__(f"None of the selectors found: {', '.join(self.candidates)}")


class SessionClosed(ScrapeError):
    """
    The active page or its owning context died while processing a row.

    Carries the record built so far so the row is still emitted.
    """

    def __init__(self, record: "Record", cause: BaseException | None = None):
        self.record = record
        self.cause = cause
        super().__init__(str(cause) if cause else "Session closed")


class RunFatal(ScrapeError):
    """Setup failure outside the per-row boundary; aborts remaining work."""

    def __init__(self, summary: str):
        self.summary = summary
        super().__init__(summary)


def is_session_closed_error(exc: BaseException) -> bool:
    """True if the exception means the page, context or browser has been closed."""
    if isinstance(exc, SessionClosed):
        return True
    msg = (getattr(exc, "message", None) or str(exc)).lower()
    return any(phrase in msg for phrase in _SESSION_CLOSED_PHRASES)
