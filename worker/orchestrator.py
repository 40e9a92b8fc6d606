"""
Run orchestrator: search submission → manual challenge window → results
resolution → row iteration, with session recovery and pacing between rows.

The orchestrator is the only owner of the Session value. Components receive it
as a parameter; only ensure_alive produces a replacement.
"""

from __future__ import annotations

import asyncio
import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Optional
from uuid import uuid4

from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from shared.config import AppConfig
from shared.logging import bind_run_context, clear_row_context, get_logger
from worker.artifacts import save_diagnostic_snapshot
from worker.crawl.constants import (
    FIRST_NAME_INPUT,
    LAST_NAME_INPUT,
    RESULTS_LOAD_TIMEOUT_MS,
    RESULTS_RACE_TIMEOUT_MS,
    SEARCH_BUTTON,
    STATE_DROPDOWN,
    TABLE_CELL_SELECTOR,
    TABLE_FIFTH_ROW_SELECTOR,
    TABLE_FIFTH_ROW_TIMEOUT_MS,
    TABLE_FAST_ROW_SELECTOR,
    TABLE_ROBUST_TIMEOUT_MS,
    TABLE_ROW_SELECTORS,
)
from worker.crawl.navigation_retry import is_challenge_page
from worker.crawl.selectors import resolve_selector
from worker.crawl.surfaces import race_new_page_or_in_place
from worker.errors import NoCandidateMatched, RunFatal, SessionClosed
from worker.pacing import PacingController
from worker.records import Record
from worker.rows import RowDescriptor, process_row
from worker.session import Session, SessionManager
from worker.sink import CsvRecordSink
from worker.storage import set_snapshots_root

logger = get_logger(__name__)


class RunState(str, Enum):
    INIT = "init"
    SEARCH_SUBMITTED = "search_submitted"
    AWAITING_MANUAL_CHALLENGE = "awaiting_manual_challenge"
    RESULTS_RESOLVING = "results_resolving"
    ROW_ITERATING = "row_iterating"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class RunSummary:
    state: RunState = RunState.INIT
    rows_total: int = 0
    rows_iterated: int = 0
    records_written: int = 0
    prices_found: int = 0
    recoveries: int = 0
    error_summary: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is RunState.COMPLETED


async def resolve_results_rows(page: Page) -> tuple[Locator, int]:
    """
    Locate the results rows: fast fixed-position check first, then the full
    candidate list. Only rows containing cells are kept.

    Raises NoCandidateMatched when neither path finds a table.
    """
    logger.info("results_table_waiting", mode="fast")
    try:
        await page.wait_for_selector(TABLE_FIFTH_ROW_SELECTOR, timeout=TABLE_FIFTH_ROW_TIMEOUT_MS)
        selector = TABLE_FAST_ROW_SELECTOR
        logger.info("results_table_found", mode="fast", selector=selector)
    except PlaywrightTimeoutError:
        logger.info("results_table_fifth_row_missing", fallback="robust")
        selector = await resolve_selector(page, TABLE_ROW_SELECTORS, TABLE_ROBUST_TIMEOUT_MS)
    rows = page.locator(selector).filter(has=page.locator(TABLE_CELL_SELECTOR))
    count = await rows.count()
    return rows, count


class SearchOrchestrator:
    """Drives one extraction run end to end."""

    def __init__(
        self,
        config: AppConfig,
        sessions: SessionManager,
        sink: CsvRecordSink,
        pacing: Optional[PacingController] = None,
    ):
        self.config = config
        self.sessions = sessions
        self.sink = sink
        self.pacing = pacing or PacingController(
            row_delay_ms=config.row_delay_ms,
            pause_every=config.pause_every_rows,
            pause_ms=config.pause_ms,
        )
        self.run_id = str(uuid4())[:8]
        self.summary = RunSummary()
        self.session: Optional[Session] = None
        self.last_known_location: Optional[str] = None

    def _transition(self, state: RunState) -> None:
        logger.info("run_state", previous=self.summary.state.value, state=state.value)
        self.summary.state = state

    async def run(self) -> RunSummary:
        """Execute the run. Always closes the sink and releases the session."""
        bind_run_context(run_id=self.run_id)
        set_snapshots_root(self.config.snapshots_dir)
        logger.info("run_started", entry_url=self.config.entry_url)
        try:
            with self.sink:
                try:
                    self.session = await self.sessions.open(headless=self.config.headless)
                    await self._submit_search()
                    await self._await_manual_challenge()
                    await self._open_results()
                    rows = await self._resolve_rows()
                    await self._iterate_rows(rows)
                    self._transition(RunState.COMPLETED)
                except Exception as e:
                    await self._fail(e)
        finally:
            await self.sessions.close(self.session)
            self.summary.recoveries = self.sessions.recoveries
            self.summary.records_written = self.sink.rows_written
            logger.info(
                "run_finished",
                state=self.summary.state.value,
                rows_total=self.summary.rows_total,
                rows_iterated=self.summary.rows_iterated,
                records_written=self.summary.records_written,
                prices_found=self.summary.prices_found,
                recoveries=self.summary.recoveries,
                error_summary=self.summary.error_summary,
            )
        return self.summary

    async def _fail(self, exc: BaseException) -> None:
        logger.error("run_failed", error=str(exc), error_type=type(exc).__name__, exc_info=True)
        self.summary.error_summary = exc.summary if isinstance(exc, RunFatal) else str(exc)
        page = self.session.page if self.session else None
        await save_diagnostic_snapshot(page, "critical-error", "error")
        self._transition(RunState.FAILED)

    async def _submit_search(self) -> None:
        page = self.session.page
        await page.locator(FIRST_NAME_INPUT).fill(self.config.search_first_name)
        await page.locator(LAST_NAME_INPUT).fill(self.config.search_last_name)
        await page.locator(STATE_DROPDOWN).select_option(label=self.config.search_state)
        self._transition(RunState.SEARCH_SUBMITTED)

    async def _await_manual_challenge(self) -> None:
        self._transition(RunState.AWAITING_MANUAL_CHALLENGE)
        logger.info("manual_challenge_window", wait_seconds=self.config.challenge_wait_seconds)
        await asyncio.sleep(self.config.challenge_wait_seconds)
        if await is_challenge_page(self.session.page):
            logger.warning("challenge_still_present")

    async def _open_results(self) -> None:
        self._transition(RunState.RESULTS_RESOLVING)
        page = self.session.page
        logger.info("search_submitting")
        # The search form is itself a four-row table, so only a fifth row means results.
        surface, opened_new = await race_new_page_or_in_place(
            self.session.context,
            page,
            lambda: page.locator(SEARCH_BUTTON).click(force=True),
            TABLE_FIFTH_ROW_SELECTOR,
            RESULTS_RACE_TIMEOUT_MS,
        )
        if opened_new:
            logger.info("results_new_page_loading", timeout_ms=RESULTS_LOAD_TIMEOUT_MS)
            await surface.wait_for_load_state("domcontentloaded", timeout=RESULTS_LOAD_TIMEOUT_MS)
            self.session = dataclasses.replace(self.session, page=surface)
        self.last_known_location = surface.url

    async def _resolve_rows(self) -> Locator:
        page = self.session.page
        try:
            rows, count = await resolve_results_rows(page)
        except NoCandidateMatched as e:
            await save_diagnostic_snapshot(page, "no-results-table", "debug")
            raise RunFatal("No results table found") from e
        if count == 0:
            await save_diagnostic_snapshot(page, "no-data-rows", "debug")
            raise RunFatal("No data rows found in results table")
        self.last_known_location = page.url
        if self.summary.rows_total == 0:
            self.summary.rows_total = count
        logger.info("results_rows_found", rows=count)
        return rows

    async def _ensure_session(self, rows: Locator) -> Locator:
        """Recover the session if needed; a new session invalidates row handles."""
        current = self.session
        self.session = await self.sessions.ensure_alive(current, self.last_known_location)
        if self.session is current:
            return rows
        logger.info("results_rows_reresolving")
        return await self._resolve_rows()

    def _emit(self, record: Record) -> None:
        self.sink.append(record)
        if record.has_price:
            self.summary.prices_found += 1

    async def _iterate_rows(self, rows: Locator) -> None:
        self._transition(RunState.ROW_ITERATING)
        total = self.summary.rows_total
        limit = min(total, self.config.row_limit)
        for index in range(limit):
            rows = await self._ensure_session(rows)
            bind_run_context(row=index + 1)
            logger.info(
                "row_started",
                of=total,
                percent_complete=round(index / total * 100) if total else 0,
            )
            row = RowDescriptor(index=index, locator=rows.nth(index))
            try:
                record = await process_row(
                    row,
                    self.session,
                    last_known_location=self.last_known_location,
                    price_max_attempts=self.config.price_max_attempts,
                )
            except SessionClosed as e:
                self._emit(e.record)
                await save_diagnostic_snapshot(self.session.page, f"row-error-{index + 1}", "error")
                rows = await self._ensure_session(rows)
            else:
                self._emit(record)
            self.summary.rows_iterated += 1
            clear_row_context()
            await self.pacing.after_row(index)
