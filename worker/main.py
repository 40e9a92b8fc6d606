"""
CLI entrypoint for a record-lookup extraction run.

Usage: python -m worker.main [--first-name kumar] [--last-name kumar] [--state Bihar]
                             [--limit 100] [--output output.csv] [--headless]
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import logging
import sys
from typing import Optional, Sequence

from dotenv import load_dotenv
from playwright.async_api import async_playwright

from shared.config import AppConfig, get_config
from shared.logging import configure_logging, get_logger
from worker.orchestrator import RunSummary, SearchOrchestrator
from worker.session import SessionManager
from worker.sink import CsvRecordSink


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Extract search results and prices to CSV")
    parser.add_argument("--first-name", help="First name search input")
    parser.add_argument("--last-name", help="Last name search input")
    parser.add_argument("--state", help="State dropdown label")
    parser.add_argument("--limit", type=int, help="Maximum number of rows to process")
    parser.add_argument("--output", help="CSV output path (appended to if present)")
    parser.add_argument(
        "--challenge-wait",
        type=int,
        help="Seconds to wait for the challenge to be solved by hand",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the first browser headless (the challenge cannot be solved by hand).",
    )
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return config with any CLI flags applied."""
    overrides = {
        "search_first_name": args.first_name,
        "search_last_name": args.last_name,
        "search_state": args.state,
        "row_limit": max(1, args.limit) if args.limit is not None else None,
        "output_csv": args.output,
        "challenge_wait_seconds": args.challenge_wait,
        "headless": True if args.headless else None,
    }
    return dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})


async def run(config: AppConfig) -> RunSummary:
    async with async_playwright() as p:
        sessions = SessionManager(
            p.chromium,
            entry_url=config.entry_url,
            recovery_headless=config.recovery_headless,
        )
        orchestrator = SearchOrchestrator(config, sessions, CsvRecordSink(config.output_csv))
        return await orchestrator.run()


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    config = apply_overrides(get_config(), args)

    configure_logging(
        level=logging.getLevelName(config.log_level.upper()),
        log_file=config.log_file,
        log_stdout=config.log_stdout,
    )
    logger = get_logger(__name__)

    try:
        summary = asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.warning("run_interrupted")
        return 130
    except Exception as e:
        logger.error("run_setup_failed", error=str(e), error_type=type(e).__name__)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(
        f"Run {summary.state.value}: {summary.records_written} records written to "
        f"{config.output_csv} ({summary.prices_found} with price, "
        f"{summary.recoveries} session recoveries)"
    )
    if not summary.succeeded:
        print(f"ERROR: {summary.error_summary}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
