"""
Structured logging setup for the extraction worker.

All runtime logging goes through structlog. This module provides a minimal,
production-friendly baseline:

- Logs are structured (JSON) and include contextual fields.
- Context can be bound per run and per row (run_id, row, subject).
- Configuration is deterministic and lives in one place.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, Mapping, Optional

import structlog

_ROW_CONTEXT_KEYS = ("row", "subject")


def _build_shared_processors() -> list[structlog.types.Processor]:
    """Processors applied to every event."""

    timestamper = structlog.processors.TimeStamper(fmt="iso", utc=True)

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        timestamper,
        structlog.processors.EventRenamer("message"),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(ensure_ascii=False),
    ]


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_stdout: bool = True,
) -> None:
    """
    Configure structlog and the standard logging module.

    Call once at process startup. It is safe to call multiple times.

    - When log_stdout is True (default), a StreamHandler(sys.stdout) is added.
    - When log_file is set, a FileHandler is added (parent dir created if needed).
    - At least one handler is always added: if both log_stdout=False and log_file
      is unset, stdout is used as fallback so the process never has zero handlers.
    """

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    if log_stdout:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(level)
        stdout_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(stdout_handler)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(file_handler)

    if not root.handlers:
        fallback = logging.StreamHandler(sys.stdout)
        fallback.setLevel(level)
        fallback.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(fallback)

    structlog.configure(
        processors=_build_shared_processors(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: Optional[str] = None) -> structlog.BoundLogger:
    """
    Obtain a structured logger.

    Usage:
        from shared.logging import get_logger, bind_run_context

        logger = get_logger(__name__)
        bind_run_context(run_id="...", row=3, subject="Ravi Kumar")
        logger.info("price_found", price="₹18625")
    """

    # Fall back to a minimal configuration if configure_logging() was not called.
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(name) if name else structlog.get_logger()


def bind_run_context(
    *,
    run_id: Optional[str] = None,
    row: Optional[int] = None,
    subject: Optional[str] = None,
    **extra: Any,
) -> Mapping[str, Any]:
    """
    Bind common context fields for run / row logging.

    Additional keyword arguments are also bound into the logging context.
    """

    context: dict[str, Any] = {
        "run_id": run_id,
        "row": row,
        "subject": subject,
        **extra,
    }

    # Drop None values to keep logs concise.
    filtered_context = {k: v for k, v in context.items() if v is not None}

    structlog.contextvars.bind_contextvars(**filtered_context)
    return filtered_context


def clear_row_context() -> None:
    """Unbind per-row keys once a row is finished."""

    structlog.contextvars.unbind_contextvars(*_ROW_CONTEXT_KEYS)
