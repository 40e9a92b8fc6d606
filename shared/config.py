"""
Environment-based configuration for the record-lookup extraction worker.

This module exposes a small, typed configuration surface shared by the CLI
entrypoint and the worker pipeline. All values are sourced from environment
variables with sensible, non-secret defaults.

No credentials are involved; search inputs and output paths can be supplied
via the environment (or a local .env loaded by python-dotenv).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal, Optional

Environment = Literal["local", "dev", "staging", "prod"]

DEFAULT_ENTRY_URL = "https://search.recoversy.in/"


@dataclass(frozen=True)
class AppConfig:
    """
    Top-level application configuration.

    Timing knobs are in milliseconds unless the name says otherwise.
    """

    environment: Environment
    log_level: str

    # Optional file path for structured JSON logs; when set, logs are written
    # to file (and stdout if log_stdout).
    log_file: Optional[str]
    log_stdout: bool

    # Lookup service and search form inputs.
    entry_url: str
    search_first_name: str
    search_last_name: str
    search_state: str

    # Durable outputs.
    output_csv: str
    snapshots_dir: str

    # The first browser is headed so a human can solve the challenge;
    # browsers launched during recovery run headless.
    headless: bool
    recovery_headless: bool

    # Run pacing and bounds.
    row_limit: int
    challenge_wait_seconds: int
    row_delay_ms: int
    pause_every_rows: int
    pause_ms: int
    price_max_attempts: int

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Construct configuration from environment variables.

        All fields have defaults suitable for a local interactive run.
        """

        environment = os.getenv("APP_ENV", "local")

        if environment not in {"local", "dev", "staging", "prod"}:
            raise ValueError(f"Unsupported APP_ENV value: {environment!r}")

        def _bool_env(name: str, default: bool) -> bool:
            raw = (os.getenv(name) or str(default)).strip().lower()
            return raw in ("true", "1", "yes")

        def _int_env(name: str, default: int, minimum: int = 0) -> int:
            raw = (os.getenv(name) or str(default)).strip()
            try:
                value = int(raw)
            except ValueError:
                return default
            return max(minimum, value)

        return cls(
            environment=environment,  # type: ignore[arg-type]
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE") or None,
            log_stdout=_bool_env("LOG_STDOUT", True),
            entry_url=os.getenv("ENTRY_URL") or DEFAULT_ENTRY_URL,
            search_first_name=os.getenv("SEARCH_FIRST_NAME", "kumar"),
            search_last_name=os.getenv("SEARCH_LAST_NAME", "kumar"),
            search_state=os.getenv("SEARCH_STATE", "Bihar"),
            output_csv=os.getenv("OUTPUT_CSV", "./output.csv"),
            snapshots_dir=os.getenv("SNAPSHOTS_DIR", "./screenshots"),
            headless=_bool_env("HEADLESS", False),
            recovery_headless=_bool_env("RECOVERY_HEADLESS", True),
            row_limit=_int_env("ROW_LIMIT", 100, minimum=1),
            challenge_wait_seconds=_int_env("CHALLENGE_WAIT_SECONDS", 30),
            row_delay_ms=_int_env("ROW_DELAY_MS", 1500),
            pause_every_rows=_int_env("PAUSE_EVERY_ROWS", 10, minimum=1),
            pause_ms=_int_env("PAUSE_MS", 5000),
            price_max_attempts=_int_env("PRICE_MAX_ATTEMPTS", 3, minimum=1),
        )


def get_config() -> AppConfig:
    """
    Helper to obtain the current configuration.

    The CLI builds one `AppConfig` at startup (with flag overrides applied via
    `dataclasses.replace`) and passes it explicitly through the pipeline.
    """

    return AppConfig.from_env()
