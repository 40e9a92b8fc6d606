"""
Unit tests for environment-based configuration and CLI overrides.
"""

from __future__ import annotations

import pytest

from shared.config import DEFAULT_ENTRY_URL, AppConfig
from worker.main import apply_overrides, build_parser

_ENV_VARS = (
    "APP_ENV",
    "ENTRY_URL",
    "HEADLESS",
    "ROW_LIMIT",
    "PAUSE_EVERY_ROWS",
    "ROW_DELAY_MS",
    "LOG_FILE",
    "OUTPUT_CSV",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    config = AppConfig.from_env()

    assert config.environment == "local"
    assert config.entry_url == DEFAULT_ENTRY_URL
    assert config.headless is False
    assert config.recovery_headless is True
    assert config.row_limit == 100
    assert config.challenge_wait_seconds == 30
    assert config.row_delay_ms == 1500
    assert config.pause_every_rows == 10
    assert config.pause_ms == 5000
    assert config.price_max_attempts == 3
    assert config.log_file is None


def test_env_overrides(clean_env):
    clean_env.setenv("ENTRY_URL", "https://search.example/")
    clean_env.setenv("HEADLESS", "yes")
    clean_env.setenv("ROW_LIMIT", "25")
    clean_env.setenv("OUTPUT_CSV", "/tmp/out.csv")

    config = AppConfig.from_env()

    assert config.entry_url == "https://search.example/"
    assert config.headless is True
    assert config.row_limit == 25
    assert config.output_csv == "/tmp/out.csv"


def test_invalid_numbers_fall_back_or_clamp(clean_env):
    clean_env.setenv("ROW_DELAY_MS", "fast")
    clean_env.setenv("ROW_LIMIT", "0")
    clean_env.setenv("PAUSE_EVERY_ROWS", "-3")

    config = AppConfig.from_env()

    assert config.row_delay_ms == 1500
    assert config.row_limit == 1
    assert config.pause_every_rows == 1


def test_unsupported_environment_raises(clean_env):
    clean_env.setenv("APP_ENV", "qa")
    with pytest.raises(ValueError, match="APP_ENV"):
        AppConfig.from_env()


def test_cli_overrides_replace_only_given_flags(clean_env):
    config = AppConfig.from_env()
    args = build_parser().parse_args(["--first-name", "ravi", "--limit", "5", "--headless"])

    updated = apply_overrides(config, args)

    assert updated.search_first_name == "ravi"
    assert updated.search_last_name == config.search_last_name
    assert updated.row_limit == 5
    assert updated.headless is True
    assert updated.output_csv == config.output_csv


def test_cli_without_flags_keeps_config(clean_env):
    config = AppConfig.from_env()
    assert apply_overrides(config, build_parser().parse_args([])) == config


def test_cli_limit_is_at_least_one(clean_env):
    config = AppConfig.from_env()
    updated = apply_overrides(config, build_parser().parse_args(["--limit", "0"]))
    assert updated.row_limit == 1
