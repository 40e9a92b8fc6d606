"""
Import-order checks run in a fresh interpreter, so modules already loaded by
other tests cannot hide a cycle.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]


@pytest.mark.parametrize(
    "first_module",
    ["worker.main", "worker.artifacts", "worker.crawl.price", "worker.crawl", "worker.orchestrator"],
)
def test_module_imports_cleanly_first(first_module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {first_module}; import worker.main"],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
