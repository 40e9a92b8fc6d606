"""
Shared fixtures for worker tests.

Snapshots are redirected to a per-test temporary directory so no test writes
into the working tree.
"""

from __future__ import annotations

import pytest


@pytest.fixture(autouse=True)
def snapshots_dir(tmp_path, monkeypatch):
    root = tmp_path / "screenshots"
    monkeypatch.setattr("worker.storage._snapshots_root", root)
    yield root
