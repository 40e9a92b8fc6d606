"""
Unit tests for snapshot path building and naming.

Convention: {snapshots_dir}/{timestamp}_{name}_{reason}.png
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from worker.storage import (
    build_snapshot_path,
    ensure_snapshot_dir,
    get_snapshots_root,
    sanitize_label,
    set_snapshots_root,
    snapshot_timestamp,
)

MOMENT = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)


def test_sanitize_label_strips_unsafe_characters():
    assert sanitize_label("Ravi Kumar!") == "RaviKumar"
    assert sanitize_label("row-3_ok") == "row-3_ok"


def test_sanitize_label_truncates():
    assert sanitize_label("A" * 50) == "A" * 20
    assert sanitize_label("abcdef", max_len=3) == "abc"


def test_sanitize_label_empty_falls_back():
    assert sanitize_label("") == "unnamed"
    assert sanitize_label("₹ ₹") == "unnamed"


def test_snapshot_timestamp_is_filename_safe():
    stamp = snapshot_timestamp(MOMENT)
    assert ":" not in stamp
    assert "." not in stamp
    assert stamp.startswith("2026-01-02T03-04-05")


def test_build_snapshot_path_naming_convention(tmp_path):
    path = build_snapshot_path("row-error-4", "error", now=MOMENT, root=tmp_path)

    assert path.parent == tmp_path
    assert path.name == f"{snapshot_timestamp(MOMENT)}_row-error-4_error.png"


def test_build_snapshot_path_sanitizes_name_and_reason(tmp_path):
    path = build_snapshot_path("critical error/..", "de bug", now=MOMENT, root=tmp_path)

    assert path.parent == tmp_path
    assert path.name.endswith("_criticalerror_debug.png")


def test_build_snapshot_path_uses_configured_root(snapshots_dir):
    path = build_snapshot_path("no-results-table", "debug", now=MOMENT)

    assert get_snapshots_root() == Path(str(snapshots_dir))
    assert path.parent == Path(str(snapshots_dir))


def test_build_snapshot_path_does_not_create_anything(tmp_path):
    root = tmp_path / "missing"
    build_snapshot_path("x", "error", now=MOMENT, root=root)
    assert not root.exists()


def test_ensure_snapshot_dir_creates_parent(tmp_path):
    path = build_snapshot_path("x", "error", now=MOMENT, root=tmp_path / "a" / "b")
    ensure_snapshot_dir(path)
    ensure_snapshot_dir(path)
    assert path.parent.is_dir()


def test_snapshots_root_reads_config_once(tmp_path, monkeypatch):
    monkeypatch.setattr("worker.storage._snapshots_root", None)
    config = SimpleNamespace(snapshots_dir=str(tmp_path / "from-env"))

    with patch("worker.storage.get_config", return_value=config) as mock_get_config:
        first = build_snapshot_path("a", "error", now=MOMENT)
        second = build_snapshot_path("b", "error", now=MOMENT)

    mock_get_config.assert_called_once()
    assert first.parent == second.parent == tmp_path / "from-env"


def test_set_snapshots_root_overrides_config(tmp_path):
    set_snapshots_root(str(tmp_path / "run"))

    with patch("worker.storage.get_config") as mock_get_config:
        path = build_snapshot_path("x", "debug", now=MOMENT)

    mock_get_config.assert_not_called()
    assert path.parent == tmp_path / "run"
