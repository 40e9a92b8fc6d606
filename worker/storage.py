"""
Diagnostic snapshot storage helpers for local disk.

Snapshots are write-only artifacts keyed by timestamp, subject label and reason:
{snapshots_dir}/{timestamp}_{name}_{reason}.png
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from shared.config import get_config

_LABEL_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_label(text: str, max_len: int = 20) -> str:
    """Keep ASCII alphanumerics, '-' and '_'; truncate to max_len."""
    cleaned = _LABEL_UNSAFE.sub("", text or "")
    return cleaned[:max_len] or "unnamed"


def snapshot_timestamp(now: Optional[datetime] = None) -> str:
    """ISO timestamp with ':' and '.' replaced so it is filename-safe."""
    moment = now or datetime.now(timezone.utc)
    return re.sub(r"[:.]", "-", moment.isoformat())


_snapshots_root: Optional[Path] = None


def set_snapshots_root(path: str | Path) -> None:
    """Pin the snapshot directory for this process, usually from the run config."""
    global _snapshots_root
    _snapshots_root = Path(path)


def get_snapshots_root() -> Path:
    """Snapshot directory; falls back to the environment config, read once."""
    global _snapshots_root
    if _snapshots_root is None:
        _snapshots_root = Path(get_config().snapshots_dir)
    return _snapshots_root


def build_snapshot_path(
    name: str,
    reason: str,
    now: Optional[datetime] = None,
    root: Optional[Path] = None,
) -> Path:
    """
    Build the snapshot file path. `name` and `reason` are sanitized.

    Returns a Path (does not create the file or directory).
    """
    base = root if root is not None else get_snapshots_root()
    safe_name = _LABEL_UNSAFE.sub("", name or "") or "unnamed"
    safe_reason = _LABEL_UNSAFE.sub("", reason or "") or "error"
    return base / f"{snapshot_timestamp(now)}_{safe_name}_{safe_reason}.png"


def ensure_snapshot_dir(path: Path) -> None:
    """Ensure the directory for a snapshot path exists."""
    path.parent.mkdir(parents=True, exist_ok=True)
