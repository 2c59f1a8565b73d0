"""Persistent storage for sync run records.

Writes JSON to ``~/.config/convex-envsync/`` (XDG_CONFIG_HOME / convex-envsync).

File naming::

    sync_<target>_<run_id>.json

All JSON is serialised with **sorted keys** for deterministic, diff-friendly output.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

from convex_envsync.state.models import SyncRunRecord

logger = logging.getLogger(__name__)

_APP_DIR = "convex-envsync"


# ---------------------------------------------------------------------------
# Directory resolution
# ---------------------------------------------------------------------------


def config_dir() -> Path:
    """Return the XDG config directory for convex-envsync.

    Uses ``XDG_CONFIG_HOME`` if set, otherwise ``~/.config``.
    Creates the directory if it does not exist.
    """
    base = os.environ.get("XDG_CONFIG_HOME", "")
    if not base:
        base = str(Path.home() / ".config")
    path = Path(base) / _APP_DIR
    path.mkdir(parents=True, exist_ok=True)
    return path


# ---------------------------------------------------------------------------
# Read / write helpers
# ---------------------------------------------------------------------------


def _safe_name(name: Optional[str]) -> str:
    """Sanitise a target label for use in a filename."""
    if not name:
        return "unknown"
    return "".join(c if (c.isalnum() or c in "-_") else "_" for c in name)


def write_sync_record(record: SyncRunRecord) -> Path:
    """Persist *record* as sorted-key JSON and return the written path.

    Path pattern: ``<config_dir>/sync_<target>_<run_id>.json``
    """
    filename = f"sync_{_safe_name(record.target)}_{record.run_id}.json"
    dest = config_dir() / filename
    dest.write_text(record.to_sorted_json() + "\n", encoding="utf-8")
    logger.info("Sync record written to %s", dest)
    return dest


def load_sync_record(path: str | Path) -> SyncRunRecord:
    """Read a record previously written by :func:`write_sync_record`."""
    return SyncRunRecord.model_validate_json(Path(path).read_text(encoding="utf-8"))


def list_sync_records(target: Optional[str] = None) -> List[Path]:
    """Return written record paths, oldest first, optionally for one target."""
    pattern = f"sync_{_safe_name(target)}_*.json" if target else "sync_*.json"
    return sorted(config_dir().glob(pattern))
