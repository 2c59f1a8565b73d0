"""Sync run record persisted after every ``sync``.

JSON shape::

    {
      "run_id": "YYYYMMDDHHMMSS",
      "target": "prod | preview:<name> | local",
      "mode": "cloud | local",
      "env_file": ".env.convex",
      "dry_run": false,
      "applied": ["KEY", ...],
      "skipped": ["KEY", ...],
      "failed": {"KEY": "RemoteUnavailableError: ..."},
      "pending": [],
      "cancelled": false,
      "aborted": false
    }
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Dict, List

from pydantic import BaseModel, Field

from convex_envsync.sync.orchestrator import SyncReport


def _run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")


class SyncRunRecord(BaseModel):
    """Outcome of one sync run, written to the XDG config directory."""

    run_id: str = Field(default_factory=_run_id)
    target: str = ""
    mode: str = ""
    env_file: str = ""
    dry_run: bool = False
    applied: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    failed: Dict[str, str] = Field(default_factory=dict)
    pending: List[str] = Field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False

    @classmethod
    def from_report(cls, report: SyncReport, **meta: object) -> "SyncRunRecord":
        return cls(**report.to_dict(), **meta)

    @property
    def ok(self) -> bool:
        return not self.failed and not self.cancelled and not self.aborted

    def to_sorted_json(self, indent: int = 2) -> str:
        """Serialise with sorted keys for deterministic output."""
        return json.dumps(
            self.model_dump(mode="json"),
            indent=indent,
            sort_keys=True,
        )
