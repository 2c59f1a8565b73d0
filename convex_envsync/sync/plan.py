"""Read-only comparison of local entries against the remote store.

Shows what :func:`~convex_envsync.sync.orchestrator.sync` would change
without mutating anything.  Values are compared but never reported in clear.

Exit code convention: ``3`` = drift detected (for ``convex-envsync diff``).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List

from convex_envsync.config.models import ConfigEntry
from convex_envsync.errors import AuthenticationError, RemoteStoreError
from convex_envsync.store.base import NOT_FOUND, RemoteStoreClient

logger = logging.getLogger(__name__)


class DiffStatus(str, Enum):
    """Outcome of comparing one key."""

    IN_SYNC = "IN_SYNC"
    CHANGED = "CHANGED"
    MISSING = "MISSING"
    SKIPPED = "SKIPPED"
    ERROR = "ERROR"


@dataclass
class KeyDiff:
    """Comparison result for a single key."""

    key: str
    status: DiffStatus
    error: str = ""


@dataclass
class DiffReport:
    """Aggregate comparison for one source file against one store."""

    target: str
    keys: List[KeyDiff] = field(default_factory=list)
    remote_only: List[str] = field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        return any(k.status in (DiffStatus.CHANGED, DiffStatus.MISSING) for k in self.keys)

    @property
    def has_errors(self) -> bool:
        return any(k.status == DiffStatus.ERROR for k in self.keys)

    def by_status(self, status: DiffStatus) -> List[str]:
        return [k.key for k in self.keys if k.status == status]

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to a plain dict (sorted for determinism)."""
        return {
            "has_drift": self.has_drift,
            "keys": [
                {"error": k.error, "key": k.key, "status": k.status.value}
                for k in self.keys
            ],
            "remote_only": sorted(self.remote_only),
            "target": self.target,
        }


def plan(
    entries: Iterable[ConfigEntry],
    exclusions: Iterable[str],
    client: RemoteStoreClient,
    *,
    include_remote_only: bool = True,
) -> DiffReport:
    """Compare *entries* with *client* without writing.

    ``remote_only`` lists remote keys absent locally (excluded keys are left
    out, since they are managed elsewhere).  It is informational and does
    not count as drift: sync never removes keys.

    Raises:
        AuthenticationError: the store rejected the credentials.
    """
    ordered = list(entries)
    excluded = frozenset(exclusions)
    report = DiffReport(target=client.name)

    for entry in ordered:
        if entry.key in excluded:
            report.keys.append(KeyDiff(key=entry.key, status=DiffStatus.SKIPPED))
            continue
        try:
            remote = client.get(entry.key)
        except AuthenticationError:
            raise
        except RemoteStoreError as exc:
            report.keys.append(KeyDiff(key=entry.key, status=DiffStatus.ERROR, error=str(exc)))
            continue

        if remote is NOT_FOUND:
            status = DiffStatus.MISSING
        elif remote == entry.value:
            status = DiffStatus.IN_SYNC
        else:
            status = DiffStatus.CHANGED
        report.keys.append(KeyDiff(key=entry.key, status=status))

    if include_remote_only:
        local = {e.key for e in ordered}
        try:
            report.remote_only = [
                k for k in client.list() if k not in local and k not in excluded
            ]
        except AuthenticationError:
            raise
        except RemoteStoreError as exc:
            logger.warning("Could not list remote keys: %s", exc)

    logger.info(
        "Diff for %s: %d changed, %d missing, %d in sync.",
        report.target,
        len(report.by_status(DiffStatus.CHANGED)),
        len(report.by_status(DiffStatus.MISSING)),
        len(report.by_status(DiffStatus.IN_SYNC)),
    )
    return report
