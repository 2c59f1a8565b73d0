"""Sync orchestrator: push config entries to the remote store.

Entries are applied one at a time, in source order:

1. Excluded keys are skipped with a warning.
2. ``client.set`` is called for everything else.
3. A per-key store failure (unreachable, timeout, unexpected CLI error) is
   recorded in ``failed`` and the next key is processed.
4. :class:`AuthenticationError` aborts immediately; every later call would
   be rejected the same way.  The partial report rides on the exception.

Cancellation is checked before each ``set``.  Keys applied before the stop
stay applied; nothing is rolled back.  Re-running with the same entries
converges to the same remote state because ``set`` is last-write-wins.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from convex_envsync.config.models import ConfigEntry
from convex_envsync.errors import AuthenticationError, RemoteStoreError
from convex_envsync.store.base import RemoteStoreClient

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class CancelToken:
    """Cooperative stop flag, safe to set from a signal handler or thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


# ---------------------------------------------------------------------------
# SyncReport
# ---------------------------------------------------------------------------


@dataclass
class SyncReport:
    """Per-key outcome of one :func:`sync` run."""

    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, Exception] = field(default_factory=dict)
    pending: List[str] = field(default_factory=list)
    cancelled: bool = False
    aborted: bool = False

    @property
    def ok(self) -> bool:
        """True when nothing failed and the run ran to completion."""
        return not self.failed and not self.cancelled and not self.aborted

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to a plain dict; errors become ``Type: message`` strings."""
        return {
            "aborted": self.aborted,
            "applied": list(self.applied),
            "cancelled": self.cancelled,
            "failed": {
                key: f"{type(exc).__name__}: {exc}" for key, exc in self.failed.items()
            },
            "pending": list(self.pending),
            "skipped": list(self.skipped),
        }


# ---------------------------------------------------------------------------
# sync
# ---------------------------------------------------------------------------


def sync(
    entries: Iterable[ConfigEntry],
    exclusions: Iterable[str],
    client: RemoteStoreClient,
    *,
    cancel: Optional[CancelToken] = None,
) -> SyncReport:
    """Apply *entries* to *client*, honouring *exclusions*.

    Raises:
        AuthenticationError: the store rejected the credentials.  Keys
            already applied stay applied; the partial report (``aborted``
            set, rejected key in ``failed``, the rest in ``pending``) is
            attached as ``exc.report``.
    """
    ordered = list(entries)
    excluded = frozenset(exclusions)
    report = SyncReport()

    for index, entry in enumerate(ordered):
        if cancel is not None and cancel.cancelled:
            report.cancelled = True
            report.pending = [e.key for e in ordered[index:]]
            logger.warning(
                "Sync cancelled; %d key(s) not attempted.", len(report.pending)
            )
            break

        if entry.key in excluded:
            logger.warning(
                "Skipping %s: excluded from bulk sync (use the dedicated setup path).",
                entry.key,
            )
            report.skipped.append(entry.key)
            continue

        try:
            client.set(entry.key, entry.value)
        except AuthenticationError as exc:
            logger.error("Credentials rejected while setting %s; aborting.", entry.key)
            report.failed[entry.key] = exc
            report.pending = [e.key for e in ordered[index + 1:]]
            report.aborted = True
            exc.report = report
            raise
        except RemoteStoreError as exc:
            logger.error("Failed to set %s: %s", entry.key, exc)
            report.failed[entry.key] = exc
            continue

        report.applied.append(entry.key)

    logger.info(
        "Sync finished: %d applied, %d skipped, %d failed%s.",
        len(report.applied),
        len(report.skipped),
        len(report.failed),
        ", cancelled" if report.cancelled else "",
    )
    return report
