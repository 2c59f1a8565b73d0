"""Sync orchestration and read-only diffing against the remote store."""

from convex_envsync.sync.orchestrator import CancelToken, SyncReport, sync
from convex_envsync.sync.plan import DiffReport, DiffStatus, KeyDiff, plan

__all__ = [
    "CancelToken",
    "DiffReport",
    "DiffStatus",
    "KeyDiff",
    "SyncReport",
    "plan",
    "sync",
]
