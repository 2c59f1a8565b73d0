"""Run records for sync invocations."""

from convex_envsync.state.models import SyncRunRecord
from convex_envsync.state.store import (
    config_dir,
    list_sync_records,
    load_sync_record,
    write_sync_record,
)

__all__ = [
    "SyncRunRecord",
    "config_dir",
    "list_sync_records",
    "load_sync_record",
    "write_sync_record",
]
