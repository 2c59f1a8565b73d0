"""Remote configuration store clients."""

from convex_envsync.store.base import NOT_FOUND, Ack, GetResult, RemoteStoreClient
from convex_envsync.store.cli import (
    AUTH_FAILURE_MARKERS,
    DEFAULT_COMMAND,
    DEFAULT_TIMEOUT,
    UNAVAILABLE_MARKERS,
    CliResult,
    ConvexCliStore,
    classify_failure,
)
from convex_envsync.store.memory import InMemoryStore

__all__ = [
    "AUTH_FAILURE_MARKERS",
    "Ack",
    "CliResult",
    "ConvexCliStore",
    "DEFAULT_COMMAND",
    "DEFAULT_TIMEOUT",
    "GetResult",
    "InMemoryStore",
    "NOT_FOUND",
    "RemoteStoreClient",
    "UNAVAILABLE_MARKERS",
    "classify_failure",
]
