"""Exception taxonomy shared across convex-envsync.

Fatal vs. per-key handling is decided by the orchestrator and workflows:

- :class:`AmbiguousCredentialsError` stops before any remote call.
- :class:`MalformedLineError` stops before the source file touches the store.
- :class:`RemoteUnavailableError` is recorded per key; the batch continues.
- :class:`AuthenticationError` aborts the whole batch.
"""

from __future__ import annotations


class EnvSyncError(Exception):
    """Base class for every error raised by convex-envsync."""


class ConfigError(EnvSyncError):
    """The project config file is unreadable or invalid."""


class CredentialsError(EnvSyncError):
    """No usable credential context could be resolved."""


class AmbiguousCredentialsError(CredentialsError):
    """Inputs for both credential modes are present and no mode was chosen."""


class MalformedLineError(EnvSyncError):
    """A non-blank, non-comment source line has no ``=`` separator."""

    def __init__(self, line_number: int, line: str, reason: str = "missing '=' separator"):
        self.line_number = line_number
        self.line = line
        self.reason = reason
        super().__init__(f"line {line_number}: {reason}: {line!r}")


class RemoteStoreError(EnvSyncError):
    """Base class for failures talking to the remote configuration store."""


class RemoteUnavailableError(RemoteStoreError):
    """The store could not be reached (timeout, connection refused, no CLI)."""


class AuthenticationError(RemoteStoreError):
    """The store rejected the supplied credentials.

    When raised out of a sync batch, ``report`` holds the partial
    ``SyncReport`` (keys applied before the rejection stay applied).
    """

    report = None


class InvalidKeySetError(EnvSyncError):
    """A generated public-key-set document failed validation."""
