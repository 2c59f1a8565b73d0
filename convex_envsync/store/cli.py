"""Convex CLI wrapper for ``convex env get|set|list|remove``.

Wraps the CLI as a subprocess so this package never reimplements the
deployment API.  Three rules hold for every call:

- the argument vector is passed directly (no shell), and ``--`` precedes
  positional operands so values such as PEM blocks that begin with
  ``-----`` are never parsed as options
- the subprocess environment is built from the resolved credential
  context, with the other mode's variables removed
- a timeout is always applied; expiry raises :class:`RemoteUnavailableError`
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence

from convex_envsync.credentials.context import CredentialContext
from convex_envsync.errors import (
    AuthenticationError,
    RemoteStoreError,
    RemoteUnavailableError,
)
from convex_envsync.store.base import NOT_FOUND, Ack, GetResult, RemoteStoreClient

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_COMMAND: tuple = ("npx", "convex")
DEFAULT_TIMEOUT: float = 30.0

#: Lower-cased output fragments that mean the credentials were rejected.
AUTH_FAILURE_MARKERS: tuple = (
    "401",
    "403",
    "unauthorized",
    "forbidden",
    "baddeploykey",
    "badadminkey",
    "invalid deploy key",
    "invalid admin key",
    "invalidauthheader",
    "not authorized",
)

#: Lower-cased output fragments that mean the deployment was unreachable.
UNAVAILABLE_MARKERS: tuple = (
    "econnrefused",
    "econnreset",
    "enotfound",
    "etimedout",
    "fetch failed",
    "connection refused",
    "network error",
    "502",
    "503",
    "504",
)

_ENV_LINE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=")
_VAR_NOT_FOUND = re.compile(r"environment variable\b.*\bnot found", re.IGNORECASE)

_REDACTED = "<redacted>"


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class CliResult:
    """Outcome of one ``convex env`` invocation."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def output(self) -> str:
        return f"{self.stdout}\n{self.stderr}".strip()


def classify_failure(result: CliResult) -> RemoteStoreError:
    """Map a failed invocation to the matching store error."""
    text = result.output.lower()
    detail = result.stderr.strip() or result.stdout.strip() or "(no output)"
    message = f"{result.command} failed (rc={result.returncode}): {detail}"
    if any(marker in text for marker in AUTH_FAILURE_MARKERS):
        return AuthenticationError(message)
    if any(marker in text for marker in UNAVAILABLE_MARKERS):
        return RemoteUnavailableError(message)
    return RemoteStoreError(message)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class ConvexCliStore(RemoteStoreClient):
    """Remote store backed by the Convex CLI."""

    def __init__(
        self,
        credentials: CredentialContext,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        command: Sequence[str] = DEFAULT_COMMAND,
        cwd: Optional[str] = None,
        base_env: Optional[Mapping[str, str]] = None,
    ):
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.credentials = credentials
        self.timeout = timeout
        self.command = list(command)
        self.cwd = cwd
        self.base_env = base_env

    @property
    def name(self) -> str:
        return f"convex-cli ({self.credentials.target_label})"

    # -- argv ---------------------------------------------------------------

    def build_argv(self, subcommand: str, *operands: str) -> List[str]:
        """Return ``<command> env <subcommand> [target flags] -- <operands>``."""
        argv = [*self.command, "env", subcommand, *self.credentials.cli_args()]
        if operands:
            argv.append("--")
            argv.extend(operands)
        return argv

    def _display(self, argv: List[str], secret_index: Optional[int]) -> str:
        shown = list(argv)
        if secret_index is not None:
            shown[secret_index] = _REDACTED
        return " ".join(shown)

    def _run(self, argv: List[str], *, secret_index: Optional[int] = None) -> CliResult:
        display = self._display(argv, secret_index)
        logger.debug("Running: %s", display)
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=self.credentials.subprocess_env(self.base_env),
                timeout=self.timeout,
                cwd=self.cwd,
            )
        except FileNotFoundError as exc:
            raise RemoteUnavailableError(
                f"Convex CLI not found on PATH ({self.command[0]})"
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise RemoteUnavailableError(
                f"{display} timed out after {self.timeout:.0f}s"
            ) from exc

        return CliResult(
            command=display,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )

    # -- RemoteStoreClient --------------------------------------------------

    def get(self, key: str) -> GetResult:
        result = self._run(self.build_argv("get", key))
        if _VAR_NOT_FOUND.search(result.stderr):
            return NOT_FOUND
        if result.returncode != 0:
            raise classify_failure(result)
        value = result.stdout
        if value.endswith("\n"):
            value = value[:-1]
        return value

    def set(self, key: str, value: str) -> Ack:
        argv = self.build_argv("set", key, value)
        result = self._run(argv, secret_index=len(argv) - 1)
        if result.returncode != 0:
            raise classify_failure(result)
        logger.info("Set %s on %s", key, self.credentials.target_label)
        return Ack(key=key, action="set")

    def list(self) -> List[str]:
        result = self._run(self.build_argv("list"))
        if result.returncode != 0:
            raise classify_failure(result)
        keys: List[str] = []
        for line in result.stdout.splitlines():
            match = _ENV_LINE.match(line)
            if match and match.group(1) not in keys:
                keys.append(match.group(1))
        return keys

    def remove(self, key: str) -> Ack:
        result = self._run(self.build_argv("remove", key))
        if result.returncode != 0:
            raise classify_failure(result)
        logger.info("Removed %s on %s", key, self.credentials.target_label)
        return Ack(key=key, action="remove")
