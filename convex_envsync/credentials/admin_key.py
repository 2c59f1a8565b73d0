"""Admin key providers for self-hosted Convex backends.

A self-hosted backend mints admin keys with ``generate_admin_key.sh``
inside its container.  Rather than tying credential resolution to a
container runtime, resolution accepts any object with ``fetch() -> str``.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Protocol

from convex_envsync.errors import CredentialsError

logger = logging.getLogger(__name__)

#: Script shipped in the self-hosted backend image.
GENERATE_ADMIN_KEY_SCRIPT = "./generate_admin_key.sh"


class AdminKeyProvider(Protocol):
    """Anything that can produce a self-hosted admin key."""

    def fetch(self) -> str:
        ...


@dataclass
class StaticAdminKeyProvider:
    """Return a key supplied up front (flag, secrets manager, test)."""

    key: str = field(repr=False)

    def fetch(self) -> str:
        if not self.key:
            raise CredentialsError("No admin key supplied.")
        return self.key


@dataclass
class DockerAdminKeyProvider:
    """Run ``generate_admin_key.sh`` in a docker compose service.

    The script prints a banner followed by the key, so the last non-empty
    line of stdout is taken as the key.
    """

    service: str = "backend"
    compose_file: Optional[str] = None
    timeout: float = 30.0
    script: str = GENERATE_ADMIN_KEY_SCRIPT

    def command(self) -> List[str]:
        cmd = ["docker", "compose"]
        if self.compose_file:
            cmd += ["-f", self.compose_file]
        # -T: no TTY, so stdout can be captured
        cmd += ["exec", "-T", self.service, self.script]
        return cmd

    def fetch(self) -> str:
        cmd = self.command()
        logger.info("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise CredentialsError("docker CLI not found on PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise CredentialsError(
                f"Admin key generation timed out after {self.timeout:.0f}s"
            ) from exc

        if proc.returncode != 0:
            raise CredentialsError(
                f"Admin key generation failed (rc={proc.returncode}): "
                f"{proc.stderr.strip() or '(no stderr)'}"
            )

        lines = [ln.strip() for ln in proc.stdout.splitlines() if ln.strip()]
        if not lines:
            raise CredentialsError("Admin key generation produced no output.")
        return lines[-1]
