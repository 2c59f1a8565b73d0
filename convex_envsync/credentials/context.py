"""Credential context: which Convex deployment a command talks to.

Two mutually exclusive modes exist:

- **local**: a self-hosted backend (``CONVEX_SELF_HOSTED_URL`` +
  ``CONVEX_SELF_HOSTED_ADMIN_KEY``).
- **cloud**: a Convex cloud deployment addressed by ``CONVEX_DEPLOY_KEY``,
  targeting production or a named preview deployment.

The Convex CLI silently prefers the self-hosted variables whenever they are
exported, even when a deploy key is also present.  Resolution here never
guesses: when inputs for both modes are present, the caller must pick one
explicitly or :class:`AmbiguousCredentialsError` is raised.  The resolved
context is then passed to every call and rendered into an explicit
subprocess environment with the other mode's variables removed.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from convex_envsync.credentials.admin_key import AdminKeyProvider
from convex_envsync.errors import AmbiguousCredentialsError, CredentialsError

logger = logging.getLogger(__name__)

ENV_SELF_HOSTED_URL = "CONVEX_SELF_HOSTED_URL"
ENV_SELF_HOSTED_ADMIN_KEY = "CONVEX_SELF_HOSTED_ADMIN_KEY"
ENV_DEPLOY_KEY = "CONVEX_DEPLOY_KEY"

LOCAL_ENV_VARS = (ENV_SELF_HOSTED_URL, ENV_SELF_HOSTED_ADMIN_KEY)
CLOUD_ENV_VARS = (ENV_DEPLOY_KEY,)

#: Deploy keys for preview deployments start with this prefix.
PREVIEW_KEY_PREFIX = "preview:"


class CredentialMode(str, Enum):
    """Which family of credentials is active."""

    LOCAL = "local"
    CLOUD = "cloud"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def mask_secret(value: str) -> str:
    """Redact *value* for display, keeping only a short prefix."""
    if not value:
        return ""
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}****({len(value)} chars)"


def _without(base: Mapping[str, str], names: tuple) -> Dict[str, str]:
    return {k: v for k, v in base.items() if k not in names}


# ---------------------------------------------------------------------------
# Context variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocalCredentials:
    """Self-hosted backend reached by URL with an admin key."""

    url: str
    admin_key: str = field(repr=False)

    mode: ClassVar[CredentialMode] = CredentialMode.LOCAL

    @property
    def target_label(self) -> str:
        return "local"

    def cli_args(self) -> List[str]:
        return []

    def subprocess_env(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Return *base* with only the self-hosted variables set."""
        env = _without(os.environ if base is None else base, CLOUD_ENV_VARS)
        env[ENV_SELF_HOSTED_URL] = self.url
        env[ENV_SELF_HOSTED_ADMIN_KEY] = self.admin_key
        return env

    def describe(self) -> Dict[str, str]:
        return {
            "mode": self.mode.value,
            "url": self.url,
            "admin_key": mask_secret(self.admin_key),
        }


@dataclass(frozen=True)
class CloudTarget:
    """Production deployment, or a preview deployment identified by name."""

    kind: str = "prod"
    name: Optional[str] = None

    @classmethod
    def prod(cls) -> "CloudTarget":
        return cls(kind="prod")

    @classmethod
    def preview(cls, name: str) -> "CloudTarget":
        if not name:
            raise CredentialsError("preview target requires a deployment name")
        return cls(kind="preview", name=name)

    @property
    def is_preview(self) -> bool:
        return self.kind == "preview"

    @property
    def label(self) -> str:
        return f"preview:{self.name}" if self.is_preview else "prod"


@dataclass(frozen=True)
class CloudCredentials:
    """Convex cloud deployment addressed by a deploy key."""

    deploy_key: str = field(repr=False)
    target: CloudTarget = field(default_factory=CloudTarget.prod)

    mode: ClassVar[CredentialMode] = CredentialMode.CLOUD

    @property
    def target_label(self) -> str:
        return self.target.label

    def cli_args(self) -> List[str]:
        if self.target.is_preview:
            return ["--preview-name", str(self.target.name)]
        return []

    def subprocess_env(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Return *base* with only the deploy key set."""
        env = _without(os.environ if base is None else base, LOCAL_ENV_VARS)
        env[ENV_DEPLOY_KEY] = self.deploy_key
        return env

    def describe(self) -> Dict[str, str]:
        return {
            "mode": self.mode.value,
            "target": self.target.label,
            "deploy_key": mask_secret(self.deploy_key),
        }


CredentialContext = Union[LocalCredentials, CloudCredentials]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _coerce_mode(mode: Any) -> Optional[CredentialMode]:
    if mode is None or mode == "":
        return None
    try:
        return CredentialMode(mode)
    except ValueError as exc:
        raise CredentialsError(
            f"Unknown credential mode {mode!r}; expected 'local' or 'cloud'"
        ) from exc


def resolve_cloud_target(deploy_key: str, preview_name: Optional[str] = None) -> CloudTarget:
    """Pick the cloud target for *deploy_key*.

    An explicit *preview_name* always selects that preview deployment.
    Preview deploy keys cannot address production, so they require a name.
    """
    if preview_name:
        return CloudTarget.preview(preview_name)
    if deploy_key.startswith(PREVIEW_KEY_PREFIX):
        raise CredentialsError(
            "CONVEX_DEPLOY_KEY is a preview deploy key; pass --preview-name "
            "to choose the preview deployment."
        )
    return CloudTarget.prod()


def resolve_credentials(
    env: Optional[Mapping[str, str]] = None,
    *,
    mode: Optional[Union[str, CredentialMode]] = None,
    preview_name: Optional[str] = None,
    admin_key_provider: Optional[AdminKeyProvider] = None,
) -> CredentialContext:
    """Resolve exactly one :data:`CredentialContext` from *env*.

    Args:
        env: Recognized inputs; defaults to ``os.environ``.
        mode: Explicit ``local`` / ``cloud`` choice.  Required when inputs
            for both modes are present.
        preview_name: Cloud preview deployment name.
        admin_key_provider: Fallback source for the self-hosted admin key
            when ``CONVEX_SELF_HOSTED_ADMIN_KEY`` is unset.

    Raises:
        AmbiguousCredentialsError: both modes present and *mode* is ``None``.
        CredentialsError: the chosen mode is missing required inputs.
    """
    source = os.environ if env is None else env
    url = (source.get(ENV_SELF_HOSTED_URL) or "").strip()
    admin_key = (source.get(ENV_SELF_HOSTED_ADMIN_KEY) or "").strip()
    deploy_key = (source.get(ENV_DEPLOY_KEY) or "").strip()

    local_present = bool(url or admin_key)
    cloud_present = bool(deploy_key)
    chosen = _coerce_mode(mode)

    if chosen is None:
        if local_present and cloud_present:
            raise AmbiguousCredentialsError(
                f"Both self-hosted ({', '.join(LOCAL_ENV_VARS)}) and cloud "
                f"({ENV_DEPLOY_KEY}) credentials are set. Choose one with "
                "--mode local|cloud or unset the other."
            )
        if local_present:
            chosen = CredentialMode.LOCAL
        elif cloud_present:
            chosen = CredentialMode.CLOUD
        else:
            raise CredentialsError(
                f"No Convex credentials found. Set {ENV_DEPLOY_KEY} for a cloud "
                f"deployment or {ENV_SELF_HOSTED_URL} for a self-hosted backend."
            )
    elif local_present and cloud_present:
        logger.info(
            "Both credential sets present; using explicit mode %s.", chosen.value
        )

    if chosen == CredentialMode.LOCAL:
        if not url:
            raise CredentialsError(f"{ENV_SELF_HOSTED_URL} is not set.")
        if not admin_key:
            if admin_key_provider is None:
                raise CredentialsError(
                    f"{ENV_SELF_HOSTED_ADMIN_KEY} is not set and no admin key "
                    "provider is configured."
                )
            logger.info("Fetching self-hosted admin key from provider.")
            admin_key = admin_key_provider.fetch().strip()
            if not admin_key:
                raise CredentialsError("Admin key provider returned an empty key.")
        return LocalCredentials(url=url, admin_key=admin_key)

    if not deploy_key:
        raise CredentialsError(f"{ENV_DEPLOY_KEY} is not set.")
    return CloudCredentials(
        deploy_key=deploy_key,
        target=resolve_cloud_target(deploy_key, preview_name),
    )
