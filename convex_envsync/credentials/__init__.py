"""Credential resolution for self-hosted and cloud Convex deployments."""

from convex_envsync.credentials.admin_key import (
    GENERATE_ADMIN_KEY_SCRIPT,
    AdminKeyProvider,
    DockerAdminKeyProvider,
    StaticAdminKeyProvider,
)
from convex_envsync.credentials.context import (
    CLOUD_ENV_VARS,
    ENV_DEPLOY_KEY,
    ENV_SELF_HOSTED_ADMIN_KEY,
    ENV_SELF_HOSTED_URL,
    LOCAL_ENV_VARS,
    CloudCredentials,
    CloudTarget,
    CredentialContext,
    CredentialMode,
    LocalCredentials,
    mask_secret,
    resolve_cloud_target,
    resolve_credentials,
)

__all__ = [
    "AdminKeyProvider",
    "CLOUD_ENV_VARS",
    "CloudCredentials",
    "CloudTarget",
    "CredentialContext",
    "CredentialMode",
    "DockerAdminKeyProvider",
    "ENV_DEPLOY_KEY",
    "ENV_SELF_HOSTED_ADMIN_KEY",
    "ENV_SELF_HOSTED_URL",
    "GENERATE_ADMIN_KEY_SCRIPT",
    "LOCAL_ENV_VARS",
    "LocalCredentials",
    "StaticAdminKeyProvider",
    "mask_secret",
    "resolve_cloud_target",
    "resolve_credentials",
]
