"""Workflows behind the CLI commands.

Each ``run_*`` function composes the same pipeline and returns one of the
``EXIT_*`` codes:

1. **Config**: load ``envsync.yaml`` and layer CLI overrides on top.
2. **Source**: parse the env file completely (sync only).
3. **Credentials**: resolve exactly one credential context.
4. **Store**: build the Convex CLI store for that context.
5. **Operation**: sync, diff, or JWT key setup.

Parse and credential failures stop before any remote call.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Mapping, Optional, Tuple

from convex_envsync import ui
from convex_envsync.config.dotenv import load_env_file
from convex_envsync.config.models import ConfigEntry, EnvSyncSettings
from convex_envsync.config.project import apply_overrides, load_config
from convex_envsync.credentials.admin_key import DockerAdminKeyProvider, StaticAdminKeyProvider
from convex_envsync.credentials.context import CredentialContext, resolve_credentials
from convex_envsync.errors import (
    AmbiguousCredentialsError,
    AuthenticationError,
    ConfigError,
    CredentialsError,
    InvalidKeySetError,
    MalformedLineError,
    RemoteStoreError,
)
from convex_envsync.keys.jwks import KeySetupStatus, ensure_jwt_keys
from convex_envsync.state.models import SyncRunRecord
from convex_envsync.state.store import write_sync_record
from convex_envsync.store.base import RemoteStoreClient
from convex_envsync.store.cli import ConvexCliStore
from convex_envsync.store.memory import InMemoryStore
from convex_envsync.sync.orchestrator import CancelToken, SyncReport, sync
from convex_envsync.sync.plan import DiffStatus, plan

logger = logging.getLogger(__name__)

# Exit codes
EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILURE = 1
EXIT_REMOTE_FAILURE = 2
EXIT_DRIFT = 3
EXIT_CANCELLED = 130

# Stands in for a self-hosted admin key during dry runs; never sent anywhere.
DRY_RUN_ADMIN_KEY = "dry-run"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def load_settings(
    config_path: Optional[str] = None,
    *,
    env_file: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    timeout: Optional[float] = None,
    exclude: Optional[Iterable[str]] = None,
) -> EnvSyncSettings:
    """Load the project config and apply CLI overrides."""
    cfg = load_config(config_path)
    return apply_overrides(
        cfg.envsync,
        env_file=env_file,
        mode=mode,
        preview_name=preview_name,
        timeout_seconds=timeout,
        extra_exclusions=exclude,
    )


def build_credentials(
    settings: EnvSyncSettings,
    env: Optional[Mapping[str, str]] = None,
    *,
    dry_run: bool = False,
) -> CredentialContext:
    """Resolve the credential context described by *settings*.

    With *dry_run* a missing self-hosted admin key is replaced by a
    placeholder instead of being minted through docker compose.
    """
    provider = None
    if dry_run:
        provider = StaticAdminKeyProvider(DRY_RUN_ADMIN_KEY)
    elif settings.admin_key.enabled:
        provider = DockerAdminKeyProvider(
            service=settings.admin_key.docker_service,
            compose_file=settings.admin_key.compose_file,
            timeout=settings.timeout_seconds,
        )
    return resolve_credentials(
        env,
        mode=settings.mode,
        preview_name=settings.preview_name,
        admin_key_provider=provider,
    )


def build_store(
    settings: EnvSyncSettings,
    credentials: CredentialContext,
    env: Optional[Mapping[str, str]] = None,
) -> ConvexCliStore:
    return ConvexCliStore(
        credentials,
        timeout=settings.timeout_seconds,
        command=settings.command,
        base_env=env,
    )


def _connect(
    settings: EnvSyncSettings,
    *,
    store: Optional[RemoteStoreClient],
    env: Optional[Mapping[str, str]],
    dry_run: bool = False,
) -> Tuple[CredentialContext, RemoteStoreClient]:
    credentials = build_credentials(settings, env, dry_run=dry_run)
    ui.info(f"Target: {credentials.mode.value} / {credentials.target_label}")
    client = store if store is not None else build_store(settings, credentials, env)
    return credentials, client


def _report_credentials_error(exc: CredentialsError) -> None:
    if isinstance(exc, AmbiguousCredentialsError):
        ui.error_panel("Ambiguous credentials", str(exc))
    else:
        ui.error_msg(str(exc))


def exit_code_for(report: SyncReport) -> int:
    """Map a sync report to the appropriate exit code."""
    if report.cancelled:
        return EXIT_CANCELLED
    if report.failed or report.aborted:
        return EXIT_REMOTE_FAILURE
    return EXIT_SUCCESS


def _print_sync_report(report: SyncReport) -> None:
    for key in report.applied:
        ui.ok(f"{key}")
    for key in report.skipped:
        ui.warn(f"{key} skipped (excluded)")
    for key, exc in report.failed.items():
        ui.fail(f"{key}: {exc}")
    if report.pending:
        ui.warn(f"Not attempted: {ui.key_list(report.pending)}")


# ---------------------------------------------------------------------------
# sync
# ---------------------------------------------------------------------------


def run_sync_workflow(
    *,
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    exclude: Optional[List[str]] = None,
    timeout: Optional[float] = None,
    dry_run: bool = False,
    cancel: Optional[CancelToken] = None,
    store: Optional[RemoteStoreClient] = None,
    env: Optional[Mapping[str, str]] = None,
    write_record: bool = True,
) -> int:
    """Sync an env file to the deployment.  Returns an ``EXIT_*`` code."""
    ui.phase("SYNC")
    try:
        settings = load_settings(
            config_path,
            env_file=env_file,
            mode=mode,
            preview_name=preview_name,
            timeout=timeout,
            exclude=exclude,
        )
    except ConfigError as exc:
        ui.error_msg(str(exc))
        return EXIT_VALIDATION_FAILURE

    try:
        entries: List[ConfigEntry] = load_env_file(settings.env_file)
    except MalformedLineError as exc:
        ui.error_msg(f"{settings.env_file}: {exc}")
        return EXIT_VALIDATION_FAILURE
    except OSError as exc:
        ui.error_msg(f"Cannot read {settings.env_file}: {exc}")
        return EXIT_VALIDATION_FAILURE

    ui.step(f"{len(entries)} entr{'y' if len(entries) == 1 else 'ies'} from {settings.env_file}")

    if dry_run:
        ui.info("Dry run: no remote calls will be made.")
        store = InMemoryStore()

    try:
        credentials, client = _connect(settings, store=store, env=env, dry_run=dry_run)
    except CredentialsError as exc:
        _report_credentials_error(exc)
        return EXIT_VALIDATION_FAILURE

    auth_error: Optional[AuthenticationError] = None
    try:
        report = sync(entries, settings.exclusion_set(), client, cancel=cancel)
    except AuthenticationError as exc:
        auth_error = exc
        report = exc.report if exc.report is not None else SyncReport(aborted=True)

    _print_sync_report(report)

    if write_record:
        record = SyncRunRecord.from_report(
            report,
            target=credentials.target_label,
            mode=credentials.mode.value,
            env_file=settings.env_file,
            dry_run=dry_run,
        )
        write_sync_record(record)

    if auth_error is not None:
        ui.error_panel(
            "Authentication failed",
            f"{auth_error}\napplied before abort: {ui.key_list(report.applied)}",
        )
        return EXIT_REMOTE_FAILURE

    rc = exit_code_for(report)
    if rc == EXIT_SUCCESS:
        ui.success_panel(
            "Sync complete",
            f"applied: {len(report.applied)}  skipped: {len(report.skipped)}",
        )
    elif rc == EXIT_REMOTE_FAILURE:
        ui.error_panel(
            "Sync incomplete",
            f"failed: {ui.key_list(report.failed)}\nRe-run sync once the deployment is reachable.",
        )
    return rc


# ---------------------------------------------------------------------------
# diff
# ---------------------------------------------------------------------------


def run_diff_workflow(
    *,
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    exclude: Optional[List[str]] = None,
    timeout: Optional[float] = None,
    store: Optional[RemoteStoreClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Compare an env file with the deployment.

    Exit codes: 0 = in sync, 3 = drift, 2 = remote error, 1 = invalid input.
    """
    ui.phase("DIFF")
    try:
        settings = load_settings(
            config_path,
            env_file=env_file,
            mode=mode,
            preview_name=preview_name,
            timeout=timeout,
            exclude=exclude,
        )
        entries = load_env_file(settings.env_file)
    except (ConfigError, MalformedLineError) as exc:
        ui.error_msg(str(exc))
        return EXIT_VALIDATION_FAILURE
    except OSError as exc:
        ui.error_msg(f"Cannot read env file: {exc}")
        return EXIT_VALIDATION_FAILURE

    try:
        _, client = _connect(settings, store=store, env=env)
    except CredentialsError as exc:
        _report_credentials_error(exc)
        return EXIT_VALIDATION_FAILURE

    try:
        report = plan(entries, settings.exclusion_set(), client)
    except AuthenticationError as exc:
        ui.error_panel("Authentication failed", str(exc))
        return EXIT_REMOTE_FAILURE

    for item in report.keys:
        if item.status == DiffStatus.IN_SYNC:
            ui.ok(f"{item.key}")
        elif item.status == DiffStatus.SKIPPED:
            ui.info(f"{item.key} (excluded)")
        elif item.status == DiffStatus.ERROR:
            ui.fail(f"{item.key}: {item.error}")
        else:
            ui.warn(f"{item.key}: {item.status.value.lower()}")
    if report.remote_only:
        ui.info(f"Only on remote: {ui.key_list(report.remote_only)}")

    if report.has_errors:
        return EXIT_REMOTE_FAILURE
    if report.has_drift:
        return EXIT_DRIFT
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# jwt-keys
# ---------------------------------------------------------------------------


def run_jwt_keys_workflow(
    *,
    config_path: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    timeout: Optional[float] = None,
    force: bool = False,
    store: Optional[RemoteStoreClient] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Generate and store ``JWT_PRIVATE_KEY`` / ``JWKS`` once."""
    ui.phase("JWT KEYS")
    try:
        settings = load_settings(
            config_path, mode=mode, preview_name=preview_name, timeout=timeout,
        )
    except ConfigError as exc:
        ui.error_msg(str(exc))
        return EXIT_VALIDATION_FAILURE

    try:
        _, client = _connect(settings, store=store, env=env)
    except CredentialsError as exc:
        _report_credentials_error(exc)
        return EXIT_VALIDATION_FAILURE

    try:
        result = ensure_jwt_keys(client, force=force)
    except InvalidKeySetError as exc:
        ui.error_msg(f"Generated key set failed validation: {exc}")
        return EXIT_VALIDATION_FAILURE
    except RemoteStoreError as exc:
        ui.error_panel("JWT key setup failed", str(exc))
        return EXIT_REMOTE_FAILURE

    if result.status == KeySetupStatus.ALREADY_EXISTS:
        ui.info("JWT_PRIVATE_KEY and JWKS already set; nothing to do (use --force to rotate).")
    else:
        ui.ok(f"JWT_PRIVATE_KEY and JWKS {result.status.value.lower()}")
    return EXIT_SUCCESS


# ---------------------------------------------------------------------------
# whoami
# ---------------------------------------------------------------------------


def run_whoami(
    *,
    config_path: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> int:
    """Show the resolved (redacted) credential context."""
    try:
        settings = load_settings(config_path, mode=mode, preview_name=preview_name)
        credentials = build_credentials(settings, env)
    except ConfigError as exc:
        ui.error_msg(str(exc))
        return EXIT_VALIDATION_FAILURE
    except CredentialsError as exc:
        _report_credentials_error(exc)
        return EXIT_VALIDATION_FAILURE

    ui.details(credentials.describe())
    return EXIT_SUCCESS
