"""CLI entry point for convex-envsync, built on cli-core-yo.

Provides ``sync``, ``diff``, ``jwt-keys`` and ``whoami`` commands for
managing a Convex deployment's environment variables.

Usage::

    convex-envsync --help
    convex-envsync sync --env-file .env.convex --mode cloud
    convex-envsync diff --mode local
    convex-envsync jwt-keys --preview-name my-branch
    convex-envsync whoami
"""

from __future__ import annotations

import logging
import os
import signal
import sys
from typing import List, Optional

import typer
from cli_core_yo import output
from cli_core_yo.app import create_app
from cli_core_yo.runtime import _reset, initialize
from cli_core_yo.spec import CliSpec, XdgSpec

# ── App specification ────────────────────────────────────────────────────────

spec = CliSpec(
    prog_name="convex-envsync",
    app_display_name="Convex Env Sync",
    dist_name="convex-envsync",
    root_help=(
        "Sync environment variables and JWT keys to self-hosted or cloud "
        "Convex deployments."
    ),
    xdg=XdgSpec(app_dir_name="convex-envsync"),
)

app = create_app(spec)

_MODE_HELP = (
    "Credential mode: 'local' (CONVEX_SELF_HOSTED_*) or 'cloud' "
    "(CONVEX_DEPLOY_KEY). Required when both are set."
)


# ── Root callback (global options) ───────────────────────────────────────────


@app.callback()
def _root_callback(
    json_flag: bool = typer.Option(
        False, "--json", "-j", help="Output as JSON."
    ),
) -> None:
    """Convex environment sync."""
    _reset()
    debug = os.environ.get("CLI_CORE_YO_DEBUG") == "1"
    xdg_paths = app._cli_core_yo_xdg_paths  # type: ignore[attr-defined]
    initialize(spec, xdg_paths, json_mode=json_flag, debug=debug)


def _enable_debug(debug: bool) -> None:
    if debug:
        logging.basicConfig(level=logging.DEBUG)


# ── sync command ─────────────────────────────────────────────────────────────


@app.command()
def sync(
    env_file: Optional[str] = typer.Option(
        None,
        "--env-file",
        help="KEY=VALUE file to sync. Default: envsync.yaml env_file or .env.convex.",
    ),
    config: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to envsync.yaml. Defaults to ENVSYNC_CONFIG or ./envsync.yaml.",
    ),
    mode: Optional[str] = typer.Option(None, "--mode", help=_MODE_HELP),
    preview_name: Optional[str] = typer.Option(
        None,
        "--preview-name",
        help="Target a cloud preview deployment by name.",
    ),
    exclude: Optional[List[str]] = typer.Option(
        None,
        "--exclude",
        help="Additional key never synced from the file. Can be repeated.",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Per-call timeout in seconds.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Parse and resolve credentials, but make no remote calls.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output."),
) -> None:
    """Sync a KEY=VALUE file to the deployment's environment variables.

    Exit codes: 0 = success, 1 = invalid input or credentials,
    2 = one or more keys failed, 130 = interrupted.

    Environment variables:
      CONVEX_SELF_HOSTED_URL         Self-hosted backend URL.
      CONVEX_SELF_HOSTED_ADMIN_KEY   Self-hosted admin key.
      CONVEX_DEPLOY_KEY              Cloud deploy key.
      ENVSYNC_CONFIG                 Alternate config file path.
    """
    from convex_envsync.sync.orchestrator import CancelToken
    from convex_envsync.workflow.sync_env import run_sync_workflow

    _enable_debug(debug)

    cancel = CancelToken()

    def _on_interrupt(signum, frame):  # noqa: ARG001
        output.warn("Interrupt received; stopping after the current key.")
        cancel.cancel()

    previous = signal.signal(signal.SIGINT, _on_interrupt)
    try:
        output.action("Syncing environment variables ...")
        rc = run_sync_workflow(
            config_path=config,
            env_file=env_file,
            mode=mode,
            preview_name=preview_name,
            exclude=exclude,
            timeout=timeout,
            dry_run=dry_run,
            cancel=cancel,
        )
    finally:
        signal.signal(signal.SIGINT, previous)
    raise typer.Exit(rc)


# ── diff command ─────────────────────────────────────────────────────────────


@app.command()
def diff(
    env_file: Optional[str] = typer.Option(None, "--env-file", help="KEY=VALUE file."),
    config: Optional[str] = typer.Option(None, "--config", help="Path to envsync.yaml."),
    mode: Optional[str] = typer.Option(None, "--mode", help=_MODE_HELP),
    preview_name: Optional[str] = typer.Option(
        None, "--preview-name", help="Cloud preview deployment name."
    ),
    exclude: Optional[List[str]] = typer.Option(
        None, "--exclude", help="Additional excluded key. Can be repeated."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-call timeout."),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output."),
) -> None:
    """Show which keys a sync would change, without writing.

    Exit codes: 0 = in sync, 3 = drift detected, 2 = remote error.
    """
    from convex_envsync.workflow.sync_env import run_diff_workflow

    _enable_debug(debug)

    output.action("Comparing local entries with the deployment ...")
    rc = run_diff_workflow(
        config_path=config,
        env_file=env_file,
        mode=mode,
        preview_name=preview_name,
        exclude=exclude,
        timeout=timeout,
    )
    raise typer.Exit(rc)


# ── jwt-keys command ─────────────────────────────────────────────────────────


@app.command("jwt-keys")
def jwt_keys(
    config: Optional[str] = typer.Option(None, "--config", help="Path to envsync.yaml."),
    mode: Optional[str] = typer.Option(None, "--mode", help=_MODE_HELP),
    preview_name: Optional[str] = typer.Option(
        None, "--preview-name", help="Cloud preview deployment name."
    ),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-call timeout."),
    force: bool = typer.Option(
        False,
        "--force",
        help="Replace existing keys. Invalidates every issued session.",
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug output."),
) -> None:
    """Generate JWT_PRIVATE_KEY and JWKS once and store them."""
    from convex_envsync.workflow.sync_env import run_jwt_keys_workflow

    _enable_debug(debug)

    output.action("Setting up JWT signing keys ...")
    rc = run_jwt_keys_workflow(
        config_path=config,
        mode=mode,
        preview_name=preview_name,
        timeout=timeout,
        force=force,
    )
    raise typer.Exit(rc)


# ── whoami command ───────────────────────────────────────────────────────────


@app.command()
def whoami(
    config: Optional[str] = typer.Option(None, "--config", help="Path to envsync.yaml."),
    mode: Optional[str] = typer.Option(None, "--mode", help=_MODE_HELP),
    preview_name: Optional[str] = typer.Option(
        None, "--preview-name", help="Cloud preview deployment name."
    ),
) -> None:
    """Show which deployment the current credentials resolve to."""
    from convex_envsync.workflow.sync_env import run_whoami

    rc = run_whoami(config_path=config, mode=mode, preview_name=preview_name)
    if rc == 0:
        output.success("Credentials resolved.")
    raise typer.Exit(rc)


# ── Entry point ──────────────────────────────────────────────────────────────


def main() -> int:
    """Run the CLI and return an exit code."""
    try:
        app()
        return 0
    except SystemExit as exc:
        return exc.code if isinstance(exc.code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
