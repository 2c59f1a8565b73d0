"""Tests for convex_envsync.workflow.sync_env.

Tests cover:
1. Exit code constants and exit_code_for
2. run_sync_workflow: success, parse failure, ambiguity, partial failure,
   authentication abort, dry run, record writing
3. run_diff_workflow exit codes
4. run_jwt_keys_workflow idempotence
5. run_whoami
6. Module exports
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from convex_envsync.credentials.context import (
    ENV_DEPLOY_KEY,
    ENV_SELF_HOSTED_ADMIN_KEY,
    ENV_SELF_HOSTED_URL,
    CloudCredentials,
)
from convex_envsync.errors import AuthenticationError, RemoteUnavailableError
from convex_envsync.keys.jwks import JWKS_VAR, PRIVATE_KEY_VAR
from convex_envsync.state.store import list_sync_records, load_sync_record
from convex_envsync.store.memory import InMemoryStore
from convex_envsync.sync.orchestrator import CancelToken, SyncReport
from convex_envsync.workflow.sync_env import (
    EXIT_CANCELLED,
    EXIT_DRIFT,
    EXIT_REMOTE_FAILURE,
    EXIT_SUCCESS,
    EXIT_VALIDATION_FAILURE,
    build_credentials,
    build_store,
    exit_code_for,
    load_settings,
    run_diff_workflow,
    run_jwt_keys_workflow,
    run_sync_workflow,
    run_whoami,
)

CLOUD_ENV = {ENV_DEPLOY_KEY: "prod:happy-otter-123|secret"}
LOCAL_ENV = {
    ENV_SELF_HOSTED_URL: "http://127.0.0.1:3210",
    ENV_SELF_HOSTED_ADMIN_KEY: "convex-self-hosted|abc",
}


@pytest.fixture()
def workspace(tmp_path, monkeypatch):
    """Isolated XDG dir, no project config, and an env file."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.delenv("ENVSYNC_CONFIG", raising=False)
    env_file = tmp_path / ".env.convex"
    env_file.write_text(
        "# app settings\nSITE_URL=http://localhost:5173\n"
        'AUTH_GITHUB_ID="gh-client"\nJWKS={}\n',
        encoding="utf-8",
    )
    return {
        "config_path": str(tmp_path / "envsync.yaml"),
        "env_file": str(env_file),
        "tmp": tmp_path,
    }


# ── Exit codes ──────────────────────────────────────────────────────────


class TestExitCodes:
    def test_values(self):
        assert EXIT_SUCCESS == 0
        assert EXIT_VALIDATION_FAILURE == 1
        assert EXIT_REMOTE_FAILURE == 2
        assert EXIT_DRIFT == 3
        assert EXIT_CANCELLED == 130

    def test_exit_code_for(self):
        assert exit_code_for(SyncReport(applied=["A"])) == EXIT_SUCCESS
        assert exit_code_for(SyncReport(failed={"A": RemoteUnavailableError("x")})) == EXIT_REMOTE_FAILURE
        assert exit_code_for(SyncReport(cancelled=True)) == EXIT_CANCELLED


# ── builders ────────────────────────────────────────────────────────────


class TestBuilders:
    def test_build_store_uses_settings(self, workspace):
        settings = load_settings(workspace["config_path"], timeout=12)
        creds = build_credentials(settings, CLOUD_ENV)
        store = build_store(settings, creds, CLOUD_ENV)
        assert store.timeout == 12
        assert store.command == ["npx", "convex"]
        assert store.base_env == CLOUD_ENV

    def test_build_credentials_mode_override(self, workspace):
        settings = load_settings(workspace["config_path"], mode="cloud")
        creds = build_credentials(settings, {**CLOUD_ENV, **LOCAL_ENV})
        assert isinstance(creds, CloudCredentials)

    def test_admin_key_provider_disabled(self, workspace, tmp_path):
        cfg = tmp_path / "disabled.yaml"
        cfg.write_text("envsync:\n  admin_key:\n    enabled: false\n", encoding="utf-8")
        settings = load_settings(str(cfg))
        from convex_envsync.errors import CredentialsError

        with pytest.raises(CredentialsError, match="no admin key provider"):
            build_credentials(settings, {ENV_SELF_HOSTED_URL: "http://x"})


# ── sync ────────────────────────────────────────────────────────────────


class TestRunSync:
    def test_success(self, workspace):
        store = InMemoryStore()
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_SUCCESS
        assert store.data == {
            "SITE_URL": "http://localhost:5173",
            "AUTH_GITHUB_ID": "gh-client",
        }

    def test_record_written(self, workspace):
        run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=InMemoryStore(),
            env=CLOUD_ENV,
        )
        records = list_sync_records("prod")
        assert len(records) == 1
        rec = load_sync_record(records[0])
        assert rec.applied == ["SITE_URL", "AUTH_GITHUB_ID"]
        assert rec.skipped == ["JWKS"]
        assert rec.mode == "cloud"

    def test_malformed_file_no_remote_calls(self, workspace):
        bad = workspace["tmp"] / "bad.env"
        bad.write_text("A=1\nBROKEN\n", encoding="utf-8")
        store = InMemoryStore()
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=str(bad),
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_VALIDATION_FAILURE
        assert store.calls == []

    def test_missing_file(self, workspace):
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=str(workspace["tmp"] / "nope.env"),
            store=InMemoryStore(),
            env=CLOUD_ENV,
        )
        assert rc == EXIT_VALIDATION_FAILURE

    def test_ambiguous_credentials_no_remote_calls(self, workspace):
        store = InMemoryStore()
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env={**CLOUD_ENV, **LOCAL_ENV},
        )
        assert rc == EXIT_VALIDATION_FAILURE
        assert store.calls == []

    def test_partial_failure(self, workspace):
        store = InMemoryStore(failures={"AUTH_GITHUB_ID": RemoteUnavailableError("down")})
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=LOCAL_ENV,
        )
        assert rc == EXIT_REMOTE_FAILURE
        assert store.data == {"SITE_URL": "http://localhost:5173"}

    def test_auth_failure(self, workspace):
        store = InMemoryStore(failures={"SITE_URL": AuthenticationError("401")})
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_REMOTE_FAILURE
        assert store.set_calls() == ["SITE_URL"]

    def test_auth_failure_records_applied_keys(self, workspace):
        store = InMemoryStore(failures={"AUTH_GITHUB_ID": AuthenticationError("401")})
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_REMOTE_FAILURE
        assert store.data == {"SITE_URL": "http://localhost:5173"}
        rec = load_sync_record(list_sync_records()[0])
        assert rec.aborted is True
        assert rec.applied == ["SITE_URL"]
        assert list(rec.failed) == ["AUTH_GITHUB_ID"]
        assert rec.failed["AUTH_GITHUB_ID"].startswith("AuthenticationError")
        assert rec.pending == ["JWKS"]

    def test_extra_exclusion(self, workspace):
        store = InMemoryStore()
        run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            exclude=["AUTH_GITHUB_ID"],
            store=store,
            env=CLOUD_ENV,
        )
        assert store.set_calls() == ["SITE_URL"]

    def test_dry_run_leaves_store_untouched(self, workspace):
        store = InMemoryStore()
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            dry_run=True,
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_SUCCESS
        assert store.calls == []
        rec = load_sync_record(list_sync_records()[0])
        assert rec.dry_run is True

    def test_dry_run_local_does_not_mint_admin_key(self, workspace):
        with patch("convex_envsync.credentials.admin_key.subprocess.run") as mock_run:
            rc = run_sync_workflow(
                config_path=workspace["config_path"],
                env_file=workspace["env_file"],
                dry_run=True,
                env={ENV_SELF_HOSTED_URL: "http://127.0.0.1:3210"},
            )
        assert rc == EXIT_SUCCESS
        mock_run.assert_not_called()
        rec = load_sync_record(list_sync_records()[0])
        assert rec.target == "local"
        assert rec.applied == ["SITE_URL", "AUTH_GITHUB_ID"]

    def test_cancelled(self, workspace):
        token = CancelToken()
        token.cancel()
        rc = run_sync_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            cancel=token,
            store=InMemoryStore(),
            env=CLOUD_ENV,
        )
        assert rc == EXIT_CANCELLED

    def test_invalid_config(self, workspace):
        cfg = workspace["tmp"] / "bad.yaml"
        cfg.write_text("envsync:\n  timeout_seconds: -1\n", encoding="utf-8")
        rc = run_sync_workflow(
            config_path=str(cfg),
            env_file=workspace["env_file"],
            store=InMemoryStore(),
            env=CLOUD_ENV,
        )
        assert rc == EXIT_VALIDATION_FAILURE


# ── diff ────────────────────────────────────────────────────────────────


class TestRunDiff:
    def test_in_sync(self, workspace):
        store = InMemoryStore({"SITE_URL": "http://localhost:5173", "AUTH_GITHUB_ID": "gh-client"})
        rc = run_diff_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_SUCCESS

    def test_drift(self, workspace):
        rc = run_diff_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=InMemoryStore({"SITE_URL": "http://old"}),
            env=CLOUD_ENV,
        )
        assert rc == EXIT_DRIFT

    def test_remote_error(self, workspace):
        store = InMemoryStore(failures={"SITE_URL": RemoteUnavailableError("down")})
        rc = run_diff_workflow(
            config_path=workspace["config_path"],
            env_file=workspace["env_file"],
            store=store,
            env=CLOUD_ENV,
        )
        assert rc == EXIT_REMOTE_FAILURE


# ── jwt-keys ────────────────────────────────────────────────────────────


class TestRunJwtKeys:
    def test_creates_then_noop(self, workspace):
        store = InMemoryStore()
        assert run_jwt_keys_workflow(
            config_path=workspace["config_path"], store=store, env=CLOUD_ENV,
        ) == EXIT_SUCCESS
        assert set(store.data) == {PRIVATE_KEY_VAR, JWKS_VAR}
        snapshot = dict(store.data)

        assert run_jwt_keys_workflow(
            config_path=workspace["config_path"], store=store, env=CLOUD_ENV,
        ) == EXIT_SUCCESS
        assert store.data == snapshot

    def test_remote_failure(self, workspace):
        store = InMemoryStore(failures={PRIVATE_KEY_VAR: RemoteUnavailableError("down")})
        rc = run_jwt_keys_workflow(
            config_path=workspace["config_path"], store=store, env=CLOUD_ENV,
        )
        assert rc == EXIT_REMOTE_FAILURE

    def test_ambiguous(self, workspace):
        store = MagicMock()
        rc = run_jwt_keys_workflow(
            config_path=workspace["config_path"],
            store=store,
            env={**CLOUD_ENV, **LOCAL_ENV},
        )
        assert rc == EXIT_VALIDATION_FAILURE
        store.get.assert_not_called()


# ── whoami ──────────────────────────────────────────────────────────────


class TestRunWhoami:
    def test_ok(self, workspace):
        assert run_whoami(config_path=workspace["config_path"], env=LOCAL_ENV) == EXIT_SUCCESS

    def test_no_credentials(self, workspace):
        assert run_whoami(config_path=workspace["config_path"], env={}) == EXIT_VALIDATION_FAILURE


# ── Module exports ──────────────────────────────────────────────────────


class TestModuleExports:
    def test_workflow_package_exports(self):
        import convex_envsync.workflow as wf

        for name in (
            "run_sync_workflow",
            "run_diff_workflow",
            "run_jwt_keys_workflow",
            "run_whoami",
            "exit_code_for",
        ):
            assert hasattr(wf, name)
