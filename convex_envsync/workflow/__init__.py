"""Orchestration workflows (sync, diff, JWT key setup)."""

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

__all__ = [
    "EXIT_CANCELLED",
    "EXIT_DRIFT",
    "EXIT_REMOTE_FAILURE",
    "EXIT_SUCCESS",
    "EXIT_VALIDATION_FAILURE",
    "build_credentials",
    "build_store",
    "exit_code_for",
    "load_settings",
    "run_diff_workflow",
    "run_jwt_keys_workflow",
    "run_sync_workflow",
    "run_whoami",
]
