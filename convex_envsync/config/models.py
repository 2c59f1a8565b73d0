"""Pydantic models for convex-envsync configuration.

Defines the data structures for:
- A single ``KEY=VALUE`` entry read from a source file
- The ``envsync:`` section of the project config YAML
- The default sync exclusion set
"""

from __future__ import annotations

import shlex
from typing import Any, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from convex_envsync.credentials.context import CredentialMode

#: Keys holding long-lived or multi-line key material.  They are written
#: only through the one-shot JWT setup path, never from a bulk env file.
DEFAULT_EXCLUSIONS: List[str] = ["JWT_PRIVATE_KEY", "JWKS"]

DEFAULT_COMMAND: List[str] = ["npx", "convex"]

SyncExclusionSet = FrozenSet[str]


class ConfigEntry(BaseModel):
    """One environment variable destined for the remote store."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: str = Field(default="", repr=False)

    @field_validator("key")
    @classmethod
    def _key_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("key must not be empty")
        return v


class AdminKeySettings(BaseModel):
    """How to obtain a self-hosted admin key when it is not exported."""

    docker_service: str = "backend"
    compose_file: Optional[str] = None
    enabled: bool = True


class EnvSyncSettings(BaseModel):
    """Top-level model for the ``envsync:`` section.

    Structure::

        envsync:
          env_file: .env.convex
          mode: cloud
          preview_name: null
          timeout_seconds: 30
          command: [npx, convex]
          exclusions: [JWT_PRIVATE_KEY, JWKS]
          admin_key:
            docker_service: backend
            compose_file: null
    """

    env_file: str = ".env.convex"
    mode: Optional[CredentialMode] = None
    preview_name: Optional[str] = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    command: List[str] = Field(default_factory=lambda: list(DEFAULT_COMMAND))
    exclusions: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUSIONS))
    admin_key: AdminKeySettings = Field(default_factory=AdminKeySettings)

    @model_validator(mode="before")
    @classmethod
    def _coerce_input(cls, data: Any) -> Any:
        """Accept ``command`` as a shell-style string and null lists."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if isinstance(data.get("command"), str):
            data["command"] = shlex.split(data["command"])
        if data.get("exclusions") is None:
            data.pop("exclusions", None)
        if data.get("mode") in ("", "auto"):
            data["mode"] = None
        return data

    @field_validator("command")
    @classmethod
    def _command_not_empty(cls, v: List[str]) -> List[str]:
        if not v:
            raise ValueError("command must name the Convex CLI")
        return v

    @field_validator("exclusions")
    @classmethod
    def _normalize_exclusions(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for item in v:
            name = str(item).strip()
            if name and name not in seen:
                seen.append(name)
        return seen

    def exclusion_set(self) -> SyncExclusionSet:
        return frozenset(self.exclusions)


class ConfigFile(BaseModel):
    """Root model wrapping the ``envsync:`` key."""

    envsync: EnvSyncSettings = Field(default_factory=EnvSyncSettings)
