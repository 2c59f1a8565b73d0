"""Project config loading and CLI override merging.

- :func:`default_config_path` — ``ENVSYNC_CONFIG`` or ``envsync.yaml``
- :func:`load_config` — parse the YAML into a :class:`ConfigFile`
- :func:`apply_overrides` — layer CLI flags on top of file settings
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

import yaml
from pydantic import ValidationError

from convex_envsync.config.models import ConfigFile, EnvSyncSettings
from convex_envsync.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "envsync.yaml"
CONFIG_ENV_VAR = "ENVSYNC_CONFIG"


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_NAME)


def load_config(path: Optional[str | Path] = None) -> ConfigFile:
    """Load the project config YAML.

    A missing file yields defaults.  Unparseable YAML or values that fail
    validation raise :class:`ConfigError`.
    """
    path = Path(path) if path else default_config_path()
    raw: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
        logger.debug("Loaded config from %s", path)
    else:
        logger.debug("No config file at %s; using defaults.", path)

    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    try:
        return ConfigFile(envsync=EnvSyncSettings.model_validate(raw.get("envsync") or {}))
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {path}: {exc}") from exc


def apply_overrides(
    settings: EnvSyncSettings,
    *,
    env_file: Optional[str] = None,
    mode: Optional[str] = None,
    preview_name: Optional[str] = None,
    timeout_seconds: Optional[float] = None,
    extra_exclusions: Optional[Iterable[str]] = None,
) -> EnvSyncSettings:
    """Return a copy of *settings* with non-``None`` overrides applied.

    Extra exclusions are added to the configured ones, never replacing them.
    """
    data = settings.model_dump()
    if env_file:
        data["env_file"] = env_file
    if mode:
        data["mode"] = mode
    if preview_name:
        data["preview_name"] = preview_name
    if timeout_seconds is not None:
        data["timeout_seconds"] = timeout_seconds
    if extra_exclusions:
        data["exclusions"] = list(data["exclusions"]) + list(extra_exclusions)
    try:
        return EnvSyncSettings.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid option: {exc}") from exc
