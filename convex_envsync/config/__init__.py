"""Configuration loading and ``KEY=VALUE`` source parsing."""

from convex_envsync.config.dotenv import (
    load_env_file,
    parse_entries,
    parse_lines,
    quoted_keys,
    serialize_entries,
)
from convex_envsync.config.models import (
    DEFAULT_EXCLUSIONS,
    AdminKeySettings,
    ConfigEntry,
    ConfigFile,
    EnvSyncSettings,
    SyncExclusionSet,
)
from convex_envsync.config.project import (
    apply_overrides,
    default_config_path,
    load_config,
)

__all__ = [
    "AdminKeySettings",
    "ConfigEntry",
    "ConfigFile",
    "DEFAULT_EXCLUSIONS",
    "EnvSyncSettings",
    "SyncExclusionSet",
    "apply_overrides",
    "default_config_path",
    "load_config",
    "load_env_file",
    "parse_entries",
    "parse_lines",
    "quoted_keys",
    "serialize_entries",
]
