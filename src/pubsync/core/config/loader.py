"""
Layered configuration for pubsync.

Each layer overrides the one before it:

    built-in defaults
    user file      $XDG_CONFIG_HOME/pubsync/config.json
    project file   <project>/.pubsync.json
    PUBSYNC_* environment variables

A broken or non-object JSON file is skipped with a warning instead of
aborting the command.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from .models import PubsyncConfig

logger = logging.getLogger(__name__)

_BOOL = TypeAdapter(bool)

PROJECT_CONFIG_FILE = ".pubsync.json"

# Loaded configs keyed by resolved project directory
_config_cache: dict[Path, PubsyncConfig] = {}


def get_xdg_config_home() -> Path:
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    return get_xdg_config_home() / "pubsync" / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    return (project_dir or Path.cwd()) / PROJECT_CONFIG_FILE


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge `override` into a copy of `base`, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def load_json_file(path: Path) -> dict[str, Any] | None:
    """Read a JSON object from `path`; None if missing or unusable."""
    if not path.exists():
        return None

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return None

    if not isinstance(data, dict):
        logger.warning("Ignoring config %s: top level is not an object", path)
        return None
    return data


def _set_nested(config_dict: dict[str, Any], section: str, key: str, value: Any) -> None:
    if not isinstance(config_dict.get(section), dict):
        config_dict[section] = {}
    config_dict[section][key] = value


def _parse_flag(name: str, raw: str) -> bool | None:
    # Accepts the spellings pydantic allows for bool fields, e.g. "off"
    try:
        return _BOOL.validate_python(raw.strip())
    except ValidationError:
        logger.warning("Invalid %s value '%s', ignoring", name, raw)
        return None


def _parse_timeout(raw: str) -> float | None:
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("Invalid PUBSYNC_GIT_TIMEOUT value '%s', ignoring", raw)
        return None
    if timeout <= 0:
        logger.warning("PUBSYNC_GIT_TIMEOUT must be > 0, got %s, ignoring", raw)
        return None
    return timeout


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Return a copy of `config_dict` with PUBSYNC_* variables applied.

    Supported variables:
        PUBSYNC_CONTENT_SUFFIX  content.suffix
        PUBSYNC_RENAME_POLICY   content.rename_policy (split | ignore)
        PUBSYNC_REMOTE          publish.remote
        PUBSYNC_BRANCH          publish.branch
        PUBSYNC_ALL_BRANCHES    publish.all_branches (true/false, yes/no, on/off, 1/0)
        PUBSYNC_GIT_TIMEOUT     git.command_timeout, seconds > 0
    """
    result = {k: (dict(v) if isinstance(v, dict) else v) for k, v in config_dict.items()}
    env = os.environ

    if suffix := env.get("PUBSYNC_CONTENT_SUFFIX"):
        _set_nested(result, "content", "suffix", suffix)
    if policy := env.get("PUBSYNC_RENAME_POLICY"):
        _set_nested(result, "content", "rename_policy", policy.lower())
    if remote := env.get("PUBSYNC_REMOTE"):
        _set_nested(result, "publish", "remote", remote)
    if branch := env.get("PUBSYNC_BRANCH"):
        _set_nested(result, "publish", "branch", branch)
    if raw_flag := env.get("PUBSYNC_ALL_BRANCHES"):
        if (all_branches := _parse_flag("PUBSYNC_ALL_BRANCHES", raw_flag)) is not None:
            _set_nested(result, "publish", "all_branches", all_branches)
    if raw_timeout := env.get("PUBSYNC_GIT_TIMEOUT"):
        if (timeout := _parse_timeout(raw_timeout)) is not None:
            _set_nested(result, "git", "command_timeout", timeout)

    return result


def get_default_config() -> dict[str, Any]:
    return PubsyncConfig().model_dump(mode="json")


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> PubsyncConfig:
    """
    Load the effective configuration for `project_dir` (default: cwd).

    Raises:
        ValidationError: If the merged layers fail validation.
    """
    key = (project_dir or Path.cwd()).resolve()
    if use_cache and key in _config_cache:
        return _config_cache[key]

    merged = get_default_config()
    for path in (get_user_config_path(), get_project_config_path(key)):
        if layer := load_json_file(path):
            logger.debug("Applying config layer %s", path)
            merged = deep_merge(merged, layer)
    merged = apply_env_overrides(merged)

    config = PubsyncConfig(**merged)
    _config_cache[key] = config
    return config


def clear_cache() -> None:
    """Forget every loaded configuration."""
    _config_cache.clear()
