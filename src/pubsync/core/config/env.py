"""
Seeding PUBSYNC_* variables from .env files.

Content repositories often carry a .env for their own site generator, so
only keys starting with `PUBSYNC_` are taken from these files.

Precedence:
  os.environ (pre-existing) > project .env / .env.local > user .env
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_PREFIX = "PUBSYNC_"


def default_user_env_paths() -> list[Path]:
    return [get_xdg_config_home() / "pubsync" / ".env"]


def default_project_env_paths(project_dir: Path) -> list[Path]:
    return [project_dir / ".env", project_dir / ".env.local"]


def read_pubsync_env(paths: Iterable[Path]) -> dict[str, str]:
    """PUBSYNC_* values from `paths`; later files win."""
    values: dict[str, str] = {}
    for path in paths:
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if key and value is not None and key.startswith(ENV_PREFIX):
                values[key] = value
    return values


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export PUBSYNC_* values from user and project .env files.

    Variables already present in the process environment are never
    replaced.

    Returns:
        The variables that were exported.
    """
    if project_dir is None:
        project_dir = Path.cwd()
    if user_env_paths is None:
        user_env_paths = default_user_env_paths()
    if project_env_paths is None:
        project_env_paths = default_project_env_paths(project_dir)

    layered = read_pubsync_env(user_env_paths)
    layered.update(read_pubsync_env(project_env_paths))

    exported = {key: value for key, value in layered.items() if key not in os.environ}
    os.environ.update(exported)

    if exported:
        logger.debug("Loaded %s from .env files", ", ".join(sorted(exported)))
    return exported
