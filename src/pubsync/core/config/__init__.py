"""
Configuration models and loading.

Pydantic models for pubsync configuration with multi-layer merging:
defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    ContentConfig,
    GitConfig,
    PublishConfig,
    PubsyncConfig,
)

__all__ = [
    # Models
    "ContentConfig",
    "GitConfig",
    "PublishConfig",
    "PubsyncConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
]
