"""
Configuration models and loading.

Multi-layer merging: defaults < user < project < env vars.
"""

from .loader import (
    get_project_config_path,
    get_user_config_path,
    get_user_env_path,
    get_xdg_config_home,
    load_config,
)
from .models import WipmanConfig

__all__ = [
    # Models
    "WipmanConfig",
    # Loader functions
    "get_project_config_path",
    "get_user_config_path",
    "get_user_env_path",
    "get_xdg_config_home",
    "load_config",
]
