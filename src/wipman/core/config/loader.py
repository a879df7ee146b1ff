"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars

An explicit `root` argument (the CLI `--root` option) beats all of them.
Env vars come from the process environment, then the project `.env`, then
the user `.env`; only `WIPMAN_*` keys are read from the files, and the
process environment itself is never modified.
"""

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from dotenv import dotenv_values

from wipman.core.config.models import WipmanConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILENAME = ".wipman.json"
ENV_FILENAME = ".env"
ENV_PREFIX = "WIPMAN_"
ROOT_ENV_VAR = "WIPMAN_ROOT"
DEBUG_ENV_VAR = "WIPMAN_DEBUG"


def get_xdg_config_home() -> Path:
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """Path to ~/.config/wipman/config.json (or XDG equivalent)."""
    return get_xdg_config_home() / "wipman" / "config.json"


def get_user_env_path() -> Path:
    return get_xdg_config_home() / "wipman" / ENV_FILENAME


def get_project_config_path(root: Path) -> Path:
    return root / PROJECT_CONFIG_FILENAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries; values in `override` win.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON object from `path`.

    Returns None (and logs a warning for broken files) instead of raising,
    so a bad config file never blocks the tool.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning("Ignoring config at %s: expected a JSON object", path)
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def read_env_files(*paths: Path) -> dict[str, str]:
    """
    Read the `WIPMAN_*` variables set in dotenv files.

    Missing files are skipped. When several files set a key, the last one wins.
    """
    values: dict[str, str] = {}
    for path in paths:
        if not path.is_file():
            continue
        for key, value in dotenv_values(path).items():
            if not key.startswith(ENV_PREFIX):
                logger.debug("Ignoring %s from %s", key, path)
            elif value is not None:
                values[key] = value
    return values


def apply_env_overrides(config_dict: dict[str, Any], environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """
    Apply environment variable overrides.

    Supported env vars:
        WIPMAN_ROOT - overrides root
        WIPMAN_DEBUG - overrides debug ("false", "0" and "" mean off)
    """
    if environ is None:
        environ = os.environ
    result = config_dict.copy()

    if root := environ.get(ROOT_ENV_VAR):
        result["root"] = root

    if (debug := environ.get(DEBUG_ENV_VAR)) is not None:
        result["debug"] = debug.lower() not in ("false", "0", "")

    return result


def get_default_config() -> dict[str, Any]:
    return {
        "root": str(Path.cwd()),
        "debug": False,
        "ignored_extensions": [".json"],
        "view_extension": ".md",
        "journal_enabled": True,
    }


def resolve_root(root: Path | None = None, environ: Mapping[str, str] | None = None) -> Path:
    """The wipman root: explicit argument, else WIPMAN_ROOT, else cwd."""
    if environ is None:
        environ = os.environ
    if root is not None:
        return root
    if env_root := environ.get(ROOT_ENV_VAR):
        return Path(env_root)
    return Path.cwd()


def load_config(root: Path | None = None, load_env_files: bool = True) -> WipmanConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. The explicit `root` argument
        2. Environment variables (WIPMAN_*), including .env files
        3. Project config (<root>/.wipman.json)
        4. User config (~/.config/wipman/config.json)
        5. Hardcoded defaults

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    environ: Mapping[str, str] = os.environ
    if load_env_files:
        env_files = (get_user_env_path(), resolve_root(root) / ENV_FILENAME)
        environ = {**read_env_files(*env_files), **os.environ}

    project_root = resolve_root(root, environ)
    merged = get_default_config()
    merged["root"] = str(project_root)

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_root)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged, environ)

    if root is not None:
        merged["root"] = str(root)

    config = WipmanConfig(**merged)
    logger.debug("Loaded config: %r", config)
    return config
