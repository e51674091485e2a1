"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import os
from pathlib import Path
from typing import Any

from .models import AgendaConfig

# Global cache to avoid reloading config multiple times per session
_config_cache: AgendaConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/agendakit/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "agendakit" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .agendakit.json in the working directory
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".agendakit.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"api": {"url": "a", "timeout": 5}}, {"api": {"url": "b"}})
        {'api': {'url': 'b', 'timeout': 5}}
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
    Load a JSON file, returning None if it doesn't exist or is invalid.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient: warn and fall back to other layers
        print(f"Warning: Failed to parse config at {path}: {e}")
        return None


def _set(result: dict[str, Any], section: str, key: str, value: Any) -> None:
    result.setdefault(section, {})
    result[section] = {**result[section], key: value}


def _positive_float(name: str, raw: str, minimum: float) -> float | None:
    try:
        value = float(raw)
    except ValueError:
        print(f"Warning: Invalid {name} value '{raw}', ignoring")
        return None
    if value < minimum:
        print(f"Warning: {name} must be >= {minimum}, got {value}, ignoring")
        return None
    return value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        AGENDA_API_URL - overrides api.url
        AGENDA_API_TIMEOUT - overrides api.timeout
        AGENDA_POLL_INTERVAL - overrides viewer.poll_interval
        AGENDA_SHARE_BASE_URL - overrides share.base_url

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if url := os.environ.get("AGENDA_API_URL"):
        _set(result, "api", "url", url)

    if timeout_str := os.environ.get("AGENDA_API_TIMEOUT"):
        timeout = _positive_float("AGENDA_API_TIMEOUT", timeout_str, 0.001)
        if timeout is not None:
            _set(result, "api", "timeout", timeout)

    if interval_str := os.environ.get("AGENDA_POLL_INTERVAL"):
        interval = _positive_float("AGENDA_POLL_INTERVAL", interval_str, 1.0)
        if interval is not None:
            _set(result, "viewer", "poll_interval", interval)

    if base_url := os.environ.get("AGENDA_SHARE_BASE_URL"):
        _set(result, "share", "base_url", base_url)

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "api": {"timeout": 30.0},
        "viewer": {"poll_interval": 30.0},
        "share": {"base_url": "http://localhost:5173"},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> AgendaConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (AGENDA_*)
        2. Project config (.agendakit.json)
        3. User config (~/.config/agendakit/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .agendakit.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated AgendaConfig instance

    Raises:
        pydantic.ValidationError: If the merged config fails validation

    Example:
        >>> config = load_config()
        >>> config.viewer.poll_interval
        30.0
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = AgendaConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
