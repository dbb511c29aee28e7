"""Configuration management for tmuxman."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir

APP_NAME = "tmuxman"


def _find_config_file() -> Path:
    """Find config file, checking platformdirs location first, then XDG fallback."""
    platformdirs_config = Path(user_config_dir(APP_NAME)) / "config.toml"
    if platformdirs_config.exists():
        return platformdirs_config

    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_home / APP_NAME / "config.toml"


def _default_config_path() -> Path:
    return Path(__file__).parent / "configs" / "default.toml"


@dataclass
class Config:
    """Flat configuration holding all settings."""
    # tmux
    tmux_binary: str = "tmux"
    socket_name: Optional[str] = None
    socket_path: Optional[str] = None

    # Appearance
    dark_mode: bool = True

    # Behavior
    show_header: bool = True
    show_footer: bool = True
    auto_refresh_seconds: float = 0  # 0 disables background refresh

    # Notifications
    status_duration: float = 4.0


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base, returning a new dict.

    Lists are replaced entirely (not merged).
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration, merging user config over defaults.

    1. Load defaults from configs/default.toml
    2. If a user config exists (``path`` or the standard location), merge it over defaults
    """
    with open(_default_config_path(), "rb") as f:
        data = tomllib.load(f)

    config_file = path or _find_config_file()
    if config_file.exists():
        with open(config_file, "rb") as f:
            data = _deep_merge(data, tomllib.load(f))

    tmux = data.get("tmux", {})
    appearance = data.get("appearance", {})
    behavior = data.get("behavior", {})
    notifications = data.get("notifications", {})

    return Config(
        tmux_binary=tmux.get("binary") or "tmux",
        # Empty strings in TOML mean "not set"
        socket_name=tmux.get("socket_name") or None,
        socket_path=tmux.get("socket_path") or None,
        dark_mode=appearance.get("dark_mode", True),
        show_header=behavior.get("show_header", True),
        show_footer=behavior.get("show_footer", True),
        auto_refresh_seconds=behavior.get("auto_refresh_seconds", 0),
        status_duration=notifications.get("duration_seconds", 4.0),
    )


def get_config_path() -> Path:
    """Return the path to the config file."""
    return _find_config_file()
