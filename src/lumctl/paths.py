from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "lumctl"


def _xdg_dir(env: str, *fallback: str) -> Path:
    base = os.environ.get(env)
    if base:
        return Path(base)
    return Path.home().joinpath(*fallback)


def default_state_file(app_name: str = APP_NAME) -> Path:
    """Return the saved-brightness file.

    Uses XDG_STATE_HOME when available, else ~/.local/state.
    """

    return _xdg_dir("XDG_STATE_HOME", ".local", "state") / app_name / "brightness.yaml"


def default_config_file(app_name: str = APP_NAME) -> Path:
    return _xdg_dir("XDG_CONFIG_HOME", ".config") / app_name / "config.yaml"
