from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from lumctl.paths import default_config_file
from lumctl.system.device import DeviceClass

CLASSES = {c.value for c in DeviceClass}


class ConfigError(ValueError):
    pass


def _mapping(cfg: dict[str, Any], key: str) -> dict[str, Any]:
    value = cfg.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{key} must be a mapping")
    return value


def _optional_str(section: dict[str, Any], key: str, where: str) -> None:
    value = section.get(key)
    if value is not None and not isinstance(value, str):
        raise ConfigError(f"{where}.{key} must be a string")


def load(path: str | Path | None = None) -> dict[str, Any]:
    """Load the YAML config.

    A missing file at the default location means defaults. An explicitly
    given file has to exist.
    """

    if path is None:
        p = default_config_file()
        if not p.is_file():
            return normalize({})
    else:
        p = Path(path).expanduser()

    try:
        data = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read config {p}: {e.strerror or e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config {p}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("Top-level config must be a mapping")
    validate(data)
    return normalize(data)


def validate(cfg: dict[str, Any]) -> None:
    device = _mapping(cfg, "device")
    _optional_str(device, "name", "device")
    cls = device.get("class")
    if cls is not None and str(cls).strip() not in CLASSES:
        raise ConfigError(f"device.class must be one of {sorted(CLASSES)}, got {cls!r}")

    state_file = cfg.get("state_file")
    if state_file is not None and not isinstance(state_file, str):
        raise ConfigError("state_file must be a string")

    if "privileged" in cfg and not isinstance(cfg["privileged"], bool):
        raise ConfigError("privileged must be true or false")

    roots = _mapping(cfg, "roots")
    for key, value in roots.items():
        if key not in CLASSES:
            raise ConfigError(f"roots.{key} is not a device class")
        if not isinstance(value, str) or not value.strip():
            raise ConfigError(f"roots.{key} must be a non-empty path")


def normalize(cfg: dict[str, Any]) -> dict[str, Any]:
    """Strip whitespace and fill in defaults, in place."""

    device = cfg.setdefault("device", {}) or {}
    cfg["device"] = device
    for key in ("name", "class"):
        value = device.get(key)
        if isinstance(value, str):
            value = value.strip()
        device[key] = value or None

    state_file = cfg.get("state_file")
    if isinstance(state_file, str):
        state_file = state_file.strip()
    cfg["state_file"] = state_file or None

    cfg.setdefault("privileged", True)

    roots = cfg.get("roots") or {}
    cfg["roots"] = {cls: Path(str(roots.get(cls.value, cls.root)).strip()) for cls in DeviceClass}
    return cfg
