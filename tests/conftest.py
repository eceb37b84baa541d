from __future__ import annotations

import logging
from pathlib import Path

import pytest

from lumctl.system.device import DeviceClass


def make_device(root: Path, name: str, brightness: int = 0, max_brightness: int = 100) -> Path:
    d = root / name
    d.mkdir(parents=True)
    (d / "brightness").write_text(f"{brightness}\n", encoding="utf-8")
    (d / "max_brightness").write_text(f"{max_brightness}\n", encoding="utf-8")
    return d


@pytest.fixture
def roots(tmp_path: Path) -> dict[DeviceClass, Path]:
    out = {cls: tmp_path / cls.value for cls in DeviceClass}
    for p in out.values():
        p.mkdir()
    return out


@pytest.fixture
def log() -> logging.Logger:
    return logging.getLogger("lumctl.test")
