from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePath

from lumctl.system.device import Device, DeviceClass, PathError


@dataclass(frozen=True)
class DeviceFilters:
    device_class: DeviceClass | None = None
    name: str | None = None

    def matches_name(self, path: Path) -> bool:
        """Component-wise suffix match: ``"X"`` matches ``.../X`` but not ``.../YX``."""

        if not self.name:
            return True
        wanted = PurePath(self.name).parts
        return bool(wanted) and path.parts[-len(wanted) :] == wanted


class NotFound(LookupError):
    def __init__(self, filters: DeviceFilters):
        self.filters = filters
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.filters.name:
            return f'device with name "{self.filters.name}" not found'
        return "no devices found"


def default_roots() -> dict[DeviceClass, Path]:
    return {cls: cls.root for cls in DeviceClass}


@dataclass
class DeviceFinder:
    log: logging.Logger
    roots: Mapping[DeviceClass, Path] = field(default_factory=default_roots)

    def _iter_dirs(self, root: Path) -> Iterator[Path]:
        try:
            entries = list(root.iterdir())
        except OSError as e:
            raise PathError(e.strerror or e.__class__.__name__, root) from e
        for entry in entries:
            if entry.is_dir():
                yield entry
            else:
                self.log.debug("skipping %s: not a directory", entry)

    def _candidates(self, filters: DeviceFilters) -> list[Path]:
        if filters.device_class is not None:
            classes = [filters.device_class]
        else:
            classes = [DeviceClass.BACKLIGHT, DeviceClass.LEDS]

        paths: list[Path] = []
        for cls in classes:
            paths.extend(p for p in self._iter_dirs(self.roots[cls]) if filters.matches_name(p))
        return sorted(paths)

    def _parse(self, path: Path) -> Device | None:
        self.log.debug("creating device from path: %s", path)
        try:
            return Device.from_path(path)
        except PathError as e:
            self.log.warning("skipping device: %s", e)
            return None

    def iter_devices(self, filters: DeviceFilters) -> Iterator[Device]:
        for path in self._candidates(filters):
            device = self._parse(path)
            if device is not None:
                yield device

    def list(self, filters: DeviceFilters, required: bool = True) -> list[Device]:
        devices = list(self.iter_devices(filters))
        if required and not devices:
            raise NotFound(filters)
        return devices

    def first(self, filters: DeviceFilters) -> Device:
        device = next(self.iter_devices(filters), None)
        if device is None:
            raise NotFound(filters)
        return device
