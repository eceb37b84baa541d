from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml

from lumctl.controller import BrightnessController
from lumctl.dbus_session import IpcError
from lumctl.paths import default_state_file
from lumctl.system.device import BRIGHTNESS_MAX, Device, PathError


class StateError(PathError):
    pass


@dataclass(frozen=True)
class SaveData:
    """A device's brightness at save time.

    The device path is stored rather than its name so restoring does not depend
    on discovery filters.
    """

    path: Path
    brightness: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["path"] = str(self.path)
        return data


@dataclass
class RestoreResult:
    record: SaveData
    device: Device | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_state_file(explicit: str | Path | None = None) -> Path:
    if explicit is None or str(explicit).strip() == "":
        return default_state_file()
    p = Path(str(explicit).strip()).expanduser()
    if p.is_dir():
        raise PathError("state file must name a file, not a directory", p)
    return p


def save(devices: Iterable[Device]) -> list[SaveData]:
    return [SaveData(path=d.path, brightness=d.brightness) for d in devices]


def dump(records: list[SaveData], file: Path, single: bool = False) -> None:
    if single:
        if len(records) != 1:
            raise ValueError(f"single save expects one record, got {len(records)}")
        doc: dict[str, Any] = records[0].to_dict()
    else:
        doc = {"devices": [r.to_dict() for r in records]}

    try:
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(yaml.safe_dump(doc, sort_keys=False), encoding="utf-8")
    except OSError as e:
        raise PathError(e.strerror or e.__class__.__name__, file) from e


def _record(item: Any, file: Path) -> SaveData:
    if not isinstance(item, dict):
        raise StateError("records must be mappings", file)
    path = item.get("path")
    brightness = item.get("brightness")
    if not isinstance(path, str) or not path.strip():
        raise StateError("record is missing a device path", file)
    if isinstance(brightness, bool) or not isinstance(brightness, int):
        raise StateError(f"record for {path} has no integer brightness", file)
    if not 0 <= brightness <= BRIGHTNESS_MAX:
        raise StateError(f"record for {path} has out of range brightness {brightness}", file)
    return SaveData(path=Path(path.strip()), brightness=brightness)


def load(file: Path) -> list[SaveData]:
    try:
        data = yaml.safe_load(file.read_text(encoding="utf-8"))
    except OSError as e:
        raise PathError(e.strerror or e.__class__.__name__, file) from e
    except yaml.YAMLError as e:
        raise StateError(f"invalid YAML ({e.__class__.__name__})", file) from e

    if not isinstance(data, dict):
        raise StateError("state file must be a mapping", file)
    if "devices" in data:
        items = data["devices"]
        if not isinstance(items, list):
            raise StateError("devices must be a list", file)
        return [_record(item, file) for item in items]
    return [_record(data, file)]


async def restore(
    records: Iterable[SaveData], controller: BrightnessController
) -> list[RestoreResult]:
    """Restore every record, collecting failures instead of stopping at the first."""

    results: list[RestoreResult] = []
    for record in records:
        result = RestoreResult(record=record)
        try:
            device = Device.from_path(record.path)
            await controller.set(device, record.brightness)
            result.device = device
        except (PathError, IpcError, ValueError) as e:
            controller.log.warning("failed to restore %s: %s", record.path, e)
            result.error = e
        results.append(result)
    return results


def restore_failures(results: Iterable[RestoreResult]) -> list[RestoreResult]:
    return [r for r in results if not r.ok]
