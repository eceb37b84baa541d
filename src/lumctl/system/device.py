from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

# Range of the logind SetBrightness argument ("u").
BRIGHTNESS_MAX = 2**32 - 1


class PathError(RuntimeError):
    """An I/O or parse failure tied to a filesystem path."""

    def __init__(self, reason: object, path: str | Path):
        self.reason = reason
        self.path = Path(path)
        super().__init__(f'{reason}: "{self.path}"')


class IntegrityError(PathError):
    pass


class DeviceClass(str, enum.Enum):
    BACKLIGHT = "backlight"
    LEDS = "leds"

    @property
    def root(self) -> Path:
        return _ROOTS[self]

    @property
    def label(self) -> str:
        return self.value

    def __str__(self) -> str:
        return self.value


_ROOTS = {
    DeviceClass.BACKLIGHT: Path("/sys/class/backlight"),
    DeviceClass.LEDS: Path("/sys/class/leds"),
}


def _strerror(exc: OSError) -> str:
    return exc.strerror or exc.__class__.__name__


def parse_brightness(path: Path) -> int:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise PathError(_strerror(e), path) from e

    text = raw.strip()
    try:
        value = int(text, 10)
    except ValueError as e:
        raise PathError(f"invalid brightness value {text!r}", path) from e
    if not 0 <= value <= BRIGHTNESS_MAX:
        raise PathError(f"brightness value {value} out of range", path)
    return value


@dataclass
class Device:
    """A sysfs brightness device (``/sys/class/<class>/<name>``).

    ``brightness`` reflects the last value read or written by this process.
    """

    name: str
    path: Path
    device_class: DeviceClass
    brightness: int
    max_brightness: int

    @property
    def _brightness(self) -> Path:
        return self.path / "brightness"

    @classmethod
    def from_path(cls, path: str | Path) -> Device:
        p = Path(path)
        if not p.name:
            raise PathError("path has no name component", p)

        # https://www.kernel.org/doc/html/latest/admin-guide/abi-stable-files.html
        brightness = parse_brightness(p / "brightness")
        max_brightness = parse_brightness(p / "max_brightness")
        if brightness > max_brightness:
            raise IntegrityError(
                f"brightness = {brightness} > max_brightness = {max_brightness}", p
            )

        device_class = DeviceClass.LEDS if p.parent.name == "leds" else DeviceClass.BACKLIGHT
        return cls(
            name=p.name,
            path=p,
            device_class=device_class,
            brightness=brightness,
            max_brightness=max_brightness,
        )

    def clamp(self, value: int) -> int:
        return min(int(value), self.max_brightness)

    def write_brightness(self, value: int) -> int:
        brightness = self.clamp(value)
        try:
            self._brightness.write_text(str(brightness), encoding="utf-8")
        except OSError as e:
            raise PathError(_strerror(e), self._brightness) from e
        self.brightness = brightness
        return brightness
