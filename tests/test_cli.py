from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from lumctl import dbus_session
from lumctl.cli import main
from lumctl.system.device import DeviceClass

from conftest import make_device


@pytest.fixture
def config(tmp_path: Path, roots: dict[DeviceClass, Path]) -> Path:
    p = tmp_path / "config.yaml"
    p.write_text(
        yaml.safe_dump(
            {
                "privileged": False,
                "state_file": str(tmp_path / "state" / "brightness.yaml"),
                "roots": {cls.value: str(path) for cls, path in roots.items()},
            }
        ),
        encoding="utf-8",
    )
    return p


@pytest.fixture
def backlight(roots: dict[DeviceClass, Path]) -> Path:
    return make_device(roots[DeviceClass.BACKLIGHT], "intel_backlight", 16, 100)


def _brightness(path: Path) -> str:
    return (path / "brightness").read_text(encoding="utf-8").strip()


def test_set(config: Path, backlight: Path) -> None:
    main(["-c", str(config), "set", "50"])
    assert _brightness(backlight) == "10"


def test_add_and_sub(config: Path, backlight: Path) -> None:
    main(["-c", str(config), "add", "10"])
    assert _brightness(backlight) == "25"

    main(["-c", str(config), "sub", "100"])
    assert _brightness(backlight) == "0"


def test_add_and_sub_move_at_least_one_step(config: Path, roots: dict[DeviceClass, Path]) -> None:
    dim = make_device(roots[DeviceClass.BACKLIGHT], "acpi_video0", 1, 100)

    main(["-c", str(config), "add", "5"])
    assert _brightness(dim) == "2"

    main(["-c", str(config), "sub", "1"])
    assert _brightness(dim) == "1"

    main(["-c", str(config), "add", "0"])
    assert _brightness(dim) == "1"


def test_simulate_does_not_write(
    config: Path, backlight: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    main(["-c", str(config), "--simulate", "set", "100"])
    assert _brightness(backlight) == "16"
    assert "intel_backlight: 16 -> 100" in capsys.readouterr().out


def test_get(config: Path, backlight: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["-c", str(config), "get"])
    assert capsys.readouterr().out.strip() == "60"


def test_info_json(
    config: Path,
    backlight: Path,
    roots: dict[DeviceClass, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    make_device(roots[DeviceClass.LEDS], "input3::capslock", 1, 1)

    main(["-c", str(config), "info", "--format", "json"])
    data = json.loads(capsys.readouterr().out)
    assert [(d["name"], d["class"]) for d in data] == [
        ("intel_backlight", "backlight"),
        ("input3::capslock", "leds"),
    ]
    assert data[1]["percent"] == 100.0


def test_info_formats(config: Path, backlight: Path, capsys: pytest.CaptureFixture[str]) -> None:
    main(["-c", str(config), "info"])
    assert 'Device "intel_backlight" of class "backlight"' in capsys.readouterr().out

    main(["-c", str(config), "info", "--format", "jsonl"])
    assert json.loads(capsys.readouterr().out)["max_brightness"] == 100

    main(["-c", str(config), "info", "--format", "csv"])
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "name,class,path,brightness,max_brightness,percent"
    assert lines[1].startswith("intel_backlight,backlight,")


def test_class_and_device_filters(
    config: Path,
    backlight: Path,
    roots: dict[DeviceClass, Path],
    capsys: pytest.CaptureFixture[str],
) -> None:
    leds = make_device(roots[DeviceClass.LEDS], "platform::fnlock", 0, 1)

    main(["-c", str(config), "--class", "leds", "-d", "platform::fnlock", "set", "100"])
    assert _brightness(leds) == "1"
    assert _brightness(backlight) == "16"


def test_not_found(config: Path, backlight: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["-c", str(config), "-d", "nope", "get"])
    assert exc.value.code == 'lumctl: device with name "nope" not found'


def test_invalid_percent(config: Path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["-c", str(config), "set", "150"])
    assert exc.value.code == 2


def test_save_and_restore(config: Path, backlight: Path, tmp_path: Path) -> None:
    main(["-c", str(config), "save"])
    assert (tmp_path / "state" / "brightness.yaml").is_file()

    main(["-c", str(config), "set", "100"])
    assert _brightness(backlight) == "100"

    main(["-c", str(config), "restore"])
    assert _brightness(backlight) == "16"


def test_restore_partial_failure(
    config: Path, backlight: Path, roots: dict[DeviceClass, Path], tmp_path: Path
) -> None:
    leds = make_device(roots[DeviceClass.LEDS], "input3::capslock", 1, 1)
    state = tmp_path / "all.yaml"
    main(["-c", str(config), "save", "--all", "-f", str(state)])

    (leds / "max_brightness").unlink()
    main(["-c", str(config), "set", "0"])

    with pytest.raises(SystemExit) as exc:
        main(["-c", str(config), "restore", "-f", str(state)])
    message = str(exc.value.code)
    assert message.startswith("lumctl: failed to restore 1 of 2 devices\n")
    assert f"  {leds}: " in message
    assert _brightness(backlight) == "16"


def test_custom_roots_skip_logind(
    tmp_path: Path,
    roots: dict[DeviceClass, Path],
    backlight: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def connect() -> dbus_session.LogindSession:
        pytest.fail("logind must not be used for devices outside /sys/class")

    monkeypatch.setattr(dbus_session.LogindSession, "connect", connect)
    cfg = tmp_path / "privileged.yaml"
    cfg.write_text(
        yaml.safe_dump(
            {
                "privileged": True,
                "roots": {cls.value: str(path) for cls, path in roots.items()},
            }
        ),
        encoding="utf-8",
    )

    main(["-c", str(cfg), "set", "100"])
    assert _brightness(backlight) == "100"
