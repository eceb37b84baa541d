from __future__ import annotations

import csv
import io
import json
from collections.abc import Callable, Iterable
from typing import Any

from lumctl.conversion import to_percent
from lumctl.system.device import Device

FIELDS = ["name", "class", "path", "brightness", "max_brightness", "percent"]


def device_record(device: Device) -> dict[str, Any]:
    return {
        "name": device.name,
        "class": device.device_class.label,
        "path": str(device.path),
        "brightness": device.brightness,
        "max_brightness": device.max_brightness,
        "percent": round(float(to_percent(device.brightness, device.max_brightness)), 2),
    }


def format_human(devices: Iterable[Device]) -> str:
    blocks = []
    for d in devices:
        rec = device_record(d)
        blocks.append(
            "\n".join(
                [
                    f'Device "{rec["name"]}" of class "{rec["class"]}":',
                    f"\tPath: {rec['path']}",
                    f"\tCurrent brightness: {rec['brightness']} ({rec['percent']:.0f}%)",
                    f"\tMax brightness: {rec['max_brightness']}",
                ]
            )
        )
    return "\n\n".join(blocks)


def format_json(devices: Iterable[Device]) -> str:
    return json.dumps([device_record(d) for d in devices], indent=2)


def format_jsonl(devices: Iterable[Device]) -> str:
    return "\n".join(json.dumps(device_record(d)) for d in devices)


def format_csv(devices: Iterable[Device]) -> str:
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=FIELDS, lineterminator="\n")
    writer.writeheader()
    for d in devices:
        writer.writerow(device_record(d))
    return buf.getvalue().rstrip("\n")


FORMATTERS: dict[str, Callable[[Iterable[Device]], str]] = {
    "human": format_human,
    "json": format_json,
    "jsonl": format_jsonl,
    "csv": format_csv,
}
