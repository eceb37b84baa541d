from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Any

from lumctl import __version__
from lumctl.config import ConfigError, load
from lumctl.controller import BrightnessController
from lumctl.conversion import to_brightness, to_percent
from lumctl.dbus_session import IpcError, connect_session
from lumctl.discovery import DeviceFilters, DeviceFinder, NotFound
from lumctl.output import FORMATTERS
from lumctl.percent import Percent
from lumctl.persistence import dump, resolve_state_file, restore, restore_failures, save
from lumctl.persistence import load as load_state
from lumctl.system.device import Device, DeviceClass, PathError

LOG_FORMAT = "%(levelname)s: %(message)s"


def percent(raw: str) -> Percent:
    try:
        return Percent.parse(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="lumctl",
        description="Read and change the brightness of backlight and LED devices.",
    )
    ap.add_argument("--version", action="version", version=__version__)
    ap.add_argument("-c", "--config", help="YAML config file")
    ap.add_argument(
        "--class",
        dest="device_class",
        choices=[c.value for c in DeviceClass],
        help="only consider devices of this class",
    )
    ap.add_argument("-d", "--device", help="only consider the device with this name")
    ap.add_argument(
        "-s",
        "--simulate",
        action="store_true",
        help="compute the new brightness without writing it",
    )
    ap.add_argument("-v", "--verbose", action="count", default=0)
    ap.add_argument("-q", "--quiet", action="store_true")
    ap.add_argument(
        "--no-privileged",
        dest="privileged",
        action="store_false",
        default=None,
        help="write sysfs directly instead of asking logind",
    )

    sub = ap.add_subparsers(dest="cmd", required=True)

    for name, help_text in (
        ("set", "Set brightness to PERCENT"),
        ("add", "Add PERCENT to the current brightness"),
        ("sub", "Subtract PERCENT from the current brightness"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("percent", type=percent)

    sub.add_parser("get", help="Print the current brightness in percent")

    info = sub.add_parser("info", help="Print information about matching devices")
    info.add_argument("--format", choices=sorted(FORMATTERS), default="human")

    save_p = sub.add_parser("save", help="Save brightness to the state file")
    save_p.add_argument("--all", action="store_true", help="save every matching device")
    save_p.add_argument("-f", "--file", help="state file (default: XDG state dir)")

    restore_p = sub.add_parser("restore", help="Restore brightness from the state file")
    restore_p.add_argument("-f", "--file", help="state file (default: XDG state dir)")

    return ap


def _log_level(args: argparse.Namespace) -> int:
    if args.quiet:
        return logging.ERROR
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    return logging.WARNING


def _filters(args: argparse.Namespace, cfg: dict[str, Any]) -> DeviceFilters:
    cls = args.device_class or cfg["device"]["class"]
    return DeviceFilters(
        device_class=DeviceClass(cls) if cls else None,
        name=args.device or cfg["device"]["name"],
    )


def _target(cmd: str, current: Percent, requested: Percent) -> Percent:
    if cmd == "add":
        return current + requested
    if cmd == "sub":
        return current - requested
    return requested


def _nudge(cmd: str, device: Device, brightness: int, requested: Percent) -> int:
    """Move one raw step when rounding would leave a relative change without effect."""

    if cmd not in ("add", "sub") or float(requested) == 0:
        return brightness
    if device.clamp(brightness) != device.brightness:
        return brightness
    if cmd == "add":
        return min(device.brightness + 1, device.max_brightness)
    return max(device.brightness - 1, 0)


async def _update(
    args: argparse.Namespace,
    finder: DeviceFinder,
    filters: DeviceFilters,
    privileged: bool,
    log: logging.Logger,
) -> None:
    device = finder.first(filters)
    current = to_percent(device.brightness, device.max_brightness)
    target = _target(args.cmd, current, args.percent)
    brightness = to_brightness(target, device.max_brightness)
    brightness = _nudge(args.cmd, device, brightness, args.percent)

    if args.simulate:
        print(f"{device.name}: {device.brightness} -> {device.clamp(brightness)} ({target})")
        return

    controller = BrightnessController(await connect_session(log, privileged), log)
    try:
        applied = await controller.set(device, brightness)
    finally:
        await controller.close()
    log.info("%s: brightness %d (%s)", device.name, applied, target)


async def _restore(
    args: argparse.Namespace, cfg: dict[str, Any], privileged: bool, log: logging.Logger
) -> None:
    file = resolve_state_file(args.file or cfg["state_file"])
    records = load_state(file)

    if args.simulate:
        for r in records:
            print(f"{r.path}: -> {r.brightness}")
        return

    controller = BrightnessController(await connect_session(log, privileged), log)
    try:
        results = await restore(records, controller)
    finally:
        await controller.close()

    failed = restore_failures(results)
    for r in results:
        if r.ok and r.device is not None:
            log.info("restored %s to %d", r.device.name, r.device.brightness)
    if failed:
        lines = [f"lumctl: failed to restore {len(failed)} of {len(results)} devices"]
        lines.extend(f"  {r.record.path}: {r.error}" for r in failed)
        raise SystemExit("\n".join(lines))


async def _run(args: argparse.Namespace, cfg: dict[str, Any], log: logging.Logger) -> None:
    filters = _filters(args, cfg)
    finder = DeviceFinder(log=log, roots=cfg["roots"])
    privileged = cfg["privileged"] if args.privileged is None else args.privileged
    if privileged and any(path != cls.root for cls, path in cfg["roots"].items()):
        # logind resolves names under /sys/class only.
        log.debug("custom device roots configured, writing sysfs directly")
        privileged = False

    if args.cmd in ("set", "add", "sub"):
        await _update(args, finder, filters, privileged, log)
    elif args.cmd == "get":
        device = finder.first(filters)
        print(f"{float(to_percent(device.brightness, device.max_brightness)):.0f}")
    elif args.cmd == "info":
        print(FORMATTERS[args.format](finder.list(filters)))
    elif args.cmd == "save":
        devices = finder.list(filters) if args.all else [finder.first(filters)]
        file = resolve_state_file(args.file or cfg["state_file"])
        dump(save(devices), file, single=not args.all)
        log.info("saved %d device(s) to %s", len(devices), file)
    elif args.cmd == "restore":
        await _restore(args, cfg, privileged, log)


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=_log_level(args), format=LOG_FORMAT)
    log = logging.getLogger("lumctl")

    try:
        cfg = load(args.config)
        asyncio.run(_run(args, cfg, log))
    except (PathError, NotFound, IpcError, ConfigError) as e:
        raise SystemExit(f"lumctl: {e}") from e


if __name__ == "__main__":
    main()
