from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from typing import Any

from dbus_next import BusType
from dbus_next.aio import MessageBus
from dbus_next.errors import AuthError, DBusError, InvalidAddressError
from dbus_next.introspection import Node

from lumctl.system.device import DeviceClass

BUS = "org.freedesktop.login1"
OBJ = "/org/freedesktop/login1/session/auto"
IFACE = "org.freedesktop.login1.Session"
METHOD = "SetBrightness"
UNKNOWN_METHOD = "org.freedesktop.DBus.Error.UnknownMethod"


class IpcError(RuntimeError):
    pass


class BrightnessSession(abc.ABC):
    """Privileged brightness writes through a session manager."""

    @abc.abstractmethod
    async def set_brightness(self, device_class: DeviceClass, name: str, value: int) -> bool:
        """Return False when the caller has to write the brightness itself."""
        raise NotImplementedError

    async def close(self) -> None:
        return None


class NoSession(BrightnessSession):
    async def set_brightness(self, device_class: DeviceClass, name: str, value: int) -> bool:
        return False


def _has_set_brightness(introspection: Node) -> bool:
    for iface in introspection.interfaces:
        if iface.name == IFACE:
            return any(m.name == METHOD for m in iface.methods)
    return False


@dataclass
class LogindSession(BrightnessSession):
    bus: MessageBus
    iface: Any

    @classmethod
    async def connect(cls) -> LogindSession:
        bus = await MessageBus(bus_type=BusType.SYSTEM).connect()
        try:
            introspection = await bus.introspect(BUS, OBJ)
        except BaseException:
            bus.disconnect()
            raise
        if not _has_set_brightness(introspection):
            # SetBrightness appeared in systemd 243.
            bus.disconnect()
            raise DBusError(UNKNOWN_METHOD, f"{IFACE}.{METHOD} not provided")
        obj = bus.get_proxy_object(BUS, OBJ, introspection)
        iface = obj.get_interface(IFACE)
        return cls(bus=bus, iface=iface)

    async def set_brightness(self, device_class: DeviceClass, name: str, value: int) -> bool:
        call_set_brightness = getattr(self.iface, "call_set_brightness", None)
        if call_set_brightness is None:
            return False
        try:
            await call_set_brightness(device_class.value, name, value)
        except DBusError as e:
            call = f"SetBrightness({device_class}, {name}, {value})"
            raise IpcError(f"logind {call} failed: {e.text}") from e
        return True

    async def close(self) -> None:
        self.bus.disconnect()


async def connect_session(log: logging.Logger, enabled: bool = True) -> BrightnessSession:
    """Pick the brightness session once at startup.

    logind being unreachable is not an error, writes then go straight to sysfs.
    """

    if not enabled:
        log.debug("privileged brightness path disabled")
        return NoSession()
    try:
        session = await LogindSession.connect()
    except (OSError, AuthError, InvalidAddressError, DBusError) as e:
        log.debug("logind session unavailable, falling back to sysfs: %s", e)
        return NoSession()
    log.debug("using logind session at %s", OBJ)
    return session
