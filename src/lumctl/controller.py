from __future__ import annotations

import logging
from dataclasses import dataclass

from lumctl.dbus_session import BrightnessSession
from lumctl.system.device import Device


@dataclass
class BrightnessController:
    """Apply raw brightness values, preferring the logind session.

    The device's own ``max_brightness`` always caps the requested value.
    """

    session: BrightnessSession
    log: logging.Logger

    async def set(self, device: Device, requested: int) -> int:
        if requested < 0:
            raise ValueError(f"brightness must not be negative, got {requested}")
        applied = device.clamp(requested)

        if await self.session.set_brightness(device.device_class, device.name, applied):
            self.log.debug("set %s to %d via logind", device.name, applied)
            device.brightness = applied
            return applied

        self.log.debug("writing %d to %s directly", applied, device.path)
        return device.write_brightness(applied)

    async def close(self) -> None:
        await self.session.close()
