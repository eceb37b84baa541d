"""Perceptual mapping between raw brightness and percent.

Humans perceive brightness roughly logarithmically, so a linear mapping looks
far too bright at low percentages. Percent is treated as an exponent instead:
``brightness = max ** (percent / 100)``.

See https://konradstrack.ninja/blog/changing-screen-brightness-in-accordance-with-human-perception/
"""

from __future__ import annotations

import math

from lumctl.percent import MAX_PERCENT, Percent
from lumctl.system.device import BRIGHTNESS_MAX


def _round_half_away(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def to_brightness(percent: Percent, max_brightness: int) -> int:
    if float(percent) == 0.0 or max_brightness == 0:
        return 0
    exp = (float(percent) / 100.0) * math.log10(max_brightness)
    raw = 10.0**exp
    if not math.isfinite(raw):
        return BRIGHTNESS_MAX
    # Saturating cast into the raw brightness range.
    return max(0, min(_round_half_away(raw), BRIGHTNESS_MAX))


def to_percent(brightness: int, max_brightness: int) -> Percent:
    if brightness == 0:
        return Percent(0.0)
    if max_brightness <= 1:
        # log(1) == 0, a single-step device is either off or fully on.
        return Percent(0.0 if brightness < max_brightness else MAX_PERCENT)
    value = math.log(brightness) / math.log(max_brightness) * 100.0
    return Percent(min(max(value, 0.0), MAX_PERCENT))
