from __future__ import annotations

import math
from dataclasses import dataclass

MIN_PERCENT = 0.0
MAX_PERCENT = 100.0


@dataclass(frozen=True, order=True)
class Percent:
    """A finite percentage in the closed range [0, 100].

    Arithmetic between two percents saturates instead of failing, so
    ``Percent(90) + Percent(20)`` is ``Percent(100)``.
    """

    value: float

    def __post_init__(self) -> None:
        value = float(self.value)
        if not math.isfinite(value):
            raise ValueError(f"percent must be finite, got {self.value!r}")
        if not MIN_PERCENT <= value <= MAX_PERCENT:
            raise ValueError(f"percent must be within 0..=100, got {self.value!r}")
        object.__setattr__(self, "value", value)

    def __add__(self, other: Percent) -> Percent:
        if not isinstance(other, Percent):
            return NotImplemented
        return Percent(min(self.value + other.value, MAX_PERCENT))

    def __sub__(self, other: Percent) -> Percent:
        if not isinstance(other, Percent):
            return NotImplemented
        return Percent(max(self.value - other.value, MIN_PERCENT))

    def __float__(self) -> float:
        return self.value

    def __str__(self) -> str:
        return f"{self.value:.0f}%"

    @classmethod
    def parse(cls, raw: str) -> Percent:
        """Parse ``"40"``, ``"40%"`` or ``"12.5"`` into a Percent."""

        text = raw.strip()
        if text.endswith("%"):
            text = text[:-1].rstrip()
        return cls(float(text))
