"""Base-hue color palettes for the recursive generators."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass

PALETTE_SIZE = 5
PALETTE_SATURATION = 80.0
PALETTE_LIGHTNESS = 60.0

_HUE_OFFSETS = (0.0, 120.0, 240.0, 30.0, -30.0)


@dataclass(frozen=True)
class HSLColor:
    """A color in HSL space; hue in degrees, saturation/lightness in percent."""

    hue: float
    saturation: float
    lightness: float

    def to_rgb(self) -> tuple[int, int, int]:
        r, g, b = colorsys.hls_to_rgb(
            (self.hue % 360.0) / 360.0,
            self.lightness / 100.0,
            self.saturation / 100.0,
        )
        return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))

    def __str__(self) -> str:
        return f"hsl({self.hue:g}, {self.saturation:g}%, {self.lightness:g}%)"


def palette(base_hue: float) -> tuple[HSLColor, ...]:
    """Return the five palette colors derived from ``base_hue``.

    Callers index by depth or branch number and wrap with ``% PALETTE_SIZE``.
    """

    return tuple(
        HSLColor((base_hue + offset) % 360.0, PALETTE_SATURATION, PALETTE_LIGHTNESS)
        for offset in _HUE_OFFSETS
    )
