"""A surface that records draw calls instead of rasterizing them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from .errors import PreconditionError
from .surface import DEFAULT_BACKGROUND, Color, Point, Surface, to_rgb


@dataclass(frozen=True)
class Stroke:
    points: tuple[Point, ...]
    color: tuple[int, int, int]
    width: float

    def length(self) -> float:
        pts = np.asarray(self.points, dtype=np.float64)
        if len(pts) < 2:
            return 0.0
        return float(np.sum(np.hypot(*np.diff(pts, axis=0).T)))


@dataclass(frozen=True)
class Fill:
    points: tuple[Point, ...]
    color: tuple[int, int, int]


class RecordingSurface(Surface):
    """Keeps every stroke and fill in device coordinates.

    Pixel writes land in a numpy buffer so escape-time renders can be
    inspected too.  The recorded strokes double as the vector form of a
    path-based render.
    """

    def __init__(self, width: int, height: int, background: Color = DEFAULT_BACKGROUND) -> None:
        super().__init__(width, height)
        self.background = to_rgb(background)
        self.pixels = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.pixels[...] = self.background
        self.strokes: list[Stroke] = []
        self.fills: list[Fill] = []
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def clear(self, color: Color | None = None) -> None:
        fill = self.background if color is None else to_rgb(color)
        self.pixels[...] = fill
        self.strokes = []
        self.fills = []
        self._reset_state()
        self.calls.append(("clear", (fill,)))

    def write_pixels(self, pixels: np.ndarray) -> None:
        self.pixels = self._check_pixels(pixels).copy()
        self._reset_state()
        self.calls.append(("write_pixels", (self.pixels.shape,)))

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.pixels[int(y), int(x)] = to_rgb(color)

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int]:
        r, g, b = self.pixels[int(y), int(x)]
        return int(r), int(g), int(b)

    def to_array(self) -> np.ndarray:
        return self.pixels.copy()

    def blank_like(self) -> "RecordingSurface":
        return RecordingSurface(self.width, self.height, self.background)

    def copy_from(self, other: Surface) -> None:
        if not isinstance(other, RecordingSurface) or other.size != self.size:
            raise PreconditionError("can only copy from a recording surface of the same size")
        self.pixels = other.pixels.copy()
        self.strokes = list(other.strokes)
        self.fills = list(other.fills)
        self.calls.extend(other.calls)

    def polylines(self) -> list[list[Point]]:
        return [list(stroke.points) for stroke in self.strokes]

    def _stroke_polyline(self, points: list[Point], color: tuple[int, int, int], width: float) -> None:
        self.strokes.append(Stroke(tuple(points), color, width))
        self.calls.append(("stroke", (len(points),)))

    def _fill_polygon(self, points: list[Point], color: tuple[int, int, int]) -> None:
        self.fills.append(Fill(tuple(points), color))
        self.calls.append(("fill", (len(points),)))
