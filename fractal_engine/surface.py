"""Drawing surfaces the generators render into.

A surface is a fixed-size pixel grid with a bulk pixel write (used by the
escape-time renderer) plus a small path API modelled on a 2D canvas context:
colors, move/line/close, fill, stroke and an affine transform with a
save/restore stack.  Coordinates passed to the path API are user-space and
are mapped through the current transform when the point is added.
"""

from __future__ import annotations

from typing import Union

import numpy as np
import PIL.Image
import PIL.ImageColor
import PIL.ImageDraw

from .errors import PreconditionError
from .palette import HSLColor

Color = Union[HSLColor, str, tuple[int, int, int]]
Point = tuple[float, float]

DEFAULT_BACKGROUND = (0, 0, 0)


def to_rgb(color: Color) -> tuple[int, int, int]:
    """Normalize any accepted color spelling to an 8-bit RGB triple."""

    if isinstance(color, HSLColor):
        return color.to_rgb()
    if isinstance(color, str):
        rgb = PIL.ImageColor.getrgb(color)
        return int(rgb[0]), int(rgb[1]), int(rgb[2])
    r, g, b = color
    return int(r), int(g), int(b)


def translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]], dtype=np.float64)


def rotation(angle: float) -> np.ndarray:
    cos_a = np.cos(angle)
    sin_a = np.sin(angle)
    return np.array([[cos_a, -sin_a, 0.0], [sin_a, cos_a, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def scaling(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]], dtype=np.float64)


def check_dimensions(width: int, height: int) -> None:
    if int(width) <= 0 or int(height) <= 0:
        raise PreconditionError(f"surface dimensions must be positive, got {width}x{height}")


class Surface:
    """Pixel grid and path state shared by the concrete surfaces.

    Subclasses provide ``clear``, ``write_pixels``, ``set_pixel`` and the two
    path sinks ``_stroke_polyline`` / ``_fill_polygon``.
    """

    def __init__(self, width: int, height: int) -> None:
        check_dimensions(width, height)
        self.width = int(width)
        self.height = int(height)
        self._transform = np.identity(3, dtype=np.float64)
        self._saved: list[tuple[np.ndarray, tuple[int, int, int], tuple[int, int, int], float]] = []
        self._subpaths: list[list[Point]] = []
        self.stroke_color: tuple[int, int, int] = (255, 255, 255)
        self.fill_color: tuple[int, int, int] = (255, 255, 255)
        self.line_width = 1.0

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    # -- style -------------------------------------------------------------

    def set_stroke_color(self, color: Color) -> None:
        self.stroke_color = to_rgb(color)

    def set_fill_color(self, color: Color) -> None:
        self.fill_color = to_rgb(color)

    def set_line_width(self, width: float) -> None:
        self.line_width = float(width)

    # -- transform ---------------------------------------------------------

    def get_transform(self) -> np.ndarray:
        return self._transform.copy()

    def set_transform(self, matrix: np.ndarray) -> None:
        self._transform = np.array(matrix, dtype=np.float64, copy=True)

    def reset_transform(self) -> None:
        self._transform = np.identity(3, dtype=np.float64)

    def translate(self, tx: float, ty: float) -> None:
        self._transform = self._transform @ translation(tx, ty)

    def rotate(self, angle: float) -> None:
        self._transform = self._transform @ rotation(angle)

    def scale(self, sx: float, sy: float) -> None:
        self._transform = self._transform @ scaling(sx, sy)

    def save(self) -> None:
        self._saved.append((self._transform.copy(), self.stroke_color, self.fill_color, self.line_width))

    def restore(self) -> None:
        if not self._saved:
            return
        self._transform, self.stroke_color, self.fill_color, self.line_width = self._saved.pop()

    def to_device(self, x: float, y: float) -> Point:
        m = self._transform
        return (
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    # -- paths -------------------------------------------------------------

    def begin_path(self) -> None:
        self._subpaths = []

    def move_to(self, x: float, y: float) -> None:
        self._subpaths.append([self.to_device(x, y)])

    def line_to(self, x: float, y: float) -> None:
        if not self._subpaths:
            self._subpaths.append([self.to_device(x, y)])
            return
        self._subpaths[-1].append(self.to_device(x, y))

    def close_path(self) -> None:
        if self._subpaths and len(self._subpaths[-1]) > 1:
            current = self._subpaths[-1]
            current.append(current[0])

    def stroke(self) -> None:
        for points in self._subpaths:
            if len(points) >= 2:
                self._stroke_polyline(list(points), self.stroke_color, self.line_width)

    def fill(self) -> None:
        for points in self._subpaths:
            if len(points) >= 3:
                self._fill_polygon(list(points), self.fill_color)

    # -- subclass hooks ----------------------------------------------------

    def clear(self, color: Color | None = None) -> None:
        raise NotImplementedError

    def write_pixels(self, pixels: np.ndarray) -> None:
        raise NotImplementedError

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        raise NotImplementedError

    def blank_like(self) -> "Surface":
        raise NotImplementedError

    def copy_from(self, other: "Surface") -> None:
        raise NotImplementedError

    def _stroke_polyline(self, points: list[Point], color: tuple[int, int, int], width: float) -> None:
        raise NotImplementedError

    def _fill_polygon(self, points: list[Point], color: tuple[int, int, int]) -> None:
        raise NotImplementedError

    def _reset_state(self) -> None:
        self.reset_transform()
        self._saved = []
        self._subpaths = []

    def _check_pixels(self, pixels: np.ndarray) -> np.ndarray:
        pixels = np.asarray(pixels)
        if pixels.shape != (self.height, self.width, 3):
            raise PreconditionError(
                f"pixel array must have shape {(self.height, self.width, 3)}, got {pixels.shape}"
            )
        return np.ascontiguousarray(pixels, dtype=np.uint8)


class RasterSurface(Surface):
    """A Pillow RGB image behind the surface API."""

    def __init__(self, width: int, height: int, background: Color = DEFAULT_BACKGROUND) -> None:
        super().__init__(width, height)
        self.background = to_rgb(background)
        self.image = PIL.Image.new("RGB", (self.width, self.height), self.background)
        self._draw = PIL.ImageDraw.Draw(self.image)

    def clear(self, color: Color | None = None) -> None:
        fill = self.background if color is None else to_rgb(color)
        self._draw.rectangle([(0, 0), (self.width - 1, self.height - 1)], fill=fill)
        self._reset_state()

    def write_pixels(self, pixels: np.ndarray) -> None:
        self.image.paste(PIL.Image.fromarray(self._check_pixels(pixels), "RGB"))
        self._reset_state()

    def set_pixel(self, x: int, y: int, color: Color) -> None:
        self.image.putpixel((int(x), int(y)), to_rgb(color))

    def get_pixel(self, x: int, y: int) -> tuple[int, int, int]:
        return tuple(self.image.getpixel((int(x), int(y))))  # type: ignore[return-value]

    def to_array(self) -> np.ndarray:
        return np.array(self.image, dtype=np.uint8, copy=True)

    def blank_like(self) -> "RasterSurface":
        return RasterSurface(self.width, self.height, self.background)

    def copy_from(self, other: Surface) -> None:
        if not isinstance(other, RasterSurface) or other.size != self.size:
            raise PreconditionError("can only copy from a raster surface of the same size")
        self.image.paste(other.image)

    def _stroke_polyline(self, points: list[Point], color: tuple[int, int, int], width: float) -> None:
        self._draw.line(points, fill=color, width=max(1, int(round(width))), joint="curve")

    def _fill_polygon(self, points: list[Point], color: tuple[int, int, int]) -> None:
        self._draw.polygon(points, fill=color)
