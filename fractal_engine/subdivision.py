"""Recursive subdivision generators: Sierpinski triangle and Koch snowflake."""

from __future__ import annotations

import logging
import math
from typing import Callable, Optional, Sequence

import numpy as np

from .errors import PreconditionError, RenderCancelled
from .palette import HSLColor, PALETTE_SIZE, palette
from .surface import Point, Surface

logger = logging.getLogger(__name__)

SIERPINSKI_SCALE = 0.8
KOCH_SCALE = 0.7
KOCH_LINE_WIDTH = 2
SIZE_JITTER_LOW = 0.9
SIZE_JITTER_SPAN = 0.2
_EPSILON = 1e-12


def _midpoint(a: Point, b: Point) -> Point:
    return (a[0] + b[0]) / 2, (a[1] + b[1]) / 2


def _triangle_area2(p1: Point, p2: Point, p3: Point) -> float:
    return abs((p2[0] - p1[0]) * (p3[1] - p1[1]) - (p3[0] - p1[0]) * (p2[1] - p1[1]))


def subdivide_triangle(
    surface: Surface,
    p1: Point,
    p2: Point,
    p3: Point,
    depth: int,
    colors: Sequence[HSLColor],
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    """Fill the 3**depth corner triangles of ``(p1, p2, p3)``; returns how many were filled.

    Leaves pick ``colors[depth % 5]`` with the leaf's own depth, which is
    always 0, so every leaf gets the first palette entry.  Zero-area leaves
    are skipped.
    """

    if depth < 0:
        raise PreconditionError(f"depth must be >= 0, got {depth}")

    filled = 0
    pending: list[tuple[Point, Point, Point, int]] = [(p1, p2, p3, depth)]
    while pending:
        a, b, c, level = pending.pop()
        if level == 0:
            if _triangle_area2(a, b, c) <= _EPSILON:
                continue
            surface.begin_path()
            surface.move_to(*a)
            surface.line_to(*b)
            surface.line_to(*c)
            surface.close_path()
            surface.set_fill_color(colors[level % PALETTE_SIZE])
            surface.fill()
            filled += 1
            if should_cancel is not None and filled % 1024 == 0 and should_cancel():
                raise RenderCancelled("sierpinski render superseded")
            continue

        ab = _midpoint(a, b)
        bc = _midpoint(b, c)
        ac = _midpoint(a, c)
        # Reversed so the pops come out in corner order a, b, c.
        pending.append((ac, bc, c, level - 1))
        pending.append((ab, b, bc, level - 1))
        pending.append((a, ab, ac, level - 1))
    return filled


def koch_spike(p1: Point, p2: Point, spike_angle: float) -> tuple[Point, Point, Point]:
    """Return the trisection points and the spike tip for segment ``p1 -> p2``."""

    dx = (p2[0] - p1[0]) / 3
    dy = (p2[1] - p1[1]) / 3
    p3 = (p1[0] + dx, p1[1] + dy)
    p5 = (p1[0] + 2 * dx, p1[1] + 2 * dy)
    angle = math.atan2(p5[1] - p3[1], p5[0] - p3[0]) - spike_angle
    length = math.hypot(dx, dy)
    p4 = (p3[0] + math.cos(angle) * length, p3[1] + math.sin(angle) * length)
    return p3, p4, p5


def subdivide_edge(
    surface: Surface,
    p1: Point,
    p2: Point,
    depth: int,
    spike_angle: float,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    """Stroke the 4**depth Koch segments replacing ``p1 -> p2``, in path order.

    Zero-length segments are dropped.  Returns the number of strokes made.
    """

    if depth < 0:
        raise PreconditionError(f"depth must be >= 0, got {depth}")

    stroked = 0
    pending: list[tuple[Point, Point, int]] = [(p1, p2, depth)]
    while pending:
        a, b, level = pending.pop()
        if level == 0:
            if math.hypot(b[0] - a[0], b[1] - a[1]) <= _EPSILON:
                continue
            surface.begin_path()
            surface.move_to(*a)
            surface.line_to(*b)
            surface.stroke()
            stroked += 1
            if should_cancel is not None and stroked % 1024 == 0 and should_cancel():
                raise RenderCancelled("koch render superseded")
            continue

        p3, p4, p5 = koch_spike(a, b, spike_angle)
        pending.append((p5, b, level - 1))
        pending.append((p4, p5, level - 1))
        pending.append((p3, p4, level - 1))
        pending.append((a, p3, level - 1))
    return stroked


def render_sierpinski(
    surface: Surface,
    depth: int,
    base_hue: float,
    rng: np.random.Generator,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    if depth < 0:
        raise PreconditionError(f"depth must be >= 0, got {depth}")

    width, height = surface.width, surface.height
    size = SIERPINSKI_SCALE * min(width, height) * (SIZE_JITTER_LOW + rng.random() * SIZE_JITTER_SPAN)
    tri_height = size * math.sqrt(3) / 2
    cx, cy = width / 2, height / 2

    surface.clear()
    filled = subdivide_triangle(
        surface,
        (cx - size / 2, cy - tri_height / 2),
        (cx + size / 2, cy - tri_height / 2),
        (cx, cy + tri_height / 2),
        depth,
        palette(base_hue),
        should_cancel=should_cancel,
    )
    logger.debug("sierpinski: depth=%d, %d triangles", depth, filled)
    return filled


def render_koch(
    surface: Surface,
    depth: int,
    spike_angle: float,
    base_hue: float,
    rng: np.random.Generator,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    """Draw a closed Koch boundary over an equilateral triangle."""

    if depth < 0:
        raise PreconditionError(f"depth must be >= 0, got {depth}")

    width, height = surface.width, surface.height
    size = KOCH_SCALE * min(width, height)
    tri_height = size * math.sqrt(3) / 2
    start_x = (width - size) / 2
    start_y = (height + tri_height / 3) / 2
    corners = [
        (start_x, start_y),
        (start_x + size, start_y),
        (start_x + size / 2, start_y - tri_height),
    ]

    surface.clear()
    surface.set_stroke_color(palette(base_hue)[int(rng.integers(PALETTE_SIZE))])
    surface.set_line_width(KOCH_LINE_WIDTH)
    stroked = 0
    for i in range(3):
        stroked += subdivide_edge(
            surface, corners[i], corners[(i + 1) % 3], depth, spike_angle, should_cancel=should_cancel
        )
    logger.debug("koch: depth=%d, %d segments", depth, stroked)
    return stroked
