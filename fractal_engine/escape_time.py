"""Escape-time rendering for the Mandelbrot and Julia families."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

import numpy as np
import tensorflow as tf
from matplotlib.colors import hsv_to_rgb

from .errors import PreconditionError, RenderCancelled
from .surface import Surface, to_rgb

logger = logging.getLogger(__name__)

ESCAPE_RADIUS_SQ = 4.0
DEFAULT_MAX_ITER = 100
INSIDE_COLOR = "#0a0a1a"
BAND_ROWS = 64


def iterate(zx0: float, zy0: float, c_re: float, c_im: float, max_iter: int) -> int:
    """Count iterations of ``z <- z**2 + c`` from ``(zx0, zy0)`` until ``|z|**2 >= 4``.

    Returns ``max_iter`` when the orbit stays bounded for the whole budget.
    """

    if max_iter < 0:
        raise PreconditionError(f"max_iter must be >= 0, got {max_iter}")

    zx = zx0
    zy = zy0
    for i in range(max_iter):
        if zx * zx + zy * zy >= ESCAPE_RADIUS_SQ:
            return i
        zx, zy = zx * zx - zy * zy + c_re, 2.0 * zx * zy + c_im
    return max_iter


@tf.function
def _escape_step(
    zx: tf.Tensor, zy: tf.Tensor, cx: tf.Tensor, cy: tf.Tensor, counts: tf.Tensor, active: tf.Tensor
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that has not escaped yet by one iteration."""

    zx_new = zx * zx - zy * zy + cx
    zy_new = 2.0 * zx * zy + cy
    zx = tf.where(active, zx_new, zx)
    zy = tf.where(active, zy_new, zy)
    counts = counts + tf.cast(active, tf.int32)
    radius_sq = tf.constant(ESCAPE_RADIUS_SQ, dtype=zx.dtype)
    active = tf.logical_and(active, zx * zx + zy * zy < radius_sq)
    return zx, zy, counts, active


@tf.function
def _escape_run(zx: tf.Tensor, zy: tf.Tensor, cx: tf.Tensor, cy: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the whole grid in a TensorFlow while loop; stops once every point escaped."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    counts = tf.zeros_like(zx, dtype=tf.int32)
    radius_sq = tf.constant(ESCAPE_RADIUS_SQ, dtype=zx.dtype)
    active = zx * zx + zy * zy < radius_sq

    def cond(i, zx, zy, counts, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, counts, active):
        zx, zy, counts, active = _escape_step(zx, zy, cx, cy, counts, active)
        return i + 1, zx, zy, counts, active

    _, _, _, counts, _ = tf.while_loop(cond, body, (i, zx, zy, counts, active))
    return counts


def escape_counts(
    zx: np.ndarray,
    zy: np.ndarray,
    cx: np.ndarray,
    cy: np.ndarray,
    max_iter: int,
    *,
    device: Optional[str] = None,
) -> np.ndarray:
    """Vectorized :func:`iterate` over equally shaped coordinate arrays."""

    if max_iter < 0:
        raise PreconditionError(f"max_iter must be >= 0, got {max_iter}")

    shape = np.shape(zx)
    with tf.device(device if device is not None else "/CPU:0"):
        zx_tf = tf.convert_to_tensor(np.asarray(zx, dtype=np.float64))
        zy_tf = tf.convert_to_tensor(np.asarray(zy, dtype=np.float64))
        cx_tf = tf.convert_to_tensor(np.broadcast_to(np.asarray(cx, dtype=np.float64), shape))
        cy_tf = tf.convert_to_tensor(np.broadcast_to(np.asarray(cy, dtype=np.float64), shape))
        counts = _escape_run(zx_tf, zy_tf, cx_tf, cy_tf, tf.constant(max_iter, dtype=tf.int32))
    return counts.numpy()


def mandelbrot_grid(width: int, height: int, zoom: float, pan_x: float, pan_y: float) -> tuple[np.ndarray, np.ndarray]:
    """Plane coordinates for every pixel; rows are y, columns are x."""

    xs = (np.arange(width, dtype=np.float64) - width / 2) / zoom - pan_x
    ys = (np.arange(height, dtype=np.float64) - height / 2) / zoom - pan_y
    return np.meshgrid(xs, ys)


def julia_grid(width: int, height: int, zoom: float) -> tuple[np.ndarray, np.ndarray]:
    xs = 1.5 * (np.arange(width, dtype=np.float64) - width / 2) / (0.5 * zoom * width)
    ys = (np.arange(height, dtype=np.float64) - height / 2) / (0.5 * zoom * height)
    return np.meshgrid(xs, ys)


def colorize_counts(counts: np.ndarray, max_iter: int, inside_color=INSIDE_COLOR) -> np.ndarray:
    """Map escape counts to RGB: hue from the count, a flat color for the sentinel."""

    counts = np.asarray(counts)
    inside = counts >= max_iter
    hue = np.where(inside, 0.0, counts / float(max(max_iter, 1)))
    hsv = np.stack((hue, np.ones_like(hue), np.ones_like(hue)), axis=-1)
    rgb = np.uint8(np.clip(np.round(hsv_to_rgb(hsv) * 255), 0, 255))
    rgb[inside] = to_rgb(inside_color)
    return rgb


def render_escape_time(
    surface: Surface,
    zoom: float,
    pan_x: float = 0.0,
    pan_y: float = 0.0,
    *,
    julia_c: Optional[tuple[float, float]] = None,
    max_iter: int = DEFAULT_MAX_ITER,
    device: Optional[str] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> np.ndarray:
    """Render Mandelbrot (``julia_c`` is None) or Julia into ``surface``.

    The grid is iterated in bands of rows so a superseded render can stop
    between bands; the surface is written once, after the last band.
    Returns the escape counts.
    """

    if not zoom > 0:
        raise PreconditionError(f"zoom must be > 0, got {zoom!r}")
    if max_iter < 1:
        raise PreconditionError(f"max_iter must be >= 1, got {max_iter}")

    width, height = surface.width, surface.height
    if julia_c is None:
        zx, zy = mandelbrot_grid(width, height, zoom, pan_x, pan_y)
        cx, cy = zx, zy
    else:
        zx, zy = julia_grid(width, height, zoom)
        cx = np.full_like(zx, float(julia_c[0]))
        cy = np.full_like(zy, float(julia_c[1]))

    started = time.perf_counter()
    counts = np.empty((height, width), dtype=np.int32)
    for top in range(0, height, BAND_ROWS):
        if should_cancel is not None and should_cancel():
            raise RenderCancelled("escape-time render superseded")
        bottom = min(top + BAND_ROWS, height)
        # Every band has BAND_ROWS rows so _escape_run is traced once per width.
        pad = ((0, BAND_ROWS - (bottom - top)), (0, 0))
        band = [np.pad(grid[top:bottom], pad, mode="edge") for grid in (zx, zy, cx, cy)]
        counts[top:bottom] = escape_counts(*band, max_iter, device=device)[: bottom - top]

    surface.write_pixels(colorize_counts(counts, max_iter))
    logger.debug(
        "%s %dx%d max_iter=%d rendered in %.3fs",
        "julia" if julia_c is not None else "mandelbrot",
        width,
        height,
        max_iter,
        time.perf_counter() - started,
    )
    return counts


def render_mandelbrot(surface: Surface, zoom: float, pan_x: float, pan_y: float, **kwargs) -> np.ndarray:
    return render_escape_time(surface, zoom, pan_x, pan_y, **kwargs)


def render_julia(surface: Surface, c_re: float, c_im: float, zoom: float, **kwargs) -> np.ndarray:
    return render_escape_time(surface, zoom, julia_c=(c_re, c_im), **kwargs)
