"""Random selection of a fractal family and parameters that render well."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Any

import numpy as np

from .state import JULIA_CONSTANTS, Family, FractalState

logger = logging.getLogger(__name__)

FAMILIES: tuple[Family, ...] = tuple(Family)

MANDELBROT_ZOOM_RANGE = (200.0, 1000.0)
MANDELBROT_PAN_RANGE = (-2.0, 2.0)
JULIA_ZOOM_RANGE = (1.5, 3.5)
LSYSTEM_ITERATION_RANGE = (4, 7)
LSYSTEM_ANGLE_RANGE = (math.pi / 12, math.pi / 3)
SIERPINSKI_DEPTH_RANGE = (5, 9)
KOCH_DEPTH_RANGE = (3, 6)
KOCH_ANGLE_RANGE = (math.pi / 6, math.pi / 3)


def _uniform(rng: np.random.Generator, bounds: tuple[float, float]) -> float:
    return float(rng.uniform(*bounds))


def _integer(rng: np.random.Generator, bounds: tuple[int, int]) -> int:
    return int(rng.integers(*bounds))


def random_parameters(family: Family, rng: np.random.Generator) -> dict[str, Any]:
    """Fresh values for ``family``'s own fields only.

    Upper bounds are exclusive.
    """

    if family is Family.MANDELBROT:
        return {
            "mandelbrot_zoom": _uniform(rng, MANDELBROT_ZOOM_RANGE),
            "mandelbrot_pan_x": _uniform(rng, MANDELBROT_PAN_RANGE),
            "mandelbrot_pan_y": _uniform(rng, MANDELBROT_PAN_RANGE),
        }
    if family is Family.JULIA:
        c_re, c_im = JULIA_CONSTANTS[_integer(rng, (0, len(JULIA_CONSTANTS)))]
        return {
            "julia_c_re": c_re,
            "julia_c_im": c_im,
            "julia_zoom": _uniform(rng, JULIA_ZOOM_RANGE),
        }
    if family is Family.LSYSTEM:
        return {
            "lsystem_iterations": _integer(rng, LSYSTEM_ITERATION_RANGE),
            "lsystem_angle": _uniform(rng, LSYSTEM_ANGLE_RANGE),
        }
    if family is Family.SIERPINSKI:
        return {"sierpinski_depth": _integer(rng, SIERPINSKI_DEPTH_RANGE)}
    if family is Family.KOCH:
        return {
            "koch_depth": _integer(rng, KOCH_DEPTH_RANGE),
            "koch_angle": _uniform(rng, KOCH_ANGLE_RANGE),
        }
    raise ValueError(f"unhandled fractal family {family!r}")


def randomize(current: FractalState, rng: np.random.Generator) -> FractalState:
    """Return a copy of ``current`` with a new family, seed, hue and that family's parameters."""

    family = FAMILIES[_integer(rng, (0, len(FAMILIES)))]
    params = random_parameters(family, rng)
    new_state = replace(
        current,
        family=family,
        seed=float(rng.random()),
        base_hue=_uniform(rng, (0.0, 360.0)),
        **params,
    )
    logger.debug("randomized to %s with %s", family.value, params)
    return new_state
