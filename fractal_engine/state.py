"""Fractal state shared by the generators, the randomizer and the engine."""

from __future__ import annotations

import enum
import math
import numbers
from dataclasses import dataclass

from .errors import PreconditionError

MAX_LSYSTEM_ITERATIONS = 7


class Family(enum.Enum):
    MANDELBROT = "mandelbrot"
    JULIA = "julia"
    LSYSTEM = "lsystem"
    SIERPINSKI = "sierpinski"
    KOCH = "koch"


# Constants whose Julia sets are connected or nearly so and render with visible structure.
JULIA_CONSTANTS: tuple[tuple[float, float], ...] = (
    (-0.7, 0.27015),
    (0.285, 0.01),
    (-0.4, 0.6),
    (-0.8, 0.156),
    (0.0, 1.0),
)


@dataclass(frozen=True)
class FractalState:
    """Parameters for every family; only ``family`` decides which are used.

    Parameters of inactive families are carried along untouched so switching
    back to a family resumes where it left off.
    """

    family: Family = Family.MANDELBROT
    seed: float = 0.0
    base_hue: float = 0.0

    mandelbrot_zoom: float = 300.0
    mandelbrot_pan_x: float = 2.0
    mandelbrot_pan_y: float = 1.5

    julia_c_re: float = -0.7
    julia_c_im: float = 0.27015
    julia_zoom: float = 2.5

    lsystem_iterations: int = 4
    lsystem_angle: float = math.pi / 6

    sierpinski_depth: int = 5

    koch_depth: int = 3
    koch_angle: float = math.pi / 3


def validate_state(state: FractalState) -> None:
    """Reject parameter values no generator can render.

    Only the active family's parameters are checked; inactive ones may hold
    anything the caller left there.
    """

    if not isinstance(state.family, Family):
        raise PreconditionError(f"unknown fractal family {state.family!r}")

    family = state.family
    if family is Family.MANDELBROT:
        _require_positive(state.mandelbrot_zoom, "mandelbrot_zoom")
    elif family is Family.JULIA:
        _require_positive(state.julia_zoom, "julia_zoom")
    elif family is Family.LSYSTEM:
        _require_count(state.lsystem_iterations, "lsystem_iterations")
        if state.lsystem_iterations > MAX_LSYSTEM_ITERATIONS:
            raise PreconditionError(
                f"lsystem_iterations must be <= {MAX_LSYSTEM_ITERATIONS}, got {state.lsystem_iterations}"
            )
    elif family is Family.SIERPINSKI:
        _require_count(state.sierpinski_depth, "sierpinski_depth")
    elif family is Family.KOCH:
        _require_count(state.koch_depth, "koch_depth")


def _require_positive(value: float, name: str) -> None:
    if not value > 0:
        raise PreconditionError(f"{name} must be > 0, got {value!r}")


def _require_count(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise PreconditionError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise PreconditionError(f"{name} must be >= 0, got {value}")
