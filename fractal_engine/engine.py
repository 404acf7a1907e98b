"""Engine facade: owns the current state and dispatches renders by family."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Optional, Union

import numpy as np

from .errors import PreconditionError
from .escape_time import DEFAULT_MAX_ITER, render_julia, render_mandelbrot
from .lsystem import render_lsystem
from .randomizer import randomize
from .state import Family, FractalState, validate_state
from .subdivision import render_koch, render_sierpinski
from .surface import Surface, check_dimensions

logger = logging.getLogger(__name__)

PAN_SCALE = 0.01

RandomSource = Union[np.random.Generator, int, None]


def make_rng(source: RandomSource = None) -> np.random.Generator:
    if isinstance(source, np.random.Generator):
        return source
    return np.random.default_rng(source)


def render(
    state: FractalState,
    surface: Surface,
    rng: RandomSource = None,
    *,
    max_iter: int = DEFAULT_MAX_ITER,
    device: Optional[str] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> None:
    """Fully redraw ``surface`` with the family selected by ``state``.

    Everything is validated before the surface is touched.
    """

    check_dimensions(surface.width, surface.height)
    validate_state(state)
    if max_iter < 1:
        raise PreconditionError(f"max_iter must be >= 1, got {max_iter}")
    rng = make_rng(rng)

    family = state.family
    logger.debug("rendering %s on %dx%d surface", family.value, surface.width, surface.height)
    if family is Family.MANDELBROT:
        render_mandelbrot(
            surface,
            state.mandelbrot_zoom,
            state.mandelbrot_pan_x,
            state.mandelbrot_pan_y,
            max_iter=max_iter,
            device=device,
            should_cancel=should_cancel,
        )
    elif family is Family.JULIA:
        render_julia(
            surface,
            state.julia_c_re,
            state.julia_c_im,
            state.julia_zoom,
            max_iter=max_iter,
            device=device,
            should_cancel=should_cancel,
        )
    elif family is Family.LSYSTEM:
        render_lsystem(
            surface,
            state.lsystem_iterations,
            state.lsystem_angle,
            state.seed,
            state.base_hue,
            rng,
            should_cancel=should_cancel,
        )
    elif family is Family.SIERPINSKI:
        render_sierpinski(surface, state.sierpinski_depth, state.base_hue, rng, should_cancel=should_cancel)
    elif family is Family.KOCH:
        render_koch(surface, state.koch_depth, state.koch_angle, state.base_hue, rng, should_cancel=should_cancel)
    else:
        raise PreconditionError(f"unhandled fractal family {family!r}")


def pan(state: FractalState, delta_x: float, delta_y: float) -> FractalState:
    """Shift the Mandelbrot view by scaled deltas; other families are returned unchanged."""

    if state.family is not Family.MANDELBROT:
        return state
    return replace(
        state,
        mandelbrot_pan_x=state.mandelbrot_pan_x + delta_x * PAN_SCALE,
        mandelbrot_pan_y=state.mandelbrot_pan_y + delta_y * PAN_SCALE,
    )


def zoom(state: FractalState, factor: float) -> FractalState:
    """Multiply the active escape-time family's zoom by ``factor``."""

    if not factor > 0:
        raise PreconditionError(f"zoom factor must be > 0, got {factor!r}")
    if state.family is Family.MANDELBROT:
        return replace(state, mandelbrot_zoom=state.mandelbrot_zoom * factor)
    if state.family is Family.JULIA:
        return replace(state, julia_zoom=state.julia_zoom * factor)
    return state


class FractalEngine:
    """Holds the single current :class:`FractalState` and renders it on request.

    The state starts out randomized.  All randomness (family choice, jitter)
    is drawn from one generator so a seeded engine is reproducible.
    """

    def __init__(
        self,
        rng: RandomSource = None,
        *,
        state: Optional[FractalState] = None,
        max_iter: int = DEFAULT_MAX_ITER,
        device: Optional[str] = None,
    ) -> None:
        self.rng = make_rng(rng)
        self.max_iter = max_iter
        self.device = device
        self.state = state if state is not None else randomize(FractalState(), self.rng)
        logger.debug("engine started with %s", self.state.family.value)

    def render(self, surface: Surface, *, should_cancel: Optional[Callable[[], bool]] = None) -> None:
        render(
            self.state,
            surface,
            self.rng,
            max_iter=self.max_iter,
            device=self.device,
            should_cancel=should_cancel,
        )

    def randomize(self) -> FractalState:
        self.state = randomize(self.state, self.rng)
        return self.state

    def pan(self, delta_x: float, delta_y: float) -> FractalState:
        self.state = pan(self.state, delta_x, delta_y)
        return self.state

    def zoom(self, factor: float) -> FractalState:
        self.state = zoom(self.state, factor)
        return self.state

    def select(self, family: Family) -> FractalState:
        """Switch the active family, keeping every stored parameter."""

        self.state = replace(self.state, family=Family(family))
        return self.state
