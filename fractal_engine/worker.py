"""Off-thread rendering where the newest request supersedes older ones."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

import numpy as np

from .engine import RandomSource, make_rng, render
from .errors import RenderCancelled
from .escape_time import DEFAULT_MAX_ITER
from .state import FractalState
from .surface import Surface

logger = logging.getLogger(__name__)


class BackgroundRenderer:
    """Render on a single worker thread into an off-screen copy of the target.

    Each :meth:`submit` bumps a generation number.  An in-flight render polls
    it and stops as soon as a newer request exists, so work never queues up
    behind stale state.  The target surface is only written, in one
    ``copy_from`` under :attr:`lock`, by a render that finished while still
    current; readers holding :attr:`lock` never see a half-drawn frame.
    """

    def __init__(
        self,
        rng: RandomSource = None,
        *,
        max_iter: int = DEFAULT_MAX_ITER,
        device: Optional[str] = None,
    ) -> None:
        self._rng = make_rng(rng)
        self.max_iter = max_iter
        self.device = device
        self.lock = threading.Lock()
        self._generation = 0
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fractal-render")

    def __enter__(self) -> "BackgroundRenderer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def generation(self) -> int:
        return self._generation

    def submit(self, state: FractalState, surface: Surface) -> "Future[bool]":
        """Schedule a render of ``state`` into ``surface``.

        The future resolves to True when the frame was committed and False
        when a newer submission superseded it.  Engine errors are raised
        from ``Future.result()``.
        """

        with self.lock:
            self._generation += 1
            generation = self._generation
        seed = int(self._rng.integers(0, np.iinfo(np.int64).max))
        return self._executor.submit(self._run, generation, state, surface, np.random.default_rng(seed))

    def close(self, wait: bool = True) -> None:
        with self.lock:
            self._generation += 1
        self._executor.shutdown(wait=wait)

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation

    def _run(self, generation: int, state: FractalState, surface: Surface, rng: np.random.Generator) -> bool:
        if self._is_stale(generation):
            logger.debug("skipping superseded render #%d", generation)
            return False

        scratch = surface.blank_like()
        try:
            render(
                state,
                scratch,
                rng,
                max_iter=self.max_iter,
                device=self.device,
                should_cancel=lambda: self._is_stale(generation),
            )
        except RenderCancelled:
            logger.debug("render #%d cancelled", generation)
            return False

        with self.lock:
            if self._is_stale(generation):
                logger.debug("render #%d finished after being superseded", generation)
                return False
            surface.copy_from(scratch)
        logger.debug("render #%d committed", generation)
        return True
