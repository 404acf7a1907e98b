"""L-system grammar expansion and the turtle that draws it."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import numpy as np

from .errors import PreconditionError, RenderCancelled, StackUnderflowError
from .palette import PALETTE_SIZE, palette
from .state import MAX_LSYSTEM_ITERATIONS
from .surface import Surface

logger = logging.getLogger(__name__)

AXIOM = "F"
BRANCH_SHRINK = 0.75
JITTER_LOW = 0.9
JITTER_SPAN = 0.2
INSTANCES = 3
LINE_WIDTH = 2

_DENSE_RULE = "F[+F]F[-F]F"
_FORKED_RULE = "F[+F][-F]"


def branching_rules(seed: float) -> dict[str, str]:
    """Pick the rule set once per render from the state seed."""

    return {"F": _FORKED_RULE if seed > 0.5 else _DENSE_RULE}


def expand(axiom: str, rules: Mapping[str, str], iterations: int) -> str:
    """Rewrite ``axiom`` ``iterations`` times; unknown symbols are copied."""

    if iterations < 0:
        raise PreconditionError(f"iterations must be >= 0, got {iterations}")

    sentence = axiom
    for _ in range(iterations):
        sentence = "".join(rules.get(ch, ch) for ch in sentence)
    return sentence


def check_brackets(instructions: str) -> None:
    """Raise before drawing if the branches in ``instructions`` do not nest."""

    depth = 0
    for index, ch in enumerate(instructions):
        if ch == "[":
            depth += 1
        elif ch == "]":
            if depth == 0:
                raise StackUnderflowError(f"unmatched ']' at position {index}")
            depth -= 1
    if depth:
        raise StackUnderflowError(f"{depth} unclosed '[' in instruction string")


@dataclass(frozen=True)
class TurtleFrame:
    transform: np.ndarray
    length: float


def interpret(
    instructions: str,
    context: Surface,
    start_length: float,
    turn_angle: float,
    rng: np.random.Generator,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> int:
    """Walk ``instructions`` on ``context`` starting from its current transform.

    ``F`` draws ``length * jitter`` along +y and advances by ``length``;
    ``+``/``-`` rotate, ``[`` saves the transform and shrinks the length,
    ``]`` restores both.  Segments are added to the current path; the caller
    strokes it.  Returns the number of segments drawn.
    """

    check_brackets(instructions)

    stack: list[TurtleFrame] = []
    length = float(start_length)
    segments = 0
    for ch in instructions:
        if ch == "F":
            context.move_to(0.0, 0.0)
            context.line_to(0.0, length * (JITTER_LOW + rng.random() * JITTER_SPAN))
            context.translate(0.0, length)
            segments += 1
            if should_cancel is not None and segments % 1024 == 0 and should_cancel():
                raise RenderCancelled("l-system render superseded")
        elif ch == "+":
            context.rotate(turn_angle)
        elif ch == "-":
            context.rotate(-turn_angle)
        elif ch == "[":
            stack.append(TurtleFrame(context.get_transform(), length))
            length *= BRANCH_SHRINK
        elif ch == "]":
            if not stack:
                raise StackUnderflowError("']' with no saved branch")
            frame = stack.pop()
            context.set_transform(frame.transform)
            length = frame.length
    return segments


def render_lsystem(
    surface: Surface,
    iterations: int,
    angle: float,
    seed: float,
    base_hue: float,
    rng: np.random.Generator,
    *,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> str:
    """Draw three rotated copies of the expanded plant around the surface center."""

    if iterations < 0:
        raise PreconditionError(f"iterations must be >= 0, got {iterations}")
    if iterations > MAX_LSYSTEM_ITERATIONS:
        raise PreconditionError(f"iterations must be <= {MAX_LSYSTEM_ITERATIONS}, got {iterations}")

    sentence = expand(AXIOM, branching_rules(seed), iterations)
    check_brackets(sentence)
    colors = palette(base_hue)
    width, height = surface.width, surface.height
    length = height / 4

    surface.clear()
    for i in range(INSTANCES):
        surface.save()
        surface.translate(width / 2, height / 2)
        surface.rotate(i * 2 * math.pi / INSTANCES)
        surface.translate(0.0, -height / 4)
        surface.scale(1.0, -1.0)
        surface.begin_path()
        surface.set_stroke_color(colors[i % PALETTE_SIZE])
        surface.set_line_width(LINE_WIDTH)
        interpret(sentence, surface, length, angle, rng, should_cancel=should_cancel)
        surface.stroke()
        surface.restore()

    logger.debug("l-system: %d symbols, %d instances", len(sentence), INSTANCES)
    return sentence
