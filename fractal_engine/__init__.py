"""Public API for the fractal rendering engine."""

from .engine import FractalEngine, pan, render, zoom
from .errors import FractalError, PreconditionError, RenderCancelled, StackUnderflowError
from .escape_time import colorize_counts, escape_counts, iterate, render_escape_time
from .lsystem import branching_rules, check_brackets, expand, interpret
from .palette import HSLColor, palette
from .randomizer import randomize
from .recording import RecordingSurface
from .state import JULIA_CONSTANTS, Family, FractalState
from .subdivision import subdivide_edge, subdivide_triangle
from .surface import RasterSurface, Surface
from .worker import BackgroundRenderer

__all__ = [
    "BackgroundRenderer",
    "Family",
    "FractalEngine",
    "FractalError",
    "FractalState",
    "HSLColor",
    "JULIA_CONSTANTS",
    "PreconditionError",
    "RasterSurface",
    "RecordingSurface",
    "RenderCancelled",
    "StackUnderflowError",
    "Surface",
    "branching_rules",
    "check_brackets",
    "colorize_counts",
    "escape_counts",
    "expand",
    "interpret",
    "iterate",
    "palette",
    "pan",
    "randomize",
    "render",
    "render_escape_time",
    "subdivide_edge",
    "subdivide_triangle",
    "zoom",
]
