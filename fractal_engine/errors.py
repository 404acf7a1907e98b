"""Exceptions raised by the fractal engine."""


class FractalError(Exception):
    """Base class for every engine error."""


class PreconditionError(FractalError, ValueError):
    """A render or state update was requested with invalid arguments.

    Raised before any pixel is touched, so the target surface keeps its
    previous contents.
    """


class StackUnderflowError(FractalError):
    """An instruction string closes a branch that was never opened."""


class RenderCancelled(FractalError):
    """A background render was superseded by a newer request."""
