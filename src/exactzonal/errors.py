"""Exception hierarchy shared by the core and the pipeline."""

from __future__ import annotations


class ExactZonalError(Exception):
    """Base class for every error raised by exactzonal."""


# ---------------------------------------------------------------------------
# Programming errors: raised immediately on misuse of the core types
# ---------------------------------------------------------------------------

class InvalidResolutionError(ExactZonalError, ValueError):
    pass


class OutOfRangeError(ExactZonalError, IndexError):
    pass


class IncompatibleResolutionError(ExactZonalError, ValueError):
    pass


class ValueTrackingError(ExactZonalError, RuntimeError):
    """A value-derived statistic was requested without ``store_values=True``."""


# ---------------------------------------------------------------------------
# Preconditions: checked before any polygon is processed
# ---------------------------------------------------------------------------

class PreconditionError(ExactZonalError):
    """Fatal input problem detected before processing starts."""


class IncompatibleGridError(PreconditionError, ValueError):
    pass


class UnknownStatError(PreconditionError, KeyError):
    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class BadInputError(PreconditionError):
    pass
