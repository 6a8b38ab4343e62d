"""Exception hierarchy for the anyon simulation core.

Every expected failure mode raises a subclass of ``TopologicalError`` so
callers can catch the whole family at once or one kind at a time.
"""

from __future__ import annotations

from typing import Any


class TopologicalError(Exception):
    """Base exception for all anyonic errors."""


class UnsupportedAnyonType(TopologicalError):
    """The requested anyon theory is not in the catalogue."""


class InvalidFusionTree(TopologicalError):
    """A fusion tree node violates the theory's fusion rules."""

    def __init__(self, message: str, node: Any = None):
        self.node = node
        super().__init__(message)


class IndexOutOfRange(TopologicalError):
    """An anyon, qubit or tree-depth index lies outside the valid range."""


class UnsupportedOperation(TopologicalError):
    """The operation cannot be carried out on this state or backend."""


class CompilationError(UnsupportedOperation):
    """A gate could not be compiled to braids within the requested tolerance."""


class UnsupportedAnyonConfiguration(TopologicalError):
    """No data (F-symbols, encodings, ...) exists for the given particles."""


class CapacityExceeded(TopologicalError):
    """An allocation asks for more anyons than the backend provides."""

    def __init__(self, requested: int, capacity: int):
        self.requested = requested
        self.capacity = capacity
        super().__init__(
            f"requested {requested} anyons but the backend holds at most {capacity}"
        )


class ParseError(TopologicalError):
    """Raised when program text cannot be parsed."""

    def __init__(self, message: str, line_num: int | None = None):
        self.line_num = line_num
        prefix = f"line {line_num}: " if line_num is not None else ""
        super().__init__(f"{prefix}{message}")


class IncompatibleTerms(TopologicalError):
    """Superposition terms disagree on leaf sequence or anyon type."""


class InsufficientInput(TopologicalError):
    """Fewer input resources were supplied than the protocol consumes."""

    def __init__(self, required: int, supplied: int, what: str = "states"):
        self.required = required
        self.supplied = supplied
        super().__init__(f"need at least {required} {what}, got {supplied}")


class NumericalInstability(TopologicalError):
    """A consistency check failed beyond the configured tolerance."""

    def __init__(self, check: str, deviation: float, tolerance: float):
        self.check = check
        self.deviation = deviation
        self.tolerance = tolerance
        super().__init__(
            f"{check} check failed: deviation {deviation:.3e} exceeds tolerance {tolerance:.1e}"
        )
