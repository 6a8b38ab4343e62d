"""Program model: operation descriptors and the Program container."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union

from anyonic.core.anyons import AnyonType
from anyonic.core.operations import FMoveDirection


# ---------------------------------------------------------------------------
# Operation descriptors
# ---------------------------------------------------------------------------

class OpKind(Enum):
    INITIALIZE = auto()
    BRAID = auto()
    MEASURE = auto()
    FMOVE = auto()
    GATE = auto()
    COMMENT = auto()


class Heading(Enum):
    """F-move heading as written in program text."""

    LEFT = "Left"
    RIGHT = "Right"
    UP = "Up"
    DOWN = "Down"

    @property
    def direction(self) -> FMoveDirection:
        if self in (Heading.LEFT, Heading.UP):
            return FMoveDirection.LEFT_TO_RIGHT
        return FMoveDirection.RIGHT_TO_LEFT


# name -> number of qubit operands
GATE_ARITY: dict[str, int] = {
    "I": 1, "H": 1, "X": 1, "Y": 1, "Z": 1,
    "S": 1, "SDG": 1, "T": 1, "TDG": 1,
    "RX": 1, "RY": 1, "RZ": 1, "PHASE": 1,
    "CNOT": 2, "CZ": 2,
}
PARAMETRIC_GATES = frozenset({"RX", "RY", "RZ", "PHASE"})
CLIFFORD_GATES = frozenset({"I", "H", "X", "Y", "Z", "S", "SDG", "CNOT", "CZ"})


@dataclass(frozen=True)
class Initialize:
    kind: OpKind = field(default=OpKind.INITIALIZE, init=False)
    qubits: int


@dataclass(frozen=True)
class Braid:
    kind: OpKind = field(default=OpKind.BRAID, init=False)
    index: int
    clockwise: bool = True


@dataclass(frozen=True)
class Measure:
    kind: OpKind = field(default=OpKind.MEASURE, init=False)
    index: int


@dataclass(frozen=True)
class FMove:
    kind: OpKind = field(default=OpKind.FMOVE, init=False)
    heading: Heading
    depth: int = 0

    @property
    def direction(self) -> FMoveDirection:
        return self.heading.direction


@dataclass(frozen=True)
class Gate:
    """A circuit gate on logical qubits; compiled to braids by a backend."""

    kind: OpKind = field(default=OpKind.GATE, init=False)
    name: str
    qubits: tuple[int, ...]
    angle: float | None = None

    @property
    def is_clifford(self) -> bool:
        return self.name in CLIFFORD_GATES


@dataclass(frozen=True)
class Comment:
    kind: OpKind = field(default=OpKind.COMMENT, init=False)
    text: str


Operation = Union[Initialize, Braid, Measure, FMove, Gate, Comment]


# ---------------------------------------------------------------------------
# Program
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Program:
    """An anyon type plus an ordered list of operations."""

    anyon_type: AnyonType
    operations: tuple[Operation, ...] = ()

    @property
    def instructions(self) -> tuple[Operation, ...]:
        """Operations without comments."""
        return tuple(op for op in self.operations if op.kind is not OpKind.COMMENT)

    @property
    def initial_qubits(self) -> int | None:
        for op in self.operations:
            if op.kind is OpKind.INITIALIZE:
                return op.qubits
        return None
