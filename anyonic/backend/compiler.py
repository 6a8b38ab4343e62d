"""Compile circuit gates into steps a topological backend can execute.

  Ising      S, S^dagger, Z and RZ/PHASE by multiples of pi/2 -> exchanges of
             the qubit's own pair; H, X, Y, CNOT, CZ -> Clifford steps;
             T, T^dagger -> magic-state injection; other rotations ->
             Solovay-Kitaev words over {H, S, S^dagger, T, T^dagger}
  Fibonacci  any single-qubit gate -> Solovay-Kitaev braid word
  SU(2)_k    no gate compilation

Compiled steps are simplified: adjacent inverse pairs cancel and T.T
merges into one exchange. ``braids_to_gates`` maps pair exchanges back
to the phase gates they implement.
"""

from __future__ import annotations

import cmath
import logging
import math
from dataclasses import dataclass, field, replace
from typing import Sequence, Union

import numpy as np

from anyonic.backend.solovay_kitaev import Word, approximate, clifford_t_gate_set, distance, fibonacci_gate_set
from anyonic.core.anyons import AnyonKind, AnyonType
from anyonic.core.encoding import ANYONS_PER_QUBIT, qubit_encoding
from anyonic.core.errors import CompilationError, UnsupportedOperation
from anyonic.core.program import GATE_ARITY, PARAMETRIC_GATES, Gate
from anyonic.core.theories import theory_for

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Gate matrices
# ---------------------------------------------------------------------------

_SQRT2 = math.sqrt(2.0)
_T = np.exp(1j * math.pi / 4)

FIXED_GATES: dict[str, np.ndarray] = {
    "I": np.eye(2, dtype=complex),
    "H": np.array([[1, 1], [1, -1]], dtype=complex) / _SQRT2,
    "X": np.array([[0, 1], [1, 0]], dtype=complex),
    "Y": np.array([[0, -1j], [1j, 0]], dtype=complex),
    "Z": np.diag([1, -1]).astype(complex),
    "S": np.diag([1, 1j]),
    "SDG": np.diag([1, -1j]),
    "T": np.diag([1, _T]),
    "TDG": np.diag([1, _T.conjugate()]),
    "CNOT": np.array([[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 1], [0, 0, 1, 0]], dtype=complex),
    "CZ": np.diag([1, 1, 1, -1]).astype(complex),
}


def gate_matrix(gate: Gate) -> np.ndarray:
    """Unitary of *gate* on its own qubits (first listed qubit most significant)."""
    if gate.name in PARAMETRIC_GATES:
        if gate.angle is None:
            raise CompilationError(f"gate {gate.name} needs an angle")
        a = gate.angle
        c, s = math.cos(a / 2), math.sin(a / 2)
        if gate.name == "RX":
            return np.array([[c, -1j * s], [-1j * s, c]])
        if gate.name == "RY":
            return np.array([[c, -s], [s, c]], dtype=complex)
        if gate.name == "RZ":
            return np.diag([np.exp(-0.5j * a), np.exp(0.5j * a)])
        return np.diag([1, np.exp(1j * a)])
    try:
        return FIXED_GATES[gate.name]
    except KeyError:
        raise CompilationError(f"unknown gate: {gate.name}") from None


# ---------------------------------------------------------------------------
# Compiled steps
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BraidStep:
    index: int
    clockwise: bool = True


@dataclass(frozen=True)
class CliffordStep:
    name: str
    qubits: tuple[int, ...]
    matrix: np.ndarray = field(compare=False, repr=False)


@dataclass(frozen=True)
class TStep:
    qubit: int
    dagger: bool = False


@dataclass(frozen=True)
class WordStep:
    """A braid word on one qubit, applied as its logical unitary."""

    qubit: int
    word: Word
    matrix: np.ndarray = field(compare=False, repr=False)


CompiledStep = Union[BraidStep, CliffordStep, TStep, WordStep]


@dataclass(frozen=True)
class CompiledGate:
    gate: Gate
    steps: tuple[CompiledStep, ...]
    error: float = 0.0

    @property
    def braid_count(self) -> int:
        return sum(
            len(s.word) if isinstance(s, WordStep) else 1
            for s in self.steps
            if isinstance(s, (BraidStep, WordStep))
        )

    @property
    def t_count(self) -> int:
        return sum(1 for s in self.steps if isinstance(s, TStep))


# ---------------------------------------------------------------------------
# Ising
# ---------------------------------------------------------------------------

def _quarter_turns(angle: float) -> int | None:
    k = angle / (math.pi / 2)
    n = round(k)
    return n % 4 if math.isclose(k, n, abs_tol=1e-12) else None


def _ising_phase_steps(qubit: int, quarter_turns: int) -> tuple[CompiledStep, ...]:
    i = ANYONS_PER_QUBIT * qubit
    if quarter_turns == 1:
        return (BraidStep(i, True),)
    if quarter_turns == 2:
        return (BraidStep(i, True), BraidStep(i, True))
    if quarter_turns == 3:
        return (BraidStep(i, False),)
    return ()


def _ising_letter(letter: str, qubit: int) -> CompiledStep:
    if letter == "S":
        return BraidStep(ANYONS_PER_QUBIT * qubit, True)
    if letter == "SDG":
        return BraidStep(ANYONS_PER_QUBIT * qubit, False)
    if letter == "T":
        return TStep(qubit)
    if letter == "TDG":
        return TStep(qubit, dagger=True)
    return CliffordStep(letter, (qubit,), FIXED_GATES[letter])


def _compile_ising(gate: Gate, tolerance: float, depth: int, base_length: int) -> CompiledGate:
    name = gate.name
    q = gate.qubits[0]
    if name == "I":
        return CompiledGate(gate, ())
    if name == "S":
        return CompiledGate(gate, _ising_phase_steps(q, 1))
    if name == "SDG":
        return CompiledGate(gate, _ising_phase_steps(q, 3))
    if name == "Z":
        return CompiledGate(gate, _ising_phase_steps(q, 2))
    if name in ("T", "TDG"):
        return CompiledGate(gate, (TStep(q, dagger=name == "TDG"),))
    if name in ("RZ", "PHASE"):
        turns = _quarter_turns(gate.angle)
        if turns is not None:
            return CompiledGate(gate, _ising_phase_steps(q, turns))
    if name not in PARAMETRIC_GATES:
        return CompiledGate(gate, (CliffordStep(name, gate.qubits, FIXED_GATES[name]),))

    word, _, error = approximate(gate_matrix(gate), clifford_t_gate_set(), depth, base_length)
    if error > tolerance:
        raise CompilationError(
            f"{name}({gate.angle}) approximated to {error:.3e}, above tolerance {tolerance:.1e}"
        )
    return CompiledGate(gate, tuple(_ising_letter(g, q) for g in word), error)


# ---------------------------------------------------------------------------
# Fibonacci
# ---------------------------------------------------------------------------

def _compile_fibonacci(gate: Gate, tolerance: float, depth: int, base_length: int) -> CompiledGate:
    if len(gate.qubits) != 1:
        raise CompilationError(f"two-qubit gate {gate.name} has no Fibonacci braid compilation")
    if gate.name == "I":
        return CompiledGate(gate, ())
    gate_set = fibonacci_gate_set()
    word, matrix, error = approximate(gate_matrix(gate), gate_set, depth, base_length)
    if error > tolerance:
        raise CompilationError(
            f"{gate.name} approximated to {error:.3e} by braids, above tolerance {tolerance:.1e}"
        )
    return CompiledGate(gate, (WordStep(gate.qubits[0], word, matrix),), error)


# ---------------------------------------------------------------------------
# Simplification
# ---------------------------------------------------------------------------

SELF_INVERSE = frozenset({"I", "H", "X", "Y", "Z", "CNOT", "CZ"})


def _combine(first: CompiledStep, second: CompiledStep) -> tuple[CompiledStep, ...] | None:
    """Replacement for the adjacent pair, or None when they do not interact."""
    if isinstance(first, BraidStep) and isinstance(second, BraidStep):
        if first.index == second.index and first.clockwise != second.clockwise:
            return ()
    elif isinstance(first, TStep) and isinstance(second, TStep):
        if first.qubit == second.qubit:
            if first.dagger != second.dagger:
                return ()
            # T.T = S, T^dagger.T^dagger = S^dagger
            return (BraidStep(ANYONS_PER_QUBIT * first.qubit, not first.dagger),)
    elif isinstance(first, CliffordStep) and isinstance(second, CliffordStep):
        if first.name == second.name and first.qubits == second.qubits and first.name in SELF_INVERSE:
            return ()
    return None


def simplify_steps(steps: Sequence[CompiledStep]) -> tuple[CompiledStep, ...]:
    """Cancel and merge adjacent steps until no rule applies.

    The logical unitary of the sequence is unchanged.
    """
    out: list[CompiledStep] = []
    for step in steps:
        pending = [step]
        while pending:
            s = pending.pop()
            if out:
                merged = _combine(out[-1], s)
                if merged is not None:
                    out.pop()
                    pending.extend(reversed(merged))
                    continue
            out.append(s)
    return tuple(out)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def compile_gate(
    gate: Gate,
    anyon_type: AnyonType,
    tolerance: float = 1e-2,
    depth: int = 2,
    base_length: int = 8,
) -> CompiledGate:
    """Compile *gate* for *anyon_type*.

    Raises:
        CompilationError: the gate cannot be approximated within *tolerance*.
        UnsupportedOperation: the anyon type has no gate compilation.
    """
    arity = GATE_ARITY.get(gate.name)
    if arity is None:
        raise CompilationError(f"unknown gate: {gate.name}")
    if len(gate.qubits) != arity:
        raise CompilationError(f"gate {gate.name} acts on {arity} qubits, got {len(gate.qubits)}")
    if gate.name in PARAMETRIC_GATES and gate.angle is None:
        raise CompilationError(f"gate {gate.name} needs an angle")
    if anyon_type.kind is AnyonKind.ISING:
        compiled = _compile_ising(gate, tolerance, depth, base_length)
    elif anyon_type.kind is AnyonKind.FIBONACCI:
        compiled = _compile_fibonacci(gate, tolerance, depth, base_length)
    else:
        raise UnsupportedOperation(f"gate compilation is not available for {anyon_type}")
    compiled = replace(compiled, steps=simplify_steps(compiled.steps))
    logger.info(
        "compiled %s%s on %s: %d steps, %d braids, %d T, error %.2e",
        gate.name, list(gate.qubits), anyon_type,
        len(compiled.steps), compiled.braid_count, compiled.t_count, compiled.error,
    )
    return compiled


def steps_unitary(compiled: CompiledGate) -> np.ndarray:
    """Logical unitary of a single-qubit compilation, up to global phase.

    Exchanges of the qubit's pair contribute their phase ratio, i.e. S or
    S^dagger.
    """
    u = np.eye(2, dtype=complex)
    for step in compiled.steps:
        if isinstance(step, BraidStep):
            m = FIXED_GATES["S"] if step.clockwise else FIXED_GATES["SDG"]
        elif isinstance(step, TStep):
            m = FIXED_GATES["TDG"] if step.dagger else FIXED_GATES["T"]
        else:
            m = step.matrix
        u = m @ u
    return u


def compilation_error(compiled: CompiledGate) -> float:
    return distance(gate_matrix(compiled.gate), steps_unitary(compiled))


# ---------------------------------------------------------------------------
# Braids to gates
# ---------------------------------------------------------------------------

def braid_gate(step: BraidStep, anyon_type: AnyonType) -> Gate | None:
    """Phase gate implemented by exchanging the two anyons of one qubit.

    The pair's channels pick up R[a,a; one] and R[a,a; zero]; their ratio is
    the relative phase, conjugated for a counter-clockwise exchange.
    Returns None when the exchange is a global phase only.

    Raises:
        CompilationError: the exchange crosses two qubit pairs.
    """
    if step.index % ANYONS_PER_QUBIT:
        raise CompilationError(
            f"exchange of anyons {step.index} and {step.index + 1} spans two qubits"
        )
    qubit = step.index // ANYONS_PER_QUBIT
    enc = qubit_encoding(anyon_type)
    th = theory_for(anyon_type)
    ratio = th.r_symbol(enc.pair, enc.pair, enc.one) / th.r_symbol(enc.pair, enc.pair, enc.zero)
    if not step.clockwise:
        ratio = ratio.conjugate()
    angle = cmath.phase(ratio)
    turns = _quarter_turns(angle)
    if turns == 0:
        return None
    if turns is not None:
        return Gate(("S", "Z", "SDG")[turns - 1], (qubit,))
    return Gate("PHASE", (qubit,), angle)


def braids_to_gates(steps: Sequence[BraidStep], anyon_type: AnyonType) -> tuple[Gate, ...]:
    """Gate circuit equivalent (up to global phase) to a sequence of pair exchanges."""
    gates = []
    for step in steps:
        gate = braid_gate(step, anyon_type)
        if gate is not None:
            gates.append(gate)
    return tuple(gates)
