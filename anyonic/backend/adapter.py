"""Topological backend: allocates anyon registers and dispatches operations.

Usage:
    backend = TopologicalBackend(ISING, rng=np.random.default_rng(7))
    state = backend.initialize_state(2)          # |00>, four sigma anyons
    state = backend.apply_operation(Gate("H", (0,)), state)
    outcome = backend.measure(state, 0)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from anyonic.backend.compiler import (
    BraidStep,
    CliffordStep,
    CompiledGate,
    TStep,
    WordStep,
    compile_gate,
)
from anyonic.backend.states import (
    StateVector,
    SuperpositionHandle,
    from_state_vector,
    to_state_vector,
)
from anyonic.codes.distillation import (
    BLOCK_SIZE,
    MAX_ROUNDS,
    MagicState,
    apply_t_gate,
    distill_iterative,
    prepare_noisy_magic_state,
)
from anyonic.core.anyons import AnyonKind, AnyonType
from anyonic.core.encoding import anyons_for_qubits, apply_logical_unitary, zero_state
from anyonic.core.errors import CapacityExceeded, UnsupportedOperation
from anyonic.core.operations import MeasurementOutcome, braid, f_move, sample_fusion
from anyonic.core.program import OpKind, Operation
from anyonic.core.superposition import Superposition

logger = logging.getLogger(__name__)

State = Union[Superposition, SuperpositionHandle, StateVector]

_NATIVE = frozenset({OpKind.BRAID, OpKind.MEASURE, OpKind.FMOVE, OpKind.INITIALIZE, OpKind.COMMENT})


@dataclass(frozen=True)
class BackendConfig:
    max_anyons: int = 64
    compile_tolerance: float = 1e-2
    magic_error_rate: float = 1e-3
    distillation_rounds: int = 1
    max_distillation_attempts: int = 10
    sk_depth: int = 2
    sk_base_length: int = 8

    def __post_init__(self) -> None:
        if self.max_anyons < 2:
            raise ValueError(f"max_anyons must be at least 2, got {self.max_anyons}")
        if not self.compile_tolerance > 0:
            raise ValueError(f"compile_tolerance must be positive, got {self.compile_tolerance}")
        if not 0.0 <= self.magic_error_rate <= 1.0:
            raise ValueError(f"magic_error_rate must lie in [0, 1], got {self.magic_error_rate}")
        if not 0 <= self.distillation_rounds <= MAX_ROUNDS:
            raise ValueError(f"distillation_rounds must be between 0 and {MAX_ROUNDS}")
        if self.max_distillation_attempts < 1:
            raise ValueError("max_distillation_attempts must be at least 1")
        if self.sk_depth < 0 or self.sk_base_length < 1:
            raise ValueError("sk_depth must be >= 0 and sk_base_length >= 1")


class TopologicalBackend:
    """Executes program operations on anyon superpositions of one anyon type."""

    def __init__(
        self,
        anyon_type: AnyonType,
        config: BackendConfig | None = None,
        rng: np.random.Generator | None = None,
    ) -> None:
        self.anyon_type = anyon_type
        self.config = config or BackendConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

    def __repr__(self) -> str:
        return f"TopologicalBackend({self.anyon_type}, max_anyons={self.config.max_anyons})"

    @property
    def max_qubits(self) -> int:
        return self.config.max_anyons // anyons_for_qubits(1)

    # -- allocation ---------------------------------------------------------

    def initialize_state(self, qubits: int) -> Superposition:
        """|0...0> on *qubits* logical qubits.

        Raises:
            CapacityExceeded: the register needs more anyons than ``max_anyons``.
        """
        needed = anyons_for_qubits(qubits)
        if needed > self.config.max_anyons:
            raise CapacityExceeded(needed, self.config.max_anyons)
        logger.debug("allocating %d qubits (%d anyons) on %s", qubits, needed, self.anyon_type)
        return zero_state(qubits, self.anyon_type)

    # -- capability ---------------------------------------------------------

    def supports_operation(self, op: Operation) -> bool:
        """Whether *op* runs natively, without approximation or magic states."""
        if op.kind in _NATIVE:
            return True
        if op.kind is OpKind.GATE:
            return self.anyon_type.kind is AnyonKind.ISING and op.is_clifford
        return False

    def compile(self, gate) -> CompiledGate:
        cfg = self.config
        return compile_gate(gate, self.anyon_type, cfg.compile_tolerance, cfg.sk_depth, cfg.sk_base_length)

    # -- dispatch -----------------------------------------------------------

    def apply_operation(self, op: Operation, state: State) -> State:
        """Apply *op* and return the new state in the representation it came in."""
        if isinstance(state, StateVector):
            return to_state_vector(self._apply(op, from_state_vector(state)))
        if isinstance(state, SuperpositionHandle):
            return SuperpositionHandle(self._apply(op, state.superposition))
        return self._apply(op, state)

    def _apply(self, op: Operation, state: Superposition) -> Superposition:
        if state.anyon_type != self.anyon_type:
            raise UnsupportedOperation(f"{self!r} cannot act on a {state.anyon_type} state")
        logger.debug("apply %s", op)
        if op.kind is OpKind.BRAID:
            return braid(state, op.index, op.clockwise)
        if op.kind is OpKind.FMOVE:
            return f_move(state, op.direction, op.depth)
        if op.kind is OpKind.MEASURE:
            return self.measure(state, op.index).state
        if op.kind is OpKind.GATE:
            return self.run_compiled(self.compile(op), state)
        if op.kind is OpKind.INITIALIZE:
            return self.initialize_state(op.qubits)
        if op.kind is OpKind.COMMENT:
            return state
        raise UnsupportedOperation(f"unknown operation: {op!r}")

    def measure(self, state: Superposition, index: int) -> MeasurementOutcome:
        """Sample the fusion channel of anyons *index*, *index + 1*."""
        outcome = sample_fusion(state, index, self.rng)
        logger.debug("measured pair %d: %s (p=%.4f)", index, outcome.outcome, outcome.probability)
        return outcome

    # -- compiled gates -----------------------------------------------------

    def run_compiled(self, compiled: CompiledGate, state: Superposition) -> Superposition:
        for step in compiled.steps:
            if isinstance(step, BraidStep):
                state = braid(state, step.index, step.clockwise)
            elif isinstance(step, CliffordStep):
                state = apply_logical_unitary(state, step.qubits, step.matrix)
            elif isinstance(step, WordStep):
                state = apply_logical_unitary(state, (step.qubit,), step.matrix)
            elif isinstance(step, TStep):
                magic = self.prepare_magic_state()
                result = apply_t_gate(self.rng, state, magic, step.qubit, step.dagger)
                if result.error:
                    logger.warning("T injection on qubit %d left a Z error", step.qubit)
                state = result.state
        return state

    def prepare_magic_state(self) -> MagicState:
        """Distill one magic state, retrying rejected attempts.

        Raises:
            UnsupportedOperation: every attempt was rejected.
        """
        cfg = self.config
        rounds = cfg.distillation_rounds
        if rounds == 0:
            return prepare_noisy_magic_state(cfg.magic_error_rate, self.anyon_type)
        for attempt in range(1, cfg.max_distillation_attempts + 1):
            raw = [
                prepare_noisy_magic_state(cfg.magic_error_rate, self.anyon_type)
                for _ in range(BLOCK_SIZE ** rounds)
            ]
            result = distill_iterative(self.rng, rounds, raw)
            if result.accepted:
                logger.debug("magic state accepted on attempt %d", attempt)
                return result.purified
        raise UnsupportedOperation(
            f"no magic state accepted after {cfg.max_distillation_attempts} distillation attempts"
        )
