"""Execute a parsed program on a topological backend."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from anyonic.backend.adapter import TopologicalBackend
from anyonic.core.anyons import Particle
from anyonic.core.errors import UnsupportedOperation
from anyonic.core.program import OpKind, Program
from anyonic.core.superposition import Superposition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MeasurementRecord:
    step: int
    index: int
    outcome: Particle
    probability: float


@dataclass
class RunResult:
    final_state: Superposition
    measurements: list[MeasurementRecord] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)

    @property
    def steps_executed(self) -> int:
        return len(self.messages)


def run_program(program: Program, backend: TopologicalBackend | None = None) -> RunResult:
    """Run every instruction of *program* in order.

    The first instruction must be ``INIT``; a later ``INIT`` starts a fresh
    register. Comments are skipped.

    Raises:
        ValueError: the program never initializes a register.
        UnsupportedOperation: *backend* is for a different anyon type.
    """
    if backend is None:
        backend = TopologicalBackend(program.anyon_type)
    elif backend.anyon_type != program.anyon_type:
        raise UnsupportedOperation(
            f"program for {program.anyon_type} cannot run on a {backend.anyon_type} backend"
        )

    instructions = program.instructions
    if not instructions or instructions[0].kind is not OpKind.INITIALIZE:
        raise ValueError("program must start with INIT before any other operation")

    state: Superposition | None = None
    measurements: list[MeasurementRecord] = []
    messages: list[str] = []
    for step, op in enumerate(instructions, 1):
        if op.kind is OpKind.INITIALIZE:
            state = backend.initialize_state(op.qubits)
            messages.append(f"INIT {op.qubits} qubits ({state.anyon_count} anyons)")
        elif op.kind is OpKind.MEASURE:
            outcome = backend.measure(state, op.index)
            measurements.append(MeasurementRecord(step, op.index, outcome.outcome, outcome.probability))
            messages.append(f"MEASURE {op.index} -> {outcome.outcome} (p={outcome.probability:.4f})")
            state = outcome.state
        else:
            state = backend.apply_operation(op, state)
            messages.append(f"{op.kind.name} -> {len(state)} terms")

    logger.info("ran %d instructions on %s, %d measurements", len(instructions), backend, len(measurements))
    return RunResult(state, measurements, messages)
