"""Interchange state types handed to generic algorithm drivers.

Two representations cross the backend boundary:

  SuperpositionHandle   wraps an anyonic Superposition (no copy)
  StateVector           dense 2^n logical amplitude vector

Both expose ``logical_qubits``, ``probabilities()`` and ``sample()``.
Conversion between them only happens at the explicit functions below.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

import numpy as np

from anyonic.core.anyons import AnyonType
from anyonic.core.encoding import (
    from_logical_amplitudes,
    logical_amplitudes,
    logical_probabilities,
    qubit_count,
    sample_bits,
)
from anyonic.core.errors import UnsupportedOperation
from anyonic.core.superposition import Superposition


@dataclass(frozen=True)
class SuperpositionHandle:
    superposition: Superposition

    @property
    def anyon_type(self) -> AnyonType:
        return self.superposition.anyon_type

    @property
    def logical_qubits(self) -> int:
        return qubit_count(self.superposition)

    def probabilities(self) -> dict[str, float]:
        return logical_probabilities(self.superposition)

    def sample(self, shots: int, rng: np.random.Generator) -> list[str]:
        return sample_bits(self.superposition, shots, rng)


@dataclass(frozen=True, eq=False)
class StateVector:
    anyon_type: AnyonType
    amplitudes: np.ndarray

    @property
    def logical_qubits(self) -> int:
        return int(len(self.amplitudes)).bit_length() - 1

    def probabilities(self) -> dict[str, float]:
        n = self.logical_qubits
        return {
            format(i, f"0{n}b"): float(abs(a) ** 2)
            for i, a in enumerate(self.amplitudes)
            if a != 0
        }

    def sample(self, shots: int, rng: np.random.Generator) -> list[str]:
        n = self.logical_qubits
        p = np.abs(self.amplitudes) ** 2
        draws = rng.choice(len(p), size=shots, p=p / p.sum())
        return [format(int(i), f"0{n}b") for i in draws]


QuantumState = Union[SuperpositionHandle, StateVector]


# ---------------------------------------------------------------------------
# Conversions
# ---------------------------------------------------------------------------

def to_interface(state: Superposition) -> SuperpositionHandle:
    return SuperpositionHandle(state)


def from_interface(handle) -> Superposition:
    """Unwrap a handle produced by ``to_interface``; exact, no copy."""
    if isinstance(handle, SuperpositionHandle):
        return handle.superposition
    raise UnsupportedOperation(f"cannot read a superposition from {type(handle).__name__}")


def to_state_vector(state: Superposition) -> StateVector:
    """Dense amplitudes of a state inside the computational basis."""
    vec = logical_amplitudes(state)
    vec.setflags(write=False)
    return StateVector(state.anyon_type, vec)


def from_state_vector(vector: StateVector) -> Superposition:
    return from_logical_amplitudes(vector.amplitudes, vector.anyon_type)
