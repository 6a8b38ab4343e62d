"""Logical qubits encoded in anyon pairs.

Qubit q lives in the fusion channel of anyons 2q and 2q+1:

  Ising      sigma x sigma  ->  |0> = 1,  |1> = psi
  Fibonacci  tau x tau      ->  |0> = 1,  |1> = tau
  SU(2)_k    1/2 x 1/2      ->  |0> = 0,  |1> = 1      (k >= 2)

Pairs are fused left to right, ((p0 p1)_c p2)_c' ..., each running charge
taking the first allowed channel. Bitstrings put qubit 0 first.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from anyonic.core.anyons import AnyonKind, AnyonType, Particle, PSI, SIGMA, TAU, VACUUM
from anyonic.core.errors import IndexOutOfRange, UnsupportedAnyonConfiguration
from anyonic.core.fusion_tree import Fusion, FusionTree, Leaf
from anyonic.core.operations import pair_channel
from anyonic.core.settings import get_amplitude_cutoff
from anyonic.core.superposition import Superposition, pure_state
from anyonic.core.theories import AnyonTheory, theory_for

ANYONS_PER_QUBIT = 2


@dataclass(frozen=True)
class QubitEncoding:
    anyon_type: AnyonType
    pair: Particle
    zero: Particle
    one: Particle

    def channel(self, bit: int) -> Particle:
        return self.one if bit else self.zero

    def bit_of(self, channel: Particle) -> int:
        if channel == self.zero:
            return 0
        if channel == self.one:
            return 1
        raise UnsupportedAnyonConfiguration(
            f"channel {channel} is not a logical state of {self.anyon_type}"
        )


@functools.lru_cache(maxsize=None)
def qubit_encoding(anyon_type: AnyonType) -> QubitEncoding:
    if anyon_type.kind is AnyonKind.ISING:
        return QubitEncoding(anyon_type, SIGMA, VACUUM, PSI)
    if anyon_type.kind is AnyonKind.FIBONACCI:
        return QubitEncoding(anyon_type, TAU, VACUUM, TAU)
    if anyon_type.level < 2:
        raise UnsupportedAnyonConfiguration(
            f"{anyon_type} has a single spin-1/2 pair channel; qubits need level >= 2"
        )
    return QubitEncoding(anyon_type, Particle.spin(1), VACUUM, Particle.spin(2))


def anyons_for_qubits(qubits: int) -> int:
    return ANYONS_PER_QUBIT * qubits


def qubit_count(state: Superposition) -> int:
    n = state.anyon_count
    if n % ANYONS_PER_QUBIT:
        raise UnsupportedAnyonConfiguration(f"{n} anyons do not form whole qubit pairs")
    return n // ANYONS_PER_QUBIT


def bitstring(bits: Sequence[int]) -> str:
    return "".join(str(b) for b in bits)


# ---------------------------------------------------------------------------
# Basis states
# ---------------------------------------------------------------------------

def basis_tree(bits: Sequence[int], anyon_type: AnyonType) -> FusionTree:
    """Fusion tree of the computational basis state |bits>."""
    if not bits:
        raise ValueError("a basis state needs at least one qubit")
    enc = qubit_encoding(anyon_type)
    th = theory_for(anyon_type)
    pair = Leaf(enc.pair)
    trees = [Fusion(pair, pair, enc.channel(b)) for b in bits]
    tree: FusionTree = trees[0]
    for t in trees[1:]:
        tree = Fusion(tree, t, th.fusion_channels(tree.charge, t.charge)[0])
    return tree


def basis_state(bits: Sequence[int], anyon_type: AnyonType) -> Superposition:
    return pure_state(basis_tree(bits, anyon_type), anyon_type)


def zero_state(qubits: int, anyon_type: AnyonType) -> Superposition:
    """|0...0>: every pair fused to the vacuum."""
    if qubits < 1:
        raise ValueError(f"need at least one qubit, got {qubits}")
    return basis_state((0,) * qubits, anyon_type)


def decode_bits(tree: FusionTree, anyon_type: AnyonType) -> tuple[int, ...]:
    """Read the logical bits of a tree from its pair channels."""
    enc = qubit_encoding(anyon_type)
    bits = []
    for q in range(tree.size // ANYONS_PER_QUBIT):
        channel = pair_channel(tree, ANYONS_PER_QUBIT * q)
        if channel is None:
            raise UnsupportedAnyonConfiguration(f"qubit {q} is not held in a fused anyon pair")
        bits.append(enc.bit_of(channel))
    return tuple(bits)


# ---------------------------------------------------------------------------
# Logical gates
# ---------------------------------------------------------------------------

def _relabel(node: FusionTree, offset: int, channels: dict[int, Particle], theory: AnyonTheory) -> FusionTree:
    if isinstance(node, Leaf):
        return node
    if isinstance(node.left, Leaf) and isinstance(node.right, Leaf) and offset in channels:
        return Fusion(node.left, node.right, channels[offset])
    left = _relabel(node.left, offset, channels, theory)
    right = _relabel(node.right, offset + node.left.size, channels, theory)
    allowed = theory.fusion_channels(left.charge, right.charge)
    outcome = node.outcome if node.outcome in allowed else allowed[0]
    if left is node.left and right is node.right and outcome == node.outcome:
        return node
    return Fusion(left, right, outcome)


def apply_logical_unitary(state: Superposition, qubits: Sequence[int], matrix) -> Superposition:
    """Apply a 2^m x 2^m unitary to the listed qubits (first listed = most significant)."""
    matrix = np.asarray(matrix, dtype=complex)
    m = len(qubits)
    if matrix.shape != (2 ** m, 2 ** m):
        raise ValueError(f"{m} qubits need a {2 ** m}x{2 ** m} matrix, got {matrix.shape}")
    n = qubit_count(state)
    if len(set(qubits)) != m or any(not 0 <= q < n for q in qubits):
        raise IndexOutOfRange(f"qubits {tuple(qubits)} invalid for a {n}-qubit state")

    enc = qubit_encoding(state.anyon_type)
    th = theory_for(state.anyon_type)
    terms = []
    for amp, tree in state.terms:
        col = 0
        for q in qubits:
            channel = pair_channel(tree, ANYONS_PER_QUBIT * q)
            if channel is None:
                raise UnsupportedAnyonConfiguration(f"qubit {q} is not held in a fused anyon pair")
            col = (col << 1) | enc.bit_of(channel)
        for row in range(2 ** m):
            coeff = matrix[row, col]
            if coeff == 0:
                continue
            channels = {
                ANYONS_PER_QUBIT * q: enc.channel((row >> (m - 1 - k)) & 1)
                for k, q in enumerate(qubits)
            }
            terms.append((amp * coeff, _relabel(tree, 0, channels, th)))
    return Superposition.from_terms(terms, state.anyon_type)


# ---------------------------------------------------------------------------
# Dense views
# ---------------------------------------------------------------------------

def logical_amplitudes(state: Superposition) -> np.ndarray:
    """Dense 2^n amplitude vector of a state inside the computational basis."""
    n = qubit_count(state)
    vec = np.zeros(2 ** n, dtype=complex)
    owner: dict[int, FusionTree] = {}
    for amp, tree in state.terms:
        idx = int(bitstring(decode_bits(tree, state.anyon_type)), 2)
        if owner.setdefault(idx, tree) != tree:
            raise UnsupportedAnyonConfiguration(
                "state carries fusion channels outside the computational basis"
            )
        vec[idx] += amp
    return vec


def from_logical_amplitudes(vector, anyon_type: AnyonType) -> Superposition:
    vector = np.asarray(vector, dtype=complex).ravel()
    n = int(round(math.log2(len(vector)))) if len(vector) else 0
    if n < 1 or 2 ** n != len(vector):
        raise ValueError(f"amplitude vector length {len(vector)} is not a power of two >= 2")
    cutoff = get_amplitude_cutoff()
    terms = [
        (amp, basis_tree(tuple(int(b) for b in format(idx, f"0{n}b")), anyon_type))
        for idx, amp in enumerate(vector)
        if abs(amp) > cutoff
    ]
    return Superposition.from_terms(terms, anyon_type)


def logical_probabilities(state: Superposition) -> dict[str, float]:
    """Born-rule distribution over bitstrings, read from the pair channels."""
    probs: dict[str, float] = {}
    for amp, tree in state.terms:
        key = bitstring(decode_bits(tree, state.anyon_type))
        probs[key] = probs.get(key, 0.0) + abs(amp) ** 2
    return probs


def sample_bits(state: Superposition, shots: int, rng: np.random.Generator) -> list[str]:
    """Draw *shots* computational-basis bitstrings."""
    probs = logical_probabilities(state)
    keys = sorted(probs)
    p = np.array([probs[k] for k in keys])
    draws = rng.choice(len(keys), size=shots, p=p / p.sum())
    return [keys[i] for i in draws]
