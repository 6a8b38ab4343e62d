"""Solovay-Kitaev approximation of single-qubit unitaries by gate words.

A word is a tuple of gate names applied left to right; its matrix is the
product taken right to left. Distances ignore global phase:

    d(U, V) = sqrt(1 - |tr(U^dagger V)| / 2)

Usage:
    gate_set = clifford_t_gate_set()
    word, matrix, error = approximate(target, gate_set, depth=2, base_length=8)
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass, field
from typing import Mapping

import numpy as np

from anyonic.core.anyons import FIBONACCI, TAU
from anyonic.core.theories import theory_for

Word = tuple[str, ...]

_I2 = np.eye(2, dtype=complex)
_X = np.array([[0, 1], [1, 0]], dtype=complex)
_Y = np.array([[0, -1j], [1j, 0]], dtype=complex)
_Z = np.array([[1, 0], [0, -1]], dtype=complex)


@dataclass(frozen=True, eq=False)
class GateSet:
    """Named 2x2 gates closed under inversion (``inverses`` maps name -> name)."""

    name: str
    gates: Mapping[str, np.ndarray] = field(repr=False)
    inverses: Mapping[str, str] = field(repr=False)

    def matrix(self, word: Word) -> np.ndarray:
        m = _I2
        for g in word:
            m = self.gates[g] @ m
        return m

    def inverse(self, word: Word) -> Word:
        return tuple(self.inverses[g] for g in reversed(word))

    def reduce(self, word: Word) -> Word:
        """Cancel adjacent letter and inverse pairs until none remain."""
        out: list[str] = []
        for g in word:
            if out and self.inverses[out[-1]] == g:
                out.pop()
            else:
                out.append(g)
        return tuple(out)


# ---------------------------------------------------------------------------
# SU(2) helpers
# ---------------------------------------------------------------------------

def to_su2(u: np.ndarray) -> np.ndarray:
    return u / np.sqrt(np.linalg.det(u))


def distance(u: np.ndarray, v: np.ndarray) -> float:
    """Phase-invariant operator distance in [0, 1]."""
    overlap = abs(np.trace(u.conj().T @ v)) / 2.0
    return math.sqrt(max(0.0, 1.0 - overlap))


def rotation(axis, angle: float) -> np.ndarray:
    """exp(-i angle/2 n.sigma)."""
    nx, ny, nz = axis
    return math.cos(angle / 2) * _I2 - 1j * math.sin(angle / 2) * (nx * _X + ny * _Y + nz * _Z)


def axis_angle(u: np.ndarray) -> tuple[np.ndarray, float]:
    """Rotation axis and angle in [0, pi] of a unitary, up to global phase."""
    u = to_su2(u)
    if np.trace(u).real < 0:
        u = -u
    angle = 2.0 * math.acos(min(1.0, np.trace(u).real / 2.0))
    s = math.sin(angle / 2)
    if s < 1e-12:
        return np.array([0.0, 0.0, 1.0]), 0.0
    axis = np.array([
        -u[0, 1].imag / s,
        (u[1, 0].real - u[0, 1].real) / (2.0 * s),
        -u[0, 0].imag / s,
    ])
    return axis / np.linalg.norm(axis), angle


def _aligning_rotation(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """SU(2) element rotating unit vector *src* onto *dst*."""
    cross = np.cross(src, dst)
    dot = float(np.clip(np.dot(src, dst), -1.0, 1.0))
    if np.linalg.norm(cross) < 1e-12:
        if dot > 0:
            return _I2
        perp = np.cross(src, [1.0, 0.0, 0.0])
        if np.linalg.norm(perp) < 1e-6:
            perp = np.cross(src, [0.0, 1.0, 0.0])
        return rotation(perp / np.linalg.norm(perp), math.pi)
    return rotation(cross / np.linalg.norm(cross), math.acos(dot))


def group_commutator(delta: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Balanced V, W with V W V^dagger W^dagger = delta (up to phase)."""
    axis, theta = axis_angle(delta)
    if theta < 1e-12:
        return _I2, _I2
    s = math.sin(theta / 2)
    x = math.sqrt((1.0 - math.sqrt(max(0.0, 1.0 - s * s))) / 2.0)
    phi = 2.0 * math.asin(math.sqrt(x))
    v = rotation((1.0, 0.0, 0.0), phi)
    w = rotation((0.0, 1.0, 0.0), phi)
    comm_axis, _ = axis_angle(v @ w @ v.conj().T @ w.conj().T)
    s_rot = _aligning_rotation(comm_axis, axis)
    return s_rot @ v @ s_rot.conj().T, s_rot @ w @ s_rot.conj().T


# ---------------------------------------------------------------------------
# Basic approximations
# ---------------------------------------------------------------------------

def _key(u: np.ndarray) -> tuple:
    flat = u.ravel()
    pivot = flat[np.argmax(np.abs(flat) > 1e-6)]
    norm = flat * (abs(pivot) / pivot)
    return tuple(np.round(norm.real, 8)) + tuple(np.round(norm.imag, 8))


@functools.lru_cache(maxsize=None)
def basic_approximations(gate_set: GateSet, length: int) -> tuple[tuple[Word, ...], np.ndarray]:
    """Every distinct (up to phase) word of at most *length* gates, shortest first."""
    words: list[Word] = [()]
    mats: list[np.ndarray] = [_I2]
    seen = {_key(_I2)}
    frontier = [((), _I2)]
    for _ in range(length):
        nxt = []
        for word, m in frontier:
            for g, gm in gate_set.gates.items():
                candidate = gm @ m
                k = _key(candidate)
                if k in seen:
                    continue
                seen.add(k)
                nxt.append((word + (g,), candidate))
        for word, m in nxt:
            words.append(word)
            mats.append(m)
        frontier = nxt
    stacked = np.array(mats)
    stacked.setflags(write=False)
    return tuple(words), stacked


def _nearest(target: np.ndarray, gate_set: GateSet, length: int) -> tuple[Word, np.ndarray]:
    words, mats = basic_approximations(gate_set, length)
    overlaps = np.abs(np.einsum("ij,nij->n", target.conj(), mats))
    best = int(np.argmax(overlaps))
    return words[best], mats[best]


# ---------------------------------------------------------------------------
# Recursion
# ---------------------------------------------------------------------------

def _sk(target: np.ndarray, depth: int, gate_set: GateSet, length: int) -> tuple[Word, np.ndarray]:
    if depth == 0:
        return _nearest(target, gate_set, length)
    word, approx = _sk(target, depth - 1, gate_set, length)
    v, w = group_commutator(target @ approx.conj().T)
    wv, mv = _sk(v, depth - 1, gate_set, length)
    ww, mw = _sk(w, depth - 1, gate_set, length)
    refined = word + gate_set.inverse(ww) + gate_set.inverse(wv) + ww + wv
    refined_m = mv @ mw @ mv.conj().T @ mw.conj().T @ approx
    if distance(target, refined_m) < distance(target, approx):
        return refined, refined_m
    return word, approx


def approximate(
    target,
    gate_set: GateSet,
    depth: int = 2,
    base_length: int = 8,
) -> tuple[Word, np.ndarray, float]:
    """Approximate *target* by a word over *gate_set*.

    Returns:
        (word, matrix of the word, phase-invariant distance to *target*).
    """
    target = np.asarray(target, dtype=complex)
    if target.shape != (2, 2):
        raise ValueError(f"expected a 2x2 unitary, got shape {target.shape}")
    if depth < 0 or base_length < 0:
        raise ValueError("depth and base_length must be non-negative")
    word, m = _sk(target, depth, gate_set, base_length)
    return gate_set.reduce(word), m, distance(target, m)


# ---------------------------------------------------------------------------
# Gate sets
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=None)
def clifford_t_gate_set() -> GateSet:
    t = np.exp(1j * math.pi / 4)
    gates = {
        "H": np.array([[1, 1], [1, -1]], dtype=complex) / math.sqrt(2.0),
        "S": np.diag([1, 1j]),
        "SDG": np.diag([1, -1j]),
        "T": np.diag([1, t]),
        "TDG": np.diag([1, t.conjugate()]),
    }
    inverses = {"H": "H", "S": "SDG", "SDG": "S", "T": "TDG", "TDG": "T"}
    return GateSet("clifford+t", gates, inverses)


@functools.lru_cache(maxsize=None)
def fibonacci_gate_set() -> GateSet:
    """Elementary exchanges of a three-tau qubit.

    s1 exchanges the two anyons of the pair; s2 = F s1 F exchanges the
    second and third, expressed in the pair-channel basis.
    """
    th = theory_for(FIBONACCI)
    _, s1 = th.r_matrix(TAU, TAU)
    _, _, f = th.f_matrix(TAU, TAU, TAU, TAU)
    s2 = f @ s1 @ f.conj().T
    gates = {"s1": s1, "s1i": s1.conj().T, "s2": s2, "s2i": s2.conj().T}
    inverses = {"s1": "s1i", "s1i": "s1", "s2": "s2i", "s2i": "s2"}
    return GateSet("fibonacci", gates, inverses)
