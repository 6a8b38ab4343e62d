"""Modular data: S and T matrices, central charge, ground-state degeneracy.

  S_ab = (1/D) sum_c N_ab^c (theta_c / (theta_a theta_b)) d_c
  T_ab = delta_ab theta_a,        theta_a = exp(2 pi i h_a)
  c    = 8 arg(sum_a d_a^2 theta_a) / (2 pi)   (mod 8)
  GSD(g) = sum_a S_0a^(2 - 2g)
"""

from __future__ import annotations

import cmath
import functools
import logging
import math
from dataclasses import dataclass

import numpy as np

from anyonic.core.anyons import AnyonType, Particle
from anyonic.core.errors import NumericalInstability
from anyonic.core.settings import resolve_tolerance
from anyonic.core.theories import theory_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ModularData:
    """Immutable modular data of one anyon type (arrays are read-only)."""

    anyon_type: AnyonType
    particles: tuple[Particle, ...]
    s_matrix: np.ndarray
    t_matrix: np.ndarray
    central_charge: float

    @property
    def rank(self) -> int:
        return len(self.particles)

    @property
    def total_quantum_dimension(self) -> float:
        return float(1.0 / self.s_matrix[0, 0].real)

    @property
    def quantum_dimensions(self) -> np.ndarray:
        """d_a = S_0a / S_00."""
        return (self.s_matrix[0] / self.s_matrix[0, 0]).real

    @property
    def twists(self) -> np.ndarray:
        return np.diag(self.t_matrix).copy()

    def index(self, particle: Particle) -> int:
        return self.particles.index(particle)


# ---------------------------------------------------------------------------
# Computation
# ---------------------------------------------------------------------------

def s_matrix(anyon_type: AnyonType) -> np.ndarray:
    th = theory_for(anyon_type)
    ps = th.particles
    D = th.total_quantum_dimension()
    n = len(ps)
    S = np.zeros((n, n), dtype=complex)
    for i, a in enumerate(ps):
        for j, b in enumerate(ps):
            S[i, j] = sum(
                th.twist(c) / (th.twist(a) * th.twist(b)) * th.quantum_dimension(c)
                for c in th.fusion_channels(a, b)
            ) / D
    return S


def t_matrix(anyon_type: AnyonType) -> np.ndarray:
    th = theory_for(anyon_type)
    return np.diag([th.twist(a) for a in th.particles])


def central_charge(anyon_type: AnyonType) -> float:
    """Chiral central charge mod 8 from the Gauss sum."""
    th = theory_for(anyon_type)
    gauss = sum(th.quantum_dimension(a) ** 2 * th.twist(a) for a in th.particles)
    c = 8.0 * cmath.phase(gauss) / (2.0 * math.pi)
    c = c % 8.0
    # Snap values that landed a rounding error below 8 back to 0.
    return 0.0 if math.isclose(c, 8.0, abs_tol=1e-12) else c


@functools.lru_cache(maxsize=None)
def compute_modular_data(anyon_type: AnyonType) -> ModularData:
    """Compute (once per anyon type) and cache the modular data."""
    th = theory_for(anyon_type)
    S = s_matrix(anyon_type)
    T = t_matrix(anyon_type)
    S.setflags(write=False)
    T.setflags(write=False)
    data = ModularData(anyon_type, th.particles, S, T, central_charge(anyon_type))
    logger.debug("modular data for %s: rank %d, c = %.6f", anyon_type, data.rank, data.central_charge)
    return data


# ---------------------------------------------------------------------------
# Verification
# ---------------------------------------------------------------------------

def s_unitarity_deviation(data: ModularData) -> float:
    S = data.s_matrix
    return float(np.max(np.abs(S @ S.conj().T - np.eye(data.rank))))


def verify_s_unitary(data: ModularData, tolerance: float | None = None) -> bool:
    """S S^dagger = 1."""
    return s_unitarity_deviation(data) <= resolve_tolerance(tolerance)


def verify_s_symmetric(data: ModularData, tolerance: float | None = None) -> bool:
    S = data.s_matrix
    return float(np.max(np.abs(S - S.T))) <= resolve_tolerance(tolerance)


def verify_t_diagonal(data: ModularData, tolerance: float | None = None) -> bool:
    """T is diagonal with unit-modulus entries."""
    tol = resolve_tolerance(tolerance)
    T = data.t_matrix
    off = T - np.diag(np.diag(T))
    return bool(np.max(np.abs(off)) <= tol and np.max(np.abs(np.abs(np.diag(T)) - 1.0)) <= tol)


def modular_lambda(data: ModularData) -> complex:
    """Least-squares lambda in (S T)^3 = lambda S^2."""
    S, T = data.s_matrix, data.t_matrix
    lhs = np.linalg.matrix_power(S @ T, 3)
    s2 = S @ S
    return complex(np.vdot(s2, lhs) / np.vdot(s2, s2))


def modular_relation_deviation(data: ModularData) -> float:
    S, T = data.s_matrix, data.t_matrix
    lam = modular_lambda(data)
    lhs = np.linalg.matrix_power(S @ T, 3)
    residual = float(np.max(np.abs(lhs - lam * (S @ S))))
    return max(residual, abs(abs(lam) - 1.0))


def verify_modular_relation(data: ModularData, tolerance: float | None = None) -> bool:
    """(S T)^3 = lambda S^2 with |lambda| = 1."""
    return modular_relation_deviation(data) <= resolve_tolerance(tolerance)


def verlinde_deviation(data: ModularData) -> float:
    """Largest |N_ab^c - sum_x S_ax S_bx conj(S_cx) / S_0x| over all labels."""
    th = theory_for(data.anyon_type)
    S = data.s_matrix
    ps = data.particles
    worst = 0.0
    for i, a in enumerate(ps):
        for j, b in enumerate(ps):
            for k, c in enumerate(ps):
                predicted = np.sum(S[i] * S[j] * S[k].conj() / S[0])
                worst = max(worst, abs(predicted - th.multiplicity(a, b, c)))
    return float(worst)


def verify_verlinde(data: ModularData, tolerance: float | None = None) -> bool:
    return verlinde_deviation(data) <= resolve_tolerance(tolerance)


def certify(data: ModularData, tolerance: float | None = None) -> ModularData:
    """Run every check; return *data* or raise on the first failure.

    Raises:
        NumericalInstability: naming the failed check and its deviation.
    """
    tol = resolve_tolerance(tolerance)
    S = data.s_matrix
    T = data.t_matrix
    checks = (
        ("S unitarity", s_unitarity_deviation(data)),
        ("S symmetry", float(np.max(np.abs(S - S.T)))),
        ("T diagonal", float(max(
            np.max(np.abs(T - np.diag(np.diag(T)))),
            np.max(np.abs(np.abs(np.diag(T)) - 1.0)),
        ))),
        ("(ST)^3 = lambda S^2", modular_relation_deviation(data)),
        ("Verlinde", verlinde_deviation(data)),
    )
    for name, deviation in checks:
        if deviation > tol:
            logger.warning("%s: %s check failed (%.3e > %.1e)", data.anyon_type, name, deviation, tol)
            raise NumericalInstability(name, deviation, tol)
    return data


# ---------------------------------------------------------------------------
# Derived quantities
# ---------------------------------------------------------------------------

def ground_state_degeneracy(data: ModularData, genus: int) -> int:
    """Ground-state degeneracy on a closed surface of the given genus."""
    if genus < 0:
        raise ValueError(f"genus must be non-negative, got {genus}")
    s0 = data.s_matrix[0].real
    return int(round(float(np.sum(s0 ** (2 - 2 * genus)))))


def topological_entanglement_entropy(anyon_type: AnyonType) -> float:
    """gamma = log D."""
    return math.log(theory_for(anyon_type).total_quantum_dimension())
