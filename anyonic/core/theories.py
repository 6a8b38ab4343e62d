"""Anyon theories: fusion rules, quantum dimensions, F- and R-symbols.

Each supported ``AnyonType`` maps to one ``AnyonTheory``. New theories plug
in by subclassing ``AnyonTheory`` and registering in ``theory_for``; the
tree, braiding and modular code only ever talks to this interface.

Conventions:
  F-symbol   ((a b)_e c)_d  =  sum_f F[a,b,c,d; e,f] (a (b c)_f)_d
  R-symbol   exchanging a,b fused to c multiplies by R[a,b; c]
  twist      theta_a = exp(2 pi i h_a)
"""

from __future__ import annotations

import cmath
import functools
import math
from abc import ABC, abstractmethod

import numpy as np

from anyonic.core.anyons import (
    AnyonKind,
    AnyonType,
    Particle,
    PSI,
    SIGMA,
    TAU,
    VACUUM,
)
from anyonic.core.errors import UnsupportedAnyonConfiguration, UnsupportedAnyonType
from anyonic.core.settings import resolve_tolerance

PHI = (1.0 + math.sqrt(5.0)) / 2.0


# ---------------------------------------------------------------------------
# Extension seam
# ---------------------------------------------------------------------------

class AnyonTheory(ABC):
    """Fusion-category data for one anyon type."""

    def __init__(self, anyon_type: AnyonType) -> None:
        self.anyon_type = anyon_type
        self._particle_set = frozenset(self.particles)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.anyon_type})"

    @property
    @abstractmethod
    def particles(self) -> tuple[Particle, ...]:
        """All charges of the theory, vacuum first."""

    @abstractmethod
    def _fuse(self, a: Particle, b: Particle) -> tuple[Particle, ...]:
        ...

    @abstractmethod
    def _dimension(self, a: Particle) -> float:
        ...

    @abstractmethod
    def _weight(self, a: Particle) -> float:
        ...

    @abstractmethod
    def _r(self, a: Particle, b: Particle, c: Particle) -> complex:
        ...

    def _f(self, a, b, c, d, e, f) -> complex:
        raise UnsupportedAnyonConfiguration(
            f"no F-symbol data for ({a}, {b}, {c}; {d}) in {self.anyon_type}"
        )

    # -- lookups ------------------------------------------------------------

    def check(self, a: Particle) -> Particle:
        if a not in self._particle_set:
            raise UnsupportedAnyonConfiguration(f"{a} is not a particle of {self.anyon_type}")
        return a

    def particle(self, name: str) -> Particle:
        """Look up a particle by its printed name."""
        for p in self.particles:
            if p.name == name:
                return p
        raise UnsupportedAnyonConfiguration(f"{name!r} is not a particle of {self.anyon_type}")

    @property
    def vacuum(self) -> Particle:
        return VACUUM

    def dual(self, a: Particle) -> Particle:
        # Every charge of the catalogue is self-dual.
        return self.check(a)

    def fusion_channels(self, a: Particle, b: Particle) -> tuple[Particle, ...]:
        """Allowed outcomes of fusing a with b, in catalogue order."""
        return self._fuse(self.check(a), self.check(b))

    def multiplicity(self, a: Particle, b: Particle, c: Particle) -> int:
        return 1 if c in self.fusion_channels(a, b) else 0

    def can_fuse(self, a: Particle, b: Particle, c: Particle) -> bool:
        return self.multiplicity(a, b, c) > 0

    def quantum_dimension(self, a: Particle) -> float:
        return self._dimension(self.check(a))

    def total_quantum_dimension(self) -> float:
        return math.sqrt(sum(self.quantum_dimension(a) ** 2 for a in self.particles))

    def conformal_weight(self, a: Particle) -> float:
        return self._weight(self.check(a))

    def twist(self, a: Particle) -> complex:
        """Topological spin theta_a = exp(2 pi i h_a)."""
        return cmath.exp(2j * math.pi * self.conformal_weight(a))

    # -- braiding and recoupling data ---------------------------------------

    def r_symbol(self, a: Particle, b: Particle, c: Particle) -> complex:
        """R[a,b; c]; zero when c is not a fusion channel of a and b."""
        if not self.can_fuse(a, b, c):
            return 0j
        if a.is_vacuum or b.is_vacuum:
            return 1 + 0j
        return self._r(a, b, c)

    @functools.lru_cache(maxsize=None)
    def f_symbol(self, a, b, c, d, e, f) -> complex:
        """F[a,b,c,d; e,f]; zero unless all four vertices are admissible."""
        if not (self.can_fuse(a, b, e) and self.can_fuse(e, c, d)
                and self.can_fuse(b, c, f) and self.can_fuse(a, f, d)):
            return 0j
        if a.is_vacuum or b.is_vacuum or c.is_vacuum:
            return 1 + 0j
        return complex(self._f(a, b, c, d, e, f))

    def f_matrix(self, a, b, c, d) -> tuple[tuple[Particle, ...], tuple[Particle, ...], np.ndarray]:
        """F-matrix of (a, b, c; d) with rows e in a*b and columns f in b*c."""
        es = tuple(e for e in self.fusion_channels(a, b) if self.can_fuse(e, c, d))
        fs = tuple(f for f in self.fusion_channels(b, c) if self.can_fuse(a, f, d))
        mat = np.array(
            [[self.f_symbol(a, b, c, d, e, f) for f in fs] for e in es],
            dtype=complex,
        ).reshape(len(es), len(fs))
        return es, fs, mat

    def r_matrix(self, a, b) -> tuple[tuple[Particle, ...], np.ndarray]:
        """Diagonal R-matrix of (a, b) over the channels of a*b."""
        cs = self.fusion_channels(a, b)
        return cs, np.diag([self.r_symbol(a, b, c) for c in cs])


# ---------------------------------------------------------------------------
# Ising
# ---------------------------------------------------------------------------

_ISING_SIGMA_F = np.array([[1.0, 1.0], [1.0, -1.0]]) / math.sqrt(2.0)
_ISING_INDEX = {VACUUM: 0, PSI: 1}


class IsingTheory(AnyonTheory):
    """Ising anyons {1, sigma, psi} in the Kitaev gauge."""

    def __init__(self) -> None:
        super().__init__(AnyonType.ising())

    @property
    def particles(self) -> tuple[Particle, ...]:
        return (VACUUM, SIGMA, PSI)

    def _fuse(self, a, b):
        if a == VACUUM:
            return (b,)
        if b == VACUUM:
            return (a,)
        if a == SIGMA and b == SIGMA:
            return (VACUUM, PSI)
        if a == PSI and b == PSI:
            return (VACUUM,)
        return (SIGMA,)

    def _dimension(self, a):
        return math.sqrt(2.0) if a == SIGMA else 1.0

    def _weight(self, a):
        return {VACUUM: 0.0, SIGMA: 1.0 / 16.0, PSI: 0.5}[a]

    def _r(self, a, b, c):
        if a == SIGMA and b == SIGMA:
            return cmath.exp(-1j * math.pi / 8) if c == VACUUM else cmath.exp(3j * math.pi / 8)
        if a == PSI and b == PSI:
            return -1 + 0j
        return -1j

    def _f(self, a, b, c, d, e, f):
        if a == b == c == d == SIGMA:
            return _ISING_SIGMA_F[_ISING_INDEX[e], _ISING_INDEX[f]]
        if (a, b, c, d) in ((SIGMA, PSI, SIGMA, PSI), (PSI, SIGMA, PSI, SIGMA)):
            return -1.0
        return 1.0


# ---------------------------------------------------------------------------
# Fibonacci
# ---------------------------------------------------------------------------

_FIB_TAU_F = np.array([
    [1.0 / PHI, 1.0 / math.sqrt(PHI)],
    [1.0 / math.sqrt(PHI), -1.0 / PHI],
])
_FIB_INDEX = {VACUUM: 0, TAU: 1}


class FibonacciTheory(AnyonTheory):
    """Fibonacci anyons {1, tau} with tau x tau = 1 + tau."""

    def __init__(self) -> None:
        super().__init__(AnyonType.fibonacci())

    @property
    def particles(self) -> tuple[Particle, ...]:
        return (VACUUM, TAU)

    def _fuse(self, a, b):
        if a == VACUUM:
            return (b,)
        if b == VACUUM:
            return (a,)
        return (VACUUM, TAU)

    def _dimension(self, a):
        return PHI if a == TAU else 1.0

    def _weight(self, a):
        return 0.4 if a == TAU else 0.0

    def _r(self, a, b, c):
        return cmath.exp(-4j * math.pi / 5) if c == VACUUM else cmath.exp(3j * math.pi / 5)

    def _f(self, a, b, c, d, e, f):
        if d == TAU:
            return _FIB_TAU_F[_FIB_INDEX[e], _FIB_INDEX[f]]
        return 1.0


# ---------------------------------------------------------------------------
# SU(2)_k
# ---------------------------------------------------------------------------

class SU2Theory(AnyonTheory):
    """SU(2) at level k: spins 0, 1/2, ..., k/2 with truncated addition.

    F-symbols come from the quantum 6j-symbol at q = exp(2 pi i / (k+2)):

        F[a,b,c,d; e,f] = (-1)^(a+b+c+d) sqrt([2e+1][2f+1]) {a b e; c d f}_q
    """

    def __init__(self, level: int) -> None:
        self.level = level
        super().__init__(AnyonType.su2(level))
        self._angle = math.pi / (level + 2)

    @property
    def particles(self) -> tuple[Particle, ...]:
        return tuple(Particle.spin(t) for t in range(self.level + 1))

    def _fuse(self, a, b):
        ta, tb = a.twice_spin, b.twice_spin
        top = min(ta + tb, 2 * self.level - ta - tb)
        return tuple(Particle.spin(t) for t in range(abs(ta - tb), top + 1, 2))

    def _dimension(self, a):
        return math.sin((a.twice_spin + 1) * self._angle) / math.sin(self._angle)

    def _weight(self, a):
        t = a.twice_spin
        return t * (t + 2) / (4.0 * (self.level + 2))

    def _r(self, a, b, c):
        sign = -1.0 if ((c.twice_spin - a.twice_spin - b.twice_spin) // 2) % 2 else 1.0
        h = self.conformal_weight
        return sign * cmath.exp(1j * math.pi * (h(c) - h(a) - h(b)))

    # -- quantum integers ----------------------------------------------------

    def _qint(self, n: int) -> float:
        return math.sin(n * self._angle) / math.sin(self._angle)

    @functools.lru_cache(maxsize=None)
    def _qfact(self, n: int) -> float:
        result = 1.0
        for m in range(2, n + 1):
            result *= self._qint(m)
        return result

    def _delta(self, a: int, b: int, c: int) -> float:
        # twice-spin arguments of an admissible triad
        f = self._qfact
        num = f((a + b - c) // 2) * f((a - b + c) // 2) * f((b + c - a) // 2)
        return math.sqrt(num / f((a + b + c) // 2 + 1))

    def six_j(self, j1: int, j2: int, j3: int, j4: int, j5: int, j6: int) -> float:
        """Quantum 6j-symbol {j1 j2 j3; j4 j5 j6} on twice-spin arguments."""
        triads = ((j1, j2, j3), (j1, j5, j6), (j4, j2, j6), (j4, j5, j3))
        t = [sum(tr) // 2 for tr in triads]
        p = [(j1 + j2 + j4 + j5) // 2, (j2 + j3 + j5 + j6) // 2, (j3 + j1 + j6 + j4) // 2]
        f = self._qfact
        total = 0.0
        for z in range(max(t), min(p) + 1):
            den = 1.0
            for ti in t:
                den *= f(z - ti)
            for pj in p:
                den *= f(pj - z)
            total += (-1) ** z * f(z + 1) / den
        prefactor = 1.0
        for tr in triads:
            prefactor *= self._delta(*tr)
        return prefactor * total

    def _f(self, a, b, c, d, e, f):
        ta, tb, tc, td, te, tf = (x.twice_spin for x in (a, b, c, d, e, f))
        sign = -1.0 if ((ta + tb + tc + td) // 2) % 2 else 1.0
        norm = math.sqrt(self._qint(te + 1) * self._qint(tf + 1))
        return sign * norm * self.six_j(ta, tb, te, tc, td, tf)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=None)
def theory_for(anyon_type: AnyonType) -> AnyonTheory:
    """Return the (cached) theory implementing *anyon_type*."""
    if not isinstance(anyon_type, AnyonType):
        raise UnsupportedAnyonType(f"not an anyon type: {anyon_type!r}")
    if anyon_type.kind is AnyonKind.ISING:
        return IsingTheory()
    if anyon_type.kind is AnyonKind.FIBONACCI:
        return FibonacciTheory()
    if anyon_type.kind is AnyonKind.SU2:
        return SU2Theory(anyon_type.level)
    raise UnsupportedAnyonType(f"Unsupported anyon type: {anyon_type}")


def particles(anyon_type: AnyonType) -> tuple[Particle, ...]:
    return theory_for(anyon_type).particles


def fusion_channels(a: Particle, b: Particle, anyon_type: AnyonType) -> tuple[Particle, ...]:
    return theory_for(anyon_type).fusion_channels(a, b)


def quantum_dimension(particle: Particle, anyon_type: AnyonType) -> float:
    return theory_for(anyon_type).quantum_dimension(particle)


def total_quantum_dimension(anyon_type: AnyonType) -> float:
    """D = sqrt(sum_a d_a^2)."""
    return theory_for(anyon_type).total_quantum_dimension()


def fusion_probability(a: Particle, b: Particle, c: Particle, anyon_type: AnyonType) -> float:
    """Probability that unentangled a and b fuse to c: N_ab^c d_c / (d_a d_b)."""
    th = theory_for(anyon_type)
    return th.multiplicity(a, b, c) * th.quantum_dimension(c) / (
        th.quantum_dimension(a) * th.quantum_dimension(b)
    )


# ---------------------------------------------------------------------------
# Consistency checks
# ---------------------------------------------------------------------------

def f_matrices_unitary(anyon_type: AnyonType, tolerance: float | None = None) -> bool:
    """Every F-matrix F^{abc}_d satisfies F F^dagger = 1."""
    tol = resolve_tolerance(tolerance)
    th = theory_for(anyon_type)
    for a in th.particles:
        for b in th.particles:
            for c in th.particles:
                for d in th.particles:
                    _, _, mat = th.f_matrix(a, b, c, d)
                    if mat.size == 0:
                        continue
                    if mat.shape[0] != mat.shape[1]:
                        return False
                    if not np.allclose(mat @ mat.conj().T, np.eye(mat.shape[0]), atol=tol):
                        return False
    return True


def verify_pentagon(anyon_type: AnyonType, tolerance: float | None = None) -> bool:
    """F[f,c,d,e; g,l] F[a,b,l,e; f,k] = sum_h F[a,b,c,g; f,h] F[a,h,d,e; g,k] F[b,c,d,k; h,l]."""
    tol = resolve_tolerance(tolerance)
    th = theory_for(anyon_type)
    F = th.f_symbol
    ps = th.particles
    for a in ps:
        for b in ps:
            for c in ps:
                for d in ps:
                    for f in th.fusion_channels(a, b):
                        for g in th.fusion_channels(f, c):
                            for e in th.fusion_channels(g, d):
                                for l in th.fusion_channels(c, d):
                                    for k in th.fusion_channels(b, l):
                                        lhs = F(f, c, d, e, g, l) * F(a, b, l, e, f, k)
                                        rhs = sum(
                                            F(a, b, c, g, f, h) * F(a, h, d, e, g, k) * F(b, c, d, k, h, l)
                                            for h in th.fusion_channels(b, c)
                                        )
                                        if abs(lhs - rhs) > tol:
                                            return False
    return True


def verify_hexagon(anyon_type: AnyonType, tolerance: float | None = None) -> bool:
    """R[c,a;e] F[a,c,b,d; e,g] R[c,b;g] = sum_f F[c,a,b,d; e,f] R[c,f;d] F[a,b,c,d; f,g]."""
    tol = resolve_tolerance(tolerance)
    th = theory_for(anyon_type)
    F, R = th.f_symbol, th.r_symbol
    ps = th.particles
    for a in ps:
        for b in ps:
            for c in ps:
                for d in ps:
                    for e in th.fusion_channels(a, c):
                        for g in th.fusion_channels(c, b):
                            lhs = R(c, a, e) * F(a, c, b, d, e, g) * R(c, b, g)
                            rhs = sum(
                                F(c, a, b, d, e, f) * R(c, f, d) * F(a, b, c, d, f, g)
                                for f in th.fusion_channels(a, b)
                            )
                            if abs(lhs - rhs) > tol:
                                return False
    return True


def verify_ribbon(anyon_type: AnyonType, tolerance: float | None = None) -> bool:
    """R[a,b;c] R[b,a;c] = theta_c / (theta_a theta_b) for every channel."""
    tol = resolve_tolerance(tolerance)
    th = theory_for(anyon_type)
    for a in th.particles:
        for b in th.particles:
            for c in th.fusion_channels(a, b):
                monodromy = th.r_symbol(a, b, c) * th.r_symbol(b, a, c)
                expected = th.twist(c) / (th.twist(a) * th.twist(b))
                if abs(monodromy - expected) > tol:
                    return False
    return True
