"""Anyon types and particle labels.

An ``AnyonType`` names one theory in the closed catalogue
(Ising, Fibonacci, SU(2)_k). A ``Particle`` is a charge label; which
labels are legal, and how they fuse, is decided by the theory
(see ``anyonic.core.theories``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction

from anyonic.core.errors import UnsupportedAnyonType


# ---------------------------------------------------------------------------
# AnyonType
# ---------------------------------------------------------------------------

class AnyonKind(Enum):
    ISING = "ising"
    FIBONACCI = "fibonacci"
    SU2 = "su2"


_SU2_PATTERN = re.compile(r"su\(?2\)?_(\d+)$")


@dataclass(frozen=True)
class AnyonType:
    """One theory of the catalogue. ``level`` is set for SU(2)_k only."""

    kind: AnyonKind
    level: int | None = None

    def __post_init__(self) -> None:
        if self.kind is AnyonKind.SU2:
            if not isinstance(self.level, int) or self.level < 1:
                raise UnsupportedAnyonType(f"SU(2)_k needs an integer level k >= 1, got {self.level!r}")
        elif self.level is not None:
            raise UnsupportedAnyonType(f"{self.kind.value} anyons take no level")

    @classmethod
    def ising(cls) -> AnyonType:
        return cls(AnyonKind.ISING)

    @classmethod
    def fibonacci(cls) -> AnyonType:
        return cls(AnyonKind.FIBONACCI)

    @classmethod
    def su2(cls, level: int) -> AnyonType:
        return cls(AnyonKind.SU2, level)

    @classmethod
    def parse(cls, text: str) -> AnyonType:
        """Parse ``Ising``, ``Fibonacci`` or ``SU2_k`` (case-insensitive)."""
        name = text.strip().lower()
        if name == "ising":
            return cls.ising()
        if name == "fibonacci":
            return cls.fibonacci()
        match = _SU2_PATTERN.match(name)
        if match:
            return cls.su2(int(match.group(1)))
        raise UnsupportedAnyonType(f"Unknown anyon type: {text!r}")

    def __str__(self) -> str:
        if self.kind is AnyonKind.ISING:
            return "Ising"
        if self.kind is AnyonKind.FIBONACCI:
            return "Fibonacci"
        return f"SU2_{self.level}"


ISING = AnyonType.ising()
FIBONACCI = AnyonType.fibonacci()


# ---------------------------------------------------------------------------
# Particle
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Particle:
    """A charge label.

    SU(2)_k labels carry ``twice_spin`` (2j) so that spin arithmetic stays
    in integers; the shared vacuum doubles as spin 0.
    """

    name: str
    twice_spin: int | None = None

    @classmethod
    def spin(cls, twice_spin: int) -> Particle:
        """SU(2)_k particle of spin ``twice_spin / 2``."""
        if twice_spin < 0:
            raise ValueError(f"spin must be non-negative, got {twice_spin}/2")
        if twice_spin == 0:
            return VACUUM
        return cls(f"j={Fraction(twice_spin, 2)}", twice_spin)

    @property
    def is_vacuum(self) -> bool:
        return self == VACUUM

    @property
    def spin_value(self) -> float:
        """Spin j as a float (0 for non-SU(2) labels other than the vacuum)."""
        return self.twice_spin / 2 if self.twice_spin is not None else 0.0

    def __str__(self) -> str:
        return self.name


VACUUM = Particle("1", 0)
SIGMA = Particle("sigma")
PSI = Particle("psi")
TAU = Particle("tau")
