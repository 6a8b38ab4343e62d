"""Superpositions of fusion trees: the quantum state of an anyon system.

A ``Superposition`` is an immutable tuple of (amplitude, tree) terms that
share one leaf sequence and one anyon type. Construction through
``Superposition.from_terms`` merges equal trees, prunes vanishing
amplitudes and renormalizes, so every state handed out is normalized.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Iterator

import numpy as np

from anyonic.core.anyons import AnyonType, Particle
from anyonic.core.errors import IncompatibleTerms, NumericalInstability
from anyonic.core.fusion_tree import FusionTree, create
from anyonic.core.settings import get_amplitude_cutoff, resolve_tolerance

Term = tuple[complex, FusionTree]


@dataclass(frozen=True)
class Superposition:
    """Normalized list of (amplitude, FusionTree) terms."""

    terms: tuple[Term, ...]
    anyon_type: AnyonType

    @classmethod
    def from_terms(
        cls,
        terms: Iterable[Term],
        anyon_type: AnyonType,
        *,
        validate: bool = False,
    ) -> Superposition:
        """Combine like trees, drop zero terms and renormalize.

        Raises:
            IncompatibleTerms: no terms, or terms with different leaf sequences.
            NumericalInstability: every amplitude cancelled.
        """
        combined: dict[FusionTree, complex] = {}
        leaves: tuple[Particle, ...] | None = None
        for amp, tree in terms:
            if leaves is None:
                leaves = tree.leaves
            elif tree.leaves != leaves:
                raise IncompatibleTerms(
                    f"leaf sequence {_fmt(tree.leaves)} differs from {_fmt(leaves)}"
                )
            if validate:
                create(tree, anyon_type)
            combined[tree] = combined.get(tree, 0j) + complex(amp)
        if leaves is None:
            raise IncompatibleTerms("a superposition needs at least one term")

        cutoff = get_amplitude_cutoff()
        kept = [(amp, tree) for tree, amp in combined.items() if abs(amp) > cutoff]
        norm = math.sqrt(sum(abs(amp) ** 2 for amp, _ in kept))
        if not kept or norm <= cutoff:
            raise NumericalInstability("normalization", 1.0 - norm, cutoff)
        return cls(tuple((amp / norm, tree) for amp, tree in kept), anyon_type)

    # -- views ---------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[Term]:
        return iter(self.terms)

    @property
    def leaves(self) -> tuple[Particle, ...]:
        return self.terms[0][1].leaves

    @property
    def anyon_count(self) -> int:
        return len(self.leaves)

    @property
    def trees(self) -> tuple[FusionTree, ...]:
        return tuple(tree for _, tree in self.terms)

    @property
    def amplitudes(self) -> np.ndarray:
        return np.array([amp for amp, _ in self.terms], dtype=complex)

    @property
    def probabilities(self) -> np.ndarray:
        """Born rule: |amplitude|^2 per term."""
        return np.abs(self.amplitudes) ** 2

    @property
    def norm(self) -> float:
        return float(np.sqrt(self.probabilities.sum()))

    def is_normalized(self, tolerance: float | None = None) -> bool:
        return abs(self.norm - 1.0) <= resolve_tolerance(tolerance)

    def amplitude(self, tree: FusionTree) -> complex:
        """Amplitude of *tree* (0 when absent)."""
        for amp, t in self.terms:
            if t == tree:
                return amp
        return 0j

    def overlap(self, other: Superposition) -> complex:
        """Inner product <self|other>."""
        mine = {tree: amp for amp, tree in self.terms}
        return sum(
            (mine[tree].conjugate() * amp for amp, tree in other.terms if tree in mine),
            0j,
        )

    def __str__(self) -> str:
        return " + ".join(f"({amp:.4g})|{tree}>" for amp, tree in self.terms)


def _fmt(leaves: tuple[Particle, ...]) -> str:
    return "[" + ", ".join(str(p) for p in leaves) + "]"


# ---------------------------------------------------------------------------
# Constructors
# ---------------------------------------------------------------------------

def pure_state(tree: FusionTree, anyon_type: AnyonType) -> Superposition:
    """Single validated tree with amplitude 1."""
    create(tree, anyon_type)
    return Superposition(((1 + 0j, tree),), anyon_type)


def uniform(trees: Iterable[FusionTree], anyon_type: AnyonType) -> Superposition:
    """Equal-weight (1/sqrt(n)) superposition of distinct valid trees."""
    trees = list(dict.fromkeys(trees))
    if not trees:
        raise IncompatibleTerms("a superposition needs at least one term")
    for tree in trees:
        create(tree, anyon_type)
    amp = 1.0 / math.sqrt(len(trees))
    return Superposition.from_terms(((amp, t) for t in trees), anyon_type)
