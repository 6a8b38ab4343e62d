"""Braiding, F-moves and fusion measurement over superpositions.

All operations are pure: they take a ``Superposition`` and return a new
one. Braiding anyons that are not fused directly in the current bracketing
first re-associates the tree with F-moves, applies the R-symbol phase, and
moves back, so the number of terms can grow.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

import numpy as np

from anyonic.core.anyons import AnyonType, Particle
from anyonic.core.errors import IndexOutOfRange, UnsupportedOperation
from anyonic.core.fusion_tree import Fusion, FusionTree, Leaf
from anyonic.core.settings import get_amplitude_cutoff
from anyonic.core.superposition import Superposition, Term, pure_state
from anyonic.core.theories import AnyonTheory, theory_for


class FMoveDirection(Enum):
    LEFT_TO_RIGHT = "left_to_right"   # ((a b)_e c)_d -> (a (b c)_f)_d
    RIGHT_TO_LEFT = "right_to_left"   # (a (b c)_f)_d -> ((a b)_e c)_d


# ---------------------------------------------------------------------------
# F-moves
# ---------------------------------------------------------------------------

def f_move_node(node: FusionTree, direction: FMoveDirection, theory: AnyonTheory) -> list[Term]:
    """Re-associate the three subtrees directly under *node*."""
    if direction is FMoveDirection.LEFT_TO_RIGHT:
        if not (isinstance(node, Fusion) and isinstance(node.left, Fusion)):
            raise UnsupportedOperation("left-to-right F-move needs a node of the form ((a b) c)")
        A, B, C = node.left.left, node.left.right, node.right
        a, b, c, d, e = A.charge, B.charge, C.charge, node.outcome, node.left.outcome
        out = []
        for f in theory.fusion_channels(b, c):
            coeff = theory.f_symbol(a, b, c, d, e, f)
            if coeff != 0:
                out.append((coeff, Fusion(A, Fusion(B, C, f), d)))
        return out

    if not (isinstance(node, Fusion) and isinstance(node.right, Fusion)):
        raise UnsupportedOperation("right-to-left F-move needs a node of the form (a (b c))")
    A, B, C = node.left, node.right.left, node.right.right
    a, b, c, d, f = A.charge, B.charge, C.charge, node.outcome, node.right.outcome
    out = []
    for e in theory.fusion_channels(a, b):
        # F is unitary, so the inverse move uses the conjugate transpose.
        coeff = theory.f_symbol(a, b, c, d, e, f).conjugate()
        if coeff != 0:
            out.append((coeff, Fusion(Fusion(A, B, e), C, d)))
    return out


def _at_depth(tree: FusionTree, depth: int, direction: FMoveDirection, theory: AnyonTheory) -> list[Term]:
    if depth == 0:
        return f_move_node(tree, direction, theory)
    if not isinstance(tree, Fusion):
        raise IndexOutOfRange("F-move depth exceeds the left spine of the tree")
    return [
        (amp, Fusion(sub, tree.right, tree.outcome))
        for amp, sub in _at_depth(tree.left, depth - 1, direction, theory)
    ]


def f_move_tree(
    tree: FusionTree,
    direction: FMoveDirection,
    anyon_type: AnyonType,
    depth: int = 0,
) -> list[Term]:
    """F-move at the node *depth* steps down the left spine of *tree*."""
    if depth < 0:
        raise IndexOutOfRange(f"F-move depth must be non-negative, got {depth}")
    return _at_depth(tree, depth, direction, theory_for(anyon_type))


def f_move(state: Superposition, direction: FMoveDirection, depth: int = 0) -> Superposition:
    """Apply the same F-move to every term of *state* (a change of basis)."""
    terms = [
        (amp * coeff, new)
        for amp, tree in state.terms
        for coeff, new in f_move_tree(tree, direction, state.anyon_type, depth)
    ]
    return Superposition.from_terms(terms, state.anyon_type)


# ---------------------------------------------------------------------------
# Braiding
# ---------------------------------------------------------------------------

def _exchange(node: FusionTree, i: int, theory: AnyonTheory, clockwise: bool) -> list[Term]:
    # Exchange leaves i and i+1 (relative to node), keeping the bracketing.
    left, right = node.left, node.right
    n = left.size
    if i + 1 < n:
        return [(amp, Fusion(t, right, node.outcome)) for amp, t in _exchange(left, i, theory, clockwise)]
    if i >= n:
        return [(amp, Fusion(left, t, node.outcome)) for amp, t in _exchange(right, i - n, theory, clockwise)]

    if isinstance(left, Leaf) and isinstance(right, Leaf):
        a, b, c = left.particle, right.particle, node.outcome
        phase = theory.r_symbol(a, b, c) if clockwise else theory.r_symbol(b, a, c).conjugate()
        return [(phase, Fusion(right, left, c))]

    out = []
    if isinstance(left, Fusion):
        pivot = left.right.size - 1
        for amp, moved in f_move_node(node, FMoveDirection.LEFT_TO_RIGHT, theory):
            for amp2, swapped in _exchange(moved.right, pivot, theory, clockwise):
                back = Fusion(moved.left, swapped, moved.outcome)
                for amp3, restored in f_move_node(back, FMoveDirection.RIGHT_TO_LEFT, theory):
                    out.append((amp * amp2 * amp3, restored))
    else:
        for amp, moved in f_move_node(node, FMoveDirection.RIGHT_TO_LEFT, theory):
            for amp2, swapped in _exchange(moved.left, 0, theory, clockwise):
                back = Fusion(swapped, moved.right, moved.outcome)
                for amp3, restored in f_move_node(back, FMoveDirection.LEFT_TO_RIGHT, theory):
                    out.append((amp * amp2 * amp3, restored))
    return out


def _check_pair_index(state: Superposition, index: int) -> None:
    n = state.anyon_count
    if not 0 <= index < n - 1:
        raise IndexOutOfRange(f"anyon pair index {index} out of range for {n} anyons")


def braid(state: Superposition, index: int, clockwise: bool = True) -> Superposition:
    """Exchange anyons *index* and *index + 1*.

    The clockwise exchange multiplies a directly fused pair (a b)_c by
    R[a,b; c]; the counter-clockwise exchange is its inverse.

    Raises:
        IndexOutOfRange: *index* does not name an adjacent pair.
        UnsupportedAnyonConfiguration: F-symbols are missing for a needed move.
    """
    _check_pair_index(state, index)
    theory = theory_for(state.anyon_type)
    terms = [
        (amp * coeff, new)
        for amp, tree in state.terms
        for coeff, new in _exchange(tree, index, theory, clockwise)
    ]
    return Superposition.from_terms(terms, state.anyon_type)


def braid_word(state: Superposition, word: Iterable[tuple[int, bool]]) -> Superposition:
    """Apply a sequence of (index, clockwise) exchanges, leftmost first."""
    for index, clockwise in word:
        state = braid(state, index, clockwise)
    return state


# ---------------------------------------------------------------------------
# Fusion measurement
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MeasurementOutcome:
    """One branch of a fusion measurement.

    ``state`` is the collapsed, renormalized superposition expressed in a
    basis where the measured pair is fused directly; ``None`` when the
    branch has probability zero.
    """

    outcome: Particle
    probability: float
    state: Superposition | None


def _adjoin(node: FusionTree, i: int, theory: AnyonTheory) -> list[Term]:
    # Re-associate until leaves i and i+1 hang from one node.
    left, right = node.left, node.right
    n = left.size
    if i + 1 < n:
        return [(amp, Fusion(t, right, node.outcome)) for amp, t in _adjoin(left, i, theory)]
    if i >= n:
        return [(amp, Fusion(left, t, node.outcome)) for amp, t in _adjoin(right, i - n, theory)]
    if isinstance(left, Leaf) and isinstance(right, Leaf):
        return [(1 + 0j, node)]
    out = []
    if isinstance(left, Fusion):
        pivot = left.right.size - 1
        for amp, moved in f_move_node(node, FMoveDirection.LEFT_TO_RIGHT, theory):
            for amp2, t in _adjoin(moved.right, pivot, theory):
                out.append((amp * amp2, Fusion(moved.left, t, moved.outcome)))
    else:
        for amp, moved in f_move_node(node, FMoveDirection.RIGHT_TO_LEFT, theory):
            for amp2, t in _adjoin(moved.left, 0, theory):
                out.append((amp * amp2, Fusion(t, moved.right, moved.outcome)))
    return out


def pair_channel(tree: FusionTree, index: int) -> Particle | None:
    """Channel of the node fusing leaves index, index+1, or None if they are not paired."""
    node = tree
    while isinstance(node, Fusion):
        n = node.left.size
        if index + 1 < n:
            node = node.left
        elif index >= n:
            node, index = node.right, index - n
        elif isinstance(node.left, Leaf) and isinstance(node.right, Leaf):
            return node.outcome
        else:
            return None
    return None


def measure_fusion(
    state: Superposition | FusionTree,
    index: int,
    anyon_type: AnyonType | None = None,
) -> list[MeasurementOutcome]:
    """Every fusion-channel outcome of anyons *index* and *index + 1*.

    A bare tree is treated as a pure state (``anyon_type`` required). Terms
    are rotated into a basis where the pair is fused, equal trees are
    combined so interference is respected, and each channel's probability
    is the summed |amplitude|^2 of its terms.

    Returns:
        One ``MeasurementOutcome`` per channel of a x b, in catalogue order.
    """
    if isinstance(state, (Leaf, Fusion)):
        if anyon_type is None:
            raise ValueError("measuring a bare tree needs its anyon_type")
        state = pure_state(state, anyon_type)
    _check_pair_index(state, index)
    theory = theory_for(state.anyon_type)

    combined: dict[FusionTree, complex] = {}
    for amp, tree in state.terms:
        for coeff, rotated in _adjoin(tree, index, theory):
            combined[rotated] = combined.get(rotated, 0j) + amp * coeff

    cutoff = get_amplitude_cutoff()
    total = sum(abs(amp) ** 2 for amp in combined.values())
    a, b = state.leaves[index], state.leaves[index + 1]
    results = []
    for channel in theory.fusion_channels(a, b):
        branch = [
            (amp, tree) for tree, amp in combined.items()
            if abs(amp) > cutoff and pair_channel(tree, index) == channel
        ]
        if not branch:
            results.append(MeasurementOutcome(channel, 0.0, None))
            continue
        weight = sum(abs(amp) ** 2 for amp, _ in branch) / total
        results.append(MeasurementOutcome(
            channel, float(weight), Superposition.from_terms(branch, state.anyon_type),
        ))
    return results


def sample_fusion(
    state: Superposition,
    index: int,
    rng: np.random.Generator,
) -> MeasurementOutcome:
    """Draw one outcome of ``measure_fusion`` using *rng*."""
    outcomes = measure_fusion(state, index)
    probs = np.array([o.probability for o in outcomes])
    probs = probs / probs.sum()
    return outcomes[int(rng.choice(len(outcomes), p=probs))]
