"""Fusion trees: immutable binary trees of anyon charges.

A tree is either a ``Leaf`` holding an input particle or a ``Fusion`` node
holding the outcome of fusing its two subtrees. Trees are frozen and
hashable; transformations build new nodes and share untouched subtrees.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from typing import Iterator, Sequence, Union

from anyonic.core.anyons import AnyonType, Particle
from anyonic.core.errors import InvalidFusionTree
from anyonic.core.theories import theory_for


# ---------------------------------------------------------------------------
# Node types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Leaf:
    """An input anyon."""

    particle: Particle

    @property
    def charge(self) -> Particle:
        return self.particle

    @property
    def leaves(self) -> tuple[Particle, ...]:
        return (self.particle,)

    @property
    def size(self) -> int:
        return 1

    @property
    def depth(self) -> int:
        return 0

    def __str__(self) -> str:
        return str(self.particle)


@dataclass(frozen=True)
class Fusion:
    """Internal node: ``left`` and ``right`` fuse to ``outcome``."""

    left: FusionTree
    right: FusionTree
    outcome: Particle

    @property
    def charge(self) -> Particle:
        return self.outcome

    @cached_property
    def leaves(self) -> tuple[Particle, ...]:
        return self.left.leaves + self.right.leaves

    @cached_property
    def size(self) -> int:
        return self.left.size + self.right.size

    @cached_property
    def depth(self) -> int:
        return 1 + max(self.left.depth, self.right.depth)

    def __str__(self) -> str:
        return f"({self.left} x {self.right})->{self.outcome}"


FusionTree = Union[Leaf, Fusion]


# ---------------------------------------------------------------------------
# Construction and validation
# ---------------------------------------------------------------------------

def leaf(particle: Particle) -> Leaf:
    return Leaf(particle)


def fuse(left: FusionTree, right: FusionTree, outcome: Particle) -> Fusion:
    """Build a node without validation; see ``create``."""
    return Fusion(left, right, outcome)


def nodes(tree: FusionTree) -> Iterator[FusionTree]:
    """Post-order traversal (children before parents)."""
    if isinstance(tree, Fusion):
        yield from nodes(tree.left)
        yield from nodes(tree.right)
    yield tree


def create(tree: FusionTree, anyon_type: AnyonType) -> FusionTree:
    """Validate every node of *tree* against the fusion rules.

    Returns the tree unchanged on success.

    Raises:
        InvalidFusionTree: on the first offending node (``exc.node``).
    """
    th = theory_for(anyon_type)
    for node in nodes(tree):
        if isinstance(node, Leaf):
            if node.particle not in th.particles:
                raise InvalidFusionTree(
                    f"{node.particle} is not a particle of {anyon_type}", node
                )
            continue
        channels = th.fusion_channels(node.left.charge, node.right.charge)
        if node.outcome not in channels:
            allowed = ", ".join(str(c) for c in channels)
            raise InvalidFusionTree(
                f"{node.left.charge} x {node.right.charge} cannot fuse to "
                f"{node.outcome} (allowed: {allowed})",
                node,
            )
    return tree


def is_valid(tree: FusionTree, anyon_type: AnyonType) -> bool:
    try:
        create(tree, anyon_type)
    except InvalidFusionTree:
        return False
    return True


def total_charge(tree: FusionTree) -> Particle:
    return tree.charge


def leaf_count(tree: FusionTree) -> int:
    return tree.size


# ---------------------------------------------------------------------------
# Enumeration
# ---------------------------------------------------------------------------

def left_chain(particles: Sequence[Particle], outcomes: Sequence[Particle]) -> FusionTree:
    """Left-associated tree ((p0 p1)_o0 p2)_o1 ... with the given outcomes."""
    if not particles:
        raise ValueError("a fusion tree needs at least one leaf")
    if len(outcomes) != len(particles) - 1:
        raise ValueError(
            f"{len(particles)} leaves need {len(particles) - 1} outcomes, got {len(outcomes)}"
        )
    tree: FusionTree = Leaf(particles[0])
    for p, out in zip(particles[1:], outcomes):
        tree = Fusion(tree, Leaf(p), out)
    return tree


def all_trees(
    particles: Sequence[Particle],
    anyon_type: AnyonType,
    total: Particle | None = None,
) -> list[FusionTree]:
    """Every valid left-associated tree over *particles* (optionally with a fixed total)."""
    th = theory_for(anyon_type)
    if not particles:
        return []
    partial: list[FusionTree] = [Leaf(th.check(particles[0]))]
    for p in particles[1:]:
        th.check(p)
        partial = [
            Fusion(tree, Leaf(p), c)
            for tree in partial
            for c in th.fusion_channels(tree.charge, p)
        ]
    if total is not None:
        partial = [t for t in partial if t.charge == total]
    return partial


def fusion_space_dimension(
    particles: Sequence[Particle],
    anyon_type: AnyonType,
    total: Particle | None = None,
) -> int:
    """Dimension of the fusion space, counted without building trees."""
    th = theory_for(anyon_type)
    if not particles:
        return 0
    counts = {th.check(particles[0]): 1}
    for p in particles[1:]:
        nxt: dict[Particle, int] = {}
        for charge, n in counts.items():
            for c in th.fusion_channels(charge, p):
                nxt[c] = nxt.get(c, 0) + n
        counts = nxt
    if total is not None:
        return counts.get(total, 0)
    return sum(counts.values())
