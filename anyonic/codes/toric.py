"""Kitaev toric code on a periodic width x height lattice.

Qubits live on edges. Edge H(x, y) joins vertices (x, y) and (x+1, y);
edge V(x, y) joins (x, y) and (x, y+1). Plaquette (x, y) has lower-left
corner (x, y). All coordinates wrap modulo the lattice size.

  vertex (star) stabilizer    A_v = prod X   on H(x-1,y) H(x,y) V(x,y-1) V(x,y)
  plaquette stabilizer        B_p = prod Z   on H(x,y) H(x,y+1) V(x,y) V(x+1,y)

Z errors anticommute with A_v and leave electric (e) charges on vertices;
X errors anticommute with B_p and leave magnetic (m) fluxes on plaquettes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property

import numpy as np

Coordinate = tuple[int, int]


# ---------------------------------------------------------------------------
# Lattice
# ---------------------------------------------------------------------------

class Orientation(Enum):
    HORIZONTAL = "H"
    VERTICAL = "V"


class PauliKind(Enum):
    X = "X"
    Y = "Y"
    Z = "Z"


@dataclass(frozen=True)
class Edge:
    x: int
    y: int
    orientation: Orientation


@dataclass(frozen=True)
class ErrorEvent:
    """A single Pauli flip on one edge."""

    edge: Edge
    pauli: PauliKind


@dataclass(frozen=True)
class Lattice:
    width: int
    height: int

    def __post_init__(self) -> None:
        if self.width < 2 or self.height < 2:
            raise ValueError(f"toric lattice must be at least 2x2, got {self.width}x{self.height}")

    @property
    def physical_qubits(self) -> int:
        return 2 * self.width * self.height

    @property
    def logical_qubits(self) -> int:
        return 2

    @property
    def distance(self) -> int:
        return min(self.width, self.height)

    def wrap(self, x: int, y: int) -> Coordinate:
        return x % self.width, y % self.height

    def edge(self, x: int, y: int, orientation: Orientation) -> Edge:
        x, y = self.wrap(x, y)
        return Edge(x, y, orientation)

    def edge_index(self, edge: Edge) -> int:
        x, y = self.wrap(edge.x, edge.y)
        base = 0 if edge.orientation is Orientation.HORIZONTAL else self.width * self.height
        return base + y * self.width + x

    def edges(self) -> list[Edge]:
        return [
            Edge(x, y, o)
            for o in Orientation
            for y in range(self.height)
            for x in range(self.width)
        ]

    def sites(self) -> list[Coordinate]:
        """Vertex (and plaquette) coordinates in row-major order."""
        return [(x, y) for y in range(self.height) for x in range(self.width)]

    def vertex_edges(self, x: int, y: int) -> tuple[Edge, ...]:
        H, V = Orientation.HORIZONTAL, Orientation.VERTICAL
        return (self.edge(x - 1, y, H), self.edge(x, y, H), self.edge(x, y - 1, V), self.edge(x, y, V))

    def plaquette_edges(self, x: int, y: int) -> tuple[Edge, ...]:
        H, V = Orientation.HORIZONTAL, Orientation.VERTICAL
        return (self.edge(x, y, H), self.edge(x, y + 1, H), self.edge(x, y, V), self.edge(x + 1, y, V))

    @cached_property
    def vertex_stabilizers(self) -> np.ndarray:
        """(sites, 4) array of edge indices per star."""
        return np.array([[self.edge_index(e) for e in self.vertex_edges(x, y)] for x, y in self.sites()])

    @cached_property
    def plaquette_stabilizers(self) -> np.ndarray:
        return np.array([[self.edge_index(e) for e in self.plaquette_edges(x, y)] for x, y in self.sites()])


def create_lattice(width: int, height: int) -> Lattice:
    return Lattice(width, height)


def toric_distance(lattice: Lattice, p1: Coordinate, p2: Coordinate) -> int:
    """Lattice (Manhattan) distance with periodic wrap-around in both directions."""
    dx = abs(p1[0] - p2[0]) % lattice.width
    dy = abs(p1[1] - p2[1]) % lattice.height
    return min(dx, lattice.width - dx) + min(dy, lattice.height - dy)


# ---------------------------------------------------------------------------
# Code state and errors
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class ToricCodeState:
    """Pauli frame relative to the ground state: which edges carry X and Z flips."""

    lattice: Lattice
    x_flips: np.ndarray
    z_flips: np.ndarray

    def with_flip(self, edge: Edge, pauli: PauliKind) -> ToricCodeState:
        idx = self.lattice.edge_index(edge)
        x, z = self.x_flips.copy(), self.z_flips.copy()
        if pauli in (PauliKind.X, PauliKind.Y):
            x[idx] ^= True
        if pauli in (PauliKind.Z, PauliKind.Y):
            z[idx] ^= True
        x.setflags(write=False)
        z.setflags(write=False)
        return ToricCodeState(self.lattice, x, z)

    @property
    def error_weight(self) -> int:
        return int(np.count_nonzero(self.x_flips | self.z_flips))


def initialize_ground_state(lattice: Lattice) -> ToricCodeState:
    """Syndrome-free code state."""
    x = np.zeros(lattice.physical_qubits, dtype=bool)
    z = np.zeros(lattice.physical_qubits, dtype=bool)
    x.setflags(write=False)
    z.setflags(write=False)
    return ToricCodeState(lattice, x, z)


def apply_x_error(state: ToricCodeState, edge: Edge) -> ToricCodeState:
    return state.with_flip(edge, PauliKind.X)


def apply_z_error(state: ToricCodeState, edge: Edge) -> ToricCodeState:
    return state.with_flip(edge, PauliKind.Z)


def apply_error(state: ToricCodeState, event: ErrorEvent) -> ToricCodeState:
    return state.with_flip(event.edge, event.pauli)


def apply_random_errors(
    state: ToricCodeState,
    rng: np.random.Generator,
    error_rate: float,
) -> tuple[ToricCodeState, list[ErrorEvent]]:
    """Independent X and Z flips on every edge, each with probability *error_rate*."""
    if not 0.0 <= error_rate <= 1.0:
        raise ValueError(f"error rate must lie in [0, 1], got {error_rate}")
    lattice = state.lattice
    edges = lattice.edges()
    x_hits = rng.random(len(edges)) < error_rate
    z_hits = rng.random(len(edges)) < error_rate
    events = []
    for edge, hx, hz in zip(edges, x_hits, z_hits):
        if hx:
            events.append(ErrorEvent(edge, PauliKind.X))
        if hz:
            events.append(ErrorEvent(edge, PauliKind.Z))
    for event in events:
        state = apply_error(state, event)
    return state, events


# ---------------------------------------------------------------------------
# Syndrome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Syndrome:
    """Violated stabilizers: stars (electric) and plaquettes (magnetic)."""

    vertices: frozenset[Coordinate] = field(default_factory=frozenset)
    plaquettes: frozenset[Coordinate] = field(default_factory=frozenset)

    @property
    def is_trivial(self) -> bool:
        return not self.vertices and not self.plaquettes

    @property
    def weight(self) -> int:
        return len(self.vertices) + len(self.plaquettes)


def measure_syndrome(state: ToricCodeState) -> Syndrome:
    """Recompute every star and plaquette parity from the current flips."""
    lattice = state.lattice
    sites = lattice.sites()
    star = np.bitwise_xor.reduce(state.z_flips[lattice.vertex_stabilizers], axis=1)
    plaq = np.bitwise_xor.reduce(state.x_flips[lattice.plaquette_stabilizers], axis=1)
    return Syndrome(
        frozenset(sites[i] for i in np.flatnonzero(star)),
        frozenset(sites[i] for i in np.flatnonzero(plaq)),
    )


def get_electric_excitations(syndrome: Syndrome) -> list[Coordinate]:
    """e-anyon positions (violated stars), sorted."""
    return sorted(syndrome.vertices)


def get_magnetic_excitations(syndrome: Syndrome) -> list[Coordinate]:
    """m-anyon positions (violated plaquettes), sorted."""
    return sorted(syndrome.plaquettes)


def logical_parities(state: ToricCodeState) -> tuple[int, int, int, int]:
    """Winding parities (Z horizontal, Z vertical, X horizontal, X vertical).

    Counts flips crossing one fixed cut per direction; for a syndrome-free
    frame the result is independent of the cut chosen.
    """
    lat = state.lattice
    H, V = Orientation.HORIZONTAL, Orientation.VERTICAL
    column_h = [lat.edge_index(Edge(0, y, H)) for y in range(lat.height)]
    row_v = [lat.edge_index(Edge(x, 0, V)) for x in range(lat.width)]
    column_v = [lat.edge_index(Edge(0, y, V)) for y in range(lat.height)]
    row_h = [lat.edge_index(Edge(x, 0, H)) for x in range(lat.width)]
    return (
        int(np.count_nonzero(state.z_flips[column_h]) % 2),
        int(np.count_nonzero(state.z_flips[row_v]) % 2),
        int(np.count_nonzero(state.x_flips[column_v]) % 2),
        int(np.count_nonzero(state.x_flips[row_h]) % 2),
    )


def has_logical_error(state: ToricCodeState) -> bool:
    return any(logical_parities(state))


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

def _steps(a: int, b: int, size: int) -> int:
    """Signed shortest step count from a to b on a ring."""
    d = (b - a) % size
    return d if d <= size - d else d - size


def _vertex_path(lattice: Lattice, p1: Coordinate, p2: Coordinate) -> list[Edge]:
    """Edges of a shortest primal path between two vertices."""
    H, V = Orientation.HORIZONTAL, Orientation.VERTICAL
    (x, y), path = p1, []
    dx = _steps(p1[0], p2[0], lattice.width)
    for _ in range(abs(dx)):
        if dx > 0:
            path.append(lattice.edge(x, y, H))
            x += 1
        else:
            path.append(lattice.edge(x - 1, y, H))
            x -= 1
    dy = _steps(p1[1], p2[1], lattice.height)
    for _ in range(abs(dy)):
        if dy > 0:
            path.append(lattice.edge(x, y, V))
            y += 1
        else:
            path.append(lattice.edge(x, y - 1, V))
            y -= 1
    return path


def _plaquette_path(lattice: Lattice, p1: Coordinate, p2: Coordinate) -> list[Edge]:
    """Edges crossed by a shortest dual path between two plaquettes."""
    H, V = Orientation.HORIZONTAL, Orientation.VERTICAL
    (x, y), path = p1, []
    dx = _steps(p1[0], p2[0], lattice.width)
    for _ in range(abs(dx)):
        if dx > 0:
            path.append(lattice.edge(x + 1, y, V))
            x += 1
        else:
            path.append(lattice.edge(x, y, V))
            x -= 1
    dy = _steps(p1[1], p2[1], lattice.height)
    for _ in range(abs(dy)):
        if dy > 0:
            path.append(lattice.edge(x, y + 1, H))
            y += 1
        else:
            path.append(lattice.edge(x, y, H))
            y -= 1
    return path


def _greedy_pairs(lattice: Lattice, defects: list[Coordinate]) -> list[tuple[Coordinate, Coordinate]]:
    candidates = sorted(
        (toric_distance(lattice, a, b), a, b)
        for i, a in enumerate(defects)
        for b in defects[i + 1:]
    )
    used: set[Coordinate] = set()
    pairs = []
    for _, a, b in candidates:
        if a in used or b in used:
            continue
        used.update((a, b))
        pairs.append((a, b))
    return pairs


def decode(lattice: Lattice, syndrome: Syndrome) -> list[ErrorEvent]:
    """Greedy matching: pair the closest defects and join them with shortest strings."""
    events = []
    for a, b in _greedy_pairs(lattice, get_electric_excitations(syndrome)):
        events.extend(ErrorEvent(e, PauliKind.Z) for e in _vertex_path(lattice, a, b))
    for a, b in _greedy_pairs(lattice, get_magnetic_excitations(syndrome)):
        events.extend(ErrorEvent(e, PauliKind.X) for e in _plaquette_path(lattice, a, b))
    return events


def correct(state: ToricCodeState) -> ToricCodeState:
    """Measure, decode and apply the correction; the result is syndrome-free."""
    for event in decode(state.lattice, measure_syndrome(state)):
        state = apply_error(state, event)
    return state
