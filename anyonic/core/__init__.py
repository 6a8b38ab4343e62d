"""Anyonic core: anyon theories, fusion trees, superpositions, operations, modular data, program format."""

from anyonic.core.anyons import AnyonKind, AnyonType, Particle, ISING, FIBONACCI, VACUUM, SIGMA, PSI, TAU
from anyonic.core.errors import (
    TopologicalError,
    UnsupportedAnyonType,
    InvalidFusionTree,
    IndexOutOfRange,
    UnsupportedOperation,
    CompilationError,
    UnsupportedAnyonConfiguration,
    CapacityExceeded,
    ParseError,
    IncompatibleTerms,
    InsufficientInput,
    NumericalInstability,
)
from anyonic.core.theories import (
    AnyonTheory,
    theory_for,
    particles,
    fusion_channels,
    quantum_dimension,
    total_quantum_dimension,
    fusion_probability,
)
from anyonic.core.fusion_tree import Leaf, Fusion, FusionTree, leaf, fuse, create
from anyonic.core.superposition import Superposition, pure_state, uniform
from anyonic.core.operations import (
    FMoveDirection,
    MeasurementOutcome,
    braid,
    f_move,
    measure_fusion,
    sample_fusion,
)
from anyonic.core.modular import ModularData, compute_modular_data, ground_state_degeneracy
from anyonic.core.program import Program, Initialize, Braid, Measure, FMove, Gate, Comment
from anyonic.core.dsl import parse, serialize

__all__ = [
    "AnyonKind", "AnyonType", "Particle", "ISING", "FIBONACCI",
    "VACUUM", "SIGMA", "PSI", "TAU",
    # errors
    "TopologicalError", "UnsupportedAnyonType", "InvalidFusionTree",
    "IndexOutOfRange", "UnsupportedOperation", "CompilationError",
    "UnsupportedAnyonConfiguration", "CapacityExceeded", "ParseError",
    "IncompatibleTerms", "InsufficientInput", "NumericalInstability",
    # anyon model
    "AnyonTheory", "theory_for", "particles", "fusion_channels",
    "quantum_dimension", "total_quantum_dimension", "fusion_probability",
    # trees and states
    "Leaf", "Fusion", "FusionTree", "leaf", "fuse", "create",
    "Superposition", "pure_state", "uniform",
    "FMoveDirection", "MeasurementOutcome", "braid", "f_move",
    "measure_fusion", "sample_fusion",
    # modular data
    "ModularData", "compute_modular_data", "ground_state_degeneracy",
    # programs
    "Program", "Initialize", "Braid", "Measure", "FMove", "Gate", "Comment",
    "parse", "serialize",
]
