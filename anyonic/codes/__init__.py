"""Error-correcting codes and magic-state distillation."""

from anyonic.codes.toric import (
    Lattice,
    Edge,
    Orientation,
    PauliKind,
    ErrorEvent,
    ToricCodeState,
    Syndrome,
    create_lattice,
    initialize_ground_state,
    apply_x_error,
    apply_z_error,
    measure_syndrome,
    get_electric_excitations,
    get_magnetic_excitations,
    toric_distance,
    decode,
    correct,
)
from anyonic.codes.distillation import (
    MagicState,
    DistillationResult,
    prepare_noisy_magic_state,
    distill_15_to_1,
    distill_iterative,
    apply_t_gate,
    estimate_resources,
)

__all__ = [
    "Lattice", "Edge", "Orientation", "PauliKind", "ErrorEvent",
    "ToricCodeState", "Syndrome",
    "create_lattice", "initialize_ground_state", "apply_x_error", "apply_z_error",
    "measure_syndrome", "get_electric_excitations", "get_magnetic_excitations",
    "toric_distance", "decode", "correct",
    "MagicState", "DistillationResult", "prepare_noisy_magic_state",
    "distill_15_to_1", "distill_iterative", "apply_t_gate", "estimate_resources",
]
