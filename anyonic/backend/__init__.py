"""Topological backend: interchange states, gate compilation, program execution."""

from anyonic.backend.states import (
    SuperpositionHandle,
    StateVector,
    to_interface,
    from_interface,
    to_state_vector,
    from_state_vector,
)
from anyonic.backend.compiler import CompiledGate, braids_to_gates, compile_gate, simplify_steps
from anyonic.backend.adapter import BackendConfig, TopologicalBackend
from anyonic.backend.runner import RunResult, run_program

__all__ = [
    "SuperpositionHandle", "StateVector",
    "to_interface", "from_interface", "to_state_vector", "from_state_vector",
    "CompiledGate", "compile_gate", "simplify_steps", "braids_to_gates",
    "BackendConfig", "TopologicalBackend",
    "RunResult", "run_program",
]
