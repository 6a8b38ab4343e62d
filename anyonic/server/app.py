"""Anyonic FastAPI server: REST API over the simulation core."""

from __future__ import annotations

import logging
import time

import numpy as np
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from anyonic.backend.adapter import BackendConfig, TopologicalBackend
from anyonic.backend.runner import run_program
from anyonic.codes.distillation import (
    BLOCK_SIZE,
    MAX_ROUNDS,
    distill_iterative,
    distilled_error_rate,
    prepare_noisy_magic_state,
)
from anyonic.codes.toric import (
    Edge,
    ErrorEvent,
    Orientation,
    PauliKind,
    apply_error,
    correct,
    create_lattice,
    get_electric_excitations,
    get_magnetic_excitations,
    has_logical_error,
    initialize_ground_state,
    measure_syndrome,
)
from anyonic.core.anyons import AnyonType
from anyonic.core.dsl import parse, serialize_operation
from anyonic.core.encoding import logical_probabilities
from anyonic.core.errors import NumericalInstability, TopologicalError, UnsupportedAnyonConfiguration
from anyonic.core.modular import (
    certify,
    compute_modular_data,
    ground_state_degeneracy,
)
from anyonic.core.theories import theory_for

logger = logging.getLogger(__name__)

app = FastAPI(title="Anyonic", version="0.1.0")

CATALOGUE = ("Ising", "Fibonacci", "SU2_2", "SU2_3")
_CLIENT_ERRORS = (TopologicalError, ValueError)


def _complex(z: complex) -> list[float]:
    return [float(z.real), float(z.imag)]


def _matrix(m: np.ndarray) -> list[list[list[float]]]:
    return [[_complex(z) for z in row] for row in m]


def _error(e: Exception) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(e), "kind": type(e).__name__})


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class SourceRequest(BaseModel):
    source: str

class RunRequest(BaseModel):
    source: str
    seed: int | None = None
    max_anyons: int = 64

class ToricError(BaseModel):
    x: int
    y: int
    orientation: str = "H"
    pauli: str = "X"

class ToricRequest(BaseModel):
    width: int
    height: int
    errors: list[ToricError] = Field(default_factory=list)
    decode: bool = False

class DistillRequest(BaseModel):
    anyon_type: str = "Ising"
    error_rate: float
    rounds: int = 1
    seed: int | None = None


# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

@app.get("/api/anyons")
async def api_anyons():
    result = []
    for name in CATALOGUE:
        th = theory_for(AnyonType.parse(name))
        result.append({
            "name": name,
            "particles": [
                {
                    "name": p.name,
                    "quantum_dimension": th.quantum_dimension(p),
                    "conformal_weight": th.conformal_weight(p),
                }
                for p in th.particles
            ],
            "total_quantum_dimension": th.total_quantum_dimension(),
        })
    return {"anyon_types": result}


@app.post("/api/parse")
async def api_parse(req: SourceRequest):
    try:
        prog = parse(req.source)
        return {
            "anyon_type": str(prog.anyon_type),
            "operation_count": len(prog.instructions),
            "initial_qubits": prog.initial_qubits,
            "operations": [serialize_operation(op) for op in prog.operations],
        }
    except _CLIENT_ERRORS as e:
        return _error(e)


@app.post("/api/run")
async def api_run(req: RunRequest):
    try:
        prog = parse(req.source)
        backend = TopologicalBackend(
            prog.anyon_type,
            BackendConfig(max_anyons=req.max_anyons),
            np.random.default_rng(req.seed),
        )
        t0 = time.perf_counter()
        result = run_program(prog, backend)
        elapsed = time.perf_counter() - t0
    except _CLIENT_ERRORS as e:
        return _error(e)

    state = result.final_state
    try:
        probabilities = logical_probabilities(state)
    except UnsupportedAnyonConfiguration:
        probabilities = None
    logger.info("run: %d steps in %.3f ms", result.steps_executed, elapsed * 1000)
    return {
        "anyon_type": str(prog.anyon_type),
        "terms": [{"amplitude": _complex(amp), "tree": str(tree)} for amp, tree in state.terms],
        "logical_probabilities": probabilities,
        "measurements": [
            {"step": m.step, "index": m.index, "outcome": m.outcome.name, "probability": m.probability}
            for m in result.measurements
        ],
        "messages": result.messages,
        "elapsed_ms": round(elapsed * 1000, 3),
    }


@app.get("/api/modular/{anyon_type}")
async def api_modular(anyon_type: str):
    try:
        data = compute_modular_data(AnyonType.parse(anyon_type))
        certified = True
        try:
            certify(data)
        except NumericalInstability:
            certified = False
        return {
            "anyon_type": str(data.anyon_type),
            "particles": [p.name for p in data.particles],
            "s_matrix": _matrix(data.s_matrix),
            "t_matrix": _matrix(data.t_matrix),
            "central_charge": data.central_charge,
            "total_quantum_dimension": data.total_quantum_dimension,
            "ground_state_degeneracy": {g: ground_state_degeneracy(data, g) for g in range(3)},
            "certified": certified,
        }
    except _CLIENT_ERRORS as e:
        return _error(e)


@app.post("/api/toric/syndrome")
async def api_toric_syndrome(req: ToricRequest):
    try:
        lattice = create_lattice(req.width, req.height)
        state = initialize_ground_state(lattice)
        for err in req.errors:
            event = ErrorEvent(
                Edge(err.x, err.y, Orientation(err.orientation.upper())),
                PauliKind(err.pauli.upper()),
            )
            state = apply_error(state, event)
    except _CLIENT_ERRORS as e:
        return _error(e)

    syndrome = measure_syndrome(state)
    body = {
        "physical_qubits": lattice.physical_qubits,
        "distance": lattice.distance,
        "electric": [list(p) for p in get_electric_excitations(syndrome)],
        "magnetic": [list(p) for p in get_magnetic_excitations(syndrome)],
    }
    if req.decode:
        corrected = correct(state)
        body["logical_error"] = has_logical_error(corrected)
    return body


@app.post("/api/distill")
async def api_distill(req: DistillRequest):
    try:
        anyon_type = AnyonType.parse(req.anyon_type)
        rng = np.random.default_rng(req.seed)
        if not 1 <= req.rounds <= MAX_ROUNDS:
            raise ValueError(f"rounds must be between 1 and {MAX_ROUNDS}, got {req.rounds}")
        states = [prepare_noisy_magic_state(req.error_rate, anyon_type) for _ in range(BLOCK_SIZE ** req.rounds)]
        result = distill_iterative(rng, req.rounds, states)
    except _CLIENT_ERRORS as e:
        return _error(e)
    return {
        "accepted": result.accepted,
        "acceptance_probability": result.acceptance_probability,
        "pass_rate": result.pass_rate,
        "rejected_blocks": result.rejected_blocks,
        "syndrome": list(result.syndrome),
        "output_error_rate": result.purified.error_rate,
        "output_fidelity": result.purified.fidelity,
        "single_round_error_rate": distilled_error_rate(req.error_rate),
        "inputs_consumed": result.inputs_consumed,
    }
