"""Tests for anyonic.backend: interchange states, the backend adapter and the runner."""

import cmath
import math

import numpy as np
import pytest

from anyonic.backend.adapter import BackendConfig, TopologicalBackend
from anyonic.backend.runner import run_program
from anyonic.backend.states import (
    StateVector,
    SuperpositionHandle,
    from_interface,
    from_state_vector,
    to_interface,
    to_state_vector,
)
from anyonic.core.anyons import AnyonType, ISING, FIBONACCI, VACUUM, PSI
from anyonic.core.encoding import logical_amplitudes, logical_probabilities
from anyonic.core.errors import CapacityExceeded, UnsupportedOperation
from anyonic.core.program import Braid, Comment, FMove, Gate, Heading, Initialize, Measure, Program


@pytest.fixture
def backend():
    return TopologicalBackend(ISING, rng=np.random.default_rng(42))


def _plus(backend):
    return backend.apply_operation(Gate("H", (0,)), backend.initialize_state(1))


def _ratio(state):
    amps = logical_amplitudes(state)
    return amps[1] / amps[0]


# ═══════════════════════════════════════════════════════════════════════════
# 1. Configuration and allocation
# ═══════════════════════════════════════════════════════════════════════════

class TestConfig:
    def test_defaults(self):
        cfg = BackendConfig()
        assert cfg.max_anyons == 64
        assert cfg.distillation_rounds == 1

    @pytest.mark.parametrize("kwargs", [
        {"max_anyons": 1},
        {"compile_tolerance": 0},
        {"magic_error_rate": 1.5},
        {"distillation_rounds": 6},
        {"max_distillation_attempts": 0},
        {"sk_depth": -1},
    ])
    def test_rejects_bad_values(self, kwargs):
        with pytest.raises(ValueError):
            BackendConfig(**kwargs)


class TestAllocation:
    def test_initialize(self, backend):
        state = backend.initialize_state(2)
        assert state.anyon_count == 4
        assert logical_probabilities(state) == {"00": pytest.approx(1.0)}

    def test_capacity(self):
        small = TopologicalBackend(ISING, BackendConfig(max_anyons=4))
        assert small.max_qubits == 2
        with pytest.raises(CapacityExceeded) as exc_info:
            small.initialize_state(3)
        assert (exc_info.value.requested, exc_info.value.capacity) == (6, 4)

    def test_default_rng(self):
        assert isinstance(TopologicalBackend(ISING).rng, np.random.Generator)


# ═══════════════════════════════════════════════════════════════════════════
# 2. Capability and dispatch
# ═══════════════════════════════════════════════════════════════════════════

class TestDispatch:
    def test_native_operations(self, backend):
        for op in (Braid(0), Measure(0), FMove(Heading.LEFT), Initialize(1), Comment("x")):
            assert backend.supports_operation(op)

    def test_gate_support(self, backend):
        assert backend.supports_operation(Gate("H", (0,)))
        assert backend.supports_operation(Gate("CNOT", (0, 1)))
        assert not backend.supports_operation(Gate("T", (0,)))
        assert not backend.supports_operation(Gate("RZ", (0,), 0.1))
        assert not TopologicalBackend(FIBONACCI).supports_operation(Gate("H", (0,)))

    def test_s_gate_by_braiding(self, backend):
        state = backend.apply_operation(Gate("S", (0,)), _plus(backend))
        assert _ratio(state) == pytest.approx(1j)

    def test_z_gate_by_braiding(self, backend):
        state = backend.apply_operation(Gate("Z", (0,)), _plus(backend))
        assert _ratio(state) == pytest.approx(-1)

    def test_t_gate_by_injection(self, backend):
        state = backend.apply_operation(Gate("T", (0,)), _plus(backend))
        assert _ratio(state) == pytest.approx(cmath.exp(1j * math.pi / 4))

    def test_raw_magic_states_without_distillation(self):
        cfg = BackendConfig(magic_error_rate=0.0, distillation_rounds=0)
        b = TopologicalBackend(ISING, cfg, rng=np.random.default_rng(0))
        assert b.prepare_magic_state().fidelity == 1.0

    def test_distillation_gives_up(self):
        cfg = BackendConfig(magic_error_rate=0.5, max_distillation_attempts=1)
        b = TopologicalBackend(ISING, cfg, rng=np.random.default_rng(0))
        with pytest.raises(UnsupportedOperation):
            for _ in range(50):
                b.prepare_magic_state()

    def test_partially_rejected_distillation_is_not_used(self):
        # two rounds at p = 0.1 almost never pass all sixteen blocks
        cfg = BackendConfig(magic_error_rate=0.1, distillation_rounds=2, max_distillation_attempts=3)
        b = TopologicalBackend(ISING, cfg, rng=np.random.default_rng(0))
        with pytest.raises(UnsupportedOperation):
            b.prepare_magic_state()

    def test_braid_operation(self, backend):
        state = backend.apply_operation(Braid(0), backend.initialize_state(1))
        assert state.amplitude(state.trees[0]) == pytest.approx(cmath.exp(-1j * math.pi / 8))

    def test_fmove_operation_round_trip(self, backend):
        start = backend.initialize_state(2)
        moved = backend.apply_operation(FMove(Heading.LEFT), start)
        back = backend.apply_operation(FMove(Heading.RIGHT), moved)
        assert back.overlap(start) == pytest.approx(1.0)

    def test_measure_operation_collapses(self, backend):
        state = backend.apply_operation(Measure(0), _plus(backend))
        assert len(state) == 1

    def test_comment_is_noop(self, backend):
        state = backend.initialize_state(1)
        assert backend.apply_operation(Comment("note"), state) is state

    def test_wrong_anyon_type(self, backend):
        other = TopologicalBackend(FIBONACCI).initialize_state(1)
        with pytest.raises(UnsupportedOperation):
            backend.apply_operation(Braid(0), other)

    def test_su2_gate_unsupported(self):
        b = TopologicalBackend(AnyonType.su2(2))
        with pytest.raises(UnsupportedOperation):
            b.apply_operation(Gate("H", (0,)), b.initialize_state(1))

    def test_measure_outcomes(self, backend):
        seen = {backend.measure(_plus(backend), 0).outcome for _ in range(40)}
        assert seen == {VACUUM, PSI}


# ═══════════════════════════════════════════════════════════════════════════
# 3. Interchange states
# ═══════════════════════════════════════════════════════════════════════════

class TestInterchange:
    def test_handle_round_trip(self, backend):
        state = backend.initialize_state(2)
        handle = to_interface(state)
        assert from_interface(handle) is state
        assert handle.logical_qubits == 2
        assert handle.probabilities() == {"00": pytest.approx(1.0)}

    def test_handle_in_handle_out(self, backend):
        handle = to_interface(backend.initialize_state(1))
        out = backend.apply_operation(Gate("H", (0,)), handle)
        assert isinstance(out, SuperpositionHandle)
        assert out.probabilities()["1"] == pytest.approx(0.5)

    def test_state_vector_in_state_vector_out(self, backend):
        vec = to_state_vector(backend.initialize_state(1))
        out = backend.apply_operation(Gate("H", (0,)), vec)
        assert isinstance(out, StateVector)
        np.testing.assert_allclose(out.amplitudes, [1 / math.sqrt(2)] * 2, atol=1e-12)

    def test_state_vector_is_read_only(self, backend):
        vec = to_state_vector(backend.initialize_state(1))
        with pytest.raises(ValueError):
            vec.amplitudes[0] = 0

    def test_state_vector_views(self):
        vec = StateVector(ISING, np.array([0.6, 0, 0, 0.8]))
        assert vec.logical_qubits == 2
        assert vec.probabilities() == {"00": pytest.approx(0.36), "11": pytest.approx(0.64)}
        shots = vec.sample(200, np.random.default_rng(1))
        assert set(shots) <= {"00", "11"}

    def test_state_vector_round_trip(self):
        vec = StateVector(ISING, np.array([0.6, 0.8j]))
        back = to_state_vector(from_state_vector(vec))
        np.testing.assert_allclose(back.amplitudes, vec.amplitudes, atol=1e-12)

    def test_state_vector_is_not_a_handle(self):
        with pytest.raises(UnsupportedOperation):
            from_interface(StateVector(ISING, np.array([1.0, 0.0])))


# ═══════════════════════════════════════════════════════════════════════════
# 4. Program runner
# ═══════════════════════════════════════════════════════════════════════════

class TestRunner:
    def test_bell_state(self, backend):
        program = Program(ISING, (
            Comment("bell pair"),
            Initialize(2),
            Gate("H", (0,)),
            Gate("CNOT", (0, 1)),
        ))
        result = run_program(program, backend)
        probs = logical_probabilities(result.final_state)
        assert probs == {"00": pytest.approx(0.5), "11": pytest.approx(0.5)}
        assert result.steps_executed == 3
        assert result.measurements == []

    def test_measurement_records(self, backend):
        program = Program(ISING, (Initialize(1), Gate("H", (0,)), Measure(0)))
        result = run_program(program, backend)
        (record,) = result.measurements
        assert record.step == 3
        assert record.index == 0
        assert record.outcome in (VACUUM, PSI)
        assert record.probability == pytest.approx(0.5)
        assert "MEASURE 0" in result.messages[-1]

    def test_reinitialize(self, backend):
        program = Program(ISING, (Initialize(1), Gate("X", (0,)), Initialize(2)))
        result = run_program(program, backend)
        assert logical_probabilities(result.final_state) == {"00": pytest.approx(1.0)}

    def test_default_backend(self):
        result = run_program(Program(FIBONACCI, (Initialize(1), Braid(0))))
        assert result.final_state.anyon_type == FIBONACCI

    def test_must_start_with_init(self, backend):
        with pytest.raises(ValueError):
            run_program(Program(ISING, (Braid(0),)), backend)
        with pytest.raises(ValueError):
            run_program(Program(ISING, ()), backend)

    def test_backend_type_mismatch(self, backend):
        with pytest.raises(UnsupportedOperation):
            run_program(Program(FIBONACCI, (Initialize(1),)), backend)
