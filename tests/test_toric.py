"""Tests for anyonic.codes.toric."""

import numpy as np
import pytest

from anyonic.codes.toric import (
    Edge,
    ErrorEvent,
    Orientation,
    PauliKind,
    Syndrome,
    apply_error,
    apply_random_errors,
    apply_x_error,
    apply_z_error,
    correct,
    create_lattice,
    decode,
    get_electric_excitations,
    get_magnetic_excitations,
    has_logical_error,
    initialize_ground_state,
    logical_parities,
    measure_syndrome,
    toric_distance,
)

H, V = Orientation.HORIZONTAL, Orientation.VERTICAL


@pytest.fixture
def lattice():
    return create_lattice(5, 4)


# ═══════════════════════════════════════════════════════════════════════════
# 1. Lattice geometry
# ═══════════════════════════════════════════════════════════════════════════

class TestLattice:
    def test_sizes(self, lattice):
        assert lattice.physical_qubits == 40
        assert lattice.logical_qubits == 2
        assert lattice.distance == 4
        assert len(lattice.edges()) == 40

    @pytest.mark.parametrize("w,h", [(1, 4), (4, 1), (0, 0)])
    def test_too_small(self, w, h):
        with pytest.raises(ValueError):
            create_lattice(w, h)

    def test_edge_indices_are_a_bijection(self, lattice):
        indices = sorted(lattice.edge_index(e) for e in lattice.edges())
        assert indices == list(range(lattice.physical_qubits))

    def test_edges_wrap(self, lattice):
        assert lattice.edge(-1, 4, H) == Edge(4, 0, H)

    def test_stabilizer_shapes(self, lattice):
        assert lattice.vertex_stabilizers.shape == (20, 4)
        assert lattice.plaquette_stabilizers.shape == (20, 4)

    def test_distance(self, lattice):
        assert toric_distance(lattice, (0, 0), (4, 0)) == 1
        assert toric_distance(lattice, (0, 0), (2, 2)) == 4
        assert toric_distance(lattice, (1, 3), (1, 3)) == 0

    def test_distance_symmetric_and_bounded(self, lattice):
        sites = lattice.sites()
        for a in sites:
            for b in sites:
                d = toric_distance(lattice, a, b)
                assert d == toric_distance(lattice, b, a)
                assert d <= abs(a[0] - b[0]) + abs(a[1] - b[1])


# ═══════════════════════════════════════════════════════════════════════════
# 2. Errors and syndromes
# ═══════════════════════════════════════════════════════════════════════════

class TestSyndrome:
    def test_ground_state_is_clean(self, lattice):
        state = initialize_ground_state(lattice)
        syndrome = measure_syndrome(state)
        assert syndrome.is_trivial
        assert state.error_weight == 0
        assert not has_logical_error(state)

    def test_every_z_error_makes_two_charges(self, lattice):
        ground = initialize_ground_state(lattice)
        for edge in lattice.edges():
            syndrome = measure_syndrome(apply_z_error(ground, edge))
            assert len(syndrome.vertices) == 2
            assert not syndrome.plaquettes

    def test_every_x_error_makes_two_fluxes(self, lattice):
        ground = initialize_ground_state(lattice)
        for edge in lattice.edges():
            syndrome = measure_syndrome(apply_x_error(ground, edge))
            assert len(syndrome.plaquettes) == 2
            assert not syndrome.vertices

    def test_z_on_horizontal_edge_marks_its_endpoints(self, lattice):
        state = apply_z_error(initialize_ground_state(lattice), Edge(4, 2, H))
        assert get_electric_excitations(measure_syndrome(state)) == [(0, 2), (4, 2)]

    def test_x_on_vertical_edge_marks_adjacent_plaquettes(self, lattice):
        state = apply_x_error(initialize_ground_state(lattice), Edge(2, 1, V))
        assert get_magnetic_excitations(measure_syndrome(state)) == [(1, 1), (2, 1)]

    def test_y_error_makes_both(self, lattice):
        state = apply_error(initialize_ground_state(lattice), ErrorEvent(Edge(1, 1, H), PauliKind.Y))
        syndrome = measure_syndrome(state)
        assert syndrome.weight == 4
        assert state.error_weight == 1

    def test_double_error_cancels(self, lattice):
        edge = Edge(3, 3, V)
        state = apply_x_error(apply_x_error(initialize_ground_state(lattice), edge), edge)
        assert measure_syndrome(state).is_trivial
        assert state.error_weight == 0

    def test_adjacent_errors_move_the_charge(self, lattice):
        state = initialize_ground_state(lattice)
        state = apply_z_error(state, Edge(0, 0, H))
        state = apply_z_error(state, Edge(1, 0, H))
        assert get_electric_excitations(measure_syndrome(state)) == [(0, 0), (2, 0)]

    def test_states_are_immutable(self, lattice):
        ground = initialize_ground_state(lattice)
        apply_x_error(ground, Edge(0, 0, H))
        assert not ground.x_flips.any()
        with pytest.raises(ValueError):
            ground.x_flips[0] = True


# ═══════════════════════════════════════════════════════════════════════════
# 3. Logical operators and decoding
# ═══════════════════════════════════════════════════════════════════════════

class TestDecoding:
    def test_z_loop_is_undetected_logical(self, lattice):
        state = initialize_ground_state(lattice)
        for x in range(lattice.width):
            state = apply_z_error(state, Edge(x, 0, H))
        assert measure_syndrome(state).is_trivial
        assert logical_parities(state) == (1, 0, 0, 0)
        assert has_logical_error(state)

    def test_x_loop_on_dual_lattice(self, lattice):
        state = initialize_ground_state(lattice)
        for y in range(lattice.height):
            state = apply_x_error(state, Edge(2, y, H))
        assert measure_syndrome(state).is_trivial
        assert has_logical_error(state)

    def test_stabilizer_is_not_logical(self, lattice):
        state = initialize_ground_state(lattice)
        for edge in lattice.vertex_edges(2, 2):
            state = apply_x_error(state, edge)
        assert measure_syndrome(state).is_trivial
        assert not has_logical_error(state)

    def test_decode_single_error(self, lattice):
        edge = Edge(1, 1, H)
        state = apply_z_error(initialize_ground_state(lattice), edge)
        events = decode(lattice, measure_syndrome(state))
        assert events == [ErrorEvent(edge, PauliKind.Z)]

    @pytest.mark.parametrize("pauli", [PauliKind.X, PauliKind.Y, PauliKind.Z])
    def test_correct_single_error(self, lattice, pauli):
        for edge in lattice.edges():
            state = apply_error(initialize_ground_state(lattice), ErrorEvent(edge, pauli))
            fixed = correct(state)
            assert measure_syndrome(fixed).is_trivial
            assert not has_logical_error(fixed)

    def test_correct_short_chain(self):
        lattice = create_lattice(7, 7)
        state = initialize_ground_state(lattice)
        state = apply_x_error(state, Edge(3, 3, V))
        state = apply_x_error(state, Edge(3, 4, V))
        fixed = correct(state)
        assert measure_syndrome(fixed).is_trivial
        assert not has_logical_error(fixed)

    def test_empty_syndrome_decodes_to_nothing(self, lattice):
        assert decode(lattice, Syndrome()) == []

    def test_random_errors_always_decodable_to_codespace(self, lattice):
        rng = np.random.default_rng(7)
        for _ in range(20):
            noisy, events = apply_random_errors(initialize_ground_state(lattice), rng, 0.1)
            assert noisy.error_weight <= len(events)
            assert measure_syndrome(correct(noisy)).is_trivial

    def test_random_errors_reproducible(self, lattice):
        ground = initialize_ground_state(lattice)
        _, first = apply_random_errors(ground, np.random.default_rng(3), 0.2)
        _, second = apply_random_errors(ground, np.random.default_rng(3), 0.2)
        assert first == second

    def test_zero_rate_is_clean(self, lattice):
        noisy, events = apply_random_errors(initialize_ground_state(lattice), np.random.default_rng(0), 0.0)
        assert events == []
        assert noisy.error_weight == 0

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_bad_rate(self, lattice, rate):
        with pytest.raises(ValueError):
            apply_random_errors(initialize_ground_state(lattice), np.random.default_rng(0), rate)
