"""Tests for anyonic.core.modular."""

import math

import numpy as np
import pytest

from anyonic.core.anyons import AnyonType, ISING, FIBONACCI, SIGMA
from anyonic.core.errors import NumericalInstability
from anyonic.core.modular import (
    ModularData,
    certify,
    compute_modular_data,
    ground_state_degeneracy,
    modular_lambda,
    topological_entanglement_entropy,
    verify_modular_relation,
    verify_s_symmetric,
    verify_s_unitary,
    verify_t_diagonal,
    verify_verlinde,
)
from anyonic.core.theories import theory_for

SU2_2 = AnyonType.su2(2)
SU2_3 = AnyonType.su2(3)
ALL_TYPES = [ISING, FIBONACCI, SU2_2, SU2_3]


# ═══════════════════════════════════════════════════════════════════════════
# 1. S and T matrices
# ═══════════════════════════════════════════════════════════════════════════

class TestMatrices:
    def test_ising_s_matrix(self):
        r2 = math.sqrt(2)
        expected = 0.5 * np.array([[1, r2, 1], [r2, 0, -r2], [1, -r2, 1]])
        np.testing.assert_allclose(compute_modular_data(ISING).s_matrix, expected, atol=1e-12)

    def test_ising_t_matrix(self):
        t = compute_modular_data(ISING).twists
        np.testing.assert_allclose(t, [1, np.exp(2j * np.pi / 16), -1], atol=1e-12)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_checks_pass(self, anyon_type):
        data = compute_modular_data(anyon_type)
        assert verify_s_unitary(data)
        assert verify_s_symmetric(data)
        assert verify_t_diagonal(data)
        assert verify_modular_relation(data)
        assert verify_verlinde(data)
        assert certify(data) is data

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_s_unitary_to_1e9(self, anyon_type):
        s = compute_modular_data(anyon_type).s_matrix
        assert np.max(np.abs(s @ s.conj().T - np.eye(len(s)))) < 1e-9

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_lambda_unit_modulus(self, anyon_type):
        assert abs(modular_lambda(compute_modular_data(anyon_type))) == pytest.approx(1.0)

    def test_quantum_dimensions_from_s(self):
        data = compute_modular_data(FIBONACCI)
        th = theory_for(FIBONACCI)
        np.testing.assert_allclose(data.quantum_dimensions, [th.quantum_dimension(p) for p in data.particles])
        assert data.total_quantum_dimension == pytest.approx(th.total_quantum_dimension())

    def test_index(self):
        assert compute_modular_data(ISING).index(SIGMA) == 1


# ═══════════════════════════════════════════════════════════════════════════
# 2. Caching and immutability
# ═══════════════════════════════════════════════════════════════════════════

class TestImmutability:
    def test_cached_per_type(self):
        assert compute_modular_data(AnyonType.su2(3)) is compute_modular_data(SU2_3)

    def test_arrays_read_only(self):
        data = compute_modular_data(ISING)
        with pytest.raises(ValueError):
            data.s_matrix[0, 0] = 0
        with pytest.raises(ValueError):
            data.t_matrix[0, 0] = 0

    def test_frozen(self):
        data = compute_modular_data(ISING)
        with pytest.raises(AttributeError):
            data.central_charge = 1.0


# ═══════════════════════════════════════════════════════════════════════════
# 3. Central charge, degeneracy, entropy
# ═══════════════════════════════════════════════════════════════════════════

class TestDerived:
    @pytest.mark.parametrize("anyon_type,c", [(ISING, 0.5), (FIBONACCI, 2.8), (SU2_2, 1.5), (SU2_3, 1.8)], ids=str)
    def test_central_charge(self, anyon_type, c):
        assert compute_modular_data(anyon_type).central_charge == pytest.approx(c, abs=1e-9)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_sphere_has_unique_ground_state(self, anyon_type):
        assert ground_state_degeneracy(compute_modular_data(anyon_type), 0) == 1

    @pytest.mark.parametrize("anyon_type,count", [(ISING, 3), (FIBONACCI, 2), (SU2_3, 4)], ids=str)
    def test_torus_counts_particles(self, anyon_type, count):
        assert ground_state_degeneracy(compute_modular_data(anyon_type), 1) == count

    def test_genus_two(self):
        assert ground_state_degeneracy(compute_modular_data(ISING), 2) == 10
        assert ground_state_degeneracy(compute_modular_data(FIBONACCI), 2) == 5

    def test_negative_genus(self):
        with pytest.raises(ValueError):
            ground_state_degeneracy(compute_modular_data(ISING), -1)

    def test_entanglement_entropy(self):
        assert topological_entanglement_entropy(ISING) == pytest.approx(math.log(2))


# ═══════════════════════════════════════════════════════════════════════════
# 4. Certification failures
# ═══════════════════════════════════════════════════════════════════════════

class TestCertify:
    def test_broken_s_matrix(self):
        good = compute_modular_data(ISING)
        broken = ModularData(good.anyon_type, good.particles, 2 * np.eye(3), good.t_matrix, good.central_charge)
        assert not verify_s_unitary(broken)
        with pytest.raises(NumericalInstability) as exc_info:
            certify(broken)
        assert exc_info.value.check == "S unitarity"
        assert exc_info.value.deviation == pytest.approx(3.0)

    def test_explicit_tolerance_overrides_default(self):
        good = compute_modular_data(ISING)
        skewed = ModularData(
            good.anyon_type, good.particles, good.s_matrix * (1 + 1e-6), good.t_matrix, good.central_charge,
        )
        assert not verify_s_unitary(skewed)
        assert verify_s_unitary(skewed, tolerance=1e-4)
