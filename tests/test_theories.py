"""Tests for F- and R-symbols and the consistency checks in anyonic.core.theories."""

import cmath
import math

import numpy as np
import pytest

from anyonic.core import settings
from anyonic.core.anyons import AnyonType, Particle, ISING, FIBONACCI, VACUUM, SIGMA, PSI, TAU
from anyonic.core.theories import (
    PHI,
    f_matrices_unitary,
    theory_for,
    verify_hexagon,
    verify_pentagon,
    verify_ribbon,
)

SU2_2 = AnyonType.su2(2)
SU2_3 = AnyonType.su2(3)
ALL_TYPES = [ISING, FIBONACCI, SU2_2, SU2_3]


@pytest.fixture(autouse=True)
def _reset_settings():
    yield
    settings.reset()


# ═══════════════════════════════════════════════════════════════════════════
# 1. F-symbols
# ═══════════════════════════════════════════════════════════════════════════

class TestFSymbols:
    def test_ising_sigma_matrix(self):
        es, fs, mat = theory_for(ISING).f_matrix(SIGMA, SIGMA, SIGMA, SIGMA)
        assert es == (VACUUM, PSI)
        assert fs == (VACUUM, PSI)
        np.testing.assert_allclose(mat, np.array([[1, 1], [1, -1]]) / math.sqrt(2), atol=1e-12)

    def test_ising_sign_entries(self):
        th = theory_for(ISING)
        assert th.f_symbol(SIGMA, PSI, SIGMA, PSI, SIGMA, SIGMA) == -1
        assert th.f_symbol(PSI, SIGMA, PSI, SIGMA, SIGMA, SIGMA) == -1

    def test_fibonacci_tau_matrix(self):
        _, _, mat = theory_for(FIBONACCI).f_matrix(TAU, TAU, TAU, TAU)
        expected = np.array([[1 / PHI, 1 / math.sqrt(PHI)], [1 / math.sqrt(PHI), -1 / PHI]])
        np.testing.assert_allclose(mat, expected, atol=1e-12)

    def test_vacuum_leg_is_trivial(self):
        th = theory_for(FIBONACCI)
        assert th.f_symbol(VACUUM, TAU, TAU, TAU, TAU, TAU) == 1
        assert th.f_symbol(VACUUM, TAU, TAU, VACUUM, TAU, VACUUM) == 1

    def test_vacuum_leg_respects_fusion_rules(self):
        # 1 x 1 = 1 cannot produce the outer charge tau
        assert theory_for(FIBONACCI).f_symbol(VACUUM, TAU, TAU, TAU, TAU, VACUUM) == 0

    def test_inadmissible_is_zero(self):
        th = theory_for(ISING)
        assert th.f_symbol(SIGMA, SIGMA, SIGMA, SIGMA, SIGMA, VACUUM) == 0

    def test_su2_2_matches_ising_fusion_space(self):
        half = Particle.spin(1)
        es, fs, mat = theory_for(SU2_2).f_matrix(half, half, half, half)
        assert len(es) == len(fs) == 2
        assert np.allclose(np.abs(mat), 1 / math.sqrt(2))

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_unitary(self, anyon_type):
        assert f_matrices_unitary(anyon_type)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_pentagon(self, anyon_type):
        assert verify_pentagon(anyon_type)


# ═══════════════════════════════════════════════════════════════════════════
# 2. R-symbols and twists
# ═══════════════════════════════════════════════════════════════════════════

class TestRSymbols:
    def test_ising_values(self):
        th = theory_for(ISING)
        assert th.r_symbol(SIGMA, SIGMA, VACUUM) == pytest.approx(cmath.exp(-1j * math.pi / 8))
        assert th.r_symbol(SIGMA, SIGMA, PSI) == pytest.approx(cmath.exp(3j * math.pi / 8))
        assert th.r_symbol(PSI, PSI, VACUUM) == pytest.approx(-1)
        assert th.r_symbol(SIGMA, PSI, SIGMA) == pytest.approx(-1j)

    def test_fibonacci_values(self):
        th = theory_for(FIBONACCI)
        assert th.r_symbol(TAU, TAU, VACUUM) == pytest.approx(cmath.exp(-4j * math.pi / 5))
        assert th.r_symbol(TAU, TAU, TAU) == pytest.approx(cmath.exp(3j * math.pi / 5))

    def test_invalid_channel_is_zero(self):
        assert theory_for(ISING).r_symbol(SIGMA, SIGMA, SIGMA) == 0

    def test_vacuum_braids_trivially(self):
        assert theory_for(FIBONACCI).r_symbol(VACUUM, TAU, TAU) == 1

    def test_r_matrix_is_diagonal(self):
        cs, mat = theory_for(ISING).r_matrix(SIGMA, SIGMA)
        assert cs == (VACUUM, PSI)
        assert mat[0, 1] == 0 and mat[1, 0] == 0

    def test_twists(self):
        th = theory_for(ISING)
        assert th.twist(SIGMA) == pytest.approx(cmath.exp(2j * math.pi / 16))
        assert th.twist(PSI) == pytest.approx(-1)
        assert theory_for(FIBONACCI).conformal_weight(TAU) == pytest.approx(0.4)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_hexagon(self, anyon_type):
        assert verify_hexagon(anyon_type)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_ribbon(self, anyon_type):
        assert verify_ribbon(anyon_type)


# ═══════════════════════════════════════════════════════════════════════════
# 3. Settings
# ═══════════════════════════════════════════════════════════════════════════

class TestSettings:
    def test_defaults(self):
        assert settings.get_tolerance() == 1e-9
        assert settings.get_amplitude_cutoff() == 1e-12

    def test_set_and_reset(self):
        settings.set_tolerance(1e-6)
        assert settings.get_tolerance() == 1e-6
        assert settings.resolve_tolerance(None) == 1e-6
        assert settings.resolve_tolerance(1e-3) == 1e-3
        settings.reset()
        assert settings.get_tolerance() == 1e-9

    @pytest.mark.parametrize("value", [0, -1e-9])
    def test_rejects_non_positive(self, value):
        with pytest.raises(ValueError):
            settings.set_tolerance(value)
        with pytest.raises(ValueError):
            settings.set_amplitude_cutoff(value)
