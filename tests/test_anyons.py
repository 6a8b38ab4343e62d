"""Tests for anyonic.core.anyons and the theory catalogue lookups."""

import math

import pytest

from anyonic.core.anyons import AnyonKind, AnyonType, Particle, ISING, FIBONACCI, VACUUM, SIGMA, PSI, TAU
from anyonic.core.errors import UnsupportedAnyonType, UnsupportedAnyonConfiguration
from anyonic.core.theories import (
    PHI,
    fusion_channels,
    fusion_probability,
    particles,
    quantum_dimension,
    theory_for,
    total_quantum_dimension,
)

SU2_2 = AnyonType.su2(2)
SU2_3 = AnyonType.su2(3)
ALL_TYPES = [ISING, FIBONACCI, SU2_2, SU2_3]


# ═══════════════════════════════════════════════════════════════════════════
# 1. Anyon types
# ═══════════════════════════════════════════════════════════════════════════

class TestAnyonType:
    def test_parse_names(self):
        assert AnyonType.parse("Ising") == ISING
        assert AnyonType.parse("FIBONACCI") == FIBONACCI
        assert AnyonType.parse("su2_3") == SU2_3
        assert AnyonType.parse("SU(2)_4") == AnyonType.su2(4)

    def test_str_round_trip(self):
        for t in ALL_TYPES:
            assert AnyonType.parse(str(t)) == t
        assert str(SU2_3) == "SU2_3"

    def test_unknown_name(self):
        with pytest.raises(UnsupportedAnyonType):
            AnyonType.parse("toric")

    def test_su2_needs_level(self):
        with pytest.raises(UnsupportedAnyonType):
            AnyonType(AnyonKind.SU2)
        with pytest.raises(UnsupportedAnyonType):
            AnyonType.su2(0)

    def test_level_rejected_for_ising(self):
        with pytest.raises(UnsupportedAnyonType):
            AnyonType(AnyonKind.ISING, 2)

    def test_theory_for_rejects_non_types(self):
        with pytest.raises(UnsupportedAnyonType):
            theory_for("Ising")

    def test_theory_is_cached(self):
        assert theory_for(AnyonType.su2(3)) is theory_for(SU2_3)


# ═══════════════════════════════════════════════════════════════════════════
# 2. Particles and fusion rules
# ═══════════════════════════════════════════════════════════════════════════

class TestParticles:
    def test_ising_particles(self):
        assert particles(ISING) == (VACUUM, SIGMA, PSI)

    def test_fibonacci_particles(self):
        assert particles(FIBONACCI) == (VACUUM, TAU)

    def test_su2_particles(self):
        ps = particles(SU2_3)
        assert len(ps) == 4
        assert ps[0] is VACUUM
        assert [p.spin_value for p in ps] == [0.0, 0.5, 1.0, 1.5]
        assert ps[1].name == "j=1/2"

    def test_spin_zero_is_vacuum(self):
        assert Particle.spin(0) is VACUUM

    def test_negative_spin(self):
        with pytest.raises(ValueError):
            Particle.spin(-1)

    def test_lookup_by_name(self):
        th = theory_for(ISING)
        assert th.particle("sigma") == SIGMA
        with pytest.raises(UnsupportedAnyonConfiguration):
            th.particle("tau")


class TestFusionRules:
    def test_ising(self):
        assert fusion_channels(SIGMA, SIGMA, ISING) == (VACUUM, PSI)
        assert fusion_channels(SIGMA, PSI, ISING) == (SIGMA,)
        assert fusion_channels(PSI, PSI, ISING) == (VACUUM,)
        assert fusion_channels(VACUUM, SIGMA, ISING) == (SIGMA,)

    def test_fibonacci(self):
        assert fusion_channels(TAU, TAU, FIBONACCI) == (VACUUM, TAU)
        assert fusion_channels(VACUUM, TAU, FIBONACCI) == (TAU,)

    def test_su2_truncation(self):
        half, one, three_half = (Particle.spin(t) for t in (1, 2, 3))
        assert fusion_channels(half, half, SU2_3) == (VACUUM, one)
        assert fusion_channels(one, one, SU2_3) == (VACUUM, one)
        assert fusion_channels(half, three_half, SU2_3) == (one,)
        assert fusion_channels(three_half, three_half, SU2_3) == (VACUUM,)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_vacuum_iff_conjugate(self, anyon_type):
        th = theory_for(anyon_type)
        for a in th.particles:
            for b in th.particles:
                has_vacuum = VACUUM in th.fusion_channels(a, b)
                assert has_vacuum == (b == th.dual(a))

    @pytest.mark.parametrize("anyon_type", [ISING, FIBONACCI], ids=str)
    def test_multiplicity_free(self, anyon_type):
        th = theory_for(anyon_type)
        for a in th.particles:
            for b in th.particles:
                channels = th.fusion_channels(a, b)
                assert len(set(channels)) == len(channels)

    def test_foreign_particle_rejected(self):
        with pytest.raises(UnsupportedAnyonConfiguration):
            fusion_channels(TAU, SIGMA, ISING)


# ═══════════════════════════════════════════════════════════════════════════
# 3. Quantum dimensions
# ═══════════════════════════════════════════════════════════════════════════

class TestQuantumDimension:
    def test_ising(self):
        assert quantum_dimension(VACUUM, ISING) == 1.0
        assert quantum_dimension(SIGMA, ISING) == pytest.approx(math.sqrt(2))
        assert quantum_dimension(PSI, ISING) == 1.0

    def test_fibonacci(self):
        assert quantum_dimension(TAU, FIBONACCI) == pytest.approx((1 + math.sqrt(5)) / 2)
        assert PHI == pytest.approx((1 + math.sqrt(5)) / 2)

    def test_su2_3_matches_golden_ratio(self):
        assert quantum_dimension(Particle.spin(1), SU2_3) == pytest.approx(PHI)
        assert quantum_dimension(Particle.spin(3), SU2_3) == pytest.approx(1.0)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_sum_of_squares(self, anyon_type):
        total = sum(quantum_dimension(p, anyon_type) ** 2 for p in particles(anyon_type))
        assert total == pytest.approx(total_quantum_dimension(anyon_type) ** 2, abs=1e-9)

    def test_total_dimensions(self):
        assert total_quantum_dimension(ISING) == pytest.approx(2.0)
        assert total_quantum_dimension(FIBONACCI) == pytest.approx(math.sqrt(2 + PHI))

    def test_fusion_probability(self):
        assert fusion_probability(SIGMA, SIGMA, VACUUM, ISING) == pytest.approx(0.5)
        assert fusion_probability(SIGMA, SIGMA, PSI, ISING) == pytest.approx(0.5)
        assert fusion_probability(TAU, TAU, TAU, FIBONACCI) == pytest.approx(1 / PHI)

    @pytest.mark.parametrize("anyon_type", ALL_TYPES, ids=str)
    def test_fusion_probabilities_sum_to_one(self, anyon_type):
        th = theory_for(anyon_type)
        for a in th.particles:
            for b in th.particles:
                total = sum(fusion_probability(a, b, c, anyon_type) for c in th.fusion_channels(a, b))
                assert total == pytest.approx(1.0)
