"""Tests for force field implementations."""

import numpy as np
import pytest

from mdsim.forcefields import (
    Coulomb,
    EwaldCoulomb,
    EwaldGravity,
    ForceContext,
    Gravity,
    LennardJones,
    make_k_vectors,
)
from mdsim.neighborlists import CellListStrategy, NaiveStrategy
from mdsim.system import HalfBox, SimulationState


def make_state(positions, masses=None, charges=None):
    """Create a state from positions and optional masses/charges."""
    positions = np.asarray(positions, dtype=np.float64)
    n = len(positions)
    return SimulationState(
        positions=positions,
        velocities=np.zeros((n, 3)),
        forces=np.zeros((n, 3)),
        masses=np.ones(n) if masses is None else masses,
        charges=np.zeros(n) if charges is None else charges,
    )


@pytest.fixture
def two_body():
    """Two particles one unit apart along x."""
    return make_state(
        [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]],
        masses=np.array([2.0, 3.0]),
        charges=np.array([1.0, -1.0]),
    )


@pytest.fixture
def ctx():
    """Open-boundary context with a generous cutoff."""
    return ForceContext(cutoff=10.0)


@pytest.fixture
def cluster():
    """Random cluster with mixed charges."""
    rng = np.random.default_rng(1)
    return make_state(
        rng.uniform(-2.0, 2.0, (12, 3)),
        masses=rng.uniform(1.0, 2.0, 12),
        charges=rng.choice([-1.0, 1.0], 12),
    )


class TestSoftenedInverseSquare:
    """Test gravity and Coulomb."""

    def test_gravity_attracts(self, two_body, ctx):
        """Test gravity pulls particles together."""
        Gravity(G=0.25).apply(two_body, ctx)
        np.testing.assert_allclose(two_body.forces[0], [1.5, 0.0, 0.0])
        np.testing.assert_allclose(two_body.forces[1], [-1.5, 0.0, 0.0])

    def test_opposite_charges_attract(self, two_body, ctx):
        """Test Coulomb with opposite charges."""
        Coulomb(K=0.25).apply(two_body, ctx)
        np.testing.assert_allclose(two_body.forces[0], [0.25, 0.0, 0.0])

    def test_like_charges_repel(self, ctx):
        """Test Coulomb with like charges."""
        state = make_state([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]], charges=np.array([1.0, 1.0]))
        Coulomb(K=1.0).apply(state, ctx)
        np.testing.assert_allclose(state.forces[0], [-0.25, 0.0, 0.0])

    def test_combined_two_body(self, two_body, ctx):
        """Test gravity and Coulomb sum on the same accumulator."""
        Gravity(G=0.25).apply(two_body, ctx)
        Coulomb(K=0.25).apply(two_body, ctx)

        np.testing.assert_allclose(two_body.forces[0], [1.75, 0.0, 0.0])
        np.testing.assert_allclose(two_body.forces[1], [-1.75, 0.0, 0.0])

    def test_potentials(self, two_body, ctx):
        """Test pair potentials."""
        assert np.isclose(Gravity(G=0.25).potential(two_body, ctx), -1.5)
        assert np.isclose(Coulomb(K=0.25).potential(two_body, ctx), -0.25)

    def test_softening(self, two_body, ctx):
        """Test Plummer softening reduces the force."""
        Gravity(G=0.25, softening=1.0).apply(two_body, ctx)
        expected = 0.25 * 6.0 / 2.0**1.5
        np.testing.assert_allclose(two_body.forces[0], [expected, 0.0, 0.0])
        assert np.isclose(
            Gravity(G=0.25, softening=1.0).potential(two_body, ctx), -1.5 / np.sqrt(2.0)
        )

    def test_zero_mass_is_unit_mass(self, ctx):
        """Test unset masses count as unit mass."""
        state = make_state([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], masses=np.zeros(2))
        Gravity(G=1.0).apply(state, ctx)
        np.testing.assert_allclose(state.forces[0], [1.0, 0.0, 0.0])

    def test_outside_cutoff_ignored(self, two_body):
        """Test pairs beyond the cutoff contribute nothing."""
        Gravity(G=0.25).apply(two_body, ForceContext(cutoff=0.5))
        assert np.all(two_body.forces == 0.0)


class TestLennardJones:
    """Test the Lennard-Jones force."""

    def test_zero_force_at_minimum(self, ctx):
        """Test the force vanishes at r = 2^(1/6) sigma."""
        r_min = 2.0 ** (1.0 / 6.0) * 0.5
        state = make_state([[0.0, 0.0, 0.0], [r_min, 0.0, 0.0]])
        LennardJones(epsilon=1.0, sigma=0.5).apply(state, ctx)
        np.testing.assert_allclose(state.forces, 0.0, atol=1e-10)

    def test_zero_potential_at_sigma(self, ctx):
        """Test V(sigma) = 0 and the well depth at the minimum."""
        lj = LennardJones(epsilon=2.0, sigma=1.0)
        at_sigma = make_state([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        at_min = make_state([[0.0, 0.0, 0.0], [2.0 ** (1.0 / 6.0), 0.0, 0.0]])

        assert abs(lj.potential(at_sigma, ctx)) < 1e-12
        assert np.isclose(lj.potential(at_min, ctx), -2.0)

    def test_repulsive_inside_sigma(self, ctx):
        """Test short-range repulsion."""
        state = make_state([[0.0, 0.0, 0.0], [0.9, 0.0, 0.0]])
        LennardJones(epsilon=1.0, sigma=1.0).apply(state, ctx)
        assert state.forces[0, 0] < 0.0
        assert state.forces[1, 0] > 0.0

    def test_coincident_pair_skipped(self, ctx):
        """Test particles at the same position produce no force."""
        state = make_state([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        LennardJones(epsilon=1.0, sigma=1.0).apply(state, ctx)
        Gravity(G=1.0).apply(state, ctx)
        assert np.all(np.isfinite(state.forces))
        assert np.all(state.forces == 0.0)


class TestForceAccumulation:
    """Test properties shared by all pair forces."""

    @pytest.mark.parametrize(
        "force",
        [Gravity(G=0.5, softening=0.1), Coulomb(K=0.3), LennardJones(epsilon=1.0, sigma=0.4)],
    )
    def test_newtons_third_law(self, force, cluster, ctx):
        """Test the net force vanishes."""
        force.apply(cluster, ctx)
        scale = max(1.0, np.abs(cluster.forces).max())
        np.testing.assert_allclose(cluster.forces.sum(axis=0), 0.0, atol=1e-12 * scale)

    def test_forces_accumulate(self, cluster, ctx):
        """Test apply adds to existing forces instead of overwriting."""
        gravity = Gravity(G=0.5, softening=0.1)
        gravity.apply(cluster, ctx)
        once = cluster.forces.copy()
        gravity.apply(cluster, ctx)
        np.testing.assert_allclose(cluster.forces, 2.0 * once)

    def test_cell_strategy_matches_naive(self, cluster):
        """Test force results are independent of the pair strategy."""
        force = LennardJones(epsilon=1.0, sigma=0.4)
        other = cluster.copy()

        force.apply(cluster, ForceContext(cutoff=1.5, neighbors=NaiveStrategy()))
        force.apply(other, ForceContext(cutoff=1.5, neighbors=CellListStrategy()))

        np.testing.assert_allclose(cluster.forces, other.forces, rtol=1e-9, atol=1e-9)


@pytest.fixture
def periodic_charges():
    """Four charges in a periodic box with no pair near the cutoff."""
    return make_state(
        [
            [0.0, 0.0, 0.0],
            [0.9, 0.2, -0.1],
            [-0.5, 1.0, 0.3],
            [1.0, -0.8, 0.6],
        ],
        masses=np.array([1.0, 2.0, 1.5, 1.0]),
        charges=np.array([1.0, -1.0, 1.0, -1.0]),
    )


class TestEwald:
    """Test Ewald summation."""

    def test_k_vectors(self):
        """Test the k-vector shell."""
        box = HalfBox.cubic(2.0)
        k = make_k_vectors(box, 1)

        assert k.shape == (6, 3)
        np.testing.assert_allclose(np.linalg.norm(k, axis=1), 2.0 * np.pi / 4.0)
        assert make_k_vectors(box, 2).shape == (32, 3)

    def test_fallback_without_pbc(self, cluster, ctx):
        """Test open boundaries use the direct kernel."""
        ewald_state = cluster.copy()
        EwaldCoulomb(K=0.3, softening=0.1).apply(ewald_state, ctx)
        Coulomb(K=0.3, softening=0.1).apply(cluster, ctx)

        np.testing.assert_allclose(ewald_state.forces, cluster.forces)
        assert np.isclose(
            EwaldCoulomb(K=0.3, softening=0.1).potential(cluster, ctx),
            Coulomb(K=0.3, softening=0.1).potential(cluster, ctx),
        )

    @pytest.mark.parametrize("force", [EwaldCoulomb(K=1.0), EwaldGravity(G=1.0)])
    def test_forces_are_energy_gradient(self, force, periodic_charges):
        """Test forces against a central finite difference of the energy."""
        ctx = ForceContext(cutoff=1.9, pbc=HalfBox.cubic(2.0))
        state = periodic_charges
        force.apply(state, ctx)
        analytic = state.forces.copy()

        h = 1e-5
        numeric = np.zeros_like(analytic)
        for i in range(state.n):
            for axis in range(3):
                state.positions[i, axis] += h
                e_plus = force.potential(state, ctx)
                state.positions[i, axis] -= 2.0 * h
                e_minus = force.potential(state, ctx)
                state.positions[i, axis] += h
                numeric[i, axis] = -(e_plus - e_minus) / (2.0 * h)

        np.testing.assert_allclose(analytic, numeric, rtol=1e-5, atol=1e-6)

    def test_net_force_vanishes(self, periodic_charges):
        """Test momentum conservation of the periodic sum."""
        ctx = ForceContext(cutoff=1.9, pbc=HalfBox.cubic(2.0))
        EwaldCoulomb(K=1.0).apply(periodic_charges, ctx)
        np.testing.assert_allclose(periodic_charges.forces.sum(axis=0), 0.0, atol=1e-10)

    def test_default_alpha(self):
        """Test alpha defaults from the cutoff."""
        force = EwaldCoulomb(K=1.0)
        assert np.isclose(force._alpha(ForceContext(cutoff=2.0)), 1.6)
        assert EwaldCoulomb(K=1.0, alpha=0.7)._alpha(ForceContext(cutoff=2.0)) == 0.7

    def test_gravity_energy_negative(self, periodic_charges):
        """Test periodic gravity energy carries the attractive sign."""
        ctx = ForceContext(cutoff=1.9, pbc=HalfBox.cubic(2.0))
        force = EwaldGravity(G=1.0)
        alpha = force._alpha(ctx)
        assert force.real_space_energy(periodic_charges, ctx, alpha) < 0.0
        assert force.self_energy(periodic_charges, alpha) > 0.0
