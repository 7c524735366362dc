"""
Numerical Regression Gates.

These tests verify numerical correctness against known analytic results.
Any regression here blocks PR merge.

Gates:
1. Energy conservation: Velocity Verlet LJ cluster drifts < 5%
2. Madelung energy: Ewald rock-salt energy within 1e-4 of the known constant
3. Ewald consistency: forces independent of the splitting parameter
"""

import itertools

import numpy as np
import pytest

from mdsim.engines import DiagnosticsRecorder, EngineConfig, SimulationEngine
from mdsim.forcefields import EwaldCoulomb, ForceContext
from mdsim.system import HalfBox, SimulationState

MADELUNG_NACL = 1.747565


def lj_cube_engine() -> SimulationEngine:
    """Eight LJ particles on a cube near the pair minimum."""
    config = EngineConfig.default().merged(
        {
            "world": {"particleCount": 8},
            "runtime": {"dt": 0.002, "cutoff": 10.0, "integrator": "velocityVerlet"},
            "forces": {"lennardJones": True, "gravity": False, "coulomb": False},
            "constants": {"epsilon": 1.0, "sigma": 1.0, "kB": 1.0},
        }
    )
    engine = SimulationEngine(config)

    spacing = 1.12
    positions = np.array(list(itertools.product((0.0, spacing), repeat=3)))
    positions -= positions.mean(axis=0)

    rng = np.random.default_rng(2024)
    velocities = rng.normal(0, 0.05, (8, 3))
    velocities -= velocities.mean(axis=0)

    engine.seed(positions=positions, velocities=velocities, masses=np.ones(8))
    return engine


def rock_salt_state() -> SimulationState:
    """Conventional NaCl cell: alternating unit charges on a 2x2x2 lattice."""
    sites = np.array(list(itertools.product((0, 1), repeat=3)))
    charges = np.where(sites.sum(axis=1) % 2 == 0, 1.0, -1.0)
    positions = sites - 0.5
    return SimulationState(
        positions=positions.astype(np.float64),
        velocities=np.zeros((8, 3)),
        forces=np.zeros((8, 3)),
        masses=np.ones(8),
        charges=charges,
    )


class TestEnergyConservation:
    """
    Gate: Total energy must be conserved by Velocity Verlet.

    Threshold: |E_final - E_initial| / |E_initial| < 5% over 500 steps

    This catches:
    - Integrator bugs
    - Force/energy inconsistency
    - Sign errors in the LJ derivative
    """

    def test_lj_cube_drift(self):
        """Gate: LJ cube energy drift < 5%."""
        engine = lj_cube_engine()
        recorder = DiagnosticsRecorder()
        engine.on("diagnostics", recorder)

        engine.run(500)

        assert engine.step_count == 500
        assert np.all(np.isfinite(recorder.total_energy))
        drift = recorder.relative_drift()
        assert drift < 0.05, f"GATE FAILED: Energy drift {drift:.2%} exceeds 5%"


class TestEwaldAccuracy:
    """
    Gate: Ewald sums must reproduce lattice sums.

    This catches:
    - Missing or wrong reciprocal-space prefactors
    - Missing self-energy correction
    - Sign errors in reciprocal forces
    """

    @pytest.fixture
    def ctx(self):
        """Periodic context for a box of edge 2."""
        return ForceContext(cutoff=1.0, pbc=HalfBox.cubic(1.0))

    def test_madelung_energy(self, ctx):
        """Gate: Rock-salt energy equals -N/2 * M * K q^2 / a."""
        state = rock_salt_state()
        energy = EwaldCoulomb(K=1.0, k_max=8).potential(state, ctx)

        expected = -4.0 * MADELUNG_NACL
        rel_error = abs(energy - expected) / abs(expected)
        assert rel_error < 1e-4, (
            f"GATE FAILED: Madelung energy {energy:.6f} vs {expected:.6f}"
        )

    def test_alpha_independence(self):
        """Gate: Converged forces do not depend on alpha."""
        rng = np.random.default_rng(31415)
        n = 8
        state = SimulationState(
            positions=rng.uniform(-4.0, 4.0, (n, 3)),
            velocities=np.zeros((n, 3)),
            forces=np.zeros((n, 3)),
            masses=np.ones(n),
            charges=np.array([1.0, -1.0] * 4),
        )
        ctx = ForceContext(cutoff=4.0, pbc=HalfBox.cubic(4.0))

        results = []
        for alpha in (0.8, 0.9):
            trial = state.copy()
            force = EwaldCoulomb(K=1.0, alpha=alpha, k_max=10)
            force.apply(trial, ctx)
            results.append((trial.forces, force.potential(trial, ctx)))

        (f1, e1), (f2, e2) = results
        scale = np.abs(f1).max()
        np.testing.assert_allclose(
            f1, f2, atol=1e-3 * scale, err_msg="GATE FAILED: Ewald forces depend on alpha"
        )
        assert abs(e1 - e2) < 1e-3 * max(1.0, abs(e1)), (
            "GATE FAILED: Ewald energy depends on alpha"
        )
