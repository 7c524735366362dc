#!/usr/bin/env python
"""
Example: Planets on circular orbits around a heavy central body.

Gravity only, Velocity Verlet, open boundaries. Each planet starts with the
circular-orbit speed for its distance, so the orbit radii should stay close
to their initial values.

Usage:
    python examples/run_orbits.py
"""

import numpy as np

from mdsim.engines import DiagnosticsRecorder, EngineConfig, SimulationEngine
from mdsim.system import (
    circular_orbit_velocity,
    generate_masses_charges,
    generate_positions,
)

N_PARTICLES = 12
SUN_MASS = 500.0


def main():
    config = EngineConfig.default().merged(
        {
            "world": {"particleCount": N_PARTICLES, "box": {"x": 10.0, "y": 10.0, "z": 1.0}},
            "runtime": {"dt": 0.002, "cutoff": 40.0, "softening": 0.01},
            "forces": {"lennardJones": False, "gravity": True, "coulomb": False},
            "neighbor": {"strategy": "naive"},
        }
    )
    engine = SimulationEngine(config)
    G = config.constants.G

    rng = np.random.default_rng(7)
    box = config.world.box.to_half_box()
    masses, _ = generate_masses_charges(
        N_PARTICLES, 0.01, 0.05, [], sun_mass=SUN_MASS, make_sun=True, rng=rng
    )
    positions = generate_positions(N_PARTICLES, box, make_sun=True, rng=rng)
    velocities = np.array(
        [np.zeros(3)] + [circular_orbit_velocity(p, SUN_MASS, G) for p in positions[1:]]
    )
    engine.seed(positions=positions, velocities=velocities, masses=masses)

    radii0 = np.linalg.norm(positions[1:], axis=1)
    recorder = DiagnosticsRecorder()
    engine.on("diagnostics", recorder)

    engine.run(2000)

    state = engine.get_state()
    radii = np.linalg.norm(state.positions[1:] - state.positions[0], axis=1)
    print(f"Simulated time:          {state.time:.2f}")
    print(f"Max orbit radius change: {np.max(np.abs(radii - radii0) / radii0):.2%}")
    print(f"Relative energy drift:   {recorder.relative_drift():.2e}")


if __name__ == "__main__":
    main()
