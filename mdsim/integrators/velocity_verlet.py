"""Velocity Verlet integrator implementation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from .base import Integrator, RecomputeForces

if TYPE_CHECKING:
    from ..system import SimulationState


class VelocityVerletIntegrator(Integrator):
    """
    Velocity Verlet integrator.

    The standard symplectic integrator for molecular dynamics with
    good long-term energy conservation.

    Algorithm:
        r(t + dt) = r(t) + dt * v(t) + 0.5 * dt^2 * a(t)   # Drift
        v(t + dt/2) = v(t) + 0.5 * dt * a(t)                # First kick
        F(t + dt) = recompute_forces()
        v(t + dt) = v(t + dt/2) + 0.5 * dt * a(t + dt)      # Second kick

    After a step ``state.forces`` holds the forces at the new positions.
    """

    name = "velocityVerlet"

    def __init__(self) -> None:
        self._accel: NDArray[np.floating] | None = None

    def _scratch(self, n: int) -> NDArray[np.floating]:
        if self._accel is None or self._accel.shape[0] != n:
            self._accel = np.empty((n, 3), dtype=np.float64)
        return self._accel

    def step(
        self, state: SimulationState, dt: float, recompute_forces: RecomputeForces
    ) -> None:
        """Perform one full Velocity Verlet step with a force recomputation."""
        inv_mass = 1.0 / state.inertial_masses[:, np.newaxis]
        accel = self._scratch(state.n)
        np.multiply(state.forces, inv_mass, out=accel)

        state.positions += state.velocities * dt + 0.5 * accel * dt * dt
        state.velocities += 0.5 * accel * dt

        recompute_forces()

        state.velocities += 0.5 * state.forces * inv_mass * dt
        state.time += dt

    def reset(self) -> None:
        """Drop the scratch buffer."""
        self._accel = None
